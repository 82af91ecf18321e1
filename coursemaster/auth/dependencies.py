"""FastAPI dependencies for caller identity and role checks.

Authentication happens upstream (gateway or session layer). The resolved
identity arrives in the ``X-User-Id`` and ``X-User-Role`` headers; the engine
never sees credentials.
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status

from coursemaster.auth.permissions import UserRole
from coursemaster.auth.schemas import AuthenticatedUser
from coursemaster.auth.service import UserService
from coursemaster.core.context import bind_identity


async def get_user_service(request: Request) -> UserService:
    """Get user service from app state."""
    user_service = getattr(request.app.state, "user_service", None)
    if not user_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="User service not available",
        )
    return user_service


UserServiceDep = Annotated[UserService, Depends(get_user_service)]


async def get_current_user(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
) -> AuthenticatedUser:
    """Read the identity resolved upstream.

    Raises:
        HTTPException(401): If the identity headers are missing or malformed
    """
    if not x_user_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        user = AuthenticatedUser(id=UUID(x_user_id), role=UserRole(x_user_role))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid identity headers",
        ) from e

    bind_identity(user.id, user.role.value)
    return user


def require_role(*allowed_roles: UserRole):
    """Create dependency requiring specific role(s).

    Example:
        @router.post("/batches")
        async def create(
            user: Annotated[AuthenticatedUser, Depends(require_role(UserRole.INSTRUCTOR))]
        ):
            ...
    """

    async def role_checker(
        user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    ) -> AuthenticatedUser:
        if user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return role_checker


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
StudentUser = Annotated[AuthenticatedUser, Depends(require_role(UserRole.STUDENT))]
InstructorUser = Annotated[
    AuthenticatedUser, Depends(require_role(UserRole.INSTRUCTOR))
]
