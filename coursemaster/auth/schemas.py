"""Pydantic schemas for the resolved caller identity."""

from uuid import UUID

from pydantic import BaseModel

from coursemaster.auth.permissions import UserRole


class AuthenticatedUser(BaseModel):
    """Identity forwarded by the upstream auth layer."""

    id: UUID
    role: UserRole

    @property
    def is_instructor(self) -> bool:
        return self.role == UserRole.INSTRUCTOR

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT
