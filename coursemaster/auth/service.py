"""User lookup service."""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from coursemaster.auth.models import User
from coursemaster.auth.permissions import UserRole


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


class UserService:
    """Read side of the user directory, plus creation for seeding."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_by_id = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.users WHERE id = ?
        """)

        self._insert_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.users (id, name, email, role, created_at)
            VALUES (?, ?, ?, ?, ?)
        """)

    async def get_user(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        result = await self.session.aexecute(self._get_by_id, [user_id])
        row = result.one()
        return User.from_row(row) if row else None

    async def create_user(
        self,
        name: str,
        email: str,
        role: UserRole = UserRole.STUDENT,
    ) -> User:
        """Create a user record."""
        user = User(name=name, email=email.lower(), role=role.value)
        await self.session.aexecute(
            self._insert_user,
            [user.id, user.name, user.email, user.role, user.created_at],
        )
        logger.info("user_created", user_id=str(user.id), role=user.role)
        return user
