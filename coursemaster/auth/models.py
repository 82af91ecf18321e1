"""Database models for users.

Identity is resolved upstream; this table only keeps the profile data the
engine needs to address notifications (name, email) and the role.
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from coursemaster.auth.permissions import UserRole
from coursemaster.utils import ensure_utc_aware, utc_now


USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    id UUID PRIMARY KEY,
    name TEXT,
    email TEXT,
    role TEXT,
    created_at TIMESTAMP
)
"""

AUTH_TABLES_CQL = [
    USER_TABLE_CQL,
]


class User:
    """User entity.

    Attributes:
        id: Unique identifier (UUID)
        name: Display name
        email: Address used for notifications
        role: student, instructor or admin
        created_at: Registration timestamp
    """

    def __init__(
        self,
        name: str,
        email: str,
        role: str = UserRole.STUDENT.value,
        id: UUID | None = None,  # noqa: A002
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.name = name
        self.email = email
        self.role = role
        self.created_at = ensure_utc_aware(created_at) or utc_now()

    @classmethod
    def from_row(cls, row: Any) -> "User":
        """Create User instance from Cassandra row."""
        return cls(
            id=row.id,
            name=row.name,
            email=row.email,
            role=row.role or UserRole.STUDENT.value,
            created_at=row.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
