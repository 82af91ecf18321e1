"""User directory and caller identity."""

from .models import AUTH_TABLES_CQL, User
from .permissions import UserRole


__all__ = [
    "AUTH_TABLES_CQL",
    "User",
    "UserRole",
]
