from __future__ import annotations

from dataclasses import dataclass

from sehra_realtime.domain.entities.user import UserEntry
from sehra_realtime.domain.value_objects.enums import CLIENT_ROLES, UserRole


@dataclass(frozen=True, slots=True)
class IdentityClaim:
    """Credential presented by a connection: an email, optionally a signed token."""

    email: str = ""
    token: str | None = None


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Fields carried by a verified JWT."""

    user_id: int
    email: str | None = None
    role: str | None = None
    name: str | None = None


@dataclass(frozen=True, slots=True)
class Identity:
    """Directory user bound to a connection or HTTP request."""

    user_id: int
    role: str
    name: str
    email: str

    @classmethod
    def from_user(cls, user: UserEntry) -> Identity:
        return cls(user_id=user.id, role=user.role, name=user.name, email=user.email)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_supervisor(self) -> bool:
        return self.role == UserRole.SUPERVISOR

    @property
    def is_client(self) -> bool:
        return self.role in CLIENT_ROLES
