from __future__ import annotations

from dataclasses import dataclass

from sehra_realtime.domain.value_objects.enums import CLIENT_ROLES


@dataclass(frozen=True, slots=True)
class UserEntry:
    """Read-only view of a row in the shared user directory."""

    id: int
    email: str
    name: str
    role: str
    package: str | None = None
    supervisor_id: int | None = None

    @property
    def is_client(self) -> bool:
        return self.role in CLIENT_ROLES
