from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SupervisorAssigned:
    client_id: int
    supervisor_id: int
