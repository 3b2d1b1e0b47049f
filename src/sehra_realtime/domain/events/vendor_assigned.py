from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class VendorAssigned:
    supervisor_id: int
    vendor_id: int
    client_id: int | None = None
