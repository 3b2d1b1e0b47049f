from __future__ import annotations

from enum import StrEnum


class UserRole(StrEnum):
    BRIDE = "bride"
    GROOM = "groom"
    FAMILY = "family"
    VENDOR = "vendor"
    SUPERVISOR = "supervisor"
    ADMIN = "admin"


CLIENT_ROLES = (UserRole.BRIDE, UserRole.GROOM, UserRole.FAMILY)


class MessageType(StrEnum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"
    SUPERVISOR_ALLOCATION = "supervisor_allocation"
    SYSTEM = "system"


class ConnectionState(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class ContactStatusValue(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
