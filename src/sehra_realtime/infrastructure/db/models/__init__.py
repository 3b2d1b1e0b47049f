"""Import all models so Base.metadata knows every table."""
from sehra_realtime.infrastructure.db.models.contact_status import ContactStatusModel
from sehra_realtime.infrastructure.db.models.message import MessageModel
from sehra_realtime.infrastructure.db.models.user import UserModel

__all__ = [
    "ContactStatusModel",
    "MessageModel",
    "UserModel",
]
