"""Import all models so Base.metadata knows every table."""
from direct_chat.infrastructure.db.models.message import MessageModel
from direct_chat.infrastructure.db.models.user import UserModel

__all__ = [
    "MessageModel",
    "UserModel",
]
