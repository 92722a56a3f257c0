"""Domain entities exposed by the application."""

from .auth_user import AuthUser
from .connection import ConnectionStatus
from .conversation import ConversationCacheEntry, ConversationSummary
from .message import TEMP_ID_PREFIX, Message, is_temporary_id, new_temporary_id
from .notification import Notification, NotificationType
from .profile import ANONYMOUS_NAME, ProfileSummary

__all__ = [
    "ANONYMOUS_NAME",
    "AuthUser",
    "ConnectionStatus",
    "ConversationCacheEntry",
    "ConversationSummary",
    "Message",
    "Notification",
    "NotificationType",
    "ProfileSummary",
    "TEMP_ID_PREFIX",
    "is_temporary_id",
    "new_temporary_id",
]
