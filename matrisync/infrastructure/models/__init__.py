"""ORM models used by the application infrastructure."""

from .match import MatchModel
from .message import MessageModel
from .profile import ProfileModel
from .profile_interaction import ProfileInteractionModel
from .profile_view import ProfileViewModel

__all__ = [
    "MatchModel",
    "MessageModel",
    "ProfileInteractionModel",
    "ProfileModel",
    "ProfileViewModel",
]
