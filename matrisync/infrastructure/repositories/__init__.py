"""Repository implementations for infrastructure layer."""

from .profile_repository import ProfileRepository

__all__ = ["ProfileRepository"]
