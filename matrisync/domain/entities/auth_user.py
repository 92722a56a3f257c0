"""Domain entity representing the authenticated member."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AuthUser:
    """Identity returned by the auth contract for the signed-in member."""

    id: str
    email: str | None = None


__all__ = ["AuthUser"]
