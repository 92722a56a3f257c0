"""Typed errors raised at the gateway boundary.

Callers decide how to surface a failure by switching on :attr:`GatewayError.kind`
rather than inspecting exception messages.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NETWORK = "network"
    AUTH = "auth"
    VALIDATION = "validation"
    SERVER = "server"


class GatewayError(Exception):
    """Base error for every failure reported by the backend gateway."""

    kind: ErrorKind = ErrorKind.SERVER

    def __init__(self, message: str, *, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    @property
    def is_network(self) -> bool:
        return self.kind is ErrorKind.NETWORK

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class NetworkError(GatewayError):
    """The backend could not be reached."""

    kind = ErrorKind.NETWORK


class AuthError(GatewayError):
    """The request was rejected because of the member's credentials."""

    kind = ErrorKind.AUTH


class ValidationError(GatewayError):
    """The request itself was malformed (unknown collection, bad payload)."""

    kind = ErrorKind.VALIDATION


class ServerError(GatewayError):
    """The backend accepted the request but failed while processing it."""

    kind = ErrorKind.SERVER


__all__ = [
    "AuthError",
    "ErrorKind",
    "GatewayError",
    "NetworkError",
    "ServerError",
    "ValidationError",
]
