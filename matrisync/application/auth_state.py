"""Auth contract consumed by the sync layer.

``AuthState`` stands for the backend's session: it answers who is signed in and
notifies listeners on sign-in and sign-out. The HTTP layer drives it from the
verified bearer token.
"""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Union

from matrisync.domain.entities import AuthUser

logger = logging.getLogger(__name__)

AuthListener = Callable[[Union[AuthUser, None]], Union[Awaitable[None], None]]


class AuthState:
    def __init__(self) -> None:
        self._user: AuthUser | None = None
        self._listeners: list[AuthListener] = []

    def current_user(self) -> AuthUser | None:
        return self._user

    def on_change(self, listener: AuthListener) -> None:
        self._listeners.append(listener)

    async def sign_in(self, user: AuthUser) -> None:
        if self._user == user:
            return
        self._user = user
        await self._emit(user)

    async def sign_out(self) -> None:
        if self._user is None:
            return
        self._user = None
        await self._emit(None)

    async def _emit(self, user: AuthUser | None) -> None:
        for listener in list(self._listeners):
            result = listener(user)
            if inspect.isawaitable(result):
                await result


__all__ = ["AuthListener", "AuthState"]
