"""
storefront/core/identity.py
Identity notifications for cart sessions.

A provider calls every subscriber with the current uid (or None when signed out)
right after subscription, then again on each change, in order.
"""
import logging
from typing import Callable, List, Optional, Protocol

logger = logging.getLogger("storefront.auth")

IdentityListener = Callable[[Optional[str]], None]


class IdentityProvider(Protocol):
    def subscribe(self, listener: IdentityListener) -> Callable[[], None]: ...


class SessionIdentity:
    """Signed-in user of one session."""

    def __init__(self, user_id: Optional[str] = None):
        self._user_id = user_id
        self._listeners: List[IdentityListener] = []

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)
        listener(self._user_id)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def sign_in(self, user_id: str) -> None:
        if not user_id:
            raise ValueError("user_id cannot be empty")
        self._set(user_id)

    def sign_out(self) -> None:
        self._set(None)

    def _set(self, user_id: Optional[str]) -> None:
        if user_id == self._user_id:
            return
        logger.debug("Identity changed %s -> %s", self._user_id, user_id)
        self._user_id = user_id
        for listener in list(self._listeners):
            listener(user_id)
