"""Ambient user session."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from salesmeraki_workflows.core.clock import utc_now

__all__ = ["Session", "SessionProvider", "active_session", "static_session"]


@dataclass(frozen=True)
class Session:
    """An authenticated user.

    Attributes:
        user_id: Id of the signed-in user.
        access_token: Bearer token sent to the workflow API.
        name: Display name.
        email: Email address.
        expires_at: When the token stops being valid, ``None`` if it does not expire.
    """

    user_id: str
    access_token: str
    name: str = ""
    email: str = ""
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or utc_now()) >= self.expires_at


SessionProvider = Callable[[], Session | None]
"""Callable returning the current session, or ``None`` when signed out."""


def static_session(session: Session | None) -> SessionProvider:
    """Provider that always returns ``session``."""
    return lambda: session


def active_session(provider: SessionProvider | None) -> Session | None:
    """The provider's session if present and unexpired."""
    if provider is None:
        return None
    session = provider()
    if session is None or session.is_expired() or not session.access_token:
        return None
    return session
