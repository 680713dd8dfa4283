"""Bearer-token authentication for the workflow API."""

from __future__ import annotations

from typing import TYPE_CHECKING

from litestar.exceptions import NotAuthorizedException
from litestar.middleware import AbstractAuthenticationMiddleware, AuthenticationResult

from salesmeraki_workflows.core.records import TeamMember

if TYPE_CHECKING:
    from collections.abc import Mapping

    from litestar.connection import ASGIConnection
    from litestar.types import ASGIApp

__all__ = ["DEMO_USER", "BearerTokenAuthMiddleware"]

DEMO_USER = TeamMember(id="demo", name="Demo User", role="Sales Rep", email="demo@salesmeraki.com")


class BearerTokenAuthMiddleware(AbstractAuthenticationMiddleware):
    """Authenticate requests from an ``Authorization: Bearer <token>`` header.

    Known tokens resolve to their team member. When ``allow_any_token`` is
    set, any other non-empty token authenticates as :data:`DEMO_USER`.
    Requests without a token are rejected with 401.
    """

    def __init__(
        self,
        app: ASGIApp,
        tokens: Mapping[str, TeamMember] | None = None,
        allow_any_token: bool = True,
        exclude: str | list[str] | None = None,
    ) -> None:
        super().__init__(app, exclude=exclude)
        self.tokens = dict(tokens or {})
        self.allow_any_token = allow_any_token

    async def authenticate_request(self, connection: ASGIConnection) -> AuthenticationResult:
        scheme, _, token = connection.headers.get("Authorization", "").partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            raise NotAuthorizedException(detail="Unauthorized")

        user = self.tokens.get(token)
        if user is None:
            if not self.allow_any_token:
                raise NotAuthorizedException(detail="Unauthorized")
            user = DEMO_USER
        return AuthenticationResult(user=user, auth=token)
