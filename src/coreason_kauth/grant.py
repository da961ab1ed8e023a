# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_kauth

"""
Grant model: the tokens belonging to one authenticated session.
"""

from collections.abc import Mapping
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict
from starlette.requests import Request

from coreason_kauth.token import Token

TOKEN_FIELDS = ("access_token", "refresh_token", "id_token")


class Grant(BaseModel):
    """
    Tokens of an authenticated session, as returned by a token endpoint or a token store.

    Attributes:
        access_token (Token | None): The access token.
        refresh_token (Token | None): The refresh token, if issued.
        id_token (Token | None): The ID token, if issued.
        token_type (str | None): Usually "Bearer".
        expires_in (int | None): Access token lifetime in seconds.
    """

    model_config = ConfigDict(frozen=True)

    access_token: Token | None = None
    refresh_token: Token | None = None
    id_token: Token | None = None
    token_type: str | None = None
    expires_in: int | None = None

    @classmethod
    def from_data(cls, data: Mapping[str, Any], client_id: str | None = None) -> "Grant":
        """
        Builds a Grant from raw token strings.

        Args:
            data: Mapping with `access_token` and optionally `refresh_token`,
                `id_token`, `token_type` and `expires_in`.
            client_id: Client ID attached to the access token for role checks.

        Returns:
            Grant: A grant with unverified tokens.
        """
        tokens: dict[str, Token | None] = {}
        for field_name in TOKEN_FIELDS:
            raw = data.get(field_name)
            # Only the access token carries client roles.
            owner = client_id if field_name == "access_token" else None
            tokens[field_name] = Token.parse(raw, owner) if raw else None

        return cls(
            **tokens,
            token_type=data.get("token_type"),
            expires_in=data.get("expires_in"),
        )

    def is_expired(self) -> bool:
        """A grant without an access token is always expired."""
        if self.access_token is None:
            return True
        return self.access_token.is_expired()


class GrantManager(Protocol):
    """Produces the grant for an incoming request."""

    async def get_grant(self, request: Request) -> Grant | None:
        """Returns the request's grant, or None for anonymous requests."""
        ...
