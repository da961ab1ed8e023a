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
Unverified view of a compact JWT for expiry and role checks.

Signatures are NOT verified here; `Token` only answers questions about the
claims it carries. Anything that cannot be decoded becomes an always-expired,
role-less token so authorization checks deny by default.
"""

import time
from collections.abc import Mapping
from typing import Any, Literal

from authlib.common.encoding import json_loads, to_bytes
from authlib.jose.errors import DecodeError
from authlib.jose.util import extract_header, extract_segment
from pydantic import BaseModel, ConfigDict, Field

from coreason_kauth.utils.logger import logger

REALM_PREFIX = "realm"


class DecodedToken(BaseModel):
    """The three segments of a structurally valid compact JWT."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["decoded"] = "decoded"
    header: dict[str, Any]
    content: dict[str, Any]
    signature: bytes
    signed: str


class MalformedToken(BaseModel):
    """A token string that could not be decoded."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["malformed"] = "malformed"
    reason: str


def _extract_content(segment: str) -> dict[str, Any]:
    data = extract_segment(to_bytes(segment), DecodeError, "payload")
    try:
        content = json_loads(data.decode("utf-8"))
    except ValueError as e:
        raise DecodeError(f"Invalid payload string: {e}") from e
    if not isinstance(content, dict):
        raise DecodeError("Payload must be a json object")
    return content


def decode_token(raw: Any) -> DecodedToken | MalformedToken:
    """
    Splits and base64url-decodes a compact JWT without verifying it.

    Args:
        raw: The token string (`header.payload.signature`).

    Returns:
        DecodedToken when all three segments decode, MalformedToken otherwise.
    """
    if not raw or not isinstance(raw, str):
        return MalformedToken(reason="empty or non-string token")
    if not raw.isascii():
        return MalformedToken(reason="token contains non-ASCII characters")

    parts = raw.split(".")
    if len(parts) != 3:
        return MalformedToken(reason=f"expected 3 segments, got {len(parts)}")

    header_segment, payload_segment, signature_segment = parts
    try:
        header = extract_header(to_bytes(header_segment), DecodeError)
        content = _extract_content(payload_segment)
        signature = extract_segment(to_bytes(signature_segment), DecodeError, "signature")
    except DecodeError as e:
        return MalformedToken(reason=e.error or str(e))
    except (ValueError, RecursionError) as e:
        return MalformedToken(reason=f"undecodable segment: {type(e).__name__}")

    return DecodedToken(
        header=header,
        content=content,
        signature=signature,
        signed=f"{header_segment}.{payload_segment}",
    )


def _roles_of(section: Any) -> list[Any]:
    if not isinstance(section, Mapping):
        return []
    roles = section.get("roles")
    return roles if isinstance(roles, list) else []


class Token(BaseModel):
    """
    A parsed access, refresh or ID token.

    Attributes:
        token (str | None): The original compact JWT.
        client_id (str | None): Client used for unqualified `has_role()` checks.
        header (dict | None): Decoded JOSE header.
        content (dict): Decoded claims. `{"exp": 0}` for malformed tokens.
        signature (bytes | None): Raw, unverified signature bytes.
        signed (str | None): `header.payload`, the signing input.
    """

    model_config = ConfigDict(frozen=True)

    token: str | None = None
    client_id: str | None = None
    header: dict[str, Any] | None = None
    content: dict[str, Any] = Field(default_factory=lambda: {"exp": 0})
    signature: bytes | None = None
    signed: str | None = None

    @classmethod
    def parse(cls, token: str | None, client_id: str | None = None) -> "Token":
        """
        Builds a Token from a compact JWT. Never raises for malformed input.

        Args:
            token: The JWT string.
            client_id: Optional client ID for unqualified role checks.

        Returns:
            Token: Decoded token, or the always-expired token if decoding failed.
        """
        raw = token if isinstance(token, str) else None
        decoded = decode_token(token)
        if isinstance(decoded, MalformedToken):
            logger.debug(f"Malformed token treated as expired: {decoded.reason}")
            return cls(token=raw, client_id=client_id)

        return cls(
            token=raw,
            client_id=client_id,
            header=decoded.header,
            content=decoded.content,
            signature=decoded.signature,
            signed=decoded.signed,
        )

    def is_expired(self) -> bool:
        """
        Returns True when `exp` lies in the past. A missing or non-numeric `exp` counts as expired.
        """
        exp = self.content.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            return True
        return exp * 1000 < time.time() * 1000

    def has_role(self, name: str) -> bool:
        """
        Checks a role given as `role`, `realm:role` or `app:role`.

        An unqualified `role` is looked up in the roles of `client_id` and is
        always False when no client ID is set. Anything after a second colon
        is ignored, so `realm:a:b` checks realm role `a`.
        """
        parts = name.split(":")
        if len(parts) == 1:
            if not self.client_id:
                return False
            return self.has_application_role(self.client_id, parts[0])

        qualifier, role = parts[0], parts[1]
        if qualifier == REALM_PREFIX:
            return self.has_realm_role(role)

        return self.has_application_role(qualifier, role)

    def has_application_role(self, app_name: str, role_name: str) -> bool:
        """Checks `resource_access[app_name].roles`; False if any part is missing."""
        resource_access = self.content.get("resource_access")
        if not isinstance(resource_access, Mapping):
            return False
        return role_name in _roles_of(resource_access.get(app_name))

    def has_realm_role(self, role_name: str) -> bool:
        """Checks `realm_access.roles`; False if any part is missing."""
        return role_name in _roles_of(self.content.get("realm_access"))
