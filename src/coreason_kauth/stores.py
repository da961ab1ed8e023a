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
Token stores: pull a raw JWT out of an incoming request.

Each store looks for a field named `jwt` and answers `{"access_token": jwt}`
or None. Deployments pick whichever store matches how clients send tokens.
"""

from typing import Protocol

from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request

from coreason_kauth.utils.logger import logger

TOKEN_FIELD = "jwt"
FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class TokenStore(Protocol):
    """Extracts grant data from a request."""

    async def get(self, request: Request) -> dict[str, str] | None: ...


def _as_grant_data(value: object) -> dict[str, str] | None:
    if isinstance(value, str) and value:
        return {"access_token": value}
    return None


class QueryStore:
    """Reads `?jwt=...` from the query string."""

    async def get(self, request: Request) -> dict[str, str] | None:
        return _as_grant_data(request.query_params.get(TOKEN_FIELD))


class BodyStore:
    """
    Reads `jwt` from a JSON object or form-encoded request body.

    Bodies that are empty, of another content type or not parseable are
    treated as carrying no token.
    """

    async def get(self, request: Request) -> dict[str, str] | None:
        content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()

        if content_type == "application/json":
            if not await request.body():
                return None
            try:
                body = await request.json()
            except ValueError:
                logger.debug("Ignoring request body that is not valid JSON")
                return None
            if not isinstance(body, dict):
                return None
            return _as_grant_data(body.get(TOKEN_FIELD))

        if content_type in FORM_CONTENT_TYPES:
            # Cache the raw body so the route below can parse the form again.
            if not await request.body():
                return None
            try:
                form = await request.form()
            except (MultiPartException, HTTPException):
                logger.debug("Ignoring form body that could not be parsed")
                return None
            return _as_grant_data(form.get(TOKEN_FIELD))

        return None
