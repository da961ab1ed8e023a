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
GrantAttacher middleware: resolves the request's grant before the route runs.
"""

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from coreason_kauth.async_context import reset_current_grant, set_current_grant
from coreason_kauth.grant import Grant, GrantManager
from coreason_kauth.utils.logger import logger

tracer = trace.get_tracer(__name__)


class KauthState:
    """Per-request auth state, available as `request.state.kauth`."""

    def __init__(self, grant: Grant | None = None) -> None:
        self.grant = grant


class GrantAttacher(BaseHTTPMiddleware):
    """
    Awaits `grant_manager.get_grant(request)` and attaches the result to
    `request.state.kauth.grant` (and the async context) before calling the
    next handler.

    Failures from the grant manager are not caught; they surface as a failed request.
    """

    def __init__(self, app: ASGIApp, grant_manager: GrantManager) -> None:
        super().__init__(app)
        self.grant_manager = grant_manager

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        with tracer.start_as_current_span("kauth.attach_grant") as span:
            try:
                grant = await self.grant_manager.get_grant(request)
            except Exception as e:
                span.set_status(Status(StatusCode.ERROR, str(e)))
                span.record_exception(e)
                logger.error(f"Grant lookup failed for {request.url.path}: {type(e).__name__}")
                raise
            span.set_attribute("kauth.grant_present", grant is not None)

        kauth = getattr(request.state, "kauth", None)
        if kauth is None:
            kauth = KauthState()
            request.state.kauth = kauth
        kauth.grant = grant

        context_token = set_current_grant(grant)
        try:
            return await call_next(request)
        finally:
            reset_current_grant(context_token)
