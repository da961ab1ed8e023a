# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_kauth

from collections.abc import Callable

import pytest
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from coreason_kauth.async_context import get_current_grant
from coreason_kauth.grant import Grant
from coreason_kauth.manager import StoreGrantManager
from coreason_kauth.middleware import GrantAttacher, KauthState
from coreason_kauth.stores import BodyStore


async def echo_form(request: Request) -> JSONResponse:
    form = await request.form()
    grant = request.state.kauth.grant
    return JSONResponse({"other": form.get("other"), "has_grant": grant is not None})


async def whoami(request: Request) -> JSONResponse:
    grant = request.state.kauth.grant
    access = grant.access_token if grant else None
    return JSONResponse(
        {
            "authenticated": access is not None and not access.is_expired(),
            "admin": bool(access and access.has_role("realm:admin")),
            "same_as_context": get_current_grant() is grant,
        }
    )


def _client(grant_manager: object) -> TestClient:
    app = Starlette(
        routes=[
            Route("/whoami", whoami, methods=["GET", "POST"]),
            Route("/form", echo_form, methods=["POST"]),
        ]
    )
    app.add_middleware(GrantAttacher, grant_manager=grant_manager)
    return TestClient(app)


class FailingGrantManager:
    async def get_grant(self, request: Request) -> Grant | None:
        raise RuntimeError("identity server unreachable")


def test_grant_is_attached_from_query(make_jwt: Callable[..., str]) -> None:
    """Test that the grant is resolved before the route runs."""
    raw = make_jwt({"realm_access": {"roles": ["admin"]}})
    client = _client(StoreGrantManager("app1"))

    response = client.get("/whoami", params={"jwt": raw})

    assert response.status_code == 200
    assert response.json() == {"authenticated": True, "admin": True, "same_as_context": True}


def test_grant_is_attached_from_body(make_jwt: Callable[..., str]) -> None:
    """Test that the body store works behind the middleware and the route can still read the body."""
    raw = make_jwt()
    client = _client(StoreGrantManager("app1"))

    response = client.post("/whoami", json={"jwt": raw})

    assert response.json()["authenticated"] is True


def test_anonymous_request_gets_no_grant() -> None:
    """Test that requests without a token carry a None grant."""
    response = _client(StoreGrantManager("app1")).get("/whoami")
    assert response.json() == {"authenticated": False, "admin": False, "same_as_context": True}


def test_expired_token_is_not_authenticated(make_jwt: Callable[..., str]) -> None:
    """Test that an expired token is attached but does not authenticate."""
    raw = make_jwt({"realm_access": {"roles": ["admin"]}}, expires_in=-60)
    response = _client(StoreGrantManager("app1")).get("/whoami", params={"jwt": raw})
    assert response.json()["authenticated"] is False


def test_grant_manager_failure_propagates() -> None:
    """Test that a failing grant lookup is not swallowed."""
    client = _client(FailingGrantManager())
    with pytest.raises(RuntimeError, match="identity server unreachable"):
        client.get("/whoami")


def test_context_is_reset_after_request(make_jwt: Callable[..., str]) -> None:
    """Test that the grant does not leak outside the request."""
    _client(StoreGrantManager("app1")).get("/whoami", params={"jwt": make_jwt()})
    assert get_current_grant() is None


def test_kauth_state_defaults() -> None:
    """Test the request state container."""
    assert KauthState().grant is None


def test_route_can_read_form_after_body_store(make_jwt: Callable[..., str]) -> None:
    """Test that the route still sees every form field after the body store read the token."""
    client = _client(StoreGrantManager("app1", stores=[BodyStore()]))

    response = client.post("/form", data={"jwt": make_jwt(), "other": "1"})

    assert response.status_code == 200
    assert response.json() == {"other": "1", "has_grant": True}


def test_non_ascii_token_in_json_body_is_denied() -> None:
    """Test that a token with a lone surrogate is treated as malformed, not as a server error."""
    client = _client(StoreGrantManager("app1", stores=[BodyStore()]))

    response = client.post(
        "/whoami",
        content=b'{"jwt": "\\ud800.a.b"}',
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 200
    assert response.json() == {"authenticated": False, "admin": False, "same_as_context": True}
