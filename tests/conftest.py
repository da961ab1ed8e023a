# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_kauth

import time
from collections.abc import Callable
from typing import Any

import pytest
from authlib.jose import jwt

SIGNING_KEY = "kauth-test-signing-key-0123456789abcdef"


@pytest.fixture
def make_jwt() -> Callable[..., str]:
    """
    Factory minting HS256 tokens. The signature is real but never checked by the code under test.
    """

    def _make(claims: dict[str, Any] | None = None, expires_in: int = 3600) -> str:
        payload: dict[str, Any] = {"exp": int(time.time()) + expires_in, "sub": "user-1"}
        payload.update(claims or {})
        return jwt.encode({"alg": "HS256", "typ": "JWT"}, payload, SIGNING_KEY).decode("utf-8")

    return _make
