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
Keycloak adapter utilities: configuration resolution, unverified token role checks
and grant attachment for Starlette applications.
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .async_context import get_current_grant
from .config import KauthSettings, KeycloakConfig, resolve_config
from .exceptions import ConfigLoadError, CoreasonKauthError
from .grant import Grant, GrantManager
from .manager import StoreGrantManager
from .middleware import GrantAttacher
from .stores import BodyStore, QueryStore
from .token import Token

__all__ = [
    "BodyStore",
    "ConfigLoadError",
    "CoreasonKauthError",
    "Grant",
    "GrantAttacher",
    "GrantManager",
    "KauthSettings",
    "KeycloakConfig",
    "QueryStore",
    "StoreGrantManager",
    "Token",
    "get_current_grant",
    "resolve_config",
]
