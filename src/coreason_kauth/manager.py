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
StoreGrantManager: builds grants from tokens carried in the request itself.
"""

from collections.abc import Sequence

from starlette.requests import Request

from coreason_kauth.config import KeycloakConfig
from coreason_kauth.grant import Grant
from coreason_kauth.stores import BodyStore, QueryStore, TokenStore
from coreason_kauth.utils.logger import logger


class StoreGrantManager:
    """
    GrantManager that asks each token store in turn and wraps the first hit in a Grant.

    The tokens are NOT verified. Pair this with an upstream gateway or a
    verifying grant manager before trusting anything but `is_expired()` and
    role membership for coarse routing.

    Attributes:
        client_id (str | None): Client ID attached to access tokens.
        stores (Sequence[TokenStore]): Stores consulted in order.
    """

    def __init__(self, client_id: str | None, stores: Sequence[TokenStore] | None = None) -> None:
        """
        Initialize the StoreGrantManager.

        Args:
            client_id: Client ID used for unqualified role checks.
            stores: Token stores to consult. Defaults to query string, then body.
        """
        self.client_id = client_id
        self.stores: Sequence[TokenStore] = stores if stores is not None else (QueryStore(), BodyStore())

    @classmethod
    def from_config(cls, config: KeycloakConfig, stores: Sequence[TokenStore] | None = None) -> "StoreGrantManager":
        """Creates a manager for the client named in a resolved config."""
        return cls(client_id=config.client_id, stores=stores)

    async def get_grant(self, request: Request) -> Grant | None:
        """
        Returns a Grant built from the first store that finds a token, or None.
        """
        for store in self.stores:
            data = await store.get(request)
            if data:
                logger.debug(f"Grant data found by {type(store).__name__}")
                return Grant.from_data(data, self.client_id)
        return None
