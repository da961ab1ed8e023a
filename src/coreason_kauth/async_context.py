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
Async Context Management for the request-scoped Grant.
"""

from contextvars import ContextVar
from contextvars import Token as ContextToken

from coreason_kauth.grant import Grant

# Default is None.
_current_grant: ContextVar[Grant | None] = ContextVar("current_grant", default=None)


def get_current_grant() -> Grant | None:
    """
    Retrieve the grant attached to the current request.

    Returns:
        Grant | None: The current grant, or None if not set.
    """
    return _current_grant.get()


def set_current_grant(grant: Grant | None) -> ContextToken[Grant | None]:
    """
    Set the grant for the current async task.

    Args:
        grant: The Grant to set.

    Returns:
        A context token that `reset_current_grant` accepts.
    """
    return _current_grant.set(grant)


def reset_current_grant(token: ContextToken[Grant | None]) -> None:
    """
    Restore the grant that was current before `set_current_grant`.
    """
    _current_grant.reset(token)


def clear_current_grant() -> None:
    """
    Clear the current grant (reset to None).
    """
    _current_grant.set(None)
