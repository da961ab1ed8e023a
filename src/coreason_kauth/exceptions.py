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
Custom exceptions for the coreason-kauth package.
"""


class CoreasonKauthError(Exception):
    """Base exception for all coreason-kauth errors."""


class ConfigLoadError(CoreasonKauthError):
    """
    Raised when the Keycloak configuration cannot be loaded.

    Covers unreadable files, documents that are not valid JSON objects and values
    that cannot be coerced into the settings model. Startup should not proceed.
    """
