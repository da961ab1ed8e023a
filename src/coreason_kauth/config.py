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
Keycloak adapter configuration.

Reads a `keycloak.json` style document (or an equivalent mapping), resolves
`${env.NAME:fallback}` references, folds the many historical key spellings
into one canonical field each and returns an immutable `KeycloakConfig`.
"""

import json
import os
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, computed_field
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from coreason_kauth.exceptions import ConfigLoadError
from coreason_kauth.utils.logger import logger

DEFAULT_CONFIG_FILE = "keycloak.json"

PEM_HEADER = "-----BEGIN PUBLIC KEY-----"
PEM_FOOTER = "-----END PUBLIC KEY-----"
PEM_LINE_LENGTH = 64

# ${env.NAME} or ${env.NAME:fallback}; the fallback keeps any further colons.
ENV_REFERENCE = re.compile(r"\$\{env\.([^:}]*)(?::(.*))?\}", re.DOTALL)

# Canonical name first, then the spellings found in keycloak.json files.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "realm": ("realm",),
    "client_id": ("client_id", "clientId", "resource", "client-id"),
    "is_public": ("is_public", "isPublic", "public", "public-client"),
    "auth_server_url": ("auth_server_url", "authServerUrl", "auth-server-url", "server-url", "serverUrl"),
    "min_time_between_jwks_requests": (
        "min_time_between_jwks_requests",
        "minTimeBetweenJwksRequests",
        "min-time-between-jwks-requests",
    ),
    "bearer_only": ("bearer_only", "bearerOnly", "bearer-only"),
    "scope": ("scope",),
}
SECRET_ALIASES = ("secret",)
PUBLIC_KEY_ALIASES = ("realm_public_key", "realmPublicKey", "realm-public-key")


class KauthSettings(BaseSettings):
    """
    Process-level settings for the adapter itself.

    Attributes:
        config_path (Path): Where `resolve_config()` looks when no source is given.
            Defaults to `keycloak.json` in the current working directory.
    """

    model_config = SettingsConfigDict(env_prefix="KEYCLOAK_", case_sensitive=False)

    config_path: Path = Field(default_factory=lambda: Path.cwd() / DEFAULT_CONFIG_FILE)


class KeycloakConfig(BaseModel):
    """
    Normalized Keycloak adapter settings.

    Built once at startup and frozen afterwards. `realm_url` and `realm_admin_url`
    are always derived from `auth_server_url` and `realm`.

    Attributes:
        realm (str | None): Realm name.
        client_id (str | None): Client (application) identifier.
        secret (SecretStr | None): Client secret for confidential clients.
        is_public (bool): True when the client needs no secret.
        auth_server_url (str | None): Base URL of the identity server.
        min_time_between_jwks_requests (int): Minutes between signing-key refreshes.
        bearer_only (bool): True when the service never redirects to a login page.
        public_key (str | None): Realm public key in PEM form.
        scope (str | None): OAuth scope string, carried through untouched.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True, alias_generator=to_camel)

    realm: str | None = None
    client_id: str | None = None
    secret: SecretStr | None = None
    is_public: bool = False
    auth_server_url: str | None = None
    min_time_between_jwks_requests: int = 10
    bearer_only: bool = False
    public_key: str | None = None
    scope: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def realm_url(self) -> str:
        return f"{self.auth_server_url or ''}/realms/{self.realm or ''}"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def realm_admin_url(self) -> str:
        return f"{self.auth_server_url or ''}/admin/realms/{self.realm or ''}"


ConfigSource = str | os.PathLike[str] | Mapping[str, Any] | KeycloakConfig | None


def resolve_env_value(value: Any, env: Mapping[str, str] | None = None) -> Any:
    """
    Resolves an environment reference such as `${env.AUTH_URL:http://localhost:8080}`.

    The whole string must be the reference; anything else is returned untouched,
    as are non-string values. An unset or empty variable yields the fallback,
    or `""` when there is none.

    Args:
        value: The raw configuration value.
        env: Environment to read from. Defaults to `os.environ`.

    Returns:
        The resolved value.
    """
    if not isinstance(value, str):
        return value

    match = ENV_REFERENCE.fullmatch(value)
    if match is None:
        return value

    environ = os.environ if env is None else env
    name, fallback = match.group(1), match.group(2)
    # Empty string counts as unset, so the fallback applies.
    return environ.get(name) or (fallback or "")


def format_public_key(raw_key: str) -> str:
    """
    Wraps a bare base64 key into a PEM block with 64 character lines.
    """
    lines = [raw_key[i : i + PEM_LINE_LENGTH] for i in range(0, len(raw_key), PEM_LINE_LENGTH)]
    return "".join(f"{line}\n" for line in (PEM_HEADER, *lines, PEM_FOOTER))


def load_config_file(path: str | os.PathLike[str]) -> dict[str, Any]:
    """
    Reads a UTF-8 JSON configuration file.

    Raises:
        ConfigLoadError: If the file cannot be read or does not hold a JSON object.
    """
    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Unable to read Keycloak config {config_path}: {e}")
        raise ConfigLoadError(f"Unable to read Keycloak config '{config_path}': {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error(f"Keycloak config {config_path} is not valid JSON: {e}")
        raise ConfigLoadError(f"Keycloak config '{config_path}' is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigLoadError(f"Keycloak config '{config_path}' must contain a JSON object")

    return data


def _first_present(candidates: Iterable[Any], env: Mapping[str, str] | None) -> Any:
    for candidate in candidates:
        value = resolve_env_value(candidate, env)
        if value is not None and value != "":
            return value
    return None


def _secret_candidates(raw: Mapping[str, Any]) -> list[Any]:
    candidates = [raw.get(name) for name in SECRET_ALIASES]
    credentials = raw.get("credentials")
    if isinstance(credentials, Mapping):
        candidates.append(credentials.get("secret"))
    return candidates


def resolve_config(source: ConfigSource = None, env: Mapping[str, str] | None = None) -> KeycloakConfig:
    """
    Builds a `KeycloakConfig` from a file path or a mapping.

    Args:
        source: Path to a `keycloak.json` file, a mapping with the same content,
            or an existing `KeycloakConfig` (returned as is). When omitted the
            path from `KauthSettings` is used.
        env: Environment for `${env.*}` references. Defaults to `os.environ`.

    Returns:
        KeycloakConfig: The resolved, frozen settings.

    Raises:
        ConfigLoadError: If the file cannot be loaded or a value has the wrong type.
    """
    if isinstance(source, KeycloakConfig):
        return source

    if source is None:
        source = KauthSettings().config_path

    raw: Mapping[str, Any]
    if isinstance(source, (str, os.PathLike)):
        raw = load_config_file(source)
    else:
        raw = source

    values: dict[str, Any] = {}
    for field_name, aliases in FIELD_ALIASES.items():
        value = _first_present((raw.get(alias) for alias in aliases), env)
        if value is not None:
            values[field_name] = value

    secret = _first_present(_secret_candidates(raw), env)
    if secret is not None:
        values["secret"] = secret

    raw_key = _first_present((raw.get(alias) for alias in PUBLIC_KEY_ALIASES), env)
    if raw_key is not None:
        if not isinstance(raw_key, str):
            raise ConfigLoadError("realm-public-key must be a string")
        values["public_key"] = format_public_key(raw_key)

    try:
        config = KeycloakConfig.model_validate(values)
    except ValidationError as e:
        logger.error(f"Invalid Keycloak configuration: {e}")
        raise ConfigLoadError(f"Invalid Keycloak configuration: {e}") from e

    logger.debug(f"Resolved Keycloak config for realm '{config.realm}' at {config.realm_url}")
    return config
