"""Secrets storage for devprofile API keys and the GitHub token.

Stores keys in ~/.config/devprofile/credentials with restricted file
permissions. Environment variables always override stored keys. The OS
keyring is consulted between the two.
"""
from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Optional

import keyring
from keyring.errors import KeyringError

from devprofile.config import PROVIDER_KEY_MAP

logger = logging.getLogger("devprofile.secrets")

KEYRING_SERVICE = "devprofile"


def _credentials_path() -> Path:
    """Return path to the credentials file."""
    return Path.home() / ".config" / "devprofile" / "credentials"


def _read_credentials() -> dict[str, str]:
    """Read credentials file. Format: KEY=VALUE per line."""
    path = _credentials_path()
    if not path.is_file():
        return {}
    creds = {}
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            key, _, value = line.partition("=")
            creds[key.strip()] = value.strip()
    return creds


def _write_credentials(creds: dict[str, str]) -> None:
    """Write credentials file with restricted permissions (0600)."""
    path = _credentials_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = ["# devprofile credentials - DO NOT COMMIT THIS FILE"]
    for key, value in sorted(creds.items()):
        lines.append(f"{key}={value}")

    path.write_text("\n".join(lines) + "\n")

    try:
        path.chmod(stat.S_IRUSR | stat.S_IWUSR)
    except OSError:
        logger.warning("Could not set permissions on %s", path)


def _env_var_for(provider: str) -> str:
    env_var = PROVIDER_KEY_MAP.get(provider)
    if env_var is None:
        raise ValueError(
            f"Unknown credential '{provider}'. "
            f"Known: {', '.join(sorted(PROVIDER_KEY_MAP))}"
        )
    return env_var


def store_key(provider: str, api_key: str) -> str:
    """Store an API key for a provider (or ``github`` for the token).

    Returns where the key was stored: ``"keyring"`` or ``"file"``.
    """
    env_var = _env_var_for(provider)

    if _store_keyring(provider, api_key):
        logger.info("Stored %s key in system keyring", provider)
        return "keyring"

    creds = _read_credentials()
    creds[env_var] = api_key
    _write_credentials(creds)
    logger.info("Stored %s key in credentials file", provider)
    return "file"


def get_key(provider: str) -> Optional[str]:
    """Get the API key for a provider.

    Priority:
    1. Environment variable (always wins)
    2. System keyring
    3. Credentials file (~/.config/devprofile/credentials)
    """
    env_var = PROVIDER_KEY_MAP.get(provider)
    if env_var is None:
        return None

    env_key = os.environ.get(env_var)
    if env_key:
        return env_key

    keyring_key = _get_keyring(provider)
    if keyring_key:
        return keyring_key

    return _read_credentials().get(env_var)


def remove_key(provider: str) -> bool:
    """Remove a stored API key. Returns True if a key was removed."""
    env_var = _env_var_for(provider)

    removed = _remove_keyring(provider)

    creds = _read_credentials()
    if env_var in creds:
        del creds[env_var]
        _write_credentials(creds)
        removed = True

    return removed


def list_stored_providers() -> dict[str, str]:
    """Return provider -> source ("env", "keyring", "file", or "not set")."""
    result = {}
    creds = _read_credentials()
    for provider, env_var in PROVIDER_KEY_MAP.items():
        if os.environ.get(env_var):
            result[provider] = "env"
        elif _get_keyring(provider):
            result[provider] = "keyring"
        elif creds.get(env_var):
            result[provider] = "file"
        else:
            result[provider] = "not set"
    return result


# --- Keyring integration ---
# Headless machines often have no usable backend; treat that as "not stored".

def _store_keyring(provider: str, api_key: str) -> bool:
    try:
        keyring.set_password(KEYRING_SERVICE, provider, api_key)
        return True
    except KeyringError as e:
        logger.debug("Keyring unavailable for %s: %s", provider, e)
        return False


def _get_keyring(provider: str) -> Optional[str]:
    try:
        return keyring.get_password(KEYRING_SERVICE, provider)
    except KeyringError as e:
        logger.debug("Keyring unavailable for %s: %s", provider, e)
        return None


def _remove_keyring(provider: str) -> bool:
    try:
        keyring.delete_password(KEYRING_SERVICE, provider)
        return True
    except KeyringError:
        return False
