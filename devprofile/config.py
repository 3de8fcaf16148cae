"""Environment loading for devprofile.

Importing this module loads a ``.env`` file from the working directory so
that API keys and overrides are visible to the configuration service.
Layered resolution lives in devprofile.core.config_service and key lookup
in devprofile.core.secrets.
"""
from pathlib import Path

from dotenv import load_dotenv

_env_file = Path.cwd() / ".env"
if _env_file.is_file():
    load_dotenv(_env_file)


# Map provider names to their env var for API keys
PROVIDER_KEY_MAP = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "github": "GITHUB_TOKEN",
}


def key_env_var(provider: str) -> str:
    """Return the env var that holds the key for ``provider``."""
    return PROVIDER_KEY_MAP.get(provider, f"{provider.upper()}_API_KEY")
