"""
Runtime configuration for errlocal.

Settings are resolved from environment variables (after ``load_env`` has
merged any .env files). Provider resolution order:
1. ERRLOCAL_PROVIDER environment variable
2. First provider whose API key is present (groq, openai, anthropic)
3. Default (groq)
"""

import os
from dataclasses import dataclass

STATE_FILENAME = ".errlocal-state.json"
DEFAULT_BACKEND_URL = "https://api.urbackend.bitbros.in"
DEFAULT_COLLECTION = "error_logs"
DEFAULT_TIMEOUT = 30.0
HISTORY_LIMIT = 5

# provider -> environment variable holding its key
PROVIDER_KEY_VARS = {
    "groq": "GROQ_API_KEY",
    "openai": "OPENAI_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
}

SUPPORTED_PROVIDERS = set(PROVIDER_KEY_VARS) | {"fake"}


def detect_provider() -> str:
    """Pick the analysis provider from the environment."""
    explicit = os.environ.get("ERRLOCAL_PROVIDER", "").strip().lower()
    if explicit == "anthropic":
        explicit = "claude"
    if explicit in SUPPORTED_PROVIDERS:
        return explicit

    for provider, key_var in PROVIDER_KEY_VARS.items():
        if os.environ.get(key_var):
            return provider
    return "groq"


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class Settings:
    """Resolved configuration for one CLI invocation."""

    provider: str = "groq"
    api_key: str = ""
    model: str | None = None
    translator_api_key: str = ""
    translator_url: str | None = None
    backend_url: str = DEFAULT_BACKEND_URL
    backend_api_key: str = ""
    backend_collection: str = DEFAULT_COLLECTION
    default_language: str | None = None
    state_filename: str = STATE_FILENAME
    request_timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls) -> "Settings":
        provider = detect_provider()
        key_var = PROVIDER_KEY_VARS.get(provider)
        api_key = os.environ.get(key_var, "") if key_var else "fake"

        return cls(
            provider=provider,
            api_key=api_key,
            model=os.environ.get("ERRLOCAL_MODEL") or None,
            translator_api_key=os.environ.get("LINGO_API_KEY", ""),
            translator_url=os.environ.get("LINGO_API_URL") or None,
            backend_url=os.environ.get("URBACKEND_API_URL", DEFAULT_BACKEND_URL).rstrip("/"),
            backend_api_key=os.environ.get("URBACKEND_API_KEY", ""),
            backend_collection=os.environ.get("URBACKEND_COLLECTION", DEFAULT_COLLECTION),
            default_language=os.environ.get("ERRLOCAL_LANG") or None,
            request_timeout=_float_env("ERRLOCAL_TIMEOUT", DEFAULT_TIMEOUT),
        )
