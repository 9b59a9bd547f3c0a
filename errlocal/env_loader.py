"""
Environment loading for errlocal.

API keys are read from the process environment. Before anything touches
os.environ, ``load_env`` pulls in ``.env`` files so users do not have to
export keys in every shell.

Search order (first value wins, existing variables are never overridden):
1. ./.env in the invocation directory
2. ~/.errlocal/.env
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

USER_CONFIG_DIR = Path.home() / ".errlocal"


def get_env_file_locations(cwd: Path | None = None) -> list[Path]:
    """Return candidate .env paths in priority order."""
    base = cwd or Path.cwd()
    return [base / ".env", USER_CONFIG_DIR / ".env"]


def load_env(cwd: Path | None = None) -> list[Path]:
    """
    Load every existing .env file without overriding variables already set.

    Args:
        cwd: Directory to treat as the invocation directory.

    Returns:
        The list of files that were actually loaded.
    """
    loaded = []
    for env_file in get_env_file_locations(cwd):
        if not env_file.is_file():
            continue
        try:
            load_dotenv(env_file, override=False)
            loaded.append(env_file)
            logger.debug("Loaded environment from %s", env_file)
        except OSError as e:
            logger.warning("Could not read %s: %s", env_file, e)
    return loaded


def is_debug_enabled() -> bool:
    return os.environ.get("ERRLOCAL_DEBUG", "").lower() in ("1", "true", "yes")
