"""Pytest configuration for the `tests/` suite.

The suite runs against the source tree as well as an editable install, so the
repository root is put on ``sys.path`` to make ``import errlocal`` resolve to
the working copy. API keys from the developer's environment are removed so no
test can reach a real provider.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]

if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    for var in (
        "GROQ_API_KEY",
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
        "LINGO_API_KEY",
        "URBACKEND_API_KEY",
        "ERRLOCAL_PROVIDER",
        "ERRLOCAL_LANG",
        "ERRLOCAL_FAKE_RESPONSE",
        "ERRLOCAL_DEBUG",
    ):
        monkeypatch.delenv(var, raising=False)
