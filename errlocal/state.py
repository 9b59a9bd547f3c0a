"""
Session state for errlocal.

Each CLI invocation is a fresh process, so everything needed to resume the
hint sequence lives in a single JSON file in the working directory. A new
``run`` replaces the file wholesale; ``next``, ``sync`` and ``solved`` patch
individual fields and write the whole record back.
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from errlocal.config import STATE_FILENAME

logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FixAction(_CamelModel):
    """A single-line replacement proposed by the analyzer."""

    type: str = "replace_line"
    file_path: str | None = None
    line_number: int | None = None
    code: str | None = None
    description: str = ""


class Analysis(_CamelModel):
    """Structured explanation of a failure."""

    error_type: str = "Unknown"
    likely_cause: str = ""
    suggested_fix: str | None = None
    confidence: str | float | None = None
    hints: list[str] = Field(default_factory=list)
    final_explanation: str = ""
    fix_action: FixAction | None = None


class SessionState(_CamelModel):
    """The most recent captured failure and its disclosure progress."""

    command: str
    error: str
    analysis: Analysis
    step: int = Field(default=0, ge=0)
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    log_id: str | None = None

    @model_validator(mode="after")
    def _clamp_step(self) -> "SessionState":
        # step == len(hints) is the terminal "final explanation" state
        if self.step > len(self.analysis.hints):
            self.step = len(self.analysis.hints)
        return self

    @property
    def is_final(self) -> bool:
        return self.step >= len(self.analysis.hints)

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True, exclude_none=True), indent=2)


class StateStore:
    """Reads and writes the single session record for a directory."""

    def __init__(self, directory: str | Path | None = None, filename: str = STATE_FILENAME):
        self.directory = Path(directory) if directory is not None else Path.cwd()
        self.path = self.directory / filename

    def save(self, state: SessionState) -> None:
        """Overwrite the state file with ``state``."""
        tmp_path = self.path.with_suffix(".tmp")
        with tmp_path.open("w", encoding="utf-8") as fh:
            fh.write(state.to_json())
        os.replace(tmp_path, self.path)

    def load(self) -> SessionState | None:
        """Return the saved state, or None if it is missing or unreadable."""
        try:
            raw = self.path.read_text(encoding="utf-8")
            return SessionState.model_validate_json(raw)
        except (OSError, ValueError) as e:
            logger.debug("No usable state at %s: %s", self.path, e)
            return None
