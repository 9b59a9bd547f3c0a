"""
Code context extraction for errlocal.

Given failure output, finds the referenced source line and renders a small
window of the surrounding code so the analyzer sees what actually failed.
"""

import logging
import os
from dataclasses import dataclass

from errlocal.trace_locator import locate

logger = logging.getLogger(__name__)

# Lines shown before and after the failing line
CONTEXT_RADIUS = 5


@dataclass
class CodeContext:
    """A rendered code window around a failing line."""

    file_path: str
    line_number: int
    code_snippet: str


def render_window(lines: list[str], target_line: int) -> str:
    """
    Render lines around ``target_line`` (1-based) with a gutter.

    The failing line is prefixed with ``>``, every other line with a space.
    """
    start = max(0, target_line - CONTEXT_RADIUS - 1)
    end = min(len(lines), target_line + CONTEXT_RADIUS)

    rendered = []
    for offset, text in enumerate(lines[start:end]):
        line_no = start + offset + 1
        marker = ">" if line_no == target_line else " "
        rendered.append(f"{marker} {line_no}: {text}")
    return "\n".join(rendered)


def extract_error_context(failure_text: str, cwd: str | None = None) -> CodeContext | None:
    """
    Locate the failing source line in ``failure_text`` and extract its window.

    Returns None when no trace reference is found, the referenced file is not
    present locally, or it cannot be read as text.
    """
    try:
        location = locate(failure_text)
        if location is None:
            return None

        absolute_path = os.path.join(cwd or os.getcwd(), location.file)
        if not os.path.isfile(absolute_path) or not os.access(absolute_path, os.R_OK):
            logger.debug("Trace points at %s which is not available locally", absolute_path)
            return None

        with open(absolute_path, encoding="utf-8") as f:
            content = f.read()
        if "\x00" in content:
            logger.debug("Skipping binary file %s", absolute_path)
            return None

        return CodeContext(
            file_path=location.file,
            line_number=location.line,
            code_snippet=render_window(content.split("\n"), location.line),
        )
    except (OSError, UnicodeDecodeError, ValueError) as e:
        logger.debug("Failed to extract context: %s", e)
        return None
