"""
Single-line fix application.

A fix replaces exactly one line of a file. The replacement inherits the
indentation of the line it replaces; whitespace around the proposed code is
discarded. Lines are never inserted, deleted or renumbered.
"""

import logging
import os
import re

from errlocal.exceptions import InvalidFixActionError
from errlocal.state import FixAction

logger = logging.getLogger(__name__)

_LEADING_WS = re.compile(r"^[ \t]*")


def validate_fix_action(fix_action: FixAction | None) -> None:
    """Raise InvalidFixActionError unless filePath, lineNumber and code are all set."""
    if (
        fix_action is None
        or not fix_action.file_path
        or not fix_action.line_number
        or not fix_action.code
    ):
        raise InvalidFixActionError("Invalid fix action data.")


def replace_line(content: str, line_number: int, code: str) -> str | None:
    """
    Return ``content`` with line ``line_number`` (1-based) replaced by ``code``.

    Returns None if the line does not exist.
    """
    lines = content.split("\n")
    target_index = line_number - 1
    if target_index < 0 or target_index >= len(lines):
        return None

    original = lines[target_index]
    indentation = _LEADING_WS.match(original).group(0)
    # keep CRLF files consistent
    line_ending = "\r" if original.endswith("\r") else ""
    lines[target_index] = indentation + code.strip() + line_ending
    return "\n".join(lines)


def apply_fix(fix_action: FixAction) -> bool:
    """
    Apply ``fix_action`` to its target file.

    Returns:
        True if the file was rewritten, False on any operational failure
        (unreadable or unwritable file, line out of range).

    Raises:
        InvalidFixActionError: If the descriptor is missing required fields.
    """
    validate_fix_action(fix_action)

    file_path = os.path.abspath(fix_action.file_path)
    try:
        with open(file_path, encoding="utf-8", newline="") as f:
            content = f.read()

        updated = replace_line(content, fix_action.line_number, fix_action.code)
        if updated is None:
            logger.warning(
                "Line number %s is out of bounds for file %s", fix_action.line_number, file_path
            )
            return False

        with open(file_path, "w", encoding="utf-8", newline="") as f:
            f.write(updated)
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Failed to apply fix to %s: %s", file_path, e)
        return False

    logger.info("Applied fix to %s:%s", file_path, fix_action.line_number)
    return True
