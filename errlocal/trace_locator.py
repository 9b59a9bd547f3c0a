"""
Trace location for errlocal.

Scans failure output for the first recognizable ``file:line`` reference.
Each trace dialect is an independent matcher; matchers are tried in a fixed
priority order on every line before moving on to the next line, so the
first reference in the text wins.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class TraceLocation:
    """A source reference found in trace text."""

    file: str
    line: int


Matcher = Callable[[str], TraceLocation | None]


def _regex_matcher(pattern: str) -> Matcher:
    """Build a matcher from a regex whose groups 1 and 2 are path and line."""
    compiled = re.compile(pattern)

    def match(text_line: str) -> TraceLocation | None:
        m = compiled.search(text_line)
        if not m:
            return None
        try:
            line_no = int(m.group(2), 10)
        except (TypeError, ValueError):
            return None
        path = m.group(1).strip()
        if line_no < 1 or not path:
            return None
        return TraceLocation(file=path, line=line_no)

    return match


# Node/V8 frame: "at fn (/app/x.js:12:5)" or "(file:///app/x.mjs:3:9)"
match_paren_frame = _regex_matcher(r"\(\s*(?:file://)?([^()]+?):(\d+):(\d+)\)")

# Python traceback header: 'File "app.py", line 10, in <module>'
match_python_file = _regex_matcher(r'File "([^"]+)", line (\d+)')

# Anonymous Node frame without parentheses: "at /app/x.js:12:5"
match_bare_frame = _regex_matcher(r"^\s*at\s+(?:file://)?([^\s()]+?):(\d+):(\d+)\s*$")

# Compiler diagnostics: "src/main.c:14:3: error: ..."
match_compiler = _regex_matcher(
    r"^\s*([^\s:()\"']+\.[A-Za-z0-9]+):(\d+):(\d+):\s*(?:fatal\s+)?(?:error|warning)\b"
)

DEFAULT_MATCHERS: tuple[Matcher, ...] = (
    match_paren_frame,
    match_python_file,
    match_bare_frame,
    match_compiler,
)


def locate(text: str, matchers: tuple[Matcher, ...] = DEFAULT_MATCHERS) -> TraceLocation | None:
    """
    Find the first file/line reference in ``text``.

    Args:
        text: Arbitrary multi-line failure output.
        matchers: Dialect matchers in priority order.

    Returns:
        The first TraceLocation found, or None when nothing matches.
    """
    if not text:
        return None
    for text_line in text.splitlines():
        for matcher in matchers:
            location = matcher(text_line)
            if location is not None:
                return location
    return None
