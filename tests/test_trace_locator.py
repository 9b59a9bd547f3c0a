"""Tests for the trace locator."""

import unittest

from errlocal.trace_locator import (
    TraceLocation,
    locate,
    match_paren_frame,
    match_python_file,
)


class TestLocate(unittest.TestCase):
    def test_node_parenthesized_frame(self):
        """A V8 frame yields its path and line, ignoring the column."""
        text = (
            "TypeError: Cannot read properties of undefined (reading 'x')\n"
            "    at main (/app/src/index.js:12:5)\n"
            "    at Object.<anonymous> (/app/src/other.js:3:1)\n"
        )
        self.assertEqual(locate(text), TraceLocation(file="/app/src/index.js", line=12))

    def test_file_scheme_is_stripped(self):
        """ESM traces prefix paths with file://."""
        text = "    at load (file:///home/dev/app/main.mjs:7:11)"
        self.assertEqual(locate(text), TraceLocation(file="/home/dev/app/main.mjs", line=7))

    def test_python_traceback(self):
        """A Python traceback header yields its path and line."""
        text = (
            "Traceback (most recent call last):\n"
            '  File "app.py", line 10, in <module>\n'
            "    main()\n"
            "ZeroDivisionError: division by zero\n"
        )
        self.assertEqual(locate(text), TraceLocation(file="app.py", line=10))

    def test_first_match_wins_across_lines(self):
        """The earliest line with any recognizable reference is used."""
        text = '  File "first.py", line 3, in f\n    at g (second.js:9:2)\n'
        self.assertEqual(locate(text), TraceLocation(file="first.py", line=3))

    def test_paren_pattern_has_priority_on_same_line(self):
        """On a single line the parenthesized frame is tried first."""
        text = 'File "b.py", line 2 (a.js:5:1)'
        self.assertEqual(locate(text), TraceLocation(file="a.js", line=5))

    def test_no_match_returns_none(self):
        text = "npm ERR! missing script: start\nSomething went wrong\n"
        self.assertIsNone(locate(text))

    def test_empty_text(self):
        self.assertIsNone(locate(""))

    def test_node_warning_prefix_is_not_a_frame(self):
        """'(node:1234)' looks like path:line but has no column."""
        self.assertIsNone(locate("(node:1234) ExperimentalWarning: fetch is experimental"))

    def test_zero_line_is_rejected(self):
        self.assertIsNone(match_python_file('File "x.py", line 0'))

    def test_bare_node_frame(self):
        text = "    at /srv/app/worker.js:44:13"
        self.assertEqual(locate(text), TraceLocation(file="/srv/app/worker.js", line=44))

    def test_compiler_diagnostic(self):
        text = "src/main.c:14:3: error: expected ';' before '}' token"
        self.assertEqual(locate(text), TraceLocation(file="src/main.c", line=14))

    def test_custom_matcher_order(self):
        """Matchers can be reordered or extended without touching locate()."""
        text = 'File "b.py", line 2 (a.js:5:1)'
        result = locate(text, matchers=(match_python_file, match_paren_frame))
        self.assertEqual(result, TraceLocation(file="b.py", line=2))


if __name__ == "__main__":
    unittest.main()
