"""Tests for command execution and stderr capture."""

import os
import sys
import tempfile
import unittest

from errlocal.exceptions import CommandNotFoundError
from errlocal.runner import CommandResult, build_argv, run_command


class TestBuildArgv(unittest.TestCase):
    def test_command_with_args(self):
        self.assertEqual(build_argv("node", ["app.js", "--port", "3000"]), ["node", "app.js", "--port", "3000"])

    def test_single_quoted_command_is_split(self):
        self.assertEqual(build_argv("npm run build"), ["npm", "run", "build"])

    def test_single_word(self):
        self.assertEqual(build_argv("make"), ["make"])

    def test_existing_path_with_spaces_is_not_split(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            tool = os.path.join(temp_dir, "My Tools", "build tool")
            os.makedirs(os.path.dirname(tool))
            with open(tool, "w", encoding="utf-8") as f:
                f.write("#!/bin/sh\n")

            self.assertEqual(build_argv(tool), [tool])
            self.assertEqual(build_argv(tool, ["--fast"]), [tool, "--fast"])

    def test_missing_path_with_spaces_is_split(self):
        self.assertEqual(
            build_argv("/nonexistent dir/tool --flag"), ["/nonexistent", "dir/tool", "--flag"]
        )


class TestCommandResult(unittest.TestCase):
    def test_success(self):
        self.assertFalse(CommandResult("true", 0, "").failed)

    def test_nonzero_exit(self):
        self.assertTrue(CommandResult("false", 1, "").failed)

    def test_stderr_on_success(self):
        self.assertTrue(CommandResult("cmd", 0, "DeprecationWarning: x\n").failed)

    def test_whitespace_only_stderr(self):
        self.assertFalse(CommandResult("cmd", 0, "  \n").failed)


class TestRunCommand(unittest.TestCase):
    def test_captures_stderr_and_exit_code(self):
        result = run_command(
            sys.executable,
            ["-c", "import sys; sys.stderr.write('boom\\n'); sys.exit(3)"],
            echo=False,
        )
        self.assertEqual(result.exit_code, 3)
        self.assertEqual(result.stderr, "boom\n")
        self.assertTrue(result.failed)

    def test_successful_command(self):
        result = run_command(sys.executable, ["-c", "pass"], echo=False)
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.stderr, "")
        self.assertFalse(result.failed)

    def test_large_stderr_is_fully_captured(self):
        result = run_command(
            sys.executable,
            ["-c", "import sys; sys.stderr.write('x' * 50000); sys.exit(1)"],
            echo=False,
        )
        self.assertEqual(len(result.stderr), 50000)

    def test_invalid_utf8_is_replaced(self):
        result = run_command(
            sys.executable,
            ["-c", "import sys; sys.stderr.buffer.write(b'bad \\xff byte')"],
            echo=False,
        )
        self.assertIn("bad", result.stderr)
        self.assertIn("�", result.stderr)

    def test_command_line_is_recorded(self):
        result = run_command(sys.executable, ["-c", "pass"], echo=False)
        self.assertIn("-c pass", result.command_line)

    def test_missing_command_raises(self):
        with self.assertRaises(CommandNotFoundError):
            run_command("errlocal-definitely-not-a-command-xyz", [], echo=False)


if __name__ == "__main__":
    unittest.main()
