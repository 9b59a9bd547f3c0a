"""
Command execution with stderr capture.

The wrapped command inherits stdin and stdout. Its stderr is piped so every
chunk can be forwarded to the terminal as it arrives while also being kept
in memory for analysis once the command exits.
"""

import logging
import os
import shlex
import subprocess
import sys
from dataclasses import dataclass
from typing import BinaryIO

from errlocal.exceptions import CommandNotFoundError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096


@dataclass
class CommandResult:
    command_line: str
    exit_code: int
    stderr: str

    @property
    def failed(self) -> bool:
        """A run needs analysis if it exited non-zero or wrote anything to stderr."""
        return self.exit_code != 0 or bool(self.stderr.strip())


def build_argv(command: str, args: list[str] | None = None) -> list[str]:
    """Turn ``run`` arguments into an argv list.

    A single quoted command such as ``"npm start"`` is split shell-style,
    unless it names an existing file (an executable whose path has spaces).
    """
    args = list(args or [])
    if not args and any(ch.isspace() for ch in command.strip()) and not os.path.exists(command):
        return shlex.split(command)
    return [command, *args]


def _tee(source: BinaryIO, sink: BinaryIO | None) -> bytes:
    captured = bytearray()
    while True:
        chunk = source.read1(CHUNK_SIZE) if hasattr(source, "read1") else source.read(CHUNK_SIZE)
        if not chunk:
            break
        captured.extend(chunk)
        if sink is not None:
            sink.write(chunk)
            sink.flush()
    return bytes(captured)


def run_command(
    command: str,
    args: list[str] | None = None,
    cwd: str | None = None,
    echo: bool = True,
) -> CommandResult:
    """
    Run a command, streaming its stderr through while capturing it.

    Args:
        command: Executable (or a full command line when ``args`` is empty).
        args: Arguments passed to the executable.
        cwd: Working directory for the child.
        echo: Forward stderr chunks to our own stderr as they arrive.

    Returns:
        CommandResult with the exit code and the decoded stderr text.

    Raises:
        CommandNotFoundError: If the command cannot be started.
    """
    argv = build_argv(command, args)
    command_line = shlex.join(argv)
    logger.debug("Running %s", command_line)

    try:
        proc = subprocess.Popen(argv, cwd=cwd, stderr=subprocess.PIPE)
    except (FileNotFoundError, PermissionError, NotADirectoryError) as e:
        raise CommandNotFoundError(f"Failed to run command '{command_line}': {e}") from e

    sink = getattr(sys.stderr, "buffer", None) if echo else None
    try:
        captured = _tee(proc.stderr, sink)
    finally:
        proc.stderr.close()
        exit_code = proc.wait()

    logger.debug("Command exited with code %s", exit_code)
    return CommandResult(
        command_line=command_line,
        exit_code=exit_code,
        stderr=captured.decode("utf-8", errors="replace"),
    )
