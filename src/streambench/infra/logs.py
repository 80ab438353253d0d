#!/usr/bin/env python3
"""
Logs module for the streaming benchmark orchestrator.

Provides the run log:
- Reset at the start of every run
- Timestamped orchestrator messages, also printed to the terminal
- Collaborator output tee'd to the terminal and the log file
- Tail of the log for error reports
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import IO, List, Optional


class TeeStream:
    """Text stream writing to the terminal and the log file at once."""

    def __init__(self, log_file: Path, console: Optional[IO[str]] = None):
        self.log_file = log_file
        self.console = console if console is not None else sys.stdout

    def write(self, data: str) -> int:
        self.console.write(data)
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(data)
        return len(data)

    def flush(self) -> None:
        self.console.flush()


class RunLog:
    """The single log artifact of a run."""

    def __init__(self, path: Path, console: Optional[IO[str]] = None):
        self.path = Path(path)
        self.console = console

    def reset(self) -> None:
        """Truncate the log file, creating it if needed."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("", encoding="utf-8")

    def write(self, message: str) -> None:
        """Append a timestamped line to the log file."""
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(f"{datetime.now()}: {message}\n")

    def echo(self, message: str = "") -> None:
        """Print a message to the terminal and log it."""
        print(message, file=self.console if self.console is not None else sys.stdout, flush=True)
        if message:
            self.write(message)

    def stream(self) -> TeeStream:
        """Stream for collaborator output."""
        return TeeStream(self.path, console=self.console)

    def tail(self, num_lines: int = 20) -> List[str]:
        """
        Return the last lines of the log file.

        Args:
            num_lines: Maximum number of lines to return

        Returns:
            List of lines without trailing newlines (empty if the log does not exist)
        """
        if not self.path.exists():
            return []
        lines = self.path.read_text(encoding="utf-8", errors="replace").splitlines()
        return lines[-num_lines:]
