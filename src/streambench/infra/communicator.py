#!/usr/bin/env python3
"""
Communicator module for the streaming benchmark orchestrator.

This module provides the abstract interface used by the stage executor to
run collaborator scripts, and a concrete implementation that runs them on
the local machine.

Uses Invoke for local command execution, which provides a clean Python API
for running shell commands with a custom environment and streamed output.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import IO, Mapping, Optional

from invoke import Context
from invoke.exceptions import Failure, UnexpectedExit


@dataclass
class CommandResult:
    """Result of a command execution."""
    stdout: str
    stderr: str
    return_code: int

    @property
    def success(self) -> bool:
        """Check if the command executed successfully."""
        return self.return_code == 0

    def __str__(self) -> str:
        status = "SUCCESS" if self.success else f"FAILED (code: {self.return_code})"
        return f"CommandResult({status})\nstdout: {self.stdout}\nstderr: {self.stderr}"


class Communicator(ABC):
    """
    Abstract base class for running collaborator commands.

    Concrete implementations decide where and how the command runs. The
    executor only relies on the exit status, the captured output, and the
    environment being passed through unchanged.
    """

    def __init__(self, target: str):
        """
        Initialize the communicator.

        Args:
            target: Identifier of where commands run (e.g., "local")
        """
        self.target = target

    @abstractmethod
    def connect(self) -> bool:
        """
        Prepare the communicator for running commands.

        Returns:
            True if ready, False otherwise
        """
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Release any resources held by the communicator."""
        pass

    @abstractmethod
    def execute_command(
        self,
        command: str,
        env: Optional[Mapping[str, str]] = None,
        stream: Optional[IO[str]] = None,
    ) -> CommandResult:
        """
        Execute a command and wait for it to finish.

        Args:
            command: The shell command to execute
            env: Extra environment variables, merged over the current environment
            stream: Optional text stream receiving stdout and stderr as they are produced

        Returns:
            CommandResult containing stdout, stderr, and return code
        """
        pass

    def __enter__(self) -> "Communicator":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()


class LocalCommunicator(Communicator):
    """
    Runs commands on the local machine using Invoke.

    Output is always captured for the result. When a stream is given it
    also receives the output while the command runs; otherwise the output
    is hidden.
    """

    def __init__(self):
        super().__init__("local")
        self._context: Optional[Context] = None

    def connect(self) -> bool:
        self._context = Context()
        return True

    def disconnect(self) -> None:
        self._context = None

    @property
    def context(self) -> Context:
        """Get the active Invoke context, creating one if necessary."""
        if self._context is None:
            self._context = Context()
        return self._context

    def execute_command(
        self,
        command: str,
        env: Optional[Mapping[str, str]] = None,
        stream: Optional[IO[str]] = None,
    ) -> CommandResult:
        run_kwargs = {
            "warn": True,  # Don't raise exception on non-zero exit
            "env": dict(env or {}),
            "in_stream": False,
        }
        if stream is not None:
            run_kwargs.update(hide=False, out_stream=stream, err_stream=stream)
        else:
            run_kwargs["hide"] = True

        try:
            result = self.context.run(command, **run_kwargs)
            return CommandResult(
                stdout=result.stdout.strip() if result.stdout else "",
                stderr=result.stderr.strip() if result.stderr else "",
                return_code=result.return_code
            )
        except UnexpectedExit as e:
            return CommandResult(
                stdout=e.result.stdout.strip() if e.result.stdout else "",
                stderr=e.result.stderr.strip() if e.result.stderr else "",
                return_code=e.result.return_code
            )
        except Failure as e:
            # Runner failures other than a non-zero exit
            return CommandResult(
                stdout=e.result.stdout.strip() if e.result.stdout else "",
                stderr=str(e),
                return_code=e.result.return_code if e.result.return_code else -1
            )
        except OSError as e:
            return CommandResult(
                stdout="",
                stderr=str(e),
                return_code=-1
            )


def create_communicator(method: str = "local", **kwargs) -> Communicator:
    """
    Factory function to create a communicator instance.

    Args:
        method: Execution method ("local" for now, extensible for future methods)
        **kwargs: Additional arguments passed to the communicator constructor

    Returns:
        Communicator instance

    Raises:
        ValueError: If the specified method is not supported
    """
    if method == "local":
        return LocalCommunicator(**kwargs)
    else:
        raise ValueError(f"Unsupported communication method: {method}")
