"""
Error types for the streaming benchmark orchestrator.

Every problem detected during a run is fatal. The frontend maps each
error class to an exit status:
- ConfigError: bad user input, reported with the usage text (exit 1)
- PreflightError: a required local tool is missing (exit 1)
- CollaboratorError: an external stage script failed (its own exit status)
"""

from typing import List, Optional


class StreamBenchError(Exception):
    """Base class for all orchestrator errors."""


class ConfigError(StreamBenchError):
    """Invalid or missing user input."""


class NameConstraintError(ConfigError):
    """One or more derived resource names violate their service's naming rules."""

    def __init__(self, prefix: str, violations: List[str]):
        self.prefix = prefix
        self.violations = list(violations)
        details = "; ".join(self.violations)
        super().__init__(
            f"Deployment name '{prefix}' produces invalid resource names: {details}"
        )


class PreflightError(StreamBenchError):
    """A required local tool is not installed."""

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"Required tool '{tool}' is not installed or not on PATH")


class CollaboratorError(StreamBenchError):
    """An external collaborator returned a failure status."""

    def __init__(
        self,
        stage: str,
        collaborator: str,
        return_code: int,
        reason: Optional[str] = None,
    ):
        self.stage = stage
        self.collaborator = collaborator
        self.return_code = return_code
        self.reason = reason
        message = f"Stage {stage}: collaborator '{collaborator}' failed (exit code {return_code})"
        if reason:
            message += f": {reason}"
        super().__init__(message)

    @property
    def exit_code(self) -> int:
        """Process exit status to report; never zero."""
        return self.return_code if self.return_code else 1
