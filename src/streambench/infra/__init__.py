"""
Infrastructure and I/O for the orchestrator.

Contains:
- communicator: Local command execution
- logs: The run log artifact
"""

from .communicator import CommandResult, Communicator, LocalCommunicator, create_communicator
from .logs import RunLog, TeeStream
