"""
Shared fixtures: a communicator that records collaborator calls instead
of running them, and ready-made deployment configurations.
"""

import shlex
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from streambench.core.steps import parse_steps
from streambench.infra.communicator import CommandResult, Communicator
from streambench.infra.logs import RunLog
from streambench.models.config import DeploymentConfig, JobType, Platform
from streambench.models.tier import ThroughputTier, TIER_TABLE

STARTED_AT = 1700000000

# Output of the collaborators that export values
EXPORT_OUTPUTS = {
    "generate-workspace-name": "LOG_ANALYTICS_WORKSPACE=demomonitor4711",
    "get-eventhubs-kafka-brokers-in-listen": (
        "KAFKA_IN_LISTEN_BROKERS=demoeventhubs.servicebus.windows.net:9093\n"
        "KAFKA_IN_LISTEN_SASL_JAAS_CONFIG='listen-jaas'"
    ),
    "get-eventhubs-kafka-brokers-out-send": (
        "KAFKA_OUT_SEND_BROKERS=demoeventhubsout.servicebus.windows.net:9093\n"
        "KAFKA_OUT_SEND_SASL_JAAS_CONFIG='send-jaas'"
    ),
    "get-eventhubs-kafka-brokers": (
        "Getting brokers for demoeventhubs\n"
        "export KAFKA_BROKERS=demoeventhubs.servicebus.windows.net:9093\n"
        "KAFKA_SECURITY_PROTOCOL=SASL_SSL\n"
        "KAFKA_SASL_MECHANISM=PLAIN\n"
        'KAFKA_SASL_JAAS_CONFIG="test-jaas"'
    ),
}


@dataclass
class RecordedCall:
    """One collaborator invocation seen by the recording communicator."""
    name: str
    command: str
    args: List[str]
    env: Dict[str, str]


class RecordingCommunicator(Communicator):
    """Communicator that records commands and returns canned results."""

    def __init__(
        self,
        outputs: Optional[Dict[str, str]] = None,
        failures: Optional[Dict[str, int]] = None,
    ):
        super().__init__("recording")
        self.outputs = dict(EXPORT_OUTPUTS if outputs is None else outputs)
        self.failures = failures or {}
        self.calls: List[RecordedCall] = []
        self.connected = False

    def connect(self) -> bool:
        self.connected = True
        return True

    def disconnect(self) -> None:
        self.connected = False

    def execute_command(self, command, env=None, stream=None):
        parts = shlex.split(command)
        name = Path(parts[1]).stem
        self.calls.append(RecordedCall(name, command, parts[2:], dict(env or {})))
        if name in self.failures:
            return CommandResult(stdout="", stderr=f"{name} failed", return_code=self.failures[name])
        return CommandResult(stdout=self.outputs.get(name, ""), stderr="", return_code=0)

    @property
    def names(self) -> List[str]:
        return [call.name for call in self.calls]

    def call(self, name: str) -> RecordedCall:
        return next(call for call in self.calls if call.name == name)


def make_config(
    prefix: str = "demo",
    steps: str = "CIPTM",
    tier: ThroughputTier = ThroughputTier.LOW,
    platform: Platform = Platform.AKS,
    job_type: JobType = JobType.SIMPLE_RELAY,
) -> DeploymentConfig:
    return DeploymentConfig(
        prefix=prefix,
        location="eastus",
        steps=parse_steps(steps),
        tier=tier,
        profile=TIER_TABLE[tier],
        platform=platform,
        job_type=job_type,
        started_at=STARTED_AT,
    )


@pytest.fixture
def communicator():
    return RecordingCommunicator()


@pytest.fixture
def run_log(tmp_path):
    log = RunLog(tmp_path / "log.txt")
    log.reset()
    return log
