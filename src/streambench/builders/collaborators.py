"""
Collaborator builders for each pipeline stage.

This module maps every stage to the external scripts that do the actual
work (creating Azure resources, building and submitting the Flink job,
running the load generator...) and builds the shell command that runs
each of them.

Scripts are given relative to the components root. Scripts that produce
values for later scripts print them as KEY=VALUE lines on stdout and list
the keys they export.
"""

import re
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Tuple

_EXPORT_LINE = re.compile(r"^(?:export\s+)?([A-Z_][A-Z0-9_]*)=(.*)$")


@dataclass(frozen=True)
class Collaborator:
    """An external script invoked by a stage."""
    script: str  # Path relative to the components root
    args: Tuple[str, ...] = ()
    exports: Tuple[str, ...] = ()  # Keys the script prints as KEY=VALUE

    @property
    def name(self) -> str:
        """Short name used in messages, e.g. "create-event-hub"."""
        return Path(self.script).stem

    def build_command(self, components_root: Path) -> str:
        """
        Build the shell command running this collaborator.

        Args:
            components_root: Directory the script path is relative to

        Returns:
            Shell-quoted command line
        """
        parts = ["bash", str(Path(components_root) / self.script), *self.args]
        return " ".join(shlex.quote(part) for part in parts)


# =============================================================================
# STAGE COLLABORATORS
# =============================================================================


def build_common_collaborators(env: Mapping[str, str]) -> List[Collaborator]:
    """Resource group, storage account and virtual network."""
    return [
        Collaborator("components/azure-common/create-resource-group.sh"),
        Collaborator("components/azure-storage/create-storage-account.sh"),
        Collaborator("components/azure-common/create-virtual-network.sh"),
    ]


def build_ingestion_collaborators(env: Mapping[str, str]) -> List[Collaborator]:
    """Both Event Hubs namespaces with their hubs."""
    return [Collaborator("components/azure-event-hubs/create-event-hub.sh")]


def build_workspace_name_collaborators(env: Mapping[str, str]) -> List[Collaborator]:
    """Log Analytics workspace name, resolved even when processing is skipped."""
    return [
        Collaborator(
            "components/azure-monitor/generate-workspace-name.sh",
            exports=("LOG_ANALYTICS_WORKSPACE",),
        )
    ]


def build_processing_collaborators(env: Mapping[str, str]) -> List[Collaborator]:
    """Build the Flink jobs, fetch Kafka credentials and run Flink on the chosen platform."""
    platform = env["FLINK_PLATFORM"]
    return [
        Collaborator("components/apache-flink/build-flink-jobs.sh"),
        Collaborator(
            "components/azure-event-hubs/get-eventhubs-kafka-brokers-in-listen.sh",
            exports=("KAFKA_IN_LISTEN_BROKERS", "KAFKA_IN_LISTEN_SASL_JAAS_CONFIG"),
        ),
        Collaborator(
            "components/azure-event-hubs/get-eventhubs-kafka-brokers-out-send.sh",
            exports=("KAFKA_OUT_SEND_BROKERS", "KAFKA_OUT_SEND_SASL_JAAS_CONFIG"),
        ),
        Collaborator(f"components/apache-flink/{platform}/run-flink.sh"),
    ]


def build_test_collaborators(env: Mapping[str, str]) -> List[Collaborator]:
    """Send credentials for the inbound namespace, then the Kafka load generator."""
    return [
        Collaborator(
            "components/azure-event-hubs/get-eventhubs-kafka-brokers.sh",
            args=(env["EVENTHUB_NAMESPACE"], "Send"),
            exports=(
                "KAFKA_BROKERS",
                "KAFKA_SECURITY_PROTOCOL",
                "KAFKA_SASL_MECHANISM",
                "KAFKA_SASL_JAAS_CONFIG",
            ),
        ),
        Collaborator("simulator/run-generator-kafka.sh"),
    ]


def build_metrics_collaborators(env: Mapping[str, str]) -> List[Collaborator]:
    """Throughput reporting."""
    return [Collaborator("components/azure-event-hubs/report-throughput.sh")]


def build_verify_collaborators(env: Mapping[str, str]) -> List[Collaborator]:
    """Databricks workspace and the verification job reading the outbound hub."""
    return [
        Collaborator("components/azure-databricks/create-databricks.sh"),
        Collaborator("streaming/databricks/runners/verify-eventhubs.sh"),
    ]


# =============================================================================
# OUTPUT PARSING
# =============================================================================


def parse_exports(stdout: str, keys: Iterable[str]) -> Dict[str, str]:
    """
    Extract exported values from a collaborator's output.

    Lines look like KEY=VALUE, optionally prefixed with "export". Values
    may be wrapped in single or double quotes. When a key appears more
    than once the last line wins. Keys not listed are ignored.

    Args:
        stdout: Captured standard output
        keys: Keys the collaborator declares

    Returns:
        Mapping of the declared keys that were found
    """
    wanted = set(keys)
    found: Dict[str, str] = {}
    for line in stdout.splitlines():
        match = _EXPORT_LINE.match(line.strip())
        if not match or match.group(1) not in wanted:
            continue
        value = match.group(2).strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        found[match.group(1)] = value
    return found
