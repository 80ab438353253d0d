"""
Throughput tiers and their sizing profiles.

Each tier fixes every sizing parameter of a run: Event Hubs capacity and
partitions, Flink parallelism, number of load generators, and the cluster
size for both supported platforms. Only the platform chosen for the run
uses its cluster fields.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from streambench.models.config import Platform


class ThroughputTier(str, Enum):
    """Target load level, in thousands of messages per second."""

    LOW = "1"
    MEDIUM = "5"
    HIGH = "10"

    @property
    def messages_per_second(self) -> int:
        return int(self.value) * 1000


@dataclass(frozen=True)
class TierProfile:
    """Sizing parameters for one throughput tier."""

    eventhub_capacity: int  # Throughput units
    eventhub_partitions: int
    flink_parallelism: int
    simulator_instances: int  # Load generator instances
    # settings for AKS (-p aks)
    aks_nodes: int
    aks_vm_size: str
    # settings for HDInsight YARN (-p hdinsight)
    hdinsight_workers: int
    hdinsight_worker_size: str

    def cluster_sizing(self, platform: Platform) -> Tuple[int, str]:
        """
        Return the node count and VM size used on the given platform.

        Args:
            platform: Cluster platform selected for the run

        Returns:
            Tuple of (node or worker count, VM size)
        """
        if platform is Platform.HDINSIGHT:
            return self.hdinsight_workers, self.hdinsight_worker_size
        return self.aks_nodes, self.aks_vm_size

    def to_env(self) -> Dict[str, str]:
        """Render the profile as collaborator environment variables."""
        return {
            "EVENTHUB_CAPACITY": str(self.eventhub_capacity),
            "EVENTHUB_PARTITIONS": str(self.eventhub_partitions),
            "FLINK_PARALLELISM": str(self.flink_parallelism),
            "SIMULATOR_INSTANCES": str(self.simulator_instances),
            "AKS_NODES": str(self.aks_nodes),
            "AKS_VM_SIZE": self.aks_vm_size,
            "HDINSIGHT_HADOOP_WORKERS": str(self.hdinsight_workers),
            "HDINSIGHT_HADOOP_WORKER_SIZE": self.hdinsight_worker_size,
        }


TIER_TABLE: Dict[ThroughputTier, TierProfile] = {
    # 1000 messages/sec
    ThroughputTier.LOW: TierProfile(
        eventhub_capacity=2,
        eventhub_partitions=1,
        flink_parallelism=1,
        simulator_instances=1,
        aks_nodes=3,
        aks_vm_size="Standard_D2s_v3",
        hdinsight_workers=3,
        hdinsight_worker_size="Standard_D3_V2",
    ),
    # 5000 messages/sec
    ThroughputTier.MEDIUM: TierProfile(
        eventhub_capacity=6,
        eventhub_partitions=4,
        flink_parallelism=4,
        simulator_instances=3,
        aks_nodes=5,
        aks_vm_size="Standard_D2s_v3",
        hdinsight_workers=3,
        hdinsight_worker_size="Standard_D3_V2",
    ),
    # 10000 messages/sec
    ThroughputTier.HIGH: TierProfile(
        eventhub_capacity=12,
        eventhub_partitions=8,
        flink_parallelism=8,
        simulator_instances=5,
        aks_nodes=4,
        aks_vm_size="Standard_D4s_v3",
        hdinsight_workers=3,
        hdinsight_worker_size="Standard_D3_V2",
    ),
}


def parse_tier(value: str) -> Optional[ThroughputTier]:
    """Return the tier for a test-type value such as "5", or None."""
    try:
        return ThroughputTier(str(value).strip())
    except ValueError:
        return None


def lookup_tier(value: str) -> Optional[TierProfile]:
    """
    Look up the sizing profile for a throughput tier.

    Unknown tiers return None; callers must treat that as a configuration
    error rather than fall back to a default.

    Args:
        value: Tier identifier ("1", "5" or "10")

    Returns:
        TierProfile for the tier, or None if the tier is not defined
    """
    tier = parse_tier(value)
    if tier is None:
        return None
    return TIER_TABLE.get(tier)
