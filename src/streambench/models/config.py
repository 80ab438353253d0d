"""
Deployment configuration for a single orchestrator run.

A DeploymentConfig is built once by the frontend from command-line flags,
an optional YAML file and the tier table. Nothing mutates it afterwards.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional

if TYPE_CHECKING:
    from streambench.core.steps import StepSet
    from streambench.models.tier import ThroughputTier, TierProfile


class Platform(str, Enum):
    """Cluster platform hosting the Flink job."""

    AKS = "aks"
    HDINSIGHT = "hdinsight"


class JobType(str, Enum):
    """Flink job topology."""

    SIMPLE_RELAY = "simple-relay"
    COMPLEX_PROCESSING = "complex-processing"


@dataclass(frozen=True)
class ServicePrincipal:
    """Azure AD service principal used by the AKS cluster."""

    app_id: str
    secret: str

    def __repr__(self) -> str:
        return f"ServicePrincipal(app_id={self.app_id!r}, secret='***')"


@dataclass(frozen=True)
class DeploymentConfig:
    """Resolved, read-only configuration for one run."""

    prefix: str  # Deployment name, root of every derived resource name
    location: str  # Azure region
    steps: "StepSet"
    tier: "ThroughputTier"
    profile: "TierProfile"
    platform: Platform = Platform.AKS
    job_type: JobType = JobType.SIMPLE_RELAY
    service_principal: Optional[ServicePrincipal] = None
    started_at: int = 0  # Epoch seconds at process start, used for the image tag

    def to_env(self) -> Dict[str, str]:
        """
        Render the user-facing settings as collaborator environment variables.

        Tier sizing and resource names are rendered by their own types.
        """
        env = {
            "PREFIX": self.prefix,
            "LOCATION": self.location,
            "STEPS": self.steps.letters(),
            "TESTTYPE": self.tier.value,
            "FLINK_PLATFORM": self.platform.value,
            "FLINK_JOBTYPE": self.job_type.value,
        }
        if self.service_principal is not None:
            env["AD_SP_APP_ID"] = self.service_principal.app_id
            env["AD_SP_SECRET"] = self.service_principal.secret
        return env
