"""
Resource name derivation.

Every Azure resource created by the benchmark is named from the deployment
prefix alone, so re-running with the same prefix refers to the same
resources. The only exception is the image tag, which carries the run's
start time so repeated builds never collide.

Names are checked against each target service's naming rules here, before
any stage runs, instead of waiting for Azure to reject them.
"""

import re
from dataclasses import asdict, dataclass
from typing import Dict, List, Pattern, Tuple

from streambench.errors import NameConstraintError

KAFKA_TOPIC = "in"
KAFKA_OUT_TOPIC = "out"

# Azure Key Vault: 3-24 chars, alphanumerics and hyphens, starts with a letter,
# ends with a letter or digit
_KEYVAULT_RULE = (re.compile(r"^[a-zA-Z][a-zA-Z0-9-]{1,22}[a-zA-Z0-9]$"),
                  "3-24 letters, digits or hyphens, starting with a letter")
_EVENTHUB_NAMESPACE_RULE = (re.compile(r"^[a-zA-Z][a-zA-Z0-9-]{4,48}[a-zA-Z0-9]$"),
                            "6-50 letters, digits or hyphens, starting with a letter")

NAME_RULES: Dict[str, Tuple[Pattern[str], str]] = {
    "resource_group": (re.compile(r"^[-\w.()]{0,89}[-\w()]$"),
                       "1-90 word characters, '-', '.', '(' or ')', not ending in '.'"),
    "storage_account": (re.compile(r"^[a-z0-9]{3,24}$"),
                        "3-24 lowercase letters or digits"),
    "virtual_network": (re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]{0,62}[a-zA-Z0-9_]$"),
                        "2-64 letters, digits, '_', '.' or '-'"),
    "eventhub_namespace": _EVENTHUB_NAMESPACE_RULE,
    "eventhub_namespace_out": _EVENTHUB_NAMESPACE_RULE,
    "appinsights_name": (re.compile(r"^[^%&\\?/]{1,255}$"),
                         "1-255 characters without %, &, \\, ? or /"),
    "aks_cluster": (re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_-]{0,62}$"),
                    "1-63 letters, digits, '_' or '-'"),
    "hdinsight_yarn_name": (re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9-]{1,57}[a-zA-Z0-9]$"),
                            "3-59 letters, digits or hyphens"),
    "service_principal_keyvault": _KEYVAULT_RULE,
    "acr_name": (re.compile(r"^[a-zA-Z0-9]{5,50}$"),
                 "5-50 letters or digits"),
    "databricks_workspace": (re.compile(r"^[a-zA-Z0-9_-]{3,64}$"),
                             "3-64 letters, digits, '_' or '-'"),
    "databricks_token_keyvault": _KEYVAULT_RULE,
}


@dataclass(frozen=True)
class ResourceNameSet:
    """Deterministic identifiers for every resource in a deployment."""

    resource_group: str
    storage_account: str
    virtual_network: str
    eventhub_namespace: str  # Inbound namespace
    eventhub_namespace_out: str  # Outbound namespace
    kafka_topic: str
    kafka_out_topic: str
    appinsights_name: str
    aks_cluster: str
    # Creating multiple HDInsight clusters in the same Virtual Network requires
    # each cluster to have unique first six characters.
    hdinsight_yarn_name: str
    service_principal_kv_name: str  # Secret name holding the AKS service principal
    service_principal_keyvault: str
    acr_name: str
    databricks_workspace: str
    databricks_token_keyvault: str  # NB AKV names are limited to 24 characters
    image_tag: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    def violations(self) -> List[str]:
        """
        Check every constrained name against its service's rules.

        Returns:
            Human-readable descriptions of the names that do not comply
        """
        problems = []
        values = self.to_dict()
        for field_name, (pattern, description) in NAME_RULES.items():
            value = values[field_name]
            if not pattern.match(value):
                problems.append(f"{field_name} '{value}' must be {description}")
        return problems


def derive_names(prefix: str, started_at: int) -> ResourceNameSet:
    """
    Derive every resource name from the deployment prefix.

    Args:
        prefix: Deployment name given with -d
        started_at: Epoch seconds at process start, used only for the image tag

    Returns:
        ResourceNameSet for the deployment

    Raises:
        NameConstraintError: If any derived name breaks its service's naming rules
    """
    aks_cluster = f"{prefix}aks"
    names = ResourceNameSet(
        resource_group=prefix,
        storage_account=f"{prefix}storage",
        virtual_network=f"{prefix}-vnet",
        eventhub_namespace=f"{prefix}eventhubs",
        eventhub_namespace_out=f"{prefix}eventhubsout",
        kafka_topic=KAFKA_TOPIC,
        kafka_out_topic=KAFKA_OUT_TOPIC,
        appinsights_name=f"{prefix}appmon",
        aks_cluster=aks_cluster,
        hdinsight_yarn_name=f"yarn{prefix}hdi",
        service_principal_kv_name=aks_cluster,
        service_principal_keyvault=f"{prefix}spkv",
        acr_name=f"{prefix}acr",
        databricks_workspace=f"{prefix}databricks",
        databricks_token_keyvault=f"{prefix}kv",
        image_tag=f"{prefix}{started_at}",
    )

    problems = names.violations()
    if problems:
        raise NameConstraintError(prefix, problems)

    return names
