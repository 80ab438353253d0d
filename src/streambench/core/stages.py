"""
Stage catalog.

Each stage has a binding function, which returns the configuration values
the stage owns, and the collaborators it runs. Bindings are computed for
every stage whether or not it runs, so later stages can always refer to
resources an earlier run created.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Mapping

from streambench import settings
from streambench.builders.collaborators import (
    Collaborator,
    build_common_collaborators,
    build_ingestion_collaborators,
    build_metrics_collaborators,
    build_processing_collaborators,
    build_test_collaborators,
    build_verify_collaborators,
    build_workspace_name_collaborators,
)
from streambench.core.steps import Stage
from streambench.models.config import DeploymentConfig
from streambench.models.names import ResourceNameSet

Binder = Callable[[DeploymentConfig, ResourceNameSet, Mapping[str, str]], Dict[str, str]]
CollaboratorBuilder = Callable[[Mapping[str, str]], List[Collaborator]]


def no_collaborators(env: Mapping[str, str]) -> List[Collaborator]:
    return []


@dataclass(frozen=True)
class StageDefinition:
    """How one stage binds its configuration and what it runs."""
    stage: Stage
    title: str
    bind: Binder
    collaborators: CollaboratorBuilder
    pre_gate: CollaboratorBuilder = no_collaborators  # Runs even when the stage is skipped


def base_bindings(
    config: DeploymentConfig, names: ResourceNameSet, log_file: Path
) -> Dict[str, str]:
    """Values shared by every stage, bound before the first one."""
    values = config.to_env()
    values.update(config.profile.to_env())
    values.update({
        "AKS_KUBERNETES_VERSION": settings.AKS_KUBERNETES_VERSION,
        "RESOURCE_GROUP": names.resource_group,
        "IMAGE_TAG": names.image_tag,
        "LOG_FILE": str(log_file),
    })
    return values


def bind_common(config, names, env) -> Dict[str, str]:
    return {
        "AZURE_STORAGE_ACCOUNT": names.storage_account,
        "VNET_NAME": names.virtual_network,
    }


def bind_ingestion(config, names, env) -> Dict[str, str]:
    return {
        "KAFKA_TOPIC": names.kafka_topic,
        "KAFKA_OUT_TOPIC": names.kafka_out_topic,
        "EVENTHUB_NAMESPACE": names.eventhub_namespace,
        "EVENTHUB_NAMESPACE_OUT": names.eventhub_namespace_out,
        "EVENTHUB_NAMESPACES": f"{names.eventhub_namespace} {names.eventhub_namespace_out}",
        "EVENTHUB_NAMES": f"{names.kafka_topic} {names.kafka_out_topic}",
        # Consumer group read by the verification job
        "EVENTHUB_CG": "verify",
        "EVENTHUB_ENABLE_KAFKA": "true",
    }


def bind_processing(config, names, env) -> Dict[str, str]:
    return {
        "APPINSIGHTS_NAME": names.appinsights_name,
        "HDINSIGHT_YARN_NAME": names.hdinsight_yarn_name,
        "HDINSIGHT_PASSWORD": settings.HDINSIGHT_PASSWORD,
        "AKS_CLUSTER": names.aks_cluster,
        "SERVICE_PRINCIPAL_KV_NAME": names.service_principal_kv_name,
        "SERVICE_PRINCIPAL_KEYVAULT": names.service_principal_keyvault,
        "ACR_NAME": names.acr_name,
    }


def bind_nothing(config, names, env) -> Dict[str, str]:
    return {}


def bind_verify(config, names, env) -> Dict[str, str]:
    return {
        "ADB_WORKSPACE": names.databricks_workspace,
        "ADB_TOKEN_KEYVAULT": names.databricks_token_keyvault,
        "ALLOW_DUPLICATES": "1",
        # Verification reads what Flink wrote to the outbound hub
        "EVENTHUB_NAME": env["KAFKA_OUT_TOPIC"],
    }


STAGES: List[StageDefinition] = [
    StageDefinition(
        Stage.COMMON, "Setting up COMMON resources",
        bind_common, build_common_collaborators,
    ),
    StageDefinition(
        Stage.INGESTION, "Setting up INGESTION",
        bind_ingestion, build_ingestion_collaborators,
    ),
    StageDefinition(
        Stage.PROCESSING, "Setting up PROCESSING",
        bind_processing, build_processing_collaborators,
        pre_gate=build_workspace_name_collaborators,
    ),
    StageDefinition(
        Stage.TEST, "Starting up TEST clients",
        bind_nothing, build_test_collaborators,
    ),
    StageDefinition(
        Stage.METRICS, "Starting METRICS reporting",
        bind_nothing, build_metrics_collaborators,
    ),
    StageDefinition(
        Stage.VERIFY, "Starting deployment VERIFICATION",
        bind_verify, build_verify_collaborators,
    ),
]
