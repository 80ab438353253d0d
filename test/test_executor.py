"""
Tests for the StageExecutor: stage order, bind-before-gate, collaborator
boundary and fail-fast behaviour.
"""

from pathlib import Path

import pytest

from conftest import STARTED_AT, RecordingCommunicator, make_config
from streambench.core.environment import RunEnvironment
from streambench.core.executor import StageExecutor
from streambench.core.steps import STAGE_ORDER, Stage
from streambench.errors import CollaboratorError
from streambench.models.config import Platform

COMMON = ["create-resource-group", "create-storage-account", "create-virtual-network"]
INGESTION = ["create-event-hub"]
WORKSPACE = ["generate-workspace-name"]
PROCESSING = [
    "build-flink-jobs",
    "get-eventhubs-kafka-brokers-in-listen",
    "get-eventhubs-kafka-brokers-out-send",
    "run-flink",
]
TEST = ["get-eventhubs-kafka-brokers", "run-generator-kafka"]
METRICS = ["report-throughput"]
VERIFY = ["create-databricks", "verify-eventhubs"]


def make_executor(config, communicator, run_log, **kwargs):
    return StageExecutor(config, communicator, run_log, components_root=Path("/opt/sas"), **kwargs)


class TestScenarios:

    def test_default_steps_run_five_stages_in_order(self, communicator, run_log):
        """Prefix demo, tier 1, steps CIPTM, AKS."""
        outcomes = make_executor(make_config(), communicator, run_log).run()

        assert [o.stage for o in outcomes] == list(STAGE_ORDER)
        assert [o.executed for o in outcomes] == [True, True, True, True, True, False]
        assert communicator.names == COMMON + INGESTION + WORKSPACE + PROCESSING + TEST + METRICS

        env = communicator.call("create-event-hub").env
        assert env["EVENTHUB_CAPACITY"] == "2"
        assert env["EVENTHUB_PARTITIONS"] == "1"
        assert env["FLINK_PARALLELISM"] == "1"
        assert env["SIMULATOR_INSTANCES"] == "1"
        assert env["AKS_NODES"] == "3"

    def test_processing_only_still_binds_earlier_names(self, communicator, run_log):
        """Steps P: C and I do not run but their names reach P's collaborators."""
        outcomes = make_executor(make_config(steps="P"), communicator, run_log).run()

        assert [o.stage for o in outcomes if o.executed] == [Stage.PROCESSING]
        assert communicator.names == WORKSPACE + PROCESSING

        env = communicator.call("build-flink-jobs").env
        assert env["AZURE_STORAGE_ACCOUNT"] == "demostorage"
        assert env["VNET_NAME"] == "demo-vnet"
        assert env["EVENTHUB_NAMESPACE"] == "demoeventhubs"
        assert env["EVENTHUB_NAMESPACE_OUT"] == "demoeventhubsout"
        assert env["KAFKA_TOPIC"] == "in"
        assert env["KAFKA_OUT_TOPIC"] == "out"

    def test_verify_only(self, communicator, run_log):
        """Steps V: C, I, P, T, M bind but only V's collaborators run."""
        executor = make_executor(make_config(steps="V"), communicator, run_log)
        outcomes = executor.run()

        assert [o.executed for o in outcomes] == [False] * 5 + [True]
        # The workspace name is resolved even though P is skipped
        assert communicator.names == WORKSPACE + VERIFY

        env = communicator.call("verify-eventhubs").env
        assert env["EVENTHUB_NAME"] == "out"
        assert env["EVENTHUB_CG"] == "verify"
        assert env["ADB_WORKSPACE"] == "demodatabricks"
        assert env["ADB_TOKEN_KEYVAULT"] == "demokv"
        assert env["ALLOW_DUPLICATES"] == "1"
        assert env["LOG_ANALYTICS_WORKSPACE"] == "demomonitor4711"

    def test_no_steps_binds_everything(self, communicator, run_log):
        executor = make_executor(make_config(steps=""), communicator, run_log)
        outcomes = executor.run()

        assert not any(o.executed for o in outcomes)
        assert communicator.names == WORKSPACE
        for key in ("AZURE_STORAGE_ACCOUNT", "EVENTHUB_NAMESPACE", "AKS_CLUSTER", "ADB_TOKEN_KEYVAULT"):
            assert key in executor.environment


class TestBindings:

    def test_base_bindings(self, communicator, run_log):
        executor = make_executor(make_config(platform=Platform.HDINSIGHT), communicator, run_log)
        executor.run()
        env = executor.environment

        assert env["PREFIX"] == "demo"
        assert env["RESOURCE_GROUP"] == "demo"
        assert env["IMAGE_TAG"] == f"demo{STARTED_AT}"
        assert env["AKS_KUBERNETES_VERSION"] == "1.14.7"
        assert env["FLINK_PLATFORM"] == "hdinsight"
        assert env["HDINSIGHT_HADOOP_WORKERS"] == "3"
        assert env["LOG_FILE"] == str(run_log.path)
        assert env.owner_of("PREFIX") == "base"

    def test_stage_outcomes_report_owned_bindings(self, communicator, run_log):
        outcomes = make_executor(make_config(), communicator, run_log).run()
        by_stage = {o.stage: o for o in outcomes}

        assert by_stage[Stage.COMMON].bindings == {
            "AZURE_STORAGE_ACCOUNT": "demostorage",
            "VNET_NAME": "demo-vnet",
        }
        assert by_stage[Stage.INGESTION].bindings["EVENTHUB_NAMESPACES"] == "demoeventhubs demoeventhubsout"
        assert by_stage[Stage.INGESTION].bindings["EVENTHUB_NAMES"] == "in out"
        processing = by_stage[Stage.PROCESSING].bindings
        assert processing["SERVICE_PRINCIPAL_KEYVAULT"] == "demospkv"
        assert processing["SERVICE_PRINCIPAL_KV_NAME"] == "demoaks"
        assert processing["HDINSIGHT_YARN_NAME"] == "yarndemohdi"
        assert processing["ACR_NAME"] == "demoacr"
        assert processing["LOG_ANALYTICS_WORKSPACE"] == "demomonitor4711"
        assert by_stage[Stage.METRICS].bindings == {}
        assert by_stage[Stage.METRICS].collaborators == METRICS

    def test_two_credential_stores_are_distinct(self, communicator, run_log):
        executor = make_executor(make_config(), communicator, run_log)
        executor.run()
        assert executor.environment["SERVICE_PRINCIPAL_KEYVAULT"] != executor.environment["ADB_TOKEN_KEYVAULT"]


class TestCollaboratorBoundary:

    def test_commands_use_components_root(self, communicator, run_log):
        make_executor(make_config(steps="C"), communicator, run_log).run()
        assert communicator.call("create-resource-group").command == (
            "bash /opt/sas/components/azure-common/create-resource-group.sh"
        )

    def test_run_flink_follows_platform(self, communicator, run_log):
        make_executor(make_config(steps="P", platform=Platform.HDINSIGHT), communicator, run_log).run()
        assert "/components/apache-flink/hdinsight/run-flink.sh" in communicator.call("run-flink").command

    def test_test_clients_get_send_credentials_for_inbound_namespace(self, communicator, run_log):
        make_executor(make_config(steps="T"), communicator, run_log).run()

        assert communicator.call("get-eventhubs-kafka-brokers").args == ["demoeventhubs", "Send"]
        env = communicator.call("run-generator-kafka").env
        assert env["KAFKA_BROKERS"] == "demoeventhubs.servicebus.windows.net:9093"
        assert env["KAFKA_SECURITY_PROTOCOL"] == "SASL_SSL"
        assert env["KAFKA_SASL_JAAS_CONFIG"] == "test-jaas"

    def test_exports_visible_to_later_collaborators(self, communicator, run_log):
        make_executor(make_config(steps="P"), communicator, run_log).run()

        env = communicator.call("run-flink").env
        assert env["KAFKA_IN_LISTEN_BROKERS"] == "demoeventhubs.servicebus.windows.net:9093"
        assert env["KAFKA_OUT_SEND_SASL_JAAS_CONFIG"] == "send-jaas"
        # Not yet available to the collaborator that precedes the export
        assert "KAFKA_IN_LISTEN_BROKERS" not in communicator.call("build-flink-jobs").env

    def test_collaborator_output_goes_to_log(self, run_log):
        class EchoingCommunicator(RecordingCommunicator):
            def execute_command(self, command, env=None, stream=None):
                stream.write("created resource group\n")
                return super().execute_command(command, env, stream)

        make_executor(make_config(steps="C"), EchoingCommunicator(), run_log).run()
        content = run_log.path.read_text()
        assert "created resource group" in content
        assert "***** [C] Setting up COMMON resources" in content


class TestFailures:

    def test_first_failure_aborts_run(self, run_log):
        communicator = RecordingCommunicator(failures={"create-event-hub": 3})
        executor = make_executor(make_config(), communicator, run_log)

        with pytest.raises(CollaboratorError) as exc_info:
            executor.run()

        error = exc_info.value
        assert error.stage == "I"
        assert error.collaborator == "create-event-hub"
        assert error.return_code == 3
        assert error.exit_code == 3
        assert "'create-event-hub' failed (exit code 3)" in str(error)
        # Nothing after the failing collaborator runs
        assert communicator.names == COMMON + INGESTION

    def test_pre_gate_failure_aborts_even_when_stage_skipped(self, run_log):
        communicator = RecordingCommunicator(failures={"generate-workspace-name": 2})
        with pytest.raises(CollaboratorError) as exc_info:
            make_executor(make_config(steps="V"), communicator, run_log).run()
        assert exc_info.value.stage == "P"
        assert "create-databricks" not in communicator.names

    def test_missing_export_is_a_failure(self, run_log):
        communicator = RecordingCommunicator(outputs={"generate-workspace-name": "nothing useful"})
        with pytest.raises(CollaboratorError) as exc_info:
            make_executor(make_config(steps=""), communicator, run_log).run()
        assert exc_info.value.exit_code == 1
        assert "LOG_ANALYTICS_WORKSPACE" in str(exc_info.value)


class TestRunEnvironment:

    def test_write_once(self):
        env = RunEnvironment()
        env.bind("VNET_NAME", "demo-vnet", "C")
        with pytest.raises(ValueError):
            env.bind("VNET_NAME", "other", "P")
        assert env["VNET_NAME"] == "demo-vnet"

    def test_owned_by(self):
        env = RunEnvironment()
        env.bind_all({"A": "1", "B": "2"}, "C")
        env.bind("X", 3, "I")
        assert env.owned_by("C") == {"A": "1", "B": "2"}
        assert env.to_dict() == {"A": "1", "B": "2", "X": "3"}
        assert len(env) == 3
