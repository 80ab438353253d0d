"""
Frontend module for the streaming benchmark orchestrator.

This module handles command-line argument parsing and optional YAML
configuration loading. It produces a DeploymentConfig holding everything
a run needs, then drives the preflight check and the stage executor.
"""

import argparse
import os
import shutil
import sys
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import yaml

from streambench import settings
from streambench.core.executor import StageExecutor
from streambench.core.preflight import check_prerequisites
from streambench.core.steps import STAGE_DESCRIPTIONS, STAGE_ORDER, parse_steps
from streambench.errors import CollaboratorError, ConfigError, PreflightError
from streambench.infra.communicator import Communicator, create_communicator
from streambench.infra.logs import RunLog
from streambench.models.config import DeploymentConfig, JobType, Platform, ServicePrincipal
from streambench.models.names import derive_names
from streambench.models.tier import TIER_TABLE, lookup_tier, parse_tier

# Keys accepted in the YAML file given with -c
CONFIG_FILE_KEYS = (
    "deployment_name",
    "steps",
    "test_type",
    "location",
    "platform",
    "job_type",
    "service_principal",
)

# Keys that must hold text when set; test_type may also be a bare number
STRING_CONFIG_KEYS = ("deployment_name", "steps", "location", "platform", "job_type")


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser reporting misuse as a ConfigError instead of exiting."""

    def error(self, message: str):
        raise ConfigError(message)


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Defaults are not set on the parser itself so that values from the
    YAML file can fill in anything not given on the command line.

    Returns:
        Configured ArgumentParser instance
    """
    steps_help = "\n".join(
        f"  {stage.letter}={STAGE_DESCRIPTIONS[stage]}" for stage in STAGE_ORDER
    )
    parser = ArgumentParser(
        prog="streambench",
        description="Streaming at Scale with Flink: deploy and verify an "
                    "Event Hubs Kafka -> Flink -> Event Hubs Kafka benchmark",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"Steps:\n{steps_help}\n\n"
               "Example: streambench -d mydemo -s CIPTM -t 5 -p aks",
    )

    parser.add_argument(
        "-d", "--deployment-name",
        dest="deployment_name",
        help="Name of this deployment, used as prefix for every resource name (required)",
    )

    parser.add_argument(
        "-s", "--steps",
        help=f"Steps to execute, any combination of "
             f"{''.join(stage.letter for stage in STAGE_ORDER)}. Default={settings.DEFAULT_STEPS}",
    )

    parser.add_argument(
        "-t", "--test-type",
        dest="test_type",
        help=f"Test {', '.join(tier.value for tier in TIER_TABLE)} thousands msgs/sec. "
             f"Default={settings.DEFAULT_TEST_TYPE}",
    )

    parser.add_argument(
        "-l", "--location",
        help=f"Where to create the resources. Default={settings.DEFAULT_LOCATION}",
    )

    parser.add_argument(
        "-p", "--platform",
        help=f"Platform: {' or '.join(p.value for p in Platform)}. Default={settings.DEFAULT_PLATFORM}",
    )

    parser.add_argument(
        "-a", "--job-type",
        dest="job_type",
        help=f"Type of job: {' or '.join(repr(j.value) for j in JobType)}. "
             f"Default={settings.DEFAULT_JOB_TYPE}",
    )

    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="YAML file with any of the settings above (command-line flags take precedence). "
             "Default=none",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print the configuration bound by each stage. Default=off",
    )

    return parser


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    Load run settings from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Dictionary of settings (empty if the file is empty)

    Raises:
        ConfigError: If the file is missing, is not valid YAML, has unknown keys,
            or holds a non-string value where text is expected
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, "r") as file:
            data = yaml.safe_load(file)
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    unknown = sorted(set(data) - set(CONFIG_FILE_KEYS))
    if unknown:
        raise ConfigError(
            f"Unknown key(s) in {path}: {', '.join(unknown)}. "
            f"Valid keys: {', '.join(CONFIG_FILE_KEYS)}"
        )

    for key in STRING_CONFIG_KEYS:
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            raise ConfigError(f"'{key}' in {path} must be a string, not {type(value).__name__}")
    return data


def _resolve_service_principal(
    file_data: Dict[str, Any], environ: Mapping[str, str]
) -> Optional[ServicePrincipal]:
    """Service principal from the YAML file, else from AD_SP_APP_ID/AD_SP_SECRET."""
    section = file_data.get("service_principal") or {}
    if not isinstance(section, dict):
        raise ConfigError("service_principal must be a mapping with app_id and secret")

    app_id = section.get("app_id") or environ.get("AD_SP_APP_ID")
    secret = section.get("secret") or environ.get("AD_SP_SECRET")
    if app_id and secret:
        return ServicePrincipal(app_id=str(app_id), secret=str(secret))
    return None


def resolve_arguments(
    args: argparse.Namespace,
    environ: Optional[Mapping[str, str]] = None,
    clock: Callable[[], float] = time.time,
) -> DeploymentConfig:
    """
    Turn parsed arguments into a validated DeploymentConfig.

    Each setting comes from the command line, else the YAML file, else
    its default.

    Args:
        args: Namespace from create_argument_parser()
        environ: Environment used for service principal credentials (os.environ)
        clock: Source of the run's start time

    Returns:
        DeploymentConfig for the run

    Raises:
        ConfigError: If the prefix is missing, the tier, platform, job type
            or steps are unknown, or a derived name is invalid
    """
    environ = os.environ if environ is None else environ
    file_data = load_config_file(args.config) if args.config else {}

    def pick(name: str, default: Optional[str]) -> Optional[str]:
        value = getattr(args, name, None)
        if value is None:
            value = file_data.get(name)
        if value is None:
            value = default
        return None if value is None else str(value)

    prefix = pick("deployment_name", None)
    if not prefix:
        raise ConfigError("Enter a name for this deployment.")

    test_type = pick("test_type", settings.DEFAULT_TEST_TYPE)
    tier = parse_tier(test_type)
    profile = lookup_tier(test_type)
    if tier is None or profile is None:
        raise ConfigError(
            f"Unsupported test type '{test_type}'. "
            f"Valid values: {', '.join(t.value for t in TIER_TABLE)}"
        )

    platform_value = pick("platform", settings.DEFAULT_PLATFORM)
    try:
        platform = Platform(platform_value)
    except ValueError:
        raise ConfigError(
            f"Unsupported platform '{platform_value}'. "
            f"Valid values: {', '.join(p.value for p in Platform)}"
        ) from None

    job_value = pick("job_type", settings.DEFAULT_JOB_TYPE)
    try:
        job_type = JobType(job_value)
    except ValueError:
        raise ConfigError(
            f"Unsupported job type '{job_value}'. "
            f"Valid values: {', '.join(j.value for j in JobType)}"
        ) from None

    steps = parse_steps(pick("steps", settings.DEFAULT_STEPS))
    started_at = int(clock())

    # Fail now rather than when Azure rejects a name halfway through the run
    derive_names(prefix, started_at)

    return DeploymentConfig(
        prefix=prefix,
        location=pick("location", settings.DEFAULT_LOCATION),
        steps=steps,
        tier=tier,
        profile=profile,
        platform=platform,
        job_type=job_type,
        service_principal=_resolve_service_principal(file_data, environ),
        started_at=started_at,
    )


def format_configuration(config: DeploymentConfig) -> List[str]:
    """
    Build the configuration banner printed before the stages start.

    Returns:
        Banner lines
    """
    profile = config.profile
    count, vm_size = profile.cluster_sizing(config.platform)
    lines = [
        "Streaming at Scale with Flink",
        "=============================",
        "",
        f"Steps to be executed: {config.steps.letters()}",
        "",
        "Configuration: ",
        f". Resource Group      => {config.prefix}",
        f". Region              => {config.location}",
        f". EventHubs           => TU: {profile.eventhub_capacity}, Partitions: {profile.eventhub_partitions}",
    ]
    if config.platform is Platform.HDINSIGHT:
        lines.append(f". HDInsight YARN      => VM: {vm_size}, Workers: {count}")
    else:
        lines.append(f". AKS                 => VM: {vm_size}, Workers: {count}")
    lines.extend([
        f". Flink               => Job: {config.job_type.value}, Parallelism: {profile.flink_parallelism}",
        f". Simulators          => {profile.simulator_instances}",
    ])
    if config.service_principal is not None:
        lines.append(f". Service Principal   => {config.service_principal.app_id}")
    return lines


def run_deployment(
    config: DeploymentConfig,
    run_log: RunLog,
    communicator: Optional[Communicator] = None,
    components_root: Optional[Path] = None,
    which: Callable[[str], Optional[str]] = shutil.which,
    verbose: bool = False,
) -> int:
    """
    Run the preflight check and every stage for a resolved configuration.

    Args:
        config: Resolved deployment configuration
        run_log: Log artifact, reset here
        communicator: Runs collaborators (a local communicator by default)
        components_root: Directory holding the collaborator scripts
        which: Tool resolver used by the preflight check
        verbose: Print each stage's bound configuration

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    run_log.reset()

    run_log.echo("Checking pre-requisites...")
    try:
        check_prerequisites(settings.REQUIRED_TOOLS, which=which)
    except PreflightError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        run_log.write(f"[ERROR] {e}")
        return 1

    run_log.echo()
    for line in format_configuration(config):
        run_log.echo(line)
    run_log.echo()
    run_log.echo("Deployment started...")
    run_log.echo()

    communicator = communicator or create_communicator("local")
    try:
        with communicator:
            executor = StageExecutor(
                config,
                communicator,
                run_log,
                components_root=components_root,
                verbose=verbose,
            )
            executor.run()
    except CollaboratorError as e:
        run_log.write(f"[ERROR] {e}")
        print(f"[ERROR] {e}", file=sys.stderr)
        print(f"[ERROR] See {run_log.path} for details. Last lines:", file=sys.stderr)
        for line in run_log.tail(10):
            print(f"    {line}", file=sys.stderr)
        return e.exit_code

    run_log.echo("***** Done")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the frontend.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = create_argument_parser()

    try:
        args = parser.parse_args(argv)
        config = resolve_arguments(args)
    except ConfigError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        parser.print_help()
        return 1

    return run_deployment(
        config,
        RunLog(settings.LOG_FILE),
        components_root=settings.COMPONENTS_ROOT,
        verbose=args.verbose,
    )


if __name__ == "__main__":
    sys.exit(main())
