#!/usr/bin/env python3
"""
Stage executor for the streaming benchmark orchestrator.

The StageExecutor is responsible for:
- Binding the run-wide configuration (deployment settings, tier sizing, names)
- Walking the six stages in their fixed order
- Binding each stage's configuration, whether or not the stage runs
- Running the collaborators of the requested stages, one at a time
- Stopping the run at the first collaborator failure
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from streambench import settings
from streambench.builders.collaborators import Collaborator, parse_exports
from streambench.core.environment import RunEnvironment
from streambench.core.stages import STAGES, StageDefinition, base_bindings
from streambench.core.steps import Stage, should_run
from streambench.errors import CollaboratorError
from streambench.infra.communicator import CommandResult, Communicator
from streambench.infra.logs import RunLog
from streambench.models.config import DeploymentConfig
from streambench.models.names import ResourceNameSet, derive_names

BASE_OWNER = "base"


@dataclass(frozen=True)
class StageOutcome:
    """What happened to one stage."""
    stage: Stage
    executed: bool
    bindings: Dict[str, str] = field(default_factory=dict)
    collaborators: List[str] = field(default_factory=list)  # Names, in invocation order


class StageExecutor:
    """
    Drives one deployment through its stages.

    This class handles the lifecycle of a run:
    1. Derive resource names from the prefix
    2. Bind the run-wide configuration
    3. For each stage in order: bind, run pre-gate collaborators, then
       run the stage's collaborators if it was requested
    4. Raise CollaboratorError on the first failure; nothing is rolled back
    """

    def __init__(
        self,
        config: DeploymentConfig,
        communicator: Communicator,
        run_log: RunLog,
        components_root: Optional[Path] = None,
        stages: Sequence[StageDefinition] = STAGES,
        verbose: bool = False,
    ):
        """
        Initialize the executor.

        Args:
            config: Resolved deployment configuration
            communicator: Runs collaborator commands
            run_log: Log artifact receiving messages and collaborator output
            components_root: Directory holding the collaborator scripts
            stages: Stage catalog, in execution order
            verbose: Print each stage's bound configuration
        """
        self.config = config
        self.communicator = communicator
        self.run_log = run_log
        self.components_root = Path(components_root or settings.COMPONENTS_ROOT)
        self.stages = list(stages)
        self.verbose = verbose
        self.names: ResourceNameSet = derive_names(config.prefix, config.started_at)
        self.environment = RunEnvironment()

    def run(self) -> List[StageOutcome]:
        """
        Run every stage in order.

        Returns:
            One StageOutcome per stage, in execution order

        Raises:
            CollaboratorError: If any collaborator fails
        """
        self.environment.bind_all(
            base_bindings(self.config, self.names, self.run_log.path), BASE_OWNER
        )
        return [self.run_stage(definition) for definition in self.stages]

    def run_stage(self, definition: StageDefinition) -> StageOutcome:
        """Bind one stage's configuration and run it if requested."""
        stage = definition.stage
        self.run_log.echo(f"***** [{stage.letter}] {definition.title}")

        bindings = definition.bind(self.config, self.names, self.environment)
        self.environment.bind_all(bindings, stage.letter)

        invoked = []
        for collaborator in definition.pre_gate(self.environment):
            self._invoke(stage, collaborator)
            invoked.append(collaborator.name)

        executed = should_run(self.config.steps, stage)
        if executed:
            for collaborator in definition.collaborators(self.environment):
                self._invoke(stage, collaborator)
                invoked.append(collaborator.name)
        else:
            self.run_log.write(f"[{stage.letter}] Skipped, not in steps '{self.config.steps.letters()}'")

        if self.verbose:
            for key, value in sorted(self.environment.owned_by(stage.letter).items()):
                self.run_log.echo(f"    {key}={value}")

        self.run_log.echo()
        return StageOutcome(
            stage=stage,
            executed=executed,
            bindings=self.environment.owned_by(stage.letter),
            collaborators=invoked,
        )

    def _invoke(self, stage: Stage, collaborator: Collaborator) -> CommandResult:
        """
        Run one collaborator and bind what it exports.

        Raises:
            CollaboratorError: On a non-zero exit status or a missing export
        """
        command = collaborator.build_command(self.components_root)
        self.run_log.write(f"[{stage.letter}] Running {collaborator.name}: {command}")

        result = self.communicator.execute_command(
            command,
            env=self.environment.to_dict(),
            stream=self.run_log.stream(),
        )
        if not result.success:
            raise CollaboratorError(
                stage.letter, collaborator.name, result.return_code,
                reason=result.stderr.splitlines()[-1] if result.stderr else None,
            )

        if collaborator.exports:
            exported = parse_exports(result.stdout, collaborator.exports)
            missing = [key for key in collaborator.exports if key not in exported]
            if missing:
                raise CollaboratorError(
                    stage.letter, collaborator.name, 1,
                    reason=f"did not export {', '.join(missing)}",
                )
            self.environment.bind_all(exported, stage.letter)

        return result
