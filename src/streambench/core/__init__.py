"""
Core orchestration logic.

Contains:
- steps: Stage letters and the requested step set
- preflight: Local tool checks
- environment: Write-once run environment
- stages: Per-stage bindings and collaborators
- executor: The six-stage driver
"""

from .steps import Stage, StepSet, parse_steps, should_run
from .preflight import check_prerequisites
from .environment import RunEnvironment
from .executor import StageExecutor, StageOutcome
