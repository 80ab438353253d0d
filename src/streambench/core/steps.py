"""
Stage selection.

The -s flag is a string of stage letters. Each letter switches one stage on;
order and repetition do not matter and no letter implies another, so an
operator can run "P" alone against resources created by an earlier run.
"""

from enum import Enum
from typing import FrozenSet, Iterable

from streambench.errors import ConfigError


class Stage(str, Enum):
    """Pipeline stages, declared in execution order."""

    COMMON = "C"
    INGESTION = "I"
    PROCESSING = "P"
    TEST = "T"
    METRICS = "M"
    VERIFY = "V"

    @property
    def letter(self) -> str:
        return self.value


STAGE_ORDER = tuple(Stage)

STAGE_DESCRIPTIONS = {
    Stage.COMMON: "COMMON",
    Stage.INGESTION: "INGESTION",
    Stage.PROCESSING: "PROCESSING",
    Stage.TEST: "TEST clients",
    Stage.METRICS: "METRICS reporting",
    Stage.VERIFY: "VERIFY deployment",
}


class StepSet:
    """Immutable set of requested stages."""

    __slots__ = ("_stages",)

    def __init__(self, stages: Iterable[Stage] = ()):
        self._stages: FrozenSet[Stage] = frozenset(stages)

    def __contains__(self, stage: object) -> bool:
        return stage in self._stages

    def __iter__(self):
        return (stage for stage in STAGE_ORDER if stage in self._stages)

    def __len__(self) -> int:
        return len(self._stages)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StepSet):
            return NotImplemented
        return self._stages == other._stages

    def __hash__(self) -> int:
        return hash(self._stages)

    def __repr__(self) -> str:
        return f"StepSet({self.letters()!r})"

    def letters(self) -> str:
        """Return the requested letters in execution order, e.g. "CIPTM"."""
        return "".join(stage.letter for stage in self)


def parse_steps(text: str) -> StepSet:
    """
    Parse a stage-letter string such as "CIPTM".

    Args:
        text: Requested stage letters, in any order

    Returns:
        StepSet with one entry per distinct letter

    Raises:
        ConfigError: If the string contains a letter that names no stage
    """
    valid = {stage.letter for stage in Stage}
    unknown = sorted({char for char in text if char not in valid})
    if unknown:
        raise ConfigError(
            f"Unknown step letter(s) {', '.join(unknown)} in '{text}'. "
            f"Valid steps: {''.join(stage.letter for stage in STAGE_ORDER)}"
        )
    return StepSet(Stage(char) for char in text)


def should_run(steps: StepSet, stage: Stage) -> bool:
    """Return True if the stage was requested."""
    return stage in steps
