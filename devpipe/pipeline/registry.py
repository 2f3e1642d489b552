"""
Stage registry for the development pipeline.

The stage table is fixed: it is built once at import time and never mutated.
Pipeline order and precondition sets are separate on purpose: a stage's
required predecessors are the artifacts it reads, not simply the stage
listed before it (test-design reads the tdd document, not the engineer one).
"""

from dataclasses import dataclass


class UnknownStageError(Exception):
    """Stage name is not one of the registered stages."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown stage '{name}'. Valid stages: {', '.join(STAGE_ORDER)}")


@dataclass(frozen=True)
class Stage:
    """Immutable descriptor of one pipeline stage."""
    name: str
    required_predecessors: tuple[str, ...]  # Immediate predecessors only
    artifact_suffix: str  # Filename suffix: <seq>-<slug>.<suffix>.md
    uses_interview: bool
    description: str = ""

    @property
    def command(self) -> str:
        """Slash-command form, e.g. '/test-design'."""
        return f"/{self.name}"


# (name, predecessors, suffix, interview, description)
_STAGE_TABLE = [
    ("feature", (), "feature", True, "Capture the feature request and its scope"),
    ("tdd", ("feature",), "tdd", True, "Technical design document"),
    ("breakdown", ("tdd",), "breakdown", False, "Split the design into implementation tasks"),
    ("engineer", ("breakdown",), "engineer", False, "Engineering plan per task"),
    ("test-design", ("tdd",), "test", True, "Test cases derived from the design"),
    ("coder", ("test-design",), "coder", False, "Implementation notes"),
    ("code-review", (), "review", False, "Review of the current code diff"),
    ("qa", ("test-design",), "qa", False, "QA report against the test design"),
]

STAGES: dict[str, Stage] = {
    name: Stage(name, preds, suffix, interview, desc)
    for name, preds, suffix, interview, desc in _STAGE_TABLE
}

STAGE_ORDER: list[str] = [row[0] for row in _STAGE_TABLE]

_BY_SUFFIX: dict[str, Stage] = {s.artifact_suffix: s for s in STAGES.values()}


def get_stage(name: str) -> Stage:
    """Return the Stage for name.

    Raises:
        UnknownStageError: if name is not a registered stage
    """
    try:
        return STAGES[name]
    except KeyError:
        raise UnknownStageError(name) from None


def next_stage(name: str) -> Stage | None:
    """Return the stage after name in pipeline order, or None after the last."""
    get_stage(name)
    idx = STAGE_ORDER.index(name)
    if idx + 1 >= len(STAGE_ORDER):
        return None
    return STAGES[STAGE_ORDER[idx + 1]]


def required_predecessors(name: str) -> list[Stage]:
    """Return the stages whose artifacts must exist before name may run."""
    return [STAGES[p] for p in get_stage(name).required_predecessors]


def stage_names() -> list[str]:
    """All stage names in pipeline order."""
    return list(STAGE_ORDER)


def stage_for_suffix(suffix: str) -> Stage | None:
    """Map an artifact filename suffix back to its stage."""
    return _BY_SUFFIX.get(suffix)
