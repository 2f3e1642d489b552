"""
Pipeline controller.

Runs one stage for one feature end to end: precondition check, optional
interview, external content production, artifact write. All pipeline state
is read back from the artifact store on each call.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from devpipe.artifacts import Artifact, ArtifactStore, FeatureId
from devpipe.interview import InterviewAnswer, InterviewGate, QuestionSpec
from devpipe.pipeline.fsm import StageRunFSM
from devpipe.pipeline.registry import (
    STAGE_ORDER,
    Stage,
    get_stage,
    next_stage,
    required_predecessors,
)

logger = logging.getLogger(__name__)


# Content producer signature: (feature_id, answers) -> document body.
# Exceptions raised here reach the caller of run_stage unchanged.
ProduceContent = Callable[[FeatureId, list[InterviewAnswer]], str]


@dataclass
class MissingPreconditionError(Exception):
    """A required predecessor artifact does not exist."""
    stage: str  # The missing predecessor
    feature_id: FeatureId | None = None
    requested: str | None = None  # The stage that was asked to run

    def __str__(self):
        target = f" for {self.feature_id}" if self.feature_id else ""
        hint = f"; run /{self.stage} before /{self.requested}" if self.requested else ""
        return f"Missing {self.stage} artifact{target}{hint}"


@dataclass(frozen=True)
class StageOutcome:
    """Result of a successful stage run."""
    artifact: Artifact
    next_stage: Stage | None
    answers: tuple[InterviewAnswer, ...] = ()

    def handoff_prompt(self) -> str:
        """Line telling the operator what to run next."""
        feature = self.artifact.feature_id
        if self.next_stage is None:
            return f"Pipeline complete for {feature}."
        return f"Next: {self.next_stage.command} {feature}"


@dataclass(frozen=True)
class StageStatus:
    """Per-stage view of a feature, derived from the artifact store."""
    stage: Stage
    done: bool
    runnable: bool
    missing: tuple[str, ...] = ()


class PipelineController:
    """
    Orchestrates single stage executions.

    Usage:
        controller = PipelineController(ArtifactStore(docs_dir), InterviewGate(source))
        outcome = controller.run_stage(FeatureId(1, "user-auth"), "tdd", produce)
        print(outcome.handoff_prompt())
    """

    def __init__(self, store: ArtifactStore, gate: InterviewGate | None = None):
        self.store = store
        self.gate = gate

    def check_preconditions(self, feature_id: FeatureId, stage: Stage) -> None:
        """Fail on the first missing predecessor, in declared order.

        Raises:
            MissingPreconditionError: naming the first missing predecessor
        """
        for pred in required_predecessors(stage.name):
            if not self.store.exists(feature_id, pred):
                raise MissingPreconditionError(pred.name, feature_id, stage.name)

    def run_stage(
        self,
        feature_id: FeatureId,
        stage_name: str,
        produce_content: ProduceContent,
        questions: Sequence[QuestionSpec] | None = None,
    ) -> StageOutcome:
        """Run one stage and write its artifact.

        Args:
            feature_id: Feature to run the stage for
            stage_name: Registered stage name (e.g. "tdd")
            produce_content: Callback returning the document body
            questions: Interview questions, asked in order before production

        Returns:
            StageOutcome with the written artifact and the next stage

        Raises:
            UnknownStageError: stage_name is not registered
            MissingPreconditionError: a required predecessor artifact is absent
            ValueError: questions given for a stage without an interview,
                or no gate configured to ask them
        """
        stage = get_stage(stage_name)
        questions = list(questions or [])

        if questions and not stage.uses_interview:
            raise ValueError(f"Stage '{stage.name}' does not run an interview")
        if questions and self.gate is None:
            raise ValueError(f"Stage '{stage.name}' has interview questions but no interview gate")

        fsm = StageRunFSM(str(feature_id), stage.name)
        logger.info(f"[RUN] {fsm.run_label}: starting")

        try:
            self.check_preconditions(feature_id, stage)
            fsm.pass_gate()

            answers: list[InterviewAnswer] = []
            if questions:
                fsm.start_interview()
                for q in questions:
                    answers.append(self.gate.ask(q.prompt, q.options, question_id=q.question_id))

            fsm.start_producing()
            content = produce_content(feature_id, answers)
            if not content or not content.strip():
                # A blank file does not count as a finished document
                raise ValueError(f"Producer returned no content for {fsm.run_label}")

            if not fsm.can("write_artifact"):
                raise RuntimeError(f"Cannot write {fsm.run_label} artifact from state '{fsm.state}'")
            artifact = self.store.write(feature_id, stage, content)
            fsm.write_artifact()
        except Exception as e:
            if not fsm.finished:
                fsm.fail()
            logger.info(f"[RUN] {fsm.run_label}: failed in {e.__class__.__name__}: {e}")
            raise

        following = next_stage(stage.name)
        logger.info(
            f"[RUN] {fsm.run_label}: wrote {artifact.path}"
            + (f", next {following.name}" if following else ", pipeline complete")
        )
        return StageOutcome(artifact=artifact, next_stage=following, answers=tuple(answers))

    def status(self, feature_id: FeatureId) -> list[StageStatus]:
        """Stage-by-stage view of a feature, in pipeline order."""
        present = {s.name for s in self.store.stages_present(feature_id)}
        result = []
        for name in STAGE_ORDER:
            stage = get_stage(name)
            missing = tuple(p for p in stage.required_predecessors if p not in present)
            result.append(StageStatus(
                stage=stage,
                done=name in present,
                runnable=not missing,
                missing=missing,
            ))
        return result
