"""
dp run - Run one pipeline stage for a feature.

The document body comes from --content-file (or stdin). Interview questions
come from --questions; answers are read interactively unless --answers
points at a scripted answers file.
"""

import sys
from pathlib import Path
from typing import Sequence

from devpipe.artifacts import ArtifactStore, FeatureConflictError, FeatureId, InvalidFeatureIdError
from devpipe.interview import (
    ConsoleAnswerSource,
    InterviewAnswer,
    InterviewGate,
    QuestionSpec,
    ScriptedAnswerSource,
    UnansweredQuestionError,
    is_offered,
    load_questions,
    render_decisions,
)
from devpipe.lib.constants import OTHER_OPTION
from devpipe.lib.config import PipelineConfig
from devpipe.lib.validate import ValidationError
from devpipe.pipeline.controller import MissingPreconditionError, PipelineController
from devpipe.pipeline.registry import UnknownStageError, get_stage


def read_content(source: str | None) -> str:
    """Read the document body from a file path, or stdin for None/'-'."""
    if source in (None, "-"):
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def check_answers(questions: Sequence[QuestionSpec], answers: Sequence[InterviewAnswer]) -> None:
    """Reject answers that picked neither an offered option nor "Other".

    Raises:
        ValueError: naming the first answer that was not offered
    """
    for question, answer in zip(questions, answers):
        if not is_offered(answer, question.options):
            choices = ", ".join(question.options + (OTHER_OPTION,))
            raise ValueError(
                f"Answer '{answer.selected_option}' to {answer.question_id} is not an offered option ({choices})"
            )


def make_producer(source: str | None, questions: Sequence[QuestionSpec] = ()):
    """Build a content producer that reads the body and appends interview decisions."""
    def produce(feature_id: FeatureId, answers) -> str:
        check_answers(questions, answers)
        body = read_content(source)
        decisions = render_decisions(answers)
        if decisions and body.strip():
            body = body.rstrip("\n") + "\n\n" + decisions
        return body
    return produce


def cmd_run(args, config: PipelineConfig) -> int:
    """Run a stage and print the hand-off prompt."""
    stage_name = args.stage.lstrip("/")

    try:
        feature_id = FeatureId.parse(args.feature)
        stage = get_stage(stage_name)
    except (InvalidFeatureIdError, UnknownStageError) as e:
        print(f"ERROR: {e}")
        return 2

    content_source = getattr(args, "content_file", None)
    questions_file = getattr(args, "questions", None)
    answers_file = getattr(args, "answers", None)

    try:
        questions = load_questions(Path(questions_file)) if questions_file else []
        if answers_file:
            source = ScriptedAnswerSource.from_file(Path(answers_file))
        else:
            if questions and content_source in (None, "-"):
                print("ERROR: stdin is needed for interview answers; use --content-file or --answers")
                return 2
            source = ConsoleAnswerSource()
    except ValidationError as e:
        print(f"ERROR: {e}")
        if len(e.problems) > 1:
            for line in e.details():
                print(f"  {line}")
        return 2

    if questions and not stage.uses_interview:
        print(f"ERROR: Stage '{stage.name}' does not run an interview; drop --questions")
        return 2

    controller = PipelineController(ArtifactStore(config.docs_dir), InterviewGate(source))

    try:
        outcome = controller.run_stage(
            feature_id,
            stage.name,
            make_producer(content_source, questions),
            questions=questions,
        )
    except MissingPreconditionError as e:
        print(f"ERROR: {e}")
        print(f"  Run: dp run {e.stage} {feature_id}")
        return 2
    except (FeatureConflictError, UnansweredQuestionError) as e:
        print(f"ERROR: {e}")
        return 2
    except (OSError, ValueError) as e:
        print(f"ERROR: {stage.command} failed: {e}")
        return 1

    print(f"Wrote {outcome.artifact.path}")
    print(outcome.handoff_prompt())
    return 0
