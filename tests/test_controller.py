"""Tests for devpipe.pipeline.controller module."""

import pytest

from devpipe.artifacts import ArtifactStore, FeatureConflictError, FeatureId
from devpipe.interview import (
    InterviewAnswer,
    InterviewGate,
    QuestionSpec,
    ScriptedAnswerSource,
    UnansweredQuestionError,
)
from devpipe.pipeline.controller import (
    MissingPreconditionError,
    PipelineController,
    StageOutcome,
)
from devpipe.pipeline.registry import STAGE_ORDER, UnknownStageError, get_stage


USER_AUTH = FeatureId(1, "user-auth")


def produce_fixed(body="body\n"):
    def produce(feature_id, answers):
        return body
    return produce


@pytest.fixture
def store(tmp_path):
    return ArtifactStore(tmp_path / "docs" / "features")


@pytest.fixture
def controller(store):
    return PipelineController(store)


def _files(store):
    if not store.docs_dir.exists():
        return []
    return sorted(p.name for p in store.docs_dir.iterdir())


class TestUserAuthScenario:
    """End-to-end scenario for feature 1-user-auth."""

    def test_feature_then_tdd(self, controller, store):
        # tdd before feature fails
        with pytest.raises(MissingPreconditionError) as exc:
            controller.run_stage(USER_AUTH, "tdd", produce_fixed())
        assert exc.value.stage == "feature"
        assert exc.value.feature_id == USER_AUTH
        assert _files(store) == []

        outcome = controller.run_stage(USER_AUTH, "feature", produce_fixed("# Feature\n"))
        assert outcome.artifact.path == store.docs_dir / "1-user-auth.feature.md"
        assert outcome.next_stage.name == "tdd"

        outcome = controller.run_stage(USER_AUTH, "tdd", produce_fixed("# TDD\n"))
        assert outcome.artifact.path == store.docs_dir / "1-user-auth.tdd.md"
        assert outcome.artifact.path.read_text() == "# TDD\n"
        assert outcome.next_stage.name == "breakdown"

    def test_missing_precondition_message(self, controller):
        with pytest.raises(MissingPreconditionError) as exc:
            controller.run_stage(USER_AUTH, "tdd", produce_fixed())
        assert "feature" in str(exc.value)
        assert "1-user-auth" in str(exc.value)


class TestRunStage:
    """Tests for run_stage mechanics."""

    def test_exists_false_before_and_true_after(self, controller, store):
        for name in STAGE_ORDER:
            assert not store.exists(USER_AUTH, name)
            controller.run_stage(USER_AUTH, name, produce_fixed(f"{name}\n"))
            assert store.exists(USER_AUTH, name)

    def test_full_pipeline_ends_with_no_next_stage(self, controller):
        outcome = None
        for name in STAGE_ORDER:
            outcome = controller.run_stage(USER_AUTH, name, produce_fixed())
        assert outcome.next_stage is None
        assert outcome.handoff_prompt() == "Pipeline complete for 1-user-auth."

    def test_handoff_prompt(self, controller):
        outcome = controller.run_stage(USER_AUTH, "feature", produce_fixed())
        assert outcome.handoff_prompt() == "Next: /tdd 1-user-auth"

    def test_unknown_stage(self, controller, store):
        with pytest.raises(UnknownStageError):
            controller.run_stage(USER_AUTH, "deploy", produce_fixed())
        assert _files(store) == []

    def test_only_immediate_predecessor_enforced(self, controller, store):
        """test-design checks tdd only; feature is not re-checked."""
        store.write(USER_AUTH, "tdd", "design")
        outcome = controller.run_stage(USER_AUTH, "test-design", produce_fixed())
        assert outcome.artifact.path.name == "1-user-auth.test.md"

    def test_code_review_has_no_precondition(self, controller):
        outcome = controller.run_stage(USER_AUTH, "code-review", produce_fixed("LGTM\n"))
        assert outcome.artifact.path.name == "1-user-auth.review.md"
        assert outcome.next_stage.name == "qa"

    def test_fails_fast_on_first_missing(self, store, monkeypatch):
        """Only the first missing predecessor is reported."""
        from devpipe.pipeline import registry

        multi = registry.Stage("coder", ("tdd", "test-design"), "coder", False)
        monkeypatch.setitem(registry.STAGES, "coder", multi)
        controller = PipelineController(store)

        with pytest.raises(MissingPreconditionError) as exc:
            controller.run_stage(USER_AUTH, "coder", produce_fixed())
        assert exc.value.stage == "tdd"

    def test_idempotent_rerun(self, controller, store):
        controller.run_stage(USER_AUTH, "feature", produce_fixed("same\n"))
        first = store.resolve_path(USER_AUTH, "feature").read_bytes()
        controller.run_stage(USER_AUTH, "feature", produce_fixed("same\n"))
        assert store.resolve_path(USER_AUTH, "feature").read_bytes() == first
        assert _files(store) == ["1-user-auth.feature.md"]

    def test_producer_receives_feature_id_and_answers(self, controller):
        seen = {}

        def produce(feature_id, answers):
            seen["feature_id"] = feature_id
            seen["answers"] = answers
            return "x"

        controller.run_stage(USER_AUTH, "feature", produce)
        assert seen == {"feature_id": USER_AUTH, "answers": []}

    def test_sequence_conflict_propagates_without_write(self, controller, store):
        controller.run_stage(USER_AUTH, "feature", produce_fixed())
        with pytest.raises(FeatureConflictError):
            controller.run_stage(FeatureId(1, "billing"), "feature", produce_fixed())
        assert _files(store) == ["1-user-auth.feature.md"]


class TestProducerFailures:
    """Producer errors propagate unchanged and nothing is written."""

    def test_error_propagates_unwrapped(self, controller, store):
        class AuthoringFailed(Exception):
            pass

        error = AuthoringFailed("LLM call failed")

        def produce(feature_id, answers):
            raise error

        with pytest.raises(AuthoringFailed) as exc:
            controller.run_stage(USER_AUTH, "feature", produce)
        assert exc.value is error
        assert _files(store) == []

    def test_empty_content_is_rejected(self, controller, store):
        with pytest.raises(ValueError, match="no content"):
            controller.run_stage(USER_AUTH, "feature", produce_fixed(""))
        assert not store.exists(USER_AUTH, "feature")
        assert _files(store) == []

    @pytest.mark.parametrize("body", ["  \n", "\n\n", "\t"])
    def test_blank_content_is_rejected(self, controller, store, body):
        with pytest.raises(ValueError, match="no content"):
            controller.run_stage(USER_AUTH, "feature", produce_fixed(body))
        assert _files(store) == []

    def test_write_refused_outside_producing_state(self, controller, store, monkeypatch):
        monkeypatch.setattr("devpipe.pipeline.controller.StageRunFSM.can", lambda self, trigger: False)
        with pytest.raises(RuntimeError, match="Cannot write 1-user-auth/feature artifact"):
            controller.run_stage(USER_AUTH, "feature", produce_fixed())
        assert _files(store) == []


class TestInterview:
    """Tests for interview handling inside run_stage."""

    def test_answers_reach_producer(self, store):
        gate = InterviewGate(ScriptedAnswerSource({"Which auth mechanism?": "JWT"}))
        controller = PipelineController(store, gate)
        seen = []

        def produce(feature_id, answers):
            seen.extend(answers)
            return "x"

        outcome = controller.run_stage(
            USER_AUTH, "feature", produce,
            questions=[QuestionSpec("Which auth mechanism?", ("JWT", "API Key", "Session"))],
        )
        assert len(seen) == 1
        assert seen[0].selected_option == "JWT"
        assert seen[0].question_id == "Q-001"
        assert outcome.answers == tuple(seen)

    def test_questions_asked_in_order(self, store):
        asked = []

        def source(question):
            asked.append(question.question_id)
            return InterviewAnswer(question.question_id, question.offered[0], prompt=question.prompt)

        controller = PipelineController(store, InterviewGate(source))
        controller.run_stage(
            USER_AUTH, "feature", produce_fixed(),
            questions=[
                QuestionSpec("First?", ("a", "b"), question_id="scope"),
                QuestionSpec("Second?", ("c",)),
            ],
        )
        assert asked == ["scope", "Q-002"]

    def test_interview_not_run_when_preconditions_fail(self, store):
        asked = []

        def source(question):
            asked.append(question)
            return InterviewAnswer(question.question_id, "x")

        controller = PipelineController(store, InterviewGate(source))
        with pytest.raises(MissingPreconditionError):
            controller.run_stage(
                USER_AUTH, "tdd", produce_fixed(),
                questions=[QuestionSpec("Q?", ("a",))],
            )
        assert asked == []

    def test_questions_for_non_interview_stage(self, store):
        controller = PipelineController(store, InterviewGate(ScriptedAnswerSource({})))
        assert not get_stage("code-review").uses_interview
        with pytest.raises(ValueError, match="does not run an interview"):
            controller.run_stage(
                USER_AUTH, "code-review", produce_fixed(),
                questions=[QuestionSpec("Q?", ("a",))],
            )

    def test_questions_without_gate(self, controller):
        with pytest.raises(ValueError, match="no interview gate"):
            controller.run_stage(
                USER_AUTH, "feature", produce_fixed(),
                questions=[QuestionSpec("Q?", ("a",))],
            )

    def test_interview_failure_writes_nothing(self, store):
        gate = InterviewGate(ScriptedAnswerSource({}))
        controller = PipelineController(store, gate)
        with pytest.raises(UnansweredQuestionError):
            controller.run_stage(
                USER_AUTH, "feature", produce_fixed(),
                questions=[QuestionSpec("Unanswered?", ("a",))],
            )
        assert _files(store) == []


class TestStatus:
    """Tests for status reconstruction from the store."""

    def test_fresh_feature(self, controller):
        statuses = controller.status(USER_AUTH)
        assert [s.stage.name for s in statuses] == STAGE_ORDER
        by_name = {s.stage.name: s for s in statuses}
        assert not any(s.done for s in statuses)
        assert by_name["feature"].runnable
        assert by_name["code-review"].runnable
        assert not by_name["tdd"].runnable
        assert by_name["tdd"].missing == ("feature",)

    def test_after_feature(self, controller):
        controller.run_stage(USER_AUTH, "feature", produce_fixed())
        by_name = {s.stage.name: s for s in controller.status(USER_AUTH)}
        assert by_name["feature"].done
        assert by_name["tdd"].runnable
        assert not by_name["breakdown"].runnable


class TestMissingPreconditionError:
    """Tests for the error type itself."""

    def test_positional_stage(self):
        err = MissingPreconditionError("feature")
        assert err.stage == "feature"
        assert str(err) == "Missing feature artifact"

    def test_hint(self):
        err = MissingPreconditionError("feature", USER_AUTH, "tdd")
        assert str(err) == "Missing feature artifact for 1-user-auth; run /feature before /tdd"

    def test_outcome_type(self, controller):
        assert isinstance(controller.run_stage(USER_AUTH, "feature", produce_fixed()), StageOutcome)
