"""
Interview gate for stages that need decisions before producing content.

A question offers a closed list of options plus an implicit "Other (specify)"
choice. The gate blocks on an answer source (a human at the console, or a
scripted answers file written by an upstream agent) and hands back whatever
came in. Checking the answer against the offered options is the caller's job.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from devpipe.lib.constants import OTHER_LABEL, OTHER_OPTION
from devpipe.lib.validate import validate_file

logger = logging.getLogger(__name__)


class UnansweredQuestionError(Exception):
    """The answer source had no answer for a question."""

    def __init__(self, question_id: str, prompt: str):
        self.question_id = question_id
        self.prompt = prompt
        super().__init__(f"No answer for {question_id}: {prompt}")


@dataclass(frozen=True)
class QuestionSpec:
    """A question a stage wants answered, before the gate assigns an id."""
    prompt: str
    options: tuple[str, ...]
    question_id: str | None = None


@dataclass(frozen=True)
class InterviewQuestion:
    """A question as presented: offered options followed by OTHER_LABEL."""
    question_id: str
    prompt: str
    options: tuple[str, ...]

    @property
    def offered(self) -> tuple[str, ...]:
        return self.options[:-1]


@dataclass(frozen=True)
class InterviewAnswer:
    """Answer to one question. Lives only for one stage run."""
    question_id: str
    selected_option: str
    other_text: str | None = None  # Free text when "Other" was chosen
    prompt: str = ""

    @property
    def is_other(self) -> bool:
        return self.selected_option == OTHER_OPTION

    def display(self) -> str:
        if self.is_other:
            return f"{OTHER_OPTION}: {self.other_text}" if self.other_text else OTHER_OPTION
        return self.selected_option


# Answer source signature: (question) -> answer. May block indefinitely.
AnswerSource = Callable[[InterviewQuestion], InterviewAnswer]


def is_offered(answer: InterviewAnswer, options: Sequence[str]) -> bool:
    """True if the answer picked one of options or "Other"."""
    return answer.is_other or answer.selected_option in options


class InterviewGate:
    """
    Presents one decision point at a time and returns the caller's choice.

    Usage:
        gate = InterviewGate(ConsoleAnswerSource())
        answer = gate.ask("Which auth mechanism?", ["JWT", "API Key", "Session"])
    """

    def __init__(self, source: AnswerSource):
        self.source = source
        self._asked = 0

    def next_question_id(self) -> str:
        """Generate the next question ID for this gate (Q-001, Q-002, ...)."""
        return f"Q-{self._asked + 1:03d}"

    def ask(self, question: str, options: Sequence[str], question_id: str | None = None) -> InterviewAnswer:
        """Ask one question and block until the answer source responds.

        Raises:
            ValueError: if options is empty
        """
        options = tuple(options)
        if not options:
            raise ValueError(f"Interview question needs at least one option: {question!r}")

        qid = question_id or self.next_question_id()
        self._asked += 1

        presented = InterviewQuestion(qid, question, options + (OTHER_LABEL,))
        logger.info(f"[INTERVIEW] {qid}: {question} ({len(options)} options + other)")

        answer = self.source(presented)

        logger.info(f"[INTERVIEW] {qid} answered: {answer.display()}")
        return answer


class ConsoleAnswerSource:
    """Reads answers from the terminal using numbered choices."""

    def __init__(self, input_fn: Callable[[str], str] = input, output_fn: Callable[[str], None] = print):
        self.input_fn = input_fn
        self.output_fn = output_fn

    def __call__(self, question: InterviewQuestion) -> InterviewAnswer:
        self.output_fn(f"\n{question.prompt}")
        for i, option in enumerate(question.options, 1):
            self.output_fn(f"  {i}. {option}")

        try:
            raw = self.input_fn(f"Select [1-{len(question.options)}]: ").strip()
        except EOFError:
            raise UnansweredQuestionError(question.question_id, question.prompt) from None

        # Numbers map to options; anything else is passed through untouched
        choice = raw
        if raw.isdigit() and 1 <= int(raw) <= len(question.options):
            choice = question.options[int(raw) - 1]

        if choice in (OTHER_LABEL, OTHER_OPTION):
            try:
                text = self.input_fn("Please specify: ").strip()
            except EOFError:
                text = ""
            return InterviewAnswer(question.question_id, OTHER_OPTION, text or None, question.prompt)

        return InterviewAnswer(question.question_id, choice, None, question.prompt)


class ScriptedAnswerSource:
    """Answers from a mapping keyed by question id or prompt text.

    Values are either the chosen option as a string, or a dict
    {"option": ..., "text": ...} for free-text "Other" answers.
    """

    def __init__(self, answers: dict):
        self.answers = dict(answers)

    @classmethod
    def from_file(cls, path: Path) -> "ScriptedAnswerSource":
        """Load answers from JSON validated against the answers schema."""
        data = validate_file(Path(path), "answers")
        return cls(data["answers"])

    def __call__(self, question: InterviewQuestion) -> InterviewAnswer:
        if question.question_id in self.answers:
            value = self.answers[question.question_id]
        elif question.prompt in self.answers:
            value = self.answers[question.prompt]
        else:
            raise UnansweredQuestionError(question.question_id, question.prompt)

        if isinstance(value, dict):
            option = value.get("option", "")
            text = value.get("text")
        else:
            option, text = value, None

        if option == OTHER_LABEL:
            option = OTHER_OPTION
        return InterviewAnswer(question.question_id, option, text, question.prompt)


def load_questions(path: Path) -> list[QuestionSpec]:
    """Load interview questions from JSON validated against the questions schema."""
    data = validate_file(Path(path), "questions")
    return [
        QuestionSpec(
            prompt=q["prompt"],
            options=tuple(q["options"]),
            question_id=q.get("id"),
        )
        for q in data["questions"]
    ]


def render_decisions(answers: Sequence[InterviewAnswer]) -> str:
    """Render answers as a markdown section for folding into an artifact."""
    if not answers:
        return ""

    lines = ["## Interview Decisions", ""]
    for answer in answers:
        label = answer.prompt or answer.question_id
        lines.append(f"- **{label}** ({answer.question_id}): {answer.display()}")
    lines.append("")
    return "\n".join(lines)
