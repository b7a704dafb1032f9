"""
Objective scoring for quiz attempts.

``score`` is a pure function of the submitted answers and the question data
it is given: no session, no clock. Running it twice on the same inputs gives
the same result, which is what ``rescore_attempt`` relies on after a teacher
corrects the question bank.
"""
import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from classroom.core.errors import NotFound
from classroom.models.quiz import QuestionType, QuizQuestion
from classroom.models.quiz_attempt import QuizAnswer, QuizAttempt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestionKey:
    """The part of a question the scorer needs."""

    id: int
    question_type: str
    points: float
    correct_options: frozenset[int] = frozenset()
    correct_answer: Any = None

    @classmethod
    def from_model(cls, question: QuizQuestion) -> "QuestionKey":
        correct = frozenset(
            i for i, opt in enumerate(question.options or []) if opt.get("is_correct")
        )
        return cls(
            id=question.id,
            question_type=question.question_type,
            points=question.points,
            correct_options=correct,
            correct_answer=question.correct_answer,
        )


@dataclass(frozen=True)
class SelectedAnswer:
    question_id: int
    value: Any


@dataclass(frozen=True)
class GradedAnswer:
    question_id: int
    value: Any
    is_correct: bool
    points: float


@dataclass(frozen=True)
class ScoreResult:
    score: float
    total_points: float
    percentage: int
    answers: tuple[GradedAnswer, ...]


def _as_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "false"):
            return lowered == "true"
    return None


def _is_correct(question: QuestionKey, value: Any) -> bool:
    if question.question_type == QuestionType.multiple_choice:
        # bool is an int subclass; True must not select option 1
        if isinstance(value, bool):
            return False
        if isinstance(value, int):
            return value in question.correct_options
        if isinstance(value, list) and all(
            isinstance(v, int) and not isinstance(v, bool) for v in value
        ):
            return bool(value) and frozenset(value) == question.correct_options
        return False

    if question.question_type == QuestionType.true_false:
        selected = _as_bool(value)
        expected = _as_bool(question.correct_answer)
        return selected is not None and selected == expected

    if question.question_type == QuestionType.short_answer:
        if not isinstance(value, str) or question.correct_answer is None:
            return False
        return value.strip().casefold() == str(question.correct_answer).strip().casefold()

    return False


def percentage_of(score: float, total_points: float) -> int:
    """100 * score / total_points rounded half up; 0 when there is nothing to score."""
    if not total_points:
        return 0
    return int(math.floor(100 * score / total_points + 0.5))


def score(
    answers: Iterable[SelectedAnswer],
    questions: Sequence[QuestionKey],
) -> ScoreResult:
    """
    Grade ``answers`` against the presented ``questions``.

    Full points on an exact match, zero otherwise. ``total_points`` covers
    every presented question, answered or not.
    """
    by_id = {q.id: q for q in questions}

    graded: list[GradedAnswer] = []
    earned = 0.0
    for answer in answers:
        question = by_id.get(answer.question_id)
        if question is None:
            raise NotFound(f"Question {answer.question_id} is not part of this attempt")

        correct = _is_correct(question, answer.value)
        points = question.points if correct else 0
        earned += points
        graded.append(
            GradedAnswer(
                question_id=answer.question_id,
                value=answer.value,
                is_correct=correct,
                points=points,
            )
        )

    total = sum(q.points for q in questions)
    return ScoreResult(
        score=earned,
        total_points=total,
        percentage=percentage_of(earned, total),
        answers=tuple(graded),
    )


def apply_result(attempt: QuizAttempt, result: ScoreResult) -> None:
    """Write a score result onto an attempt, replacing any previous answers."""
    attempt.answers = [
        QuizAnswer(
            position=i,
            question_id=a.question_id,
            answer=a.value,
            is_correct=a.is_correct,
            points=a.points,
        )
        for i, a in enumerate(result.answers)
    ]
    attempt.score = result.score
    attempt.total_points = result.total_points
    attempt.percentage = result.percentage


def rescore_attempt(attempt: QuizAttempt, questions: Sequence[QuizQuestion]) -> ScoreResult:
    """
    Re-run scoring for a completed attempt against the current question data.

    Only the automatic fields change; the teacher override is left as is.
    """
    presented = set(attempt.question_ids or [])
    keys = [QuestionKey.from_model(q) for q in questions if q.id in presented]
    selected = [SelectedAnswer(a.question_id, a.answer) for a in attempt.answers]

    result = score(selected, keys)
    logger.info(
        "Rescored quiz attempt %s: %s/%s -> %s/%s",
        attempt.id,
        attempt.score,
        attempt.total_points,
        result.score,
        result.total_points,
    )
    apply_result(attempt, result)
    return result
