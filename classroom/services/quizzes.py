import logging
import random
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classroom.core.errors import (
    AuthorizationDenied,
    ConcurrentUpdate,
    NotFound,
    PolicyViolation,
    ValidationError,
)
from classroom.core.permissions import ensure_course_teacher, ensure_enrolled
from classroom.models.quiz import Quiz
from classroom.models.quiz_attempt import QuizAttempt
from classroom.models.user import User, UserRole
from classroom.services import scoring
from classroom.services.scoring import QuestionKey, SelectedAnswer

logger = logging.getLogger(__name__)


def commit(db: Session) -> None:
    """Commit, or roll back and re-raise."""
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


def get_quiz(db: Session, quiz_id: int) -> Quiz:
    quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
    if not quiz:
        raise NotFound("Quiz not found")
    return quiz


def get_attempt(db: Session, attempt_id: int) -> QuizAttempt:
    attempt = db.query(QuizAttempt).filter(QuizAttempt.id == attempt_id).first()
    if not attempt:
        raise NotFound("Quiz attempt not found")
    return attempt


def ensure_can_view(db: Session, attempt: QuizAttempt, user: User) -> None:
    if user.role == UserRole.student:
        if attempt.student_id != user.id:
            raise AuthorizationDenied("Not your quiz attempt")
    else:
        ensure_course_teacher(db, attempt.quiz.course_id, user)


def start_attempt(
    db: Session,
    quiz: Quiz,
    student: User,
    question_count: int | None = None,
) -> QuizAttempt:
    """Open a new attempt; the attempt number counts per student and quiz."""
    if student.role != UserRole.student:
        raise AuthorizationDenied("Only students can start quiz attempts")
    ensure_enrolled(db, quiz.course_id, student)

    if not quiz.questions:
        raise NotFound("No questions available for this quiz")

    last_number = (
        db.query(func.max(QuizAttempt.attempt_number))
        .filter(QuizAttempt.quiz_id == quiz.id, QuizAttempt.student_id == student.id)
        .scalar()
    ) or 0
    if last_number >= quiz.max_attempts:
        raise PolicyViolation(
            "max_attempts_reached",
            f"Maximum attempts reached ({quiz.max_attempts}) for this quiz",
        )

    questions = list(quiz.questions)
    if question_count is not None and question_count < len(questions):
        picked = set(random.sample(range(len(questions)), question_count))
        questions = [q for i, q in enumerate(questions) if i in picked]

    attempt = QuizAttempt(
        quiz_id=quiz.id,
        student_id=student.id,
        attempt_number=last_number + 1,
        question_ids=[q.id for q in questions],
        total_points=sum(q.points for q in questions),
        started_at=datetime.now(timezone.utc),
    )
    db.add(attempt)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConcurrentUpdate("Another attempt was started at the same time") from exc
    except Exception:
        db.rollback()
        raise
    db.refresh(attempt)

    logger.info(
        "Quiz attempt %s started: quiz=%s student=%s number=%s questions=%s",
        attempt.id,
        quiz.id,
        student.id,
        attempt.attempt_number,
        len(attempt.question_ids),
    )
    return attempt


def submit_attempt(
    db: Session,
    attempt: QuizAttempt,
    student: User,
    answers: Iterable[SelectedAnswer],
    time_spent: int = 0,
    now: datetime | None = None,
) -> QuizAttempt:
    if attempt.student_id != student.id:
        raise AuthorizationDenied("Not your quiz attempt")
    if attempt.is_completed:
        raise PolicyViolation("attempt_already_completed", "Quiz already submitted")

    answers = list(answers)
    seen: set[int] = set()
    for answer in answers:
        if answer.question_id in seen:
            raise ValidationError(
                "answers", f"Question {answer.question_id} answered more than once"
            )
        seen.add(answer.question_id)

    presented = set(attempt.question_ids or [])
    keys = [QuestionKey.from_model(q) for q in attempt.quiz.questions if q.id in presented]
    result = scoring.score(answers, keys)

    scoring.apply_result(attempt, result)
    attempt.time_spent = max(0, int(time_spent or 0))
    attempt.submitted_at = now or datetime.now(timezone.utc)
    attempt.is_completed = True
    commit(db)
    db.refresh(attempt)

    logger.info(
        "Quiz attempt %s submitted: %s/%s (%s%%)",
        attempt.id,
        attempt.score,
        attempt.total_points,
        attempt.percentage,
    )
    return attempt


def rescore(db: Session, attempt: QuizAttempt, teacher: User) -> QuizAttempt:
    ensure_course_teacher(db, attempt.quiz.course_id, teacher)
    if not attempt.is_completed:
        raise PolicyViolation(
            "attempt_not_completed", "Quiz attempt has not been submitted yet"
        )

    scoring.rescore_attempt(attempt, attempt.quiz.questions)
    commit(db)
    db.refresh(attempt)
    return attempt
