"""
Teacher overrides for quiz attempts.

The override is a separate grade/feedback pair. It never touches the
automatic ``score``, ``percentage``, ``is_completed`` or any answer's
``is_correct``; each call replaces the previous override outright.
"""
import logging
import math
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from classroom.core.errors import PolicyViolation, ValidationError
from classroom.core.permissions import ensure_course_teacher
from classroom.models.quiz_attempt import QuizAttempt
from classroom.models.user import User

logger = logging.getLogger(__name__)


def override_quiz_grade(
    db: Session,
    attempt: QuizAttempt,
    teacher: User,
    teacher_grade: float | None,
    teacher_feedback: str | None = None,
    now: datetime | None = None,
) -> QuizAttempt:
    ensure_course_teacher(db, attempt.quiz.course_id, teacher)

    if not attempt.is_completed:
        raise PolicyViolation(
            "attempt_not_completed", "Quiz attempt has not been submitted yet"
        )
    if teacher_grade is None:
        raise ValidationError("teacher_grade", "A numeric grade is required")
    if not math.isfinite(teacher_grade) or teacher_grade < 0 or teacher_grade > attempt.total_points:
        raise ValidationError(
            "teacher_grade",
            f"teacher_grade must be between 0 and {attempt.total_points:g}",
        )

    attempt.teacher_grade = float(teacher_grade)
    attempt.teacher_feedback = teacher_feedback or ""
    attempt.graded_at = now or datetime.now(timezone.utc)
    attempt.graded_by_id = teacher.id

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(attempt)

    logger.info(
        "Quiz attempt %s overridden by teacher %s: %s (auto score %s/%s)",
        attempt.id,
        teacher.id,
        attempt.teacher_grade,
        attempt.score,
        attempt.total_points,
    )
    return attempt
