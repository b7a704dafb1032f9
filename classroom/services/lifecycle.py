"""
Submission lifecycle: submit, resubmit, grade, add feedback, return, delete.

States move ``submitted -> graded -> returned``; a student may resubmit from
any of them while the assignment allows it, which lands in ``resubmitted``.
Every guard runs before anything is mutated, so a rejected call leaves the
stored submission exactly as it was.
"""
import logging
import math
from datetime import datetime, timezone

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from classroom.core.config import GRADE_PRECISION
from classroom.core.errors import (
    AuthorizationDenied,
    ConcurrentUpdate,
    NotFound,
    PolicyViolation,
    ValidationError,
)
from classroom.core.permissions import ensure_course_teacher, ensure_enrolled
from classroom.models.assignment import Assignment
from classroom.models.submission import Submission, SubmissionStatus
from classroom.models.user import User, UserRole
from classroom.services import versioning
from classroom.services.versioning import SubmissionContent

logger = logging.getLogger(__name__)

GRADABLE_STATUSES = (SubmissionStatus.submitted, SubmissionStatus.resubmitted)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; treat them as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _resolve_now(now: datetime | None) -> datetime:
    return as_utc(now) if now is not None else datetime.now(timezone.utc)


def is_late_at(assignment: Assignment, when: datetime) -> bool:
    return as_utc(when) > as_utc(assignment.due_date)


def effective_grade(assignment: Assignment, raw_grade: float, is_late: bool) -> float:
    """The grade students see: the raw grade minus the late penalty when it applies."""
    if is_late and assignment.allow_late_submission and assignment.late_penalty:
        factor = 1 - assignment.late_penalty / 100
        return round(max(0.0, raw_grade * factor), GRADE_PRECISION)
    return raw_grade


def _validate_grade(assignment: Assignment, grade: float | None) -> float:
    if grade is None:
        raise ValidationError("grade", "A numeric grade is required")
    if not math.isfinite(grade) or grade < 0 or grade > assignment.max_points:
        raise ValidationError(
            "grade", f"grade must be between 0 and {assignment.max_points:g}"
        )
    return float(grade)


def _require_content(assignment: Assignment, content: SubmissionContent) -> None:
    if not content.satisfies(assignment.submission_type):
        raise PolicyViolation(
            "missing_required_content",
            f"This assignment requires '{assignment.submission_type}' content, "
            f"got '{content.kind.value}'",
        )


def _ensure_owner(submission: Submission, student: User) -> None:
    if submission.student_id != student.id:
        raise AuthorizationDenied("Only the submitting student can change this submission")


def _ensure_teacher(db: Session, submission: Submission, teacher: User) -> None:
    ensure_course_teacher(db, submission.assignment.course_id, teacher)


def get_submission(db: Session, submission_id: int) -> Submission:
    submission = db.query(Submission).filter(Submission.id == submission_id).first()
    if not submission:
        raise NotFound("Submission not found")
    return submission


def ensure_can_view(db: Session, submission: Submission, user: User) -> None:
    if user.role == UserRole.student:
        _ensure_owner(submission, user)
    else:
        _ensure_teacher(db, submission, user)


def submit(
    db: Session,
    assignment: Assignment,
    student: User,
    content: SubmissionContent,
    comments: str | None = None,
    now: datetime | None = None,
) -> Submission:
    """
    First submission of ``content`` for ``assignment``.

    A student who already has a submission for the assignment is resubmitting,
    and is handed to :func:`resubmit` with its guards.
    """
    if student.role != UserRole.student:
        raise AuthorizationDenied("Only students can submit work")
    ensure_enrolled(db, assignment.course_id, student)

    existing = (
        db.query(Submission)
        .filter(
            Submission.assignment_id == assignment.id,
            Submission.student_id == student.id,
        )
        .first()
    )
    if existing:
        return resubmit(db, existing, student, content, comments=comments, now=now)

    now = _resolve_now(now)
    _require_content(assignment, content)

    late = is_late_at(assignment, now)
    if late and not assignment.allow_late_submission:
        logger.warning(
            "Rejected late submission: assignment=%s student=%s", assignment.id, student.id
        )
        raise PolicyViolation("late_submission_not_allowed", "Assignment deadline has passed")

    submission = Submission(
        assignment_id=assignment.id,
        student_id=student.id,
        status=SubmissionStatus.submitted.value,
    )
    versioning.create_version(submission, content, comments=comments, is_late=late, now=now)
    db.add(submission)
    versioning.save(db, submission)

    logger.info(
        "Submission %s created: assignment=%s student=%s late=%s",
        submission.id,
        assignment.id,
        student.id,
        late,
    )
    return submission


def resubmit(
    db: Session,
    submission: Submission,
    student: User,
    content: SubmissionContent,
    comments: str | None = None,
    now: datetime | None = None,
) -> Submission:
    _ensure_owner(submission, student)
    assignment = submission.assignment
    now = _resolve_now(now)

    if not assignment.allow_resubmission:
        raise PolicyViolation(
            "resubmission_not_allowed", "Resubmission is not allowed for this assignment"
        )
    if submission.current_version >= assignment.max_resubmissions:
        logger.warning(
            "Rejected resubmission of %s: version cap %s reached",
            submission.id,
            assignment.max_resubmissions,
        )
        raise PolicyViolation(
            "max_resubmissions_reached",
            f"Maximum resubmissions reached ({assignment.max_resubmissions} versions)",
        )
    if assignment.resubmission_deadline is not None and now > as_utc(
        assignment.resubmission_deadline
    ):
        raise PolicyViolation(
            "resubmission_deadline_passed", "Resubmission deadline has passed"
        )
    _require_content(assignment, content)

    late = is_late_at(assignment, now)
    versioning.create_version(submission, content, comments=comments, is_late=late, now=now)
    submission.status = SubmissionStatus.resubmitted.value
    versioning.save(db, submission)

    logger.info(
        "Submission %s resubmitted as version %s (late=%s)",
        submission.id,
        submission.current_version,
        late,
    )
    return submission


def grade(
    db: Session,
    submission: Submission,
    teacher: User,
    grade: float | None,
    feedback: str | None = None,
    now: datetime | None = None,
) -> Submission:
    _ensure_teacher(db, submission, teacher)
    assignment = submission.assignment

    if submission.status not in GRADABLE_STATUSES:
        raise PolicyViolation(
            "invalid_transition",
            f"Cannot grade a submission that is '{submission.status}'",
        )
    raw = _validate_grade(assignment, grade)
    effective = effective_grade(assignment, raw, submission.is_late)

    versioning.append_feedback(
        submission,
        feedback=feedback or "",
        raw_grade=raw,
        grade=effective,
        graded_by_id=teacher.id,
        now=_resolve_now(now),
    )
    submission.status = SubmissionStatus.graded.value
    versioning.save(db, submission)

    logger.info(
        "Submission %s graded: raw=%s effective=%s version=%s",
        submission.id,
        raw,
        effective,
        submission.current_version,
    )
    return submission


def add_feedback(
    db: Session,
    submission: Submission,
    teacher: User,
    feedback: str | None,
    grade: float | None = None,
    now: datetime | None = None,
) -> Submission:
    """
    Append a feedback entry for the current version.

    Without a grade the previous grade is carried onto the entry, so the
    submission's current grade still matches its latest entry.
    """
    _ensure_teacher(db, submission, teacher)
    assignment = submission.assignment

    if not feedback or not feedback.strip():
        raise ValidationError("feedback", "Feedback is required")

    if grade is not None:
        raw = _validate_grade(assignment, grade)
        effective = effective_grade(assignment, raw, submission.is_late)
    else:
        raw, effective = submission.raw_grade, submission.grade

    versioning.append_feedback(
        submission,
        feedback=feedback,
        raw_grade=raw,
        grade=effective,
        graded_by_id=teacher.id,
        now=_resolve_now(now),
    )
    if grade is not None and submission.status in GRADABLE_STATUSES:
        submission.status = SubmissionStatus.graded.value
    versioning.save(db, submission)

    logger.info(
        "Feedback added to submission %s (version %s, status %s)",
        submission.id,
        submission.current_version,
        submission.status,
    )
    return submission


def return_submission(db: Session, submission: Submission, teacher: User) -> Submission:
    _ensure_teacher(db, submission, teacher)

    if submission.status != SubmissionStatus.graded:
        raise PolicyViolation(
            "invalid_transition", "Submission must be graded before returning"
        )

    submission.status = SubmissionStatus.returned.value
    versioning.save(db, submission)

    logger.info("Submission %s returned", submission.id)
    return submission


def delete_submission(db: Session, submission: Submission, teacher: User) -> None:
    """Remove the submission with all of its versions and feedback. Irreversible."""
    _ensure_teacher(db, submission, teacher)
    submission_id = submission.id

    db.delete(submission)
    try:
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        raise ConcurrentUpdate(
            "Submission was modified by another request; reload and try again"
        ) from exc
    except Exception:
        db.rollback()
        raise

    logger.info("Submission %s deleted by teacher %s", submission_id, teacher.id)
