"""
Version and feedback history for assignment submissions.

Both histories are append-only: this module adds rows and never edits or
removes them (the models also refuse UPDATEs). Writes to a submission are
serialized by its ``revision`` column, so a version bump and a feedback entry
computed from the same loaded state cannot both be committed.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from classroom.core.errors import ConcurrentUpdate
from classroom.models.assignment import SubmissionType
from classroom.models.submission import FeedbackEntry, Submission, SubmissionVersion

logger = logging.getLogger(__name__)


class ContentKind(str, enum.Enum):
    text = "text"
    file_upload = "file-upload"
    both = "both"
    empty = "empty"


@dataclass(frozen=True)
class SubmissionContent:
    text: str | None = None
    files: tuple[dict, ...] = ()

    @property
    def kind(self) -> ContentKind:
        has_text = bool(self.text and self.text.strip())
        has_files = bool(self.files)
        if has_text and has_files:
            return ContentKind.both
        if has_text:
            return ContentKind.text
        if has_files:
            return ContentKind.file_upload
        return ContentKind.empty

    def satisfies(self, submission_type: str) -> bool:
        kind = self.kind
        if submission_type == SubmissionType.both:
            return kind == ContentKind.both
        if submission_type == SubmissionType.text:
            return kind in (ContentKind.text, ContentKind.both)
        if submission_type == SubmissionType.file_upload:
            return kind in (ContentKind.file_upload, ContentKind.both)
        return False


def create_version(
    submission: Submission,
    content: SubmissionContent,
    *,
    comments: str | None,
    is_late: bool,
    now: datetime,
) -> SubmissionVersion:
    """Make ``content`` the submission's next version and record it in the history."""
    next_version = (submission.current_version or 0) + 1

    entry = SubmissionVersion(
        version=next_version,
        submitted_at=now,
        text_submission=content.text,
        file_submissions=list(content.files),
        is_late=is_late,
        comments=comments,
    )
    submission.versions.append(entry)

    submission.current_version = next_version
    submission.text_submission = content.text
    submission.file_submissions = list(content.files)
    submission.submitted_at = now
    submission.is_late = is_late
    return entry


def append_feedback(
    submission: Submission,
    *,
    feedback: str,
    raw_grade: float | None,
    grade: float | None,
    graded_by_id: int | None,
    now: datetime,
) -> FeedbackEntry:
    """Record feedback against the current version and mirror it onto the submission."""
    entry = FeedbackEntry(
        version=submission.current_version,
        raw_grade=raw_grade,
        grade=grade,
        feedback=feedback,
        graded_at=now,
        graded_by_id=graded_by_id,
    )
    submission.feedback_history.append(entry)

    submission.raw_grade = raw_grade
    submission.grade = grade
    submission.feedback = feedback
    submission.graded_at = now
    submission.graded_by_id = graded_by_id
    return entry


def save(db: Session, submission: Submission) -> Submission:
    """Commit pending changes to ``submission`` as one unit, or none of them."""
    try:
        db.commit()
    except (StaleDataError, IntegrityError) as exc:
        db.rollback()
        logger.warning("Submission %s changed concurrently: %s", submission.id, exc)
        raise ConcurrentUpdate(
            "Submission was modified by another request; reload and try again"
        ) from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(submission)
    return submission
