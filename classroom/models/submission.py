import enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    event,
    func,
    inspect,
)
from sqlalchemy.orm import relationship

from classroom.db.base_class import Base


class SubmissionStatus(str, enum.Enum):
    submitted = "submitted"
    graded = "graded"
    returned = "returned"
    resubmitted = "resubmitted"


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)

    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    current_version = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default=SubmissionStatus.submitted.value)

    text_submission = Column(Text, nullable=True)
    file_submissions = Column(JSON, nullable=False, default=list)

    submitted_at = Column(DateTime(timezone=True), nullable=False)
    is_late = Column(Boolean, nullable=False, default=False)

    # mirrors of the latest feedback entry; grade is the penalty-adjusted value
    raw_grade = Column(Float, nullable=True)
    grade = Column(Float, nullable=True)
    feedback = Column(Text, nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)
    graded_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # optimistic lock: every UPDATE checks and bumps this
    revision = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),
    )
    __mapper_args__ = {"version_id_col": revision}

    assignment = relationship("Assignment", back_populates="submissions")
    student = relationship("User", back_populates="submissions", foreign_keys=[student_id])

    versions = relationship(
        "SubmissionVersion",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="SubmissionVersion.version",
    )
    feedback_history = relationship(
        "FeedbackEntry",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="FeedbackEntry.id",
    )


class SubmissionVersion(Base):
    __tablename__ = "submission_versions"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True)

    version = Column(Integer, nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=False)
    text_submission = Column(Text, nullable=True)
    file_submissions = Column(JSON, nullable=False, default=list)
    is_late = Column(Boolean, nullable=False, default=False)
    comments = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("submission_id", "version", name="uq_submission_version"),
    )

    submission = relationship("Submission", back_populates="versions")


class FeedbackEntry(Base):
    __tablename__ = "feedback_entries"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True)

    version = Column(Integer, nullable=False)
    raw_grade = Column(Float, nullable=True)
    grade = Column(Float, nullable=True)
    feedback = Column(Text, nullable=False, default="")
    graded_at = Column(DateTime(timezone=True), nullable=False)
    graded_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    submission = relationship("Submission", back_populates="feedback_history")


@event.listens_for(SubmissionVersion, "before_update")
@event.listens_for(FeedbackEntry, "before_update")
def _reject_history_update(mapper, connection, target):
    state = inspect(target)
    changed = [
        prop.key
        for prop in mapper.column_attrs
        if state.attrs[prop.key].history.has_changes()
    ]
    if changed:
        raise ValueError(
            f"{type(target).__name__} rows are append-only (tried to change {', '.join(changed)})"
        )
