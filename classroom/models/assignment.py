import enum

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from classroom.core.config import DEFAULT_MAX_POINTS, DEFAULT_MAX_RESUBMISSIONS
from classroom.db.base_class import Base


class SubmissionType(str, enum.Enum):
    text = "text"
    file_upload = "file-upload"
    both = "both"


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    instructions = Column(Text, nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=False, index=True)
    max_points = Column(Float, nullable=False, default=DEFAULT_MAX_POINTS)
    submission_type = Column(String(20), nullable=False, default=SubmissionType.both.value)

    # late policy; late_penalty is a percentage and only applies when late submissions are allowed
    allow_late_submission = Column(Boolean, nullable=False, default=False)
    late_penalty = Column(Float, nullable=False, default=0)

    # resubmission policy; max_resubmissions caps current_version, not the number of resubmits
    allow_resubmission = Column(Boolean, nullable=False, default=True)
    max_resubmissions = Column(Integer, nullable=False, default=DEFAULT_MAX_RESUBMISSIONS)
    resubmission_deadline = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    course = relationship("Course", back_populates="assignments")

    submissions = relationship("Submission", back_populates="assignment", cascade="all, delete-orphan")
