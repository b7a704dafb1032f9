from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from classroom.models.submission import SubmissionStatus


class FileRef(BaseModel):
    """Metadata for a file already stored by the upload service."""

    name: str = Field(min_length=1)
    size: int = Field(ge=0)
    content_type: str
    url: str

    class Config:
        frozen = True


class SubmissionCreate(BaseModel):
    text: Optional[str] = None
    files: list[FileRef] = []
    comments: Optional[str] = None


class SubmissionVersionRead(BaseModel):
    version: int
    submitted_at: datetime
    text_submission: Optional[str] = None
    file_submissions: tuple[FileRef, ...] = ()
    is_late: bool
    comments: Optional[str] = None

    class Config:
        from_attributes = True
        frozen = True


class FeedbackEntryRead(BaseModel):
    version: int
    raw_grade: Optional[float] = None
    grade: Optional[float] = None
    feedback: str
    graded_at: datetime
    graded_by_id: Optional[int] = None

    class Config:
        from_attributes = True
        frozen = True


class SubmissionRead(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    current_version: int
    status: SubmissionStatus
    text_submission: Optional[str]
    file_submissions: list[FileRef]
    submitted_at: datetime
    is_late: bool

    # grade is the effective (late-penalty adjusted) value; raw_grade is what the teacher entered
    grade: Optional[float] = None
    raw_grade: Optional[float] = None
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None
    graded_by_id: Optional[int] = None

    class Config:
        from_attributes = True


class SubmissionHistory(SubmissionRead):
    versions: tuple[SubmissionVersionRead, ...]
    feedback_history: tuple[FeedbackEntryRead, ...]


class SubmissionGradeUpdate(BaseModel):
    grade: float = Field(allow_inf_nan=False)
    feedback: Optional[str] = None


class FeedbackCreate(BaseModel):
    feedback: str
    grade: Optional[float] = Field(default=None, allow_inf_nan=False)


class SubmissionAnalytics(BaseModel):
    course_id: int
    total_submissions: int
    graded_submissions: int
    pending_submissions: int
    late_submissions: int
    average_grade: Optional[float] = None
    grade_distribution: dict[str, int]
