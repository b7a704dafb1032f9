from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from classroom.core.config import DEFAULT_MAX_POINTS, DEFAULT_MAX_RESUBMISSIONS
from classroom.models.assignment import SubmissionType


class AssignmentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    instructions: Optional[str] = None
    due_date: datetime
    max_points: float = Field(default=DEFAULT_MAX_POINTS, gt=0)
    submission_type: SubmissionType = SubmissionType.both

    allow_late_submission: bool = False
    late_penalty: float = Field(default=0, ge=0, le=100)

    allow_resubmission: bool = True
    max_resubmissions: int = Field(default=DEFAULT_MAX_RESUBMISSIONS, ge=1)
    resubmission_deadline: Optional[datetime] = None

    @field_validator("due_date", "resubmission_deadline")
    @classmethod
    def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # stored without offset, so everything is kept in UTC
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _penalty_needs_late_policy(self):
        # a penalty without late submissions would never apply
        if self.late_penalty and not self.allow_late_submission:
            raise ValueError("late_penalty requires allow_late_submission")
        return self


class AssignmentRead(BaseModel):
    id: int
    course_id: int
    title: str
    instructions: Optional[str]
    due_date: datetime
    max_points: float
    submission_type: SubmissionType
    allow_late_submission: bool
    late_penalty: float
    allow_resubmission: bool
    max_resubmissions: int
    resubmission_deadline: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True
