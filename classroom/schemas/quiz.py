from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from classroom.core.config import DEFAULT_QUIZ_ATTEMPTS
from classroom.models.quiz import QuestionType


class QuizOption(BaseModel):
    text: str
    is_correct: bool = False


class QuizQuestionCreate(BaseModel):
    prompt: str = Field(min_length=1)
    question_type: QuestionType
    options: list[QuizOption] = []
    correct_answer: Any = None
    points: float = Field(default=1, ge=0)
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def _has_answer_key(self):
        if self.question_type == QuestionType.multiple_choice:
            if len(self.options) < 2:
                raise ValueError("multiple-choice questions need at least 2 options")
            if not any(o.is_correct for o in self.options):
                raise ValueError("at least one option must be marked as correct")
        elif self.correct_answer is None:
            raise ValueError(f"{self.question_type.value} questions need a correct_answer")
        return self


class QuizQuestionUpdate(BaseModel):
    prompt: Optional[str] = None
    options: Optional[list[QuizOption]] = None
    correct_answer: Any = None
    points: Optional[float] = Field(default=None, ge=0)
    explanation: Optional[str] = None


class QuizCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    max_attempts: int = Field(default=DEFAULT_QUIZ_ATTEMPTS, ge=1)
    time_limit_minutes: Optional[int] = Field(default=None, ge=1)
    due_date: Optional[datetime] = None
    questions: list[QuizQuestionCreate] = Field(min_length=1)


class QuizQuestionPublic(BaseModel):
    id: int
    position: int
    prompt: str
    question_type: QuestionType
    options: list[str]
    points: float

    @classmethod
    def from_model(cls, question) -> "QuizQuestionPublic":
        return cls(
            id=question.id,
            position=question.position,
            prompt=question.prompt,
            question_type=question.question_type,
            options=[o["text"] for o in question.options or []],
            points=question.points,
        )


class QuizQuestionRead(BaseModel):
    id: int
    position: int
    prompt: str
    question_type: QuestionType
    options: list[QuizOption]
    correct_answer: Any = None
    points: float
    explanation: Optional[str] = None

    class Config:
        from_attributes = True


class QuizRead(BaseModel):
    id: int
    course_id: int
    title: str
    description: Optional[str] = None
    max_attempts: int
    time_limit_minutes: Optional[int] = None
    due_date: Optional[datetime] = None
    total_points: float
    questions: list[QuizQuestionRead]

    class Config:
        from_attributes = True


class QuizPublicRead(BaseModel):
    id: int
    course_id: int
    title: str
    description: Optional[str] = None
    max_attempts: int
    time_limit_minutes: Optional[int] = None
    due_date: Optional[datetime] = None
    total_points: float
    questions: list[QuizQuestionPublic]


class QuizStart(BaseModel):
    question_count: Optional[int] = Field(default=None, ge=1)


class QuizAnswerIn(BaseModel):
    question_id: int
    selected_value: Any


class QuizSubmit(BaseModel):
    answers: list[QuizAnswerIn]
    time_spent: int = Field(default=0, ge=0)


class QuizAnswerRead(BaseModel):
    question_id: int
    answer: Any = None
    is_correct: bool
    points: float

    class Config:
        from_attributes = True


class QuizAttemptRead(BaseModel):
    id: int
    quiz_id: int
    student_id: int
    attempt_number: int
    question_ids: list[int]
    answers: list[QuizAnswerRead]
    score: float
    total_points: float
    percentage: int
    time_spent: int
    started_at: datetime
    submitted_at: Optional[datetime] = None
    is_completed: bool
    teacher_grade: Optional[float] = None
    teacher_feedback: Optional[str] = None
    graded_at: Optional[datetime] = None
    graded_by_id: Optional[int] = None

    class Config:
        from_attributes = True


class QuizGradeOverride(BaseModel):
    teacher_grade: float = Field(allow_inf_nan=False)
    teacher_feedback: Optional[str] = None
