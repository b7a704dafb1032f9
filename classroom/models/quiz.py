import enum

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from classroom.core.config import DEFAULT_QUIZ_ATTEMPTS
from classroom.db.base_class import Base


class QuestionType(str, enum.Enum):
    multiple_choice = "multiple-choice"
    true_false = "true-false"
    short_answer = "short-answer"


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    max_attempts = Column(Integer, nullable=False, default=DEFAULT_QUIZ_ATTEMPTS)
    time_limit_minutes = Column(Integer, nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    course = relationship("Course", back_populates="quizzes")

    questions = relationship(
        "QuizQuestion",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="QuizQuestion.position",
    )
    attempts = relationship("QuizAttempt", back_populates="quiz", cascade="all, delete-orphan")

    @property
    def total_points(self) -> float:
        return sum(q.points for q in self.questions)


class QuizQuestion(Base):
    __tablename__ = "quiz_questions"

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)

    prompt = Column(Text, nullable=False)
    question_type = Column(String(20), nullable=False)
    # [{"text": str, "is_correct": bool}], multiple-choice only
    options = Column(JSON, nullable=False, default=list)
    # expected value for true-false and short-answer questions
    correct_answer = Column(JSON, nullable=True)
    points = Column(Float, nullable=False, default=1)
    explanation = Column(Text, nullable=True)

    quiz = relationship("Quiz", back_populates="questions")
