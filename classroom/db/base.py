# import every model here so Base.metadata knows all tables
from classroom.db.base_class import Base  # noqa: F401
from classroom.models.assignment import Assignment  # noqa: F401
from classroom.models.course import Course  # noqa: F401
from classroom.models.enrollment import Enrollment  # noqa: F401
from classroom.models.quiz import Quiz, QuizQuestion  # noqa: F401
from classroom.models.quiz_attempt import QuizAnswer, QuizAttempt  # noqa: F401
from classroom.models.submission import FeedbackEntry, Submission, SubmissionVersion  # noqa: F401
from classroom.models.user import User  # noqa: F401
