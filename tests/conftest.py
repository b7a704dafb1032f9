import os
from datetime import datetime, timedelta, timezone

TEST_DB_FILE = "test_classroom.db"
os.environ["DATABASE_URL"] = f"sqlite:///./{TEST_DB_FILE}"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from classroom.core.deps import get_db  # noqa: E402
from classroom.core.security import create_access_token, hash_password  # noqa: E402
from classroom.db.base import Base  # noqa: E402
from classroom.db.session import SessionLocal, engine  # noqa: E402
from classroom.main import app  # noqa: E402
from classroom.models.assignment import Assignment  # noqa: E402
from classroom.models.course import Course  # noqa: E402
from classroom.models.enrollment import Enrollment  # noqa: E402
from classroom.models.quiz import Quiz, QuizQuestion  # noqa: E402
from classroom.models.user import User  # noqa: E402

PASSWORD = "password123"
# hashing is slow on purpose; do it once for every seeded user
PASSWORD_HASH = hash_password(PASSWORD)


def override_get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture(scope="session", autouse=True)
def cleanup_test_db():
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def seed_data():
    """Fresh schema plus a minimal dataset for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        student = User(email="student1@example.com", full_name="Student One", role="student", hashed_password=PASSWORD_HASH)
        other_student = User(email="student2@example.com", full_name="Student Two", role="student", hashed_password=PASSWORD_HASH)
        teacher = User(email="teacher1@example.com", full_name="Teacher One", role="teacher", hashed_password=PASSWORD_HASH)
        other_teacher = User(email="teacher2@example.com", full_name="Teacher Two", role="teacher", hashed_password=PASSWORD_HASH)
        db.add_all([student, other_student, teacher, other_teacher])
        db.commit()

        course = Course(title="CS5004", teacher_id=teacher.id)
        db.add(course)
        db.commit()

        db.add_all(
            [
                Enrollment(course_id=course.id, student_id=student.id),
                Enrollment(course_id=course.id, student_id=other_student.id),
            ]
        )

        # future due date so submissions are on time
        assignment = Assignment(
            course_id=course.id,
            title="HW1",
            due_date=utcnow() + timedelta(days=1),
            max_points=100,
            submission_type="text",
            allow_resubmission=True,
            max_resubmissions=3,
        )
        db.add(assignment)
        db.commit()

        ids = {
            "student": student.id,
            "other_student": other_student.id,
            "teacher": teacher.id,
            "other_teacher": other_teacher.id,
            "course": course.id,
            "assignment": assignment.id,
        }
    finally:
        db.close()

    yield ids


@pytest.fixture()
def client():
    """Test client that uses the test DB session via dependency override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth_header(user_id: int) -> dict:
    token = create_access_token(data={"sub": str(user_id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def student_headers(seed_data):
    return auth_header(seed_data["student"])


@pytest.fixture()
def other_student_headers(seed_data):
    return auth_header(seed_data["other_student"])


@pytest.fixture()
def teacher_headers(seed_data):
    return auth_header(seed_data["teacher"])


@pytest.fixture()
def other_teacher_headers(seed_data):
    return auth_header(seed_data["other_teacher"])


@pytest.fixture()
def make_assignment(seed_data):
    """Create an assignment in the seeded course; keyword args override the policy."""

    def _make(**overrides) -> int:
        fields = {
            "course_id": seed_data["course"],
            "title": "Policy assignment",
            "due_date": utcnow() + timedelta(days=1),
            "max_points": 100,
            "submission_type": "text",
            "allow_late_submission": False,
            "late_penalty": 0,
            "allow_resubmission": True,
            "max_resubmissions": 3,
        }
        fields.update(overrides)
        db = SessionLocal()
        try:
            a = Assignment(**fields)
            db.add(a)
            db.commit()
            return a.id
        finally:
            db.close()

    return _make


@pytest.fixture()
def make_quiz(seed_data):
    """Quiz with ``count`` multiple-choice questions; option 1 is always correct."""

    def _make(count: int = 5, points: float = 2, max_attempts: int = 1) -> dict:
        db = SessionLocal()
        try:
            quiz = Quiz(
                course_id=seed_data["course"],
                title="Quiz 1",
                max_attempts=max_attempts,
                questions=[
                    QuizQuestion(
                        position=i,
                        prompt=f"Question {i + 1}",
                        question_type="multiple-choice",
                        options=[
                            {"text": "wrong", "is_correct": False},
                            {"text": "right", "is_correct": True},
                            {"text": "also wrong", "is_correct": False},
                        ],
                        points=points,
                    )
                    for i in range(count)
                ],
            )
            db.add(quiz)
            db.commit()
            return {"id": quiz.id, "question_ids": [q.id for q in quiz.questions]}
        finally:
            db.close()

    return _make
