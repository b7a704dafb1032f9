from fastapi import APIRouter, Depends, status
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from classroom.core.current_user import get_current_user
from classroom.core.deps import get_db
from classroom.core.errors import NotFound, ValidationError
from classroom.core.permissions import (
    ensure_course_teacher,
    ensure_enrolled,
    require_student,
    require_teacher,
)
from classroom.models.quiz import Quiz, QuizQuestion
from classroom.models.quiz_attempt import QuizAttempt
from classroom.models.user import User, UserRole
from classroom.schemas.quiz import (
    QuizAttemptRead,
    QuizCreate,
    QuizGradeOverride,
    QuizQuestionCreate,
    QuizPublicRead,
    QuizQuestionPublic,
    QuizQuestionRead,
    QuizQuestionUpdate,
    QuizRead,
    QuizStart,
    QuizSubmit,
)
from classroom.services import overrides, quizzes
from classroom.services.scoring import SelectedAnswer

router = APIRouter()


@router.post(
    "/courses/{course_id}/quizzes",
    response_model=QuizRead,
    status_code=status.HTTP_201_CREATED,
)
def create_quiz(
    course_id: int,
    payload: QuizCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_course_teacher(db, course_id, teacher)

    quiz = Quiz(
        course_id=course_id,
        title=payload.title,
        description=payload.description,
        max_attempts=payload.max_attempts,
        time_limit_minutes=payload.time_limit_minutes,
        due_date=payload.due_date,
        questions=[
            QuizQuestion(
                position=i,
                prompt=q.prompt,
                question_type=q.question_type.value,
                options=[o.model_dump() for o in q.options],
                correct_answer=q.correct_answer,
                points=q.points,
                explanation=q.explanation,
            )
            for i, q in enumerate(payload.questions)
        ],
    )
    db.add(quiz)
    quizzes.commit(db)
    db.refresh(quiz)
    return quiz


@router.get("/quizzes/{quiz_id}", response_model=QuizPublicRead)
def get_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    quiz = quizzes.get_quiz(db, quiz_id)
    if current_user.role == UserRole.teacher:
        ensure_course_teacher(db, quiz.course_id, current_user)
    else:
        ensure_enrolled(db, quiz.course_id, current_user)

    # answer keys stay server-side
    return QuizPublicRead(
        id=quiz.id,
        course_id=quiz.course_id,
        title=quiz.title,
        description=quiz.description,
        max_attempts=quiz.max_attempts,
        time_limit_minutes=quiz.time_limit_minutes,
        due_date=quiz.due_date,
        total_points=quiz.total_points,
        questions=[QuizQuestionPublic.from_model(q) for q in quiz.questions],
    )


@router.put(
    "/quizzes/{quiz_id}/questions/{question_id}",
    response_model=QuizQuestionRead,
)
def update_question(
    quiz_id: int,
    question_id: int,
    payload: QuizQuestionUpdate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    quiz = quizzes.get_quiz(db, quiz_id)
    ensure_course_teacher(db, quiz.course_id, teacher)

    question = next((q for q in quiz.questions if q.id == question_id), None)
    if question is None:
        raise NotFound("Question not found")

    # the edited question must still carry a usable answer key
    merged = {
        "prompt": question.prompt,
        "question_type": question.question_type,
        "options": question.options or [],
        "correct_answer": question.correct_answer,
        "points": question.points,
        "explanation": question.explanation,
    }
    merged.update(payload.model_dump(exclude_unset=True))
    try:
        checked = QuizQuestionCreate.model_validate(merged)
    except PydanticValidationError as exc:
        raise ValidationError("question", exc.errors()[0]["msg"]) from exc

    question.prompt = checked.prompt
    question.options = [o.model_dump() for o in checked.options]
    question.correct_answer = checked.correct_answer
    question.points = checked.points
    question.explanation = checked.explanation

    quizzes.commit(db)
    db.refresh(question)
    return question


@router.post(
    "/quizzes/{quiz_id}/attempts",
    response_model=QuizAttemptRead,
    status_code=status.HTTP_201_CREATED,
)
def start_attempt(
    quiz_id: int,
    payload: QuizStart | None = None,
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    quiz = quizzes.get_quiz(db, quiz_id)
    question_count = payload.question_count if payload else None
    return quizzes.start_attempt(db, quiz, me, question_count=question_count)


@router.get("/quizzes/{quiz_id}/attempts", response_model=list[QuizAttemptRead])
def list_quiz_attempts(
    quiz_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    quiz = quizzes.get_quiz(db, quiz_id)
    ensure_course_teacher(db, quiz.course_id, teacher)

    return (
        db.query(QuizAttempt)
        .filter(QuizAttempt.quiz_id == quiz_id)
        .order_by(QuizAttempt.student_id.asc(), QuizAttempt.attempt_number.asc())
        .all()
    )


@router.get("/quiz-attempts/me", response_model=list[QuizAttemptRead])
def my_attempts(
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    return (
        db.query(QuizAttempt)
        .filter(QuizAttempt.student_id == me.id)
        .order_by(QuizAttempt.started_at.desc(), QuizAttempt.id.desc())
        .all()
    )


@router.get("/quiz-attempts/{attempt_id}", response_model=QuizAttemptRead)
def get_attempt(
    attempt_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    attempt = quizzes.get_attempt(db, attempt_id)
    quizzes.ensure_can_view(db, attempt, current_user)
    return attempt


@router.post("/quiz-attempts/{attempt_id}/submit", response_model=QuizAttemptRead)
def submit_attempt(
    attempt_id: int,
    payload: QuizSubmit,
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    attempt = quizzes.get_attempt(db, attempt_id)
    answers = [SelectedAnswer(a.question_id, a.selected_value) for a in payload.answers]
    return quizzes.submit_attempt(db, attempt, me, answers, time_spent=payload.time_spent)


@router.put("/quiz-attempts/{attempt_id}/grade", response_model=QuizAttemptRead)
def override_grade(
    attempt_id: int,
    payload: QuizGradeOverride,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    attempt = quizzes.get_attempt(db, attempt_id)
    return overrides.override_quiz_grade(
        db, attempt, teacher, payload.teacher_grade, payload.teacher_feedback
    )


@router.post("/quiz-attempts/{attempt_id}/rescore", response_model=QuizAttemptRead)
def rescore_attempt(
    attempt_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    attempt = quizzes.get_attempt(db, attempt_id)
    return quizzes.rescore(db, attempt, teacher)
