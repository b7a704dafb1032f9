from fastapi import APIRouter, Depends, status
from sqlalchemy import case, func
from sqlalchemy.orm import Session

from classroom.core.current_user import get_current_user
from classroom.core.deps import get_db
from classroom.core.permissions import ensure_course_teacher, require_student, require_teacher
from classroom.models.assignment import Assignment
from classroom.models.submission import Submission, SubmissionStatus
from classroom.models.user import User
from classroom.routers.assignments import ensure_assignment_exists
from classroom.schemas.submission import (
    FeedbackCreate,
    SubmissionAnalytics,
    SubmissionCreate,
    SubmissionGradeUpdate,
    SubmissionHistory,
    SubmissionRead,
)
from classroom.services import lifecycle
from classroom.services.versioning import SubmissionContent

router = APIRouter()

# letter bands over grade as a percentage of max points
GRADE_BANDS = (
    ("A (90-100)", 90),
    ("B (80-89)", 80),
    ("C (70-79)", 70),
    ("D (60-69)", 60),
    ("F (0-59)", 0),
)


def _content(payload: SubmissionCreate) -> SubmissionContent:
    return SubmissionContent(
        text=payload.text,
        files=tuple(f.model_dump() for f in payload.files),
    )


@router.post(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmissionRead,
    status_code=status.HTTP_201_CREATED,
)
def submit_assignment(
    assignment_id: int,
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    assignment = ensure_assignment_exists(db, assignment_id)
    return lifecycle.submit(db, assignment, me, _content(payload), comments=payload.comments)


@router.put("/submissions/{submission_id}", response_model=SubmissionRead)
def resubmit(
    submission_id: int,
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    sub = lifecycle.get_submission(db, submission_id)
    return lifecycle.resubmit(db, sub, me, _content(payload), comments=payload.comments)


@router.get("/submissions/me", response_model=list[SubmissionRead])
def my_submissions(
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    return (
        db.query(Submission)
        .filter(Submission.student_id == me.id)
        .order_by(Submission.submitted_at.desc())
        .all()
    )


@router.get(
    "/assignments/{assignment_id}/submissions",
    response_model=list[SubmissionRead],
)
def list_submissions_for_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    assignment = ensure_assignment_exists(db, assignment_id)
    ensure_course_teacher(db, assignment.course_id, teacher)

    return (
        db.query(Submission)
        .filter(Submission.assignment_id == assignment_id)
        .order_by(Submission.submitted_at.desc())
        .all()
    )


@router.get("/submissions/{submission_id}", response_model=SubmissionRead)
def get_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    sub = lifecycle.get_submission(db, submission_id)
    lifecycle.ensure_can_view(db, sub, current_user)
    return sub


@router.get("/submissions/{submission_id}/history", response_model=SubmissionHistory)
def submission_history(
    submission_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    sub = lifecycle.get_submission(db, submission_id)
    lifecycle.ensure_can_view(db, sub, current_user)
    return sub


@router.patch("/submissions/{submission_id}/grade", response_model=SubmissionRead)
def grade_submission(
    submission_id: int,
    payload: SubmissionGradeUpdate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    sub = lifecycle.get_submission(db, submission_id)
    return lifecycle.grade(db, sub, teacher, payload.grade, payload.feedback)


@router.post("/submissions/{submission_id}/feedback", response_model=SubmissionRead)
def add_feedback(
    submission_id: int,
    payload: FeedbackCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    sub = lifecycle.get_submission(db, submission_id)
    return lifecycle.add_feedback(db, sub, teacher, payload.feedback, grade=payload.grade)


@router.post("/submissions/{submission_id}/return", response_model=SubmissionRead)
def return_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    sub = lifecycle.get_submission(db, submission_id)
    return lifecycle.return_submission(db, sub, teacher)


@router.delete("/submissions/{submission_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    sub = lifecycle.get_submission(db, submission_id)
    lifecycle.delete_submission(db, sub, teacher)


@router.get(
    "/courses/{course_id}/submissions/analytics",
    response_model=SubmissionAnalytics,
)
def submission_analytics(
    course_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_course_teacher(db, course_id, teacher)

    finished = (SubmissionStatus.graded.value, SubmissionStatus.returned.value)
    agg = (
        db.query(
            func.count(Submission.id).label("total"),
            func.sum(case((Submission.status.in_(finished), 1), else_=0)).label("graded"),
            func.sum(case((Submission.is_late.is_(True), 1), else_=0)).label("late"),
            func.avg(Submission.grade).label("average_grade"),
        )
        .join(Assignment, Submission.assignment_id == Assignment.id)
        .filter(Assignment.course_id == course_id)
        .first()
    )

    graded_rows = (
        db.query(Submission.grade, Assignment.max_points)
        .join(Assignment, Submission.assignment_id == Assignment.id)
        .filter(Assignment.course_id == course_id, Submission.grade.is_not(None))
        .all()
    )

    distribution = {label: 0 for label, _ in GRADE_BANDS}
    for r in graded_rows:
        pct = 100 * r.grade / r.max_points if r.max_points else 0
        for label, floor in GRADE_BANDS:
            if pct >= floor:
                distribution[label] += 1
                break

    total = int(agg.total or 0)
    graded = int(agg.graded or 0)
    avg = round(float(agg.average_grade), 2) if agg.average_grade is not None else None

    return {
        "course_id": course_id,
        "total_submissions": total,
        "graded_submissions": graded,
        "pending_submissions": total - graded,
        "late_submissions": int(agg.late or 0),
        "average_grade": avg,
        "grade_distribution": distribution,
    }
