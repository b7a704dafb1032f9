from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from classroom.core.current_user import get_current_user
from classroom.core.deps import get_db
from classroom.core.errors import NotFound
from classroom.core.permissions import ensure_course_teacher, ensure_enrolled, require_teacher
from classroom.models.assignment import Assignment
from classroom.models.course import Course
from classroom.models.user import User, UserRole
from classroom.schemas.assignment import AssignmentCreate, AssignmentRead

router = APIRouter()


def ensure_assignment_exists(db: Session, assignment_id: int) -> Assignment:
    a = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not a:
        raise NotFound("Assignment not found")
    return a


def _ensure_can_view_course(db: Session, course_id: int, user: User) -> None:
    if user.role == UserRole.teacher:
        ensure_course_teacher(db, course_id, user)
    else:
        ensure_enrolled(db, course_id, user)


@router.get("/courses/{course_id}/assignments", response_model=list[AssignmentRead])
def list_assignments(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not db.query(Course).filter(Course.id == course_id).first():
        raise NotFound("Course not found")
    _ensure_can_view_course(db, course_id, current_user)

    return (
        db.query(Assignment)
        .filter(Assignment.course_id == course_id)
        .order_by(Assignment.due_date.asc(), Assignment.id.asc())
        .all()
    )


@router.post(
    "/courses/{course_id}/assignments",
    response_model=AssignmentRead,
    status_code=status.HTTP_201_CREATED,
)
def create_assignment(
    course_id: int,
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_course_teacher(db, course_id, teacher)

    a = Assignment(
        course_id=course_id,
        title=payload.title,
        instructions=payload.instructions,
        due_date=payload.due_date,
        max_points=payload.max_points,
        submission_type=payload.submission_type.value,
        allow_late_submission=payload.allow_late_submission,
        late_penalty=payload.late_penalty,
        allow_resubmission=payload.allow_resubmission,
        max_resubmissions=payload.max_resubmissions,
        resubmission_deadline=payload.resubmission_deadline,
    )
    db.add(a)
    db.commit()
    db.refresh(a)
    return a


@router.get("/assignments/{assignment_id}", response_model=AssignmentRead)
def get_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    a = ensure_assignment_exists(db, assignment_id)
    _ensure_can_view_course(db, a.course_id, current_user)
    return a
