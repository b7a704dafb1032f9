import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classroom.core.deps import get_db
from classroom.core.errors import NotFound
from classroom.core.permissions import require_student
from classroom.models.course import Course
from classroom.models.enrollment import Enrollment
from classroom.models.user import User
from classroom.schemas.enrollment import EnrollmentCreate, EnrollmentOut

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
def enroll_me(
    payload: EnrollmentCreate,
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    """Join a course. Submitting work and taking quizzes both need this first."""
    if not db.query(Course).filter(Course.id == payload.course_id).first():
        raise NotFound("Course not found")

    enrollment = Enrollment(student_id=me.id, course_id=payload.course_id)
    db.add(enrollment)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already enrolled") from exc

    db.refresh(enrollment)
    logger.info("Student %s enrolled in course %s", me.id, payload.course_id)
    return enrollment


@router.get("/me", response_model=list[EnrollmentOut])
def my_enrollments(
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    return (
        db.query(Enrollment)
        .filter(Enrollment.student_id == me.id)
        .order_by(Enrollment.created_at.asc(), Enrollment.id.asc())
        .all()
    )
