import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from classroom.core.current_user import get_current_user
from classroom.core.deps import get_db
from classroom.core.permissions import require_teacher
from classroom.models.course import Course
from classroom.models.enrollment import Enrollment
from classroom.models.user import User, UserRole
from classroom.schemas.course import CourseCreate, CourseRead

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=list[CourseRead])
def list_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # catalogue for enrolling; assignments and quizzes stay behind enrollment
    return db.query(Course).order_by(Course.title.asc(), Course.id.asc()).all()


@router.post("/", response_model=CourseRead, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    course = Course(title=payload.title, description=payload.description, teacher_id=teacher.id)
    db.add(course)
    db.commit()
    db.refresh(course)

    logger.info("Course %s created by teacher %s", course.id, teacher.id)
    return course


@router.get("/me", response_model=list[CourseRead])
def my_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Courses the user teaches, or is enrolled in when a student."""
    query = db.query(Course)
    if current_user.role == UserRole.teacher:
        query = query.filter(Course.teacher_id == current_user.id)
    else:
        query = query.join(Enrollment, Enrollment.course_id == Course.id).filter(
            Enrollment.student_id == current_user.id
        )
    return query.order_by(Course.id.asc()).all()
