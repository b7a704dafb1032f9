from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from classroom.core.current_user import get_current_user
from classroom.core.errors import AuthorizationDenied, NotFound
from classroom.models.course import Course
from classroom.models.enrollment import Enrollment
from classroom.models.user import User, UserRole


def require_teacher(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.teacher:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Teacher role required",
        )
    return current_user


def require_student(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.student:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Student role required",
        )
    return current_user


def ensure_course_teacher(db: Session, course_id: int, user: User) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise NotFound("Course not found")
    if user.role != UserRole.teacher or course.teacher_id != user.id:
        raise AuthorizationDenied("Only the course teacher can do this")
    return course


def ensure_enrolled(db: Session, course_id: int, user: User) -> None:
    enrolled = (
        db.query(Enrollment)
        .filter(Enrollment.course_id == course_id, Enrollment.student_id == user.id)
        .first()
        is not None
    )
    if not enrolled:
        raise AuthorizationDenied("Not enrolled in this course")
