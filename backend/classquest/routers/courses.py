"""Course controllers.

Endpoints implemented:
- POST /api/courses
- GET /api/courses/teaching
- GET /api/courses/enrolled
- GET, PUT, DELETE /api/courses/{course_id}
- POST /api/courses/{course_id}/teachers
- GET /api/courses/{course_id}/groups
- GET /api/courses/{course_id}/unassigned
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models
from ..auth import get_current_user
from ..database import get_session
from ..schemas import CoTeacherIn, CourseIn, CourseUpdate
from ..services import CourseService

router = APIRouter(prefix="/api/courses", tags=["courses"])


@router.post("", status_code=201)
def create_course(payload: CourseIn, user: models.User = Depends(get_current_user),
                  session: Session = Depends(get_session)):
    return CourseService(session, user).create(payload.name, payload.description)


@router.get("/teaching")
def teaching_courses(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return CourseService(session, user).teaching()


@router.get("/enrolled")
def enrolled_courses(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return CourseService(session, user).enrolled()


@router.get("/{course_id}")
def get_course(course_id: int, user: models.User = Depends(get_current_user),
               session: Session = Depends(get_session)):
    return CourseService(session, user).get(course_id)


@router.put("/{course_id}")
def update_course(course_id: int, payload: CourseUpdate, user: models.User = Depends(get_current_user),
                  session: Session = Depends(get_session)):
    return CourseService(session, user).update(course_id, payload.model_dump(exclude_unset=True, exclude_none=True))


@router.delete("/{course_id}", status_code=204)
def delete_course(course_id: int, user: models.User = Depends(get_current_user),
                  session: Session = Depends(get_session)):
    CourseService(session, user).delete(course_id)


@router.post("/{course_id}/teachers")
def add_course_teacher(course_id: int, payload: CoTeacherIn, user: models.User = Depends(get_current_user),
                       session: Session = Depends(get_session)):
    return CourseService(session, user).add_teacher(course_id, payload.teacher_id)


@router.get("/{course_id}/groups")
def course_groups(course_id: int, user: models.User = Depends(get_current_user),
                  session: Session = Depends(get_session)):
    return CourseService(session, user).groups_overview(course_id)


@router.get("/{course_id}/unassigned")
def unassigned_members(course_id: int, user: models.User = Depends(get_current_user),
                       session: Session = Depends(get_session)):
    return CourseService(session, user).unassigned(course_id)
