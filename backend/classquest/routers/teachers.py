"""Teacher controllers.

Endpoints implemented:
- POST, GET /api/teachers
- GET /api/teachers/check
- GET, DELETE /api/teachers/{teacher_id}
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models
from ..auth import get_current_user
from ..database import get_session
from ..permissions import Access
from ..schemas import TeacherIn
from ..services import TeacherService

router = APIRouter(prefix="/api/teachers", tags=["teachers"])


@router.post("", status_code=201)
def create_teacher(payload: TeacherIn, user: models.User = Depends(get_current_user),
                   session: Session = Depends(get_session)):
    Access(session, user).require_admin()
    return TeacherService(session).create(payload.user_id, payload.institution_id, payload.internal_id)


@router.get("")
def list_teachers(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return TeacherService(session).list()


@router.get("/check")
def check_teacher(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return TeacherService(session).check(user)


@router.get("/{teacher_id}")
def get_teacher(teacher_id: int, user: models.User = Depends(get_current_user),
                session: Session = Depends(get_session)):
    return TeacherService(session).get(teacher_id)


@router.delete("/{teacher_id}", status_code=204)
def delete_teacher(teacher_id: int, user: models.User = Depends(get_current_user),
                   session: Session = Depends(get_session)):
    Access(session, user).require_admin()
    TeacherService(session).delete(teacher_id)
