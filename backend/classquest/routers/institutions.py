"""Institution controllers; writes are admin-only.

Endpoints implemented:
- POST, GET /api/institutions
- GET, PUT, DELETE /api/institutions/{institution_id}
- POST /api/institutions/{institution_id}/teachers
- DELETE /api/institutions/{institution_id}/teachers/{teacher_id}
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models
from ..auth import get_current_user
from ..database import get_session
from ..permissions import Access
from ..schemas import AssignTeacherIn, InstitutionIn, InstitutionUpdate
from ..services import InstitutionService

router = APIRouter(prefix="/api/institutions", tags=["institutions"])


def _admin_service(user: models.User, session: Session) -> InstitutionService:
    Access(session, user).require_admin()
    return InstitutionService(session)


@router.post("", status_code=201)
def create_institution(payload: InstitutionIn, user: models.User = Depends(get_current_user),
                       session: Session = Depends(get_session)):
    return _admin_service(user, session).create(payload.model_dump())


@router.get("")
def list_institutions(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return InstitutionService(session).list()


@router.get("/{institution_id}")
def get_institution(institution_id: int, user: models.User = Depends(get_current_user),
                    session: Session = Depends(get_session)):
    return InstitutionService(session).get(institution_id)


@router.put("/{institution_id}")
def update_institution(institution_id: int, payload: InstitutionUpdate,
                       user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return _admin_service(user, session).update(institution_id, payload.model_dump(exclude_unset=True, exclude_none=True))


@router.delete("/{institution_id}", status_code=204)
def delete_institution(institution_id: int, user: models.User = Depends(get_current_user),
                       session: Session = Depends(get_session)):
    _admin_service(user, session).delete(institution_id)


@router.post("/{institution_id}/teachers")
def assign_teacher(institution_id: int, payload: AssignTeacherIn,
                   user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return _admin_service(user, session).assign_teacher(institution_id, payload.teacher_id, payload.internal_id)


@router.delete("/{institution_id}/teachers/{teacher_id}")
def remove_teacher(institution_id: int, teacher_id: int, user: models.User = Depends(get_current_user),
                   session: Session = Depends(get_session)):
    return _admin_service(user, session).remove_teacher(institution_id, teacher_id)
