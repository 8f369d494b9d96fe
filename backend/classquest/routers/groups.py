"""Group controllers.

Endpoints implemented:
- POST, GET /api/groups
- GET, PUT, DELETE /api/groups/{group_id}
- POST /api/groups/{group_id}/members
- DELETE /api/groups/{group_id}/members/{member_id}
- GET /api/groups/{group_id}/statistics
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models
from ..auth import get_current_user
from ..database import get_session
from ..schemas import GroupIn, GroupMembersIn, GroupUpdate
from ..services import GroupService

router = APIRouter(prefix="/api/groups", tags=["groups"])


@router.post("", status_code=201)
def create_group(payload: GroupIn, user: models.User = Depends(get_current_user),
                 session: Session = Depends(get_session)):
    return GroupService(session, user).create(payload.course_id, payload.name, payload.description)


@router.get("")
def list_groups(course_id: int, user: models.User = Depends(get_current_user),
                session: Session = Depends(get_session)):
    return GroupService(session, user).list(course_id)


@router.get("/{group_id}")
def get_group(group_id: int, user: models.User = Depends(get_current_user),
              session: Session = Depends(get_session)):
    return GroupService(session, user).get(group_id)


@router.put("/{group_id}")
def update_group(group_id: int, payload: GroupUpdate, user: models.User = Depends(get_current_user),
                 session: Session = Depends(get_session)):
    return GroupService(session, user).update(group_id, payload.model_dump(exclude_unset=True, exclude_none=True))


@router.delete("/{group_id}", status_code=204)
def delete_group(group_id: int, user: models.User = Depends(get_current_user),
                 session: Session = Depends(get_session)):
    GroupService(session, user).delete(group_id)


@router.post("/{group_id}/members")
def assign_members(group_id: int, payload: GroupMembersIn, user: models.User = Depends(get_current_user),
                   session: Session = Depends(get_session)):
    return GroupService(session, user).assign_members(group_id, payload.member_ids)


@router.delete("/{group_id}/members/{member_id}")
def remove_member(group_id: int, member_id: int, user: models.User = Depends(get_current_user),
                  session: Session = Depends(get_session)):
    return GroupService(session, user).remove_member(group_id, member_id)


@router.get("/{group_id}/statistics")
def group_statistics(group_id: int, user: models.User = Depends(get_current_user),
                     session: Session = Depends(get_session)):
    return GroupService(session, user).statistics(group_id)
