"""Event controllers: global and course events and their application.

Endpoints implemented:
- POST, GET /api/events
- POST /api/events/random
- GET /api/events/history/character/{character_id}
- GET, PUT, DELETE /api/events/{event_id}
- POST /api/events/{event_id}/apply
- POST /api/events/{event_id}/apply-group
- GET /api/events/{event_id}/history
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models
from ..auth import get_current_user
from ..database import get_session
from ..schemas import EventApplyIn, EventGroupIn, EventIn, EventUpdate
from ..services import EventService

router = APIRouter(prefix="/api/events", tags=["events"])


@router.post("", status_code=201)
def create_event(payload: EventIn, user: models.User = Depends(get_current_user),
                 session: Session = Depends(get_session)):
    return EventService(session, user).create(payload.model_dump())


@router.get("")
def list_events(course_id: Optional[int] = None, user: models.User = Depends(get_current_user),
                session: Session = Depends(get_session)):
    return EventService(session, user).list(course_id)


@router.post("/random")
def apply_random_event(payload: EventGroupIn, user: models.User = Depends(get_current_user),
                       session: Session = Depends(get_session)):
    return EventService(session, user).apply_random(payload.group_id)


@router.get("/history/character/{character_id}")
def character_event_history(character_id: int, user: models.User = Depends(get_current_user),
                            session: Session = Depends(get_session)):
    return EventService(session, user).history_for_character(character_id)


@router.get("/{event_id}")
def get_event(event_id: int, user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return EventService(session, user).get(event_id)


@router.put("/{event_id}")
def update_event(event_id: int, payload: EventUpdate, user: models.User = Depends(get_current_user),
                 session: Session = Depends(get_session)):
    return EventService(session, user).update(event_id, payload.model_dump(exclude_unset=True, exclude_none=True))


@router.delete("/{event_id}", status_code=204)
def delete_event(event_id: int, user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    EventService(session, user).delete(event_id)


@router.post("/{event_id}/apply")
def apply_event(event_id: int, payload: EventApplyIn, user: models.User = Depends(get_current_user),
                session: Session = Depends(get_session)):
    return EventService(session, user).apply(event_id, payload.character_ids)


@router.post("/{event_id}/apply-group")
def apply_event_to_group(event_id: int, payload: EventGroupIn, user: models.User = Depends(get_current_user),
                         session: Session = Depends(get_session)):
    return EventService(session, user).apply_to_group(event_id, payload.group_id)


@router.get("/{event_id}/history")
def event_history(event_id: int, user: models.User = Depends(get_current_user),
                  session: Session = Depends(get_session)):
    return EventService(session, user).history_for_event(event_id)
