"""Character controllers: classes, creation and teacher stat adjustments.

Endpoints implemented:
- GET /api/characters/classes
- POST /api/characters
- GET /api/characters/check
- GET /api/characters/course/{course_id}
- GET /api/characters/{character_id}
- POST /api/characters/{character_id}/stats
- PUT /api/characters/stats
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models
from ..auth import get_current_user
from ..database import get_session
from ..schemas import BulkStatAdjustIn, CharacterIn, StatAdjustIn
from ..services import CharacterService
from ..stats import StatDelta

router = APIRouter(prefix="/api/characters", tags=["characters"])


@router.get("/classes")
def character_classes(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return CharacterService(session, user).list_classes()


@router.post("", status_code=201)
def create_character(payload: CharacterIn, user: models.User = Depends(get_current_user),
                     session: Session = Depends(get_session)):
    return CharacterService(session, user).create(payload.course_id, payload.class_id, payload.name, payload.appearance)


@router.get("/check")
def has_character(course_id: int, user: models.User = Depends(get_current_user),
                  session: Session = Depends(get_session)):
    return CharacterService(session, user).has_character(course_id)


@router.get("/course/{course_id}")
def my_character(course_id: int, user: models.User = Depends(get_current_user),
                 session: Session = Depends(get_session)):
    return CharacterService(session, user).for_course(course_id)


@router.put("/stats")
def adjust_stats_bulk(payload: BulkStatAdjustIn, user: models.User = Depends(get_current_user),
                      session: Session = Depends(get_session)):
    return CharacterService(session, user).adjust_stats_bulk([item.model_dump() for item in payload.items])


@router.get("/{character_id}")
def get_character(character_id: int, user: models.User = Depends(get_current_user),
                  session: Session = Depends(get_session)):
    return CharacterService(session, user).get(character_id)


@router.post("/{character_id}/stats")
def adjust_stats(character_id: int, payload: StatAdjustIn, user: models.User = Depends(get_current_user),
                 session: Session = Depends(get_session)):
    delta = StatDelta(experience=payload.experience, gold=payload.gold, energy=payload.energy, health=payload.health)
    return CharacterService(session, user).adjust_stats(character_id, delta, payload.reason)
