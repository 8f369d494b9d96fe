"""Disaster, fortune and neutral events applied to characters.

Applying an event writes one `EventHistory` row per character with the
change that actually landed after clamping, and mutates the stats in the
same transaction.
"""

import logging
import random
from datetime import datetime, timezone

from sqlmodel import Session

from .. import models, repositories
from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..permissions import Access
from ..stats import StatDelta, apply_delta

logger = logging.getLogger(__name__)


def event_out(event: models.Event) -> dict:
    return {
        "id": event.id,
        "name": event.name,
        "description": event.description,
        "type": event.type,
        "rank": event.rank,
        "experience": event.experience,
        "gold": event.gold,
        "health": event.health,
        "energy": event.energy,
        "is_active": event.is_active,
        "is_global": event.is_global,
        "course_id": event.course_id,
        "created_by": event.created_by,
        "created_at": event.created_at,
    }


def history_out(row: models.EventHistory) -> dict:
    return {
        "id": row.id,
        "event_id": row.event_id,
        "character_id": row.character_id,
        "experience_change": row.experience_change,
        "gold_change": row.gold_change,
        "health_change": row.health_change,
        "energy_change": row.energy_change,
        "applied_at": row.applied_at,
    }


class EventService:
    def __init__(self, session: Session, user: models.User, rng: random.Random = None):
        self.session = session
        self.user = user
        self.access = Access(session, user)
        self.repo = repositories.EventRepository(session)
        self.character_repo = repositories.CharacterRepository(session)
        self.member_repo = repositories.MemberRepository(session)
        self.rng = rng or random.Random()

    def _get(self, event_id: int) -> models.Event:
        event = self.repo.get(event_id)
        if not event:
            raise NotFoundError("event", event_id)
        return event

    def _require_manage(self, event: models.Event) -> None:
        if event.is_global:
            self.access.require_admin()
        else:
            self.access.require_course_teacher(event.course_id)

    def create(self, data: dict) -> dict:
        if data.get("is_global"):
            self.access.require_admin()
        else:
            self.access.require_course_teacher(data["course_id"])
        event = self.repo.save(models.Event(created_by=self.user.id, **data))
        logger.info("event %s created global=%s course=%s", event.id, event.is_global, event.course_id)
        return event_out(event)

    def list(self, course_id: int = None) -> list:
        if course_id is not None:
            self.access.require_participant(course_id)
        return [event_out(e) for e in self.repo.available_for_course(course_id)]

    def get(self, event_id: int) -> dict:
        event = self._get(event_id)
        if not event.is_global:
            self.access.require_participant(event.course_id)
        return event_out(event)

    def update(self, event_id: int, changes: dict) -> dict:
        event = self._get(event_id)
        self._require_manage(event)
        for key, value in changes.items():
            setattr(event, key, value)
        event.updated_at = datetime.now(timezone.utc)
        self.repo.save(event)
        return event_out(event)

    def delete(self, event_id: int) -> None:
        event = self._get(event_id)
        self._require_manage(event)
        if self.repo.history_for_event(event.id):
            raise ConflictError("event has been applied; deactivate it instead")
        self.repo.delete(event)

    def apply(self, event_id: int, character_ids: list) -> dict:
        """Apply an event to the listed characters; unknown ids are skipped and reported."""
        event = self._get(event_id)
        found = {c.id: c for c in self.character_repo.list_by_ids(set(character_ids))}
        ordered = [found[i] for i in dict.fromkeys(character_ids) if i in found]
        skipped = [i for i in dict.fromkeys(character_ids) if i not in found]
        return self._apply(event, ordered, skipped)

    def apply_to_group(self, event_id: int, group_id: int) -> dict:
        event = self._get(event_id)
        group = self._group(group_id)
        return self._apply(event, self.character_repo.list_by_group(group.id), [])

    def apply_random(self, group_id: int) -> dict:
        """Pick a random active event available to the group's course and apply it to the group."""
        group = self._group(group_id)
        events = self.repo.available_for_course(group.course_id, active_only=True)
        if not events:
            raise NotFoundError("active event")
        event = self.rng.choice(events)
        return self._apply(event, self.character_repo.list_by_group(group.id), [])

    def _group(self, group_id: int) -> models.Group:
        group = repositories.GroupRepository(self.session).get(group_id)
        if not group:
            raise NotFoundError("group", group_id)
        self.access.require_course_teacher(group.course_id)
        return group

    def _apply(self, event: models.Event, characters: list, skipped: list) -> dict:
        if not event.is_active:
            raise ConflictError("event is not active")
        if not characters:
            if event.course_id is not None:
                self.access.require_course_teacher(event.course_id)
            else:
                self.access.require_teacher()
        members = {m.id: m for m in self.member_repo.list_by_ids({c.member_id for c in characters})} if characters else {}
        for course_id in {m.course_id for m in members.values()}:
            if not self.access.teaches(course_id):
                raise ForbiddenError("only teachers of the course can apply events to its characters")
            if not event.is_global and event.course_id != course_id:
                raise ValidationError("event is not available in this character's course")

        delta = StatDelta(experience=event.experience, gold=event.gold, energy=event.energy, health=event.health)
        now = datetime.now(timezone.utc)
        impacts = []
        for character in characters:
            applied = apply_delta(character, delta)
            character.updated_at = now
            self.session.add(character)
            self.session.add(models.EventHistory(
                event_id=event.id,
                character_id=character.id,
                experience_change=applied.experience,
                gold_change=applied.gold,
                health_change=applied.health,
                energy_change=applied.energy,
                applied_at=now,
            ))
            impacts.append({
                "character_id": character.id,
                "name": character.name,
                "experience_change": applied.experience,
                "gold_change": applied.gold,
                "health_change": applied.health,
                "energy_change": applied.energy,
            })
        self.session.commit()
        logger.info(
            "event %s (%s/%s) applied to %s characters, %s skipped",
            event.id, event.type, event.rank, len(impacts), len(skipped),
        )
        return {
            "event": event_out(event),
            "affected_characters": len(impacts),
            "skipped": skipped,
            "impacts": impacts,
        }

    def history_for_event(self, event_id: int) -> list:
        event = self._get(event_id)
        if not event.is_global:
            self.access.require_participant(event.course_id)
        rows = self.repo.history_for_event(event.id)
        if event.is_global and not self.user.is_admin:
            visible = {c.id for c in self._visible_characters({r.character_id for r in rows})}
            rows = [r for r in rows if r.character_id in visible]
        return [history_out(r) for r in rows]

    def _visible_characters(self, character_ids) -> list:
        out = []
        for character in self.character_repo.list_by_ids(character_ids):
            member = self.member_repo.get(character.member_id)
            if self.access.owns(member) or self.access.teaches(member.course_id):
                out.append(character)
        return out

    def history_for_character(self, character_id: int) -> list:
        self.access.require_character(character_id)
        out = []
        for row in self.repo.history_for_characters([character_id]):
            item = history_out(row)
            event = self.repo.get(row.event_id)
            item["event_name"] = event.name if event else None
            item["event_type"] = event.type if event else None
            out.append(item)
        return out
