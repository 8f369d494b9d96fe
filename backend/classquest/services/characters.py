"""Characters, character classes and teacher stat adjustments."""

import logging
from datetime import datetime, timezone

from sqlmodel import Session

from .. import models, repositories
from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..permissions import Access
from ..stats import StatDelta, apply_delta, level_for

logger = logging.getLogger(__name__)


def character_out(character: models.Character, cls: models.CharacterClass = None, member: models.Member = None) -> dict:
    out = {
        "id": character.id,
        "member_id": character.member_id,
        "name": character.name,
        "class_id": character.class_id,
        "appearance": character.appearance or {},
        "experience": character.experience,
        "gold": character.gold,
        "energy": character.energy,
        "health": character.health,
        "level": level_for(character.experience),
        "created_at": character.created_at,
    }
    if cls is not None:
        out["class"] = {"id": cls.id, "name": cls.name, "speed": cls.speed}
    if member is not None:
        out["user_id"] = member.user_id
        out["course_id"] = member.course_id
        out["group_id"] = member.group_id
    return out


class CharacterService:
    def __init__(self, session: Session, user: models.User):
        self.session = session
        self.user = user
        self.access = Access(session, user)
        self.repo = repositories.CharacterRepository(session)
        self.member_repo = repositories.MemberRepository(session)

    def _full(self, character: models.Character, member: models.Member = None) -> dict:
        member = member or self.member_repo.get(character.member_id)
        return character_out(character, self.repo.get_class(character.class_id), member)

    def list_classes(self) -> list:
        return [
            {"id": c.id, "name": c.name, "description": c.description, "speed": c.speed}
            for c in self.repo.list_classes()
        ]

    def create(self, course_id: int, class_id: int, name: str, appearance: dict) -> dict:
        """Create the caller's character in a course they are enrolled in."""
        self.access.require_course(course_id)
        member = self.member_repo.get_for_user(self.user.id, course_id)
        if not member:
            raise ForbiddenError("you must be enrolled in the course to create a character")
        if not self.repo.get_class(class_id):
            raise NotFoundError("character class", class_id)
        if self.repo.get_by_member(member.id):
            raise ConflictError("you already have a character in this course")
        character = self.repo.save(
            models.Character(member_id=member.id, class_id=class_id, name=name.strip(), appearance=appearance)
        )
        logger.info("character %s created for member %s", character.id, member.id)
        return self._full(character, member)

    def for_course(self, course_id: int) -> dict:
        member = self.member_repo.get_for_user(self.user.id, course_id)
        character = self.repo.get_by_member(member.id) if member else None
        if not character:
            raise NotFoundError("character")
        return self._full(character, member)

    def has_character(self, course_id: int) -> dict:
        member = self.member_repo.get_for_user(self.user.id, course_id)
        character = self.repo.get_by_member(member.id) if member else None
        return {"has_character": character is not None, "character_id": character.id if character else None}

    def get(self, character_id: int) -> dict:
        character, member = self.access.require_character(character_id)
        return self._full(character, member)

    def adjust_stats(self, character_id: int, delta: StatDelta, reason: str = None) -> dict:
        """Teacher adjustment of one character; stats never drop below zero."""
        character, member = self.access.require_character(character_id, teacher_only=True)
        applied = apply_delta(character, delta)
        character.updated_at = datetime.now(timezone.utc)
        self.repo.save(character)
        logger.info(
            "stats adjusted character=%s by user=%s applied=%s reason=%s",
            character.id, self.user.id, applied.as_dict(), reason or "-",
        )
        out = self._full(character, member)
        out["applied"] = applied.as_dict()
        return out

    def adjust_stats_bulk(self, items: list) -> list:
        """Apply several adjustments atomically; every character must share one course."""
        ids = [item["character_id"] for item in items]
        characters = {c.id: c for c in self.repo.list_by_ids(ids)}
        missing = [i for i in ids if i not in characters]
        if missing:
            raise NotFoundError("character", missing[0])
        members = {m.id: m for m in self.member_repo.list_by_ids({c.member_id for c in characters.values()})}
        course_ids = {m.course_id for m in members.values()}
        if len(course_ids) != 1:
            raise ValidationError("all characters must belong to the same course")
        self.access.require_course_teacher(course_ids.pop())

        results = []
        now = datetime.now(timezone.utc)
        for item in items:
            character = characters[item["character_id"]]
            delta = StatDelta(
                experience=item.get("experience", 0),
                gold=item.get("gold", 0),
                energy=item.get("energy", 0),
                health=item.get("health", 0),
            )
            applied = apply_delta(character, delta)
            character.updated_at = now
            self.session.add(character)
            logger.info(
                "stats adjusted character=%s by user=%s applied=%s reason=%s",
                character.id, self.user.id, applied.as_dict(), item.get("reason") or "-",
            )
            results.append({"character_id": character.id, "applied": applied.as_dict()})
        self.session.commit()
        for item in results:
            character = characters[item["character_id"]]
            self.session.refresh(character)
            item.update(experience=character.experience, gold=character.gold,
                        energy=character.energy, health=character.health)
        return results
