"""Groups inside a course and the members assigned to them."""

import logging

from sqlmodel import Session

from .. import models, repositories
from ..errors import NotFoundError, ValidationError
from ..permissions import Access
from ..stats import level_for

logger = logging.getLogger(__name__)


class GroupService:
    def __init__(self, session: Session, user: models.User):
        self.session = session
        self.user = user
        self.access = Access(session, user)
        self.repo = repositories.GroupRepository(session)
        self.member_repo = repositories.MemberRepository(session)
        self.character_repo = repositories.CharacterRepository(session)

    def _get(self, group_id: int) -> models.Group:
        group = self.repo.get(group_id)
        if not group:
            raise NotFoundError("group", group_id)
        return group

    def _out(self, group: models.Group, with_members: bool = False) -> dict:
        members = self.member_repo.list_by_group(group.id)
        out = {
            "id": group.id,
            "course_id": group.course_id,
            "name": group.name,
            "description": group.description,
            "member_count": len(members),
            "created_at": group.created_at,
        }
        if with_members:
            users = repositories.UserRepository(self.session)
            out["members"] = []
            for member in members:
                user = users.get(member.user_id)
                character = self.character_repo.get_by_member(member.id)
                out["members"].append({
                    "member_id": member.id,
                    "user_id": member.user_id,
                    "name": user.name if user else None,
                    "character_id": character.id if character else None,
                    "character_name": character.name if character else None,
                    "level": level_for(character.experience) if character else None,
                })
        return out

    def create(self, course_id: int, name: str, description: str = None) -> dict:
        self.access.require_course_teacher(course_id)
        group = self.repo.save(models.Group(course_id=course_id, name=name.strip(), description=description))
        logger.info("group %s created in course %s", group.id, course_id)
        return self._out(group)

    def list(self, course_id: int) -> list:
        self.access.require_participant(course_id)
        return [self._out(g) for g in self.repo.list_by_course(course_id)]

    def get(self, group_id: int) -> dict:
        group = self._get(group_id)
        self.access.require_participant(group.course_id)
        return self._out(group, with_members=True)

    def update(self, group_id: int, changes: dict) -> dict:
        group = self._get(group_id)
        self.access.require_course_teacher(group.course_id)
        for key, value in changes.items():
            setattr(group, key, value)
        self.repo.save(group)
        return self._out(group)

    def delete(self, group_id: int) -> None:
        """Delete a group; its members become unassigned and keep their characters."""
        group = self._get(group_id)
        self.access.require_course_teacher(group.course_id)
        for member in self.member_repo.list_by_group(group.id):
            member.group_id = None
            self.session.add(member)
        self.session.delete(group)
        self.session.commit()
        logger.info("group %s deleted", group_id)

    def assign_members(self, group_id: int, member_ids: list) -> dict:
        """Move members of the group's course into this group."""
        group = self._get(group_id)
        self.access.require_course_teacher(group.course_id)
        members = {m.id: m for m in self.member_repo.list_by_ids(set(member_ids))}
        for member_id in member_ids:
            member = members.get(member_id)
            if not member:
                raise NotFoundError("member", member_id)
            if member.course_id != group.course_id:
                raise ValidationError("member is not enrolled in this group's course")
        for member in members.values():
            member.group_id = group.id
            self.session.add(member)
        self.session.commit()
        logger.info("group %s received members %s", group.id, sorted(members))
        return self._out(group, with_members=True)

    def remove_member(self, group_id: int, member_id: int) -> dict:
        group = self._get(group_id)
        self.access.require_course_teacher(group.course_id)
        member = self.member_repo.get(member_id)
        if not member or member.group_id != group.id:
            raise NotFoundError("member", member_id)
        member.group_id = None
        self.member_repo.save(member)
        return self._out(group, with_members=True)

    def statistics(self, group_id: int) -> dict:
        group = self._get(group_id)
        self.access.require_participant(group.course_id)
        characters = self.character_repo.list_by_group(group.id)
        count = len(characters)

        def avg(attr):
            return round(sum(getattr(c, attr) for c in characters) / count, 2) if count else 0

        return {
            "group_id": group.id,
            "member_count": len(self.member_repo.list_by_group(group.id)),
            "character_count": count,
            "average_experience": avg("experience"),
            "average_gold": avg("gold"),
            "average_energy": avg("energy"),
            "average_health": avg("health"),
            "total_experience": sum(c.experience for c in characters),
            "total_gold": sum(c.gold for c in characters),
        }
