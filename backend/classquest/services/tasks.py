"""Tasks: creation, assignment to groups and rewarded completion."""

import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from .. import models, repositories
from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..permissions import Access
from ..stats import StatDelta, apply_delta
from .characters import character_out

logger = logging.getLogger(__name__)


def task_out(task: models.Task) -> dict:
    return {
        "id": task.id,
        "course_id": task.course_id,
        "name": task.name,
        "description": task.description,
        "experience": task.experience,
        "gold": task.gold,
        "health": task.health,
        "energy": task.energy,
        "due_date": task.due_date,
        "created_at": task.created_at,
    }


def task_reward(task: models.Task) -> StatDelta:
    return StatDelta(experience=task.experience, gold=task.gold, energy=task.energy, health=task.health)


class TaskService:
    def __init__(self, session: Session, user: models.User):
        self.session = session
        self.user = user
        self.access = Access(session, user)
        self.repo = repositories.TaskRepository(session)
        self.character_repo = repositories.CharacterRepository(session)
        self.member_repo = repositories.MemberRepository(session)

    def _get(self, task_id: int) -> models.Task:
        task = self.repo.get(task_id)
        if not task:
            raise NotFoundError("task", task_id)
        return task

    def _with_counts(self, task: models.Task) -> dict:
        rows = self.repo.assignments_for_task(task.id)
        out = task_out(task)
        out["assigned_count"] = len(rows)
        out["completed_count"] = sum(1 for r in rows if r.completed)
        return out

    def create(self, data: dict) -> dict:
        self.access.require_course_teacher(data["course_id"])
        task = self.repo.save(models.Task(**data))
        logger.info("task %s created in course %s", task.id, task.course_id)
        return task_out(task)

    def list_for_course(self, course_id: int) -> list:
        self.access.require_participant(course_id)
        return [self._with_counts(t) for t in self.repo.list_by_course(course_id)]

    def list_for_character(self, character_id: int) -> list:
        """Tasks assigned to a character with their completion flags."""
        self.access.require_character(character_id)
        out = []
        for row in self.repo.assignments_for_character(character_id):
            task = self.repo.get(row.task_id)
            item = task_out(task)
            item["completed"] = row.completed
            item["completed_at"] = row.completed_at
            out.append(item)
        out.sort(key=lambda t: t["id"])
        return out

    def get(self, task_id: int) -> dict:
        task = self._get(task_id)
        self.access.require_participant(task.course_id)
        return self._with_counts(task)

    def update(self, task_id: int, changes: dict) -> dict:
        task = self._get(task_id)
        self.access.require_course_teacher(task.course_id)
        for key, value in changes.items():
            setattr(task, key, value)
        task.updated_at = datetime.now(timezone.utc)
        self.repo.save(task)
        return self._with_counts(task)

    def delete(self, task_id: int) -> None:
        task = self._get(task_id)
        self.access.require_course_teacher(task.course_id)
        for row in self.repo.assignments_for_task(task.id):
            self.session.delete(row)
        self.session.delete(task)
        self.session.commit()
        logger.info("task %s deleted", task_id)

    def assign_to_groups(self, task_id: int, group_ids: list) -> dict:
        """Create a pending join row for every character in the groups, skipping existing ones."""
        task = self._get(task_id)
        self.access.require_course_teacher(task.course_id)
        groups = repositories.GroupRepository(self.session)
        character_ids = []
        for group_id in group_ids:
            group = groups.get(group_id)
            if not group:
                raise NotFoundError("group", group_id)
            if group.course_id != task.course_id:
                raise ValidationError("group does not belong to the task's course")
            character_ids += [c.id for c in self.character_repo.list_by_group(group.id)]

        existing = {r.character_id for r in self.repo.assignments_for_task(task.id)}
        unique = list(dict.fromkeys(character_ids))
        created = 0
        for character_id in unique:
            if character_id in existing:
                continue
            self.session.add(models.CharacterTask(task_id=task.id, character_id=character_id))
            created += 1
        self.session.commit()
        logger.info("task %s assigned: %s new, %s skipped", task.id, created, len(unique) - created)
        return {"task_id": task.id, "assigned": created, "skipped": len(unique) - created}

    def complete(self, task_id: int, character_id: int) -> dict:
        """Mark a task completed for a character and pay out its rewards.

        Only the character's owner or a teacher of the course may complete
        it; a student can only complete tasks assigned to them. The join
        row is flipped with a conditional UPDATE inside the same
        transaction as the stat change, so the reward is paid at most once.
        """
        task = self._get(task_id)
        character = self.character_repo.get(character_id)
        if not character:
            raise NotFoundError("character", character_id)
        member = self.member_repo.get(character.member_id)
        if member.course_id != task.course_id:
            raise ForbiddenError("character is not part of this task's course")
        is_teacher = self.access.teaches(task.course_id)
        if not is_teacher and not self.access.owns(member):
            raise ForbiddenError("you cannot complete tasks for this character")

        assignment = self.repo.get_assignment(task.id, character.id)
        if assignment is None:
            if not is_teacher:
                raise ForbiddenError("task is not assigned to this character")
            assignment = models.CharacterTask(task_id=task.id, character_id=character.id)
            self.session.add(assignment)
            try:
                self.session.flush()
            except IntegrityError:
                self.session.rollback()
                raise ConflictError("task already completed")
        elif assignment.completed:
            raise ConflictError("task already completed")

        now = datetime.now(timezone.utc)
        claim = (
            update(models.CharacterTask)
            .where(models.CharacterTask.id == assignment.id, models.CharacterTask.completed == False)  # noqa: E712
            .values(completed=True, completed_at=now)
        )
        if self.session.connection().execute(claim).rowcount != 1:
            self.session.rollback()
            raise ConflictError("task already completed")
        applied = apply_delta(character, task_reward(task))
        character.updated_at = now
        self.session.add(character)
        self.session.commit()
        self.session.refresh(character)
        logger.info("task %s completed by character %s rewards=%s", task.id, character.id, applied.as_dict())
        return {
            "task_id": task.id,
            "character_id": character.id,
            "completed": True,
            "completed_at": now,
            "rewards": applied.as_dict(),
            "character": character_out(character),
        }

    def progress(self, task_id: int) -> dict:
        task = self._get(task_id)
        self.access.require_participant(task.course_id)
        rows = self.repo.assignments_for_task(task.id)
        completed = sum(1 for r in rows if r.completed)
        return {
            "task_id": task.id,
            "assigned": len(rows),
            "completed": completed,
            "percentage": round(completed / len(rows) * 100, 2) if rows else 0,
        }
