"""Courses, teaching links and the per-course group overview."""

import logging
from datetime import datetime, timezone

from sqlmodel import Session

from .. import models, repositories
from ..errors import ConflictError, NotFoundError
from ..permissions import Access
from ..stats import level_for

logger = logging.getLogger(__name__)


def course_out(course: models.Course) -> dict:
    return {
        "id": course.id,
        "name": course.name,
        "description": course.description,
        "created_at": course.created_at,
    }


class CourseService:
    def __init__(self, session: Session, user: models.User):
        self.session = session
        self.user = user
        self.access = Access(session, user)
        self.repo = repositories.CourseRepository(session)
        self.teacher_repo = repositories.TeacherRepository(session)

    def create(self, name: str, description: str = None) -> dict:
        """Create a course and link the calling teacher to it in one commit."""
        teacher = self.access.require_teacher()
        course = models.Course(name=name.strip(), description=description)
        self.session.add(course)
        self.session.flush()
        self.teacher_repo.link(teacher.id, course.id)
        self.session.commit()
        self.session.refresh(course)
        logger.info("course %s created by teacher %s", course.id, teacher.id)
        return course_out(course)

    def teaching(self) -> list:
        teacher = self.access.teacher()
        if not teacher:
            return []
        return [course_out(c) for c in self.repo.list_by_ids(self.teacher_repo.course_ids(teacher.id))]

    def enrolled(self) -> list:
        ids = [i.course_id for i in self.repo.inscriptions_for_user(self.user.id)]
        return [course_out(c) for c in self.repo.list_by_ids(ids)]

    def get(self, course_id: int) -> dict:
        course = self.access.require_participant(course_id)
        out = course_out(course)
        users = repositories.UserRepository(self.session)
        out["teachers"] = []
        for t in self.teacher_repo.for_course(course.id):
            u = users.get(t.user_id)
            out["teachers"].append({"id": t.id, "user_id": t.user_id, "name": u.name if u else None})
        out["student_count"] = self.repo.count_inscriptions(course.id)
        out["group_count"] = repositories.GroupRepository(self.session).count_by_course(course.id)
        out["is_teacher"] = self.access.teaches(course.id)
        return out

    def update(self, course_id: int, changes: dict) -> dict:
        course = self.access.require_course_teacher(course_id)
        for key, value in changes.items():
            setattr(course, key, value)
        course.updated_at = datetime.now(timezone.utc)
        self.repo.save(course)
        return course_out(course)

    def delete(self, course_id: int) -> None:
        """Delete a course that has no students yet, together with its content."""
        course = self.access.require_course_teacher(course_id)
        if self.repo.count_inscriptions(course.id):
            raise ConflictError("course has enrolled students")
        rows = []
        rows += repositories.GroupRepository(self.session).list_by_course(course.id)
        rows += repositories.TaskRepository(self.session).list_by_course(course.id)
        rows += repositories.QuizRepository(self.session).list_by_course(course.id)
        rows += repositories.InvitationRepository(self.session).for_course(course.id)
        rows += [
            e for e in repositories.EventRepository(self.session).available_for_course(course.id)
            if e.course_id == course.id
        ]
        rows += self.teacher_repo.links_for_course(course.id)
        for row in rows:
            self.session.delete(row)
        self.session.delete(course)
        self.session.commit()
        logger.info("course %s deleted", course_id)

    def add_teacher(self, course_id: int, teacher_id: int) -> dict:
        course = self.access.require_course_teacher(course_id)
        if not self.teacher_repo.get(teacher_id):
            raise NotFoundError("teacher", teacher_id)
        if self.teacher_repo.link(teacher_id, course.id) is None:
            raise ConflictError("teacher already teaches this course")
        self.session.commit()
        return self.get(course.id)

    def groups_overview(self, course_id: int) -> list:
        """Groups of a course with their members, characters and stat totals."""
        course = self.access.require_participant(course_id)
        members = repositories.MemberRepository(self.session)
        characters = repositories.CharacterRepository(self.session)
        users = repositories.UserRepository(self.session)
        out = []
        for group in repositories.GroupRepository(self.session).list_by_course(course.id):
            rows = []
            for member in members.list_by_group(group.id):
                user = users.get(member.user_id)
                character = characters.get_by_member(member.id)
                rows.append({
                    "member_id": member.id,
                    "user_id": member.user_id,
                    "name": user.name if user else None,
                    "character": None if character is None else {
                        "id": character.id,
                        "name": character.name,
                        "experience": character.experience,
                        "gold": character.gold,
                        "energy": character.energy,
                        "health": character.health,
                        "level": level_for(character.experience),
                    },
                })
            stats = [r["character"] for r in rows if r["character"]]
            out.append({
                "id": group.id,
                "name": group.name,
                "description": group.description,
                "member_count": len(rows),
                "members": rows,
                "total_experience": sum(c["experience"] for c in stats),
                "total_gold": sum(c["gold"] for c in stats),
                "average_energy": round(sum(c["energy"] for c in stats) / len(stats), 2) if stats else 0,
            })
        return out

    def unassigned(self, course_id: int) -> list:
        """Enrolled members of the course that are not in any group."""
        self.access.require_course_teacher(course_id)
        users = repositories.UserRepository(self.session)
        characters = repositories.CharacterRepository(self.session)
        out = []
        for member in repositories.MemberRepository(self.session).unassigned(course_id):
            user = users.get(member.user_id)
            character = characters.get_by_member(member.id)
            out.append({
                "member_id": member.id,
                "user_id": member.user_id,
                "name": user.name if user else None,
                "email": user.email if user else None,
                "character_id": character.id if character else None,
            })
        return out
