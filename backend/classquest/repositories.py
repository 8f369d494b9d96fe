"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate. `save` and
`delete` commit immediately; services that need several writes in one
transaction stage rows with `session.add` and commit once themselves.
"""

from typing import List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from . import models


class BaseRepository:
    """Shared get/save/delete for a single table."""
    model = None

    def __init__(self, session: Session):
        self.session = session

    def get(self, row_id: int):
        return self.session.get(self.model, row_id)

    def save(self, row):
        """Persist `row` and return the refreshed instance."""
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    def delete(self, row) -> None:
        self.session.delete(row)
        self.session.commit()


class UserRepository(BaseRepository):
    model = models.User

    def get_by_email(self, email: str) -> Optional[models.User]:
        stmt = select(models.User).where(models.User.email == email.lower())
        return self.session.exec(stmt).first()

    def get_by_username(self, username: str) -> Optional[models.User]:
        stmt = select(models.User).where(models.User.username == username)
        return self.session.exec(stmt).first()

    def list_by_ids(self, user_ids) -> List[models.User]:
        if not user_ids:
            return []
        stmt = select(models.User).where(models.User.id.in_(list(user_ids)))
        return self.session.exec(stmt).all()


class SessionRepository(BaseRepository):
    """Issued bearer tokens."""
    model = models.AuthSession

    def get_by_token(self, token: str) -> Optional[models.AuthSession]:
        stmt = select(models.AuthSession).where(models.AuthSession.token == token)
        return self.session.exec(stmt).first()

    def delete_for_user(self, user_id: int) -> int:
        rows = self.session.exec(
            select(models.AuthSession).where(models.AuthSession.user_id == user_id)
        ).all()
        for row in rows:
            self.session.delete(row)
        return len(rows)


class InstitutionRepository(BaseRepository):
    model = models.Institution

    def list(self) -> List[models.Institution]:
        return self.session.exec(select(models.Institution).order_by(models.Institution.name)).all()

    def teachers(self, institution_id: int) -> List[models.Teacher]:
        stmt = select(models.Teacher).where(models.Teacher.institution_id == institution_id)
        return self.session.exec(stmt).all()


class TeacherRepository(BaseRepository):
    model = models.Teacher

    def get_by_user(self, user_id: int) -> Optional[models.Teacher]:
        stmt = select(models.Teacher).where(models.Teacher.user_id == user_id)
        return self.session.exec(stmt).first()

    def list(self) -> List[models.Teacher]:
        return self.session.exec(select(models.Teacher).order_by(models.Teacher.id)).all()

    def course_ids(self, teacher_id: int) -> List[int]:
        stmt = select(models.TeacherCourse.course_id).where(models.TeacherCourse.teacher_id == teacher_id)
        return list(self.session.exec(stmt).all())

    def for_course(self, course_id: int) -> List[models.Teacher]:
        stmt = (
            select(models.Teacher)
            .join(models.TeacherCourse, models.TeacherCourse.teacher_id == models.Teacher.id)
            .where(models.TeacherCourse.course_id == course_id)
        )
        return self.session.exec(stmt).all()

    def links_for_course(self, course_id: int) -> List[models.TeacherCourse]:
        stmt = select(models.TeacherCourse).where(models.TeacherCourse.course_id == course_id)
        return self.session.exec(stmt).all()

    def teaches(self, user_id: int, course_id: int) -> bool:
        stmt = (
            select(models.TeacherCourse.id)
            .join(models.Teacher, models.Teacher.id == models.TeacherCourse.teacher_id)
            .where(models.Teacher.user_id == user_id, models.TeacherCourse.course_id == course_id)
        )
        return self.session.exec(stmt).first() is not None

    def link(self, teacher_id: int, course_id: int) -> Optional[models.TeacherCourse]:
        """Link a teacher to a course unless the link already exists (staged, not committed)."""
        stmt = select(models.TeacherCourse).where(
            models.TeacherCourse.teacher_id == teacher_id,
            models.TeacherCourse.course_id == course_id,
        )
        if self.session.exec(stmt).first():
            return None
        link = models.TeacherCourse(teacher_id=teacher_id, course_id=course_id)
        self.session.add(link)
        return link


class CourseRepository(BaseRepository):
    model = models.Course

    def list_by_ids(self, course_ids) -> List[models.Course]:
        if not course_ids:
            return []
        stmt = select(models.Course).where(models.Course.id.in_(list(course_ids))).order_by(models.Course.id)
        return self.session.exec(stmt).all()

    def get_inscription(self, user_id: int, course_id: int) -> Optional[models.Inscription]:
        stmt = select(models.Inscription).where(
            models.Inscription.user_id == user_id,
            models.Inscription.course_id == course_id,
        )
        return self.session.exec(stmt).first()

    def inscriptions_for_user(self, user_id: int) -> List[models.Inscription]:
        stmt = (
            select(models.Inscription)
            .where(models.Inscription.user_id == user_id)
            .order_by(models.Inscription.created_at.desc())
        )
        return self.session.exec(stmt).all()

    def inscriptions_for_course(self, course_id: int) -> List[models.Inscription]:
        stmt = select(models.Inscription).where(models.Inscription.course_id == course_id)
        return self.session.exec(stmt).all()

    def count_inscriptions(self, course_id: int) -> int:
        stmt = select(func.count(models.Inscription.id)).where(models.Inscription.course_id == course_id)
        return self.session.exec(stmt).one()


class InvitationRepository(BaseRepository):
    model = models.Invitation

    def get_by_code(self, code: str) -> Optional[models.Invitation]:
        stmt = select(models.Invitation).where(models.Invitation.code == code)
        return self.session.exec(stmt).first()

    def pending_for_user(self, user_id: int) -> List[models.Invitation]:
        stmt = (
            select(models.Invitation)
            .where(models.Invitation.user_id == user_id, models.Invitation.used == False)  # noqa: E712
            .order_by(models.Invitation.created_at.desc())
        )
        return self.session.exec(stmt).all()

    def addressed_to(self, user_id: int) -> List[models.Invitation]:
        stmt = select(models.Invitation).where(models.Invitation.user_id == user_id)
        return self.session.exec(stmt).all()

    def created_by(self, user_id: int) -> List[models.Invitation]:
        stmt = (
            select(models.Invitation)
            .where(models.Invitation.created_by == user_id)
            .order_by(models.Invitation.created_at.desc())
        )
        return self.session.exec(stmt).all()

    def for_course(self, course_id: int) -> List[models.Invitation]:
        stmt = select(models.Invitation).where(models.Invitation.course_id == course_id)
        return self.session.exec(stmt).all()


class GroupRepository(BaseRepository):
    model = models.Group

    def list_by_course(self, course_id: int) -> List[models.Group]:
        stmt = select(models.Group).where(models.Group.course_id == course_id).order_by(models.Group.id)
        return self.session.exec(stmt).all()

    def count_by_course(self, course_id: int) -> int:
        stmt = select(func.count(models.Group.id)).where(models.Group.course_id == course_id)
        return self.session.exec(stmt).one()


class MemberRepository(BaseRepository):
    model = models.Member

    def get_for_user(self, user_id: int, course_id: int) -> Optional[models.Member]:
        stmt = select(models.Member).where(
            models.Member.user_id == user_id,
            models.Member.course_id == course_id,
        )
        return self.session.exec(stmt).first()

    def list_by_group(self, group_id: int) -> List[models.Member]:
        stmt = select(models.Member).where(models.Member.group_id == group_id).order_by(models.Member.id)
        return self.session.exec(stmt).all()

    def list_by_course(self, course_id: int) -> List[models.Member]:
        stmt = select(models.Member).where(models.Member.course_id == course_id).order_by(models.Member.id)
        return self.session.exec(stmt).all()

    def unassigned(self, course_id: int) -> List[models.Member]:
        stmt = select(models.Member).where(
            models.Member.course_id == course_id,
            models.Member.group_id == None,  # noqa: E711
        )
        return self.session.exec(stmt).all()

    def list_by_ids(self, member_ids) -> List[models.Member]:
        stmt = select(models.Member).where(models.Member.id.in_(list(member_ids)))
        return self.session.exec(stmt).all()


class CharacterRepository(BaseRepository):
    model = models.Character

    def get_by_member(self, member_id: int) -> Optional[models.Character]:
        stmt = select(models.Character).where(models.Character.member_id == member_id)
        return self.session.exec(stmt).first()

    def list_by_ids(self, character_ids) -> List[models.Character]:
        if not character_ids:
            return []
        stmt = select(models.Character).where(models.Character.id.in_(list(character_ids)))
        return self.session.exec(stmt).all()

    def list_by_group(self, group_id: int) -> List[models.Character]:
        stmt = (
            select(models.Character)
            .join(models.Member, models.Member.id == models.Character.member_id)
            .where(models.Member.group_id == group_id)
            .order_by(models.Character.id)
        )
        return self.session.exec(stmt).all()

    def list_by_course(self, course_id: int) -> List[models.Character]:
        stmt = (
            select(models.Character)
            .join(models.Member, models.Member.id == models.Character.member_id)
            .where(models.Member.course_id == course_id)
            .order_by(models.Character.id)
        )
        return self.session.exec(stmt).all()

    def list_for_user(self, user_id: int) -> List[models.Character]:
        stmt = (
            select(models.Character)
            .join(models.Member, models.Member.id == models.Character.member_id)
            .where(models.Member.user_id == user_id)
        )
        return self.session.exec(stmt).all()

    def get_class(self, class_id: int) -> Optional[models.CharacterClass]:
        return self.session.get(models.CharacterClass, class_id)

    def list_classes(self) -> List[models.CharacterClass]:
        return self.session.exec(select(models.CharacterClass).order_by(models.CharacterClass.id)).all()


class TaskRepository(BaseRepository):
    model = models.Task

    def list_by_course(self, course_id: int) -> List[models.Task]:
        stmt = select(models.Task).where(models.Task.course_id == course_id).order_by(models.Task.id)
        return self.session.exec(stmt).all()

    def get_assignment(self, task_id: int, character_id: int) -> Optional[models.CharacterTask]:
        stmt = select(models.CharacterTask).where(
            models.CharacterTask.task_id == task_id,
            models.CharacterTask.character_id == character_id,
        )
        return self.session.exec(stmt).first()

    def assignments_for_task(self, task_id: int) -> List[models.CharacterTask]:
        stmt = select(models.CharacterTask).where(models.CharacterTask.task_id == task_id)
        return self.session.exec(stmt).all()

    def assignments_for_character(self, character_id: int) -> List[models.CharacterTask]:
        stmt = select(models.CharacterTask).where(models.CharacterTask.character_id == character_id)
        return self.session.exec(stmt).all()

    def completions_for_characters(self, character_ids, limit: int = 10) -> List[models.CharacterTask]:
        if not character_ids:
            return []
        stmt = (
            select(models.CharacterTask)
            .where(
                models.CharacterTask.character_id.in_(list(character_ids)),
                models.CharacterTask.completed == True,  # noqa: E712
            )
            .order_by(models.CharacterTask.completed_at.desc())
            .limit(limit)
        )
        return self.session.exec(stmt).all()


class QuizRepository(BaseRepository):
    model = models.Quiz

    def list_by_course(self, course_id: int) -> List[models.Quiz]:
        stmt = select(models.Quiz).where(models.Quiz.course_id == course_id).order_by(models.Quiz.id)
        return self.session.exec(stmt).all()

    def history_for(self, quiz_id: int, character_id: int) -> List[models.QuizHistory]:
        stmt = select(models.QuizHistory).where(
            models.QuizHistory.quiz_id == quiz_id,
            models.QuizHistory.character_id == character_id,
        )
        return self.session.exec(stmt).all()

    def history_for_character(self, character_id: int, limit: Optional[int] = None) -> List[models.QuizHistory]:
        stmt = (
            select(models.QuizHistory)
            .where(models.QuizHistory.character_id == character_id)
            .order_by(models.QuizHistory.answered_at.desc(), models.QuizHistory.id.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        return self.session.exec(stmt).all()

    def history_for_characters(self, character_ids, limit: Optional[int] = None) -> List[models.QuizHistory]:
        if not character_ids:
            return []
        stmt = (
            select(models.QuizHistory)
            .where(models.QuizHistory.character_id.in_(list(character_ids)))
            .order_by(models.QuizHistory.answered_at.desc(), models.QuizHistory.id.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        return self.session.exec(stmt).all()

    def history_for_quiz(self, quiz_id: int) -> List[models.QuizHistory]:
        stmt = select(models.QuizHistory).where(models.QuizHistory.quiz_id == quiz_id)
        return self.session.exec(stmt).all()


class EventRepository(BaseRepository):
    model = models.Event

    def available_for_course(self, course_id: Optional[int], active_only: bool = False) -> List[models.Event]:
        """Global events plus the events of `course_id`."""
        cond = models.Event.is_global == True  # noqa: E712
        if course_id is not None:
            cond = cond | (models.Event.course_id == course_id)
        stmt = select(models.Event).where(cond)
        if active_only:
            stmt = stmt.where(models.Event.is_active == True)  # noqa: E712
        return self.session.exec(stmt.order_by(models.Event.id)).all()

    def history_for_event(self, event_id: int) -> List[models.EventHistory]:
        stmt = (
            select(models.EventHistory)
            .where(models.EventHistory.event_id == event_id)
            .order_by(models.EventHistory.applied_at.desc(), models.EventHistory.id.desc())
        )
        return self.session.exec(stmt).all()

    def history_for_characters(self, character_ids, limit: Optional[int] = None) -> List[models.EventHistory]:
        if not character_ids:
            return []
        stmt = (
            select(models.EventHistory)
            .where(models.EventHistory.character_id.in_(list(character_ids)))
            .order_by(models.EventHistory.applied_at.desc(), models.EventHistory.id.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        return self.session.exec(stmt).all()
