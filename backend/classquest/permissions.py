"""Role and ownership checks shared by the services.

A teacher is a user with a `Teacher` row; a course teacher is linked to
the course through `TeacherCourse`; a participant is a course teacher or
an enrolled user.
"""

from typing import Optional

from sqlmodel import Session

from . import models, repositories
from .errors import ForbiddenError, NotFoundError


class Access:
    """Permission checks for one authenticated user."""

    def __init__(self, session: Session, user: models.User):
        self.session = session
        self.user = user
        self.teachers = repositories.TeacherRepository(session)
        self.courses = repositories.CourseRepository(session)
        self.members = repositories.MemberRepository(session)

    def teacher(self) -> Optional[models.Teacher]:
        return self.teachers.get_by_user(self.user.id)

    def require_admin(self) -> None:
        if not self.user.is_admin:
            raise ForbiddenError("administrator privileges required")

    def require_teacher(self) -> models.Teacher:
        teacher = self.teacher()
        if not teacher:
            raise ForbiddenError("teacher privileges required")
        return teacher

    def teaches(self, course_id: int) -> bool:
        return self.teachers.teaches(self.user.id, course_id)

    def require_course(self, course_id: int) -> models.Course:
        course = self.courses.get(course_id)
        if not course:
            raise NotFoundError("course", course_id)
        return course

    def require_course_teacher(self, course_id: int) -> models.Course:
        course = self.require_course(course_id)
        if not self.teaches(course_id):
            raise ForbiddenError("only teachers of this course can do this")
        return course

    def is_participant(self, course_id: int) -> bool:
        if self.teaches(course_id):
            return True
        return self.courses.get_inscription(self.user.id, course_id) is not None

    def require_participant(self, course_id: int) -> models.Course:
        course = self.require_course(course_id)
        if not self.is_participant(course_id):
            raise ForbiddenError("you are not part of this course")
        return course

    def owns(self, member: models.Member) -> bool:
        return member.user_id == self.user.id

    def require_character(self, character_id: int, teacher_only: bool = False):
        """Load a character and its member; allow the owner (unless `teacher_only`) or a course teacher."""
        character = repositories.CharacterRepository(self.session).get(character_id)
        if not character:
            raise NotFoundError("character", character_id)
        member = self.members.get(character.member_id)
        if self.teaches(member.course_id):
            return character, member
        if not teacher_only and self.owns(member):
            return character, member
        raise ForbiddenError("you cannot act on this character")
