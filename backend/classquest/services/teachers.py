"""Teacher promotion and lookup."""

import logging

from sqlmodel import Session

from .. import models, repositories
from ..errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class TeacherService:
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.TeacherRepository(session)
        self.user_repo = repositories.UserRepository(session)

    def _out(self, teacher: models.Teacher) -> dict:
        user = self.user_repo.get(teacher.user_id)
        return {
            "id": teacher.id,
            "user_id": teacher.user_id,
            "name": user.name if user else None,
            "email": user.email if user else None,
            "institution_id": teacher.institution_id,
            "internal_id": teacher.internal_id,
            "course_count": len(self.repo.course_ids(teacher.id)),
            "created_at": teacher.created_at,
        }

    def create(self, user_id: int, institution_id: int = None, internal_id: str = None) -> dict:
        """Promote an existing user to teacher."""
        if not self.user_repo.get(user_id):
            raise NotFoundError("user", user_id)
        if self.repo.get_by_user(user_id):
            raise ConflictError("user is already a teacher")
        if institution_id is not None and not repositories.InstitutionRepository(self.session).get(institution_id):
            raise NotFoundError("institution", institution_id)
        teacher = self.repo.save(
            models.Teacher(user_id=user_id, institution_id=institution_id, internal_id=internal_id)
        )
        logger.info("user %s promoted to teacher %s", user_id, teacher.id)
        return self._out(teacher)

    def list(self) -> list:
        return [self._out(t) for t in self.repo.list()]

    def get(self, teacher_id: int) -> dict:
        teacher = self.repo.get(teacher_id)
        if not teacher:
            raise NotFoundError("teacher", teacher_id)
        return self._out(teacher)

    def delete(self, teacher_id: int) -> None:
        teacher = self.repo.get(teacher_id)
        if not teacher:
            raise NotFoundError("teacher", teacher_id)
        if self.repo.course_ids(teacher.id):
            raise ConflictError("teacher still teaches courses")
        self.repo.delete(teacher)

    def check(self, user: models.User) -> dict:
        teacher = self.repo.get_by_user(user.id)
        return {"is_teacher": teacher is not None, "teacher_id": teacher.id if teacher else None}
