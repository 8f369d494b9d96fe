"""Institutions and the teachers that belong to them (admin only)."""

import logging

from sqlmodel import Session

from .. import models, repositories
from ..errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def institution_out(inst: models.Institution, teachers=None) -> dict:
    out = {
        "id": inst.id,
        "name": inst.name,
        "address": inst.address,
        "phone": inst.phone,
        "email": inst.email,
        "created_at": inst.created_at,
    }
    if teachers is not None:
        out["teachers"] = [
            {"id": t.id, "user_id": t.user_id, "internal_id": t.internal_id} for t in teachers
        ]
    return out


class InstitutionService:
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.InstitutionRepository(session)
        self.teacher_repo = repositories.TeacherRepository(session)

    def _get(self, institution_id: int) -> models.Institution:
        inst = self.repo.get(institution_id)
        if not inst:
            raise NotFoundError("institution", institution_id)
        return inst

    def create(self, data: dict) -> dict:
        inst = self.repo.save(models.Institution(**data))
        logger.info("institution created id=%s", inst.id)
        return institution_out(inst, teachers=[])

    def list(self) -> list:
        return [institution_out(i) for i in self.repo.list()]

    def get(self, institution_id: int) -> dict:
        inst = self._get(institution_id)
        return institution_out(inst, teachers=self.repo.teachers(inst.id))

    def update(self, institution_id: int, changes: dict) -> dict:
        inst = self._get(institution_id)
        for key, value in changes.items():
            setattr(inst, key, value)
        self.repo.save(inst)
        return institution_out(inst, teachers=self.repo.teachers(inst.id))

    def delete(self, institution_id: int) -> None:
        inst = self._get(institution_id)
        if self.repo.teachers(inst.id):
            raise ConflictError("institution still has teachers assigned")
        self.repo.delete(inst)

    def assign_teacher(self, institution_id: int, teacher_id: int, internal_id: str = None) -> dict:
        inst = self._get(institution_id)
        teacher = self.teacher_repo.get(teacher_id)
        if not teacher:
            raise NotFoundError("teacher", teacher_id)
        if teacher.institution_id and teacher.institution_id != inst.id:
            raise ConflictError("teacher already belongs to another institution")
        teacher.institution_id = inst.id
        teacher.internal_id = internal_id
        self.teacher_repo.save(teacher)
        logger.info("teacher %s assigned to institution %s", teacher.id, inst.id)
        return institution_out(inst, teachers=self.repo.teachers(inst.id))

    def remove_teacher(self, institution_id: int, teacher_id: int) -> dict:
        inst = self._get(institution_id)
        teacher = self.teacher_repo.get(teacher_id)
        if not teacher:
            raise NotFoundError("teacher", teacher_id)
        if teacher.institution_id != inst.id:
            raise ValidationError("teacher does not belong to this institution")
        teacher.institution_id = None
        teacher.internal_id = None
        self.teacher_repo.save(teacher)
        return institution_out(inst, teachers=self.repo.teachers(inst.id))
