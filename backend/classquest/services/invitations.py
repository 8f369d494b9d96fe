"""Course invitations: creation by teachers, acceptance by students."""

import logging
import secrets
import string

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from .. import models, repositories
from ..errors import ConflictError, ForbiddenError, NotFoundError
from ..permissions import Access

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8


def generate_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


class InvitationService:
    def __init__(self, session: Session, user: models.User):
        self.session = session
        self.user = user
        self.access = Access(session, user)
        self.repo = repositories.InvitationRepository(session)
        self.course_repo = repositories.CourseRepository(session)

    def _out(self, inv: models.Invitation) -> dict:
        course = self.course_repo.get(inv.course_id)
        return {
            "id": inv.id,
            "name": inv.name,
            "code": inv.code,
            "course_id": inv.course_id,
            "course_name": course.name if course else None,
            "user_id": inv.user_id,
            "created_by": inv.created_by,
            "used": inv.used,
            "created_at": inv.created_at,
        }

    def create(self, course_id: int, name: str, email: str = None) -> dict:
        """Create an invitation, addressed to the user with `email` when given."""
        self.access.require_course_teacher(course_id)
        target = None
        if email:
            target = repositories.UserRepository(self.session).get_by_email(email)
            if not target:
                raise NotFoundError("user")
            if self.course_repo.get_inscription(target.id, course_id):
                raise ConflictError("user is already enrolled in this course")
        code = generate_code()
        while self.repo.get_by_code(code):
            code = generate_code()
        inv = self.repo.save(
            models.Invitation(
                course_id=course_id,
                created_by=self.user.id,
                user_id=target.id if target else None,
                name=name.strip(),
                code=code,
            )
        )
        logger.info("invitation %s created for course %s", inv.id, course_id)
        return self._out(inv)

    def pending(self) -> list:
        return [self._out(i) for i in self.repo.pending_for_user(self.user.id)]

    def count(self) -> dict:
        return {"count": len(self.repo.pending_for_user(self.user.id))}

    def sent(self) -> list:
        return [self._out(i) for i in self.repo.created_by(self.user.id)]

    def _load_usable(self, inv: models.Invitation) -> models.Invitation:
        if inv.user_id is not None and inv.user_id != self.user.id:
            raise ForbiddenError("this invitation is not addressed to you")
        if inv.used:
            raise ConflictError("invitation has already been used")
        return inv

    def _load_addressed(self, invitation_id: int) -> models.Invitation:
        # open invitations are only usable through their code
        inv = self.repo.get(invitation_id)
        if not inv:
            raise NotFoundError("invitation", invitation_id)
        if inv.user_id != self.user.id:
            raise ForbiddenError("this invitation is not addressed to you")
        return self._load_usable(inv)

    def accept(self, invitation_id: int) -> dict:
        return self._join(self._load_addressed(invitation_id))

    def redeem(self, code: str) -> dict:
        inv = self.repo.get_by_code(code.upper())
        if not inv:
            raise NotFoundError("invitation")
        return self._join(self._load_usable(inv))

    def reject(self, invitation_id: int) -> dict:
        inv = self._load_addressed(invitation_id)
        inv.used = True
        self.repo.save(inv)
        return self._out(inv)

    def _join(self, inv: models.Invitation) -> dict:
        """Enrol the caller and mark the invitation used in one transaction.

        The used flag is flipped with a conditional UPDATE so two callers
        racing on an open code cannot both redeem it.
        """
        if self.access.teaches(inv.course_id):
            raise ConflictError("teachers of a course cannot enrol in it")
        claim = (
            update(models.Invitation)
            .where(models.Invitation.id == inv.id, models.Invitation.used == False)  # noqa: E712
            .values(used=True, user_id=self.user.id)
        )
        if self.session.connection().execute(claim).rowcount != 1:
            self.session.rollback()
            raise ConflictError("invitation has already been used")
        already = self.course_repo.get_inscription(self.user.id, inv.course_id)
        if not already:
            self.session.add(models.Inscription(user_id=self.user.id, course_id=inv.course_id))
        members = repositories.MemberRepository(self.session)
        if not members.get_for_user(self.user.id, inv.course_id):
            self.session.add(models.Member(user_id=self.user.id, course_id=inv.course_id))
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("you are already enrolled in this course")
        self.session.refresh(inv)
        logger.info("user %s joined course %s via invitation %s", self.user.id, inv.course_id, inv.id)
        out = self._out(inv)
        out["already_enrolled"] = already is not None
        return out
