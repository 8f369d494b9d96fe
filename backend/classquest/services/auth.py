"""Registration, login, logout and profile management."""

import logging
import uuid
from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext
from sqlmodel import Session

from .. import models, repositories
from ..config import settings
from ..errors import AuthError, ConflictError, ValidationError

logger = logging.getLogger(__name__)

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def user_out(user: models.User, is_teacher: bool = None) -> dict:
    out = {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "username": user.username,
        "is_admin": user.is_admin,
        "created_at": user.created_at,
    }
    if is_teacher is not None:
        out["is_teacher"] = is_teacher
    return out


class AuthService:
    """Authentication related operations (register, login, logout)."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)
        self.session_repo = repositories.SessionRepository(session)

    def register(self, name: str, email: str, username: str, password: str) -> dict:
        """Create a user with a hashed password and log them in."""
        email = email.lower()
        if self.user_repo.get_by_email(email):
            raise ConflictError("email already registered")
        if self.user_repo.get_by_username(username):
            raise ConflictError("username already taken")
        user = models.User(
            name=name.strip(),
            email=email,
            username=username,
            password_hash=PWD_CTX.hash(password),
            is_admin=email in settings.ADMIN_EMAILS,
        )
        self.user_repo.save(user)
        logger.info("user registered id=%s admin=%s", user.id, user.is_admin)
        return {"user": user_out(user), "token": self.issue_token(user)}

    def login(self, email: str, password: str) -> dict:
        """Verify credentials and return a fresh token.

        The same error is raised for an unknown email and a wrong password.
        """
        user = self.user_repo.get_by_email(email)
        if not user or not PWD_CTX.verify(password, user.password_hash):
            raise AuthError("invalid email or password")
        return {"user": user_out(user), "token": self.issue_token(user)}

    def issue_token(self, user: models.User) -> str:
        """Sign a JWT and store it as a session row."""
        expires = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRE_HOURS)
        payload = {
            "user_id": user.id,
            "email": user.email,
            "username": user.username,
            "jti": uuid.uuid4().hex,
            "exp": int(expires.timestamp()),
        }
        token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
        self.session_repo.save(models.AuthSession(user_id=user.id, token=token, expires_at=expires))
        return token

    def logout(self, token: str) -> None:
        stored = self.session_repo.get_by_token(token)
        if stored:
            self.session_repo.delete(stored)


class ProfileService:
    """Self-service profile reads and updates for the current user."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)

    def get(self, user: models.User) -> dict:
        teacher = repositories.TeacherRepository(self.session).get_by_user(user.id)
        return user_out(user, is_teacher=teacher is not None)

    def update(self, user: models.User, changes: dict) -> dict:
        if changes.get("email"):
            email = changes["email"].lower()
            other = self.user_repo.get_by_email(email)
            if other and other.id != user.id:
                raise ConflictError("email already registered")
            user.email = email
        if changes.get("username"):
            other = self.user_repo.get_by_username(changes["username"])
            if other and other.id != user.id:
                raise ConflictError("username already taken")
            user.username = changes["username"]
        if changes.get("name"):
            user.name = changes["name"].strip()
        user.updated_at = datetime.now(timezone.utc)
        self.user_repo.save(user)
        return self.get(user)

    def change_password(self, user: models.User, current_password: str, new_password: str) -> None:
        if not PWD_CTX.verify(current_password, user.password_hash):
            raise ValidationError("current password is incorrect")
        if PWD_CTX.verify(new_password, user.password_hash):
            raise ValidationError("new password must differ from the current one")
        user.password_hash = PWD_CTX.hash(new_password)
        user.updated_at = datetime.now(timezone.utc)
        self.user_repo.save(user)
        logger.info("password changed user=%s", user.id)

    def delete_account(self, user: models.User) -> None:
        """Remove the user's sessions and the account itself.

        Accounts that teach or have joined a course are refused; leaving
        their rows dangling would break the course.
        """
        user_id = user.id
        if repositories.TeacherRepository(self.session).get_by_user(user.id):
            raise ConflictError("teachers cannot delete their account")
        if repositories.CourseRepository(self.session).inscriptions_for_user(user.id):
            raise ConflictError("accounts enrolled in courses cannot be deleted")
        for inv in repositories.InvitationRepository(self.session).addressed_to(user.id):
            inv.user_id = None
            inv.used = True
            self.session.add(inv)
        removed = repositories.SessionRepository(self.session).delete_for_user(user.id)
        self.session.delete(user)
        self.session.commit()
        logger.info("account deleted user=%s sessions=%s", user_id, removed)
