"""Registration, login, logout and the caller's own profile.

Endpoints implemented:
- POST /api/auth/register
- POST /api/auth/login
- POST /api/auth/logout
- GET /api/auth/me
- GET, PUT, DELETE /api/profile
- POST /api/profile/change-password
"""

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from .. import models
from ..auth import get_current_user, get_token
from ..config import settings
from ..database import get_session
from ..schemas import ChangePasswordIn, LoginIn, ProfileUpdate, RegisterIn
from ..services import AuthService, ProfileService
from ..utils.rate_limit import SlidingWindowLimiter

router = APIRouter(prefix="/api/auth", tags=["auth"])
profile_router = APIRouter(prefix="/api/profile", tags=["profile"])

login_limiter = SlidingWindowLimiter(settings.LOGIN_RATE_LIMIT, settings.LOGIN_RATE_WINDOW_SECONDS)


@router.post("/register", status_code=201)
def register(payload: RegisterIn, session: Session = Depends(get_session)):
    return AuthService(session).register(payload.name, payload.email, payload.username, payload.password)


@router.post("/login")
def login(payload: LoginIn, request: Request, session: Session = Depends(get_session)):
    key = f"{request.client.host if request.client else 'unknown'}:{payload.email.lower()}"
    login_limiter.hit(key)
    result = AuthService(session).login(payload.email, payload.password)
    login_limiter.clear(key)
    return result


@router.post("/logout", status_code=204)
def logout(token: str = Depends(get_token), user: models.User = Depends(get_current_user),
           session: Session = Depends(get_session)):
    AuthService(session).logout(token)


@router.get("/me")
def me(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return ProfileService(session).get(user)


@profile_router.get("")
def get_profile(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return ProfileService(session).get(user)


@profile_router.put("")
def update_profile(payload: ProfileUpdate, user: models.User = Depends(get_current_user),
                   session: Session = Depends(get_session)):
    return ProfileService(session).update(user, payload.model_dump(exclude_unset=True, exclude_none=True))


@profile_router.post("/change-password", status_code=204)
def change_password(payload: ChangePasswordIn, user: models.User = Depends(get_current_user),
                    session: Session = Depends(get_session)):
    ProfileService(session).change_password(user, payload.current_password, payload.new_password)


@profile_router.delete("", status_code=204)
def delete_account(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    ProfileService(session).delete_account(user)
