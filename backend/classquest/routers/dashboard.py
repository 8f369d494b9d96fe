"""Dashboard aggregates and the notification badge.

Endpoints implemented:
- GET /api/dashboard
- GET /api/dashboard/stats
- GET /api/dashboard/enrolled-courses
- GET /api/dashboard/teaching-courses
- GET /api/dashboard/activity
- GET /api/notifications/unread-count
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models
from ..auth import get_current_user
from ..database import get_session
from ..services import DashboardService

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])
notifications_router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("")
def dashboard(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return DashboardService(session, user).overview()


@router.get("/stats")
def dashboard_stats(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return DashboardService(session, user).stats()


@router.get("/enrolled-courses")
def dashboard_enrolled(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return DashboardService(session, user).enrolled_courses()


@router.get("/teaching-courses")
def dashboard_teaching(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return DashboardService(session, user).teaching_courses()


@router.get("/activity")
def dashboard_activity(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return DashboardService(session, user).activity()


@notifications_router.get("/unread-count")
def unread_count(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return DashboardService(session, user).unread_count()
