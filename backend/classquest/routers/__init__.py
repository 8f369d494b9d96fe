"""HTTP routers; each module wires one resource to its service."""

from . import (
    auth,
    characters,
    courses,
    dashboard,
    events,
    groups,
    institutions,
    invitations,
    quizzes,
    tasks,
    teachers,
)

ALL_ROUTERS = [
    auth.router,
    auth.profile_router,
    institutions.router,
    teachers.router,
    courses.router,
    invitations.router,
    groups.router,
    characters.router,
    tasks.router,
    quizzes.router,
    events.router,
    dashboard.router,
    dashboard.notifications_router,
]
