"""Business logic services used by the HTTP routers.

Services validate business rules, run the domain logic and persist rows
through repositories. They raise `classquest.errors` exceptions which the
application maps to HTTP responses.
"""

from .auth import AuthService, ProfileService
from .characters import CharacterService
from .courses import CourseService
from .dashboard import DashboardService
from .events import EventService
from .groups import GroupService
from .institutions import InstitutionService
from .invitations import InvitationService
from .quizzes import QuizService
from .tasks import TaskService
from .teachers import TeacherService

__all__ = [
    "AuthService",
    "CharacterService",
    "CourseService",
    "DashboardService",
    "EventService",
    "GroupService",
    "InstitutionService",
    "InvitationService",
    "ProfileService",
    "QuizService",
    "TaskService",
    "TeacherService",
]
