"""Per-user dashboard aggregates."""

from datetime import timezone

from sqlmodel import Session

from .. import models, repositories
from ..stats import level_for, round_half_up

COURSE_COLORS = ["#6366f1", "#10b981", "#f59e0b", "#ef4444", "#3b82f6", "#8b5cf6", "#ec4899", "#14b8a6"]
ACTIVITY_LIMIT = 10


def course_color(name: str) -> str:
    return COURSE_COLORS[sum(ord(ch) for ch in name) % len(COURSE_COLORS)]


def _utc(value):
    return value if value is None or value.tzinfo else value.replace(tzinfo=timezone.utc)


class DashboardService:
    def __init__(self, session: Session, user: models.User):
        self.session = session
        self.user = user
        self.courses = repositories.CourseRepository(session)
        self.teachers = repositories.TeacherRepository(session)
        self.members = repositories.MemberRepository(session)
        self.characters = repositories.CharacterRepository(session)
        self.tasks = repositories.TaskRepository(session)
        self.users = repositories.UserRepository(session)

    def _teaching_ids(self) -> list:
        teacher = self.teachers.get_by_user(self.user.id)
        return self.teachers.course_ids(teacher.id) if teacher else []

    def _average_experience(self, course_id: int) -> float:
        characters = self.characters.list_by_course(course_id)
        return sum(c.experience for c in characters) / len(characters) if characters else 0

    def stats(self) -> dict:
        enrolled = self.courses.inscriptions_for_user(self.user.id)
        teaching = self._teaching_ids()
        mine = self.characters.list_for_user(self.user.id)
        return {
            "enrolled_courses": len(enrolled),
            "teaching_courses": len(teaching),
            "total_students": sum(self.courses.count_inscriptions(cid) for cid in teaching),
            "average_level": round(sum(level_for(c.experience) for c in mine) / len(mine), 2) if mine else 0,
        }

    def enrolled_courses(self) -> list:
        out = []
        for inscription in self.courses.inscriptions_for_user(self.user.id):
            course = self.courses.get(inscription.course_id)
            teachers = self.teachers.for_course(course.id)
            instructor = self.users.get(teachers[0].user_id) if teachers else None
            member = self.members.get_for_user(self.user.id, course.id)
            character = self.characters.get_by_member(member.id) if member else None
            progress = 0
            if character:
                rows = self.tasks.assignments_for_character(character.id)
                if rows:
                    progress = round(sum(1 for r in rows if r.completed) / len(rows) * 100)
            group = repositories.GroupRepository(self.session).get(member.group_id) if member and member.group_id else None
            out.append({
                "id": course.id,
                "name": course.name,
                "description": course.description,
                "instructor": instructor.name if instructor else None,
                "color": course_color(course.name),
                "progress": progress,
                "level": max(1, round_half_up(self._average_experience(course.id) / 100)),
                "group": group.name if group else None,
                "character_id": character.id if character else None,
                "enrolled_at": inscription.created_at,
            })
        return out

    def teaching_courses(self) -> list:
        groups = repositories.GroupRepository(self.session)
        quizzes = repositories.QuizRepository(self.session)
        out = []
        for course in self.courses.list_by_ids(self._teaching_ids()):
            out.append({
                "id": course.id,
                "name": course.name,
                "description": course.description,
                "color": course_color(course.name),
                "students": self.courses.count_inscriptions(course.id),
                "groups": groups.count_by_course(course.id),
                "quests": len(self.tasks.list_by_course(course.id)) + len(quizzes.list_by_course(course.id)),
                "level": max(1, round_half_up(self._average_experience(course.id) / 500)),
            })
        return out

    def activity(self, limit: int = ACTIVITY_LIMIT) -> list:
        """Newest events across enrolments, completed tasks, quiz answers and applied events."""
        items = []
        for inscription in self.courses.inscriptions_for_user(self.user.id)[:limit]:
            course = self.courses.get(inscription.course_id)
            items.append({
                "type": "enrolment",
                "title": f"Joined {course.name}" if course else "Joined a course",
                "course_id": inscription.course_id,
                "at": _utc(inscription.created_at),
            })
        character_ids = [c.id for c in self.characters.list_for_user(self.user.id)]
        for row in self.tasks.completions_for_characters(character_ids, limit=limit):
            task = self.tasks.get(row.task_id)
            items.append({
                "type": "task_completed",
                "title": f"Completed {task.name}" if task else "Completed a task",
                "character_id": row.character_id,
                "at": _utc(row.completed_at),
            })
        quizzes = repositories.QuizRepository(self.session)
        for row in quizzes.history_for_characters(character_ids, limit=limit):
            quiz = quizzes.get(row.quiz_id)
            items.append({
                "type": "quiz_answer",
                "title": f"{'Correct' if row.is_correct else 'Wrong'} answer in {quiz.title if quiz else 'a quiz'}",
                "character_id": row.character_id,
                "points": row.points_earned,
                "at": _utc(row.answered_at),
            })
        events = repositories.EventRepository(self.session)
        for row in events.history_for_characters(character_ids, limit=limit):
            event = events.get(row.event_id)
            items.append({
                "type": "event",
                "title": event.name if event else "Event",
                "event_type": event.type if event else None,
                "character_id": row.character_id,
                "at": _utc(row.applied_at),
            })
        items.sort(key=lambda i: i["at"], reverse=True)
        return items[:limit]

    def overview(self) -> dict:
        return {
            "stats": self.stats(),
            "enrolled_courses": self.enrolled_courses(),
            "teaching_courses": self.teaching_courses(),
            "activity": self.activity(),
        }

    def unread_count(self) -> dict:
        pending = repositories.InvitationRepository(self.session).pending_for_user(self.user.id)
        return {"count": len(pending)}
