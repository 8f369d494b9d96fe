"""SQLModel data models.

Each class maps to one table. Relationships are plain foreign keys; the
repositories perform the joins explicitly.
"""

from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """A registered user.

    Fields:
    - `email`: unique login, stored lower-cased
    - `username`: unique public handle
    - `password_hash`: hashed password string (never store plaintext)
    - `is_admin`: may manage institutions, teachers and global events
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    username: str = Field(index=True, unique=True)
    password_hash: str
    is_admin: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class AuthSession(SQLModel, table=True):
    """An issued bearer token. Deleting the row revokes the token."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    token: str = Field(unique=True, index=True)
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)


class Institution(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class Teacher(SQLModel, table=True):
    """A user allowed to create and run courses."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", unique=True)
    institution_id: Optional[int] = Field(default=None, foreign_key="institution.id")
    internal_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class Course(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TeacherCourse(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("teacher_id", "course_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    teacher_id: int = Field(foreign_key="teacher.id", index=True)
    course_id: int = Field(foreign_key="course.id", index=True)


class Inscription(SQLModel, table=True):
    """Enrolment of a user in a course."""
    __table_args__ = (UniqueConstraint("user_id", "course_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)


class Group(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    name: str
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class Member(SQLModel, table=True):
    """A student's seat in a course. `group_id` is None while unassigned."""
    __table_args__ = (UniqueConstraint("user_id", "course_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    group_id: Optional[int] = Field(default=None, foreign_key="group.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)


class CharacterClass(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True)
    description: Optional[str] = None
    speed: int = 5


class Character(SQLModel, table=True):
    """The avatar a member plays with; it carries all the game stats."""
    id: Optional[int] = Field(default=None, primary_key=True)
    member_id: int = Field(foreign_key="member.id", unique=True)
    class_id: int = Field(foreign_key="characterclass.id")
    name: str
    appearance: dict = Field(default_factory=dict, sa_column=Column(JSON))
    experience: int = 0
    gold: int = 0
    energy: int = 100
    health: int = 100
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Task(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    name: str
    description: Optional[str] = None
    experience: int = 0
    gold: int = 0
    health: int = 0
    energy: int = 0
    due_date: Optional[date] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class CharacterTask(SQLModel, table=True):
    """Assignment of a task to a character plus its completion state."""
    __table_args__ = (UniqueConstraint("task_id", "character_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="task.id", index=True)
    character_id: int = Field(foreign_key="character.id", index=True)
    completed: bool = False
    completed_at: Optional[datetime] = None
    assigned_at: datetime = Field(default_factory=utcnow)


class Quiz(SQLModel, table=True):
    """A multi-question quiz.

    `questions` is a JSON list of
    ``{"question", "answers": [{"text", "is_correct"}], "correct_answer_index",
    "points", "time_limit"}``.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    teacher_id: int = Field(foreign_key="teacher.id")
    title: str
    difficulty: str = "medium"
    questions: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class QuizHistory(SQLModel, table=True):
    """One answered question of a quiz by a character."""
    __table_args__ = (UniqueConstraint("quiz_id", "character_id", "question_index"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    quiz_id: int = Field(foreign_key="quiz.id", index=True)
    character_id: int = Field(foreign_key="character.id", index=True)
    question_index: int
    selected_answer: int
    is_correct: bool
    points_earned: int = 0
    time_taken: float = 0
    is_on_quest: bool = False
    answered_at: datetime = Field(default_factory=utcnow)


class Event(SQLModel, table=True):
    """A disaster, fortune or neutral event that shifts character stats.

    Global events (`is_global`) are available to every course; the others
    belong to `course_id`.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    type: str = "neutral"
    rank: str = "D"
    experience: int = 0
    gold: int = 0
    health: int = 0
    energy: int = 0
    is_active: bool = True
    is_global: bool = False
    course_id: Optional[int] = Field(default=None, foreign_key="course.id", index=True)
    created_by: Optional[int] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class EventHistory(SQLModel, table=True):
    """What an event actually changed on one character (after clamping)."""
    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    character_id: int = Field(foreign_key="character.id", index=True)
    experience_change: int = 0
    gold_change: int = 0
    health_change: int = 0
    energy_change: int = 0
    applied_at: datetime = Field(default_factory=utcnow)


class Invitation(SQLModel, table=True):
    """An invitation to join a course, either addressed to a user or open."""
    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    created_by: int = Field(foreign_key="user.id")
    user_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    name: str
    code: str = Field(unique=True, index=True)
    used: bool = False
    created_at: datetime = Field(default_factory=utcnow)
