"""Pydantic request schemas used by the API.

Responses are plain dicts shaped by the services; only inputs are
modelled here so FastAPI can validate them before a service runs.
"""

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

Difficulty = Literal["easy", "medium", "hard"]
EventType = Literal["disaster", "fortune", "neutral"]
EventRank = Literal["S", "A", "B", "C", "D"]


# auth / profile

class RegisterIn(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    username: str = Field(min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_]+$")
    password: str = Field(min_length=6, max_length=100)


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=100)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    username: Optional[str] = Field(default=None, min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_]+$")


class ChangePasswordIn(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6, max_length=100)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("new password and confirmation do not match")
        return self


# institutions / teachers / courses

class InstitutionIn(BaseModel):
    name: str = Field(min_length=3, max_length=200)
    address: Optional[str] = Field(default=None, max_length=300)
    phone: Optional[str] = Field(default=None, min_length=7, max_length=20)
    email: Optional[EmailStr] = None


class InstitutionUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=200)
    address: Optional[str] = Field(default=None, max_length=300)
    phone: Optional[str] = Field(default=None, min_length=7, max_length=20)
    email: Optional[EmailStr] = None


class AssignTeacherIn(BaseModel):
    teacher_id: int
    internal_id: Optional[str] = Field(default=None, max_length=50)


class TeacherIn(BaseModel):
    user_id: int
    institution_id: Optional[int] = None
    internal_id: Optional[str] = Field(default=None, max_length=50)


class CourseIn(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)


class CourseUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)


class CoTeacherIn(BaseModel):
    teacher_id: int


# invitations

class InvitationIn(BaseModel):
    course_id: int
    name: str = Field(min_length=3, max_length=100)
    email: Optional[EmailStr] = None


class RedeemIn(BaseModel):
    code: str = Field(min_length=8, max_length=8)


# groups / characters

class GroupIn(BaseModel):
    course_id: int
    name: str = Field(min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)


class GroupMembersIn(BaseModel):
    member_ids: List[int] = Field(min_length=1)


class CharacterIn(BaseModel):
    course_id: int
    class_id: int
    name: str = Field(min_length=2, max_length=50)
    appearance: dict = Field(default_factory=dict)


class StatAdjustIn(BaseModel):
    experience: int = 0
    gold: int = 0
    energy: int = 0
    health: int = 0
    reason: Optional[str] = Field(default=None, max_length=200)


class BulkStatItem(StatAdjustIn):
    character_id: int


class BulkStatAdjustIn(BaseModel):
    items: List[BulkStatItem] = Field(min_length=1)


# tasks

class TaskIn(BaseModel):
    course_id: int
    name: str = Field(min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    experience: int = Field(default=0, ge=0)
    gold: int = Field(default=0, ge=0)
    health: int = 0
    energy: int = 0
    due_date: Optional[date] = None


class TaskUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    experience: Optional[int] = Field(default=None, ge=0)
    gold: Optional[int] = Field(default=None, ge=0)
    health: Optional[int] = None
    energy: Optional[int] = None
    due_date: Optional[date] = None


class TaskAssignIn(BaseModel):
    group_ids: List[int] = Field(min_length=1)


class TaskCompleteIn(BaseModel):
    character_id: int


# quizzes

class AnswerOptionIn(BaseModel):
    text: str = Field(min_length=1, max_length=500)
    is_correct: bool = False


class QuestionIn(BaseModel):
    question: str = Field(min_length=10, max_length=1000)
    answers: List[AnswerOptionIn] = Field(min_length=2, max_length=4)
    points: int = Field(default=100, ge=10, le=1000)
    time_limit: int = Field(default=30, ge=5, le=300)

    @field_validator("answers")
    @classmethod
    def exactly_one_correct(cls, answers):
        if sum(1 for a in answers if a.is_correct) != 1:
            raise ValueError("exactly one answer must be correct")
        return answers


class QuizIn(BaseModel):
    course_id: int
    title: str = Field(min_length=3, max_length=200)
    difficulty: Difficulty = "medium"
    questions: List[QuestionIn] = Field(min_length=1, max_length=20)


class QuizUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    difficulty: Optional[Difficulty] = None
    questions: Optional[List[QuestionIn]] = Field(default=None, min_length=1, max_length=20)


class QuizAnswerIn(BaseModel):
    character_id: int
    question_index: int = Field(ge=0)
    selected_answer: int = Field(ge=0, le=3)
    time_taken: float = Field(ge=0)
    is_on_quest: bool = False


class QuizGenerateIn(BaseModel):
    topic: str = Field(min_length=3, max_length=200)
    difficulty: Difficulty = "medium"
    count: int = Field(default=5, ge=1, le=20)


# events

class EventIn(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    type: EventType = "neutral"
    rank: EventRank = "D"
    experience: int = 0
    gold: int = 0
    health: int = 0
    energy: int = 0
    is_active: bool = True
    is_global: bool = False
    course_id: Optional[int] = None

    @model_validator(mode="after")
    def scope(self):
        if not self.is_global and self.course_id is None:
            raise ValueError("course_id is required for course events")
        if self.is_global and self.course_id is not None:
            raise ValueError("global events cannot belong to a course")
        return self


class EventUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    type: Optional[EventType] = None
    rank: Optional[EventRank] = None
    experience: Optional[int] = None
    gold: Optional[int] = None
    health: Optional[int] = None
    energy: Optional[int] = None
    is_active: Optional[bool] = None


class EventApplyIn(BaseModel):
    character_ids: List[int] = Field(min_length=1)


class EventGroupIn(BaseModel):
    group_id: int
