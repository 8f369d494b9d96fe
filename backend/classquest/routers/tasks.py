"""Task controllers.

Endpoints implemented:
- POST, GET /api/tasks
- GET, PUT, DELETE /api/tasks/{task_id}
- POST /api/tasks/{task_id}/assign
- POST /api/tasks/{task_id}/complete
- GET /api/tasks/{task_id}/progress
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models
from ..auth import get_current_user
from ..database import get_session
from ..errors import ValidationError
from ..schemas import TaskAssignIn, TaskCompleteIn, TaskIn, TaskUpdate
from ..services import TaskService

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.post("", status_code=201)
def create_task(payload: TaskIn, user: models.User = Depends(get_current_user),
                session: Session = Depends(get_session)):
    return TaskService(session, user).create(payload.model_dump())


@router.get("")
def list_tasks(course_id: Optional[int] = None, character_id: Optional[int] = None,
               user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    service = TaskService(session, user)
    if character_id is not None:
        return service.list_for_character(character_id)
    if course_id is not None:
        return service.list_for_course(course_id)
    raise ValidationError("course_id or character_id is required")


@router.get("/{task_id}")
def get_task(task_id: int, user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return TaskService(session, user).get(task_id)


@router.put("/{task_id}")
def update_task(task_id: int, payload: TaskUpdate, user: models.User = Depends(get_current_user),
                session: Session = Depends(get_session)):
    return TaskService(session, user).update(task_id, payload.model_dump(exclude_unset=True, exclude_none=True))


@router.delete("/{task_id}", status_code=204)
def delete_task(task_id: int, user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    TaskService(session, user).delete(task_id)


@router.post("/{task_id}/assign")
def assign_task(task_id: int, payload: TaskAssignIn, user: models.User = Depends(get_current_user),
                session: Session = Depends(get_session)):
    return TaskService(session, user).assign_to_groups(task_id, payload.group_ids)


@router.post("/{task_id}/complete")
def complete_task(task_id: int, payload: TaskCompleteIn, user: models.User = Depends(get_current_user),
                  session: Session = Depends(get_session)):
    return TaskService(session, user).complete(task_id, payload.character_id)


@router.get("/{task_id}/progress")
def task_progress(task_id: int, user: models.User = Depends(get_current_user),
                  session: Session = Depends(get_session)):
    return TaskService(session, user).progress(task_id)
