"""Quiz controllers.

Endpoints implemented:
- POST, GET /api/quizzes
- POST /api/quizzes/generate
- GET /api/quizzes/statistics/{character_id}
- GET /api/quizzes/leaderboard
- GET /api/quizzes/history
- GET, PUT, DELETE /api/quizzes/{quiz_id}
- POST /api/quizzes/{quiz_id}/answers
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from .. import models
from ..auth import get_current_user
from ..database import get_session
from ..schemas import QuizAnswerIn, QuizGenerateIn, QuizIn, QuizUpdate
from ..services import QuizService
from ..utils.quiz_generator import QuizGenerator

router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])


def get_quiz_generator() -> QuizGenerator:
    return QuizGenerator()


@router.post("", status_code=201)
def create_quiz(payload: QuizIn, user: models.User = Depends(get_current_user),
                session: Session = Depends(get_session)):
    questions = [q.model_dump() for q in payload.questions]
    return QuizService(session, user).create(payload.course_id, payload.title, payload.difficulty, questions)


@router.get("")
def list_quizzes(course_id: int, character_id: Optional[int] = None,
                 user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return QuizService(session, user).list(course_id, character_id)


@router.post("/generate")
def generate_questions(payload: QuizGenerateIn, user: models.User = Depends(get_current_user),
                       session: Session = Depends(get_session),
                       generator: QuizGenerator = Depends(get_quiz_generator)):
    return QuizService(session, user).generate(generator, payload.topic, payload.difficulty, payload.count)


@router.get("/statistics/{character_id}")
def quiz_statistics(character_id: int, user: models.User = Depends(get_current_user),
                    session: Session = Depends(get_session)):
    return QuizService(session, user).statistics(character_id)


@router.get("/leaderboard")
def quiz_leaderboard(group_id: Optional[int] = None, course_id: Optional[int] = None,
                     user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return QuizService(session, user).leaderboard(group_id=group_id, course_id=course_id)


@router.get("/history")
def quiz_history(character_id: int, limit: int = Query(default=10, ge=1, le=100),
                 user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return QuizService(session, user).history(character_id, limit)


@router.get("/{quiz_id}")
def get_quiz(quiz_id: int, character_id: Optional[int] = None, user: models.User = Depends(get_current_user),
             session: Session = Depends(get_session)):
    return QuizService(session, user).get(quiz_id, character_id)


@router.put("/{quiz_id}")
def update_quiz(quiz_id: int, payload: QuizUpdate, user: models.User = Depends(get_current_user),
                session: Session = Depends(get_session)):
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    return QuizService(session, user).update(quiz_id, changes)


@router.delete("/{quiz_id}", status_code=204)
def delete_quiz(quiz_id: int, user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    QuizService(session, user).delete(quiz_id)


@router.post("/{quiz_id}/answers", status_code=201)
def answer_question(quiz_id: int, payload: QuizAnswerIn, user: models.User = Depends(get_current_user),
                    session: Session = Depends(get_session)):
    return QuizService(session, user).answer(
        quiz_id,
        payload.character_id,
        payload.question_index,
        payload.selected_answer,
        payload.time_taken,
        payload.is_on_quest,
    )
