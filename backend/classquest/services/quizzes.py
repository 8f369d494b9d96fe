"""Quizzes: authoring, answering with time-bonus scoring, statistics."""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from .. import models, repositories
from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..permissions import Access
from ..stats import apply_delta, quiz_points, quiz_reward
from .characters import character_out

logger = logging.getLogger(__name__)


def build_questions(questions: list) -> list:
    """Normalise question payloads into the stored JSON shape."""
    out = []
    for q in questions:
        answers = [{"text": a["text"], "is_correct": bool(a["is_correct"])} for a in q["answers"]]
        out.append({
            "question": q["question"],
            "answers": answers,
            "correct_answer_index": next(i for i, a in enumerate(answers) if a["is_correct"]),
            "points": q.get("points", 100),
            "time_limit": q.get("time_limit", 30),
        })
    return out


def question_out(index: int, q: dict, reveal: bool, history: models.QuizHistory = None) -> dict:
    """Public view of one question; the correct answer stays hidden until `reveal` or answered."""
    show = reveal or history is not None
    out = {
        "index": index,
        "question": q["question"],
        "answers": [
            {"text": a["text"], **({"is_correct": a["is_correct"]} if show else {})} for a in q["answers"]
        ],
        "points": q["points"],
        "time_limit": q["time_limit"],
        "answered": history is not None,
    }
    if show:
        out["correct_answer_index"] = q["correct_answer_index"]
    if history is not None:
        out["selected_answer"] = history.selected_answer
        out["is_correct"] = history.is_correct
        out["points_earned"] = history.points_earned
    return out


class QuizService:
    def __init__(self, session: Session, user: models.User):
        self.session = session
        self.user = user
        self.access = Access(session, user)
        self.repo = repositories.QuizRepository(session)
        self.character_repo = repositories.CharacterRepository(session)
        self.member_repo = repositories.MemberRepository(session)

    def _get(self, quiz_id: int) -> models.Quiz:
        quiz = self.repo.get(quiz_id)
        if not quiz:
            raise NotFoundError("quiz", quiz_id)
        return quiz

    def _summary(self, quiz: models.Quiz) -> dict:
        return {
            "id": quiz.id,
            "course_id": quiz.course_id,
            "teacher_id": quiz.teacher_id,
            "title": quiz.title,
            "difficulty": quiz.difficulty,
            "question_count": len(quiz.questions),
            "total_points": sum(q["points"] for q in quiz.questions),
            "created_at": quiz.created_at,
        }

    def _character_in_course(self, character_id: int, course_id: int) -> models.Character:
        character, member = self.access.require_character(character_id)
        if member.course_id != course_id:
            raise ForbiddenError("character is not part of this quiz's course")
        return character

    def create(self, course_id: int, title: str, difficulty: str, questions: list) -> dict:
        teacher = self.access.require_teacher()
        self.access.require_course_teacher(course_id)
        quiz = self.repo.save(
            models.Quiz(
                course_id=course_id,
                teacher_id=teacher.id,
                title=title.strip(),
                difficulty=difficulty,
                questions=build_questions(questions),
            )
        )
        logger.info("quiz %s created in course %s with %s questions", quiz.id, course_id, len(quiz.questions))
        return self.get(quiz.id)

    def list(self, course_id: int, character_id: int = None) -> list:
        self.access.require_participant(course_id)
        if character_id is not None:
            self._character_in_course(character_id, course_id)
        out = []
        for quiz in self.repo.list_by_course(course_id):
            item = self._summary(quiz)
            if character_id is not None:
                history = self.repo.history_for(quiz.id, character_id)
                item["answered_count"] = len(history)
                item["completed"] = len(history) >= len(quiz.questions)
                item["points_earned"] = sum(h.points_earned for h in history)
            out.append(item)
        return out

    def get(self, quiz_id: int, character_id: int = None) -> dict:
        quiz = self._get(quiz_id)
        self.access.require_participant(quiz.course_id)
        reveal = self.access.teaches(quiz.course_id)
        answered = {}
        if character_id is not None:
            self._character_in_course(character_id, quiz.course_id)
            answered = {h.question_index: h for h in self.repo.history_for(quiz.id, character_id)}
        out = self._summary(quiz)
        out["questions"] = [
            question_out(i, q, reveal, answered.get(i)) for i, q in enumerate(quiz.questions)
        ]
        return out

    def update(self, quiz_id: int, changes: dict) -> dict:
        quiz = self._get(quiz_id)
        self.access.require_course_teacher(quiz.course_id)
        if "questions" in changes:
            if self.repo.history_for_quiz(quiz.id):
                raise ConflictError("quiz already has answers; its questions cannot change")
            quiz.questions = build_questions(changes.pop("questions"))
        for key, value in changes.items():
            setattr(quiz, key, value)
        quiz.updated_at = datetime.now(timezone.utc)
        self.repo.save(quiz)
        return self.get(quiz.id)

    def delete(self, quiz_id: int) -> None:
        quiz = self._get(quiz_id)
        self.access.require_course_teacher(quiz.course_id)
        for row in self.repo.history_for_quiz(quiz.id):
            self.session.delete(row)
        self.session.delete(quiz)
        self.session.commit()
        logger.info("quiz %s deleted", quiz_id)

    def answer(self, quiz_id: int, character_id: int, question_index: int, selected_answer: int,
               time_taken: float, is_on_quest: bool = False) -> dict:
        """Record one answer and award points; each question counts once per character."""
        quiz = self._get(quiz_id)
        character = self.character_repo.get(character_id)
        if not character:
            raise NotFoundError("character", character_id)
        member = self.member_repo.get(character.member_id)
        if not self.access.owns(member):
            raise ForbiddenError("you can only answer with your own character")
        if member.course_id != quiz.course_id:
            raise ForbiddenError("character is not part of this quiz's course")
        if question_index >= len(quiz.questions):
            raise ValidationError("question index out of range")
        question = quiz.questions[question_index]
        if selected_answer >= len(question["answers"]):
            raise ValidationError("selected answer out of range")
        if any(h.question_index == question_index for h in self.repo.history_for(quiz.id, character.id)):
            raise ConflictError("question already answered")

        is_correct = selected_answer == question["correct_answer_index"]
        points = quiz_points(question["points"], question["time_limit"], time_taken, is_correct)
        self.session.add(models.QuizHistory(
            quiz_id=quiz.id,
            character_id=character.id,
            question_index=question_index,
            selected_answer=selected_answer,
            is_correct=is_correct,
            points_earned=points,
            time_taken=time_taken,
            is_on_quest=is_on_quest,
        ))
        applied = apply_delta(character, quiz_reward(points))
        character.updated_at = datetime.now(timezone.utc)
        self.session.add(character)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("question already answered")
        self.session.refresh(character)
        answered = len(self.repo.history_for(quiz.id, character.id))
        logger.info(
            "quiz %s q%s answered by character %s correct=%s points=%s",
            quiz.id, question_index, character.id, is_correct, points,
        )
        return {
            "quiz_id": quiz.id,
            "question_index": question_index,
            "is_correct": is_correct,
            "correct_answer_index": question["correct_answer_index"],
            "points_earned": points,
            "rewards": applied.as_dict(),
            "quiz_completed": answered >= len(quiz.questions),
            "character": character_out(character),
        }

    def statistics(self, character_id: int) -> dict:
        _, member = self.access.require_character(character_id)
        quizzes = self.repo.list_by_course(member.course_id)
        history = self.repo.history_for_character(character_id)
        by_quiz = {}
        for h in history:
            by_quiz[h.quiz_id] = by_quiz.get(h.quiz_id, 0) + 1
        correct = sum(1 for h in history if h.is_correct)
        return {
            "character_id": character_id,
            "total_quizzes": len(quizzes),
            "total_questions": sum(len(q.questions) for q in quizzes),
            "completed_quizzes": sum(1 for q in quizzes if by_quiz.get(q.id, 0) >= len(q.questions)),
            "answered_questions": len(history),
            "correct_answers": correct,
            "incorrect_answers": len(history) - correct,
            "total_points": sum(h.points_earned for h in history),
            "average_time_taken": round(sum(h.time_taken for h in history) / len(history), 2) if history else 0,
            "accuracy": round(correct / len(history) * 100, 2) if history else 0,
        }

    def leaderboard(self, group_id: int = None, course_id: int = None) -> list:
        """Rank characters by quiz points, breaking ties by faster average time."""
        if group_id is not None:
            group = repositories.GroupRepository(self.session).get(group_id)
            if not group:
                raise NotFoundError("group", group_id)
            self.access.require_participant(group.course_id)
            characters = self.character_repo.list_by_group(group.id)
        elif course_id is not None:
            self.access.require_participant(course_id)
            characters = self.character_repo.list_by_course(course_id)
        else:
            raise ValidationError("group_id or course_id is required")

        rows = []
        for character in characters:
            history = self.repo.history_for_character(character.id)
            rows.append({
                "character_id": character.id,
                "name": character.name,
                "total_points": sum(h.points_earned for h in history),
                "correct_answers": sum(1 for h in history if h.is_correct),
                "answered_questions": len(history),
                "average_time_taken": round(sum(h.time_taken for h in history) / len(history), 2) if history else 0,
            })
        rows.sort(key=lambda r: (-r["total_points"], r["average_time_taken"]))
        for position, row in enumerate(rows, start=1):
            row["position"] = position
        return rows

    def history(self, character_id: int, limit: int = 10) -> list:
        self.access.require_character(character_id)
        out = []
        titles = {}
        for h in self.repo.history_for_character(character_id, limit=limit):
            if h.quiz_id not in titles:
                quiz = self.repo.get(h.quiz_id)
                titles[h.quiz_id] = quiz
            quiz = titles[h.quiz_id]
            out.append({
                "quiz_id": h.quiz_id,
                "quiz_title": quiz.title if quiz else None,
                "question_index": h.question_index,
                "question": quiz.questions[h.question_index]["question"] if quiz else None,
                "selected_answer": h.selected_answer,
                "is_correct": h.is_correct,
                "points_earned": h.points_earned,
                "time_taken": h.time_taken,
                "is_on_quest": h.is_on_quest,
                "answered_at": h.answered_at,
            })
        return out

    def generate(self, generator, topic: str, difficulty: str, count: int) -> dict:
        """Draft questions with the model; nothing is stored until the teacher creates the quiz."""
        self.access.require_teacher()
        return {
            "topic": topic,
            "difficulty": difficulty,
            "questions": generator.generate(topic, difficulty=difficulty, count=count),
        }
