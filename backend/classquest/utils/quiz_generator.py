"""Quiz question generation with Gemini.

The model is asked for a JSON array of multiple-choice questions. Its
reply is cleaned (markdown fences stripped), validated and normalised
into the same shape `QuizIn.questions` accepts, with answers shuffled so
the correct option is not always first.
"""

import json
import logging
import random
import re

import google.generativeai as genai

from ..config import settings
from ..errors import UpstreamError

logger = logging.getLogger(__name__)

POINTS_BY_DIFFICULTY = {"easy": 10, "medium": 15, "hard": 20}
TIME_LIMIT_BY_DIFFICULTY = {"easy": 30, "medium": 45, "hard": 60}

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

PROMPT_TEMPLATE = """You are a teacher writing a classroom quiz.
Write {count} multiple-choice questions about "{topic}" at {difficulty} difficulty.
Every question has exactly 4 answers and exactly one of them is correct.
Reply with JSON only, no prose, as an array of objects shaped like:
[{{"question": "...", "answers": [{{"text": "...", "is_correct": true}}, {{"text": "...", "is_correct": false}}, {{"text": "...", "is_correct": false}}, {{"text": "...", "is_correct": false}}]}}]
"""


def strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text.strip()).strip()


def normalise_questions(raw: list, difficulty: str, rng: random.Random = None) -> list:
    """Validate model output and give every question points, time limit and shuffled answers.

    Questions that do not have exactly four answers with one correct are
    dropped; an empty result is an upstream failure.
    """
    rng = rng or random.Random()
    out = []
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict):
            continue
        text = str(item.get("question", "")).strip()
        answers = item.get("answers")
        if len(text) < 10 or not isinstance(answers, list) or len(answers) != 4:
            continue
        cleaned = [
            {"text": str(a.get("text", "")).strip(), "is_correct": bool(a.get("is_correct"))}
            for a in answers if isinstance(a, dict)
        ]
        if len(cleaned) != 4 or any(not a["text"] for a in cleaned):
            continue
        if sum(a["is_correct"] for a in cleaned) != 1:
            continue
        rng.shuffle(cleaned)
        out.append({
            "question": text[:1000],
            "answers": cleaned,
            "correct_answer_index": next(i for i, a in enumerate(cleaned) if a["is_correct"]),
            "points": POINTS_BY_DIFFICULTY[difficulty],
            "time_limit": TIME_LIMIT_BY_DIFFICULTY[difficulty],
        })
    if not out:
        raise UpstreamError("quiz generator returned no usable questions")
    return out


class QuizGenerator:
    """Thin wrapper around a Gemini model."""

    def __init__(self, api_key: str = None, model_name: str = None):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model_name = model_name or settings.GEMINI_MODEL

    def _complete(self, prompt: str) -> str:
        if not self.api_key:
            raise UpstreamError("quiz generation is not configured")
        genai.configure(api_key=self.api_key)
        model = genai.GenerativeModel(self.model_name)
        try:
            response = model.generate_content(prompt)
            return response.text
        except Exception as exc:
            logger.exception("gemini request failed")
            raise UpstreamError("quiz generator request failed") from exc

    def generate(self, topic: str, difficulty: str = "medium", count: int = 5) -> list:
        prompt = PROMPT_TEMPLATE.format(count=count, topic=topic, difficulty=difficulty)
        text = self._complete(prompt)
        try:
            raw = json.loads(strip_fences(text))
        except json.JSONDecodeError as exc:
            logger.warning("quiz generator returned invalid JSON (%s chars)", len(text or ""))
            raise UpstreamError("quiz generator returned invalid JSON") from exc
        questions = normalise_questions(raw, difficulty)[:count]
        logger.info("generated %s questions on %r (%s)", len(questions), topic, difficulty)
        return questions
