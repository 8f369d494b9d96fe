"""Character stat arithmetic shared by tasks, quizzes, events and teachers.

All stats are floored at zero; energy and health are also capped at the
configured maximum. Functions here never touch the database: callers
mutate a loaded `Character` and commit inside their own transaction.
"""

import math
from dataclasses import dataclass

from .config import settings


@dataclass(frozen=True)
class StatDelta:
    experience: int = 0
    gold: int = 0
    energy: int = 0
    health: int = 0

    def is_zero(self) -> bool:
        return not (self.experience or self.gold or self.energy or self.health)

    def as_dict(self) -> dict:
        return {
            "experience": self.experience,
            "gold": self.gold,
            "energy": self.energy,
            "health": self.health,
        }


def _clamp(value: int, upper: int = None) -> int:
    value = max(0, value)
    if upper is not None:
        value = min(upper, value)
    return value


def apply_delta(character, delta: StatDelta) -> StatDelta:
    """Apply `delta` to `character` in place and return the effective change."""
    before = (character.experience, character.gold, character.energy, character.health)
    character.experience = _clamp(character.experience + delta.experience)
    character.gold = _clamp(character.gold + delta.gold)
    character.energy = _clamp(character.energy + delta.energy, settings.MAX_ENERGY)
    character.health = _clamp(character.health + delta.health, settings.MAX_HEALTH)
    return StatDelta(
        experience=character.experience - before[0],
        gold=character.gold - before[1],
        energy=character.energy - before[2],
        health=character.health - before[3],
    )


def level_for(experience: int) -> int:
    return experience // 100 + 1


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def quiz_points(base_points: int, time_limit: float, time_taken: float, is_correct: bool) -> int:
    """Points for one answer: up to 50% bonus for answering quickly."""
    if not is_correct:
        return 0
    time_bonus = max(0.0, 1 - time_taken / time_limit) if time_limit > 0 else 0.0
    return round_half_up(base_points * (1 + time_bonus * 0.5))


def quiz_reward(points: int) -> StatDelta:
    return StatDelta(experience=points, gold=round_half_up(points / 10))
