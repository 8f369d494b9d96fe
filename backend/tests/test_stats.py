from types import SimpleNamespace

from classquest.stats import StatDelta, apply_delta, level_for, quiz_points, quiz_reward, round_half_up


def _character(**kwargs):
    base = {"experience": 0, "gold": 0, "energy": 100, "health": 100}
    base.update(kwargs)
    return SimpleNamespace(**base)


def test_apply_delta_floors_and_caps():
    c = _character(gold=30, energy=90, health=20)
    applied = apply_delta(c, StatDelta(experience=50, gold=-100, energy=25, health=-50))
    assert (c.experience, c.gold, c.energy, c.health) == (50, 0, 100, 0)
    assert applied == StatDelta(experience=50, gold=-30, energy=10, health=-20)


def test_zero_delta_changes_nothing():
    c = _character(experience=7)
    applied = apply_delta(c, StatDelta())
    assert applied.is_zero()
    assert c.experience == 7


def test_levels():
    assert level_for(0) == 1
    assert level_for(99) == 1
    assert level_for(100) == 2
    assert level_for(1250) == 13


def test_quiz_points():
    assert quiz_points(100, 30, 0, True) == 150
    assert quiz_points(100, 30, 15, True) == 125
    assert quiz_points(100, 30, 45, True) == 100
    assert quiz_points(100, 30, 1, False) == 0
    assert quiz_points(15, 45, 9, True) == 21  # 15 * 1.4 = 21.0


def test_round_half_up_and_reward():
    assert round_half_up(12.5) == 13
    assert round_half_up(2.5) == 3
    assert quiz_reward(125) == StatDelta(experience=125, gold=13)
