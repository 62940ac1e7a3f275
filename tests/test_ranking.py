import pytest

from matchverse.ranking import (
    BRACKETS,
    TIERS,
    bracket_for,
    calculate_point_delta,
    rank_tier_for,
)


@pytest.mark.parametrize(
    "points,win,loss",
    [
        (0, 125, -50),
        (499, 125, -50),
        (500, 100, -75),
        (999, 100, -75),
        (1000, 100, -100),
        (1500, 50, -100),
        (2000, 50, -125),
        (2499, 50, -125),
        (2500, 25, -125),
        (3000, 25, -135),
        (3500, 20, -135),
        (3999, 20, -135),
        (4000, 20, -250),
        (10_000, 20, -250),
    ],
)
def test_point_delta_table(points, win, loss):
    assert calculate_point_delta(points, True) == win
    assert calculate_point_delta(points, False) == loss


def test_brackets_are_contiguous():
    bounds = [b.lower_bound for b in BRACKETS]
    assert bounds[0] == 0
    assert all(b - a == 500 for a, b in zip(bounds, bounds[1:]))
    assert all(b.win_delta > 0 and b.loss_delta < 0 for b in BRACKETS)


def test_every_total_falls_in_a_bracket():
    for points in range(0, 5000, 7):
        b = bracket_for(points)
        assert b.lower_bound <= points
        assert points - b.lower_bound < 500 or b is BRACKETS[-1]


def test_negative_points_rejected():
    with pytest.raises(ValueError):
        calculate_point_delta(-1, True)


@pytest.mark.parametrize(
    "points,tier",
    [
        (0, "Beginner 01"),
        (525, "Beginner 02"),
        (1499, "Beginner 03"),
        (1500, "Intermediate 01"),
        (2750, "Intermediate 03"),
        (3000, "Expert 01"),
        (3850, "Expert 02"),
        (4499, "Expert 03"),
    ],
)
def test_rank_tier_for(points, tier):
    assert rank_tier_for(points) == tier


def test_nine_tiers():
    assert len(TIERS) == 9
    assert len(set(TIERS)) == 9


def test_tier_kept_above_ceiling():
    assert rank_tier_for(4500, current="Expert 02") == "Expert 02"
    assert rank_tier_for(9000, current="Expert 03") == "Expert 03"
    assert rank_tier_for(4600) == "Expert 03"


def test_winner_scenario():
    delta = calculate_point_delta(400, True)
    assert delta == 125
    assert rank_tier_for(400 + delta) == "Beginner 02"


def test_loser_scenario():
    delta = calculate_point_delta(4100, False)
    assert delta == -250
    assert 4100 + delta == 3850
    assert rank_tier_for(3850) == "Expert 02"
