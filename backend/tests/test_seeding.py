"""Seed order, round counts and stage names for single-elimination draws."""
import pytest

from competition_engine.utils.seeding import (
    bracket_match_code,
    bracket_seed_order,
    meeting_round_number,
    round_name,
    total_rounds,
)


@pytest.mark.parametrize(
    "participants,expected",
    [(2, 1), (3, 2), (4, 2), (5, 3), (8, 3), (9, 4), (16, 4), (17, 5), (64, 6)],
)
def test_total_rounds(participants, expected):
    assert total_rounds(participants) == expected


def test_total_rounds_below_two_is_zero():
    assert total_rounds(1) == 0
    assert total_rounds(0) == 0


def test_standard_seed_orders():
    assert bracket_seed_order(2) == [1, 2]
    assert bracket_seed_order(4) == [1, 4, 2, 3]
    assert bracket_seed_order(8) == [1, 8, 4, 5, 2, 7, 3, 6]


def test_seed_order_round_one_pairs_sum_to_size_plus_one():
    size = 32
    order = bracket_seed_order(size)
    assert sorted(order) == list(range(1, size + 1))
    for i in range(0, size, 2):
        assert order[i] + order[i + 1] == size + 1


@pytest.mark.parametrize("size", [0, 1, 3, 6, 12])
def test_seed_order_rejects_non_power_of_two(size):
    with pytest.raises(ValueError):
        bracket_seed_order(size)


@pytest.mark.parametrize("size", [2, 4, 8, 16, 32, 64])
def test_top_two_seeds_only_meet_in_final(size):
    order = bracket_seed_order(size)
    assert meeting_round_number(order.index(1), order.index(2), size) == 1


@pytest.mark.parametrize("size", [4, 8, 16, 32])
def test_top_four_seeds_cannot_meet_before_semifinals(size):
    order = bracket_seed_order(size)
    slots = [order.index(s) for s in (1, 2, 3, 4)]
    for i, a in enumerate(slots):
        for b in slots[i + 1:]:
            assert meeting_round_number(a, b, size) <= 2


def test_adjacent_slots_meet_in_first_round():
    assert meeting_round_number(0, 1, 8) == 3
    assert meeting_round_number(0, 7, 8) == 1


def test_round_names():
    assert round_name(1) == "final"
    assert round_name(2) == "semi_final"
    assert round_name(3) == "quarter_final"
    assert round_name(4) == "round_16"
    assert round_name(7) == "round_of_128"


def test_bracket_match_code():
    assert bracket_match_code(3, 2) == "R3M2"
