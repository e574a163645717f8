"""
Bracket seeding and round naming.

Deterministic rules for placing seeds into a single-elimination draw so that
the top seeds meet as late as possible.
"""

import math
from typing import List

# Stage labels keyed by bracket depth (1 = final)
ROUND_NAMES = {
    1: "final",
    2: "semi_final",
    3: "quarter_final",
    4: "round_16",
    5: "round_32",
    6: "round_64",
}
STAGE_THIRD_PLACE = "third_place"


def total_rounds(participant_count: int) -> int:
    """Number of rounds R = ceil(log2(N)); a 2-club draw is just the final."""
    if participant_count < 2:
        return 0
    return math.ceil(math.log2(participant_count))


def bracket_seed_order(bracket_size: int) -> List[int]:
    """
    Return seed numbers in slot order for a power-of-two draw.

    Built by recursive halving: each seed s in the half-size order is
    followed by its mirror (size + 1 - s). Adjacent slots form round-1 pairs.

        2 -> [1, 2]
        4 -> [1, 4, 2, 3]
        8 -> [1, 8, 4, 5, 2, 7, 3, 6]

    Seed 1 and seed 2 always land in opposite halves.
    """
    if bracket_size < 2 or bracket_size & (bracket_size - 1):
        raise ValueError(f"bracket_size must be a power of two >= 2, got {bracket_size}")

    order = [1, 2]
    while len(order) < bracket_size:
        mirror = len(order) * 2 + 1
        order = [s for seed in order for s in (seed, mirror - seed)]
    return order


def meeting_round_number(slot_a: int, slot_b: int, bracket_size: int) -> int:
    """
    Bracket depth (1 = final) at which the clubs in two 0-based slots of a
    `bracket_size` draw can first meet.
    """
    if slot_a == slot_b:
        raise ValueError("slots must differ")
    rounds = bracket_size.bit_length() - 1
    return rounds - (slot_a ^ slot_b).bit_length() + 1


def round_name(round_number: int) -> str:
    """Human stage label for a bracket depth."""
    if round_number in ROUND_NAMES:
        return ROUND_NAMES[round_number]
    return f"round_of_{2 ** round_number}"


def bracket_match_code(round_number: int, bracket_position: int) -> str:
    return f"R{round_number}M{bracket_position}"
