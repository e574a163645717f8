"""
Round-robin fixture generation for leagues (and the league phase of hybrids).

Circle method over the seed-ordered confirmed participants: position 0 stays
fixed, the others rotate one step per round. Odd club counts add a BYE
position; a pairing with the BYE produces no match row.
"""

import logging
from typing import List, Tuple

from competition_engine.models.match import MATCH_SCHEDULED, Match
from competition_engine.services.bracket_builder import entries_from_participants, validate_entries
from competition_engine.services.errors import (
    CompetitionNotFound,
    FixturesAlreadyGenerated,
    UnsupportedFormat,
)
from competition_engine.services.store import CompetitionStore

logger = logging.getLogger(__name__)


def round_robin_round_count(club_count: int) -> int:
    """Even n: n-1 rounds. Odd n: n rounds (each club sits out once)."""
    if club_count % 2 == 0:
        return club_count - 1
    return club_count


def round_robin_pairings(club_count: int) -> List[Tuple[int, int, int, int]]:
    """
    Round-robin pairings. Returns list of (round, match_number, home_idx, away_idx).
    Indices are 0-based positions in seed order.

    The fixed club alternates home and away between rounds.
    """
    n = club_count
    n2 = n + 1 if n % 2 == 1 else n
    half = n2 // 2
    bye_idx = n if n % 2 == 1 else -1

    result: List[Tuple[int, int, int, int]] = []
    positions = list(range(n2))

    for round_num in range(1, round_robin_round_count(n) + 1):
        seq = 0
        for i in range(half):
            a, b = positions[i], positions[n2 - 1 - i]
            if a == bye_idx or b == bye_idx:
                continue
            if i == 0 and round_num % 2 == 0:
                a, b = b, a
            seq += 1
            result.append((round_num, seq, a, b))
        # Rotate: keep 0, move last to second, shift others
        positions = [positions[0]] + [positions[-1]] + positions[1:-1]

    return result


def generate_fixtures(
    store: CompetitionStore,
    competition_id: int,
    double_round_robin: bool = False,
) -> List[Match]:
    """
    Create every league fixture for a competition in one transaction.

    The second leg of a double round robin repeats the first with home and
    away swapped, numbered after the last first-leg round.

    Raises:
        CompetitionNotFound, UnsupportedFormat, FixturesAlreadyGenerated,
        InvalidParticipantCount, InvalidSeed, DuplicateSeed, DuplicateParticipant
    """
    with store.atomic():
        competition = store.get_competition(competition_id, for_update=True)
        if not competition:
            raise CompetitionNotFound(competition_id)
        if not competition.supports_fixtures:
            raise UnsupportedFormat(
                f"Competition {competition_id} ({competition.competition_type}/{competition.format}) "
                "does not play a round robin",
                competition_id=competition_id,
            )
        if any(not m.is_bracket_match for m in store.list_matches(competition_id)):
            raise FixturesAlreadyGenerated(
                f"Fixtures already exist for competition {competition_id}", competition_id=competition_id
            )

        entries = entries_from_participants(store.list_participants(competition_id))
        validate_entries(entries, competition.max_participants)

        pairings = round_robin_pairings(len(entries))
        legs = [(0, False)]
        if double_round_robin:
            legs.append((round_robin_round_count(len(entries)), True))

        created: List[Match] = []
        for round_offset, swap in legs:
            for round_num, seq, a, b in pairings:
                home, away = (entries[b], entries[a]) if swap else (entries[a], entries[b])
                match = Match(
                    competition_id=competition_id,
                    match_code=f"RR{round_num + round_offset}-{seq}",
                    stage=f"round_{round_num + round_offset}",
                    round=round_num + round_offset,
                    match_number=seq,
                    home_club_id=home.club_id,
                    away_club_id=away.club_id,
                    home_seed=home.seed,
                    away_seed=away.seed,
                    status=MATCH_SCHEDULED,
                )
                store.add(match)
                created.append(match)
        store.flush()

        logger.info(
            "Generated %d fixtures for competition %d (%d clubs, double=%s)",
            len(created),
            competition_id,
            len(entries),
            double_round_robin,
        )

    return created
