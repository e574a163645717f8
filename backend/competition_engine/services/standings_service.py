"""
League standings.

The table is recomputed from a snapshot of completed matches on every call;
nothing is cached or incrementally updated.

Ranking chain (lower sort key = better):
    points desc, goal difference desc, goals for desc,
    head-to-head points among the tied clubs desc,
    head-to-head goal difference among the tied clubs desc,
    seed asc (clubs without a seed last, then club id).
"""

from dataclasses import dataclass, field
from itertools import groupby
from typing import Dict, Iterable, List, Optional, Tuple

from competition_engine.models.competition import TYPE_HYBRID
from competition_engine.models.match import MATCH_COMPLETED, Match
from competition_engine.models.participant import PARTICIPANT_WITHDRAWN, Participant
from competition_engine.services.errors import CompetitionNotFound
from competition_engine.services.store import CompetitionStore

POINTS_WIN = 3
POINTS_DRAW = 1
POINTS_LOSS = 0


@dataclass
class HeadToHead:
    points: int = 0
    goals_for: int = 0
    goals_against: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against


@dataclass
class StandingsRow:
    club_id: int
    seed_number: Optional[int] = None
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0
    position: int = 0
    head_to_head: Dict[int, HeadToHead] = field(default_factory=dict)

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def record(self, opponent_id: int, scored: int, conceded: int) -> None:
        if scored > conceded:
            self.won += 1
            earned = POINTS_WIN
        elif scored == conceded:
            self.drawn += 1
            earned = POINTS_DRAW
        else:
            self.lost += 1
            earned = POINTS_LOSS
        self.played += 1
        self.goals_for += scored
        self.goals_against += conceded
        self.points += earned

        h2h = self.head_to_head.setdefault(opponent_id, HeadToHead())
        h2h.points += earned
        h2h.goals_for += scored
        h2h.goals_against += conceded


def counts_for_standings(match: Match) -> bool:
    """Completed, scored, non-walkover matches only."""
    return (
        match.status == MATCH_COMPLETED
        and not match.is_bye
        and match.home_score is not None
        and match.away_score is not None
        and match.home_club_id is not None
        and match.away_club_id is not None
    )


def _record_key(row: StandingsRow) -> Tuple[int, int, int]:
    return (-row.points, -row.goal_difference, -row.goals_for)


def _seed_key(row: StandingsRow) -> Tuple[bool, int, int]:
    return (row.seed_number is None, row.seed_number or 0, row.club_id)


def _head_to_head_key(row: StandingsRow, tied_ids: Iterable[int]) -> Tuple[int, int]:
    points = 0
    goal_diff = 0
    for other in tied_ids:
        if other == row.club_id or other not in row.head_to_head:
            continue
        points += row.head_to_head[other].points
        goal_diff += row.head_to_head[other].goal_difference
    return (-points, -goal_diff)


def rank_rows(rows: Iterable[StandingsRow]) -> List[StandingsRow]:
    """Order rows by the full tie-break chain and assign 1-based positions."""
    by_record = sorted(rows, key=lambda r: (_record_key(r), _seed_key(r)))
    ordered: List[StandingsRow] = []
    for _, group_iter in groupby(by_record, key=_record_key):
        group = list(group_iter)
        if len(group) > 1:
            tied_ids = [r.club_id for r in group]
            group.sort(key=lambda r: (_head_to_head_key(r, tied_ids), _seed_key(r)))
        ordered.extend(group)

    for position, row in enumerate(ordered, start=1):
        row.position = position
    return ordered


def compute_standings(
    matches: Iterable[Match],
    seeds: Optional[Dict[int, int]] = None,
    club_ids: Optional[Iterable[int]] = None,
) -> List[StandingsRow]:
    """
    Build the ranked table from `matches`.

    Args:
        matches: any matches; only completed, scored, non-walkover ones count
        seeds: club_id -> seed_number, the final tie-break
        club_ids: the clubs to rank; each gets a row even without a played
                  match, and matches against any other club are left out
                  (defaults to every club in `seeds`, without filtering)
    """
    seeds = seeds or {}
    roster = set(club_ids) if club_ids is not None else None
    rows: Dict[int, StandingsRow] = {}

    def _row(club_id: int) -> StandingsRow:
        if club_id not in rows:
            rows[club_id] = StandingsRow(club_id=club_id, seed_number=seeds.get(club_id))
        return rows[club_id]

    for club_id in roster if roster is not None else seeds:
        _row(club_id)

    for match in matches:
        if not counts_for_standings(match):
            continue
        if roster is not None and not {match.home_club_id, match.away_club_id} <= roster:
            continue
        _row(match.home_club_id).record(match.away_club_id, match.home_score, match.away_score)
        _row(match.away_club_id).record(match.home_club_id, match.away_score, match.home_score)

    return rank_rows(rows.values())


def seeds_by_club(participants: Iterable[Participant]) -> Dict[int, int]:
    return {p.club_id: p.seed_number for p in participants}


def get_competition_standings(store: CompetitionStore, competition_id: int) -> List[StandingsRow]:
    """
    Standings for a competition. Hybrid competitions rank their league phase
    only; bracket matches there decide the knockout stage instead.

    Withdrawn clubs are dropped together with their results, so their
    former opponents keep only the points earned against active clubs.
    """
    competition = store.get_competition(competition_id)
    if not competition:
        raise CompetitionNotFound(competition_id)

    matches = store.list_matches(competition_id)
    if competition.competition_type == TYPE_HYBRID:
        matches = [m for m in matches if not m.is_bracket_match]

    participants = store.list_participants(competition_id)
    active = [p.club_id for p in participants if p.status != PARTICIPANT_WITHDRAWN]
    return compute_standings(matches, seeds_by_club(participants), club_ids=active)
