"""
Single-elimination bracket construction.

plan_bracket() is pure: it turns a seeded entry list into the full round tree
(slot assignments, next-match links, walkovers). build_bracket() persists a
plan in one atomic unit, so a partially built bracket is never observable.

Depth convention: round_number 1 is the final, R is the first round.
Position p in round r feeds position ceil(p / 2) of round r - 1; odd
positions fill the home side, even positions the away side.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from competition_engine.models.competition import STATUS_IN_PROGRESS, Competition
from competition_engine.models.match import MATCH_COMPLETED, MATCH_SCHEDULED, Match
from competition_engine.models.participant import PARTICIPANT_CONFIRMED, Participant
from competition_engine.services.errors import (
    BracketAlreadyBuilt,
    CompetitionNotFound,
    DuplicateParticipant,
    DuplicateSeed,
    InvalidParticipantCount,
    InvalidSeed,
    UnsupportedFormat,
)
from competition_engine.services.store import CompetitionStore
from competition_engine.utils.seeding import (
    STAGE_THIRD_PLACE,
    bracket_match_code,
    bracket_seed_order,
    round_name,
    total_rounds,
)

logger = logging.getLogger(__name__)

SIDE_HOME = "home"
SIDE_AWAY = "away"
CONSOLATION_POSITION = 2
CONSOLATION_MATCH_CODE = "3RD"
MIN_PARTICIPANTS_FOR_CONSOLATION = 4

SlotKey = Tuple[int, int]  # (round_number, bracket_position)


@dataclass(frozen=True)
class BracketEntry:
    club_id: int
    seed: int


@dataclass
class PlannedMatch:
    round_number: int
    bracket_position: int
    home_club_id: Optional[int] = None
    away_club_id: Optional[int] = None
    home_seed: Optional[int] = None
    away_seed: Optional[int] = None
    winner_club_id: Optional[int] = None
    is_bye: bool = False
    is_consolation: bool = False
    next_key: Optional[SlotKey] = None

    @property
    def key(self) -> SlotKey:
        return (self.round_number, self.bracket_position)

    def place(self, side: str, club_id: int, seed: Optional[int]) -> None:
        if side == SIDE_HOME:
            self.home_club_id, self.home_seed = club_id, seed
        else:
            self.away_club_id, self.away_seed = club_id, seed


@dataclass
class BracketPlan:
    total_rounds: int
    bracket_size: int
    matches: List[PlannedMatch] = field(default_factory=list)

    def get(self, round_number: int, bracket_position: int, consolation: bool = False) -> Optional[PlannedMatch]:
        for m in self.matches:
            if m.key == (round_number, bracket_position) and m.is_consolation == consolation:
                return m
        return None

    @property
    def byes(self) -> List[PlannedMatch]:
        return [m for m in self.matches if m.is_bye]

    @property
    def decisive_matches(self) -> List[PlannedMatch]:
        return [m for m in self.matches if not m.is_bye and not m.is_consolation]


@dataclass
class BracketGraph:
    competition_id: int
    total_rounds: int
    bracket_size: int
    matches: List[Match]

    @property
    def final(self) -> Optional[Match]:
        for m in self.matches:
            if m.round_number == 1 and not m.is_consolation:
                return m
        return None

    @property
    def consolation(self) -> Optional[Match]:
        for m in self.matches:
            if m.is_consolation:
                return m
        return None

    def rounds(self) -> List[Tuple[int, List[Match]]]:
        """Main-draw matches grouped by round, earliest round first."""
        grouped: Dict[int, List[Match]] = {}
        for m in self.matches:
            if m.is_consolation:
                continue
            grouped.setdefault(m.round_number, []).append(m)
        return [
            (r, sorted(grouped[r], key=lambda m: m.bracket_position))
            for r in sorted(grouped, reverse=True)
        ]


def feeder_side(bracket_position: int) -> str:
    """Side of the next match filled by the winner of `bracket_position`."""
    return SIDE_HOME if bracket_position % 2 == 1 else SIDE_AWAY


def parent_key(round_number: int, bracket_position: int) -> Optional[SlotKey]:
    if round_number <= 1:
        return None
    return (round_number - 1, (bracket_position + 1) // 2)


def validate_entries(entries: Sequence[BracketEntry], max_participants: Optional[int] = None) -> None:
    """Fail closed on anything that would make an invalid draw."""
    if len(entries) < 2:
        raise InvalidParticipantCount(
            f"At least 2 participants required, got {len(entries)}",
            participant_count=len(entries),
        )
    if max_participants is not None and len(entries) > max_participants:
        raise InvalidParticipantCount(
            f"{len(entries)} participants exceeds the competition maximum of {max_participants}",
            participant_count=len(entries),
            max_participants=max_participants,
        )

    bad_seeds = [e.seed for e in entries if e.seed is None or e.seed < 1]
    if bad_seeds:
        raise InvalidSeed("Seed numbers must be positive integers", seeds=bad_seeds)

    seen_seeds: Dict[int, int] = {}
    for e in entries:
        if e.seed in seen_seeds:
            raise DuplicateSeed(
                f"Seed {e.seed} assigned to clubs {seen_seeds[e.seed]} and {e.club_id}",
                seed=e.seed,
                club_ids=[seen_seeds[e.seed], e.club_id],
            )
        seen_seeds[e.seed] = e.club_id

    seen_clubs = set()
    for e in entries:
        if e.club_id in seen_clubs:
            raise DuplicateParticipant(f"Club {e.club_id} entered more than once", club_id=e.club_id)
        seen_clubs.add(e.club_id)


def plan_bracket(
    entries: Sequence[BracketEntry],
    consolation_match: bool = False,
    max_participants: Optional[int] = None,
) -> BracketPlan:
    """
    Build the full bracket tree for `entries`.

    Seeds are ranked ascending (gaps allowed) and placed by the standard
    seeding permutation into 2^R slots; unfilled slots are byes. A round-1
    match with one empty side is a walkover: it is completed with no score
    and its club is placed straight into the next match.
    """
    validate_entries(entries, max_participants)
    if consolation_match and len(entries) < MIN_PARTICIPANTS_FOR_CONSOLATION:
        raise InvalidParticipantCount(
            f"A third-place match needs at least {MIN_PARTICIPANTS_FOR_CONSOLATION} participants",
            participant_count=len(entries),
        )

    ranked = sorted(entries, key=lambda e: e.seed)
    rounds = total_rounds(len(ranked))
    size = 2 ** rounds
    plan = BracketPlan(total_rounds=rounds, bracket_size=size)

    by_key: Dict[SlotKey, PlannedMatch] = {}
    for r in range(1, rounds + 1):
        for p in range(1, 2 ** (r - 1) + 1):
            pm = PlannedMatch(round_number=r, bracket_position=p, next_key=parent_key(r, p))
            by_key[pm.key] = pm
            plan.matches.append(pm)

    order = bracket_seed_order(size)
    for p in range(1, size // 2 + 1):
        pm = by_key[(rounds, p)]
        home_rank, away_rank = order[2 * p - 2], order[2 * p - 1]
        home = ranked[home_rank - 1] if home_rank <= len(ranked) else None
        away = ranked[away_rank - 1] if away_rank <= len(ranked) else None
        if home:
            pm.place(SIDE_HOME, home.club_id, home.seed)
        if away:
            pm.place(SIDE_AWAY, away.club_id, away.seed)

        if home is None or away is None:
            # Standard seeding never pairs two byes
            advancing = home or away
            pm.is_bye = True
            pm.winner_club_id = advancing.club_id
            if pm.next_key:
                by_key[pm.next_key].place(feeder_side(p), advancing.club_id, advancing.seed)

    if consolation_match:
        plan.matches.append(
            PlannedMatch(round_number=1, bracket_position=CONSOLATION_POSITION, is_consolation=True)
        )

    return plan


def entries_from_participants(participants: Iterable[Participant]) -> List[BracketEntry]:
    """Confirmed participants only, in seed order."""
    return [
        BracketEntry(club_id=p.club_id, seed=p.seed_number)
        for p in sorted(participants, key=lambda p: p.seed_number)
        if p.status == PARTICIPANT_CONFIRMED
    ]


def _to_match(competition_id: int, pm: PlannedMatch, next_match_id: Optional[int]) -> Match:
    now = datetime.utcnow()
    if pm.is_consolation:
        stage, code = STAGE_THIRD_PLACE, CONSOLATION_MATCH_CODE
    else:
        stage, code = round_name(pm.round_number), bracket_match_code(pm.round_number, pm.bracket_position)
    return Match(
        competition_id=competition_id,
        match_code=code,
        stage=stage,
        round_number=pm.round_number,
        bracket_position=pm.bracket_position,
        next_match_id=next_match_id,
        home_club_id=pm.home_club_id,
        away_club_id=pm.away_club_id,
        home_seed=pm.home_seed,
        away_seed=pm.away_seed,
        is_bye=pm.is_bye,
        is_consolation=pm.is_consolation,
        winner_club_id=pm.winner_club_id,
        status=MATCH_COMPLETED if pm.is_bye else MATCH_SCHEDULED,
        completed_at=now if pm.is_bye else None,
    )


def _require_competition(store: CompetitionStore, competition_id: int, for_update: bool = False) -> Competition:
    competition = store.get_competition(competition_id, for_update=for_update)
    if not competition:
        raise CompetitionNotFound(competition_id)
    return competition


def build_bracket(
    store: CompetitionStore,
    competition_id: int,
    entries: Optional[Sequence[BracketEntry]] = None,
    consolation_match: bool = False,
) -> BracketGraph:
    """
    Create every bracket match and link for a competition in one transaction.

    `entries` defaults to the competition's confirmed participants.

    Raises:
        CompetitionNotFound, UnsupportedFormat, BracketAlreadyBuilt,
        InvalidParticipantCount, InvalidSeed, DuplicateSeed, DuplicateParticipant
    """
    with store.atomic():
        competition = _require_competition(store, competition_id, for_update=True)
        if not competition.supports_bracket:
            raise UnsupportedFormat(
                f"Competition {competition_id} ({competition.competition_type}/{competition.format}) "
                "does not use an elimination bracket",
                competition_id=competition_id,
            )
        if any(m.is_bracket_match for m in store.list_matches(competition_id)):
            raise BracketAlreadyBuilt(
                f"Bracket already exists for competition {competition_id}", competition_id=competition_id
            )

        if entries is None:
            entries = entries_from_participants(store.list_participants(competition_id))
        plan = plan_bracket(entries, consolation_match, competition.max_participants)

        # Persist from the final outwards so every next_match_id already exists
        ids: Dict[SlotKey, int] = {}
        created: List[Match] = []
        for r in range(1, plan.total_rounds + 1):
            round_rows = []
            for pm in plan.matches:
                if pm.round_number != r or pm.is_consolation:
                    continue
                match = _to_match(competition_id, pm, ids[pm.next_key] if pm.next_key else None)
                store.add(match)
                round_rows.append((pm, match))
            store.flush()
            for pm, match in round_rows:
                ids[pm.key] = match.id
                created.append(match)

        for pm in plan.matches:
            if pm.is_consolation:
                match = _to_match(competition_id, pm, None)
                store.add(match)
                store.flush()
                created.append(match)

        competition.status = STATUS_IN_PROGRESS
        store.add(competition)

        logger.info(
            "Built bracket for competition %d: %d participants, %d rounds, %d byes, consolation=%s",
            competition_id,
            len(entries),
            plan.total_rounds,
            len(plan.byes),
            consolation_match,
        )

    return BracketGraph(
        competition_id=competition_id,
        total_rounds=plan.total_rounds,
        bracket_size=plan.bracket_size,
        matches=created,
    )


def load_bracket(store: CompetitionStore, competition_id: int) -> BracketGraph:
    """Read back the persisted bracket of a competition."""
    _require_competition(store, competition_id)
    matches = [m for m in store.list_matches(competition_id) if m.is_bracket_match]
    rounds = max((m.round_number for m in matches), default=0)
    return BracketGraph(
        competition_id=competition_id,
        total_rounds=rounds,
        bracket_size=2 ** rounds if rounds else 0,
        matches=matches,
    )
