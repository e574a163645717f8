"""
Advancement: when a match result is recorded, move its winner into the next
bracket match (and a semifinal loser into the third-place match).

Every call is one atomic unit over the recorded match and its immediate
downstream neighbours. Corrections re-propagate into unplayed downstream
matches; a played downstream match is never overwritten (PropagationConflict).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from competition_engine.models.competition import (
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_SCHEDULED,
    TYPE_LEAGUE,
    Competition,
)
from competition_engine.models.match import MATCH_CANCELLED, MATCH_COMPLETED, MATCH_SCHEDULED, Match
from competition_engine.models.participant import PARTICIPANT_WITHDRAWN
from competition_engine.services.bracket_builder import SIDE_HOME, feeder_side
from competition_engine.services.errors import (
    CompetitionNotFound,
    DrawNotAllowed,
    InconsistentScorePair,
    InvalidScore,
    MatchNotFound,
    MatchNotReady,
    PropagationConflict,
)
from competition_engine.services.standings_service import compute_standings, seeds_by_club
from competition_engine.services.store import CompetitionStore

logger = logging.getLogger(__name__)

SEMIFINAL_ROUND = 2

SlotWrite = Tuple[Match, str, Optional[int], Optional[int]]  # (target, side, club_id, seed)


@dataclass
class AdvancementResult:
    match: Match
    winner_club_id: Optional[int]
    loser_club_id: Optional[int]
    updated_matches: List[Match] = field(default_factory=list)
    champion_club_id: Optional[int] = None
    competition_completed: bool = False
    corrected: bool = False


def validate_score_pair(home_score: Optional[int], away_score: Optional[int]) -> None:
    if (home_score is None) != (away_score is None):
        raise InconsistentScorePair(
            "home_score and away_score must both be set or both be empty",
            home_score=home_score,
            away_score=away_score,
        )
    if home_score is None:
        raise InvalidScore("A result needs both scores")
    for value in (home_score, away_score):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise InvalidScore(f"Scores must be non-negative integers, got {value!r}", score=value)


def decide_winner(
    match: Match,
    competition: Competition,
    home_score: int,
    away_score: int,
    shootout_winner_club_id: Optional[int] = None,
) -> Tuple[Optional[int], Optional[int], Optional[int]]:
    """
    Return (winner_club_id, loser_club_id, shootout_winner_club_id).

    League draws have no winner. A level elimination score is settled by the
    shootout winner, which must be supplied and must be one of the two clubs.
    """
    if home_score > away_score:
        return match.home_club_id, match.away_club_id, None
    if away_score > home_score:
        return match.away_club_id, match.home_club_id, None

    if not match.is_bracket_match:
        return None, None, None

    if not competition.decide_draws_by_shootout:
        raise DrawNotAllowed(
            f"Match {match.id} is an elimination match and competition {competition.id} does not allow draws",
            match_id=match.id,
        )
    if shootout_winner_club_id is None:
        raise DrawNotAllowed(
            f"Match {match.id} ended level; shootout_winner_club_id is required",
            match_id=match.id,
            home_club_id=match.home_club_id,
            away_club_id=match.away_club_id,
        )
    if shootout_winner_club_id not in (match.home_club_id, match.away_club_id):
        raise DrawNotAllowed(
            f"Shootout winner {shootout_winner_club_id} did not play in match {match.id}",
            match_id=match.id,
            shootout_winner_club_id=shootout_winner_club_id,
        )
    loser = match.away_club_id if shootout_winner_club_id == match.home_club_id else match.home_club_id
    return shootout_winner_club_id, loser, shootout_winner_club_id


def _slot(match: Match, side: str) -> Optional[int]:
    return match.home_club_id if side == SIDE_HOME else match.away_club_id


def _set_slot(match: Match, side: str, club_id: Optional[int], seed: Optional[int]) -> None:
    if side == SIDE_HOME:
        match.home_club_id, match.home_seed = club_id, seed
    else:
        match.away_club_id, match.away_seed = club_id, seed


def _seed_of(match: Match, club_id: Optional[int]) -> Optional[int]:
    if club_id is None:
        return None
    if club_id == match.home_club_id:
        return match.home_seed
    if club_id == match.away_club_id:
        return match.away_seed
    return None


def _consolation_match(store: CompetitionStore, competition_id: int) -> Optional[Match]:
    for m in store.list_matches(competition_id):
        if m.is_consolation:
            return store.get_match(m.id, for_update=True)
    return None


def _downstream_targets(store: CompetitionStore, match: Match) -> List[Tuple[Match, str, str]]:
    """(target, side, role) pairs fed by `match`; role is "winner" or "loser"."""
    if not match.is_bracket_match or match.is_consolation:
        return []
    side = feeder_side(match.bracket_position)
    targets: List[Tuple[Match, str, str]] = []
    if match.next_match_id is not None:
        nxt = store.get_match(match.next_match_id, for_update=True)
        if nxt is not None:
            targets.append((nxt, side, "winner"))
    if match.round_number == SEMIFINAL_ROUND:
        consolation = _consolation_match(store, match.competition_id)
        if consolation is not None:
            targets.append((consolation, side, "loser"))
    return targets


def _check_writable(source: Match, target: Match, side: str, club_id: Optional[int]) -> bool:
    """True if the slot needs a write; raises if the target was already played."""
    current = _slot(target, side)
    if current == club_id:
        return False
    if target.status == MATCH_COMPLETED:
        logger.warning(
            "Propagation conflict: match %d would change %s slot of played match %d (%s -> %s)",
            source.id,
            side,
            target.id,
            current,
            club_id,
        )
        raise PropagationConflict(
            f"Match {target.id} has already been played with club {current} in the {side} slot; "
            f"reset it before changing the result of match {source.id}",
            match_id=source.id,
            downstream_match_id=target.id,
            side=side,
            current_club_id=current,
            proposed_club_id=club_id,
        )
    return True


def _is_final(match: Match) -> bool:
    return match.is_bracket_match and not match.is_consolation and match.next_match_id is None


def _require_competition(store: CompetitionStore, competition_id: int, for_update: bool = False) -> Competition:
    competition = store.get_competition(competition_id, for_update=for_update)
    if not competition:
        raise CompetitionNotFound(competition_id)
    return competition


def _require_match(store: CompetitionStore, match_id: int, competition_id: Optional[int]) -> Match:
    match = store.get_match(match_id, for_update=True)
    if not match or (competition_id is not None and match.competition_id != competition_id):
        raise MatchNotFound(match_id, competition_id)
    return match


def _complete_league_if_done(store: CompetitionStore, competition: Competition) -> Optional[int]:
    """Close a league once every non-cancelled fixture is played; the table leader is champion."""
    if competition.competition_type != TYPE_LEAGUE:
        return None
    fixtures = [m for m in store.list_matches(competition.id) if not m.is_bracket_match]
    live = [m for m in fixtures if m.status != MATCH_CANCELLED]
    if not live or any(m.status != MATCH_COMPLETED for m in live):
        return None
    participants = store.list_participants(competition.id)
    active = [p.club_id for p in participants if p.status != PARTICIPANT_WITHDRAWN]
    table = compute_standings(live, seeds_by_club(participants), club_ids=active)
    if not table:
        return None
    competition.status = STATUS_COMPLETED
    competition.champion_club_id = table[0].club_id
    store.add(competition)
    logger.info("League %d completed; champion club %d", competition.id, competition.champion_club_id)
    return competition.champion_club_id


def record_result(
    store: CompetitionStore,
    match_id: int,
    home_score: int,
    away_score: int,
    shootout_winner_club_id: Optional[int] = None,
    competition_id: Optional[int] = None,
) -> AdvancementResult:
    """
    Record (or correct) a match result and propagate it.

    Raises:
        InconsistentScorePair, InvalidScore, MatchNotFound, MatchNotReady,
        DrawNotAllowed, PropagationConflict
    """
    validate_score_pair(home_score, away_score)

    with store.atomic():
        match = _require_match(store, match_id, competition_id)
        if match.is_bye:
            raise MatchNotReady(f"Match {match_id} is a walkover and takes no score", match_id=match_id)
        if match.status == MATCH_CANCELLED:
            raise MatchNotReady(f"Match {match_id} is cancelled", match_id=match_id)
        if match.home_club_id is None or match.away_club_id is None:
            raise MatchNotReady(
                f"Match {match_id} is waiting for its clubs",
                match_id=match_id,
                home_club_id=match.home_club_id,
                away_club_id=match.away_club_id,
            )

        competition = _require_competition(store, match.competition_id)
        winner, loser, shootout = decide_winner(match, competition, home_score, away_score, shootout_winner_club_id)
        corrected = match.status == MATCH_COMPLETED

        # Validate every downstream write before touching anything
        writes: List[SlotWrite] = []
        for target, side, role in _downstream_targets(store, match):
            club = winner if role == "winner" else loser
            if _check_writable(match, target, side, club):
                writes.append((target, side, club, _seed_of(match, club)))

        match.home_score = home_score
        match.away_score = away_score
        match.shootout_winner_club_id = shootout
        match.winner_club_id = winner
        match.status = MATCH_COMPLETED
        match.completed_at = datetime.utcnow()
        store.add(match)

        updated = [match]
        for target, side, club, seed in writes:
            _set_slot(target, side, club, seed)
            store.add(target)
            updated.append(target)

        result = AdvancementResult(
            match=match,
            winner_club_id=winner,
            loser_club_id=loser,
            updated_matches=updated,
            corrected=corrected,
        )

        if _is_final(match):
            competition = _require_competition(store, match.competition_id, for_update=True)
            competition.status = STATUS_COMPLETED
            competition.champion_club_id = winner
            store.add(competition)
            result.champion_club_id = winner
            result.competition_completed = True
            logger.info("Competition %d completed; champion club %d", competition.id, winner)
        elif not match.is_bracket_match:
            champion = _complete_league_if_done(store, _require_competition(store, match.competition_id, True))
            if champion is not None:
                result.champion_club_id = champion
                result.competition_completed = True

        if not result.competition_completed and competition.status == STATUS_SCHEDULED:
            competition.status = STATUS_IN_PROGRESS
            store.add(competition)

        logger.info(
            "%s match %d (%s): %d-%d winner=%s, %d downstream slot(s) updated",
            "Corrected" if corrected else "Recorded",
            match.id,
            match.match_code,
            home_score,
            away_score,
            winner,
            len(writes),
        )

    return result


def _reset_match(store: CompetitionStore, match: Match, cascade: bool, reset: List[Match]) -> None:
    if match.status != MATCH_COMPLETED:
        return

    clears: List[Tuple[Match, str]] = []
    for target, side, role in _downstream_targets(store, match):
        club = match.winner_club_id if role == "winner" else match.loser_club_id
        if club is None or _slot(target, side) != club:
            continue
        if target.status == MATCH_COMPLETED and not cascade:
            raise PropagationConflict(
                f"Match {target.id} has already been played; reset it first or cascade",
                match_id=match.id,
                downstream_match_id=target.id,
            )
        clears.append((target, side))

    for target, side in clears:
        if target.status == MATCH_COMPLETED:
            _reset_match(store, target, cascade, reset)
        _set_slot(target, side, None, None)
        store.add(target)

    was_final = _is_final(match)
    match.home_score = None
    match.away_score = None
    match.shootout_winner_club_id = None
    match.winner_club_id = None
    match.status = MATCH_SCHEDULED
    match.completed_at = None
    store.add(match)
    reset.append(match)

    if was_final or not match.is_bracket_match:
        competition = _require_competition(store, match.competition_id, for_update=True)
        # A hybrid champion comes from the final, so league-phase resets leave it alone
        reopens = was_final or competition.competition_type == TYPE_LEAGUE
        if reopens and competition.status == STATUS_COMPLETED:
            competition.status = STATUS_IN_PROGRESS
            competition.champion_club_id = None
            store.add(competition)
            logger.info("Competition %d reopened by reset of match %d", competition.id, match.id)


def reset_result(
    store: CompetitionStore,
    match_id: int,
    cascade: bool = False,
    competition_id: Optional[int] = None,
) -> List[Match]:
    """
    Revert a completed match to scheduled and withdraw its clubs from downstream slots.

    With cascade=False a played downstream match raises PropagationConflict;
    with cascade=True the dependent chain is reset first. Returns every match reset.
    """
    with store.atomic():
        match = _require_match(store, match_id, competition_id)
        if match.is_bye:
            raise MatchNotReady(f"Match {match_id} is a walkover and cannot be reset", match_id=match_id)
        reset: List[Match] = []
        _reset_match(store, match, cascade, reset)
        if reset:
            logger.info(
                "Reset %d match(es) starting at match %d (cascade=%s)", len(reset), match_id, cascade
            )
    return reset


def get_champion(store: CompetitionStore, competition_id: int) -> Optional[int]:
    """Champion club id, or None while the competition is still undecided."""
    competition = _require_competition(store, competition_id)
    if competition.status != STATUS_COMPLETED:
        return None
    return competition.champion_club_id


def resolve_all_advancements(store: CompetitionStore, competition_id: int) -> Dict[str, int]:
    """
    Re-propagate every completed bracket match into empty downstream slots.

    Processes matches from the first round towards the final, so a repaired
    slot can feed the next repair in the same pass.

    Returns:
        Dict with:
        - matches_processed: completed bracket matches examined
        - slots_filled: downstream slots written
        - unknown_before: unplayed bracket matches missing a club before
        - unknown_after: the same count after

    Guarantees:
        - Idempotent (safe to call multiple times)
        - Never overwrites an occupied slot
    """

    def _unknown(matches: List[Match]) -> int:
        return sum(
            1
            for m in matches
            if m.is_bracket_match and not m.is_bye and (m.home_club_id is None or m.away_club_id is None)
        )

    with store.atomic():
        competition = _require_competition(store, competition_id, for_update=True)
        matches = store.list_matches(competition_id)
        unknown_before = _unknown(matches)

        completed = sorted(
            (m for m in matches if m.is_bracket_match and m.status == MATCH_COMPLETED),
            key=lambda m: (-m.round_number, m.is_consolation, m.bracket_position),
        )

        slots_filled = 0
        for match in completed:
            for target, side, role in _downstream_targets(store, match):
                club = match.winner_club_id if role == "winner" else match.loser_club_id
                if club is None or _slot(target, side) is not None:
                    continue
                _set_slot(target, side, club, _seed_of(match, club))
                store.add(target)
                slots_filled += 1
            if _is_final(match) and competition.status != STATUS_COMPLETED:
                competition.status = STATUS_COMPLETED
                competition.champion_club_id = match.winner_club_id
                store.add(competition)

        store.flush()
        unknown_after = _unknown(store.list_matches(competition_id))

    return {
        "matches_processed": len(completed),
        "slots_filled": slots_filled,
        "unknown_before": unknown_before,
        "unknown_after": unknown_after,
    }
