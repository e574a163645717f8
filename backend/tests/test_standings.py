"""Standings: points, goal difference, head-to-head and the seed fallback."""
import pytest
from sqlmodel import Session, select

from competition_engine.models.match import MATCH_COMPLETED, MATCH_SCHEDULED, Match
from competition_engine.models.participant import PARTICIPANT_WITHDRAWN, Participant
from competition_engine.services.errors import CompetitionNotFound
from competition_engine.services.standings_service import (
    compute_standings,
    get_competition_standings,
)

A, B, C, D = 1, 2, 3, 4


def _played(home, away, home_score, away_score, **kwargs):
    return Match(
        competition_id=1,
        match_code="RR",
        home_club_id=home,
        away_club_id=away,
        home_score=home_score,
        away_score=away_score,
        status=MATCH_COMPLETED,
        **kwargs,
    )


def _order(rows):
    return [r.club_id for r in rows]


def test_three_club_round_robin():
    matches = [_played(A, B, 2, 0), _played(B, C, 1, 1), _played(C, A, 0, 3)]

    rows = compute_standings(matches, seeds={A: 1, B: 2, C: 3})

    assert _order(rows) == [A, B, C]
    a, b, c = rows
    assert (a.points, a.goal_difference, a.played, a.won) == (6, 5, 2, 2)
    assert (b.points, b.goal_difference, b.drawn, b.lost) == (1, -2, 1, 1)
    assert (c.points, c.goal_difference, c.goals_for, c.goals_against) == (1, -3, 1, 4)
    assert [r.position for r in rows] == [1, 2, 3]


def test_goals_for_breaks_equal_goal_difference():
    matches = [_played(A, C, 3, 2), _played(B, C, 1, 0)]

    rows = compute_standings(matches)

    assert _order(rows) == [A, B, C]


def test_head_to_head_beats_seed():
    matches = [
        _played(A, B, 2, 1),
        _played(C, A, 1, 0),
        _played(B, C, 1, 0),
    ]

    # A and B: 3 pts, GD 0, GF 2; C: 3 pts, GD 0, GF 1
    rows = compute_standings(matches, seeds={B: 1, A: 2, C: 3})

    assert _order(rows) == [A, B, C]
    assert rows[0].head_to_head[B].points == 3
    assert rows[1].head_to_head[A].points == 0


def test_head_to_head_goal_difference_among_tied_clubs():
    # Three-way tie on record; mini-table decided on goal difference
    matches = [
        _played(A, B, 3, 0),
        _played(B, C, 1, 0),
        _played(C, A, 2, 1),
        _played(A, D, 6, 5),
        _played(B, D, 9, 4),
        _played(C, D, 8, 5),
    ]
    rows = compute_standings(matches, seeds={A: 1, B: 2, C: 3, D: 4})
    records = {r.club_id: (r.points, r.goal_difference, r.goals_for) for r in rows}
    assert records[A] == records[B] == records[C]

    # Mini-table: A +2, B -2, C 0; all 3 pts
    assert _order(rows)[:3] == [A, C, B]


def test_seed_is_final_tie_break():
    rows = compute_standings([_played(20, 10, 1, 1)], seeds={20: 1, 10: 2})
    assert _order(rows) == [20, 10]


def test_unseeded_clubs_rank_after_seeded_then_by_id():
    rows = compute_standings([_played(30, 10, 0, 0), _played(20, 40, 0, 0)], seeds={40: 5})
    assert _order(rows) == [40, 10, 20, 30]


def test_ignores_unplayed_and_walkover_matches():
    unplayed = Match(competition_id=1, match_code="RR", home_club_id=A, away_club_id=B, status=MATCH_SCHEDULED)
    walkover = Match(
        competition_id=1,
        match_code="R2M1",
        round_number=2,
        bracket_position=1,
        home_club_id=A,
        is_bye=True,
        winner_club_id=A,
        status=MATCH_COMPLETED,
    )

    rows = compute_standings([unplayed, walkover, _played(B, C, 0, 1)], seeds={A: 1, B: 2, C: 3})

    assert _order(rows) == [C, A, B]
    assert rows[1].played == 0


def test_registered_clubs_without_matches_get_zero_rows():
    rows = compute_standings([], seeds={A: 2, B: 1})

    assert _order(rows) == [B, A]
    assert all(r.points == 0 and r.played == 0 for r in rows)


def test_standings_are_idempotent():
    matches = [
        _played(A, B, 1, 1),
        _played(C, D, 2, 2),
        _played(A, C, 0, 0),
        _played(B, D, 3, 3),
    ]
    seeds = {A: 4, B: 3, C: 2, D: 1}

    first = [(r.club_id, r.position, r.points) for r in compute_standings(matches, seeds)]
    second = [(r.club_id, r.position, r.points) for r in compute_standings(list(reversed(matches)), seeds)]

    assert first == second
    assert len({pos for _, pos, _ in first}) == 4


# ============================================================================
# get_competition_standings (persisted)
# ============================================================================


def test_competition_standings_skip_withdrawn_clubs(store, session: Session, make_competition):
    competition, clubs = make_competition(3, competition_type="league", fmt="round_robin")
    participant = session.exec(
        select(Participant).where(Participant.competition_id == competition.id, Participant.club_id == clubs[2].id)
    ).one()
    participant.status = PARTICIPANT_WITHDRAWN
    session.add(participant)
    session.add(
        Match(
            competition_id=competition.id,
            match_code="RR1-1",
            round=1,
            match_number=1,
            home_club_id=clubs[0].id,
            away_club_id=clubs[1].id,
            home_score=0,
            away_score=2,
            status=MATCH_COMPLETED,
        )
    )
    session.commit()

    rows = get_competition_standings(store, competition.id)

    assert _order(rows) == [clubs[1].id, clubs[0].id]
    assert rows[0].seed_number == 2


def test_withdrawn_club_results_are_dropped(store, session: Session, make_competition):
    competition, clubs = make_competition(3, competition_type="league", fmt="round_robin")
    a, b, c = (club.id for club in clubs)
    for number, (home, away, home_score, away_score) in enumerate([(a, b, 1, 1), (b, c, 0, 4), (c, a, 2, 0)], start=1):
        session.add(
            Match(
                competition_id=competition.id,
                match_code=f"RR{number}-1",
                round=number,
                match_number=1,
                home_club_id=home,
                away_club_id=away,
                home_score=home_score,
                away_score=away_score,
                status=MATCH_COMPLETED,
            )
        )
    participant = session.exec(
        select(Participant).where(Participant.competition_id == competition.id, Participant.club_id == c)
    ).one()
    participant.status = PARTICIPANT_WITHDRAWN
    session.add(participant)
    session.commit()

    rows = get_competition_standings(store, competition.id)

    assert _order(rows) == [a, b]
    assert [(r.played, r.points, r.goals_for, r.goals_against) for r in rows] == [(1, 1, 1, 1), (1, 1, 1, 1)]
    assert all(c not in r.head_to_head for r in rows)


def test_hybrid_standings_ignore_bracket_matches(store, session: Session, make_competition):
    competition, clubs = make_competition(2, competition_type="hybrid", fmt="round_robin")
    session.add(
        Match(
            competition_id=competition.id,
            match_code="R1M1",
            round_number=1,
            bracket_position=1,
            home_club_id=clubs[0].id,
            away_club_id=clubs[1].id,
            home_score=5,
            away_score=0,
            winner_club_id=clubs[0].id,
            status=MATCH_COMPLETED,
        )
    )
    session.commit()

    rows = get_competition_standings(store, competition.id)

    assert all(r.played == 0 for r in rows)


def test_competition_standings_unknown_competition(store):
    with pytest.raises(CompetitionNotFound):
        get_competition_standings(store, 404)
