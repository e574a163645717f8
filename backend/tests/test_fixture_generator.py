"""Round-robin fixtures and league completion."""
from itertools import combinations

import pytest
from sqlmodel import Session, select

from competition_engine.models.competition import STATUS_IN_PROGRESS, STATUS_SCHEDULED, Competition
from competition_engine.models.match import Match
from competition_engine.services.advancement_service import get_champion, record_result, reset_result
from competition_engine.services.bracket_builder import build_bracket
from competition_engine.services.errors import (
    BracketAlreadyBuilt,
    FixturesAlreadyGenerated,
    InvalidParticipantCount,
    UnsupportedFormat,
)
from competition_engine.services.fixture_generator import (
    generate_fixtures,
    round_robin_pairings,
    round_robin_round_count,
)


@pytest.mark.parametrize("n", range(2, 11))
def test_every_pair_meets_exactly_once(n):
    pairings = round_robin_pairings(n)

    met = sorted(tuple(sorted((home, away))) for _, _, home, away in pairings)
    assert met == list(combinations(range(n), 2))
    assert max(r for r, _, _, _ in pairings) == round_robin_round_count(n)


@pytest.mark.parametrize("n", range(2, 11))
def test_no_club_plays_twice_in_a_round(n):
    by_round = {}
    for round_num, _, home, away in round_robin_pairings(n):
        by_round.setdefault(round_num, []).extend([home, away])

    for clubs in by_round.values():
        assert len(clubs) == len(set(clubs))


def test_odd_count_gives_each_club_one_rest_round():
    pairings = round_robin_pairings(5)

    assert round_robin_round_count(5) == 5
    assert len(pairings) == 10
    for club in range(5):
        rounds_played = {r for r, _, h, a in pairings if club in (h, a)}
        assert len(rounds_played) == 4


def test_fixed_club_alternates_home_and_away():
    sides = [home == 0 for r, _, home, away in round_robin_pairings(6) if 0 in (home, away)]
    assert sides == [True, False, True, False, True]


def _fixtures(session: Session, competition_id: int):
    return session.exec(select(Match).where(Match.competition_id == competition_id).order_by(Match.id)).all()


def _between(matches, x, y):
    return next(m for m in matches if {m.home_club_id, m.away_club_id} == {x, y})


def test_generate_fixtures_single_round_robin(store, session: Session, make_competition):
    competition, clubs = make_competition(4, competition_type="league", fmt="round_robin")

    created = generate_fixtures(store, competition.id)

    matches = _fixtures(session, competition.id)
    assert len(created) == len(matches) == 6
    assert [m.match_code for m in matches[:2]] == ["RR1-1", "RR1-2"]
    assert {m.round for m in matches} == {1, 2, 3}
    assert all(m.round_number is None and m.bracket_position is None for m in matches)
    first = matches[0]
    assert (first.home_club_id, first.away_club_id) == (clubs[0].id, clubs[3].id)
    assert (first.home_seed, first.away_seed) == (1, 4)
    assert first.stage == "round_1"


def test_generate_fixtures_double_round_robin(store, session: Session, make_competition):
    competition, clubs = make_competition(4, competition_type="league", fmt="round_robin")

    generate_fixtures(store, competition.id, double_round_robin=True)

    matches = _fixtures(session, competition.id)
    assert len(matches) == 12
    assert max(m.round for m in matches) == 6
    first_leg = [m for m in matches if m.round <= 3]
    second_leg = [m for m in matches if m.round > 3]
    assert {(m.home_club_id, m.away_club_id) for m in second_leg} == {
        (m.away_club_id, m.home_club_id) for m in first_leg
    }


def test_generate_fixtures_twice_fails(store, make_competition):
    competition, _ = make_competition(3, competition_type="league", fmt="round_robin")
    generate_fixtures(store, competition.id)

    with pytest.raises(FixturesAlreadyGenerated):
        generate_fixtures(store, competition.id)
    assert issubclass(FixturesAlreadyGenerated, BracketAlreadyBuilt)


def test_generate_fixtures_rejects_knockout(store, make_competition):
    competition, _ = make_competition(4)

    with pytest.raises(UnsupportedFormat):
        generate_fixtures(store, competition.id)


def test_generate_fixtures_needs_two_clubs(store, make_competition):
    competition, _ = make_competition(1, competition_type="league", fmt="round_robin")

    with pytest.raises(InvalidParticipantCount):
        generate_fixtures(store, competition.id)


def test_hybrid_has_fixtures_and_bracket(store, session: Session, make_competition):
    competition, _ = make_competition(4, competition_type="hybrid", fmt="round_robin")

    generate_fixtures(store, competition.id)
    graph = build_bracket(store, competition.id)

    assert len(graph.matches) == 3
    assert len(_fixtures(session, competition.id)) == 9


def test_league_completes_with_table_leader_as_champion(store, session: Session, make_competition):
    competition, (a, b, c) = make_competition(3, competition_type="league", fmt="round_robin")
    generate_fixtures(store, competition.id)
    matches = _fixtures(session, competition.id)

    def _record(home, away, home_goals, away_goals):
        m = _between(matches, home.id, away.id)
        if m.home_club_id == home.id:
            return record_result(store, m.id, home_goals, away_goals)
        return record_result(store, m.id, away_goals, home_goals)

    first = _record(a, b, 2, 0)
    assert first.winner_club_id == a.id
    session.refresh(competition)
    assert competition.status == STATUS_IN_PROGRESS

    draw = _record(b, c, 1, 1)
    assert draw.winner_club_id is None
    assert not draw.competition_completed

    last = _record(c, a, 0, 3)
    assert last.competition_completed
    assert last.champion_club_id == a.id
    assert get_champion(store, competition.id) == a.id

    reset_result(store, last.match.id)
    session.expire_all()
    competition = session.get(Competition, competition.id)
    assert competition.status == STATUS_IN_PROGRESS
    assert competition.champion_club_id is None


def test_fixtures_leave_competition_scheduled(store, session: Session, make_competition):
    competition, _ = make_competition(2, competition_type="league", fmt="round_robin")

    generate_fixtures(store, competition.id)

    session.refresh(competition)
    assert competition.status == STATUS_SCHEDULED


def test_knockout_type_rejects_fixtures_whatever_its_format(store, session: Session, make_competition):
    competition, _ = make_competition(4, competition_type="knockout", fmt="round_robin")

    with pytest.raises(UnsupportedFormat):
        generate_fixtures(store, competition.id)
    assert _fixtures(session, competition.id) == []


def test_league_type_rejects_bracket_whatever_its_format(store, make_competition):
    competition, _ = make_competition(4, competition_type="league", fmt="single_elimination")

    with pytest.raises(UnsupportedFormat):
        build_bracket(store, competition.id)


def test_hybrid_league_phase_does_not_crown_a_champion(store, session: Session, make_competition):
    competition, _ = make_competition(4, competition_type="hybrid", fmt="round_robin")
    generate_fixtures(store, competition.id)
    build_bracket(store, competition.id)

    for m in [m for m in _fixtures(session, competition.id) if not m.is_bracket_match]:
        result = record_result(store, m.id, 1, 0)
        assert not result.competition_completed

    session.expire_all()
    competition = session.get(Competition, competition.id)
    assert competition.status == STATUS_IN_PROGRESS
    assert competition.champion_club_id is None
    assert get_champion(store, competition.id) is None
