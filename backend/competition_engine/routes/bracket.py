"""
Draw routes: build the elimination bracket, generate league fixtures,
view the bracket by round and repair advancement.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from competition_engine.database import get_session
from competition_engine.services.advancement_service import resolve_all_advancements
from competition_engine.services.bracket_builder import BracketEntry, build_bracket, load_bracket
from competition_engine.services.errors import EngineError
from competition_engine.services.fixture_generator import generate_fixtures
from competition_engine.services.store import SqlModelStore
from competition_engine.utils.http_errors import to_http_exception
from competition_engine.utils.seeding import round_name
from competition_engine.routes.results import MatchState, match_to_state

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class BracketEntryRequest(BaseModel):
    club_id: int
    seed: int


class BuildBracketRequest(BaseModel):
    # Omit to use the competition's confirmed participants
    participants: Optional[List[BracketEntryRequest]] = None
    consolation_match: bool = False


class BracketRound(BaseModel):
    round_number: int
    name: str
    matches: List[MatchState]


class BracketResponse(BaseModel):
    competition_id: int
    total_rounds: int
    bracket_size: int
    rounds: List[BracketRound]
    consolation: Optional[MatchState] = None
    final_match_id: Optional[int] = None


class GenerateFixturesRequest(BaseModel):
    double_round_robin: bool = False


class FixturesResponse(BaseModel):
    competition_id: int
    total_matches: int
    total_rounds: int
    matches: List[MatchState]


class ResolveAdvancementsResponse(BaseModel):
    """Response for bulk advancement repair"""

    matches_processed: int
    slots_filled: int
    unknown_before: int
    unknown_after: int


def _bracket_response(graph, store: SqlModelStore) -> BracketResponse:
    final = graph.final
    consolation = graph.consolation
    return BracketResponse(
        competition_id=graph.competition_id,
        total_rounds=graph.total_rounds,
        bracket_size=graph.bracket_size,
        rounds=[
            BracketRound(
                round_number=r,
                name=round_name(r),
                matches=[match_to_state(m, store) for m in matches],
            )
            for r, matches in graph.rounds()
        ],
        consolation=match_to_state(consolation, store) if consolation else None,
        final_match_id=final.id if final else None,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/competitions/{competition_id}/bracket", response_model=BracketResponse, status_code=201)
def create_bracket(
    competition_id: int,
    payload: BuildBracketRequest,
    session: Session = Depends(get_session),
) -> BracketResponse:
    """
    Build the single-elimination bracket.

    All matches and next-match links are created in one transaction; byes are
    resolved as walkovers immediately.
    """
    store = SqlModelStore(session)
    entries = None
    if payload.participants is not None:
        entries = [BracketEntry(club_id=p.club_id, seed=p.seed) for p in payload.participants]
    try:
        graph = build_bracket(store, competition_id, entries, consolation_match=payload.consolation_match)
    except EngineError as e:
        raise to_http_exception(e)
    return _bracket_response(graph, store)


@router.get("/competitions/{competition_id}/bracket", response_model=BracketResponse)
def get_bracket(competition_id: int, session: Session = Depends(get_session)) -> BracketResponse:
    """Bracket grouped by round (earliest first) with club names."""
    store = SqlModelStore(session)
    try:
        graph = load_bracket(store, competition_id)
    except EngineError as e:
        raise to_http_exception(e)
    return _bracket_response(graph, store)


@router.post("/competitions/{competition_id}/fixtures", response_model=FixturesResponse, status_code=201)
def create_fixtures(
    competition_id: int,
    payload: GenerateFixturesRequest,
    session: Session = Depends(get_session),
) -> FixturesResponse:
    """Generate the round-robin fixture list from confirmed participants."""
    store = SqlModelStore(session)
    try:
        matches = generate_fixtures(store, competition_id, double_round_robin=payload.double_round_robin)
    except EngineError as e:
        raise to_http_exception(e)

    rounds: Dict[int, int] = {}
    for m in matches:
        rounds[m.round] = rounds.get(m.round, 0) + 1
    return FixturesResponse(
        competition_id=competition_id,
        total_matches=len(matches),
        total_rounds=len(rounds),
        matches=[match_to_state(m, store) for m in matches],
    )


@router.post(
    "/competitions/{competition_id}/resolve-advancements",
    response_model=ResolveAdvancementsResponse,
)
def resolve_advancements(competition_id: int, session: Session = Depends(get_session)) -> ResolveAdvancementsResponse:
    """
    Re-propagate every completed bracket match into empty downstream slots.

    Useful after importing results or recovering from an interrupted update.
    Idempotent; never overwrites an occupied slot.
    """
    try:
        result = resolve_all_advancements(SqlModelStore(session), competition_id)
    except EngineError as e:
        raise to_http_exception(e)
    return ResolveAdvancementsResponse(**result)
