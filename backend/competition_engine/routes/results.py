"""
Match results: record, correct and reset scores.
Recording a bracket result advances the winner (and a semifinal loser into the
third-place match); recording the final completes the competition.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from competition_engine.database import get_session
from competition_engine.models.match import Match
from competition_engine.services.advancement_service import get_champion, record_result, reset_result
from competition_engine.services.errors import EngineError
from competition_engine.services.store import SqlModelStore
from competition_engine.utils.http_errors import to_http_exception

router = APIRouter()


class MatchResultUpdate(BaseModel):
    home_score: Optional[int] = Field(default=None, ge=0)
    away_score: Optional[int] = Field(default=None, ge=0)
    shootout_winner_club_id: Optional[int] = None


class MatchState(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    competition_id: int
    match_code: str
    stage: Optional[str] = None
    round: Optional[int] = None
    match_number: Optional[int] = None
    round_number: Optional[int] = None
    bracket_position: Optional[int] = None
    next_match_id: Optional[int] = None
    home_seed: Optional[int] = None
    away_seed: Optional[int] = None
    is_consolation: bool = False
    is_bye: bool = False
    home_club_id: Optional[int] = None
    away_club_id: Optional[int] = None
    home_club_name: Optional[str] = None
    away_club_name: Optional[str] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    shootout_winner_club_id: Optional[int] = None
    winner_club_id: Optional[int] = None
    status: str
    completed_at: Optional[datetime] = None


class MatchResultResponse(BaseModel):
    match: MatchState
    winner_club_id: Optional[int] = None
    loser_club_id: Optional[int] = None
    corrected: bool = False
    updated_match_ids: List[int]
    champion_club_id: Optional[int] = None
    competition_completed: bool = False


class ResetResponse(BaseModel):
    reset_match_ids: List[int]


class ChampionResponse(BaseModel):
    competition_id: int
    determined: bool
    champion_club_id: Optional[int] = None


def match_to_state(m: Match, store: Optional[SqlModelStore] = None) -> MatchState:
    """Serialize a match; club names come from the club directory when a store is given."""
    state = MatchState.model_validate(m)
    if store is not None:
        for side in ("home", "away"):
            club_id = getattr(m, f"{side}_club_id")
            club = store.get_club(club_id) if club_id is not None else None
            setattr(state, f"{side}_club_name", club.name if club else None)
    return state


@router.patch(
    "/competitions/{competition_id}/matches/{match_id}/result",
    response_model=MatchResultResponse,
)
def update_match_result(
    competition_id: int,
    match_id: int,
    payload: MatchResultUpdate,
    session: Session = Depends(get_session),
) -> MatchResultResponse:
    """Record or correct a result. Match must belong to the competition.
    Level elimination scores need shootout_winner_club_id."""
    store = SqlModelStore(session)
    try:
        result = record_result(
            store,
            match_id,
            payload.home_score,
            payload.away_score,
            shootout_winner_club_id=payload.shootout_winner_club_id,
            competition_id=competition_id,
        )
    except EngineError as e:
        raise to_http_exception(e)

    return MatchResultResponse(
        match=match_to_state(result.match, store),
        winner_club_id=result.winner_club_id,
        loser_club_id=result.loser_club_id,
        corrected=result.corrected,
        updated_match_ids=[m.id for m in result.updated_matches],
        champion_club_id=result.champion_club_id,
        competition_completed=result.competition_completed,
    )


@router.post(
    "/competitions/{competition_id}/matches/{match_id}/reset",
    response_model=ResetResponse,
)
def reset_match_result(
    competition_id: int,
    match_id: int,
    cascade: bool = False,
    session: Session = Depends(get_session),
) -> ResetResponse:
    """Revert a result. Pass ?cascade=true to also reset played downstream matches."""
    store = SqlModelStore(session)
    try:
        reset = reset_result(store, match_id, cascade=cascade, competition_id=competition_id)
    except EngineError as e:
        raise to_http_exception(e)
    return ResetResponse(reset_match_ids=[m.id for m in reset])


@router.get("/competitions/{competition_id}/champion", response_model=ChampionResponse)
def read_champion(competition_id: int, session: Session = Depends(get_session)) -> ChampionResponse:
    """Champion club, or determined=false while the competition is undecided."""
    try:
        champion = get_champion(SqlModelStore(session), competition_id)
    except EngineError as e:
        raise to_http_exception(e)
    return ChampionResponse(
        competition_id=competition_id,
        determined=champion is not None,
        champion_club_id=champion,
    )
