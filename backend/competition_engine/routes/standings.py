from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from competition_engine.database import get_session
from competition_engine.services.errors import EngineError
from competition_engine.services.standings_service import get_competition_standings
from competition_engine.services.store import SqlModelStore
from competition_engine.utils.http_errors import to_http_exception

router = APIRouter()


class HeadToHeadRecord(BaseModel):
    points: int
    goals_for: int
    goals_against: int


class StandingsRowResponse(BaseModel):
    position: int
    club_id: int
    club_name: Optional[str] = None
    seed_number: Optional[int] = None
    played: int
    won: int
    drawn: int
    lost: int
    goals_for: int
    goals_against: int
    goal_difference: int
    points: int
    head_to_head: Dict[int, HeadToHeadRecord]


@router.get("/competitions/{competition_id}/standings", response_model=List[StandingsRowResponse])
def get_standings(competition_id: int, session: Session = Depends(get_session)):
    """Ranked table recomputed from completed matches. Ties never persist (seed is the last tie-break)."""
    store = SqlModelStore(session)
    try:
        rows = get_competition_standings(store, competition_id)
    except EngineError as e:
        raise to_http_exception(e)

    response = []
    for row in rows:
        club = store.get_club(row.club_id)
        response.append(
            StandingsRowResponse(
                position=row.position,
                club_id=row.club_id,
                club_name=club.name if club else None,
                seed_number=row.seed_number,
                played=row.played,
                won=row.won,
                drawn=row.drawn,
                lost=row.lost,
                goals_for=row.goals_for,
                goals_against=row.goals_against,
                goal_difference=row.goal_difference,
                points=row.points,
                head_to_head={
                    opponent: HeadToHeadRecord(points=h.points, goals_for=h.goals_for, goals_against=h.goals_against)
                    for opponent, h in row.head_to_head.items()
                },
            )
        )
    return response
