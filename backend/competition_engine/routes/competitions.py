"""
Competition and participant registration routes.
Participants are frozen once a bracket or fixture list exists.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from competition_engine.database import get_session
from competition_engine.models.club import Club
from competition_engine.models.competition import (
    FORMAT_ROUND_ROBIN,
    FORMAT_SINGLE_ELIMINATION,
    TYPE_HYBRID,
    TYPE_KNOCKOUT,
    TYPE_LEAGUE,
    Competition,
)
from competition_engine.models.match import Match
from competition_engine.models.participant import (
    PARTICIPANT_CONFIRMED,
    PARTICIPANT_PENDING,
    PARTICIPANT_WITHDRAWN,
    Participant,
)

router = APIRouter()

COMPETITION_TYPES = (TYPE_LEAGUE, TYPE_KNOCKOUT, TYPE_HYBRID)
COMPETITION_FORMATS = (FORMAT_ROUND_ROBIN, FORMAT_SINGLE_ELIMINATION)
PARTICIPANT_STATUSES = (PARTICIPANT_CONFIRMED, PARTICIPANT_PENDING, PARTICIPANT_WITHDRAWN)


# ============================================================================
# Request/Response Models
# ============================================================================


class CompetitionCreate(BaseModel):
    name: str
    competition_type: str = TYPE_LEAGUE
    format: str = FORMAT_ROUND_ROBIN
    season: Optional[str] = None
    max_participants: Optional[int] = Field(default=None, ge=2)
    decide_draws_by_shootout: bool = True
    admin_user_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("competition_type")
    @classmethod
    def validate_type(cls, v):
        if v not in COMPETITION_TYPES:
            raise ValueError(f"competition_type must be one of {', '.join(COMPETITION_TYPES)}")
        return v

    @field_validator("format")
    @classmethod
    def validate_format(cls, v):
        if v not in COMPETITION_FORMATS:
            raise ValueError(f"format must be one of {', '.join(COMPETITION_FORMATS)}")
        return v


class CompetitionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    competition_type: str
    format: str
    status: str
    season: Optional[str] = None
    max_participants: Optional[int] = None
    decide_draws_by_shootout: bool
    champion_club_id: Optional[int] = None
    admin_user_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class ParticipantCreate(BaseModel):
    club_id: int
    seed_number: int = Field(ge=1)
    status: str = PARTICIPANT_CONFIRMED

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in PARTICIPANT_STATUSES:
            raise ValueError(f"status must be one of {', '.join(PARTICIPANT_STATUSES)}")
        return v


class ParticipantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    competition_id: int
    club_id: int
    club_name: Optional[str] = None
    seed_number: int
    status: str
    joined_at: datetime


def _require_competition(session: Session, competition_id: int) -> Competition:
    competition = session.get(Competition, competition_id)
    if not competition:
        raise HTTPException(status_code=404, detail="Competition not found")
    return competition


def _participant_response(p: Participant, club: Optional[Club]) -> ParticipantResponse:
    return ParticipantResponse(
        id=p.id,
        competition_id=p.competition_id,
        club_id=p.club_id,
        club_name=club.name if club else None,
        seed_number=p.seed_number,
        status=p.status,
        joined_at=p.joined_at,
    )


# ============================================================================
# Competition Endpoints
# ============================================================================


@router.get("/competitions", response_model=List[CompetitionResponse])
def list_competitions(session: Session = Depends(get_session)):
    """List all competitions"""
    return session.exec(select(Competition).order_by(Competition.id)).all()


@router.post("/competitions", response_model=CompetitionResponse, status_code=201)
def create_competition(payload: CompetitionCreate, session: Session = Depends(get_session)):
    """Create a competition"""
    competition = Competition(**payload.model_dump())
    session.add(competition)
    session.commit()
    session.refresh(competition)
    return competition


@router.get("/competitions/{competition_id}", response_model=CompetitionResponse)
def get_competition(competition_id: int, session: Session = Depends(get_session)):
    """Get a competition by ID"""
    return _require_competition(session, competition_id)


# ============================================================================
# Participant Endpoints
# ============================================================================


@router.get("/competitions/{competition_id}/participants", response_model=List[ParticipantResponse])
def list_participants(competition_id: int, session: Session = Depends(get_session)):
    """Participants in seed order"""
    _require_competition(session, competition_id)
    participants = session.exec(
        select(Participant)
        .where(Participant.competition_id == competition_id)
        .order_by(Participant.seed_number)
    ).all()
    return [_participant_response(p, session.get(Club, p.club_id)) for p in participants]


@router.post(
    "/competitions/{competition_id}/participants",
    response_model=ParticipantResponse,
    status_code=201,
)
def register_participant(competition_id: int, payload: ParticipantCreate, session: Session = Depends(get_session)):
    """
    Register a club with a seed.

    Constraints:
    - (competition_id, seed_number) must be unique
    - (competition_id, club_id) must be unique
    - No registration once matches exist
    """
    competition = _require_competition(session, competition_id)

    club = session.get(Club, payload.club_id)
    if not club:
        raise HTTPException(status_code=404, detail="Club not found")

    has_matches = session.exec(select(Match.id).where(Match.competition_id == competition_id)).first()
    if has_matches is not None:
        raise HTTPException(status_code=409, detail="Participants are frozen once matches have been generated")

    if competition.max_participants is not None and payload.status == PARTICIPANT_CONFIRMED:
        confirmed = session.exec(
            select(Participant).where(
                Participant.competition_id == competition_id,
                Participant.status == PARTICIPANT_CONFIRMED,
            )
        ).all()
        if len(confirmed) >= competition.max_participants:
            raise HTTPException(status_code=409, detail="Competition is full")

    participant = Participant(competition_id=competition_id, **payload.model_dump())
    session.add(participant)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Seed or club already registered in this competition")
    session.refresh(participant)
    return _participant_response(participant, club)
