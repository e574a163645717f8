"""
Club directory routes.
Clubs are shared across competitions; the engine only reads them.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session, select

from competition_engine.database import get_session
from competition_engine.models.club import Club

router = APIRouter()


class ClubCreate(BaseModel):
    name: str
    short_name: Optional[str] = None
    logo_url: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()


class ClubResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    short_name: Optional[str] = None
    logo_url: Optional[str] = None
    created_at: datetime


@router.get("/clubs", response_model=List[ClubResponse])
def list_clubs(session: Session = Depends(get_session)):
    return session.exec(select(Club).order_by(Club.name)).all()


@router.post("/clubs", response_model=ClubResponse, status_code=201)
def create_club(payload: ClubCreate, session: Session = Depends(get_session)):
    club = Club(**payload.model_dump())
    session.add(club)
    session.commit()
    session.refresh(club)
    return club


@router.get("/clubs/{club_id}", response_model=ClubResponse)
def get_club(club_id: int, session: Session = Depends(get_session)):
    club = session.get(Club, club_id)
    if not club:
        raise HTTPException(status_code=404, detail="Club not found")
    return club
