from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from competition_engine.models.club import Club
    from competition_engine.models.competition import Competition

PARTICIPANT_CONFIRMED = "confirmed"
PARTICIPANT_PENDING = "pending"
PARTICIPANT_WITHDRAWN = "withdrawn"


class Participant(SQLModel, table=True):
    __table_args__ = (
        # Seeds are unique within a competition
        SAUniqueConstraint("competition_id", "seed_number", name="uq_participant_seed"),
        SAUniqueConstraint("competition_id", "club_id", name="uq_participant_club"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    competition_id: int = Field(foreign_key="competition.id", index=True)
    club_id: int = Field(foreign_key="club.id")
    seed_number: int  # 1-based, 1 = top seed
    status: str = Field(default=PARTICIPANT_CONFIRMED)  # "confirmed" | "pending" | "withdrawn"
    joined_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    competition: "Competition" = Relationship(back_populates="participants")
    club: "Club" = Relationship(back_populates="participations")
