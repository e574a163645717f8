from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from competition_engine.models.match import Match
    from competition_engine.models.participant import Participant

TYPE_LEAGUE = "league"
TYPE_KNOCKOUT = "knockout"
TYPE_HYBRID = "hybrid"

FORMAT_ROUND_ROBIN = "round_robin"
FORMAT_SINGLE_ELIMINATION = "single_elimination"

STATUS_SCHEDULED = "scheduled"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"


class Competition(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    competition_type: str = Field(default=TYPE_LEAGUE)  # "league" | "knockout" | "hybrid"
    format: str = Field(default=FORMAT_ROUND_ROBIN)  # "round_robin" | "single_elimination"
    status: str = Field(default=STATUS_SCHEDULED)  # "scheduled" | "in_progress" | "completed"
    season: Optional[str] = Field(default=None)
    max_participants: Optional[int] = Field(default=None)

    # Elimination draws are settled by a shootout winner; False rejects level scores outright
    decide_draws_by_shootout: bool = Field(default=True)

    champion_club_id: Optional[int] = Field(default=None, foreign_key="club.id")
    admin_user_id: Optional[int] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    participants: List["Participant"] = Relationship(back_populates="competition")
    matches: List["Match"] = Relationship(back_populates="competition")

    @property
    def supports_bracket(self) -> bool:
        # competition_type alone decides; format is descriptive
        return self.competition_type in (TYPE_KNOCKOUT, TYPE_HYBRID)

    @property
    def supports_fixtures(self) -> bool:
        return self.competition_type in (TYPE_LEAGUE, TYPE_HYBRID)
