from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from competition_engine.models.competition import Competition

MATCH_SCHEDULED = "scheduled"
MATCH_COMPLETED = "completed"
MATCH_CANCELLED = "cancelled"


class Match(SQLModel, table=True):
    __table_args__ = (
        # One bracket match per (competition, round_number, bracket_position); league rows leave both null
        SAUniqueConstraint("competition_id", "round_number", "bracket_position", name="uq_match_bracket_slot"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    competition_id: int = Field(foreign_key="competition.id", index=True)
    match_code: str  # "R2M1" | "3RD" | "RR3-2"
    stage: Optional[str] = Field(default=None)  # "final" | "semi_final" | ... | "third_place" | "round_3"

    # League fixtures: ordinal round and number within it
    round: Optional[int] = Field(default=None)
    match_number: Optional[int] = Field(default=None)

    # Bracket matches: depth (1 = final) and 1-based position within the round
    round_number: Optional[int] = Field(default=None)
    bracket_position: Optional[int] = Field(default=None)
    next_match_id: Optional[int] = Field(default=None, foreign_key="match.id", index=True)
    home_seed: Optional[int] = Field(default=None)
    away_seed: Optional[int] = Field(default=None)
    is_consolation: bool = Field(default=False)
    is_bye: bool = Field(default=False)

    # Club slots (nullable while a bracket slot is unresolved)
    home_club_id: Optional[int] = Field(default=None, foreign_key="club.id")
    away_club_id: Optional[int] = Field(default=None, foreign_key="club.id")

    # Both null (unplayed) or both set (played)
    home_score: Optional[int] = Field(default=None)
    away_score: Optional[int] = Field(default=None)
    shootout_winner_club_id: Optional[int] = Field(default=None, foreign_key="club.id")
    winner_club_id: Optional[int] = Field(default=None, foreign_key="club.id")

    status: str = Field(default=MATCH_SCHEDULED)  # "scheduled" | "completed" | "cancelled"
    created_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = Field(default=None)

    # Relationships
    competition: "Competition" = Relationship(back_populates="matches")

    @property
    def is_bracket_match(self) -> bool:
        return self.round_number is not None

    @property
    def is_played(self) -> bool:
        return self.status == MATCH_COMPLETED and self.home_score is not None and self.away_score is not None

    @property
    def loser_club_id(self) -> Optional[int]:
        if self.winner_club_id is None or self.is_bye:
            return None
        if self.winner_club_id == self.home_club_id:
            return self.away_club_id
        return self.home_club_id
