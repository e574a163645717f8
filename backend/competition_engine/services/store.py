"""
Persistence seam for the engine.

Services only talk to a CompetitionStore; SqlModelStore is the SQL-backed
implementation used by the API and the tests.
"""

from contextlib import contextmanager
from typing import ContextManager, Iterator, List, Optional, Protocol

from sqlmodel import Session, select

from competition_engine.models.club import Club
from competition_engine.models.competition import Competition
from competition_engine.models.match import Match
from competition_engine.models.participant import Participant


class CompetitionStore(Protocol):
    def get_competition(self, competition_id: int, for_update: bool = False) -> Optional[Competition]: ...

    def get_match(self, match_id: int, for_update: bool = False) -> Optional[Match]: ...

    def list_matches(self, competition_id: int) -> List[Match]: ...

    def list_participants(self, competition_id: int) -> List[Participant]: ...

    def get_club(self, club_id: int) -> Optional[Club]: ...

    def add(self, obj: object) -> None: ...

    def flush(self) -> None: ...

    def atomic(self) -> ContextManager["CompetitionStore"]: ...


class SqlModelStore:
    """CompetitionStore over a SQLModel session. One atomic() block = one transaction."""

    def __init__(self, session: Session):
        self.session = session

    def get_competition(self, competition_id: int, for_update: bool = False) -> Optional[Competition]:
        stmt = select(Competition).where(Competition.id == competition_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.exec(stmt).first()

    def get_match(self, match_id: int, for_update: bool = False) -> Optional[Match]:
        stmt = select(Match).where(Match.id == match_id)
        if for_update:
            # Row lock: concurrent recordings on this match serialize (no-op on sqlite)
            stmt = stmt.with_for_update()
        return self.session.exec(stmt).first()

    def list_matches(self, competition_id: int) -> List[Match]:
        return list(
            self.session.exec(
                select(Match).where(Match.competition_id == competition_id).order_by(Match.id)
            ).all()
        )

    def list_participants(self, competition_id: int) -> List[Participant]:
        return list(
            self.session.exec(
                select(Participant)
                .where(Participant.competition_id == competition_id)
                .order_by(Participant.seed_number)
            ).all()
        )

    def get_club(self, club_id: int) -> Optional[Club]:
        return self.session.get(Club, club_id)

    def add(self, obj: object) -> None:
        self.session.add(obj)

    def flush(self) -> None:
        self.session.flush()

    @contextmanager
    def atomic(self) -> Iterator["SqlModelStore"]:
        """Commit everything done inside the block, or nothing."""
        try:
            yield self
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
