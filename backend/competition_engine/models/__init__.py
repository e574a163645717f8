from competition_engine.models.club import Club
from competition_engine.models.competition import Competition
from competition_engine.models.match import Match
from competition_engine.models.participant import Participant
from competition_engine.models.user import User

__all__ = [
    "Club",
    "Competition",
    "Match",
    "Participant",
    "User",
]
