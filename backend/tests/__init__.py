# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from competition_engine.models.club import Club  # noqa: F401
from competition_engine.models.competition import Competition  # noqa: F401
from competition_engine.models.match import Match  # noqa: F401
from competition_engine.models.participant import Participant  # noqa: F401
from competition_engine.models.user import User  # noqa: F401
