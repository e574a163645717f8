"""
Engine error taxonomy.

Every error is raised before any mutation is flushed; the store's atomic
boundary rolls back whatever the failing call touched. Routes map these to
HTTP responses via `status_code`, `code` and `context`.
"""

from typing import Any, Dict, Optional


class EngineError(Exception):
    """Base class for competition engine failures."""

    code = "ENGINE_ERROR"
    status_code = 400

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def to_detail(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "context": self.context}


class CompetitionNotFound(EngineError):
    code = "COMPETITION_NOT_FOUND"
    status_code = 404

    def __init__(self, competition_id: int):
        super().__init__(f"Competition {competition_id} not found", competition_id=competition_id)


class MatchNotFound(EngineError):
    code = "MATCH_NOT_FOUND"
    status_code = 404

    def __init__(self, match_id: int, competition_id: Optional[int] = None):
        super().__init__(f"Match {match_id} not found", match_id=match_id, competition_id=competition_id)


class InvalidParticipantCount(EngineError):
    code = "INVALID_PARTICIPANT_COUNT"
    status_code = 422


class DuplicateSeed(EngineError):
    code = "DUPLICATE_SEED"
    status_code = 422


class InvalidSeed(EngineError):
    code = "INVALID_SEED"
    status_code = 422


class DuplicateParticipant(EngineError):
    code = "DUPLICATE_PARTICIPANT"
    status_code = 422


class UnsupportedFormat(EngineError):
    code = "UNSUPPORTED_FORMAT"
    status_code = 422


class BracketAlreadyBuilt(EngineError):
    code = "BRACKET_ALREADY_BUILT"
    status_code = 409


class FixturesAlreadyGenerated(BracketAlreadyBuilt):
    code = "FIXTURES_ALREADY_GENERATED"


class InconsistentScorePair(EngineError):
    code = "INCONSISTENT_SCORE_PAIR"
    status_code = 422


class InvalidScore(EngineError):
    code = "INVALID_SCORE"
    status_code = 422


class DrawNotAllowed(EngineError):
    """Level score in an elimination match without a usable shootout winner. Retry with one."""

    code = "DRAW_NOT_ALLOWED"
    status_code = 422


class MatchNotReady(EngineError):
    code = "MATCH_NOT_READY"
    status_code = 409


class PropagationConflict(EngineError):
    """A correction would overwrite a downstream match that has already been played."""

    code = "PROPAGATION_CONFLICT"
    status_code = 409
