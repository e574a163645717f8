"""
Engine error -> HTTP translation for the route layer.
"""

from fastapi import HTTPException

from competition_engine.services.errors import EngineError


def to_http_exception(err: EngineError) -> HTTPException:
    """Map an engine failure to an HTTPException carrying code, message and context."""
    return HTTPException(status_code=err.status_code, detail=err.to_detail())
