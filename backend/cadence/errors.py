"""Error taxonomy for the recommendation engine."""

from typing import Optional


class EngineError(Exception):
    code: str = "engine_error"

    def __init__(self, message: str = "", *, code: Optional[str] = None):
        super().__init__(message or self.__class__.__name__)
        if code:
            self.code = code


class DataAccessError(EngineError):
    """An interaction or catalog fetch failed in the underlying store."""
    code = "data_access"


class ValidationError(EngineError):
    """Caller input was rejected before any data access."""
    code = "validation"


class RecommendationNotFoundError(EngineError):
    code = "not_found"


class CancellationError(EngineError):
    """The request was abandoned before a complete result existed."""
    code = "cancelled"


class RecommendationTimeoutError(CancellationError):
    code = "timeout"
