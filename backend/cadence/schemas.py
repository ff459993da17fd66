"""Recommendation payloads returned to callers."""

from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from cadence.errors import ValidationError

RECOMMENDATION_TYPE = "content_based"


class Explanation(BaseModel):
    """Why a track was recommended."""

    model_config = ConfigDict(frozen=True)

    type: str = RECOMMENDATION_TYPE
    score: float
    confidence: float
    reasons: List[str] = Field(default_factory=list)
    matched_genres: List[str] = Field(default_factory=list)
    matched_artists: List[str] = Field(default_factory=list)


class Recommendation(BaseModel):
    """A ranked, explained track suggestion."""

    model_config = ConfigDict(frozen=True)

    recommendation_id: str
    track_id: int
    score: float
    confidence: float
    explanation: Explanation


def make_recommendation_id(user_id: int, track_id: int) -> str:
    return f"{user_id}:{track_id}"


def parse_recommendation_id(recommendation_id: str) -> Tuple[int, int]:
    """Split a recommendation id into ``(user_id, track_id)``."""
    parts = str(recommendation_id).split(":")
    if len(parts) != 2:
        raise ValidationError(f"Malformed recommendation id: {recommendation_id!r}")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValidationError(f"Malformed recommendation id: {recommendation_id!r}") from exc
