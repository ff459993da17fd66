"""Database models."""

from cadence.models.user import User
from cadence.models.artist import Artist
from cadence.models.track import Track
from cadence.models.interaction import InteractionType, UserInteraction
from cadence.models.feedback import FeedbackKind, RecommendationFeedback

__all__ = [
    "User",
    "Artist",
    "Track",
    "InteractionType",
    "UserInteraction",
    "FeedbackKind",
    "RecommendationFeedback",
]
