"""Recommendation feedback model."""

from datetime import datetime
from typing import Optional, Dict
import enum

from sqlalchemy import String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column

from cadence.database import Base


class FeedbackKind(str, enum.Enum):
    """Explicit feedback on a recommendation."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class RecommendationFeedback(Base):
    """Single feedback entry left by a user on a recommendation."""

    __tablename__ = "recommendation_feedback"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    recommendation_id: Mapped[str] = mapped_column(String(100), index=True)

    feedback_type: Mapped[str] = mapped_column(String(20), index=True)
    comment: Mapped[Optional[str]] = mapped_column(Text)
    # "metadata" is reserved on declarative classes
    feedback_metadata: Mapped[Optional[Dict]] = mapped_column("metadata", JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return (
            f"<RecommendationFeedback(id={self.id}, recommendation_id={self.recommendation_id}, "
            f"type={self.feedback_type})>"
        )
