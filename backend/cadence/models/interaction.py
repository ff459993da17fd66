"""User interaction model for recording listening events."""

from datetime import datetime
from typing import Optional, Dict, TYPE_CHECKING
import enum

from sqlalchemy import String, Float, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cadence.database import Base

if TYPE_CHECKING:
    from cadence.models.track import Track


class InteractionType(str, enum.Enum):
    """Known interaction kinds."""
    LIKE = "like"
    ADD_TO_PLAYLIST = "add_to_playlist"
    DOWNLOAD = "download"
    SHARE = "share"
    PLAY = "play"
    SKIP = "skip"
    DISLIKE = "dislike"


class UserInteraction(Base):
    """One user-track event. Rows are append-only."""

    __tablename__ = "user_interactions"
    __table_args__ = (
        Index("ix_user_interactions_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    track_id: Mapped[int] = mapped_column(ForeignKey("tracks.id"), index=True)

    # Stored as plain text so kinds unknown to this service are kept
    interaction_type: Mapped[str] = mapped_column(String(50), index=True)

    # Seconds listened
    duration: Mapped[Optional[float]] = mapped_column(Float)
    context: Mapped[Optional[Dict]] = mapped_column(JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    track: Mapped["Track"] = relationship("Track", lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<UserInteraction(id={self.id}, user_id={self.user_id}, "
            f"track_id={self.track_id}, type={self.interaction_type})>"
        )
