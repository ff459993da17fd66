"""Track model."""

from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, Float, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cadence.database import Base

if TYPE_CHECKING:
    from cadence.models.artist import Artist


class Track(Base):
    """Catalog track with the content features used for scoring."""

    __tablename__ = "tracks"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    # Basic info
    title: Mapped[str] = mapped_column(String(500), index=True)
    artist_id: Mapped[Optional[int]] = mapped_column(ForeignKey("artists.id"), index=True)
    genre: Mapped[Optional[str]] = mapped_column(String(100), index=True)

    # Duration in seconds
    duration: Mapped[Optional[float]] = mapped_column(Float)

    # Audio features
    tempo: Mapped[Optional[float]] = mapped_column(Float)  # BPM
    energy: Mapped[Optional[float]] = mapped_column(Float)
    valence: Mapped[Optional[float]] = mapped_column(Float)
    acousticness: Mapped[Optional[float]] = mapped_column(Float)
    danceability: Mapped[Optional[float]] = mapped_column(Float)
    instrumentalness: Mapped[Optional[float]] = mapped_column(Float)
    speechiness: Mapped[Optional[float]] = mapped_column(Float)

    # Catalog status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    artist: Mapped[Optional["Artist"]] = relationship("Artist", back_populates="tracks", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Track(id={self.id}, title='{self.title}')>"
