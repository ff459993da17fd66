"""Artist model."""

from datetime import datetime
from typing import List, TYPE_CHECKING

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cadence.database import Base

if TYPE_CHECKING:
    from cadence.models.track import Track


class Artist(Base):
    """Artist entity."""

    __tablename__ = "artists"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    name: Mapped[str] = mapped_column(String(500), index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    tracks: Mapped[List["Track"]] = relationship("Track", back_populates="artist")

    def __repr__(self) -> str:
        return f"<Artist(id={self.id}, name='{self.name}')>"
