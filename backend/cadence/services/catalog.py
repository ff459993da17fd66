"""Read access to interaction history and the track catalog."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from cadence.database import AsyncSessionLocal
from cadence.errors import DataAccessError
from cadence.models.feedback import RecommendationFeedback
from cadence.models.interaction import UserInteraction
from cadence.models.track import Track
from cadence.services.features import InteractionRecord, TrackFeatures

logger = logging.getLogger(__name__)

STORAGE_ERRORS = (SQLAlchemyError, OSError)


def recent_interactions_query(user_id: int, limit: int):
    """Most recent interactions of a user, newest first, with track and artist joined."""
    return (
        select(UserInteraction)
        .options(joinedload(UserInteraction.track).joinedload(Track.artist))
        .where(UserInteraction.user_id == user_id)
        .order_by(UserInteraction.created_at.desc(), UserInteraction.id.desc())
        .limit(limit)
    )


def candidate_tracks_query(user_id: int, pool_cap: int):
    """Active tracks the user has never interacted with, newest catalog entries first."""
    seen = (
        select(UserInteraction.id)
        .where(UserInteraction.user_id == user_id)
        .where(UserInteraction.track_id == Track.id)
    )
    return (
        select(Track)
        .options(joinedload(Track.artist))
        .where(Track.is_active.is_(True))
        .where(~seen.exists())
        .order_by(Track.created_at.desc(), Track.id.desc())
        .limit(pool_cap)
    )


class CatalogRepository:
    """SQLAlchemy implementation of the engine's data access.

    Every call opens its own session so independent fetches of one request can
    run concurrently.
    """

    def __init__(self, session_factory=AsyncSessionLocal):
        self._session_factory = session_factory

    async def fetch_recent_interactions(self, user_id: int, limit: int = 100) -> List[InteractionRecord]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(recent_interactions_query(user_id, limit))
                rows = result.scalars().all()
                return [InteractionRecord.from_model(row) for row in rows]
        except STORAGE_ERRORS as exc:
            raise DataAccessError(f"Failed to fetch interactions for user {user_id}") from exc

    async def fetch_candidate_tracks(self, user_id: int, pool_cap: int = 1000) -> List[TrackFeatures]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(candidate_tracks_query(user_id, pool_cap))
                rows = result.scalars().all()
                return [TrackFeatures.from_model(row) for row in rows]
        except STORAGE_ERRORS as exc:
            raise DataAccessError(f"Failed to fetch candidate tracks for user {user_id}") from exc

    async def fetch_track(self, track_id: int) -> Optional[TrackFeatures]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Track).options(joinedload(Track.artist)).where(Track.id == track_id)
                )
                track = result.scalar_one_or_none()
                return TrackFeatures.from_model(track) if track is not None else None
        except STORAGE_ERRORS as exc:
            raise DataAccessError(f"Failed to fetch track {track_id}") from exc

    async def record_feedback(
        self,
        user_id: int,
        recommendation_id: str,
        feedback_kind: str,
        comment: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        try:
            async with self._session_factory() as session:
                session.add(
                    RecommendationFeedback(
                        user_id=user_id,
                        recommendation_id=recommendation_id,
                        feedback_type=feedback_kind,
                        comment=comment,
                        feedback_metadata=metadata or {},
                    )
                )
                await session.commit()
        except STORAGE_ERRORS as exc:
            raise DataAccessError(
                f"Failed to record feedback for recommendation {recommendation_id}"
            ) from exc
