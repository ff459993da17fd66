"""Content-based recommendation engine.

Builds a taste profile from the user's recent interactions, scores the unseen
catalog against it and returns a ranked, explained list. Each call is
stateless; no data is written except explicit feedback.
"""

from __future__ import annotations

import asyncio
import logging
import numbers
from dataclasses import dataclass, field
from typing import Any, Awaitable, List, Optional, Protocol, Sequence, TypeVar

from cadence.config import Settings, get_settings
from cadence.errors import (
    DataAccessError,
    EngineError,
    RecommendationNotFoundError,
    RecommendationTimeoutError,
    ValidationError,
)
from cadence.models.feedback import FeedbackKind
from cadence.schemas import Explanation, Recommendation, parse_recommendation_id
from cadence.services.features import InteractionRecord, TrackFeatures
from cadence.services.ranking import explain_match, rank_candidates
from cadence.services.similarity import DEFAULT_WEIGHTS, ScoringWeights, score_candidate, score_candidates
from cadence.services.taste_profile import TasteProfile, build_taste_profile, seed_profile

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Sentinel meaning "use the configured request timeout"
_DEFAULT_TIMEOUT: Any = object()


class CatalogSource(Protocol):
    """Data access the engine depends on."""

    async def fetch_recent_interactions(self, user_id: int, limit: int = 100) -> Sequence[InteractionRecord]:
        ...

    async def fetch_candidate_tracks(self, user_id: int, pool_cap: int = 1000) -> Sequence[TrackFeatures]:
        ...

    async def fetch_track(self, track_id: int) -> Optional[TrackFeatures]:
        ...

    async def record_feedback(
        self,
        user_id: int,
        recommendation_id: str,
        feedback_kind: str,
        comment: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        ...


@dataclass
class RecommendationOutcome:
    """Result of a recommendation request.

    ``error`` is set when the request degraded to an empty list, so the failure
    stays observable without failing the caller.
    """

    recommendations: List[Recommendation] = field(default_factory=list)
    error: Optional[EngineError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def validate_limit(limit: Any) -> int:
    """Accept a positive integer (or integral float) result size."""
    if isinstance(limit, float) and limit.is_integer():
        limit = int(limit)
    if isinstance(limit, bool) or not isinstance(limit, numbers.Integral) or limit <= 0:
        raise ValidationError(f"limit must be a positive integer, got {limit!r}")
    return int(limit)


def validate_feedback_kind(feedback_kind: Any) -> str:
    value = getattr(feedback_kind, "value", feedback_kind)
    try:
        return FeedbackKind(value).value
    except ValueError as exc:
        allowed = ", ".join(kind.value for kind in FeedbackKind)
        raise ValidationError(f"feedback kind must be one of {allowed}, got {feedback_kind!r}") from exc


async def gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """Run awaitables concurrently; when one fails, cancel and reap the rest."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class ContentRecommender:
    """Stateless content-similarity recommender for a single user."""

    def __init__(
        self,
        repository: CatalogSource,
        settings: Optional[Settings] = None,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
    ):
        self.repository = repository
        self.settings = settings or get_settings()
        self.weights = weights

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------
    async def build_profile(self, user_id: int) -> TasteProfile:
        """Profile from the user's most recent interactions; empty history gives an empty profile."""
        interactions = await self.repository.fetch_recent_interactions(
            user_id, limit=self.settings.history_window
        )
        return build_taste_profile(
            interactions,
            max_genres=self.settings.max_profile_genres,
            max_artists=self.settings.max_profile_artists,
            average_mode=self.settings.profile_average_mode,
        )

    async def select_candidates(self, user_id: int) -> List[TrackFeatures]:
        """Active tracks the user has never interacted with, capped at the pool size."""
        cap = self.settings.candidate_pool_cap
        tracks = await self.repository.fetch_candidate_tracks(user_id, pool_cap=cap)
        return list(tracks)[:cap]

    async def _score(self, profile: TasteProfile, candidates: Sequence[TrackFeatures]):
        # Large pools are scored off the event loop so other requests keep running
        settings = self.settings
        if len(candidates) >= settings.scoring_parallel_threshold:
            return await asyncio.to_thread(
                score_candidates,
                profile,
                candidates,
                self.weights,
                settings.scoring_parallel_threshold,
                settings.scoring_workers,
            )
        return score_candidates(profile, candidates, self.weights, settings.scoring_parallel_threshold, 1)

    def _rank(self, user_id: int, profile: TasteProfile, scored, limit: int) -> List[Recommendation]:
        return rank_candidates(
            user_id,
            profile,
            scored,
            limit,
            min_score=self.settings.min_score,
            tolerance=self.settings.explanation_tolerance,
            max_reasons=self.settings.max_reasons,
        )

    async def _with_timeout(self, awaitable: Awaitable[T], timeout: Any, **context) -> T:
        if timeout is _DEFAULT_TIMEOUT:
            timeout = self.settings.request_timeout_seconds
        if not timeout:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as exc:
            details = " | ".join(f"{key}={value!r}" for key, value in context.items())
            logger.warning("Recommendation request timed out | timeout=%s | %s", timeout, details)
            raise RecommendationTimeoutError(f"Recommendation request exceeded {timeout}s") from exc

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------
    async def generate(self, user_id: int, limit: Any = None, timeout: Any = _DEFAULT_TIMEOUT) -> RecommendationOutcome:
        """Recommend up to ``limit`` unseen tracks for ``user_id``.

        Raises ``ValidationError`` before any data access for a bad ``limit`` and
        ``RecommendationTimeoutError`` when ``timeout`` elapses. Storage and scoring
        faults degrade to an empty outcome carrying the error.
        """
        if user_id is None:
            raise ValidationError("user_id is required")
        limit = validate_limit(self.settings.default_limit if limit is None else limit)

        return await self._with_timeout(
            self._generate(user_id, limit), timeout, user_id=user_id, limit=limit
        )

    async def _generate(self, user_id: int, limit: int) -> RecommendationOutcome:
        try:
            profile, candidates = await gather_or_cancel(
                self.build_profile(user_id),
                self.select_candidates(user_id),
            )
        except DataAccessError as exc:
            logger.exception(
                "Recommendation data access failed | user_id=%s | limit=%s | exc_type=%s | exc=%r",
                user_id,
                limit,
                type(exc.__cause__ or exc).__name__,
                exc,
            )
            return RecommendationOutcome(error=exc)

        logger.debug(
            "Generating recommendations | user_id=%s | interactions=%d | candidates=%d",
            user_id,
            profile.interaction_count,
            len(candidates),
        )

        try:
            scored = await self._score(profile, candidates)
            recommendations = self._rank(user_id, profile, scored, limit)
        except Exception as exc:
            logger.exception(
                "Recommendation scoring failed | user_id=%s | candidates=%d | exc_type=%s",
                user_id,
                len(candidates),
                type(exc).__name__,
            )
            return RecommendationOutcome(error=EngineError(str(exc), code="scoring"))

        return RecommendationOutcome(recommendations=recommendations)

    async def generate_recommendations(
        self, user_id: int, limit: Any = None, timeout: Any = _DEFAULT_TIMEOUT
    ) -> List[Recommendation]:
        """Ranked recommendations, empty when the request degraded."""
        outcome = await self.generate(user_id, limit, timeout=timeout)
        return outcome.recommendations

    async def explain(self, recommendation_id: str, timeout: Any = _DEFAULT_TIMEOUT) -> Explanation:
        """Re-derive the explanation of a recommendation from current scoring inputs."""
        user_id, track_id = parse_recommendation_id(recommendation_id)

        profile, track = await self._with_timeout(
            gather_or_cancel(self.build_profile(user_id), self.repository.fetch_track(track_id)),
            timeout,
            recommendation_id=recommendation_id,
        )
        if track is None:
            raise RecommendationNotFoundError(f"Track {track_id} not found")

        breakdown = score_candidate(profile, track, self.weights)
        return explain_match(
            profile,
            track,
            breakdown.score,
            tolerance=self.settings.explanation_tolerance,
            max_reasons=self.settings.max_reasons,
        )

    async def similar_tracks(
        self, track_id: int, user_id: int, limit: Any = None, timeout: Any = _DEFAULT_TIMEOUT
    ) -> List[Recommendation]:
        """Unseen tracks closest to a single seed track."""
        limit = validate_limit(self.settings.default_limit if limit is None else limit)

        try:
            seed, candidates = await self._with_timeout(
                gather_or_cancel(self.repository.fetch_track(track_id), self.select_candidates(user_id)),
                timeout,
                track_id=track_id,
                user_id=user_id,
            )
        except DataAccessError:
            logger.exception(
                "Similar tracks data access failed | track_id=%s | user_id=%s", track_id, user_id
            )
            return []

        if seed is None:
            raise RecommendationNotFoundError(f"Track {track_id} not found")

        profile = seed_profile([seed])
        candidates = [track for track in candidates if track.track_id != track_id]
        try:
            scored = await self._score(profile, candidates)
            return self._rank(user_id, profile, scored, limit)
        except Exception:
            logger.exception("Similar tracks scoring failed | track_id=%s | user_id=%s", track_id, user_id)
            return []

    async def record_feedback(
        self,
        user_id: int,
        recommendation_id: str,
        feedback_kind: Any,
        comment: Optional[str] = None,
    ) -> bool:
        """Append one feedback row. Storage failures are logged and reported as ``False``."""
        kind = validate_feedback_kind(feedback_kind)
        try:
            await self.repository.record_feedback(
                user_id,
                recommendation_id,
                kind,
                comment,
                metadata={"source": "content_based"},
            )
        except DataAccessError as exc:
            logger.exception(
                "Recording feedback failed | user_id=%s | recommendation_id=%s | kind=%s | exc=%r",
                user_id,
                recommendation_id,
                kind,
                exc,
            )
            return False

        logger.info(
            "Recorded %s feedback for recommendation %s", kind, recommendation_id
        )
        return True

