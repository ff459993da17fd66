"""Ranking of scored candidates and explanation synthesis."""

import logging
from typing import Iterable, List, Optional

from cadence.schemas import Explanation, Recommendation, make_recommendation_id
from cadence.services.features import TrackFeatures
from cadence.services.similarity import ScoreBreakdown
from cadence.services.taste_profile import TasteProfile

logger = logging.getLogger(__name__)

MIN_SCORE = 0.1
MAX_REASONS = 3
EXPLANATION_TOLERANCE = 0.2


def _within(profile_value: Optional[float], track_value: Optional[float], tolerance: float) -> bool:
    if profile_value is None or track_value is None:
        return False
    return abs(profile_value - track_value) < tolerance


def explain_match(
    profile: TasteProfile,
    track: TrackFeatures,
    score: float,
    tolerance: float = EXPLANATION_TOLERANCE,
    max_reasons: int = MAX_REASONS,
) -> Explanation:
    """Build the human-readable reasons for recommending ``track``.

    Reasons are checked in a fixed order (genre, artist, energy, valence) and
    the first ``max_reasons`` found are kept.
    """
    reasons: List[str] = []
    matched_genres: List[str] = []
    matched_artists: List[str] = []

    if profile.genre_rank(track.genre) is not None:
        reasons.append(f"You like {track.genre} music")
        matched_genres.append(track.genre)

    if profile.artist_rank(track.artist_id) is not None:
        label = track.artist_label
        reasons.append(f"You've enjoyed music by {label}")
        matched_artists.append(label)

    if track.audio is not None:
        if _within(profile.audio.energy, track.audio.energy, tolerance):
            reasons.append("Similar energy level to your preferences")
        if _within(profile.audio.valence, track.audio.valence, tolerance):
            reasons.append("Matches your mood preferences")

    return Explanation(
        score=score,
        confidence=min(score, 1.0),
        reasons=reasons[:max_reasons],
        matched_genres=matched_genres,
        matched_artists=matched_artists,
    )


def rank_candidates(
    user_id: int,
    profile: TasteProfile,
    scored: Iterable[ScoreBreakdown],
    limit: int,
    min_score: float = MIN_SCORE,
    tolerance: float = EXPLANATION_TOLERANCE,
    max_reasons: int = MAX_REASONS,
) -> List[Recommendation]:
    """Drop scores at or below ``min_score``, sort descending and explain the top ``limit``.

    The sort is stable, so equal scores keep the candidate pool order.
    """
    relevant = [item for item in scored if item.score > min_score]
    relevant.sort(key=lambda item: item.score, reverse=True)

    recommendations = []
    for item in relevant[:limit]:
        explanation = explain_match(profile, item.track, item.score, tolerance, max_reasons)
        recommendations.append(
            Recommendation(
                recommendation_id=make_recommendation_id(user_id, item.track.track_id),
                track_id=item.track.track_id,
                score=item.score,
                confidence=explanation.confidence,
                explanation=explanation,
            )
        )

    logger.debug(
        "Ranked candidates | user_id=%s | relevant=%d | returned=%d",
        user_id,
        len(relevant),
        len(recommendations),
    )
    return recommendations
