"""Content similarity between a taste profile and candidate tracks.

Each dimension contributes only when both the profile and the candidate supply
it. The composite is renormalized by the weights actually applied:

    score = Σ (w_i × S_i) / Σ w_i    over evaluated dimensions i

so a track with missing audio data is not penalized for the gap itself.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from cadence.services.features import AUDIO_CHANNELS, AudioFeatures, TrackFeatures
from cadence.services.taste_profile import TasteProfile

logger = logging.getLogger(__name__)

# Tempo is unbounded above; differences are scaled against at least this BPM
TEMPO_CEILING = 200.0


@dataclass(frozen=True)
class ScoringWeights:
    """Base weights of the similarity dimensions."""
    genre: float = 0.3
    artist: float = 0.2
    audio: float = 0.4
    duration: float = 0.1


DEFAULT_WEIGHTS = ScoringWeights()


@dataclass
class ScoreBreakdown:
    """Composite score of one candidate and the sub-scores behind it."""
    track: TrackFeatures
    score: float = 0.0
    applied_weight: float = 0.0

    genre_score: Optional[float] = None
    artist_score: Optional[float] = None
    audio_score: Optional[float] = None
    duration_score: Optional[float] = None
    channel_scores: Dict[str, float] = field(default_factory=dict)

    @property
    def factors(self) -> Dict[str, float]:
        """Evaluated sub-scores keyed by dimension."""
        candidates = {
            "genre": self.genre_score,
            "artist": self.artist_score,
            "audio_features": self.audio_score,
            "duration": self.duration_score,
        }
        return {name: round(value, 3) for name, value in candidates.items() if value is not None}


def rank_decay(rank: Optional[int], size: int) -> Optional[float]:
    """1.0 for the top-ranked entry, decaying linearly toward 1/size for the last."""
    if rank is None or size <= 0:
        return None
    return 1.0 - (rank / size)


def genre_similarity(profile: TasteProfile, track: TrackFeatures) -> Optional[float]:
    return rank_decay(profile.genre_rank(track.genre), len(profile.genres))


def artist_similarity(profile: TasteProfile, track: TrackFeatures) -> Optional[float]:
    return rank_decay(profile.artist_rank(track.artist_id), len(profile.artists))


def channel_similarity(channel: str, profile_value: float, track_value: float) -> float:
    """Closeness of one audio channel; every channel but tempo is on a 0-1 scale."""
    diff = abs(profile_value - track_value)
    if channel == "tempo":
        return 1.0 - diff / max(profile_value, track_value, TEMPO_CEILING)
    return 1.0 - diff


def audio_similarity(
    profile_audio: AudioFeatures,
    track_audio: Optional[AudioFeatures],
) -> Tuple[Optional[float], Dict[str, float]]:
    """Mean channel closeness over channels both sides know.

    Returns ``(None, {})`` when no channel is comparable.
    """
    if track_audio is None:
        return None, {}

    per_channel: Dict[str, float] = {}
    for channel in AUDIO_CHANNELS:
        profile_value = profile_audio.get(channel)
        track_value = track_audio.get(channel)
        if profile_value is None or track_value is None:
            continue
        per_channel[channel] = channel_similarity(channel, profile_value, track_value)

    if not per_channel:
        return None, {}
    return sum(per_channel.values()) / len(per_channel), per_channel


def duration_similarity(profile_duration: Optional[float], track_duration: Optional[float]) -> Optional[float]:
    if profile_duration is None or track_duration is None:
        return None
    longest = max(profile_duration, track_duration)
    if longest <= 0:
        return None
    return 1.0 - abs(profile_duration - track_duration) / longest


def score_candidate(
    profile: TasteProfile,
    track: TrackFeatures,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> ScoreBreakdown:
    """Score one candidate against a profile. Pure; safe to call concurrently."""
    breakdown = ScoreBreakdown(track=track)
    weighted_sum = 0.0
    total_weight = 0.0

    # 1. Genre rank (weight: 0.3)
    genre_score = genre_similarity(profile, track)
    if genre_score is not None:
        breakdown.genre_score = genre_score
        weighted_sum += genre_score * weights.genre
        total_weight += weights.genre

    # 2. Artist rank (weight: 0.2)
    artist_score = artist_similarity(profile, track)
    if artist_score is not None:
        breakdown.artist_score = artist_score
        weighted_sum += artist_score * weights.artist
        total_weight += weights.artist

    # 3. Audio features (weight: 0.4)
    audio_score, per_channel = audio_similarity(profile.audio, track.audio)
    if audio_score is not None:
        breakdown.audio_score = audio_score
        breakdown.channel_scores = per_channel
        weighted_sum += audio_score * weights.audio
        total_weight += weights.audio

    # 4. Duration (weight: 0.1)
    duration_score = duration_similarity(profile.duration, track.duration)
    if duration_score is not None:
        breakdown.duration_score = duration_score
        weighted_sum += duration_score * weights.duration
        total_weight += weights.duration

    breakdown.applied_weight = total_weight
    breakdown.score = weighted_sum / total_weight if total_weight > 0 else 0.0
    return breakdown


def _score_chunk(
    profile: TasteProfile,
    chunk: Sequence[TrackFeatures],
    weights: ScoringWeights,
) -> List[ScoreBreakdown]:
    return [score_candidate(profile, track, weights) for track in chunk]


def score_candidates(
    profile: TasteProfile,
    candidates: Sequence[TrackFeatures],
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    parallel_threshold: int = 500,
    max_workers: int = 4,
) -> List[ScoreBreakdown]:
    """Score every candidate, preserving candidate order.

    Pools at or above ``parallel_threshold`` are split into chunks scored on a
    bounded thread pool. Scoring is pure Python, so the pool keeps chunks off
    the calling thread but gives no CPU speedup under the GIL.
    """
    if not candidates:
        return []

    if max_workers <= 1 or len(candidates) < parallel_threshold:
        return _score_chunk(profile, candidates, weights)

    chunk_size = math.ceil(len(candidates) / max_workers)
    chunks = [candidates[i:i + chunk_size] for i in range(0, len(candidates), chunk_size)]
    logger.debug(
        "Scoring candidates in parallel | candidates=%d | workers=%d | chunks=%d",
        len(candidates),
        max_workers,
        len(chunks),
    )

    results: List[ScoreBreakdown] = []
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="cadence-score") as pool:
        for scored in pool.map(lambda chunk: _score_chunk(profile, chunk, weights), chunks):
            results.extend(scored)
    return results
