"""Taste profile construction from a user's recent interaction history."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from cadence.services.features import AUDIO_CHANNELS, AudioFeatures, InteractionRecord, TrackFeatures
from cadence.services.interaction_weights import interaction_weight

logger = logging.getLogger(__name__)

MAX_PROFILE_GENRES = 10
MAX_PROFILE_ARTISTS = 20

AVERAGE_BY_COUNT = "count"
AVERAGE_BY_WEIGHT = "weight"


@dataclass(frozen=True)
class TasteProfile:
    """Weighted summary of what a user listens to.

    ``genres`` and ``artists`` are ordered most-preferred first. Audio channels
    and ``duration`` are ``None`` when no contributing interaction supplied them.
    """

    genres: Tuple[str, ...] = ()
    artists: Tuple[int, ...] = ()
    audio: AudioFeatures = field(default_factory=AudioFeatures)
    duration: Optional[float] = None
    interaction_count: int = 0

    @property
    def is_empty(self) -> bool:
        return (
            not self.genres
            and not self.artists
            and self.audio.is_empty
            and self.duration is None
        )

    def genre_rank(self, genre: Optional[str]) -> Optional[int]:
        if not genre or genre not in self.genres:
            return None
        return self.genres.index(genre)

    def artist_rank(self, artist_id: Optional[int]) -> Optional[int]:
        if artist_id is None or artist_id not in self.artists:
            return None
        return self.artists.index(artist_id)


def _channel_values(track: TrackFeatures) -> Iterator[Tuple[str, float]]:
    """Yield every numeric channel the track supplies, duration included."""
    if track.audio is not None:
        yield from track.audio.items()
    if track.duration is not None:
        yield "duration", track.duration


def _ranked_keys(weights: Dict, limit: int) -> List:
    # sorted() is stable, so ties keep first-seen (most recent) order
    ranked = sorted(weights.items(), key=lambda item: item[1], reverse=True)
    return [key for key, _ in ranked[:limit]]


def build_taste_profile(
    interactions: Iterable[InteractionRecord],
    max_genres: int = MAX_PROFILE_GENRES,
    max_artists: int = MAX_PROFILE_ARTISTS,
    average_mode: str = AVERAGE_BY_COUNT,
) -> TasteProfile:
    """Aggregate interactions into a taste profile.

    Each interaction contributes its signed weight to the genre and artist of its
    track, and ``value * weight`` to every numeric channel the track supplies.
    Channel averages divide by the number of contributing interactions
    (``average_mode="count"``) or by their absolute weight mass
    (``average_mode="weight"``).
    """
    if average_mode not in (AVERAGE_BY_COUNT, AVERAGE_BY_WEIGHT):
        raise ValueError(f"Unknown average mode: {average_mode}")

    genre_weights: Dict[str, float] = defaultdict(float)
    artist_weights: Dict[int, float] = defaultdict(float)
    channel_sums: Dict[str, float] = defaultdict(float)
    channel_counts: Dict[str, int] = defaultdict(int)
    channel_mass: Dict[str, float] = defaultdict(float)
    count = 0

    for interaction in interactions:
        count += 1
        weight = interaction_weight(interaction.interaction_type)
        track = interaction.track

        if track.genre:
            genre_weights[track.genre] += weight
        if track.artist_id is not None:
            artist_weights[track.artist_id] += weight

        for channel, value in _channel_values(track):
            channel_sums[channel] += value * weight
            channel_counts[channel] += 1
            channel_mass[channel] += abs(weight)

    averages: Dict[str, float] = {}
    for channel, total in channel_sums.items():
        divisor = channel_counts[channel] if average_mode == AVERAGE_BY_COUNT else channel_mass[channel]
        if divisor:
            averages[channel] = total / divisor

    profile = TasteProfile(
        genres=tuple(_ranked_keys(genre_weights, max_genres)),
        artists=tuple(_ranked_keys(artist_weights, max_artists)),
        audio=AudioFeatures(**{c: averages[c] for c in AUDIO_CHANNELS if c in averages}),
        duration=averages.get("duration"),
        interaction_count=count,
    )
    logger.debug(
        "Built taste profile | interactions=%d | genres=%d | artists=%d | channels=%d",
        count,
        len(profile.genres),
        len(profile.artists),
        len(averages),
    )
    return profile


def seed_profile(tracks: Sequence[TrackFeatures], interaction_type: str = "like") -> TasteProfile:
    """Profile built as if the user had interacted once with each seed track.

    Channels are weight-averaged so a single seed reproduces its own values.
    """
    records = [
        InteractionRecord(
            user_id=0,
            track_id=track.track_id,
            interaction_type=interaction_type,
            track=track,
        )
        for track in tracks
    ]
    return build_taste_profile(records, average_mode=AVERAGE_BY_WEIGHT)
