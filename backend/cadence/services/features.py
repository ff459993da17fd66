"""Immutable content-feature records consumed by the scoring engine."""

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

# Audio feature channels compared between a taste profile and a track
AUDIO_CHANNELS: Tuple[str, ...] = (
    "tempo",
    "energy",
    "valence",
    "acousticness",
    "danceability",
    "instrumentalness",
    "speechiness",
)


@dataclass(frozen=True)
class AudioFeatures:
    """Audio feature channels of a track or a profile centroid.

    ``None`` means the channel is unknown, which is not the same as ``0.0``.
    """

    tempo: Optional[float] = None
    energy: Optional[float] = None
    valence: Optional[float] = None
    acousticness: Optional[float] = None
    danceability: Optional[float] = None
    instrumentalness: Optional[float] = None
    speechiness: Optional[float] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "AudioFeatures":
        kwargs = {}
        for channel in AUDIO_CHANNELS:
            value = values.get(channel)
            kwargs[channel] = float(value) if value is not None else None
        return cls(**kwargs)

    def get(self, channel: str) -> Optional[float]:
        return getattr(self, channel)

    def items(self) -> Iterator[Tuple[str, float]]:
        """Yield ``(channel, value)`` for every known channel."""
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                yield f.name, value

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


@dataclass(frozen=True)
class TrackFeatures:
    """Static attributes of a catalog track."""

    track_id: int
    artist_id: Optional[int] = None
    artist_name: Optional[str] = None
    genre: Optional[str] = None
    audio: Optional[AudioFeatures] = None
    duration: Optional[float] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, track) -> "TrackFeatures":
        """Build from a ``Track`` ORM row (artist relationship loaded)."""
        audio = AudioFeatures.from_mapping(
            {channel: getattr(track, channel, None) for channel in AUDIO_CHANNELS}
        )
        artist = getattr(track, "artist", None)
        return cls(
            track_id=track.id,
            artist_id=track.artist_id,
            artist_name=artist.name if artist is not None else None,
            genre=track.genre or None,
            audio=None if audio.is_empty else audio,
            duration=float(track.duration) if track.duration is not None else None,
            created_at=track.created_at,
        )

    @property
    def artist_label(self) -> Optional[str]:
        """Human-readable artist label, falling back to the id."""
        if self.artist_name:
            return self.artist_name
        if self.artist_id is not None:
            return str(self.artist_id)
        return None


@dataclass(frozen=True)
class InteractionRecord:
    """One user-track event joined with the track's content features."""

    user_id: int
    track_id: int
    interaction_type: Optional[str]
    track: TrackFeatures
    duration: Optional[float] = None
    context: Mapping[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, interaction) -> "InteractionRecord":
        """Build from a ``UserInteraction`` ORM row (track relationship loaded)."""
        context: Dict[str, Any] = dict(interaction.context or {})
        return cls(
            user_id=interaction.user_id,
            track_id=interaction.track_id,
            interaction_type=interaction.interaction_type,
            track=TrackFeatures.from_model(interaction.track),
            duration=interaction.duration,
            context=context,
            created_at=interaction.created_at,
        )
