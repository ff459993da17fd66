import pytest

from cadence.services.features import AudioFeatures, TrackFeatures
from cadence.services.ranking import explain_match, rank_candidates
from cadence.services.similarity import ScoreBreakdown
from cadence.services.taste_profile import TasteProfile

PROFILE = TasteProfile(
    genres=("Rock", "Jazz"),
    artists=(7,),
    audio=AudioFeatures(energy=0.5, valence=0.5),
)


def _track(track_id=1, genre=None, artist_id=None, artist_name=None, **audio):
    return TrackFeatures(
        track_id=track_id,
        artist_id=artist_id,
        artist_name=artist_name,
        genre=genre,
        audio=AudioFeatures(**audio) if audio else None,
    )


def _scored(track_id, score):
    return ScoreBreakdown(track=_track(track_id, genre="Rock"), score=score)


def test_explanation_lists_reasons_in_check_order_capped_at_three():
    track = _track(genre="Rock", artist_id=7, artist_name="The Band", energy=0.6, valence=0.45)

    explanation = explain_match(PROFILE, track, 0.9)

    assert explanation.reasons == [
        "You like Rock music",
        "You've enjoyed music by The Band",
        "Similar energy level to your preferences",
    ]
    assert explanation.matched_genres == ["Rock"]
    assert explanation.matched_artists == ["The Band"]
    assert explanation.type == "content_based"
    assert explanation.score == 0.9
    assert explanation.confidence == 0.9


def test_explanation_mood_reason_without_genre_or_artist_match():
    track = _track(genre="Ska", artist_id=99, energy=0.95, valence=0.55)

    explanation = explain_match(PROFILE, track, 0.4)

    assert explanation.reasons == ["Matches your mood preferences"]
    assert explanation.matched_genres == []
    assert explanation.matched_artists == []


def test_explanation_skips_audio_reasons_when_profile_lacks_channel():
    profile = TasteProfile(genres=("Rock",))
    track = _track(genre="Rock", energy=0.5, valence=0.5)

    assert explain_match(profile, track, 1.0).reasons == ["You like Rock music"]


def test_explanation_falls_back_to_artist_id_label():
    explanation = explain_match(PROFILE, _track(artist_id=7), 0.5)

    assert explanation.reasons == ["You've enjoyed music by 7"]
    assert explanation.matched_artists == ["7"]


def test_confidence_is_capped_at_one():
    explanation = explain_match(PROFILE, _track(genre="Rock"), 1.25)

    assert explanation.score == 1.25
    assert explanation.confidence == 1.0


def test_rank_candidates_filters_sorts_and_truncates():
    scored = [
        _scored(1, 0.3),
        _scored(2, 0.1),
        _scored(3, 0.9),
        _scored(4, 0.05),
        _scored(5, 0.6),
        _scored(6, 0.45),
    ]

    recommendations = rank_candidates(42, PROFILE, scored, limit=3)

    assert [r.track_id for r in recommendations] == [3, 5, 6]
    assert [r.recommendation_id for r in recommendations] == ["42:3", "42:5", "42:6"]
    assert all(r.score > 0.1 for r in recommendations)
    assert recommendations[0].explanation.reasons[0] == "You like Rock music"


def test_rank_candidates_keeps_pool_order_for_equal_scores():
    scored = [_scored(8, 0.5), _scored(2, 0.5), _scored(5, 0.7)]

    recommendations = rank_candidates(1, PROFILE, scored, limit=10)

    assert [r.track_id for r in recommendations] == [5, 8, 2]


def test_rank_candidates_respects_custom_floor():
    scored = [_scored(1, 0.3), _scored(2, 0.5)]

    recommendations = rank_candidates(1, PROFILE, scored, limit=10, min_score=0.4)

    assert [r.track_id for r in recommendations] == [2]


def test_rank_candidates_with_nothing_relevant():
    assert rank_candidates(1, PROFILE, [_scored(1, 0.0), _scored(2, 0.1)], limit=5) == []
