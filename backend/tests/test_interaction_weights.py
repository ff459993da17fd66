import pytest

from cadence.models.interaction import InteractionType
from cadence.services.interaction_weights import (
    DEFAULT_INTERACTION_WEIGHT,
    feedback_kind_for_interaction,
    interaction_weight,
)


@pytest.mark.parametrize(
    "kind, expected",
    [
        ("like", 5),
        ("add_to_playlist", 4),
        ("download", 4),
        ("share", 3),
        ("play", 2),
        ("skip", -1),
        ("dislike", -3),
    ],
)
def test_known_interaction_weights(kind, expected):
    assert interaction_weight(kind) == expected


def test_unknown_and_missing_kinds_use_default_weight():
    assert interaction_weight("bookmark") == DEFAULT_INTERACTION_WEIGHT == 1
    assert interaction_weight(None) == 1
    assert interaction_weight("") == 1


def test_enum_members_resolve_like_their_values():
    assert interaction_weight(InteractionType.LIKE) == 5
    assert interaction_weight(InteractionType.DISLIKE) == -3


def test_feedback_kind_for_interaction():
    assert feedback_kind_for_interaction("like") == "positive"
    assert feedback_kind_for_interaction(InteractionType.DISLIKE) == "negative"
    assert feedback_kind_for_interaction("skip") == "neutral"
    assert feedback_kind_for_interaction("play") is None
    assert feedback_kind_for_interaction(None) is None
