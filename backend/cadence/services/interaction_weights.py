"""Signed weights for user interaction kinds."""

from typing import Dict, Optional

# Negative weights actively suppress content the user turned away from
INTERACTION_WEIGHTS: Dict[str, float] = {
    "like": 5,
    "add_to_playlist": 4,
    "download": 4,
    "share": 3,
    "play": 2,
    "skip": -1,
    "dislike": -3,
}

DEFAULT_INTERACTION_WEIGHT: float = 1

# Interaction kinds that double as explicit feedback on a recommendation
INTERACTION_FEEDBACK: Dict[str, str] = {
    "like": "positive",
    "dislike": "negative",
    "skip": "neutral",
}


def _kind(interaction_type) -> str:
    # Accepts InteractionType members as well as raw strings
    return str(getattr(interaction_type, "value", interaction_type))


def interaction_weight(interaction_type: Optional[str]) -> float:
    """Return the weight for an interaction kind; unknown kinds weigh 1."""
    if interaction_type is None:
        return DEFAULT_INTERACTION_WEIGHT
    return INTERACTION_WEIGHTS.get(_kind(interaction_type), DEFAULT_INTERACTION_WEIGHT)


def feedback_kind_for_interaction(interaction_type: Optional[str]) -> Optional[str]:
    """Map an interaction kind to a feedback kind, or ``None`` if it carries none."""
    if interaction_type is None:
        return None
    return INTERACTION_FEEDBACK.get(_kind(interaction_type))
