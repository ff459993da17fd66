"""Recommendation engine services."""

from cadence.services.catalog import CatalogRepository
from cadence.services.content_recommender import ContentRecommender, RecommendationOutcome

__all__ = [
    "CatalogRepository",
    "ContentRecommender",
    "RecommendationOutcome",
]
