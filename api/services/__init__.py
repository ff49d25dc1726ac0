"""
Services layer for business logic.

This package contains service classes that encapsulate business logic,
separating it from API routes and upstream clients.

Services:
- BaseService: Base class for all services
- AggregationPipeline: Provider selection and concurrent fan-out
- EpisodeCacheService: Cache-aware serving of aggregated episodes
"""

from .aggregation import AggregationOutcome, AggregationPipeline
from .base import BaseService
from .episode_cache import EpisodeCacheService

__all__ = [
    "AggregationOutcome",
    "AggregationPipeline",
    "BaseService",
    "EpisodeCacheService",
]
