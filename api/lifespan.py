"""Application lifecycle management."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.services.aggregation import AggregationPipeline
from api.services.episode_cache import EpisodeCacheService
from db.config import settings
from db.redis_database import create_redis_client
from scrapers import create_http_client, create_scrapers


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Handles:
    - Shared HTTP client and per-upstream scraper construction
    - Redis client construction (optional)
    - Graceful shutdown of both connection pools
    """
    # Startup logic
    http_client = create_http_client(settings)
    redis_client = create_redis_client(settings)

    pipeline = AggregationPipeline(create_scrapers(http_client, settings))
    app.state.redis = redis_client
    app.state.episode_service = EpisodeCacheService(
        pipeline,
        redis=redis_client,
        releasing_ttl=settings.releasing_cache_ttl,
        finished_ttl=settings.finished_cache_ttl,
    )

    yield

    # Shutdown logic
    await http_client.aclose()
    if redis_client:
        try:
            await redis_client.aclose()
        except Exception as e:
            logging.exception("Error closing Redis client, %s", e)
