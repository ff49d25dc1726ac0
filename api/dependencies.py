"""
FastAPI dependencies for API endpoints.

Long-lived clients are built once in the application lifespan and stored on
``app.state``; these dependencies hand them to the routes so tests can swap
them through ``app.dependency_overrides``.
"""

from fastapi import Request

from api.services.episode_cache import EpisodeCacheService
from db.redis_database import RedisWrapper


def get_episode_service(request: Request) -> EpisodeCacheService:
    return request.app.state.episode_service


def get_redis(request: Request) -> RedisWrapper | None:
    return getattr(request.app.state, "redis", None)
