"""Core routes: health."""

from fastapi import APIRouter, Depends

from api.dependencies import get_redis
from db.redis_database import RedisWrapper

router = APIRouter()


@router.get("/health", tags=["health"])
async def health(redis: RedisWrapper | None = Depends(get_redis)):
    """Health check endpoint."""
    cache = await redis.health_check() if redis else "disabled"
    return {"status": "ok", "cache": cache}
