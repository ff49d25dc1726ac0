"""Aggregated episode listing routes."""

from fastapi import APIRouter, Depends, Response

from api.dependencies import get_episode_service
from api.services.episode_cache import EpisodeCacheService
from db.schemas import dump_episode_sets
from utils import const

router = APIRouter()


def _flag(value: str | None) -> bool:
    return value == "true"


@router.get("/episode/{title_id}", tags=["episode"])
async def get_episodes(
    response: Response,
    title_id: str,
    releasing: str | None = None,
    refresh: str | None = None,
    service: EpisodeCacheService = Depends(get_episode_service),
):
    """Get the merged episode listings of every provider for a title."""
    response.headers.update(const.NO_CACHE_HEADERS)

    provider_sets = await service.get_episodes(
        title_id, releasing=_flag(releasing), refresh=_flag(refresh)
    )
    if not provider_sets:
        return {"message": const.EPISODES_NOT_FOUND_MESSAGE}
    return dump_episode_sets(provider_sets)
