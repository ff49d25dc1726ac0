"""
Consumet clients.

ConsumetScraper queries the AniList-backed episode aggregation endpoint by
title id; GogoanimeScraper queries the gogoanime info endpoint by the
provider-specific ids resolved through MalSync. Both report records with
``consumet: true``.
"""

from typing import Any
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter

from db.schemas import Episode, ProviderEpisodeSet
from db.schemas.providers import ConsumetEpisode, GogoanimeInfoResponse
from scrapers.base_scraper import BaseScraper, ScraperMetrics


NOT_FOUND_MESSAGE = "Anime not found"

_raw_episode_list = TypeAdapter(list[Any])


def _to_episode(episode: ConsumetEpisode) -> Episode:
    return Episode(
        id=episode.id,
        number=episode.number,
        title=episode.title,
        image=episode.image,
        description=episode.description,
        air_date=episode.created_at,
        url=episode.url,
    )


def _is_not_found(data: Any) -> bool:
    return isinstance(data, dict) and data.get("message") == NOT_FOUND_MESSAGE


class ConsumetScraper(BaseScraper):
    """Primary aggregator: sub and dub listings by title id."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        provider_id: str = "gogoanime",
    ):
        super().__init__(http_client, base_url, logger_name=__name__ + ".consumet")
        self.provider_id = provider_id

    async def fetch(self, title_id: str) -> list[ProviderEpisodeSet]:
        return await self._guarded(
            title_id, lambda metrics: self._fetch(metrics, title_id), default=[]
        )

    async def _fetch(
        self, metrics: ScraperMetrics, title_id: str
    ) -> list[ProviderEpisodeSet]:
        sub, dub = await self.gather_tracks(
            metrics,
            self._fetch_track(metrics, title_id),
            self._fetch_track(metrics, title_id, dub=True),
        )
        return self.build_episode_sets(
            self.provider_id, sub, dub, metrics, consumet=True
        )

    async def _fetch_track(
        self, metrics: ScraperMetrics, title_id: str, dub: bool = False
    ) -> list[Episode]:
        params = {"dub": "true"} if dub else None
        path = f"meta/anilist/episodes/{quote(title_id, safe='')}"
        data = await self.get_json(path, params=params)
        if _is_not_found(data):
            return []
        return self.parse_episodes(
            _raw_episode_list.validate_python(data), ConsumetEpisode, _to_episode, metrics
        )


class GogoanimeScraper(BaseScraper):
    """Gogoanime info endpoint queried with MalSync-resolved sub/dub ids."""

    provider_id = "gogoanime"

    def __init__(self, http_client: httpx.AsyncClient, base_url: str):
        super().__init__(http_client, base_url, logger_name=__name__ + ".gogoanime")

    async def fetch(
        self, sub_id: str | None, dub_id: str | None
    ) -> list[ProviderEpisodeSet]:
        return await self._guarded(
            sub_id or dub_id,
            lambda metrics: self._fetch(metrics, sub_id, dub_id),
            default=[],
        )

    async def _fetch(
        self, metrics: ScraperMetrics, sub_id: str | None, dub_id: str | None
    ) -> list[ProviderEpisodeSet]:
        sub, dub = await self.gather_tracks(
            metrics,
            self._fetch_track(metrics, sub_id),
            self._fetch_track(metrics, dub_id),
        )
        return self.build_episode_sets(
            self.provider_id, sub, dub, metrics, consumet=True
        )

    async def _fetch_track(
        self, metrics: ScraperMetrics, provider_title_id: str | None
    ) -> list[Episode]:
        if not provider_title_id:
            return []
        data = await self.get_json(
            f"anime/gogoanime/info/{quote(provider_title_id, safe='')}"
        )
        info = GogoanimeInfoResponse.model_validate(data)
        if info.message == NOT_FOUND_MESSAGE and not info.episodes:
            return []
        return self.parse_episodes(info.episodes, ConsumetEpisode, _to_episode, metrics)
