"""Zoro client. Zoro exposes a single listing per title, normalized as the sub track."""

from urllib.parse import quote

import httpx

from db.schemas import Episode, ProviderEpisodeSet
from db.schemas.providers import ZoroEpisode, ZoroEpisodesResponse
from scrapers.base_scraper import BaseScraper, ScraperMetrics


def _to_episode(episode: ZoroEpisode) -> Episode:
    return Episode(
        id=episode.episode_id,
        number=episode.number,
        title=episode.title,
        is_filler=episode.is_filler,
    )


class ZoroScraper(BaseScraper):
    provider_id = "zoro"

    def __init__(self, http_client: httpx.AsyncClient, base_url: str):
        super().__init__(http_client, base_url, logger_name=__name__)

    async def fetch(self, zoro_id: str | None) -> list[ProviderEpisodeSet]:
        if not zoro_id:
            return []
        return await self._guarded(
            zoro_id, lambda metrics: self._fetch(metrics, zoro_id), default=[]
        )

    async def _fetch(
        self, metrics: ScraperMetrics, zoro_id: str
    ) -> list[ProviderEpisodeSet]:
        data = await self.get_json(f"anime/episodes/{quote(zoro_id, safe='')}")
        response = ZoroEpisodesResponse.model_validate(data)
        sub = self.parse_episodes(response.episodes, ZoroEpisode, _to_episode, metrics)
        return self.build_episode_sets(self.provider_id, sub, None, metrics)
