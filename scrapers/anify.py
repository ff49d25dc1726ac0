"""
Anify client (secondary aggregator).

Anify returns the listings of several providers at once. Some of its
provider ids collide with providers we already fetch elsewhere, so ids are
passed through an alias table before leaving this module.
"""

from urllib.parse import quote

import httpx

from db.schemas import Episode, ProviderEpisodeSet
from db.schemas.providers import AnifyEpisode, AnifyInfoResponse
from scrapers.base_scraper import BaseScraper, ScraperMetrics


def _to_episode(episode: AnifyEpisode) -> Episode:
    return Episode(
        id=episode.id,
        number=episode.number,
        title=episode.title,
        image=episode.img,
        description=episode.description,
        is_filler=episode.is_filler,
    )


class AnifyScraper(BaseScraper):
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        aliases: dict[str, str] | None = None,
        excluded_providers: list[str] | None = None,
    ):
        super().__init__(http_client, base_url, logger_name=__name__)
        self.aliases = aliases or {}
        self.excluded_providers = set(excluded_providers or [])

    def alias(self, provider_id: str) -> str:
        return self.aliases.get(provider_id, provider_id)

    async def fetch(self, title_id: str) -> list[ProviderEpisodeSet]:
        return await self._guarded(
            title_id, lambda metrics: self._fetch(metrics, title_id), default=[]
        )

    async def _fetch(
        self, metrics: ScraperMetrics, title_id: str
    ) -> list[ProviderEpisodeSet]:
        data = await self.get_json(
            f"info/{quote(title_id, safe='')}", params={"fields": "[episodes]"}
        )
        info = AnifyInfoResponse.model_validate(data)
        if not info.episodes or not info.episodes.data:
            return []

        provider_sets = []
        for provider in info.episodes.data:
            if provider.provider_id in self.excluded_providers:
                continue
            sub = self.parse_episodes(
                provider.episodes.sub, AnifyEpisode, _to_episode, metrics
            )
            dub = self.parse_episodes(
                provider.episodes.dub, AnifyEpisode, _to_episode, metrics
            )
            provider_sets.extend(
                self.build_episode_sets(
                    self.alias(provider.provider_id), sub, dub, metrics
                )
            )
        return provider_sets
