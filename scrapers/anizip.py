"""
ani.zip episode metadata client.

ani.zip keys its episode map by episode label; specials use labels such as
"S1" which have no numeric counterpart in provider listings and are dropped.
"""

import httpx
from pydantic import ValidationError

from db.schemas import EpisodeMetadataEntry
from db.schemas.providers import AniZipEpisode, AniZipMappingsResponse
from scrapers.base_scraper import BaseScraper, ScraperMetrics

TITLE_LANGUAGE_PREFERENCE = ("en", "x-jat", "ja")


def parse_episode_number(label: str | int | None) -> int | float | None:
    if label is None:
        return None
    try:
        number = float(label)
    except (TypeError, ValueError):
        return None
    return int(number) if number.is_integer() else number


def pick_title(titles: dict[str, str | None] | None) -> str | None:
    if not titles:
        return None
    for language in TITLE_LANGUAGE_PREFERENCE:
        if titles.get(language):
            return titles[language]
    return None


class AniZipScraper(BaseScraper):
    def __init__(self, http_client: httpx.AsyncClient, base_url: str):
        super().__init__(http_client, base_url, logger_name=__name__)

    async def fetch(self, title_id: str) -> list[EpisodeMetadataEntry]:
        return await self._guarded(
            title_id, lambda metrics: self._fetch(metrics, title_id), default=[]
        )

    async def _fetch(
        self, metrics: ScraperMetrics, title_id: str
    ) -> list[EpisodeMetadataEntry]:
        data = await self.get_json("mappings", params={"anilist_id": title_id})
        response = AniZipMappingsResponse.model_validate(data)
        if not response.episodes:
            return []

        metrics.record_found_items(len(response.episodes))
        entries = {}
        for raw_episode in response.episodes.values():
            try:
                episode = AniZipEpisode.model_validate(raw_episode)
            except ValidationError:
                metrics.record_skipped_item()
                continue
            number = parse_episode_number(episode.episode)
            if number is None or number in entries:
                metrics.record_skipped_item()
                continue
            entries[number] = EpisodeMetadataEntry(
                number=number,
                title=pick_title(episode.title),
                air_date=episode.airdate,
                thumbnail=episode.image,
                description=episode.overview,
                runtime=episode.runtime,
            )

        metrics.record_track("metadata", len(entries))
        return [entries[number] for number in sorted(entries)]
