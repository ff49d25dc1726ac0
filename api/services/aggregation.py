"""Episode aggregation across upstream providers."""

import asyncio
import logging
from dataclasses import dataclass

from db.schemas import EpisodeMetadataEntry, ProviderEpisodeSet, ProviderMapping
from scrapers import EpisodeScrapers
from utils.episode_meta import combine_episode_meta


async def _no_episodes() -> list[ProviderEpisodeSet]:
    return []


async def _metadata_already_fresh() -> None:
    return None


@dataclass
class AggregationOutcome:
    """Raw result of one aggregation pass.

    ``metadata`` is None when the metadata fetch was skipped because the
    caller already holds usable metadata.
    """

    provider_sets: list[ProviderEpisodeSet]
    metadata: list[EpisodeMetadataEntry] | None
    mapped: bool = False


class AggregationPipeline:
    """Selects the provider set for a title and fans out to the scrapers.

    Mapped mode queries gogoanime and zoro with MalSync-resolved ids; when
    resolution yields nothing, direct mode queries the primary and
    secondary aggregators with the title id itself.
    """

    def __init__(
        self,
        scrapers: EpisodeScrapers,
        logger: logging.Logger | None = None,
    ):
        self.scrapers = scrapers
        self.logger = logger or logging.getLogger(__name__)

    async def collect(
        self,
        title_id: str,
        *,
        refresh: bool = False,
        metadata_available: bool = False,
    ) -> AggregationOutcome:
        mappings = None
        if title_id:
            mappings = await self.scrapers.resolver.resolve(title_id)

        if mappings:
            provider_tasks = self._mapped_tasks(mappings)
        else:
            self.logger.info(f"No provider mappings for {title_id}, fetching directly")
            provider_tasks = [
                self.scrapers.primary.fetch(title_id),
                self.scrapers.secondary.fetch(title_id),
            ]

        if metadata_available and not refresh:
            metadata_task = _metadata_already_fresh()
        else:
            metadata_task = self.scrapers.metadata.fetch(title_id)

        *provider_results, metadata = await asyncio.gather(
            *provider_tasks, metadata_task
        )
        provider_sets = [
            provider_set for result in provider_results for provider_set in result
        ]
        self.logger.info(
            f"Aggregated {len(provider_sets)} provider sets for {title_id} "
            f"({'mapped' if mappings else 'direct'} mode)"
        )
        return AggregationOutcome(
            provider_sets=provider_sets, metadata=metadata, mapped=bool(mappings)
        )

    def _mapped_tasks(self, mappings: list[ProviderMapping]) -> list:
        by_provider = {mapping.provider_id: mapping for mapping in mappings}

        gogoanime = by_provider.get(self.scrapers.gogoanime.provider_id)
        zoro = by_provider.get(self.scrapers.zoro.provider_id)
        return [
            self.scrapers.gogoanime.fetch(gogoanime.sub, gogoanime.dub)
            if gogoanime
            else _no_episodes(),
            self.scrapers.zoro.fetch(zoro.sub or zoro.dub) if zoro else _no_episodes(),
        ]

    async def run(self, title_id: str, refresh: bool = False) -> list[ProviderEpisodeSet]:
        """Aggregate a title without any cache, merging freshly fetched metadata."""
        outcome = await self.collect(title_id, refresh=refresh)
        return combine_episode_meta(outcome.provider_sets, outcome.metadata)
