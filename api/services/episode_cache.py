"""Cache coordination for aggregated episode listings."""

import logging
from enum import Enum
from typing import Callable

from pydantic import TypeAdapter, ValidationError

from api.services.aggregation import AggregationPipeline
from api.services.base import BaseService
from db.redis_database import CACHE_ERRORS, RedisWrapper
from db.schemas import (
    EpisodeMetadataEntry,
    EpisodeSetList,
    MetadataList,
    ProviderEpisodeSet,
)
from utils.episode_meta import combine_episode_meta

RELEASING_CACHE_TTL = 60 * 60 * 3
FINISHED_CACHE_TTL = 60 * 60 * 24 * 45


class CacheDecision(str, Enum):
    SERVE_CACHED = "serve_cached"
    REFRESH = "refresh"


def cache_ttl(
    releasing: bool,
    releasing_ttl: int = RELEASING_CACHE_TTL,
    finished_ttl: int = FINISHED_CACHE_TTL,
) -> int:
    """Currently airing titles change often; finished ones barely change."""
    return releasing_ttl if releasing else finished_ttl


def _present_sets(
    provider_sets: list[ProviderEpisodeSet],
) -> list[ProviderEpisodeSet]:
    return [s for s in provider_sets if not s.tracks.is_empty()]


def decide(refresh: bool, cached: list[ProviderEpisodeSet] | None) -> CacheDecision:
    if refresh or not cached:
        return CacheDecision.REFRESH
    return CacheDecision.SERVE_CACHED


class EpisodeCacheService(BaseService):
    """Serves aggregated episodes from Redis, refreshing them when needed.

    Per request:
    1. read ``meta:<id>`` and ``episode:<id>``, evicting empty or corrupt entries
    2. refresh when forced or nothing is cached, otherwise serve the cache
    3. on refresh, persist the new aggregate and any freshly fetched metadata

    Metadata is merged at serve time because it can change independently of
    the episode listings. Any cache failure degrades to an uncached
    aggregation; nothing here raises to the caller.
    """

    EPISODE_PREFIX = "episode:"
    META_PREFIX = "meta:"

    def __init__(
        self,
        pipeline: AggregationPipeline,
        redis: RedisWrapper | None = None,
        releasing_ttl: int = RELEASING_CACHE_TTL,
        finished_ttl: int = FINISHED_CACHE_TTL,
        logger: logging.Logger | None = None,
    ):
        super().__init__(redis=redis, logger=logger)
        self.pipeline = pipeline
        self.releasing_ttl = releasing_ttl
        self.finished_ttl = finished_ttl

    def episode_key(self, title_id: str) -> str:
        return f"{self.EPISODE_PREFIX}{title_id}"

    def meta_key(self, title_id: str) -> str:
        return f"{self.META_PREFIX}{title_id}"

    async def get_episodes(
        self, title_id: str, releasing: bool = False, refresh: bool = False
    ) -> list[ProviderEpisodeSet]:
        ttl = cache_ttl(releasing, self.releasing_ttl, self.finished_ttl)

        if self.redis is None:
            self.logger.warning("Redis not configured, serving uncached episodes")
            return await self.pipeline.run(title_id, refresh=True)

        try:
            metadata = await self._read_entry(self.meta_key(title_id), MetadataList)
            cached = await self._read_entry(
                self.episode_key(title_id), EpisodeSetList, prune=_present_sets
            )
        except CACHE_ERRORS as e:
            self.logger.warning(
                f"Cache unavailable for {title_id}, serving uncached episodes: {e}"
            )
            return await self.pipeline.run(title_id, refresh=True)

        if decide(refresh, cached) is CacheDecision.REFRESH:
            return await self._refresh(title_id, metadata, ttl, refresh)

        self.logger.debug(f"Serving cached episodes for {title_id}")
        return combine_episode_meta(cached, metadata)

    async def _read_entry(
        self,
        key: str,
        adapter: TypeAdapter,
        prune: Callable[[list], list] | None = None,
    ) -> list | None:
        """
        Read and decode a cached list. Entries that fail to decode, or are
        empty once pruned, are deleted and reported as absent.
        """
        raw = await self.get_cached(key)
        if raw is None:
            return None

        try:
            value = adapter.validate_json(raw)
        except ValidationError:
            self.logger.warning(f"Evicting corrupt cache entry {key}")
            value = None

        if value and prune:
            value = prune(value)

        if not value:
            await self.delete_cached(key)
            return None
        return value

    async def _refresh(
        self,
        title_id: str,
        metadata: list[EpisodeMetadataEntry] | None,
        ttl: int,
        refresh: bool,
    ) -> list[ProviderEpisodeSet]:
        outcome = await self.pipeline.collect(
            title_id, refresh=refresh, metadata_available=bool(metadata)
        )
        provider_sets = outcome.provider_sets

        if provider_sets:
            await self._write_entry(
                self.episode_key(title_id),
                EpisodeSetList.dump_json(
                    provider_sets, by_alias=True, exclude_none=True
                ),
                ttl,
            )

        if outcome.metadata:
            await self._write_entry(
                self.meta_key(title_id),
                MetadataList.dump_json(
                    outcome.metadata, by_alias=True, exclude_none=True
                ),
                ttl,
            )
            return combine_episode_meta(provider_sets, outcome.metadata)

        return combine_episode_meta(provider_sets, metadata)

    async def _write_entry(self, key: str, value: bytes, ttl: int) -> None:
        try:
            await self.set_cached(key, value, ttl=ttl)
        except CACHE_ERRORS as e:
            self.logger.warning(f"Failed to cache {key}: {e}")
