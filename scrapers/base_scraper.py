import abc
import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from db.schemas import Episode, EpisodeTracks, ProviderEpisodeSet

PayloadT = TypeVar("PayloadT", bound=BaseModel)


@dataclass
class ScraperMetrics:
    scraper_name: str
    title_id: str = None
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    total_items_found: int = 0
    total_items_skipped: int = 0
    error_counts: Counter = field(default_factory=Counter)
    track_stats: Counter = field(default_factory=Counter)

    def stop(self):
        """Stop metrics collection and record end time"""
        self.end_time = datetime.now()

    def record_found_items(self, count: int):
        """Record number of items initially found"""
        self.total_items_found += count

    def record_skipped_item(self):
        self.total_items_skipped += 1

    def record_error(self, error_type: str):
        """Record an error occurrence"""
        self.error_counts[error_type] += 1

    def record_track(self, track: str, count: int):
        """Record the number of episodes kept for a track"""
        self.track_stats[track] += count

    def get_summary(self) -> Dict:
        """Generate a summary of the metrics"""
        duration = (self.end_time or datetime.now()) - self.start_time

        return {
            "scraper_name": self.scraper_name,
            "title_id": self.title_id,
            "duration_seconds": duration.total_seconds(),
            "total_items": {
                "found": self.total_items_found,
                "skipped": self.total_items_skipped,
                "errors": sum(self.error_counts.values()),
            },
            "error_counts": dict(self.error_counts),
            "track_distribution": dict(self.track_stats),
        }

    def format_summary(self) -> str:
        """Format the metrics summary as a compact log line"""
        summary = self.get_summary()
        parts = [
            f"{self.scraper_name} [{self.title_id}]",
            f"duration={summary['duration_seconds']:.2f}s",
            f"found={summary['total_items']['found']}",
            f"skipped={summary['total_items']['skipped']}",
            f"errors={summary['total_items']['errors']}",
        ]
        if self.track_stats:
            tracks = ", ".join(
                f"{track}={count}" for track, count in self.track_stats.items()
            )
            parts.append(f"tracks=({tracks})")
        if self.error_counts:
            errors = ", ".join(
                f"{error_type}={count}"
                for error_type, count in self.error_counts.most_common()
            )
            parts.append(f"error_types=({errors})")
        return " ".join(parts)

    def log_summary(self, logger):
        """Log the metrics summary using the provided logger"""
        logger.info(self.format_summary())


class ScraperError(Exception):
    pass


class BaseScraper(abc.ABC):
    """
    Base class for every upstream client.

    Public entry points never raise: transport failures, non-2xx responses,
    not-found sentinels and malformed payloads are logged, counted in the
    per-call metrics and turned into an empty result.
    """

    def __init__(
        self, http_client: httpx.AsyncClient, base_url: str, logger_name: str
    ):
        self.logger = logging.getLogger(logger_name)
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.scraper_name = logger_name.rsplit(".", 1)[-1]

    async def _guarded(
        self,
        title_id: str,
        operation: Callable[[ScraperMetrics], Awaitable[Any]],
        default: Any,
    ) -> Any:
        """Run an operation with per-call metrics, degrading every failure to default."""
        metrics = ScraperMetrics(self.scraper_name, title_id=title_id)
        try:
            return await operation(metrics)
        except ScraperError as e:
            metrics.record_error("request_failed")
            self.logger.error(f"Error fetching {self.scraper_name} for {title_id}: {e}")
        except ValidationError as e:
            metrics.record_error("invalid_response")
            self.logger.warning(
                f"Malformed {self.scraper_name} payload for {title_id}: {e.error_count()} errors"
            )
        except Exception as e:
            metrics.record_error("unexpected_error")
            self.logger.exception(
                f"Unexpected error fetching {self.scraper_name} for {title_id}: {e}"
            )
        finally:
            metrics.stop()
            metrics.log_summary(self.logger)
        return default

    async def make_request(
        self, url: str, method: str = "GET", is_expected_to_fail: bool = False, **kwargs
    ) -> httpx.Response:
        """
        Make a single HTTP request. Upstream calls are never retried.
        """
        try:
            response = await self.http_client.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404 and is_expected_to_fail:
                return e.response
            raise ScraperError(f"HTTP error occurred: {e}")
        except httpx.RequestError as e:
            raise ScraperError(
                f"An error occurred while requesting {e.request.url!r}: {e!r}"
            )

    async def get_json(self, path: str, **kwargs) -> Any:
        """GET a path relative to the base URL and decode the JSON body."""
        response = await self.make_request(
            f"{self.base_url}/{path.lstrip('/')}", is_expected_to_fail=True, **kwargs
        )
        return self.decode_json(response)

    @staticmethod
    def decode_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ScraperError(f"Invalid JSON received from {response.url}: {e}")

    def parse_episodes(
        self,
        raw_episodes: list | None,
        model: Type[PayloadT],
        to_episode: Callable[[PayloadT], Episode],
        metrics: ScraperMetrics,
    ) -> list[Episode]:
        """
        Validate raw upstream episodes one by one and normalize them.
        Invalid entries are skipped; the result is ordered ascending by
        number with duplicate numbers removed (first occurrence wins).
        """
        if not raw_episodes:
            return []

        metrics.record_found_items(len(raw_episodes))
        episodes = {}
        for raw_episode in raw_episodes:
            try:
                episode = to_episode(model.model_validate(raw_episode))
            except ValidationError:
                metrics.record_skipped_item()
                continue
            if episode.number in episodes:
                metrics.record_skipped_item()
                continue
            episodes[episode.number] = episode

        return [episodes[number] for number in sorted(episodes)]

    @staticmethod
    def build_episode_sets(
        provider_id: str,
        sub: list[Episode] | None,
        dub: list[Episode] | None,
        metrics: ScraperMetrics,
        consumet: bool | None = None,
    ) -> list[ProviderEpisodeSet]:
        """Wrap sub/dub listings in a provider set, omitting empty tracks."""
        tracks = EpisodeTracks(sub=sub or None, dub=dub or None)
        if tracks.is_empty():
            return []

        for track, episodes in (("sub", tracks.sub), ("dub", tracks.dub)):
            if episodes:
                metrics.record_track(track, len(episodes))

        return [
            ProviderEpisodeSet(
                provider_id=provider_id, tracks=tracks, consumet=consumet
            )
        ]

    async def gather_tracks(
        self,
        metrics: ScraperMetrics,
        sub: Awaitable[list[Episode]],
        dub: Awaitable[list[Episode]],
    ) -> tuple[list[Episode], list[Episode]]:
        """
        Fetch the sub and dub listings concurrently.
        A failing track is logged and left empty without affecting the other.
        """

        async def guarded_track(track: str, operation: Awaitable[list[Episode]]):
            try:
                return await operation
            except ScraperError as e:
                metrics.record_error(f"{track}_request_failed")
                self.logger.warning(f"{self.scraper_name} {track} track failed: {e}")
            except ValidationError:
                metrics.record_error(f"{track}_invalid_response")
                self.logger.warning(f"{self.scraper_name} {track} track is malformed")
            except Exception as e:
                metrics.record_error(f"{track}_unexpected_error")
                self.logger.exception(
                    f"Unexpected error in {self.scraper_name} {track} track: {e}"
                )
            return []

        sub_episodes, dub_episodes = await asyncio.gather(
            guarded_track("sub", sub), guarded_track("dub", dub)
        )
        return sub_episodes, dub_episodes

    @abc.abstractmethod
    async def fetch(self, *args, **kwargs) -> Any:
        """
        Public entry point implemented by each scraper.
        Must return an empty result instead of raising.
        """
        pass
