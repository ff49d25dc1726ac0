from dataclasses import dataclass

import httpx

from db.config import Settings
from scrapers.anify import AnifyScraper
from scrapers.anizip import AniZipScraper
from scrapers.consumet import ConsumetScraper, GogoanimeScraper
from scrapers.malsync import MalSyncResolver
from scrapers.zoro import ZoroScraper
from utils.const import UA_HEADER


@dataclass
class EpisodeScrapers:
    """One long-lived client per upstream, sharing a single HTTP connection pool."""

    resolver: MalSyncResolver
    primary: ConsumetScraper
    secondary: AnifyScraper
    gogoanime: GogoanimeScraper
    zoro: ZoroScraper
    metadata: AniZipScraper


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        proxy=settings.requests_proxy_url,
        timeout=settings.http_timeout,
        headers=UA_HEADER,
        follow_redirects=True,
    )


def create_scrapers(
    http_client: httpx.AsyncClient, settings: Settings
) -> EpisodeScrapers:
    return EpisodeScrapers(
        resolver=MalSyncResolver(
            http_client,
            settings.malsync_url,
            supported_providers=settings.mapped_providers,
        ),
        primary=ConsumetScraper(
            http_client,
            settings.consumet_url,
            provider_id=settings.primary_provider_id,
        ),
        secondary=AnifyScraper(
            http_client,
            settings.anify_url,
            aliases=settings.provider_aliases,
            excluded_providers=settings.secondary_excluded_providers,
        ),
        gogoanime=GogoanimeScraper(http_client, settings.consumet_url),
        zoro=ZoroScraper(http_client, settings.zoro_url),
        metadata=AniZipScraper(http_client, settings.anizip_url),
    )
