"""
MalSync mapping resolver.

MalSync cross-references a title with the pages it has on each streaming
site. Gogoanime lists sub and dub as separate pages, so each site entry is
classified as a sub or dub id; Zoro serves both from one page.
"""

from urllib.parse import quote

import httpx

from db.schemas import ProviderMapping
from db.schemas.providers import MalSyncResponse, MalSyncSiteEntry
from scrapers.base_scraper import BaseScraper, ScraperMetrics

DUB_IDENTIFIER_SUFFIX = "-dub"
DUB_TITLE_MARKER = "(dub)"


def is_dub_entry(entry: MalSyncSiteEntry) -> bool:
    identifier = str(entry.identifier).lower()
    title = (entry.title or "").lower()
    return identifier.endswith(DUB_IDENTIFIER_SUFFIX) or DUB_TITLE_MARKER in title


class MalSyncResolver(BaseScraper):
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        supported_providers: list[str] | None = None,
    ):
        super().__init__(http_client, base_url, logger_name=__name__)
        self.supported_providers = supported_providers or ["gogoanime", "zoro"]

    async def fetch(self, title_id: str) -> list[ProviderMapping] | None:
        return await self.resolve(title_id)

    async def resolve(self, title_id: str) -> list[ProviderMapping] | None:
        """
        Resolve provider-specific ids for a title.
        Returns None when the lookup fails, so the caller can fall back to
        fetching by title id directly.
        """
        return await self._guarded(
            title_id, lambda metrics: self._resolve(metrics, title_id), default=None
        )

    async def _resolve(
        self, metrics: ScraperMetrics, title_id: str
    ) -> list[ProviderMapping]:
        # MalSync ids are appended to the base URL without a separator.
        response = await self.make_request(
            f"{self.base_url}{quote(title_id, safe='')}"
        )
        sites = MalSyncResponse.model_validate(self.decode_json(response)).sites

        mappings = []
        for site_name, entries in sites.items():
            provider_id = site_name.lower()
            if provider_id not in self.supported_providers:
                continue
            metrics.record_found_items(len(entries))
            mapping = ProviderMapping(provider_id=provider_id)
            for entry in entries.values():
                if is_dub_entry(entry):
                    mapping.dub = mapping.dub or str(entry.identifier)
                else:
                    mapping.sub = mapping.sub or str(entry.identifier)
            if mapping.sub or mapping.dub:
                mappings.append(mapping)
        return mappings
