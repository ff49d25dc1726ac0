"""
Tests for AggregationPipeline in api/services/aggregation.py

Covers:
- Direct mode when MalSync has no mappings (by title id, never a mapped id)
- Mapped mode when MalSync resolves gogoanime/zoro ids
- Metadata fetch skipped only when usable metadata is already held
- Provider order and failure isolation
"""

import pytest

from tests.conftest import (
    ANIFY_URL,
    ANIZIP_URL,
    CONSUMET_URL,
    MALSYNC_URL,
    ZORO_URL,
    anizip_payload,
    consumet_episodes,
)

TITLE_ID = "21"


def register_direct_upstreams(upstream, episodes: int = 3):
    upstream.add(
        f"{CONSUMET_URL}/meta/anilist/episodes/{TITLE_ID}", consumet_episodes(episodes)
    )
    upstream.add(
        f"{CONSUMET_URL}/meta/anilist/episodes/{TITLE_ID}",
        consumet_episodes(1, prefix="dub"),
        params={"dub": "true"},
    )
    upstream.add(
        f"{ANIFY_URL}/info/{TITLE_ID}",
        {
            "episodes": {
                "data": [
                    {
                        "providerId": "gogoanime",
                        "episodes": {"sub": [{"id": "backup-1", "number": 1}]},
                    }
                ]
            }
        },
        params={"fields": "[episodes]"},
    )


def register_mappings(upstream):
    upstream.add(
        f"{MALSYNC_URL}{TITLE_ID}",
        {
            "Sites": {
                "Gogoanime": {
                    "show": {"identifier": "show", "title": "Show"},
                    "show-dub": {"identifier": "show-dub", "title": "Show (Dub)"},
                },
                "Zoro": {"100": {"identifier": "show-100", "title": "Show"}},
            }
        },
    )
    upstream.add(
        f"{CONSUMET_URL}/anime/gogoanime/info/show",
        {"episodes": consumet_episodes(2)},
    )
    upstream.add(
        f"{CONSUMET_URL}/anime/gogoanime/info/show-dub",
        {"episodes": consumet_episodes(1, prefix="dub")},
    )
    upstream.add(
        f"{ZORO_URL}/anime/episodes/show-100",
        {"episodes": [{"episodeId": "show-100?ep=1", "number": 1}]},
    )


def register_metadata(upstream, count: int = 3):
    upstream.add(
        f"{ANIZIP_URL}/mappings", anizip_payload(count), params={"anilist_id": TITLE_ID}
    )


class TestDirectMode:
    @pytest.mark.asyncio
    async def test_falls_back_to_title_id_without_mappings(self, pipeline, upstream):
        register_direct_upstreams(upstream)
        register_metadata(upstream)

        outcome = await pipeline.collect(TITLE_ID)

        assert outcome.mapped is False
        assert [s.provider_id for s in outcome.provider_sets] == [
            "gogoanime",
            "gogobackup",
        ]
        assert upstream.requested_paths("consumet.test") == [
            f"/meta/anilist/episodes/{TITLE_ID}",
            f"/meta/anilist/episodes/{TITLE_ID}",
        ]
        assert upstream.requested_paths("anify.test") == [f"/info/{TITLE_ID}"]
        assert upstream.requested_paths("zoro.test") == []
        assert len(outcome.metadata) == 3

    @pytest.mark.asyncio
    async def test_empty_mapping_result_uses_direct_mode(self, pipeline, upstream):
        upstream.add(f"{MALSYNC_URL}{TITLE_ID}", {"Sites": {"Crunchyroll": {}}})
        register_direct_upstreams(upstream)

        outcome = await pipeline.collect(TITLE_ID)

        assert outcome.mapped is False
        assert outcome.provider_sets[0].provider_id == "gogoanime"

    @pytest.mark.asyncio
    async def test_failing_secondary_keeps_primary(self, pipeline, upstream):
        register_direct_upstreams(upstream)
        upstream.add(
            f"{ANIFY_URL}/info/{TITLE_ID}",
            params={"fields": "[episodes]"},
            error=True,
        )

        outcome = await pipeline.collect(TITLE_ID)

        assert [s.provider_id for s in outcome.provider_sets] == ["gogoanime"]

    @pytest.mark.asyncio
    async def test_all_upstreams_failing_yields_empty(self, pipeline, upstream):
        outcome = await pipeline.collect(TITLE_ID)

        assert outcome.provider_sets == []
        assert outcome.metadata == []


class TestMappedMode:
    @pytest.mark.asyncio
    async def test_queries_providers_with_mapped_ids(self, pipeline, upstream):
        register_mappings(upstream)
        register_metadata(upstream)

        outcome = await pipeline.collect(TITLE_ID)

        assert outcome.mapped is True
        assert [s.provider_id for s in outcome.provider_sets] == ["gogoanime", "zoro"]
        gogoanime = outcome.provider_sets[0]
        assert len(gogoanime.tracks.sub) == 2
        assert len(gogoanime.tracks.dub) == 1
        assert f"/meta/anilist/episodes/{TITLE_ID}" not in upstream.requested_paths()
        assert upstream.requested_paths("anify.test") == []

    @pytest.mark.asyncio
    async def test_only_gogoanime_mapped(self, pipeline, upstream):
        register_mappings(upstream)
        upstream.add(
            f"{MALSYNC_URL}{TITLE_ID}",
            {"Sites": {"Gogoanime": {"show": {"identifier": "show"}}}},
        )

        outcome = await pipeline.collect(TITLE_ID)

        assert [s.provider_id for s in outcome.provider_sets] == ["gogoanime"]
        assert outcome.provider_sets[0].tracks.dub is None
        assert upstream.requested_paths("zoro.test") == []


class TestMetadataFetch:
    @pytest.mark.asyncio
    async def test_skipped_when_metadata_available(self, pipeline, upstream):
        register_direct_upstreams(upstream)
        register_metadata(upstream)

        outcome = await pipeline.collect(TITLE_ID, metadata_available=True)

        assert outcome.metadata is None
        assert upstream.requested_paths("anizip.test") == []

    @pytest.mark.asyncio
    async def test_refresh_refetches_available_metadata(self, pipeline, upstream):
        register_direct_upstreams(upstream)
        register_metadata(upstream)

        outcome = await pipeline.collect(
            TITLE_ID, refresh=True, metadata_available=True
        )

        assert len(outcome.metadata) == 3
        assert upstream.requested_paths("anizip.test") == ["/mappings"]

    @pytest.mark.asyncio
    async def test_run_merges_fresh_metadata(self, pipeline, upstream):
        register_direct_upstreams(upstream)
        register_metadata(upstream, count=1)

        provider_sets = await pipeline.run(TITLE_ID)

        primary = provider_sets[0]
        assert primary.tracks.sub[0].title == "Meta Title 1"
        assert primary.tracks.sub[1].title == "Episode 2"
        assert primary.tracks.dub[0].title == "Meta Title 1"
