"""
Schemas package.

This module re-exports the normalized episode schemas for easy importing:
    from db.schemas import ProviderEpisodeSet, EpisodeMetadataEntry, ...

Upstream boundary payloads live in ``db.schemas.providers`` and are only
imported by the scrapers.
"""

from db.schemas.episodes import (
    Episode,
    EpisodeMetadataEntry,
    EpisodeSetList,
    EpisodeTracks,
    MetadataList,
    ProviderEpisodeSet,
    ProviderMapping,
    dump_episode_sets,
)

__all__ = [
    "Episode",
    "EpisodeTracks",
    "ProviderEpisodeSet",
    "EpisodeMetadataEntry",
    "ProviderMapping",
    "EpisodeSetList",
    "MetadataList",
    "dump_episode_sets",
]
