"""Boundary schemas for upstream provider payloads.

Each model describes only the fields we read from an upstream response.
Unknown fields are ignored; a payload that does not fit raises
``pydantic.ValidationError`` which the scrapers treat as malformed.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ============================================
# Consumet (primary aggregator and gogoanime info)
# ============================================


class ConsumetEpisode(_Payload):
    id: str
    number: int | float
    title: str | None = None
    image: str | None = None
    description: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    url: str | None = None


class GogoanimeInfoResponse(_Payload):
    message: str | None = None
    episodes: list[Any] | None = None


# ============================================
# Anify (secondary aggregator)
# ============================================


class AnifyEpisode(_Payload):
    id: str
    number: int | float
    title: str | None = None
    img: str | None = None
    description: str | None = None
    is_filler: bool | None = Field(default=None, alias="isFiller")


class AnifyTracks(_Payload):
    sub: list[Any] | None = None
    dub: list[Any] | None = None


class AnifyProviderEpisodes(_Payload):
    provider_id: str = Field(alias="providerId")
    episodes: AnifyTracks = Field(default_factory=AnifyTracks)


class AnifyEpisodeData(_Payload):
    data: list[AnifyProviderEpisodes] | None = None


class AnifyInfoResponse(_Payload):
    episodes: AnifyEpisodeData | None = None


# ============================================
# MalSync (title to provider id mapping)
# ============================================


class MalSyncSiteEntry(_Payload):
    identifier: str | int
    title: str | None = None
    url: str | None = None


class MalSyncResponse(_Payload):
    sites: dict[str, dict[str, MalSyncSiteEntry]] = Field(alias="Sites")


# ============================================
# Zoro
# ============================================


class ZoroEpisode(_Payload):
    episode_id: str = Field(alias="episodeId")
    number: int | float
    title: str | None = None
    is_filler: bool | None = Field(default=None, alias="isFiller")


class ZoroEpisodesResponse(_Payload):
    episodes: list[Any] | None = None


# ============================================
# ani.zip (episode metadata)
# ============================================


class AniZipEpisode(_Payload):
    episode: str | int | None = None
    title: dict[str, str | None] | None = None
    airdate: str | None = None
    overview: str | None = None
    image: str | None = None
    runtime: int | None = None


class AniZipMappingsResponse(_Payload):
    episodes: dict[str, Any] | None = None
