"""Normalized episode schemas shared by every provider.

Upstream payloads are converted into these models inside the scrapers, so
nothing past the scraper layer sees provider-specific field names:
- Episode: a single playable episode within a track
- EpisodeTracks: the sub/dub listings of one provider
- ProviderEpisodeSet: one provider's tracks, the unit stored in the cache
- EpisodeMetadataEntry: per-episode overlay (titles, thumbnails, air dates)
- ProviderMapping: provider-specific ids resolved for a title
"""

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class Episode(BaseModel):
    """Single episode within a provider track."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    number: int | float
    title: str | None = None
    image: str | None = None
    description: str | None = None
    air_date: str | None = Field(default=None, alias="airDate")
    url: str | None = None
    is_filler: bool | None = Field(default=None, alias="isFiller")


class EpisodeTracks(BaseModel):
    """Sub and dub listings. An absent track is None, never an empty list."""

    sub: list[Episode] | None = None
    dub: list[Episode] | None = None

    @field_validator("sub", "dub")
    @classmethod
    def empty_track_as_absent(cls, episodes):
        return episodes or None

    def is_empty(self) -> bool:
        return not self.sub and not self.dub


class ProviderEpisodeSet(BaseModel):
    """Episode listings of a single provider for a title."""

    model_config = ConfigDict(populate_by_name=True)

    provider_id: str = Field(alias="providerId")
    tracks: EpisodeTracks = Field(default_factory=EpisodeTracks, alias="episodes")
    consumet: bool | None = None


class EpisodeMetadataEntry(BaseModel):
    """Per-episode overlay data keyed by episode number."""

    model_config = ConfigDict(populate_by_name=True)

    number: int | float
    title: str | None = None
    air_date: str | None = Field(default=None, alias="airDate")
    thumbnail: str | None = None
    description: str | None = None
    runtime: int | None = None


class ProviderMapping(BaseModel):
    """Provider-specific ids that correspond to a title."""

    model_config = ConfigDict(populate_by_name=True)

    provider_id: str = Field(alias="providerId")
    sub: str | None = None
    dub: str | None = None


EpisodeSetList = TypeAdapter(list[ProviderEpisodeSet])
MetadataList = TypeAdapter(list[EpisodeMetadataEntry])


def dump_episode_sets(provider_sets: list[ProviderEpisodeSet]) -> list[dict]:
    """Serialize provider sets to their public JSON shape."""
    return EpisodeSetList.dump_python(
        provider_sets, mode="json", by_alias=True, exclude_none=True
    )
