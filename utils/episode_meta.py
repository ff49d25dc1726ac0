from db.schemas import Episode, EpisodeMetadataEntry, EpisodeTracks, ProviderEpisodeSet


def _overlay_episode(episode: Episode, entry: EpisodeMetadataEntry | None) -> Episode:
    if entry is None:
        return episode

    update = {
        field_name: value
        for field_name, value in (
            ("title", entry.title),
            ("image", entry.thumbnail),
            ("description", entry.description),
            ("air_date", entry.air_date),
        )
        if value
    }
    return episode.model_copy(update=update) if update else episode


def _overlay_track(
    episodes: list[Episode] | None,
    metadata_by_number: dict[int | float, EpisodeMetadataEntry],
) -> list[Episode] | None:
    if episodes is None:
        return None
    return [
        _overlay_episode(episode, metadata_by_number.get(episode.number))
        for episode in episodes
    ]


def combine_episode_meta(
    provider_sets: list[ProviderEpisodeSet],
    metadata: list[EpisodeMetadataEntry] | None,
) -> list[ProviderEpisodeSet]:
    """
    Enrich every provider's episodes with metadata matched by episode number.

    Provider order is preserved and inputs are never mutated. Overlaid
    values replace the episode's own, so combining an already combined
    result with the same metadata yields the same result.
    """
    if not metadata:
        return list(provider_sets)

    metadata_by_number = {}
    for entry in metadata:
        metadata_by_number.setdefault(entry.number, entry)

    return [
        provider_set.model_copy(
            update={
                "tracks": EpisodeTracks(
                    sub=_overlay_track(provider_set.tracks.sub, metadata_by_number),
                    dub=_overlay_track(provider_set.tracks.dub, metadata_by_number),
                )
            }
        )
        for provider_set in provider_sets
    ]
