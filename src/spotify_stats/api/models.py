"""Models for Spotify's "currently playing" payload.

https://developer.spotify.com/documentation/web-api/reference/get-the-users-currently-playing-track
Only the fields needed for listening statistics are modeled; everything else
in the payload is ignored.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError


class SpotifyModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Artist(SpotifyModel):
    id: str
    name: str


class Album(SpotifyModel):
    id: str
    name: str
    album_type: str
    total_tracks: int
    release_date: str
    artists: list[Artist] = []


class ExternalIds(SpotifyModel):
    isrc: str | None = None
    ean: str | None = None
    upc: str | None = None


class Track(SpotifyModel):
    id: str
    name: str
    album: Album
    artists: list[Artist]
    disc_number: int
    duration_ms: int
    explicit: bool
    external_ids: ExternalIds = ExternalIds()


class CurrentlyPlaying(SpotifyModel):
    """What the user is playing right now.

    The item is kept loosely typed because it can also be a podcast episode;
    use ``track`` to get it as a Track when it is one.
    """

    timestamp: int
    progress_ms: int | None = None
    currently_playing_type: str
    is_playing: bool
    item: dict[str, Any] | None = None

    @property
    def track(self) -> Track | None:
        if self.item is None or self.currently_playing_type != "track":
            return None
        try:
            return Track.model_validate(self.item)
        except ValidationError:
            return None
