"""
Core data models shared by the queue engine, the coordinator and the stores.

Field names follow Python conventions; the wire names used by the hosted
backend are attached as aliases so records can be parsed straight from its
JSON responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated

from mashumaro.config import BaseConfig
from mashumaro.mixins.orjson import DataClassORJSONMixin
from mashumaro.types import Alias

from .types import UndefinedField, UserRole, undefined_field


@dataclass(frozen=True)
class Song(DataClassORJSONMixin):
    """A song as returned by the playlist lookup or the playback record."""

    song_id: Annotated[str, Alias("_id")]
    """Backend identifier of the song."""
    title: str
    artist: str
    album: str
    duration_ms: Annotated[int, Alias("durationMs")] = 0
    """Duration in milliseconds, 0 when unknown."""

    def __post_init__(self) -> None:
        """Validate field values."""
        if not self.song_id:
            raise ValueError("song_id must not be empty")
        if self.duration_ms < 0:
            raise ValueError(f"duration_ms must be >= 0, got {self.duration_ms}")

    class Config(BaseConfig):
        """Config for parsing json records."""

        serialize_by_alias = True


@dataclass(frozen=True)
class Playlist(DataClassORJSONMixin):
    """Reference to a moderator-curated playlist."""

    playlist_id: Annotated[str, Alias("_id")]
    name: str
    description: str | None = None

    def __post_init__(self) -> None:
        """Validate field values."""
        if not self.playlist_id:
            raise ValueError("playlist_id must not be empty")

    class Config(BaseConfig):
        """Config for parsing json records."""

        serialize_by_alias = True
        omit_none = True


@dataclass(frozen=True)
class Moderator(DataClassORJSONMixin):
    """Moderator attached to the playback record."""

    moderator_id: Annotated[str, Alias("_id")]
    name: str

    class Config(BaseConfig):
        """Config for parsing json records."""

        serialize_by_alias = True


@dataclass(frozen=True)
class User(DataClassORJSONMixin):
    """Identity of the authenticated user, supplied by the auth provider."""

    user_id: Annotated[str, Alias("_id")]
    name: str
    role: UserRole = UserRole.LISTENER
    email: str | None = None

    @property
    def is_moderator(self) -> bool:
        """Return True if this user may drive playback."""
        return self.role == UserRole.MODERATOR

    class Config(BaseConfig):
        """Config for parsing json records."""

        serialize_by_alias = True
        omit_none = True


@dataclass(frozen=True)
class PlaybackRecord(DataClassORJSONMixin):
    """
    Durable now-playing record kept by the store.

    At most one record exists per deployment.
    """

    song: Song
    playlist: Playlist | None
    started_at: Annotated[int, Alias("startedAt")]
    """Epoch milliseconds when playback (re)started, shifted forward on resume."""
    is_playing: Annotated[bool, Alias("isPlaying")] = True
    paused_at: Annotated[int | None, Alias("pausedAt")] = None
    """Epoch milliseconds when playback was paused, only set while paused."""
    moderator: Moderator | None = None

    def position_ms(self, now_ms: int) -> int:
        """Return the played position at `now_ms`, excluding paused time."""
        return playback_position_ms(
            started_at=self.started_at,
            paused_at=None if self.is_playing else self.paused_at,
            now_ms=now_ms,
            duration_ms=self.song.duration_ms,
        )

    class Config(BaseConfig):
        """Config for parsing json records."""

        serialize_by_alias = True
        omit_none = True


@dataclass(frozen=True)
class PlaybackRecordPatch:
    """
    Partial update of the playback record.

    Fields left as UndefinedField are not touched. Resuming (is_playing=True)
    lets the store shift started_at by the pause duration unless started_at
    is given explicitly.
    """

    is_playing: bool | UndefinedField = field(default_factory=undefined_field)
    paused_at: int | None | UndefinedField = field(default_factory=undefined_field)
    started_at: int | UndefinedField = field(default_factory=undefined_field)

    @classmethod
    def pause(cls, now_ms: int) -> PlaybackRecordPatch:
        """Build the patch issued when playback is paused."""
        return cls(is_playing=False, paused_at=now_ms)

    @classmethod
    def resume(cls) -> PlaybackRecordPatch:
        """Build the patch issued when playback is resumed."""
        return cls(is_playing=True, paused_at=None)


def playback_position_ms(
    *,
    started_at: int,
    paused_at: int | None,
    now_ms: int,
    duration_ms: int,
) -> int:
    """
    Calculate the played position in milliseconds.

    While paused the position is frozen at `paused_at`. The result is clamped
    to [0, duration_ms]; a duration of 0 means unknown, only clamp to >= 0.
    """
    reference = paused_at if paused_at is not None else now_ms
    position = reference - started_at
    if duration_ms > 0:
        return max(0, min(position, duration_ms))
    return max(0, position)
