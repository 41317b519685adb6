"""
Listener request models.

Requests are created by listeners and processed by moderators; the core only
reads pending requests and persists approve/reject decisions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from mashumaro.config import BaseConfig
from mashumaro.mixins.orjson import DataClassORJSONMixin
from mashumaro.types import Alias

from .core import Song
from .types import RequestStatus

MODERATOR_DECISIONS = frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED})


@dataclass(frozen=True)
class SongRequest(DataClassORJSONMixin):
    """A listener-submitted song suggestion."""

    request_id: Annotated[str, Alias("_id")]
    user_id: Annotated[str, Alias("userId")]
    song_title: Annotated[str, Alias("songTitle")]
    status: RequestStatus
    artist_name: Annotated[str | None, Alias("artistName")] = None
    processed_at: Annotated[int | None, Alias("processedAt")] = None

    class Config(BaseConfig):
        """Config for parsing json records."""

        serialize_by_alias = True
        omit_none = True


@dataclass(frozen=True)
class PendingRequest(DataClassORJSONMixin):
    """A request awaiting moderation, joined with the requesting user's name."""

    request_id: Annotated[str, Alias("_id")]
    user_id: Annotated[str, Alias("userId")]
    song_title: Annotated[str, Alias("songTitle")]
    user_name: Annotated[str, Alias("userName")] = "Unknown"
    artist_name: Annotated[str | None, Alias("artistName")] = None
    created_at: Annotated[float, Alias("_creationTime")] = 0.0

    def matches(self, song: Song) -> bool:
        """Return True if `song` satisfies this request (case-insensitive)."""
        if song.title.casefold() != self.song_title.casefold():
            return False
        if self.artist_name is None:
            return True
        return song.artist.casefold() == self.artist_name.casefold()

    class Config(BaseConfig):
        """Config for parsing json records."""

        serialize_by_alias = True
        omit_none = True


@dataclass(frozen=True)
class RequestStatusChange(DataClassORJSONMixin):
    """A moderator decision on a pending request."""

    request_id: Annotated[str, Alias("requestId")]
    status: RequestStatus

    def __post_init__(self) -> None:
        """Validate that the status is a moderator decision."""
        if self.status not in MODERATOR_DECISIONS:
            raise ValueError(
                f"Status must be 'approved' or 'rejected', got '{self.status.value}'"
            )

    class Config(BaseConfig):
        """Config for parsing json records."""

        serialize_by_alias = True
