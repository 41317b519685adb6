"""Abstract interfaces of the collaborators the coordinator depends on."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from aioradiyo.models.core import PlaybackRecord, PlaybackRecordPatch, Playlist, Song
from aioradiyo.models.request import PendingRequest
from aioradiyo.models.types import RequestStatus, SkipDirection


class StoreError(Exception):
    """A store or transport failure while reading or writing remote state."""


class PlaybackRecordStore(ABC):
    """Durable singleton now-playing record."""

    @abstractmethod
    def subscribe_playback_record(self) -> AsyncIterator[PlaybackRecord | None]:
        """
        Stream the record, starting with its current value.

        A new value is emitted whenever the record changes; None means no
        record exists.
        """

    @abstractmethod
    async def write_playback_record(
        self, song: Song, playlist: Playlist, moderator_id: str | None = None
    ) -> None:
        """Upsert the record; exactly one record exists afterwards."""

    @abstractmethod
    async def patch_playback_record(self, patch: PlaybackRecordPatch) -> None:
        """Partially update the record, no-op if there is none."""

    @abstractmethod
    async def skip_playback_record(self, direction: SkipDirection) -> None:
        """Move the record to the next or previous song of its playlist."""

    @abstractmethod
    async def delete_playback_record(self) -> None:
        """Delete the record if it exists."""


class PlaylistLookup(ABC):
    """Point-in-time access to playlist contents."""

    @abstractmethod
    async def lookup_playlist_songs(self, playlist_id: str) -> list[Song]:
        """Return the ordered songs of a playlist."""


class RequestStatusSink(ABC):
    """Persistence of moderator decisions on listener requests."""

    @abstractmethod
    async def submit_request_status_change(
        self, request_id: str, status: RequestStatus
    ) -> None:
        """Persist an approve or reject decision."""

    @abstractmethod
    async def list_pending_requests(self) -> list[PendingRequest]:
        """Return requests awaiting moderation, newest first."""
