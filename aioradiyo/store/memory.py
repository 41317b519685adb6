"""In-process backend with the same semantics as the hosted store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterable, Mapping
from dataclasses import replace

from aioradiyo.models.core import (
    Moderator,
    PlaybackRecord,
    PlaybackRecordPatch,
    Playlist,
    Song,
)
from aioradiyo.models.request import PendingRequest, RequestStatusChange, SongRequest
from aioradiyo.models.types import RequestStatus, SkipDirection, UndefinedField
from aioradiyo.util import now_ms as wall_clock_ms

from .base import PlaybackRecordStore, PlaylistLookup, RequestStatusSink, StoreError

logger = logging.getLogger(__name__)


class MemoryBackend(PlaybackRecordStore, PlaylistLookup, RequestStatusSink):
    """
    Keeps the playback record, playlists and requests in memory.

    The record lives in a single slot, so the singleton invariant holds by
    construction. Subscribers receive every change in write order.
    """

    _record: PlaybackRecord | None
    """The singleton playback record, None when cleared."""
    _playlists: dict[str, list[Song]]
    """Ordered songs keyed by playlist id."""
    _moderators: dict[str, Moderator]
    """Known moderators used to resolve moderator ids on write."""
    _requests: dict[str, SongRequest]
    """Listener requests keyed by request id, in submission order."""
    _user_names: dict[str, str]
    """Display names of requesting users."""
    _subscribers: list[asyncio.Queue[PlaybackRecord | None]]
    """One queue per active subscription."""
    _available: bool
    """When False every call fails with StoreError."""

    def __init__(
        self,
        *,
        playlists: Mapping[str, Iterable[Song]] | None = None,
        moderators: Iterable[Moderator] = (),
        now_ms: Callable[[], int] = wall_clock_ms,
    ) -> None:
        """
        Create an empty backend.

        Args:
            playlists: Initial playlist contents keyed by playlist id.
            moderators: Moderators that may appear on the record.
            now_ms: Clock used for every timestamp the store writes.
        """
        self._record = None
        self._playlists = {pid: list(songs) for pid, songs in (playlists or {}).items()}
        self._moderators = {m.moderator_id: m for m in moderators}
        self._requests = {}
        self._user_names = {}
        self._subscribers = []
        self._available = True
        self._now_ms = now_ms
        self.mutation_count = 0
        """Number of successful record mutations, for inspection."""

    @property
    def record(self) -> PlaybackRecord | None:
        """Current playback record."""
        return self._record

    def set_available(self, available: bool) -> None:  # noqa: FBT001
        """Simulate the store going offline or coming back."""
        self._available = available

    def set_playlist_songs(self, playlist_id: str, songs: Iterable[Song]) -> None:
        """Replace the contents of a playlist."""
        self._playlists[playlist_id] = list(songs)

    def add_request(self, request: SongRequest, user_name: str = "Unknown") -> None:
        """Store a listener request."""
        self._requests[request.request_id] = request
        self._user_names[request.user_id] = user_name

    def get_request(self, request_id: str) -> SongRequest | None:
        """Return a stored request by id."""
        return self._requests.get(request_id)

    # PlaybackRecordStore

    async def subscribe_playback_record(self) -> AsyncIterator[PlaybackRecord | None]:
        """Stream the current record followed by every change."""
        self._check_available()
        queue: asyncio.Queue[PlaybackRecord | None] = asyncio.Queue()
        self._subscribers.append(queue)
        try:
            yield self._record
            while True:
                yield await queue.get()
        finally:
            self._subscribers.remove(queue)

    async def write_playback_record(
        self, song: Song, playlist: Playlist, moderator_id: str | None = None
    ) -> None:
        """Overwrite the record in place, creating it on first write."""
        self._check_available()
        moderator = None
        if moderator_id is not None:
            moderator = self._moderators.get(moderator_id) or Moderator(moderator_id, "Unknown")
        self._record = PlaybackRecord(
            song=song,
            playlist=playlist,
            started_at=self._now_ms(),
            is_playing=True,
            paused_at=None,
            moderator=moderator,
        )
        self._changed()

    async def patch_playback_record(self, patch: PlaybackRecordPatch) -> None:
        """Apply a partial update, shifting started_at on resume."""
        self._check_available()
        record = self._record
        if record is None:
            return
        now = self._now_ms()
        changes: dict[str, object] = {}

        if not isinstance(patch.is_playing, UndefinedField):
            changes["is_playing"] = patch.is_playing
        if not isinstance(patch.paused_at, UndefinedField):
            changes["paused_at"] = patch.paused_at
        if not isinstance(patch.started_at, UndefinedField):
            changes["started_at"] = patch.started_at

        if patch.is_playing is False and not record.is_playing and record.paused_at is not None:
            # Already paused: the original pause point stays authoritative
            changes.pop("paused_at", None)
        elif patch.is_playing is True and isinstance(patch.started_at, UndefinedField):
            paused_at = record.paused_at if record.paused_at is not None else now
            changes["started_at"] = record.started_at + (now - paused_at)

        self._record = replace(record, **changes)
        self._changed()

    async def skip_playback_record(self, direction: SkipDirection) -> None:
        """Move to the neighbouring song of the record's playlist, wrapping around."""
        self._check_available()
        record = self._record
        if record is None or record.playlist is None:
            return
        songs = self._playlists.get(record.playlist.playlist_id, [])
        if not songs:
            return
        current_index = next(
            (i for i, s in enumerate(songs) if s.song_id == record.song.song_id), -1
        )
        if direction == SkipDirection.NEXT:
            target_index = (current_index + 1) % len(songs)
        else:
            target_index = len(songs) - 1 if current_index <= 0 else current_index - 1
        now = self._now_ms()
        self._record = replace(
            record,
            song=songs[target_index],
            started_at=now,
            paused_at=None if record.is_playing else now,
        )
        self._changed()

    async def delete_playback_record(self) -> None:
        """Remove the record if present."""
        self._check_available()
        if self._record is None:
            return
        self._record = None
        self._changed()

    # PlaylistLookup

    async def lookup_playlist_songs(self, playlist_id: str) -> list[Song]:
        """Return a copy of the playlist's ordered songs."""
        self._check_available()
        return list(self._playlists.get(playlist_id, []))

    # RequestStatusSink

    async def submit_request_status_change(
        self, request_id: str, status: RequestStatus
    ) -> None:
        """Record the decision and its processing time."""
        self._check_available()
        change = RequestStatusChange(request_id=request_id, status=status)
        request = self._requests.get(change.request_id)
        if request is None:
            raise StoreError(f"Request {request_id} not found")
        self._requests[request_id] = replace(
            request, status=change.status, processed_at=self._now_ms()
        )
        logger.debug("Request %s is now %s", request_id, status.value)

    async def list_pending_requests(self) -> list[PendingRequest]:
        """Return pending requests, newest first."""
        self._check_available()
        return [
            PendingRequest(
                request_id=request.request_id,
                user_id=request.user_id,
                song_title=request.song_title,
                user_name=self._user_names.get(request.user_id, "Unknown"),
                artist_name=request.artist_name,
            )
            for request in reversed(self._requests.values())
            if request.status == RequestStatus.PENDING
        ]

    def _check_available(self) -> None:
        if not self._available:
            raise StoreError("Store is unavailable")

    def _changed(self) -> None:
        self.mutation_count += 1
        for queue in self._subscribers:
            queue.put_nowait(self._record)
