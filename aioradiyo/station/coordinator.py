"""Owns the single now-playing state and the queue that follows it."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress
from typing import Any, TypeVar

from aioradiyo.models.core import PlaybackRecord, PlaybackRecordPatch, Playlist, Song
from aioradiyo.models.queue import NowPlayingState, QueueItem
from aioradiyo.models.result import Result
from aioradiyo.models.types import Operation, SkipDirection
from aioradiyo.store.base import PlaybackRecordStore, PlaylistLookup
from aioradiyo.util import now_ms as wall_clock_ms

from .events import (
    ErrorEvent,
    NowPlayingChangedEvent,
    QueueChangedEvent,
    RemoteRecordEvent,
    StationEvent,
)
from .queue import QueueEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NowPlayingCoordinator:
    """
    Single source of truth for what is playing now.

    Commands write to the store first and then update the local state
    optimistically. A failed write is reported on the error channel but the
    local state is not rolled back; the next record delivered by the store
    subscription (see handle_remote_record) reconciles the two views.

    Commands never raise on store failures, they return a Result instead.
    """

    _store: PlaybackRecordStore
    """Remote playback record."""
    _queue: QueueEngine
    """Queue of upcoming items."""
    _now_playing: NowPlayingState
    """Local view, either optimistic intent or confirmed by the store."""
    _confirmed_record: PlaybackRecord | None
    """Latest record delivered by the store subscription."""
    _error: Exception | None
    """Latest store failure, None until one happens."""
    _event_cbs: list[Callable[[NowPlayingCoordinator, StationEvent], None]]
    """List of event callbacks for this coordinator."""

    def __init__(
        self,
        store: PlaybackRecordStore,
        lookup: PlaylistLookup,
        *,
        now_ms: Callable[[], int] = wall_clock_ms,
    ) -> None:
        """
        Create an idle coordinator with an empty queue.

        Args:
            store: Backend holding the playback record.
            lookup: Backend returning playlist contents.
            now_ms: Clock used for local timestamps, epoch milliseconds.
        """
        self._store = store
        self._queue = QueueEngine(lookup, on_change=self._on_queue_changed)
        self._now_ms = now_ms
        self._now_playing = NowPlayingState()
        self._confirmed_record = None
        self._error = None
        self._event_cbs = []

    @property
    def queue(self) -> tuple[QueueItem, ...]:
        """Upcoming items, head first."""
        return self._queue.items

    @property
    def now_playing(self) -> NowPlayingState:
        """Current local now-playing state."""
        return self._now_playing

    @property
    def confirmed_record(self) -> PlaybackRecord | None:
        """Latest record delivered by the store subscription."""
        return self._confirmed_record

    @property
    def error(self) -> Exception | None:
        """Latest store failure, for optional display."""
        return self._error

    def position_ms(self) -> int:
        """Played position of the current song in milliseconds."""
        return self._now_playing.position_ms(self._now_ms())

    # Queue commands

    def add_to_queue_bottom(
        self,
        song: Song,
        playlist: Playlist,
        is_from_request: bool = False,  # noqa: FBT001, FBT002
        request_id: str | None = None,
    ) -> QueueItem:
        """Append a song to the queue."""
        return self._queue.add_to_bottom(
            song, playlist, is_from_request=is_from_request, request_id=request_id
        )

    def add_to_queue_top(
        self,
        song: Song,
        playlist: Playlist,
        is_from_request: bool = True,  # noqa: FBT001, FBT002
        request_id: str | None = None,
    ) -> QueueItem:
        """Insert a song at the head of the queue."""
        return self._queue.add_to_top(
            song, playlist, is_from_request=is_from_request, request_id=request_id
        )

    def remove_from_queue(self, index: int) -> QueueItem | None:
        """Remove the item at `index`, ignoring out-of-range indexes."""
        return self._queue.remove(index)

    def clear_queue(self) -> None:
        """Empty the queue and reset the local state to idle."""
        self._queue.clear()
        self._set_now_playing(NowPlayingState())

    # Playback commands

    async def play_song_now(
        self, song: Song, playlist: Playlist, moderator_id: str | None = None
    ) -> Result[None]:
        """Start `song` immediately and resync playlist continuation."""
        logger.debug("Playing song now: %s", song.title)
        result = await self.call_store(
            Operation.PLAY, self._store.write_playback_record, song, playlist, moderator_id
        )
        self._set_now_playing(NowPlayingState.playing(song, playlist, self._now_ms()))

        populated = await self._queue.populate_from_playlist(song, playlist)
        if populated.error is not None:
            self.report_error(Operation.POPULATE, populated.error)
            if result.ok:
                return Result.failure(populated.error)
        return result

    async def play_next(self, moderator_id: str | None = None) -> Result[QueueItem]:
        """
        Play the head of the queue.

        Does nothing, and writes nothing, if the queue is empty. The playlist
        continuation is not resynced: the head item is simply consumed.
        """
        item = self._queue.pop_head()
        if item is None:
            logger.debug("Queue is empty, nothing to play next")
            return Result.success(None)

        logger.debug("Playing next: %s", item.song.title)
        result = await self.call_store(
            Operation.PLAY_NEXT,
            self._store.write_playback_record,
            item.song,
            item.playlist,
            moderator_id,
        )
        self._set_now_playing(NowPlayingState.playing(item.song, item.playlist, self._now_ms()))
        return Result(value=item, error=result.error)

    async def pause_playing(self) -> Result[None]:
        """Pause playback; repeated calls are tolerated."""
        now = self._now_ms()
        result = await self.call_store(
            Operation.PAUSE, self._store.patch_playback_record, PlaybackRecordPatch.pause(now)
        )
        if self._now_playing.song is not None:
            self._set_now_playing(self._now_playing.with_playing(False, now))  # noqa: FBT003
        return result

    async def resume_playing(self) -> Result[None]:
        """
        Resume playback; repeated calls are tolerated.

        The store shifts the record's start time by the pause duration, the
        local state only flips its play flag until the shifted record arrives.
        """
        result = await self.call_store(
            Operation.RESUME, self._store.patch_playback_record, PlaybackRecordPatch.resume()
        )
        if self._now_playing.song is not None:
            self._set_now_playing(self._now_playing.with_playing(True, self._now_ms()))  # noqa: FBT003
        return result

    async def skip_next(self) -> Result[None]:
        """Ask the store to move to the next song of the current playlist."""
        return await self.call_store(
            Operation.SKIP_NEXT, self._store.skip_playback_record, SkipDirection.NEXT
        )

    async def skip_previous(self) -> Result[None]:
        """Ask the store to move to the previous song of the current playlist."""
        return await self.call_store(
            Operation.SKIP_PREVIOUS, self._store.skip_playback_record, SkipDirection.PREVIOUS
        )

    async def clear_now_playing(self) -> Result[None]:
        """Delete the remote record and reset the queue and local state."""
        result = await self.call_store(Operation.CLEAR, self._store.delete_playback_record)
        self.clear_queue()
        logger.debug("Cleared now playing")
        return result

    # Store reconciliation

    def handle_remote_record(self, record: PlaybackRecord | None) -> None:
        """Adopt a record delivered by the store subscription as the confirmed state."""
        logger.debug(
            "Received now playing record: %s", record.song.title if record is not None else None
        )
        self._confirmed_record = record
        self._signal_event(RemoteRecordEvent(record))
        self._set_now_playing(NowPlayingState.from_record(record))

    async def call_store(
        self,
        operation: Operation,
        func: Callable[..., Awaitable[T]],
        *args: Any,
    ) -> Result[T]:
        """Await a store call, turning a failure into a reported Result."""
        try:
            value = await func(*args)
        except Exception as err:  # noqa: BLE001
            self.report_error(operation, err)
            return Result.failure(err)
        return Result.success(value)

    def report_error(self, operation: Operation, error: Exception) -> None:
        """Record a recovered failure and publish it on the error channel."""
        logger.warning("%s failed: %s", operation.value, error)
        self._error = error
        self._signal_event(ErrorEvent(operation, error))

    # Events

    def add_event_listener(
        self, callback: Callable[[NowPlayingCoordinator, StationEvent], None]
    ) -> Callable[[], None]:
        """
        Register a callback for queue, now-playing, record and error events.

        Returns a function to remove the listener.
        """
        self._event_cbs.append(callback)

        def _remove() -> None:
            with suppress(ValueError):
                self._event_cbs.remove(callback)

        return _remove

    def _signal_event(self, event: StationEvent) -> None:
        for cb in self._event_cbs:
            try:
                cb(self, event)
            except Exception:
                logger.exception("Error in event listener")

    def _set_now_playing(self, state: NowPlayingState) -> None:
        if state == self._now_playing:
            return
        self._now_playing = state
        self._signal_event(NowPlayingChangedEvent(state))

    def _on_queue_changed(self, items: tuple[QueueItem, ...]) -> None:
        self._signal_event(QueueChangedEvent(items))
