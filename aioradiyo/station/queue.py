"""Ordered queue of songs scheduled after the current one."""

from __future__ import annotations

import logging
from collections.abc import Callable

from aioradiyo.models.core import Playlist, Song
from aioradiyo.models.queue import QueueItem
from aioradiyo.models.result import Result
from aioradiyo.store.base import PlaylistLookup

logger = logging.getLogger(__name__)

# Callback invoked with the new queue after every mutation.
QueueChangedCallback = Callable[[tuple[QueueItem, ...]], None]


class QueueEngine:
    """
    Merges playlist continuation with injected listener requests.

    The queue is an immutable tuple that is replaced on every mutation, so an
    untouched queue keeps its identity. All mutations run on the event loop
    and never interleave, no locking is needed.
    """

    _items: tuple[QueueItem, ...]
    """Current queue, head first."""
    _lookup: PlaylistLookup
    """Source of playlist contents for continuation."""
    _on_change: QueueChangedCallback | None
    """Notified after every mutation."""

    def __init__(
        self, lookup: PlaylistLookup, *, on_change: QueueChangedCallback | None = None
    ) -> None:
        """Create an empty queue backed by `lookup`."""
        self._items = ()
        self._lookup = lookup
        self._on_change = on_change

    @property
    def items(self) -> tuple[QueueItem, ...]:
        """Current queue, head first."""
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def add_to_bottom(
        self,
        song: Song,
        playlist: Playlist,
        *,
        is_from_request: bool = False,
        request_id: str | None = None,
    ) -> QueueItem:
        """Append a song to the end of the queue."""
        logger.debug("Adding to queue bottom: %s", song.title)
        item = QueueItem(song, playlist, is_from_request, request_id)
        self._set_items((*self._items, item))
        return item

    def add_to_top(
        self,
        song: Song,
        playlist: Playlist,
        *,
        is_from_request: bool = True,
        request_id: str | None = None,
    ) -> QueueItem:
        """Insert a song ahead of everything already queued."""
        logger.debug("Adding to queue top: %s", song.title)
        item = QueueItem(song, playlist, is_from_request, request_id)
        self._set_items((item, *self._items))
        return item

    def remove(self, index: int) -> QueueItem | None:
        """
        Remove the item at `index`.

        Out-of-range indexes are ignored: the index shown by a UI may be stale
        by the time the call arrives.
        """
        if not 0 <= index < len(self._items):
            logger.debug("Ignoring removal of index %d from queue of %d", index, len(self._items))
            return None
        logger.debug("Removing from queue at index: %d", index)
        item = self._items[index]
        self._set_items(self._items[:index] + self._items[index + 1 :])
        return item

    def pop_head(self) -> QueueItem | None:
        """Dequeue the head item, None if the queue is empty."""
        if not self._items:
            return None
        head = self._items[0]
        self._set_items(self._items[1:])
        return head

    def clear(self) -> None:
        """Empty the queue."""
        if self._items:
            self._set_items(())

    async def populate_from_playlist(self, current_song: Song, playlist: Playlist) -> Result[bool]:
        """
        Resync playlist continuation after `current_song` started.

        Pending request items are kept at the head, followed by the playlist
        songs after `current_song`. The queue is left untouched if the lookup
        fails or `current_song` is not part of the playlist.

        Returns:
            A result whose value tells whether the queue was replaced.
        """
        try:
            songs = await self._lookup.lookup_playlist_songs(playlist.playlist_id)
        except Exception as err:  # noqa: BLE001
            logger.warning("Failed to fetch songs of playlist %s: %s", playlist.playlist_id, err)
            return Result.failure(err)

        current_index = next(
            (i for i, song in enumerate(songs) if song.song_id == current_song.song_id), -1
        )
        if current_index < 0:
            logger.debug(
                "Song %s not found in playlist %s, keeping queue",
                current_song.song_id,
                playlist.playlist_id,
            )
            return Result.success(False)

        # Read the queue after the lookup so requests added meanwhile survive
        request_items = tuple(item for item in self._items if item.is_from_request)
        continuation = tuple(QueueItem(song, playlist) for song in songs[current_index + 1 :])
        self._set_items(request_items + continuation)
        logger.debug(
            "Populated queue with %d songs from playlist, keeping %d request items",
            len(continuation),
            len(request_items),
        )
        return Result.success(True)

    def _set_items(self, items: tuple[QueueItem, ...]) -> None:
        self._items = items
        if self._on_change is not None:
            self._on_change(items)
