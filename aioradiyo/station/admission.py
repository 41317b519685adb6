"""Decides where an approved listener request enters the play sequence."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from aioradiyo.models.core import Playlist, Song
from aioradiyo.models.queue import QueueItem
from aioradiyo.models.request import PendingRequest
from aioradiyo.models.result import Result
from aioradiyo.models.types import Operation, RequestStatus
from aioradiyo.store.base import PlaylistLookup, RequestStatusSink

if TYPE_CHECKING:
    from .coordinator import NowPlayingCoordinator

logger = logging.getLogger(__name__)


class RequestAdmissionPolicy:
    """
    Routes approved requests into playback.

    A request plays right away when nothing is on air. Otherwise it goes to the
    head of the queue, after the current song but ahead of playlist
    continuation.
    """

    def __init__(
        self,
        coordinator: NowPlayingCoordinator,
        lookup: PlaylistLookup,
        requests: RequestStatusSink,
    ) -> None:
        """Attach to the coordinator that owns the queue."""
        self._coordinator = coordinator
        self._lookup = lookup
        self._requests = requests

    async def play_or_queue_request(
        self,
        song: Song,
        playlist: Playlist,
        request_id: str,
        moderator_id: str | None = None,
    ) -> Result[QueueItem]:
        """
        Play `song` now if idle, else queue it at the top.

        Returns:
            A result holding the queued item, or no value if the song started
            playing immediately.
        """
        if self._coordinator.now_playing.song is None:
            logger.debug("No song playing, playing request immediately: %s", song.title)
            result = await self._coordinator.play_song_now(song, playlist, moderator_id)
            return Result(error=result.error)

        logger.debug("Song playing, adding request to top of queue: %s", song.title)
        item = self._coordinator.add_to_queue_top(
            song, playlist, is_from_request=True, request_id=request_id
        )
        return Result.success(item)

    async def approve_request(
        self, request: PendingRequest, moderator_id: str | None = None
    ) -> Result[Song]:
        """
        Approve a request and schedule the matching song of the current playlist.

        The song is looked up by title, and by artist when the request names
        one, both case-insensitively. Without a current playlist or a match the
        request is only marked approved.

        Returns:
            A result holding the scheduled song, if one matched.
        """
        approved = await self._coordinator.call_store(
            Operation.APPROVE,
            self._requests.submit_request_status_change,
            request.request_id,
            RequestStatus.APPROVED,
        )

        playlist = self._coordinator.now_playing.playlist
        if playlist is None:
            logger.debug("No current playlist, request %s approved only", request.request_id)
            return Result(error=approved.error)

        songs = await self._coordinator.call_store(
            Operation.LOOKUP, self._lookup.lookup_playlist_songs, playlist.playlist_id
        )
        if songs.error is not None:
            return Result(error=approved.error or songs.error)

        song = next((s for s in songs.value or [] if request.matches(s)), None)
        if song is None:
            logger.info(
                "No song matching '%s' in playlist %s",
                request.song_title,
                playlist.playlist_id,
            )
            return Result(error=approved.error)

        scheduled = await self.play_or_queue_request(
            song, playlist, request.request_id, moderator_id
        )
        return Result(value=song, error=approved.error or scheduled.error)

    async def reject_request(self, request_id: str) -> Result[None]:
        """Mark a request as rejected."""
        return await self._coordinator.call_store(
            Operation.REJECT,
            self._requests.submit_request_status_change,
            request_id,
            RequestStatus.REJECTED,
        )

    async def list_pending_requests(self) -> Result[list[PendingRequest]]:
        """Fetch the requests awaiting moderation."""
        return await self._coordinator.call_store(
            Operation.LIST_REQUESTS, self._requests.list_pending_requests
        )
