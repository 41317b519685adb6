"""Moderator session wiring the coordinator to its backends."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from types import TracebackType

from mashumaro.mixins.orjson import DataClassORJSONMixin

from aioradiyo.models.core import Playlist, Song, User
from aioradiyo.models.queue import QueueItem
from aioradiyo.models.request import PendingRequest
from aioradiyo.models.result import Result
from aioradiyo.models.types import Operation
from aioradiyo.store.base import PlaybackRecordStore, PlaylistLookup, RequestStatusSink
from aioradiyo.util import now_ms as wall_clock_ms

from .admission import RequestAdmissionPolicy
from .coordinator import NowPlayingCoordinator

logger = logging.getLogger(__name__)

DEFAULT_RESUBSCRIBE_DELAY_S = 5.0
"""Seconds to wait before resubscribing after the record stream failed."""


@dataclass
class SessionConfig(DataClassORJSONMixin):
    """Settings of a moderator session."""

    reset_on_start: bool = True
    """Clear the remote record and the local queue when the session starts."""
    resubscribe_delay_s: float = DEFAULT_RESUBSCRIBE_DELAY_S
    """Delay before the record subscription is restarted after a failure."""

    def __post_init__(self) -> None:
        """Validate field values."""
        if self.resubscribe_delay_s <= 0:
            raise ValueError(
                f"resubscribe_delay_s must be positive, got {self.resubscribe_delay_s}"
            )


class ModeratorSession:
    """
    A moderator's live control session.

    Owns the coordinator, the admission policy and the background task that
    follows the remote playback record. Commands are attributed to the
    session's moderator. Use as an async context manager, or call start() and
    close() explicitly.
    """

    _user: User
    """The moderator driving this session."""
    _store: PlaybackRecordStore
    """Remote playback record."""
    _subscription_task: asyncio.Task[None] | None = None
    """Task following the remote record, None when not started."""

    def __init__(
        self,
        user: User,
        store: PlaybackRecordStore,
        lookup: PlaylistLookup,
        requests: RequestStatusSink,
        *,
        config: SessionConfig | None = None,
        now_ms: Callable[[], int] = wall_clock_ms,
    ) -> None:
        """
        Create a session for a moderator.

        Raises:
            ValueError: If `user` is not a moderator.
        """
        if not user.is_moderator:
            raise ValueError(f"User {user.user_id} is not a moderator")
        self._user = user
        self._store = store
        self._config = config or SessionConfig()
        self._logger = logger.getChild(user.user_id)
        self.coordinator = NowPlayingCoordinator(store, lookup, now_ms=now_ms)
        self.admission = RequestAdmissionPolicy(self.coordinator, lookup, requests)

    @property
    def user(self) -> User:
        """The moderator driving this session."""
        return self._user

    @property
    def running(self) -> bool:
        """Return True while the record subscription is active."""
        return self._subscription_task is not None and not self._subscription_task.done()

    async def start(self) -> None:
        """Reset state if configured and start following the remote record."""
        if self.running:
            self._logger.debug("Session already started")
            return
        if self._config.reset_on_start:
            await self.coordinator.clear_now_playing()
        self._subscription_task = asyncio.get_running_loop().create_task(
            self._follow_playback_record()
        )
        self._logger.info("Moderator session started")

    async def close(self) -> None:
        """Stop following the remote record."""
        if self._subscription_task is not None:
            self._subscription_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._subscription_task
            self._subscription_task = None
            self._logger.info("Moderator session closed")

    async def __aenter__(self) -> ModeratorSession:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def _follow_playback_record(self) -> None:
        while True:
            try:
                async for record in self._store.subscribe_playback_record():
                    self.coordinator.handle_remote_record(record)
                self._logger.debug("Playback record stream ended, resubscribing")
            except Exception as err:  # noqa: BLE001
                self.coordinator.report_error(Operation.SUBSCRIBE, err)
            await asyncio.sleep(self._config.resubscribe_delay_s)

    # Commands attributed to the session's moderator

    async def play_song_now(self, song: Song, playlist: Playlist) -> Result[None]:
        """Start `song` immediately."""
        return await self.coordinator.play_song_now(song, playlist, self._user.user_id)

    async def play_next(self) -> Result[QueueItem]:
        """Play the head of the queue."""
        return await self.coordinator.play_next(self._user.user_id)

    async def pause(self) -> Result[None]:
        """Pause playback."""
        return await self.coordinator.pause_playing()

    async def resume(self) -> Result[None]:
        """Resume playback."""
        return await self.coordinator.resume_playing()

    async def skip_next(self) -> Result[None]:
        """Skip to the next song of the current playlist."""
        return await self.coordinator.skip_next()

    async def skip_previous(self) -> Result[None]:
        """Skip to the previous song of the current playlist."""
        return await self.coordinator.skip_previous()

    async def clear_now_playing(self) -> Result[None]:
        """Delete the remote record and reset the queue."""
        return await self.coordinator.clear_now_playing()

    async def play_or_queue_request(
        self, song: Song, playlist: Playlist, request_id: str
    ) -> Result[QueueItem]:
        """Play a requested song now if idle, else queue it at the top."""
        return await self.admission.play_or_queue_request(
            song, playlist, request_id, self._user.user_id
        )

    async def approve_request(self, request: PendingRequest) -> Result[Song]:
        """Approve a request and schedule its song."""
        return await self.admission.approve_request(request, self._user.user_id)

    async def reject_request(self, request_id: str) -> Result[None]:
        """Reject a request."""
        return await self.admission.reject_request(request_id)

    async def pending_requests(self) -> Result[list[PendingRequest]]:
        """Fetch the requests awaiting moderation."""
        return await self.admission.list_pending_requests()

    def add_to_queue_bottom(self, song: Song, playlist: Playlist) -> QueueItem:
        """Append a song to the queue."""
        return self.coordinator.add_to_queue_bottom(song, playlist)

    def add_to_queue_top(self, song: Song, playlist: Playlist) -> QueueItem:
        """Insert a song at the head of the queue."""
        return self.coordinator.add_to_queue_top(song, playlist)

    def remove_from_queue(self, index: int) -> QueueItem | None:
        """Remove the queue item at `index`."""
        return self.coordinator.remove_from_queue(index)

    def clear_queue(self) -> None:
        """Empty the queue and reset the local state to idle."""
        self.coordinator.clear_queue()
