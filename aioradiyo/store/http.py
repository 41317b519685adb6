"""Backend talking to a Convex-style HTTP API with aiohttp."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

import orjson
from aiohttp import ClientError, ClientSession, ClientTimeout

from aioradiyo.models.core import PlaybackRecord, PlaybackRecordPatch, Playlist, Song
from aioradiyo.models.request import PendingRequest, RequestStatusChange
from aioradiyo.models.types import RequestStatus, SkipDirection, UndefinedField, undefined_field

from .base import PlaybackRecordStore, PlaylistLookup, RequestStatusSink, StoreError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_S = 2.0
"""Seconds between two reads of the playback record while subscribed."""
DEFAULT_REQUEST_TIMEOUT_S = 10.0
"""Total timeout for a single query or mutation."""

QUERY_PATH = "/api/query"
MUTATION_PATH = "/api/mutation"


class ConvexHttpBackend(PlaybackRecordStore, PlaylistLookup, RequestStatusSink):
    """
    Store backend for the hosted deployment.

    Queries and mutations are sent as JSON to `/api/query` and `/api/mutation`.
    The HTTP API has no push channel, so the playback record subscription
    polls and only emits when the record changed.
    """

    _base_url: str
    """Deployment URL without trailing slash."""
    _session: ClientSession | None
    """aiohttp session used for all requests."""
    _owns_session: bool
    """Whether this backend created the session and must close it."""
    _auth_token: str | None
    """Bearer token of the signed-in user, if any."""

    def __init__(
        self,
        base_url: str,
        *,
        session: ClientSession | None = None,
        auth_token: str | None = None,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S,
    ) -> None:
        """
        Create a backend for a deployment.

        Args:
            base_url: Deployment URL, e.g. https://example.convex.cloud.
            session: Optional aiohttp ClientSession. If None, a session is created
                on first use and closed by close().
            auth_token: Optional bearer token sent with every request.
            poll_interval_s: Seconds between reads while subscribed.
            request_timeout_s: Total timeout of a single request.
        """
        if poll_interval_s <= 0:
            raise ValueError(f"poll_interval_s must be positive, got {poll_interval_s}")
        self._base_url = base_url.rstrip("/")
        self._session = session
        self._owns_session = session is None
        self._auth_token = auth_token
        self._poll_interval_s = poll_interval_s
        self._timeout = ClientTimeout(total=request_timeout_s)

    async def close(self) -> None:
        """Release the aiohttp session if this backend owns it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def query(self, path: str, args: dict[str, Any] | None = None) -> Any:
        """Run a query function and return its value."""
        return await self._call(QUERY_PATH, path, args or {})

    async def mutation(self, path: str, args: dict[str, Any] | None = None) -> Any:
        """Run a mutation function and return its value."""
        return await self._call(MUTATION_PATH, path, args or {})

    async def _call(self, endpoint: str, path: str, args: dict[str, Any]) -> Any:
        if self._session is None:
            self._session = ClientSession()
        headers = {"Content-Type": "application/json"}
        if self._auth_token is not None:
            headers["Authorization"] = f"Bearer {self._auth_token}"
        body = orjson.dumps({"path": path, "args": args, "format": "json"})

        logger.debug("Calling %s %s with %s", endpoint, path, args)
        try:
            async with self._session.post(
                f"{self._base_url}{endpoint}",
                data=body,
                headers=headers,
                timeout=self._timeout,
            ) as response:
                status = response.status
                raw = await response.read()
        except (ClientError, TimeoutError) as err:
            raise StoreError(f"{path} failed: {err!r}") from err

        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as err:
            raise StoreError(f"{path} returned invalid JSON (HTTP {status})") from err

        if not isinstance(data, dict):
            raise StoreError(f"{path} returned an unexpected response (HTTP {status})")
        if data.get("status") == "success":
            return data.get("value")
        raise StoreError(data.get("errorMessage") or f"{path} failed with HTTP {status}")

    # PlaybackRecordStore

    async def get_playback_record(self) -> PlaybackRecord | None:
        """Read the record once."""
        value = await self.query("nowPlaying:get")
        if value is None:
            return None
        try:
            return PlaybackRecord.from_dict(value)
        except Exception as err:  # noqa: BLE001
            raise StoreError(f"Invalid playback record: {value!r}") from err

    async def subscribe_playback_record(self) -> AsyncIterator[PlaybackRecord | None]:
        """Poll the record and emit the first value and every change."""
        last: PlaybackRecord | None | UndefinedField = undefined_field()
        while True:
            record = await self.get_playback_record()
            if isinstance(last, UndefinedField) or record != last:
                last = record
                yield record
            await asyncio.sleep(self._poll_interval_s)

    async def write_playback_record(
        self, song: Song, playlist: Playlist, moderator_id: str | None = None
    ) -> None:
        """Upsert the record through nowPlaying:update."""
        args: dict[str, Any] = {"songId": song.song_id, "playlistId": playlist.playlist_id}
        if moderator_id is not None:
            args["moderatorId"] = moderator_id
        await self.mutation("nowPlaying:update", args)

    async def patch_playback_record(self, patch: PlaybackRecordPatch) -> None:
        """
        Pause or resume the record.

        The deployment stamps pause times itself and shifts startedAt on resume,
        so only the play/pause flag of the patch is forwarded.
        """
        if patch.is_playing is False:
            await self.mutation("nowPlaying:pause")
        elif patch.is_playing is True:
            await self.mutation("nowPlaying:resume")
        else:
            raise ValueError("Only pause and resume patches are supported over HTTP")

    async def skip_playback_record(self, direction: SkipDirection) -> None:
        """Skip within the record's playlist."""
        if direction == SkipDirection.NEXT:
            await self.mutation("nowPlaying:skipNext")
        else:
            await self.mutation("nowPlaying:skipPrevious")

    async def delete_playback_record(self) -> None:
        """Delete the record through nowPlaying:clear."""
        await self.mutation("nowPlaying:clear")

    # PlaylistLookup

    async def lookup_playlist_songs(self, playlist_id: str) -> list[Song]:
        """Fetch the ordered songs of a playlist."""
        value = await self.query("playlists:getSongsInPlaylist", {"playlistId": playlist_id})
        try:
            return [Song.from_dict(item) for item in value or []]
        except Exception as err:  # noqa: BLE001
            raise StoreError(f"Invalid songs for playlist {playlist_id}") from err

    # RequestStatusSink

    async def submit_request_status_change(
        self, request_id: str, status: RequestStatus
    ) -> None:
        """Persist a moderator decision through songRequests:updateStatus."""
        change = RequestStatusChange(request_id=request_id, status=status)
        await self.mutation("songRequests:updateStatus", change.to_dict())

    async def list_pending_requests(self) -> list[PendingRequest]:
        """Fetch pending requests, newest first."""
        value = await self.query("songRequests:getPendingRequests")
        try:
            return [PendingRequest.from_dict(item) for item in value or []]
        except Exception as err:  # noqa: BLE001
            raise StoreError("Invalid pending requests") from err
