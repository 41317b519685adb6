from __future__ import annotations

import socket
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import pytest
from aiohttp import web

from aioradiyo.models.core import PlaybackRecordPatch, Playlist, Song
from aioradiyo.models.types import RequestStatus, SkipDirection
from aioradiyo.store.base import StoreError
from aioradiyo.store.http import ConvexHttpBackend
from conftest import make_song

SONG_DOC = {
    "_id": "s1",
    "title": "Song 1",
    "artist": "Artist",
    "album": "Album",
    "durationMs": 180000,
}
RECORD_DOC = {
    "song": SONG_DOC,
    "playlist": {"_id": "p1", "name": "Morning Drive"},
    "startedAt": 1_700_000_000_000,
    "isPlaying": True,
    "moderator": {"_id": "m1", "name": "Dee"},
}


def _get_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class FakeDeployment:
    """Answers queries and mutations from canned values, recording every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.values: dict[str, Any] = {}
        self.errors: dict[str, str] = {}
        self.auth_headers: list[str | None] = []

    async def handle(self, request: web.Request) -> web.Response:
        body = await request.json()
        kind = request.path.rsplit("/", 1)[-1]
        path = body["path"]
        self.calls.append((kind, path, body["args"]))
        self.auth_headers.append(request.headers.get("Authorization"))
        if path in self.errors:
            return web.json_response(
                {"status": "error", "errorMessage": self.errors[path]}, status=500
            )
        return web.json_response({"status": "success", "value": self.values.get(path)})


@asynccontextmanager
async def _serve(
    deployment: FakeDeployment, **kwargs: Any
) -> AsyncIterator[ConvexHttpBackend]:
    app = web.Application()
    app.router.add_post("/api/query", deployment.handle)
    app.router.add_post("/api/mutation", deployment.handle)
    runner = web.AppRunner(app)
    await runner.setup()
    port = _get_free_port()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    backend = ConvexHttpBackend(f"http://127.0.0.1:{port}/", **kwargs)
    try:
        yield backend
    finally:
        await backend.close()
        await runner.cleanup()


@pytest.mark.asyncio
async def test_reads_playback_record() -> None:
    deployment = FakeDeployment()
    deployment.values["nowPlaying:get"] = RECORD_DOC
    async with _serve(deployment, auth_token="token-1") as backend:
        record = await backend.get_playback_record()

    assert record is not None
    assert record.song.song_id == "s1"
    assert record.playlist is not None
    assert record.playlist.name == "Morning Drive"
    assert record.moderator is not None
    assert record.moderator.name == "Dee"
    assert deployment.calls == [("query", "nowPlaying:get", {})]
    assert deployment.auth_headers == ["Bearer token-1"]


@pytest.mark.asyncio
async def test_write_sends_ids() -> None:
    deployment = FakeDeployment()
    playlist = Playlist(playlist_id="p1", name="Morning Drive")
    async with _serve(deployment) as backend:
        await backend.write_playback_record(make_song(1), playlist, "m1")
        await backend.write_playback_record(make_song(2), playlist)

    assert deployment.calls == [
        ("mutation", "nowPlaying:update", {"songId": "s1", "playlistId": "p1", "moderatorId": "m1"}),
        ("mutation", "nowPlaying:update", {"songId": "s2", "playlistId": "p1"}),
    ]
    assert deployment.auth_headers == [None, None]


@pytest.mark.asyncio
async def test_patch_skip_and_clear_map_to_mutations() -> None:
    deployment = FakeDeployment()
    async with _serve(deployment) as backend:
        await backend.patch_playback_record(PlaybackRecordPatch.pause(123))
        await backend.patch_playback_record(PlaybackRecordPatch.resume())
        await backend.skip_playback_record(SkipDirection.NEXT)
        await backend.skip_playback_record(SkipDirection.PREVIOUS)
        await backend.delete_playback_record()
        with pytest.raises(ValueError, match="pause and resume"):
            await backend.patch_playback_record(PlaybackRecordPatch(started_at=5))

    assert [path for _, path, _ in deployment.calls] == [
        "nowPlaying:pause",
        "nowPlaying:resume",
        "nowPlaying:skipNext",
        "nowPlaying:skipPrevious",
        "nowPlaying:clear",
    ]


@pytest.mark.asyncio
async def test_lookup_playlist_songs() -> None:
    deployment = FakeDeployment()
    deployment.values["playlists:getSongsInPlaylist"] = [SONG_DOC, {**SONG_DOC, "_id": "s2"}]
    async with _serve(deployment) as backend:
        songs = await backend.lookup_playlist_songs("p1")

    assert [song.song_id for song in songs] == ["s1", "s2"]
    assert all(isinstance(song, Song) for song in songs)
    assert deployment.calls == [("query", "playlists:getSongsInPlaylist", {"playlistId": "p1"})]


@pytest.mark.asyncio
async def test_request_status_and_pending_requests() -> None:
    deployment = FakeDeployment()
    deployment.values["songRequests:getPendingRequests"] = [
        {
            "_id": "r2",
            "_creationTime": 2.0,
            "userId": "u1",
            "userName": "Lee",
            "songTitle": "Song 1",
        }
    ]
    async with _serve(deployment) as backend:
        await backend.submit_request_status_change("r1", RequestStatus.REJECTED)
        pending = await backend.list_pending_requests()

    assert deployment.calls[0] == (
        "mutation",
        "songRequests:updateStatus",
        {"requestId": "r1", "status": "rejected"},
    )
    assert len(pending) == 1
    assert pending[0].user_name == "Lee"
    assert pending[0].artist_name is None


@pytest.mark.asyncio
async def test_error_response_raises_store_error() -> None:
    deployment = FakeDeployment()
    deployment.errors["nowPlaying:clear"] = "Not authorized"
    async with _serve(deployment) as backend:
        with pytest.raises(StoreError, match="Not authorized"):
            await backend.delete_playback_record()


@pytest.mark.asyncio
async def test_connection_failure_raises_store_error() -> None:
    backend = ConvexHttpBackend(f"http://127.0.0.1:{_get_free_port()}")
    try:
        with pytest.raises(StoreError):
            await backend.get_playback_record()
    finally:
        await backend.close()


def test_poll_interval_must_be_positive() -> None:
    with pytest.raises(ValueError, match="poll_interval_s"):
        ConvexHttpBackend("http://127.0.0.1", poll_interval_s=0)


@pytest.mark.asyncio
async def test_subscription_emits_only_changes() -> None:
    deployment = FakeDeployment()
    async with _serve(deployment, poll_interval_s=0.01) as backend:
        stream = backend.subscribe_playback_record()
        assert await anext(stream) is None

        deployment.values["nowPlaying:get"] = RECORD_DOC
        changed = await anext(stream)
        assert changed is not None
        assert changed.song.song_id == "s1"

        reads_before = len(deployment.calls)
        deployment.values["nowPlaying:get"] = None
        assert await anext(stream) is None
        await stream.aclose()

    assert len(deployment.calls) > reads_before
