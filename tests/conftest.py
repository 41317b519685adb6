from __future__ import annotations

import pytest

from aioradiyo.models.core import Moderator, Playlist, Song
from aioradiyo.store.memory import MemoryBackend

START_MS = 1_700_000_000_000


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def make_song(number: int, *, title: str | None = None, artist: str = "Artist") -> Song:
    return Song(
        song_id=f"s{number}",
        title=title or f"Song {number}",
        artist=artist,
        album="Album",
        duration_ms=180_000,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def playlist() -> Playlist:
    return Playlist(playlist_id="p1", name="Morning Drive")


@pytest.fixture
def songs() -> list[Song]:
    return [make_song(n) for n in range(1, 6)]


@pytest.fixture
def backend(clock: FakeClock, playlist: Playlist, songs: list[Song]) -> MemoryBackend:
    return MemoryBackend(
        playlists={playlist.playlist_id: songs},
        moderators=[Moderator(moderator_id="m1", name="Dee")],
        now_ms=clock,
    )
