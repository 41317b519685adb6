from __future__ import annotations

import pytest

from aioradiyo.models.core import Playlist, Song
from aioradiyo.models.queue import NowPlayingState
from aioradiyo.models.types import Operation, PlaybackStateType, StateOrigin
from aioradiyo.station.coordinator import NowPlayingCoordinator
from aioradiyo.station.events import (
    ErrorEvent,
    NowPlayingChangedEvent,
    QueueChangedEvent,
    StationEvent,
)
from aioradiyo.store.base import StoreError
from aioradiyo.store.memory import MemoryBackend
from conftest import FakeClock, make_song


def _coordinator(backend: MemoryBackend, clock: FakeClock) -> NowPlayingCoordinator:
    return NowPlayingCoordinator(backend, backend, now_ms=clock)


@pytest.mark.asyncio
async def test_play_song_now_writes_record_and_populates_queue(
    backend: MemoryBackend, clock: FakeClock, playlist: Playlist, songs: list[Song]
) -> None:
    coordinator = _coordinator(backend, clock)

    result = await coordinator.play_song_now(songs[1], playlist, "m1")

    assert result.ok
    assert backend.record is not None
    assert backend.record.song == songs[1]
    assert backend.record.started_at == clock.now
    assert backend.record.moderator is not None
    assert backend.record.moderator.name == "Dee"

    state = coordinator.now_playing
    assert state.song == songs[1]
    assert state.playlist == playlist
    assert state.is_playing is True
    assert state.started_at == clock.now
    assert state.origin == StateOrigin.INTENT
    assert [item.song for item in coordinator.queue] == songs[2:]


@pytest.mark.asyncio
async def test_play_song_now_overwrites_single_record(
    backend: MemoryBackend, clock: FakeClock, playlist: Playlist, songs: list[Song]
) -> None:
    coordinator = _coordinator(backend, clock)
    await coordinator.play_song_now(songs[0], playlist)
    clock.advance(1_000)
    await coordinator.play_song_now(songs[3], playlist)

    assert backend.mutation_count == 2
    assert backend.record is not None
    assert backend.record.song == songs[3]
    assert backend.record.moderator is None
    assert [item.song for item in coordinator.queue] == [songs[4]]


@pytest.mark.asyncio
async def test_play_next_on_empty_queue_is_noop(
    backend: MemoryBackend, clock: FakeClock
) -> None:
    coordinator = _coordinator(backend, clock)
    before = coordinator.now_playing

    result = await coordinator.play_next("m1")

    assert result.ok
    assert result.value is None
    assert coordinator.now_playing is before
    assert backend.mutation_count == 0


@pytest.mark.asyncio
async def test_queue_scenario(
    backend: MemoryBackend, clock: FakeClock, playlist: Playlist
) -> None:
    coordinator = _coordinator(backend, clock)
    a, b, c, d = (make_song(n, title=name) for n, name in enumerate("ABCD", start=10))
    item_a = coordinator.add_to_queue_bottom(a, playlist)
    coordinator.add_to_queue_bottom(b, playlist)
    item_c = coordinator.add_to_queue_bottom(c, playlist)

    coordinator.remove_from_queue(1)
    assert coordinator.queue == (item_a, item_c)

    item_d = coordinator.add_to_queue_top(d, playlist)
    assert coordinator.queue == (item_d, item_a, item_c)

    result = await coordinator.play_next()
    assert result.value is item_d
    assert coordinator.now_playing.song == d
    assert coordinator.queue == (item_a, item_c)
    assert backend.record is not None
    assert backend.record.song == d


@pytest.mark.asyncio
async def test_pause_resume_excludes_pause_interval(
    backend: MemoryBackend, clock: FakeClock, playlist: Playlist, songs: list[Song]
) -> None:
    coordinator = _coordinator(backend, clock)
    await coordinator.play_song_now(songs[0], playlist)
    clock.advance(30_000)

    await coordinator.pause_playing()
    assert coordinator.now_playing.state == PlaybackStateType.PAUSED
    assert backend.record is not None
    assert backend.record.paused_at == clock.now
    position_at_pause = backend.record.position_ms(clock.now)
    assert position_at_pause == 30_000

    clock.advance(60_000)
    await coordinator.resume_playing()

    assert coordinator.now_playing.is_playing is True
    assert coordinator.now_playing.origin == StateOrigin.INTENT
    assert coordinator.position_ms() == position_at_pause
    record = backend.record
    assert record is not None
    assert record.is_playing is True
    assert record.paused_at is None
    assert record.position_ms(clock.now) == position_at_pause

    coordinator.handle_remote_record(record)
    assert coordinator.now_playing.origin == StateOrigin.CONFIRMED
    assert coordinator.position_ms() == position_at_pause


@pytest.mark.asyncio
async def test_repeated_pause_is_tolerated(
    backend: MemoryBackend, clock: FakeClock, playlist: Playlist, songs: list[Song]
) -> None:
    coordinator = _coordinator(backend, clock)
    await coordinator.play_song_now(songs[0], playlist)
    clock.advance(10_000)
    first = await coordinator.pause_playing()
    clock.advance(5_000)
    second = await coordinator.pause_playing()

    assert first.ok
    assert second.ok
    assert coordinator.now_playing.is_playing is False
    assert backend.record is not None
    assert backend.record.position_ms(clock.now) == 10_000
    assert coordinator.position_ms() == 10_000

    clock.advance(20_000)
    await coordinator.resume_playing()
    assert coordinator.position_ms() == backend.record.position_ms(clock.now) == 10_000


@pytest.mark.asyncio
async def test_pause_while_idle_keeps_idle(backend: MemoryBackend, clock: FakeClock) -> None:
    coordinator = _coordinator(backend, clock)
    result = await coordinator.pause_playing()
    assert result.ok
    assert coordinator.now_playing == NowPlayingState()
    assert backend.record is None


@pytest.mark.asyncio
async def test_failed_write_keeps_optimistic_state(
    backend: MemoryBackend, clock: FakeClock, playlist: Playlist, songs: list[Song]
) -> None:
    coordinator = _coordinator(backend, clock)
    events: list[StationEvent] = []
    coordinator.add_event_listener(lambda _c, event: events.append(event))
    backend.set_available(False)

    result = await coordinator.play_song_now(songs[0], playlist)

    assert not result.ok
    assert isinstance(result.error, StoreError)
    assert isinstance(coordinator.error, StoreError)
    assert coordinator.now_playing.song == songs[0]
    assert coordinator.queue == ()
    assert backend.record is None
    errors = [e for e in events if isinstance(e, ErrorEvent)]
    assert [e.operation for e in errors] == [Operation.PLAY, Operation.POPULATE]


@pytest.mark.asyncio
async def test_events_and_failing_listener(
    backend: MemoryBackend, clock: FakeClock, playlist: Playlist, songs: list[Song]
) -> None:
    coordinator = _coordinator(backend, clock)
    events: list[StationEvent] = []

    def _broken(_coordinator: NowPlayingCoordinator, _event: StationEvent) -> None:
        raise RuntimeError("listener bug")

    coordinator.add_event_listener(_broken)
    remove = coordinator.add_event_listener(lambda _c, event: events.append(event))

    await coordinator.play_song_now(songs[0], playlist)

    assert any(isinstance(e, NowPlayingChangedEvent) for e in events)
    queue_events = [e for e in events if isinstance(e, QueueChangedEvent)]
    assert queue_events[-1].queue == coordinator.queue

    remove()
    remove()
    count = len(events)
    coordinator.add_to_queue_bottom(songs[0], playlist)
    assert len(events) == count


@pytest.mark.asyncio
async def test_clear_now_playing(
    backend: MemoryBackend, clock: FakeClock, playlist: Playlist, songs: list[Song]
) -> None:
    coordinator = _coordinator(backend, clock)
    await coordinator.play_song_now(songs[0], playlist)

    result = await coordinator.clear_now_playing()

    assert result.ok
    assert backend.record is None
    assert coordinator.queue == ()
    assert coordinator.now_playing.state == PlaybackStateType.IDLE


def test_clear_queue_resets_state(
    backend: MemoryBackend, clock: FakeClock, playlist: Playlist, songs: list[Song]
) -> None:
    coordinator = _coordinator(backend, clock)
    coordinator.add_to_queue_bottom(songs[0], playlist)
    coordinator.handle_remote_record(None)

    coordinator.clear_queue()

    assert coordinator.queue == ()
    assert coordinator.now_playing == NowPlayingState()


@pytest.mark.asyncio
async def test_skip_wraps_around_playlist(
    backend: MemoryBackend, clock: FakeClock, playlist: Playlist, songs: list[Song]
) -> None:
    coordinator = _coordinator(backend, clock)
    await coordinator.play_song_now(songs[-1], playlist)

    await coordinator.skip_next()
    assert backend.record is not None
    assert backend.record.song == songs[0]

    await coordinator.skip_previous()
    assert backend.record.song == songs[-1]

    # Skips go through the store; the local view follows the subscription
    assert coordinator.now_playing.song == songs[-1]


@pytest.mark.asyncio
async def test_remote_record_reconciles_local_state(
    backend: MemoryBackend, clock: FakeClock, playlist: Playlist, songs: list[Song]
) -> None:
    coordinator = _coordinator(backend, clock)
    await coordinator.play_song_now(songs[0], playlist)

    await backend.write_playback_record(songs[2], playlist, "m1")
    coordinator.handle_remote_record(backend.record)

    assert coordinator.confirmed_record is backend.record
    assert coordinator.now_playing.song == songs[2]
    assert coordinator.now_playing.origin == StateOrigin.CONFIRMED

    coordinator.handle_remote_record(None)
    assert coordinator.now_playing.state == PlaybackStateType.IDLE
