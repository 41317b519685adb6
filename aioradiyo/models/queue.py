"""Queue and now-playing state models."""

from __future__ import annotations

from dataclasses import dataclass, replace

from .core import PlaybackRecord, Playlist, Song, playback_position_ms
from .types import PlaybackStateType, StateOrigin


@dataclass(eq=False)
class QueueItem:
    """
    A song scheduled to play after the current one.

    Items compare by identity: the same song may legitimately be queued twice.
    """

    song: Song
    playlist: Playlist
    is_from_request: bool = False
    """True if the item came from an approved listener request."""
    request_id: str | None = None
    """Originating request, kept for traceability."""


@dataclass(frozen=True)
class NowPlayingState:
    """Local view of what is playing right now."""

    song: Song | None = None
    playlist: Playlist | None = None
    is_playing: bool = False
    started_at: int = 0
    """Epoch milliseconds when playback started."""
    paused_at: int | None = None
    """Epoch milliseconds when playback was paused, only set while paused."""
    origin: StateOrigin = StateOrigin.INTENT

    @classmethod
    def playing(cls, song: Song, playlist: Playlist, started_at: int) -> NowPlayingState:
        """Build the optimistic state for a song that just started."""
        return cls(song=song, playlist=playlist, is_playing=True, started_at=started_at)

    @classmethod
    def from_record(cls, record: PlaybackRecord | None) -> NowPlayingState:
        """Build the confirmed state for a record delivered by the store."""
        if record is None:
            return cls(origin=StateOrigin.CONFIRMED)
        return cls(
            song=record.song,
            playlist=record.playlist,
            is_playing=record.is_playing,
            started_at=record.started_at,
            paused_at=None if record.is_playing else record.paused_at,
            origin=StateOrigin.CONFIRMED,
        )

    @property
    def state(self) -> PlaybackStateType:
        """Current position in the idle/playing/paused state machine."""
        if self.song is None:
            return PlaybackStateType.IDLE
        if self.is_playing:
            return PlaybackStateType.PLAYING
        return PlaybackStateType.PAUSED

    def with_playing(self, is_playing: bool, now_ms: int) -> NowPlayingState:  # noqa: FBT001
        """
        Return an optimistic copy with the play/pause flag flipped.

        Mirrors the store: resuming shifts started_at by the pause duration,
        and pausing an already paused state keeps the first pause point.
        """
        paused_at = None if self.is_playing else self.paused_at
        if is_playing:
            started_at = self.started_at
            if paused_at is not None:
                started_at += now_ms - paused_at
            return replace(
                self,
                is_playing=True,
                started_at=started_at,
                paused_at=None,
                origin=StateOrigin.INTENT,
            )
        return replace(
            self,
            is_playing=False,
            paused_at=now_ms if paused_at is None else paused_at,
            origin=StateOrigin.INTENT,
        )

    def position_ms(self, now_ms: int) -> int:
        """Return the played position at `now_ms`, 0 when idle."""
        if self.song is None:
            return 0
        return playback_position_ms(
            started_at=self.started_at,
            paused_at=None if self.is_playing else self.paused_at,
            now_ms=now_ms,
            duration_ms=self.song.duration_ms,
        )
