"""Events emitted by the now-playing coordinator."""

from __future__ import annotations

from dataclasses import dataclass

from aioradiyo.models.core import PlaybackRecord
from aioradiyo.models.queue import NowPlayingState, QueueItem
from aioradiyo.models.types import Operation


class StationEvent:
    """Base event type used by NowPlayingCoordinator.add_event_listener()."""


@dataclass
class QueueChangedEvent(StationEvent):
    """The queue was replaced by a new sequence."""

    queue: tuple[QueueItem, ...]
    """The new queue, head first."""


@dataclass
class NowPlayingChangedEvent(StationEvent):
    """The local now-playing view changed."""

    state: NowPlayingState
    """The new state."""


@dataclass
class RemoteRecordEvent(StationEvent):
    """The store subscription delivered a record."""

    record: PlaybackRecord | None
    """The record as stored, None when no record exists."""


@dataclass
class ErrorEvent(StationEvent):
    """A store call failed and was recovered at the operation boundary."""

    operation: Operation
    """The operation that issued the failing call."""
    error: Exception
    """The failure."""
