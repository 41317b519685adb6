"""Playback queue and now-playing coordination."""

from .admission import RequestAdmissionPolicy
from .coordinator import NowPlayingCoordinator
from .events import (
    ErrorEvent,
    NowPlayingChangedEvent,
    QueueChangedEvent,
    RemoteRecordEvent,
    StationEvent,
)
from .queue import QueueEngine
from .session import ModeratorSession, SessionConfig

__all__ = [
    "ErrorEvent",
    "ModeratorSession",
    "NowPlayingChangedEvent",
    "NowPlayingCoordinator",
    "QueueChangedEvent",
    "QueueEngine",
    "RemoteRecordEvent",
    "RequestAdmissionPolicy",
    "SessionConfig",
    "StationEvent",
]
