"""Models for the aioradiyo playback queue."""

from __future__ import annotations

__all__ = [
    "Moderator",
    "NowPlayingState",
    "Operation",
    "PendingRequest",
    "PlaybackRecord",
    "PlaybackRecordPatch",
    "PlaybackStateType",
    "Playlist",
    "QueueItem",
    "RequestStatus",
    "RequestStatusChange",
    "Result",
    "SkipDirection",
    "Song",
    "SongRequest",
    "StateOrigin",
    "UndefinedField",
    "User",
    "UserRole",
    "core",
    "queue",
    "request",
    "result",
    "types",
    "undefined_field",
]

from . import core, queue, request, result, types
from .core import Moderator, PlaybackRecord, PlaybackRecordPatch, Playlist, Song, User
from .queue import NowPlayingState, QueueItem
from .request import PendingRequest, RequestStatusChange, SongRequest
from .result import Result
from .types import (
    Operation,
    PlaybackStateType,
    RequestStatus,
    SkipDirection,
    StateOrigin,
    UndefinedField,
    UserRole,
    undefined_field,
)
