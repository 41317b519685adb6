"""Backends for the playback record, playlist lookup and request decisions."""

from .base import PlaybackRecordStore, PlaylistLookup, RequestStatusSink, StoreError
from .http import ConvexHttpBackend
from .memory import MemoryBackend

__all__ = [
    "ConvexHttpBackend",
    "MemoryBackend",
    "PlaybackRecordStore",
    "PlaylistLookup",
    "RequestStatusSink",
    "StoreError",
]
