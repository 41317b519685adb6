"""Playback queue and now-playing coordinator for a radio station companion app."""

from .station import ModeratorSession, NowPlayingCoordinator, RequestAdmissionPolicy
from .store import ConvexHttpBackend, MemoryBackend, StoreError

__all__ = [
    "ConvexHttpBackend",
    "MemoryBackend",
    "ModeratorSession",
    "NowPlayingCoordinator",
    "RequestAdmissionPolicy",
    "StoreError",
]
