"""Models for enum types used by aioradiyo."""

from dataclasses import dataclass
from enum import Enum

from mashumaro.mixins.orjson import DataClassORJSONMixin


# Helpers for discerning between null and undefined fields in patches
@dataclass
class UndefinedField(DataClassORJSONMixin):
    """Marker type to indicate fields left untouched by a patch."""


_UNDEFINED_SINGLETON = UndefinedField()


def undefined_field() -> UndefinedField:
    """Return the singleton UndefinedField instance."""
    return _UNDEFINED_SINGLETON


# Enums


class UserRole(Enum):
    """Role of an authenticated user."""

    LISTENER = "listener"
    """Submits song requests and ratings."""
    MODERATOR = "moderator"
    """Controls playback and approves or rejects requests."""


class PlaybackStateType(Enum):
    """Enum for the now-playing state machine."""

    IDLE = "idle"
    """Nothing is playing (initial or cleared state)."""
    PLAYING = "playing"
    PAUSED = "paused"


class StateOrigin(Enum):
    """Where the current now-playing view came from."""

    INTENT = "intent"
    """Optimistic local write, not yet confirmed by the store."""
    CONFIRMED = "confirmed"
    """Derived from the latest record delivered by the store subscription."""


class RequestStatus(Enum):
    """Enum for listener request statuses."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PLAYED = "played"


class SkipDirection(Enum):
    """Direction for a remote skip within the current playlist."""

    NEXT = "next"
    PREVIOUS = "previous"


class Operation(Enum):
    """Operations that may report a store failure on the error channel."""

    PLAY = "play"
    PLAY_NEXT = "play_next"
    PAUSE = "pause"
    RESUME = "resume"
    SKIP_NEXT = "skip_next"
    SKIP_PREVIOUS = "skip_previous"
    CLEAR = "clear"
    POPULATE = "populate"
    LOOKUP = "lookup"
    APPROVE = "approve"
    REJECT = "reject"
    LIST_REQUESTS = "list_requests"
    SUBSCRIBE = "subscribe"
