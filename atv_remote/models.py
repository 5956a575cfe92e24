"""Domain objects decoded from state snapshot messages."""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, List, Mapping, Optional, Union


class PlaybackState(Enum):
    """Playback state reported by the appliance."""
    UNKNOWN = "unknown"
    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"
    INTERRUPTED = "interrupted"
    SEEKING = "seeking"


_PLAYBACK_STATES = {
    1: PlaybackState.PLAYING,
    2: PlaybackState.PAUSED,
    3: PlaybackState.STOPPED,
    4: PlaybackState.INTERRUPTED,
    5: PlaybackState.SEEKING,
}


class Command(IntEnum):
    """Media commands the appliance may advertise as supported."""
    UNKNOWN = 0
    PLAY = 1
    PAUSE = 2
    TOGGLE_PLAY_PAUSE = 3
    STOP = 4
    NEXT_TRACK = 5
    PREVIOUS_TRACK = 6
    ADVANCE_SHUFFLE_MODE = 7
    ADVANCE_REPEAT_MODE = 8
    BEGIN_FAST_FORWARD = 9
    END_FAST_FORWARD = 10
    BEGIN_REWIND = 11
    END_REWIND = 12
    REWIND_15_SECONDS = 13
    FAST_FORWARD_15_SECONDS = 14
    REWIND_30_SECONDS = 15
    FAST_FORWARD_30_SECONDS = 16
    SKIP_FORWARD = 18
    SKIP_BACKWARD = 19
    CHANGE_PLAYBACK_RATE = 20
    RATE_TRACK = 21
    LIKE_TRACK = 22
    DISLIKE_TRACK = 23
    BOOKMARK_TRACK = 24
    SEEK_TO_PLAYBACK_POSITION = 45
    CHANGE_REPEAT_MODE = 46
    CHANGE_SHUFFLE_MODE = 47


class NowPlayingInfo:
    """What the appliance is currently playing.

    Built from the payload of a state snapshot message. Track fields come from
    its nowPlayingInfo block, the app and playback state from the payload.
    """

    def __init__(self, payload: Mapping[str, Any]):
        self.payload = payload
        info = payload.get("nowPlayingInfo") or {}

        self.title: Optional[str] = info.get("title")
        self.artist: Optional[str] = info.get("artist")
        self.album: Optional[str] = info.get("album")
        self.duration: Optional[float] = info.get("duration")
        self.elapsed_time: Optional[float] = info.get("elapsedTime")
        self.timestamp: Optional[float] = info.get("timestamp")

        self.app_display_name: Optional[str] = payload.get("displayName")
        self.app_bundle_identifier: Optional[str] = payload.get("displayID")
        self.playback_state = _PLAYBACK_STATES.get(payload.get("playbackState"), PlaybackState.UNKNOWN)

    def percent_completed(self) -> float:
        """Elapsed share of the track in percent (0.0 when unknown)."""
        if not self.elapsed_time or not self.duration:
            return 0.0
        return round(self.elapsed_time / self.duration * 100, 2)

    def __str__(self) -> str:
        if self.artist:
            text = f"{self.title} by {self.artist}"
        else:
            text = f"{self.title}"
        if self.album:
            text += f" ({self.album})"
        if self.duration:
            text += f" | {self.percent_completed():.2f}%"
        if self.app_display_name:
            text += f" | {self.app_display_name}"
        return f"{text} | {self.playback_state.value}"

    def __repr__(self) -> str:
        return (
            f"NowPlayingInfo(title={self.title!r}, artist={self.artist!r}, "
            f"playback_state={self.playback_state.value!r})"
        )


@dataclass(frozen=True)
class SupportedCommand:
    """A command the appliance currently accepts."""
    command: Union[Command, int]
    enabled: bool = False
    can_scrub: bool = False

    @classmethod
    def from_payload(cls, entry: Mapping[str, Any]) -> "SupportedCommand":
        raw = entry.get("command", 0)
        try:
            command: Union[Command, int] = Command(raw)
        except ValueError:
            command = raw
        return cls(
            command=command,
            enabled=bool(entry.get("enabled") or False),
            can_scrub=bool(entry.get("canScrub") or False),
        )


def supported_commands_from_payload(block: Mapping[str, Any]) -> List[SupportedCommand]:
    """Map a supportedCommands block to domain objects, keeping source order."""
    return [SupportedCommand.from_payload(entry) for entry in block.get("supportedCommands") or []]
