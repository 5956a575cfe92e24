"""Tests for now-playing and supported-command objects."""

from __future__ import annotations

from atv_remote.models import (
    Command,
    NowPlayingInfo,
    PlaybackState,
    SupportedCommand,
    supported_commands_from_payload,
)

from .conftest import MOCK_STATE_PAYLOAD


def test_now_playing_fields() -> None:
    """Test fields are read from the snapshot payload."""
    info = NowPlayingInfo(MOCK_STATE_PAYLOAD)

    assert info.title == "Song"
    assert info.artist == "Band"
    assert info.album == "Record"
    assert info.duration == 200.0
    assert info.elapsed_time == 50.0
    assert info.app_display_name == "Music"
    assert info.app_bundle_identifier == "com.apple.Music"
    assert info.playback_state is PlaybackState.PLAYING
    assert info.percent_completed() == 25.0
    assert str(info) == "Song by Band (Record) | 25.00% | Music | playing"


def test_now_playing_unknown_state() -> None:
    """Test unmapped playback states become UNKNOWN."""
    info = NowPlayingInfo({"playbackState": 42, "nowPlayingInfo": {"title": "X"}})

    assert info.playback_state is PlaybackState.UNKNOWN
    assert info.percent_completed() == 0.0


def test_supported_commands_mapping() -> None:
    """Test commands keep source order and default flags to False."""
    commands = supported_commands_from_payload(MOCK_STATE_PAYLOAD["supportedCommands"])

    assert commands == [
        SupportedCommand(Command.PLAY, enabled=True, can_scrub=False),
        SupportedCommand(Command.PAUSE, enabled=True, can_scrub=True),
        SupportedCommand(999, enabled=False, can_scrub=False),
    ]


def test_supported_commands_empty_block() -> None:
    """Test a block without entries maps to an empty list."""
    assert supported_commands_from_payload({}) == []
