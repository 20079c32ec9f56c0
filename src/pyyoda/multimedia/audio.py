"""Audio stream types and volume control."""

from __future__ import annotations

import enum
from typing import Protocol


class AudioStream(enum.StrEnum):
    """Playback streams with independent volume."""

    AUDIO = "audio"
    TTS = "tts"
    PLAYBACK = "playback"
    ALARM = "alarm"
    SYSTEM = "system"
    RING = "ring"
    VOICE_CALL = "voice_call"


class VolumeControl(Protocol):
    def get_volume(self, stream: AudioStream) -> int:
        ...

    def set_volume(self, stream: AudioStream, volume: int) -> None:
        ...


class MemoryVolumeControl:
    """Per-stream volume levels (0-100) kept in memory."""

    def __init__(self, default: int = 60, levels: dict[AudioStream, int] | None = None) -> None:
        self._default = _clamp_volume(default)
        self._levels: dict[AudioStream, int] = {
            stream: _clamp_volume(level) for stream, level in (levels or {}).items()
        }

    def get_volume(self, stream: AudioStream) -> int:
        return self._levels.get(stream, self._default)

    def set_volume(self, stream: AudioStream, volume: int) -> None:
        self._levels[stream] = _clamp_volume(volume)


def _clamp_volume(volume: int) -> int:
    return max(0, min(100, int(volume)))
