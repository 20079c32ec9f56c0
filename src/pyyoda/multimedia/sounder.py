"""Short WAV cue playback.

:class:`Sounder` wraps a :class:`WavPlayer` backend (see
:mod:`pyyoda.multimedia._sounddevice` for the default one). Each
``Sounder`` is owned by its creator; there is no process-wide player.

Usage::

    sounder = Sounder(SounddeviceWavPlayer(volume=volume), volume=volume)
    sounder.once(SounderEvent.READY, lambda: _logger.info("wav audio loaded"))
    await sounder.init(["/opt/media/volume.wav", "/opt/media/wakeup.wav"])
    await sounder.play("/opt/media/wakeup.wav", AudioStream.SYSTEM)
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Callable, Sequence
from typing import Protocol

from pyyoda._events import EventRegistry, Listener
from pyyoda.exceptions import SounderError
from pyyoda.multimedia.audio import AudioStream, MemoryVolumeControl, VolumeControl

_logger = logging.getLogger(__name__)


class SounderEvent(enum.StrEnum):
    READY = "ready"
    ERROR = "error"


class WavPlayer(Protocol):
    """Native-style WAV player operations.

    Implementations may block; :class:`Sounder` calls them from an executor.
    """

    def init_player(self, filenames: Sequence[str]) -> None:
        ...

    def prepare(self, filename: str, stream_name: str, hold_connection: bool) -> None:
        ...

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


class Sounder:
    """Plays preloaded WAV cues on a chosen audio stream."""

    def __init__(
        self,
        player: WavPlayer,
        *,
        volume: VolumeControl | None = None,
    ) -> None:
        self._player = player
        self._volume = volume or MemoryVolumeControl()
        self._events = EventRegistry()

    def on(self, event_type: str, callback: Listener) -> Callable[[], None]:
        return self._events.on(event_type, callback)

    def once(self, event_type: str, callback: Listener) -> Callable[[], None]:
        return self._events.once(event_type, callback)

    async def init(self, filenames: Sequence[str]) -> None:
        """Preload *filenames*; emits ``ready`` or ``error`` when done."""
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._player.init_player, list(filenames))
        except Exception as exc:
            _logger.warning("Sounder preload failed", exc_info=True)
            self._events.emit(SounderEvent.ERROR, SounderError(f"Preload failed: {exc}"))
            return
        _logger.debug("Sounder ready with %d files", len(filenames))
        self._events.emit(SounderEvent.READY)

    async def play(
        self,
        filename: str,
        stream: AudioStream | str = AudioStream.SYSTEM,
        hold_connection: bool = False,
    ) -> None:
        """Play *filename* on *stream*.

        Raises :class:`SounderError` when the player fails to prepare or
        start the sound.
        """
        stream = AudioStream(stream)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._player.prepare, filename, stream.value, hold_connection)
        except Exception as exc:
            raise SounderError(f"Failed to prepare {filename}: {exc}", filename=filename) from exc

        if not hold_connection:
            # A fresh connection starts at the mixer default; re-assert the stream level.
            self._volume.set_volume(stream, self._volume.get_volume(stream))

        try:
            await loop.run_in_executor(None, self._player.start)
        except Exception as exc:
            raise SounderError(f"Failed to play {filename}: {exc}", filename=filename) from exc
        _logger.debug("Playing %s on %s", filename, stream)

    def stop(self) -> None:
        """Stop the current playback."""
        self._player.stop()
