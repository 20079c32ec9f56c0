"""WAV player backed by sounddevice (PortAudio)."""

from __future__ import annotations

import logging
import threading
import wave
from collections.abc import Sequence
from typing import Any

import numpy as np

from pyyoda.config import YodaConfig
from pyyoda.exceptions import SounderError
from pyyoda.multimedia.audio import AudioStream, MemoryVolumeControl, VolumeControl

_logger = logging.getLogger(__name__)

# Sample width in bytes -> (dtype, zero offset, full scale)
_SAMPLE_FORMATS: dict[int, tuple[Any, float, float]] = {
    1: (np.uint8, 128.0, 128.0),
    2: (np.int16, 0.0, 32768.0),
    4: (np.int32, 0.0, 2147483648.0),
}


def read_wav(filename: str) -> tuple[np.ndarray, int]:
    """Decode a PCM WAV file into float32 samples in [-1, 1] and its sample rate."""
    try:
        with wave.open(filename, "rb") as wav_file:
            sample_rate = wav_file.getframerate()
            n_channels = wav_file.getnchannels()
            sample_width = wav_file.getsampwidth()
            frames = wav_file.readframes(wav_file.getnframes())
    except (OSError, EOFError, wave.Error) as exc:
        raise SounderError(f"Cannot read {filename}: {exc}", filename=filename) from exc

    fmt = _SAMPLE_FORMATS.get(sample_width)
    if fmt is None:
        raise SounderError(f"Unsupported sample width {sample_width} in {filename}", filename=filename)
    dtype, offset, scale = fmt
    samples = (np.frombuffer(frames, dtype=dtype).astype(np.float32) - offset) / scale
    if n_channels > 1:
        samples = samples.reshape(-1, n_channels)
    return samples, sample_rate


class SounddeviceWavPlayer:
    """:class:`~pyyoda.multimedia.sounder.WavPlayer` on the default PortAudio output."""

    def __init__(self, *, device: str | None = None, volume: VolumeControl | None = None) -> None:
        self._device = device
        self._volume = volume or MemoryVolumeControl()
        self._cache: dict[str, tuple[np.ndarray, int]] = {}
        self._prepared: tuple[np.ndarray, int, AudioStream] | None = None
        self._lock = threading.Lock()
        self._sd: Any = None

    @classmethod
    def from_config(cls, config: YodaConfig, *, volume: VolumeControl | None = None) -> SounddeviceWavPlayer:
        """Build a player on ``config.audio_device`` (``None`` for the default output)."""
        return cls(device=config.audio_device, volume=volume)

    def _sounddevice(self) -> Any:
        if self._sd is None:
            import sounddevice

            self._sd = sounddevice
        return self._sd

    def _load(self, filename: str) -> tuple[np.ndarray, int]:
        cached = self._cache.get(filename)
        if cached is None:
            cached = read_wav(filename)
            self._cache[filename] = cached
        return cached

    def init_player(self, filenames: Sequence[str]) -> None:
        with self._lock:
            for filename in filenames:
                self._load(filename)
        self._sounddevice()
        _logger.debug("Preloaded %d wav files", len(filenames))

    def prepare(self, filename: str, stream_name: str, hold_connection: bool) -> None:
        with self._lock:
            samples, sample_rate = self._load(filename)
            self._prepared = (samples, sample_rate, AudioStream(stream_name))
        _logger.debug("Prepared %s stream=%s hold=%s", filename, stream_name, hold_connection)

    def start(self) -> None:
        with self._lock:
            prepared = self._prepared
        if prepared is None:
            raise SounderError("Nothing prepared")
        samples, sample_rate, stream = prepared
        gain = self._volume.get_volume(stream) / 100.0
        self._sounddevice().play(samples * gain, sample_rate, device=self._device)

    def stop(self) -> None:
        if self._sd is not None:
            self._sd.stop()
