"""LED ring frame buffer.

A frame is ``led_count * 3`` bytes of RGB. :meth:`Light.fill` paints the
whole ring; :meth:`Light.write` pushes either the internal frame or a
caller-supplied buffer to the device.
"""

from __future__ import annotations

import logging
import math
import numbers
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

from pyyoda._constants import CHANNELS_PER_LED, DEFAULT_LED_COUNT
from pyyoda.config import YodaConfig
from pyyoda.exceptions import LightError

_logger = logging.getLogger(__name__)


class LedWriter(Protocol):
    def write_frame(self, frame: bytes) -> None:
        ...


class FileLedWriter:
    """Writes raw RGB frames to a character device or plain file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def write_frame(self, frame: bytes) -> None:
        with self._path.open("wb", buffering=0) as device:
            device.write(frame)


def _normalize_alpha(alpha: Any) -> float:
    if isinstance(alpha, bool) or not isinstance(alpha, numbers.Real):
        return 1.0
    value = float(alpha)
    if not 0.0 <= value <= 1.0:
        return 1.0
    return value


def _channel(value: Any, alpha: float) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return 0
    scaled = float(value) * alpha
    if math.isnan(scaled):
        return 0
    if math.isinf(scaled):
        return 255 if scaled > 0 else 0
    return max(0, min(255, int(round(scaled))))


def _buffer_byte(value: Any) -> int:
    # Same coercion as writing into a byte buffer: keep the low 8 bits.
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return 0
    if not math.isfinite(value):
        return 0
    return int(value) & 0xFF


class Light:
    """Frame buffer for an RGB LED ring."""

    def __init__(self, writer: LedWriter, *, led_count: int = DEFAULT_LED_COUNT) -> None:
        if led_count <= 0:
            raise ValueError(f"led_count must be positive, got {led_count}")
        self._writer = writer
        self._led_count = led_count
        self._frame = bytearray(led_count * CHANNELS_PER_LED)

    @classmethod
    def from_config(cls, config: YodaConfig) -> Light:
        return cls(FileLedWriter(config.led_device_path), led_count=config.led_count)

    @property
    def led_count(self) -> int:
        return self._led_count

    @property
    def frame(self) -> bytes:
        return bytes(self._frame)

    def fill(self, r: Any, g: Any, b: Any, alpha: Any = 1) -> None:
        """Paint every LED with ``(r, g, b)`` scaled by *alpha*.

        An *alpha* that is not a number in ``[0, 1]`` is treated as ``1``.
        """
        a = _normalize_alpha(alpha)
        pixel = bytes((_channel(r, a), _channel(g, a), _channel(b, a)))
        self._frame[:] = pixel * self._led_count

    def pixel(self, index: int, r: Any, g: Any, b: Any, alpha: Any = 1) -> None:
        if not 0 <= index < self._led_count:
            raise IndexError(f"LED index {index} out of range 0..{self._led_count - 1}")
        a = _normalize_alpha(alpha)
        offset = index * CHANNELS_PER_LED
        self._frame[offset : offset + CHANNELS_PER_LED] = bytes((_channel(r, a), _channel(g, a), _channel(b, a)))

    def write(self, buffer: bytes | bytearray | Sequence[Any] | None = None) -> bool:
        """Write the internal frame, or *buffer* when given, to the device.

        External buffers are fitted to the frame: extra bytes are dropped,
        missing bytes are zero, and entries are coerced to bytes.
        """
        if buffer is None:
            frame = bytes(self._frame)
        else:
            size = len(self._frame)
            if isinstance(buffer, (bytes, bytearray)):
                data = bytes(buffer[:size])
            else:
                data = bytes(_buffer_byte(value) for value in list(buffer)[:size])
            if len(buffer) > size:
                _logger.debug("LED buffer of %d bytes truncated to %d", len(buffer), size)
            frame = data.ljust(size, b"\x00")

        try:
            self._writer.write_frame(frame)
        except OSError as exc:
            raise LightError(f"Failed to write LED frame: {exc}") from exc
        return True
