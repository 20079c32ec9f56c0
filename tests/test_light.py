from __future__ import annotations

import math
from pathlib import Path

import pytest

from pyyoda.config import YodaConfig
from pyyoda.exceptions import LightError
from pyyoda.light import FileLedWriter, Light


class _MemoryWriter:
    def __init__(self) -> None:
        self.frames: list[bytes] = []

    def write_frame(self, frame: bytes) -> None:
        self.frames.append(frame)


class _BrokenWriter:
    def write_frame(self, frame: bytes) -> None:
        raise OSError("No such device")


def test_fill_default_buffer() -> None:
    writer = _MemoryWriter()
    light = Light(writer)

    light.fill(255, 255, 255, 1)
    assert light.write()
    light.fill(255, 0, 0, 1)
    assert light.write()

    assert writer.frames[0] == b"\xff" * 36
    assert writer.frames[1] == b"\xff\x00\x00" * 12


@pytest.mark.parametrize("alpha", ["10", -1, 2.5, None, True])
def test_fill_invalid_alpha_falls_back_to_opaque(alpha: object) -> None:
    writer = _MemoryWriter()
    light = Light(writer)

    light.fill(255, 255, 255, alpha)

    assert light.write()
    assert writer.frames[0] == b"\xff" * 36


def test_fill_alpha_scales_and_channels_clamp() -> None:
    light = Light(_MemoryWriter(), led_count=2)

    light.fill(200, 300, -20, 0.5)

    assert light.frame == bytes((100, 150, 0)) * 2


def test_write_outside_buffer() -> None:
    writer = _MemoryWriter()
    light = Light(writer)
    buf = bytearray(b"\xff" * 36)

    assert light.write(buf)
    buf[0:3] = b"\x00\x00\xff"
    assert light.write(buf)

    assert writer.frames[0] == b"\xff" * 36
    assert writer.frames[1][:3] == b"\x00\x00\xff"


def test_write_values_above_255_keep_low_byte() -> None:
    writer = _MemoryWriter()
    light = Light(writer)

    assert light.write([500] * 36)

    assert writer.frames[0] == bytes([500 & 0xFF]) * 36


def test_write_non_numeric_entries_become_zero() -> None:
    writer = _MemoryWriter()
    light = Light(writer)
    buf: list[object] = ["a"] * 36
    buf[2] = 255

    assert light.write(buf)

    assert writer.frames[0][:3] == b"\x00\x00\xff"
    assert writer.frames[0][3:] == b"\x00" * 33


def test_fill_non_finite_channels_are_clamped() -> None:
    light = Light(_MemoryWriter(), led_count=2)

    light.fill(float("nan"), math.inf, -math.inf)

    assert light.frame == bytes((0, 255, 0)) * 2


def test_write_non_finite_entries_become_zero() -> None:
    writer = _MemoryWriter()
    light = Light(writer)

    assert light.write([math.inf, float("nan"), -math.inf] + [7] * 33)

    assert writer.frames[0] == b"\x00\x00\x00" + b"\x07" * 33


def test_write_long_buffer_is_truncated() -> None:
    writer = _MemoryWriter()
    light = Light(writer)
    buf = bytearray([111] * 10000)
    buf[0:3] = b"\x00\x00\xff"

    assert light.write(buf)

    assert len(writer.frames[0]) == 36
    assert writer.frames[0][:3] == b"\x00\x00\xff"


def test_write_short_buffer_is_zero_padded() -> None:
    writer = _MemoryWriter()
    light = Light(writer)

    assert light.write(b"\x01\x02\x03")

    assert writer.frames[0] == b"\x01\x02\x03" + b"\x00" * 33


def test_pixel_sets_single_led() -> None:
    light = Light(_MemoryWriter(), led_count=3)
    light.pixel(1, 0, 255, 0)
    assert light.frame == b"\x00\x00\x00\x00\xff\x00\x00\x00\x00"
    with pytest.raises(IndexError):
        light.pixel(3, 0, 0, 0)


def test_writer_failure_raises_light_error() -> None:
    light = Light(_BrokenWriter())
    with pytest.raises(LightError):
        light.write()


def test_from_config_writes_to_device_path(tmp_path: Path) -> None:
    device = tmp_path / "leds"
    light = Light.from_config(YodaConfig(led_device_path=str(device), led_count=4))

    light.fill(1, 2, 3)
    light.write()

    assert device.read_bytes() == b"\x01\x02\x03" * 4


def test_file_writer_overwrites_previous_frame(tmp_path: Path) -> None:
    device = tmp_path / "leds"
    writer = FileLedWriter(device)
    writer.write_frame(b"\x01" * 6)
    writer.write_frame(b"\x02" * 3)
    assert device.read_bytes() == b"\x02" * 3
