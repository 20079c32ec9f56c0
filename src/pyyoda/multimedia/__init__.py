"""WAV playback helpers."""

from pyyoda.multimedia._sounddevice import SounddeviceWavPlayer, read_wav
from pyyoda.multimedia.audio import AudioStream, MemoryVolumeControl, VolumeControl
from pyyoda.multimedia.sounder import Sounder, SounderEvent, WavPlayer

__all__ = [
    "AudioStream",
    "MemoryVolumeControl",
    "Sounder",
    "SounderEvent",
    "SounddeviceWavPlayer",
    "VolumeControl",
    "WavPlayer",
    "read_wav",
]
