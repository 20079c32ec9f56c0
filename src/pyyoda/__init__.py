"""pyyoda - device integration shims for a voice-assistant platform."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyyoda")
except PackageNotFoundError:
    __version__ = "0+local"
from pyyoda._bus import MessageBus, MessageType, MqttBus
from pyyoda.bluetooth import BluetoothHfp, CallState, ConnectionState, HfpEventType, Profile, RadioState
from pyyoda.config import DeviceProfile, YodaConfig
from pyyoda.event_request import EventRequestClient, build_auth_header
from pyyoda.exceptions import (
    LightError,
    SounderError,
    YodaApiError,
    YodaBusError,
    YodaConfigError,
    YodaError,
    YodaTransportError,
)
from pyyoda.light import FileLedWriter, Light
from pyyoda.models import ConnectedDevice, StateFilter, StateRule, StateVector, matches
from pyyoda.multimedia import AudioStream, Sounder

__all__ = [
    "__version__",
    "AudioStream",
    "BluetoothHfp",
    "CallState",
    "ConnectedDevice",
    "ConnectionState",
    "DeviceProfile",
    "EventRequestClient",
    "FileLedWriter",
    "HfpEventType",
    "Light",
    "LightError",
    "MessageBus",
    "MessageType",
    "MqttBus",
    "Profile",
    "RadioState",
    "Sounder",
    "SounderError",
    "StateFilter",
    "StateRule",
    "StateVector",
    "YodaApiError",
    "YodaBusError",
    "YodaConfig",
    "YodaConfigError",
    "YodaError",
    "YodaTransportError",
    "build_auth_header",
    "matches",
]
