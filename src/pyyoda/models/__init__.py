"""Data models shared across pyyoda components."""

from pyyoda.models.hfp import (
    CallState,
    ConnectedDevice,
    ConnectionState,
    HfpAudio,
    HfpCall,
    HfpConnectState,
    HfpEventType,
    HfpHeld,
    HfpService,
    HfpSetup,
    HfpState,
    OutflowEvent,
    Profile,
    RadioState,
    StateFilter,
    StateRule,
    StateVector,
    matches,
)

__all__ = [
    "CallState",
    "ConnectedDevice",
    "ConnectionState",
    "HfpAudio",
    "HfpCall",
    "HfpConnectState",
    "HfpEventType",
    "HfpHeld",
    "HfpService",
    "HfpSetup",
    "HfpState",
    "OutflowEvent",
    "Profile",
    "RadioState",
    "StateFilter",
    "StateRule",
    "StateVector",
    "matches",
]
