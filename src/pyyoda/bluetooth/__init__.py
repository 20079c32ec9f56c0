"""Bluetooth profile adapters."""

from pyyoda.bluetooth.hfp import BluetoothHfp, HfpCommand
from pyyoda.bluetooth.protocol import CallState, ConnectionState, HfpEventType, Profile, RadioState
from pyyoda.bluetooth.statemap import load_state_rules, parse_state_rules

__all__ = [
    "BluetoothHfp",
    "CallState",
    "ConnectionState",
    "HfpCommand",
    "HfpEventType",
    "Profile",
    "RadioState",
    "load_state_rules",
    "parse_state_rules",
]
