"""Semantic Bluetooth protocol values raised to local listeners."""

from pyyoda.models.hfp import CallState, ConnectionState, HfpEventType, Profile, RadioState

__all__ = [
    "CallState",
    "ConnectionState",
    "HfpEventType",
    "Profile",
    "RadioState",
]
