"""Hands-free profile state models.

Two layers live here:

* the *raw* state reported by the Bluetooth stack on
  ``bluetooth.hfp.event`` (:class:`StateVector` and the partial
  :class:`StateFilter`), using the stack's lowercase string values;
* the *semantic* events raised to local listeners
  (:class:`RadioState`, :class:`ConnectionState`, :class:`CallState`),
  paired with raw filters through :class:`StateRule`.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

# ------------------------------------------------------------------
# Raw stack values
# ------------------------------------------------------------------


class HfpState(StrEnum):
    INVALID = "invalid"
    OPENED = "opened"
    OPEN_FAILED = "open_failed"
    CLOSING = "closing"
    CLOSED = "closed"


class HfpConnectState(StrEnum):
    INVALID = "invalid"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CONNECT_FAILED = "connect_failed"
    DISCONNECTING = "disconnecting"
    DISCONNECTED = "disconnected"


class HfpService(StrEnum):
    INACTIVE = "inactive"
    ACTIVE = "active"


class HfpCall(StrEnum):
    INACTIVE = "inactive"
    ACTIVE = "active"


class HfpSetup(StrEnum):
    NONE = "none"
    INCOMING = "incoming"
    OUTGOING = "outgoing"
    ALERTING = "alerting"


class HfpHeld(StrEnum):
    NONE = "none"
    HOLD_ACTIVE = "hold_active"
    HOLD = "hold"


class HfpAudio(StrEnum):
    ON = "on"
    OFF = "off"


# ------------------------------------------------------------------
# Semantic protocol values
# ------------------------------------------------------------------


class Profile(StrEnum):
    """Bluetooth profiles known to the device."""

    BLE = "ble"
    A2DP = "a2dp"
    HFP = "hfp"


class HfpEventType(StrEnum):
    """Local event names raised by :class:`~pyyoda.bluetooth.hfp.BluetoothHfp`."""

    RADIO_STATE_CHANGED = "radio_state_changed"
    CONNECTION_STATE_CHANGED = "connection_state_changed"
    CALL_STATE_CHANGED = "call_state_changed"


class RadioState(StrEnum):
    ON = "on"
    OFF = "off"
    ON_FAILED = "on_failed"


class ConnectionState(StrEnum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    CONNECT_FAILED = "connect_failed"
    AUTOCONNECT_FAILED = "autoconnect_failed"
    """Auto connection to a previously paired device failed after power on."""


class CallState(StrEnum):
    IDLE = "idle"
    INCOMING = "incoming"
    OUTGOING = "outgoing"
    ALERTING = "alerting"
    OFFHOOK = "offhook"
    HELD = "held"
    AUDIO_ON = "audio_on"
    AUDIO_OFF = "audio_off"


_EVENT_STATE_ENUMS: dict[HfpEventType, type[StrEnum]] = {
    HfpEventType.RADIO_STATE_CHANGED: RadioState,
    HfpEventType.CONNECTION_STATE_CHANGED: ConnectionState,
    HfpEventType.CALL_STATE_CHANGED: CallState,
}

# ------------------------------------------------------------------
# State vector and filters
# ------------------------------------------------------------------

# Fields that may legitimately carry null; enumerated fields may not.
_NULLABLE_FIELDS = frozenset({"connect_address", "connect_name"})


def _drop_null_enums(values: Any) -> Any:
    if not isinstance(values, dict):
        return values
    return {key: value for key, value in values.items() if value is not None or key in _NULLABLE_FIELDS}


class StateVector(BaseModel):
    """Last-known full HFP status.

    Every enumerated field always holds a member of its enumeration;
    assignments are validated.
    """

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    hfpstate: HfpState = HfpState.INVALID
    connect_state: HfpConnectState = HfpConnectState.INVALID
    connect_address: str | None = None
    connect_name: str | None = None
    service: HfpService = HfpService.ACTIVE
    call: HfpCall = HfpCall.INACTIVE
    setup: HfpSetup = HfpSetup.NONE
    held: HfpHeld = HfpHeld.NONE
    audio: HfpAudio = HfpAudio.OFF

    @model_validator(mode="before")
    @classmethod
    def _clean_nulls(cls, values: Any) -> Any:
        return _drop_null_enums(values)

    def merge(self, patch: StateFilter) -> None:
        """Overwrite the fields *patch* defines; keep all others."""
        for name, value in patch.defined_fields().items():
            setattr(self, name, value)


class StateFilter(BaseModel):
    """A partial :class:`StateVector`.

    A field is *defined* when it was present in the source mapping (an
    explicit ``null`` address counts). Undefined fields are wildcards.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    hfpstate: HfpState | None = None
    connect_state: HfpConnectState | None = None
    connect_address: str | None = None
    connect_name: str | None = None
    service: HfpService | None = None
    call: HfpCall | None = None
    setup: HfpSetup | None = None
    held: HfpHeld | None = None
    audio: HfpAudio | None = None

    @model_validator(mode="before")
    @classmethod
    def _clean_nulls(cls, values: Any) -> Any:
        return _drop_null_enums(values)

    def defined_fields(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}

    def is_empty(self) -> bool:
        return not self.model_fields_set


def matches(vector: StateVector | StateFilter, state_filter: StateFilter) -> bool:
    """Return ``True`` when every defined field of *state_filter* equals *vector*.

    An empty filter matches any vector. When *vector* is itself partial,
    a field it leaves undefined never equals a defined filter field.
    """
    partial = isinstance(vector, StateFilter)
    for name, expected in state_filter.defined_fields().items():
        if partial and name not in vector.model_fields_set:
            return False
        if getattr(vector, name) != expected:
            return False
    return True


# ------------------------------------------------------------------
# Rules
# ------------------------------------------------------------------


class OutflowEvent(BaseModel):
    """Semantic event raised when a rule's filter matches."""

    model_config = ConfigDict(frozen=True)

    type: HfpEventType
    state: RadioState | ConnectionState | CallState

    @model_validator(mode="before")
    @classmethod
    def _coerce_state(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        try:
            event_type = HfpEventType(merged.get("type"))
        except ValueError:
            return merged
        enum_cls = _EVENT_STATE_ENUMS[event_type]
        state = merged.get("state")
        if state is not None and not isinstance(state, enum_cls):
            try:
                merged["state"] = enum_cls(state)
            except ValueError as exc:
                raise ValueError(f"{state!r} is not a valid state for {event_type.value}") from exc
        return merged

    @model_validator(mode="after")
    def _check_state_kind(self) -> OutflowEvent:
        expected = _EVENT_STATE_ENUMS[self.type]
        if not isinstance(self.state, expected):
            raise ValueError(f"{self.state!r} is not a valid state for {self.type.value}")
        return self


class StateRule(BaseModel):
    """Pairs an inflow :class:`StateFilter` with the :class:`OutflowEvent` it raises."""

    model_config = ConfigDict(frozen=True)

    inflow: StateFilter
    outflow: OutflowEvent


class ConnectedDevice(BaseModel):
    """Remote device currently connected over HFP."""

    model_config = ConfigDict(frozen=True)

    address: str | None
    name: str | None
