"""Bluetooth hands-free profile adapter.

Tracks the stack's HFP state from ``bluetooth.hfp.event`` bus messages,
drops unchanged updates, and raises semantic events through a local
:class:`~pyyoda._events.EventRegistry`:

* ``radio_state_changed`` with a :class:`RadioState`
* ``connection_state_changed`` with a :class:`ConnectionState`
* ``call_state_changed`` with a :class:`CallState`

Commands go out on ``bluetooth.hfp.command`` and are fire-and-forget:
callers observe the resulting state events instead of a return value.
"""

from __future__ import annotations

import asyncio
import enum
import json
import logging
from collections.abc import Callable, Sequence
from typing import Any

from pydantic import ValidationError

from pyyoda._bus import MessageBus, MessageType
from pyyoda._constants import HFP_COMMAND_TOPIC, HFP_DESTROY_GRACE_SECONDS, HFP_EVENT_TOPIC
from pyyoda._events import EventRegistry, Listener
from pyyoda.bluetooth.statemap import load_state_rules
from pyyoda.config import YodaConfig
from pyyoda.exceptions import YodaBusError
from pyyoda.models.hfp import (
    ConnectedDevice,
    HfpCall,
    HfpConnectState,
    HfpState,
    StateFilter,
    StateRule,
    StateVector,
    matches,
)

_logger = logging.getLogger(__name__)


class HfpCommand(enum.StrEnum):
    """``command`` values understood by the Bluetooth stack."""

    ON = "ON"
    OFF = "OFF"
    ANSWER_CALL = "ANSWERCALL"
    HANGUP = "HANGUP"
    DIALING = "DIALING"


def parse_event_message(fields: Sequence[Any]) -> dict[str, Any]:
    """Decode the JSON object carried in the first field of a bus message."""
    if not fields:
        raise YodaBusError("HFP event has no fields", topic=HFP_EVENT_TOPIC)
    first = fields[0]
    if isinstance(first, dict):
        return first
    if isinstance(first, (bytes, bytearray)):
        first = first.decode("utf-8", errors="replace")
    try:
        msg = json.loads(str(first))
    except json.JSONDecodeError as exc:
        raise YodaBusError(f"HFP event is not JSON: {exc}", topic=HFP_EVENT_TOPIC) from exc
    if not isinstance(msg, dict):
        raise YodaBusError("HFP event is not a JSON object", topic=HFP_EVENT_TOPIC)
    return msg


class BluetoothHfp:
    """Hands-free profile adapter bound to one message bus.

    Usage::

        bus = MqttBus(config)
        bus.start()
        hfp = BluetoothHfp("my-speaker", bus=bus)
        hfp.on("radio_state_changed", lambda state: print(state))
        hfp.open()

    Parameters
    ----------
    device_name : str
        Local device name advertised when the radio is opened.
    bus : MessageBus
        Bus owned by the caller. The adapter only adds and removes its
        own subscription.
    rules : sequence of StateRule, optional
        Ordered rule table. Defaults to the packaged table.
    grace_delay : float
        Seconds between ``close()`` and resource release in :meth:`destroy`.
    loop : asyncio.AbstractEventLoop, optional
        Loop used for the destroy timer. Defaults to the running loop.
    """

    def __init__(
        self,
        device_name: str,
        *,
        bus: MessageBus,
        rules: Sequence[StateRule] | None = None,
        grace_delay: float = HFP_DESTROY_GRACE_SECONDS,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.local_name = device_name
        self._bus = bus
        self._rules: tuple[StateRule, ...] = tuple(rules) if rules is not None else tuple(load_state_rules())
        self._grace_delay = grace_delay
        self._loop = loop
        self._state = StateVector()
        self._events = EventRegistry()
        self._destroy_handle: asyncio.TimerHandle | None = None
        self._terminated = False

        self._bus.subscribe(HFP_EVENT_TOPIC, self._on_event)

    @classmethod
    def from_config(cls, config: YodaConfig, bus: MessageBus, **kwargs: Any) -> BluetoothHfp:
        """Build an adapter from :class:`YodaConfig` (name, grace delay, rule file)."""
        kwargs.setdefault("grace_delay", config.hfp_destroy_grace)
        if "rules" not in kwargs and config.hfp_rules_path:
            kwargs["rules"] = load_state_rules(config.hfp_rules_path)
        return cls(config.device_name, bus=bus, **kwargs)

    # ------------------------------------------------------------------
    # Local listeners
    # ------------------------------------------------------------------

    def on(self, event_type: str, callback: Listener) -> Callable[[], None]:
        return self._events.on(event_type, callback)

    def once(self, event_type: str, callback: Listener) -> Callable[[], None]:
        return self._events.once(event_type, callback)

    def off(self, event_type: str, callback: Listener) -> None:
        self._events.off(event_type, callback)

    # ------------------------------------------------------------------
    # Bus events
    # ------------------------------------------------------------------

    def _on_event(self, fields: list[Any]) -> None:
        if self._terminated:
            _logger.warning("HFP event received after destroy, dropping")
            return
        try:
            msg = parse_event_message(fields)
        except YodaBusError:
            _logger.warning("Dropping malformed HFP event", exc_info=True)
            return

        action = msg.get("action")
        _logger.debug("on event(action:%s)", action)

        if action == "stateupdate":
            self._on_state_update(msg)
        elif action == "ring":
            # Ringing is signalled by the setup=incoming transition instead.
            return
        else:
            _logger.debug("Ignoring HFP event with action=%s", action)

    def _on_state_update(self, msg: dict[str, Any]) -> None:
        try:
            update = StateFilter.model_validate(msg)
        except ValidationError:
            _logger.warning("Dropping HFP state update with invalid values: %s", msg, exc_info=True)
            return

        last = self._state
        _logger.debug(
            "last: %s %s %s %s %s",
            last.hfpstate,
            last.connect_state,
            last.call,
            last.setup,
            last.audio,
        )
        _logger.debug("now:  %s", update.defined_fields())

        if matches(last, update):
            _logger.debug("Received same state, ignoring")
            return

        self._state.merge(update)

        hit = False
        for rule in self._rules:
            if matches(update, rule.inflow):
                event = rule.outflow
                _logger.debug("Match %s.%s", event.type, event.state)
                self._events.emit(event.type.value, event.state)
                hit = True
        if not hit:
            _logger.warning("Mismatch state %s, please check the state rules", update.defined_fields())

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _send(self, command: HfpCommand, params: dict[str, Any] | None = None) -> None:
        if self._terminated:
            raise YodaBusError("HFP adapter already destroyed", topic=HFP_COMMAND_TOPIC)
        data: dict[str, Any] = {"command": command.value}
        if params:
            data.update(params)
        self._bus.post(HFP_COMMAND_TOPIC, [json.dumps(data)], MessageType.INSTANT)

    def open(self) -> None:
        """Turn on the radio and start the hands-free profile.

        Listen for ``radio_state_changed`` with ``RadioState.ON`` or
        ``RadioState.ON_FAILED``.
        """
        _logger.debug("open()")
        self._send(HfpCommand.ON, {"name": self.local_name, "unique": False})

    def close(self) -> None:
        """Turn off the radio; ``RadioState.OFF`` follows."""
        _logger.debug("close(%s)", self._state.hfpstate)
        if self._state.hfpstate == HfpState.CLOSED:
            _logger.warning("close() while last state is already closed")
        self._send(HfpCommand.OFF)

    def answer(self) -> None:
        """Answer the incoming call."""
        _logger.debug("answer()")
        self._send(HfpCommand.ANSWER_CALL)

    def hangup(self) -> None:
        """Hang up the current call."""
        _logger.debug("hangup()")
        self._send(HfpCommand.HANGUP)

    def dial(self, number: str) -> None:
        """Place an outgoing call to *number* (passed through unvalidated)."""
        _logger.debug("dial(%s)", number)
        self._send(HfpCommand.DIALING, {"NUMBER": number})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def state(self) -> StateVector:
        """Copy of the last-known state."""
        return self._state.model_copy()

    @property
    def is_terminated(self) -> bool:
        return self._terminated

    def is_opened(self) -> bool:
        return self._state.hfpstate == HfpState.OPENED

    def is_connected(self) -> bool:
        return self._state.connect_state == HfpConnectState.CONNECTED

    def get_connected_device(self) -> ConnectedDevice | None:
        if not self.is_connected():
            return None
        return ConnectedDevice(address=self._state.connect_address, name=self._state.connect_name)

    def is_calling(self) -> bool:
        return self._state.call == HfpCall.ACTIVE

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def destroy(self) -> None:
        """Turn the radio off, then release the adapter after the grace delay.

        Events arriving before the delay elapses are still processed.
        Without a running event loop the adapter is released immediately.
        """
        if self._terminated or self._destroy_handle is not None:
            return

        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None

        try:
            self.close()
        finally:
            if loop is None:
                _logger.debug("No running loop, releasing HFP adapter now")
                self._terminate()
            else:
                self._destroy_handle = loop.call_later(self._grace_delay, self._terminate)

    def _terminate(self) -> None:
        self._destroy_handle = None
        if self._terminated:
            return
        self._events.remove_all_listeners()
        self._bus.unsubscribe(HFP_EVENT_TOPIC)
        self._terminated = True
        _logger.debug("HFP adapter released")
