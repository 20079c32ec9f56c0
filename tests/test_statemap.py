from __future__ import annotations

import json
from pathlib import Path

import pytest

from pyyoda.bluetooth.statemap import load_state_rules, parse_state_rules
from pyyoda.exceptions import YodaConfigError
from pyyoda.models.hfp import (
    CallState,
    ConnectionState,
    HfpEventType,
    RadioState,
    StateFilter,
    matches,
)


def _events_for(payload: dict[str, str]) -> list[tuple[HfpEventType, object]]:
    update = StateFilter.model_validate(payload)
    return [(rule.outflow.type, rule.outflow.state) for rule in load_state_rules() if matches(update, rule.inflow)]


def test_packaged_table_loads_in_order() -> None:
    rules = load_state_rules()
    assert rules
    assert rules[0].inflow.defined_fields() == {"hfpstate": "opened"}
    assert rules[0].outflow.type == HfpEventType.RADIO_STATE_CHANGED
    assert rules[0].outflow.state == RadioState.ON


def test_packaged_rules_are_never_empty_filters() -> None:
    for rule in load_state_rules():
        assert not rule.inflow.is_empty()


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"hfpstate": "opened"}, [(HfpEventType.RADIO_STATE_CHANGED, RadioState.ON)]),
        ({"hfpstate": "open_failed"}, [(HfpEventType.RADIO_STATE_CHANGED, RadioState.ON_FAILED)]),
        ({"hfpstate": "closed"}, [(HfpEventType.RADIO_STATE_CHANGED, RadioState.OFF)]),
        ({"connect_state": "connected"}, [(HfpEventType.CONNECTION_STATE_CHANGED, ConnectionState.CONNECTED)]),
        (
            {"connect_state": "disconnected"},
            [(HfpEventType.CONNECTION_STATE_CHANGED, ConnectionState.DISCONNECTED)],
        ),
        (
            {"connect_state": "connect_failed"},
            [(HfpEventType.CONNECTION_STATE_CHANGED, ConnectionState.CONNECT_FAILED)],
        ),
        ({"call": "active"}, [(HfpEventType.CALL_STATE_CHANGED, CallState.OFFHOOK)]),
        ({"call": "inactive"}, [(HfpEventType.CALL_STATE_CHANGED, CallState.IDLE)]),
        ({"setup": "incoming"}, [(HfpEventType.CALL_STATE_CHANGED, CallState.INCOMING)]),
        ({"setup": "outgoing"}, [(HfpEventType.CALL_STATE_CHANGED, CallState.OUTGOING)]),
        ({"setup": "alerting"}, [(HfpEventType.CALL_STATE_CHANGED, CallState.ALERTING)]),
        ({"held": "hold"}, [(HfpEventType.CALL_STATE_CHANGED, CallState.HELD)]),
        ({"audio": "on"}, [(HfpEventType.CALL_STATE_CHANGED, CallState.AUDIO_ON)]),
        ({"audio": "off"}, [(HfpEventType.CALL_STATE_CHANGED, CallState.AUDIO_OFF)]),
        ({"service": "inactive"}, []),
    ],
)
def test_packaged_table_mapping(payload: dict[str, str], expected: list[tuple[HfpEventType, object]]) -> None:
    assert _events_for(payload) == expected


def test_load_from_file(tmp_path: Path) -> None:
    path = tmp_path / "statemap.json"
    path.write_text(
        json.dumps(
            [
                {"inflow": {"hfpstate": "opened"}, "outflow": {"type": "radio_state_changed", "state": "on"}},
                {"inflow": {"held": "hold"}, "outflow": {"type": "call_state_changed", "state": "held"}},
            ]
        )
    )

    rules = load_state_rules(path)

    assert [rule.outflow.state for rule in rules] == [RadioState.ON, CallState.HELD]


@pytest.mark.parametrize(
    "entries",
    [
        [{"inflow": {"hfp_state": "opened"}, "outflow": {"type": "radio_state_changed", "state": "on"}}],
        [{"inflow": {"hfpstate": "opened"}, "outflow": {"type": "radio_state_changed", "state": "connected"}}],
        [{"inflow": {"hfpstate": "opened"}, "outflow": {"type": "volume_changed", "state": "on"}}],
        [{"inflow": {"hfpstate": "half_open"}, "outflow": {"type": "radio_state_changed", "state": "on"}}],
        [{"outflow": {"type": "radio_state_changed", "state": "on"}}],
        ["not-an-object"],
    ],
)
def test_invalid_rules_rejected(entries: list[object]) -> None:
    with pytest.raises(YodaConfigError):
        parse_state_rules(entries)  # type: ignore[arg-type]


def test_load_missing_or_broken_file(tmp_path: Path) -> None:
    with pytest.raises(YodaConfigError):
        load_state_rules(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{")
    with pytest.raises(YodaConfigError):
        load_state_rules(broken)

    not_a_list = tmp_path / "object.json"
    not_a_list.write_text('{"inflow": {}}')
    with pytest.raises(YodaConfigError):
        load_state_rules(not_a_list)


def test_full_vector_payload_matches_every_single_field_rule() -> None:
    payload = {"hfpstate": "opened", "connect_state": "connected", "call": "inactive", "audio": "off"}

    assert _events_for(payload) == [
        (HfpEventType.RADIO_STATE_CHANGED, RadioState.ON),
        (HfpEventType.CONNECTION_STATE_CHANGED, ConnectionState.CONNECTED),
        (HfpEventType.CALL_STATE_CHANGED, CallState.IDLE),
        (HfpEventType.CALL_STATE_CHANGED, CallState.AUDIO_OFF),
    ]


def test_multi_field_table_narrows_full_vector_payloads(tmp_path: Path) -> None:
    path = tmp_path / "statemap.json"
    path.write_text(
        json.dumps(
            [
                {
                    "inflow": {"hfpstate": "opened", "connect_state": "connected", "call": "active"},
                    "outflow": {"type": "call_state_changed", "state": "offhook"},
                },
                {
                    "inflow": {"hfpstate": "opened", "connect_state": "connected", "call": "inactive"},
                    "outflow": {"type": "call_state_changed", "state": "idle"},
                },
            ]
        )
    )
    rules = load_state_rules(path)
    update = StateFilter.model_validate(
        {"hfpstate": "opened", "connect_state": "connected", "call": "active", "audio": "on"}
    )

    hits = [rule.outflow.state for rule in rules if matches(update, rule.inflow)]

    assert hits == [CallState.OFFHOOK]
