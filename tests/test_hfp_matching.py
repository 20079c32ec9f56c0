"""Tests for HFP state filters, the match predicate and state merging."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from pyyoda.models.hfp import (
    HfpAudio,
    HfpCall,
    HfpConnectState,
    HfpService,
    HfpState,
    StateFilter,
    StateVector,
    matches,
)


class TestStateVector:
    def test_defaults(self) -> None:
        state = StateVector()
        assert state.hfpstate == HfpState.INVALID
        assert state.connect_state == HfpConnectState.INVALID
        assert state.connect_address is None
        assert state.connect_name is None
        assert state.service == HfpService.ACTIVE
        assert state.call == HfpCall.INACTIVE
        assert state.setup == "none"
        assert state.held == "none"
        assert state.audio == HfpAudio.OFF

    def test_merge_overwrites_only_defined_fields(self) -> None:
        state = StateVector()
        state.merge(StateFilter.model_validate({"hfpstate": "opened", "audio": "on"}))
        assert state.hfpstate == HfpState.OPENED
        assert state.audio == HfpAudio.ON
        assert state.connect_state == HfpConnectState.INVALID
        assert state.service == HfpService.ACTIVE

    def test_merge_keeps_explicit_null_address(self) -> None:
        state = StateVector(connect_address="AA:BB:CC:DD:EE:FF", connect_name="Phone")
        state.merge(StateFilter.model_validate({"connect_address": None}))
        assert state.connect_address is None
        assert state.connect_name == "Phone"

    def test_invalid_assignment_rejected(self) -> None:
        state = StateVector()
        with pytest.raises(ValidationError):
            state.hfpstate = "exploded"  # type: ignore[assignment]


class TestStateFilter:
    def test_ignores_non_state_keys(self) -> None:
        state_filter = StateFilter.model_validate({"action": "stateupdate", "call": "active"})
        assert state_filter.defined_fields() == {"call": HfpCall.ACTIVE}

    def test_null_enum_is_undefined(self) -> None:
        state_filter = StateFilter.model_validate({"hfpstate": None, "connect_name": None})
        assert set(state_filter.defined_fields()) == {"connect_name"}

    def test_unknown_value_rejected(self) -> None:
        with pytest.raises(ValidationError):
            StateFilter.model_validate({"setup": "ringing"})

    def test_empty(self) -> None:
        assert StateFilter().is_empty()
        assert not StateFilter(audio=HfpAudio.ON).is_empty()


class TestMatches:
    def test_empty_filter_matches_every_vector(self) -> None:
        assert matches(StateVector(), StateFilter())
        assert matches(StateVector(hfpstate=HfpState.CLOSED, call=HfpCall.ACTIVE), StateFilter())
        assert matches(StateFilter(), StateFilter())

    @pytest.mark.parametrize(
        ("state_filter", "expected"),
        [
            ({"hfpstate": "opened"}, True),
            ({"hfpstate": "closed"}, False),
            ({"hfpstate": "opened", "connect_state": "connected"}, True),
            ({"hfpstate": "opened", "connect_state": "disconnected"}, False),
            ({"connect_address": "AA:BB:CC:DD:EE:FF"}, True),
            ({"connect_name": None}, False),
        ],
    )
    def test_every_defined_field_must_equal(self, state_filter: dict[str, object], expected: bool) -> None:
        vector = StateVector(
            hfpstate=HfpState.OPENED,
            connect_state=HfpConnectState.CONNECTED,
            connect_address="AA:BB:CC:DD:EE:FF",
            connect_name="Phone",
        )
        assert matches(vector, StateFilter.model_validate(state_filter)) is expected

    def test_partial_vector_does_not_match_missing_field(self) -> None:
        payload = StateFilter.model_validate({"hfpstate": "opened"})
        assert matches(payload, StateFilter.model_validate({"hfpstate": "opened"}))
        assert not matches(payload, StateFilter.model_validate({"call": "inactive"}))
        assert not matches(payload, StateFilter.model_validate({"hfpstate": "opened", "audio": "off"}))

    def test_partial_vector_null_address_is_not_absent(self) -> None:
        rule = StateFilter.model_validate({"connect_address": None})
        assert matches(StateFilter.model_validate({"connect_address": None}), rule)
        assert not matches(StateFilter.model_validate({"connect_state": "connected"}), rule)
