from __future__ import annotations

import json

from pyyoda._redact import redact_auth_header, redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "event": "Voice.FINISHED",
        "secret": "s3cret",
        "key": "app-key",
        "nested": {"Authorization": "version=1;sign=ABC"},
    }

    redacted = redact_for_log(payload)
    assert redacted["event"] == "Voice.FINISHED"
    assert redacted["secret"] == "<redacted>"
    assert redacted["key"] == "<redacted>"
    assert redacted["nested"]["Authorization"] == "<redacted>"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_auth_header_masks_sign_and_key() -> None:
    header = "version=1;time=1700000000;sign=ABCDEF;key=app-key;device_id=D1;service=rest"
    assert redact_auth_header(header) == (
        "version=1;time=1700000000;sign=<redacted>;key=<redacted>;device_id=D1;service=rest"
    )


def test_redact_for_log_masks_inside_json_strings() -> None:
    redacted = redact_for_log({"extra": '{"voice": {"itemId": "i1"}, "token": "t"}'})
    assert json.loads(redacted["extra"]) == {"voice": {"itemId": "i1"}, "token": "<redacted>"}
    assert redact_for_log("{not json") == "{not json"
