from __future__ import annotations

from doorlock._redact import redact_for_log


def test_redact_for_log_redacts_certificate_fields() -> None:
    credential = {
        "certContent": "-----BEGIN CERTIFICATE-----",
        "certSign": "SIG",
        "deviceId": "front-door",
        "nested": {"token": "abc"},
    }

    redacted = redact_for_log(credential)
    assert redacted["certContent"] == "<redacted>"
    assert redacted["certSign"] == "<redacted>"
    assert redacted["deviceId"] == "front-door"
    assert redacted["nested"]["token"] == "<redacted>"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]
