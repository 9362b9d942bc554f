from __future__ import annotations

from datetime import UTC, datetime

from pystations._redact import redact_for_log


def test_redact_for_log_redacts_credentials_and_contact_details() -> None:
    payload = {
        "name": "Shell Maarif",
        "authorization": "Bearer abc",
        "idToken": "eyJ...",
        "password": "pw",
        "contact": {"email": "ops@example.com", "phone": "+212600000000"},
        "headers": [{"x-api-key": "k"}],
    }

    redacted = redact_for_log(payload)
    assert redacted["name"] == "Shell Maarif"
    assert redacted["authorization"] == "<redacted>"
    assert redacted["idToken"] == "<redacted>"
    assert redacted["password"] == "<redacted>"
    assert redacted["contact"] == {"email": "<redacted>", "phone": "<redacted>"}
    assert redacted["headers"] == [{"x-api-key": "<redacted>"}]


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"address": long_value}, max_string=10)
    assert redacted["address"].startswith("x" * 10)
    assert "<truncated>" in redacted["address"]


def test_redact_for_log_renders_timestamps_and_bytes() -> None:
    ts = datetime(2026, 1, 1, tzinfo=UTC)
    redacted = redact_for_log({"createdAt": ts, "blob": b"abc", "price": 12.5, "isActive": True})
    assert redacted == {
        "createdAt": "2026-01-01T00:00:00+00:00",
        "blob": "<bytes:3b>",
        "price": 12.5,
        "isActive": True,
    }
