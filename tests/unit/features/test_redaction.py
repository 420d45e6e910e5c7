from __future__ import annotations

import copy

import pytest

from l10n_api.features.audit.redaction import (
    CUSTOM_MARKER,
    SENSITIVE_FIELD_MARKER,
    contains_pii,
    create_redaction_config,
    is_sensitive_field,
    redact,
    redact_string,
    redact_value,
    validate_redaction,
)


def test_long_values_are_replaced_by_length_marker() -> None:
    assert redact_value({"value": "a" * 150}) == {
        "value": "[REDACTED: 150 characters - exceeds 100 chars]"
    }


def test_email_is_replaced_in_place() -> None:
    assert redact_value({"contact": "call support@x.com"}) == {
        "contact": "call [EMAIL_REDACTED]"
    }


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("call 555-123-4567 now", "call [PHONE_REDACTED] now"),
        ("card 4111 1111 1111 1111", "card [CREDITCARD_REDACTED]"),
        ("ssn 123-45-6789", "ssn [SSN_REDACTED]"),
        ("host 10.0.0.1 down", "host [IPV4_REDACTED] down"),
        ("see https://x.io/a?token=abc", "see [URLWITHPARAMS_REDACTED]"),
        ("use abcdefghij1234567890XYZ", "use [APIKEY_REDACTED]"),
        ("Welcome back", "Welcome back"),
    ],
)
def test_pattern_categories(text: str, expected: str) -> None:
    assert redact_string(text) == expected


def test_sensitive_field_names_win_over_other_rules() -> None:
    payload = {"password": "x" * 500, "apiToken": 42, "keyName": "home.title", "status": "draft"}

    assert redact_value(payload) == {
        "password": SENSITIVE_FIELD_MARKER,
        "apiToken": SENSITIVE_FIELD_MARKER,
        "keyName": SENSITIVE_FIELD_MARKER,
        "status": "draft",
    }


def test_whitelist_bypasses_field_name_rule_only() -> None:
    assert not is_sensitive_field("id")
    assert not is_sensitive_field("Locale")
    assert is_sensitive_field("client_secret")
    assert redact_value({"id": "z" * 101}) == {
        "id": "[REDACTED: 101 characters - exceeds 100 chars]"
    }


def test_structure_is_preserved_and_scalars_pass_through() -> None:
    payload = {
        "translations": [{"value": "mail a@b.co", "count": 3}, "plain", None],
        "enabled": True,
        "ratio": 0.5,
    }

    assert redact_value(payload) == {
        "translations": [{"value": "mail [EMAIL_REDACTED]", "count": 3}, "plain", None],
        "enabled": True,
        "ratio": 0.5,
    }


def test_redact_touches_only_snapshots_and_does_not_mutate() -> None:
    record = {
        "id": "evt-1",
        "actor": "ops@example.com",
        "before": None,
        "after": {"value": "ping ops@example.com", "tags": ["a@b.co"]},
    }
    original = copy.deepcopy(record)

    result = redact(record)

    assert record == original
    assert result["actor"] == "ops@example.com"
    assert result["before"] is None
    assert result["after"] == {
        "value": "ping [EMAIL_REDACTED]",
        "tags": ["[EMAIL_REDACTED]"],
    }


def test_snapshots_stored_as_json_text_are_decoded() -> None:
    result = redact({"before": '{"value": "a@b.co"}', "after": "not json"})

    assert result["before"] == {"value": "[EMAIL_REDACTED]"}
    assert result["after"] == "not json"


@pytest.mark.parametrize(
    "payload",
    [
        {"value": "a" * 150},
        {"contact": "call support@x.com or 555-123-4567"},
        {"secret": "s", "nested": {"ips": ["10.0.0.1", "card 4111-1111-1111-1111"]}},
        {"value": "[EMAIL_REDACTED] and [REDACTED: 12 characters - exceeds 5 chars]"},
    ],
)
def test_redaction_is_idempotent(payload: dict) -> None:
    once = redact_value(payload)

    assert redact_value(once) == once


def test_markers_do_not_count_toward_length() -> None:
    config = create_redaction_config(max_value_length=10)
    text = "hi [EMAIL_REDACTED]"

    assert redact_string(text, config) == text


def test_custom_patterns_and_toggles() -> None:
    config = create_redaction_config(custom_patterns=[r"INV-\d+"])
    assert redact_string("invoice INV-12345", config) == f"invoice {CUSTOM_MARKER}"

    no_patterns = create_redaction_config(enable_pattern_detection=False)
    assert redact_string("a@b.co", no_patterns) == "a@b.co"

    no_names = create_redaction_config(enable_field_name_detection=False)
    assert redact_value({"password": "hunter2"}, no_names) == {"password": "hunter2"}

    with pytest.raises(ValueError):
        create_redaction_config(custom_patterns=[r"x*"])


def test_contains_pii_and_validate_redaction() -> None:
    original = "write to a@b.co"
    redacted = redact_string(original)

    assert contains_pii(original)
    assert not contains_pii(redacted)
    assert validate_redaction(original, redacted)
    assert not validate_redaction(original, original)
    assert validate_redaction("hello", "hello")


def test_marker_lookalikes_in_user_text_are_still_scanned() -> None:
    result = redact({"after": {"value": "[REDACTED: alice@example.com]"}})

    assert result["after"]["value"] == "[REDACTED: [EMAIL_REDACTED]]"
    assert contains_pii("[REDACTED: alice@example.com]")
    assert contains_pii("[NOTE_REDACTED] alice@example.com")


def test_marker_lookalikes_count_toward_length() -> None:
    spoof = "[REDACTED: " + "x" * 300 + "]"

    assert redact_string(spoof) == "[REDACTED: 312 characters - exceeds 100 chars]"


def test_length_marker_is_kept_only_as_a_whole_value() -> None:
    config = create_redaction_config(max_value_length=10)
    marker = redact_string("a" * 40, config)

    assert marker == "[REDACTED: 40 characters - exceeds 10 chars]"
    assert redact_string(marker, config) == marker
    assert redact_string(f"see {marker}", config).startswith("[REDACTED: 48 characters")
