"""PII redaction applied to audit payloads at read time.

Redaction is pure: inputs are never mutated and a fresh structure is
returned. Rules, per field:

1. A sensitive field name (not whitelisted) replaces the whole value.
2. Strings longer than ``max_value_length`` are replaced by a length marker.
3. Known PII patterns inside strings are replaced by category markers.

Emitted markers are never rescanned and do not count toward the length limit;
a value that is exactly a length marker is kept as is. Together these give
``redact(redact(x)) == redact(x)``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any, Final

# Order matters: longer structured matches run before the looser ones.
PII_PATTERNS: Final[dict[str, re.Pattern[str]]] = {
    "email": re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
    "url_with_params": re.compile(r"https?://[^\s\[\]]+[?&][^=\s\[\]]+=[^&\s\[\]]+\S*"),
    "credit_card": re.compile(r"\b(?:\d{4}[-\s]?){3}\d{4}\b"),
    "ssn": re.compile(r"\b\d{3}-?\d{2}-?\d{4}\b"),
    "phone": re.compile(r"(?:\+?1[-.\s]?)?\(?\b\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b"),
    "ipv4": re.compile(
        r"\b(?:(?:25[0-5]|2[0-4]\d|[01]?\d\d?)\.){3}(?:25[0-5]|2[0-4]\d|[01]?\d\d?)\b"
    ),
    "api_key": re.compile(r"\b[A-Za-z0-9]{20,}\b"),
}

PATTERN_MARKERS: Final[dict[str, str]] = {
    name: f"[{name.replace('_', '').upper()}_REDACTED]" for name in PII_PATTERNS
}
CUSTOM_MARKER: Final = "[CUSTOM_PII_REDACTED]"
SENSITIVE_FIELD_MARKER: Final = "[REDACTED: sensitive field name]"

SENSITIVE_FIELD_NAMES: Final[tuple[str, ...]] = (
    "password",
    "secret",
    "token",
    "key",
    "api_key",
    "apikey",
    "auth",
    "authorization",
    "credential",
    "private",
    "confidential",
)

DEFAULT_WHITELIST_FIELDS: Final[tuple[str, ...]] = (
    "id",
    "status",
    "version",
    "locale",
    "created_at",
    "updated_at",
)

# Only the exact strings this module emits are markers; look-alikes in user
# text are scanned like any other text.
_MARKER_RE: Final = re.compile(
    "|".join(
        re.escape(marker)
        for marker in (*PATTERN_MARKERS.values(), CUSTOM_MARKER, SENSITIVE_FIELD_MARKER)
    )
)
_LENGTH_MARKER_RE: Final = re.compile(r"\[REDACTED: \d+ characters - exceeds \d+ chars\]")


@dataclass(frozen=True, slots=True)
class RedactionConfig:
    max_value_length: int = 100
    enable_pattern_detection: bool = True
    enable_field_name_detection: bool = True
    custom_patterns: tuple[re.Pattern[str], ...] = ()
    whitelist_fields: tuple[str, ...] = DEFAULT_WHITELIST_FIELDS


DEFAULT_REDACTION_CONFIG: Final = RedactionConfig()


def create_redaction_config(**overrides: Any) -> RedactionConfig:
    """Return the default config with ``overrides`` applied.

    ``custom_patterns`` may be given as strings or compiled patterns.
    """

    patterns = overrides.get("custom_patterns")
    if patterns is not None:
        compiled = tuple(p if isinstance(p, re.Pattern) else re.compile(p) for p in patterns)
        for pattern in compiled:
            if pattern.fullmatch(""):
                raise ValueError(f"Custom pattern {pattern.pattern!r} matches the empty string")
        overrides["custom_patterns"] = compiled
    whitelist = overrides.get("whitelist_fields")
    if whitelist is not None:
        overrides["whitelist_fields"] = tuple(str(name).lower() for name in whitelist)
    return replace(DEFAULT_REDACTION_CONFIG, **overrides)


# ---------------------------------------------------------------------------
# Field and string rules
# ---------------------------------------------------------------------------


def is_sensitive_field(name: str, config: RedactionConfig = DEFAULT_REDACTION_CONFIG) -> bool:
    if not config.enable_field_name_detection:
        return False
    lowered = name.lower()
    if lowered in config.whitelist_fields:
        return False
    return any(token in lowered for token in SENSITIVE_FIELD_NAMES)


def _split_markers(value: str) -> list[tuple[str, bool]]:
    """Split ``value`` into ``(segment, is_marker)`` runs."""

    parts: list[tuple[str, bool]] = []
    cursor = 0
    for match in _MARKER_RE.finditer(value):
        if match.start() > cursor:
            parts.append((value[cursor : match.start()], False))
        parts.append((match.group(0), True))
        cursor = match.end()
    if cursor < len(value):
        parts.append((value[cursor:], False))
    return parts


def _unredacted_length(value: str) -> int:
    return sum(len(segment) for segment, is_marker in _split_markers(value) if not is_marker)


def _replace_outside_markers(value: str, pattern: re.Pattern[str], marker: str) -> str:
    return "".join(
        segment if is_marker else pattern.sub(marker, segment)
        for segment, is_marker in _split_markers(value)
    )


def redact_string(value: str, config: RedactionConfig = DEFAULT_REDACTION_CONFIG) -> str:
    if _LENGTH_MARKER_RE.fullmatch(value):
        return value
    length = _unredacted_length(value)
    if config.max_value_length > 0 and length > config.max_value_length:
        return f"[REDACTED: {length} characters - exceeds {config.max_value_length} chars]"

    if not config.enable_pattern_detection:
        return value

    # Repeat until stable; each round only shrinks the unredacted text.
    previous = None
    redacted = value
    while redacted != previous:
        previous = redacted
        for name, pattern in PII_PATTERNS.items():
            redacted = _replace_outside_markers(redacted, pattern, PATTERN_MARKERS[name])
        for pattern in config.custom_patterns:
            redacted = _replace_outside_markers(redacted, pattern, CUSTOM_MARKER)
    return redacted


def redact_value(value: Any, config: RedactionConfig = DEFAULT_REDACTION_CONFIG) -> Any:
    """Recursively redact ``value``; dict keys drive the field-name rule."""

    if isinstance(value, str):
        return redact_string(value, config)
    if isinstance(value, Mapping):
        result: dict[str, Any] = {}
        for key, item in value.items():
            if is_sensitive_field(str(key), config):
                result[key] = SENSITIVE_FIELD_MARKER
            else:
                result[key] = redact_value(item, config)
        return result
    if isinstance(value, (list, tuple)):
        return [redact_value(item, config) for item in value]
    return value


# ---------------------------------------------------------------------------
# Event records
# ---------------------------------------------------------------------------


def _load_snapshot(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    return value


def redact(
    event_record: Mapping[str, Any],
    config: RedactionConfig = DEFAULT_REDACTION_CONFIG,
) -> dict[str, Any]:
    """Return a copy of ``event_record`` with ``before``/``after`` redacted."""

    redacted = dict(event_record)
    for field_name in ("before", "after"):
        snapshot = redacted.get(field_name)
        if snapshot is None:
            continue
        redacted[field_name] = redact_value(_load_snapshot(snapshot), config)
    return redacted


def contains_pii(text: str, patterns: Iterable[re.Pattern[str]] | None = None) -> bool:
    checks = list(patterns) if patterns is not None else list(PII_PATTERNS.values())
    segments = [segment for segment, is_marker in _split_markers(text) if not is_marker]
    return any(pattern.search(segment) for pattern in checks for segment in segments)


def validate_redaction(original: str, redacted: str) -> bool:
    """True when ``redacted`` carries no detectable PII and differs where needed."""

    if contains_pii(redacted):
        return False
    if contains_pii(original) and original == redacted:
        return False
    return True


__all__ = [
    "CUSTOM_MARKER",
    "DEFAULT_REDACTION_CONFIG",
    "PATTERN_MARKERS",
    "PII_PATTERNS",
    "SENSITIVE_FIELD_MARKER",
    "SENSITIVE_FIELD_NAMES",
    "RedactionConfig",
    "contains_pii",
    "create_redaction_config",
    "is_sensitive_field",
    "redact",
    "redact_string",
    "redact_value",
    "validate_redaction",
]
