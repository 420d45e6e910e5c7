"""SQLAlchemy custom column types.

- UTCDateTime: timezone-aware datetimes normalized to UTC.
- StringSet: a set of strings persisted as a sorted JSON list.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.types import JSON, DateTime, TypeDecorator

__all__ = ["StringSet", "UTCDateTime"]


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime normalized to UTC."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect):
        if value is None:
            return None
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=UTC)
            return value.astimezone(UTC)
        return value

    def process_result_value(self, value: Any, dialect):
        if value is None:
            return None
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=UTC)
            return value.astimezone(UTC)
        return value


class StringSet(TypeDecorator):
    """Unordered string collection stored as a deduplicated, sorted JSON array."""

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value: Iterable[str] | None, dialect):
        if value is None:
            return []
        return sorted({str(item) for item in value})

    def process_result_value(self, value: Any, dialect):
        if not value:
            return []
        return sorted({str(item) for item in value})
