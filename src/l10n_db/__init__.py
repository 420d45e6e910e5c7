"""Database schema + migrations for the localization service."""

from .base import (
    NAMING_CONVENTION,
    Base,
    StringPrimaryKeyMixin,
    TimestampMixin,
    metadata,
    new_id,
    utc_now,
)
from .settings import Settings, get_settings, reload_settings
from .types import StringSet, UTCDateTime

__all__ = [
    "Base",
    "metadata",
    "NAMING_CONVENTION",
    "StringSet",
    "UTCDateTime",
    "StringPrimaryKeyMixin",
    "TimestampMixin",
    "new_id",
    "utc_now",
    "Settings",
    "get_settings",
    "reload_settings",
]
