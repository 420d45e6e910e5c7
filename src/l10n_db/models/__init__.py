"""ORM models for the localization catalog and its audit trail."""

from .audit import AuditAction, AuditEntityType, Event, EventImmutableError
from .catalog import (
    SUPPORTED_LOCALES,
    ContentStatus,
    L10nKey,
    Namespace,
    ReleaseBundle,
    Service,
    ServiceOwner,
    Translation,
    compute_checksum,
)

__all__ = [
    "SUPPORTED_LOCALES",
    "AuditAction",
    "AuditEntityType",
    "ContentStatus",
    "Event",
    "EventImmutableError",
    "L10nKey",
    "Namespace",
    "ReleaseBundle",
    "Service",
    "ServiceOwner",
    "Translation",
    "compute_checksum",
]
