"""Audit trail recording, querying and PII redaction."""

from .redaction import RedactionConfig, create_redaction_config, redact
from .service import AuditService, AuditWriteError, EventFilters, EventPage

__all__ = [
    "AuditService",
    "AuditWriteError",
    "EventFilters",
    "EventPage",
    "RedactionConfig",
    "create_redaction_config",
    "redact",
]
