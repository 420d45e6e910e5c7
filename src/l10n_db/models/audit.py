"""Append-only audit event model."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Index, String, event
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, Session, mapped_column

from ..base import Base, StringPrimaryKeyMixin, utc_now
from ..types import UTCDateTime


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    IMPORT = "import"
    EXPORT = "export"


class AuditEntityType(str, Enum):
    SERVICE = "service"
    KEY = "l10n_key"
    TRANSLATION = "translation"
    RELEASE_BUNDLE = "release_bundle"


class EventImmutableError(RuntimeError):
    """Raised when a flush would modify or delete a recorded event."""


class Event(StringPrimaryKeyMixin, Base):
    """Immutable record of one mutation (or import/export summary)."""

    __tablename__ = "event"

    actor: Mapped[str] = mapped_column(String(255), nullable=False)
    action: Mapped[AuditAction] = mapped_column(
        SAEnum(
            AuditAction,
            name="audit_action",
            native_enum=False,
            length=20,
            values_callable=_enum_values,
        ),
        nullable=False,
    )
    entity_type: Mapped[AuditEntityType] = mapped_column(
        SAEnum(
            AuditEntityType,
            name="audit_entity_type",
            native_enum=False,
            length=40,
            values_callable=_enum_values,
        ),
        nullable=False,
    )
    entity_id: Mapped[str] = mapped_column(String(255), nullable=False)
    before: Mapped[dict[str, Any] | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    after: Mapped[dict[str, Any] | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)

    __table_args__ = (
        Index("ix_event_entity", "entity_type", "entity_id"),
        Index("ix_event_created_at", "created_at"),
        Index("ix_event_actor", "actor"),
    )


@event.listens_for(Session, "before_flush")
def _reject_event_mutation(session: Session, _flush_context: Any, _instances: Any) -> None:
    for obj in session.deleted:
        if isinstance(obj, Event):
            raise EventImmutableError(f"Audit event {obj.id} cannot be deleted")
    for obj in session.dirty:
        if isinstance(obj, Event) and session.is_modified(obj):
            raise EventImmutableError(f"Audit event {obj.id} cannot be modified")


__all__ = ["AuditAction", "AuditEntityType", "Event", "EventImmutableError"]
