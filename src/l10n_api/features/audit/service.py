"""Recording and querying audit events."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from l10n_api.common.logging import log_context
from l10n_db.base import new_id, utc_now
from l10n_db.models import AuditAction, AuditEntityType, Event, EventImmutableError

from .redaction import DEFAULT_REDACTION_CONFIG, RedactionConfig, redact

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = timedelta(days=30)
MAX_WINDOW = timedelta(days=90)
MAX_PAGE_SIZE = 100


class AuditWriteError(RuntimeError):
    """Raised when an audit event cannot be recorded; the transaction must abort."""


class AuditEventShapeError(AuditWriteError):
    """Raised when before/after snapshots do not fit the action."""


class EventQueryError(ValueError):
    """Raised when event listing parameters are invalid."""


@dataclass(slots=True)
class EventFilters:
    entity_type: AuditEntityType | None = None
    entity_id: str | None = None
    actor: str | None = None
    action: AuditAction | None = None
    start: datetime | None = None
    end: datetime | None = None


@dataclass(slots=True)
class EventPage:
    """Container for a page of redacted audit events."""

    items: list[dict[str, Any]]
    total: int
    limit: int
    offset: int
    start: datetime
    end: datetime


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _canonical_snapshot(snapshot: dict[str, Any] | None) -> dict[str, Any] | None:
    if snapshot is None:
        return None
    # Sorted keys keep identical snapshots byte-identical once stored.
    serialised = json.dumps(snapshot, sort_keys=True, separators=(",", ":"), default=str)
    return json.loads(serialised)


def validate_event_shape(
    action: AuditAction,
    before: dict[str, Any] | None,
    after: dict[str, Any] | None,
) -> None:
    if action is AuditAction.CREATE and (before is not None or after is None):
        raise AuditEventShapeError("create events carry an 'after' snapshot only")
    if action is AuditAction.DELETE and (before is None or after is not None):
        raise AuditEventShapeError("delete events carry a 'before' snapshot only")
    if action is AuditAction.UPDATE and (before is None or after is None):
        raise AuditEventShapeError("update events carry both 'before' and 'after'")
    if action in (AuditAction.IMPORT, AuditAction.EXPORT) and after is None:
        raise AuditEventShapeError(f"{action.value} events carry an 'after' summary")


def resolve_window(
    start: datetime | None,
    end: datetime | None,
    *,
    now: datetime | None = None,
    default_window: timedelta = DEFAULT_WINDOW,
    max_window: timedelta = MAX_WINDOW,
) -> tuple[datetime, datetime]:
    """Return the ``[start, end]`` range a listing covers.

    Without bounds the last ``default_window`` is used; a lone ``start`` runs
    to ``now`` and a lone ``end`` reaches back ``default_window``.
    """

    current = _as_utc(now or utc_now())
    resolved_start = _as_utc(start) if start is not None else None
    resolved_end = _as_utc(end) if end is not None else None

    if resolved_start is None and resolved_end is None:
        return current - default_window, current
    if resolved_start is None:
        resolved_start = resolved_end - default_window
    elif resolved_end is None:
        resolved_end = max(current, resolved_start)

    if resolved_start >= resolved_end:
        raise EventQueryError("start must be before end")
    if resolved_end - resolved_start > max_window:
        raise EventQueryError(f"date range must not exceed {max_window.days} days")
    return resolved_start, resolved_end


def serialize_event(event: Event) -> dict[str, Any]:
    return {
        "id": event.id,
        "actor": event.actor,
        "action": AuditAction(event.action).value,
        "entityType": AuditEntityType(event.entity_type).value,
        "entityId": event.entity_id,
        "before": event.before,
        "after": event.after,
        "createdAt": event.created_at,
    }


class AuditService:
    """Append-only audit trail bound to the caller's session."""

    def __init__(
        self,
        *,
        session: Session,
        redaction_config: RedactionConfig = DEFAULT_REDACTION_CONFIG,
        default_window: timedelta = DEFAULT_WINDOW,
        max_window: timedelta = MAX_WINDOW,
        slow_query_ms: int = 300,
    ) -> None:
        self._session = session
        self._redaction_config = redaction_config
        self._default_window = default_window
        self._max_window = max_window
        self._slow_query_ms = slow_query_ms

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------

    def log_event(
        self,
        *,
        actor: str,
        action: AuditAction,
        entity_type: AuditEntityType,
        entity_id: str,
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
    ) -> str:
        """Record one event in the current transaction and return its id."""

        action = AuditAction(action)
        entity_type = AuditEntityType(entity_type)
        validate_event_shape(action, before, after)

        event = Event(
            id=new_id(),
            actor=actor,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            before=_canonical_snapshot(before),
            after=_canonical_snapshot(after),
            created_at=utc_now(),
        )
        self._session.add(event)
        try:
            self._session.flush([event])
        except (SQLAlchemyError, EventImmutableError) as exc:
            logger.exception(
                "audit.event.write_failed",
                extra=log_context(
                    action=action.value,
                    entity_type=entity_type.value,
                    entity_id=entity_id,
                ),
            )
            raise AuditWriteError(
                f"Failed to record {action.value} event for {entity_type.value} {entity_id}"
            ) from exc

        logger.debug(
            "audit.event.recorded",
            extra=log_context(
                event_id=event.id,
                action=action.value,
                entity_type=entity_type.value,
                entity_id=entity_id,
                actor=actor,
            ),
        )
        return event.id

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def _apply_filters(self, statement: Select, filters: EventFilters) -> Select:
        if filters.entity_type is not None:
            statement = statement.where(Event.entity_type == AuditEntityType(filters.entity_type))
        if filters.entity_id:
            statement = statement.where(Event.entity_id == filters.entity_id)
        if filters.actor:
            statement = statement.where(Event.actor == filters.actor)
        if filters.action is not None:
            statement = statement.where(Event.action == AuditAction(filters.action))
        return statement

    def list_events(
        self,
        filters: EventFilters | None = None,
        *,
        limit: int = 50,
        offset: int = 0,
        now: datetime | None = None,
    ) -> EventPage:
        """Return a page of events, newest first, with snapshots redacted."""

        filters = filters or EventFilters()
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise EventQueryError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if offset < 0:
            raise EventQueryError("offset must not be negative")

        start, end = resolve_window(
            filters.start,
            filters.end,
            now=now,
            default_window=self._default_window,
            max_window=self._max_window,
        )

        base = self._apply_filters(select(Event), filters).where(
            Event.created_at >= start,
            Event.created_at <= end,
        )
        count_stmt = select(func.count()).select_from(base.order_by(None).subquery())
        page_stmt = (
            base.order_by(Event.created_at.desc(), Event.id.desc()).limit(limit).offset(offset)
        )

        started = time.perf_counter()
        total = int(self._session.execute(count_stmt).scalar_one())
        events = list(self._session.execute(page_stmt).scalars())
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        if elapsed_ms > self._slow_query_ms:
            logger.warning(
                "audit.events.slow_query",
                extra=log_context(
                    duration_ms=round(elapsed_ms, 2),
                    limit=limit,
                    offset=offset,
                    total=total,
                ),
            )

        items = [redact(serialize_event(event), self._redaction_config) for event in events]
        return EventPage(
            items=items,
            total=total,
            limit=limit,
            offset=offset,
            start=start,
            end=end,
        )


__all__ = [
    "AuditEventShapeError",
    "AuditService",
    "AuditWriteError",
    "EventFilters",
    "EventPage",
    "EventQueryError",
    "resolve_window",
    "serialize_event",
    "validate_event_shape",
]
