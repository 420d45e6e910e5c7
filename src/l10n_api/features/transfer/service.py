"""Bulk import reconciliation and service export.

``plan_import`` compares an incoming payload against the stored keys of one
service and reports the writes it implies without touching the session.
``apply_import`` executes exactly those writes, auditing each one, in the
caller's transaction. ``export_service`` produces the payload shape that
``plan_import`` consumes, so an unchanged export re-imports as an empty diff.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import FlushError

from l10n_api.common.logging import log_context
from l10n_db.base import new_id, utc_now
from l10n_db.models import (
    SUPPORTED_LOCALES,
    AuditAction,
    AuditEntityType,
    ContentStatus,
    L10nKey,
    Namespace,
    Service,
    Translation,
)

from ..audit.service import AuditService
from ..catalog.service import key_snapshot, translation_snapshot
from .schemas import (
    DiffChange,
    DiffReport,
    DiffSummary,
    ExportPayload,
    ImportResult,
    TransferData,
    TransferKey,
    TransferTranslation,
)

logger = logging.getLogger(__name__)


class TransferError(Exception):
    """Base class for import/export errors.

    ``errors`` holds ``(field path, message)`` pairs locating the bad input.
    """

    def __init__(self, message: str, *, errors: Sequence[tuple[str, str]] = ()) -> None:
        super().__init__(message)
        self.errors = list(errors)


class ImportValidationError(TransferError):
    """Raised when an import payload repeats entries or references missing rows."""


class ImportConflictError(TransferError):
    """Raised when an import write violates a constraint; nothing is kept."""


class ExportValidationError(TransferError):
    """Raised when export filters are invalid."""


def _status(value: Any) -> str:
    return ContentStatus(value).value


def _key_fields(key: L10nKey | TransferKey) -> dict[str, Any]:
    return {
        "keyName": key.key_name,
        "namespaceId": key.namespace_id,
        "tags": sorted(set(key.tags or [])),
        "status": _status(key.status),
    }


def _translation_fields(translation: Translation | TransferTranslation) -> dict[str, Any]:
    return {
        "value": translation.value,
        "status": _status(translation.status),
        "version": translation.version,
    }


@dataclass(slots=True, kw_only=True)
class PlannedWrite:
    """One write implied by an import."""

    key: TransferKey
    before: dict[str, Any] | None = None
    after: dict[str, Any] = field(default_factory=dict)

    @property
    def type(self) -> str:
        raise NotImplementedError

    @property
    def locale(self) -> str | None:
        return None

    def to_change(self) -> DiffChange:
        return DiffChange(
            type=self.type,
            key_id=self.key.id,
            key_name=self.key.key_name,
            locale=self.locale,
            before=self.before,
            after=self.after,
        )


@dataclass(slots=True, kw_only=True)
class KeyWrite(PlannedWrite):
    """Create ``key``, or update ``existing`` to match it."""

    existing: L10nKey | None = None

    @property
    def type(self) -> str:
        return "create_key" if self.existing is None else "update_key"


@dataclass(slots=True, kw_only=True)
class TranslationWrite(PlannedWrite):
    """Create ``translation`` under ``key``, or update ``existing`` to match it."""

    translation: TransferTranslation
    existing: Translation | None = None

    @property
    def type(self) -> str:
        return "create_translation" if self.existing is None else "update_translation"

    @property
    def locale(self) -> str | None:
        return self.translation.locale


@dataclass(slots=True)
class ImportPlan:
    writes: list[KeyWrite | TranslationWrite] = field(default_factory=list)

    def count(self, change_type: str) -> int:
        return sum(1 for write in self.writes if write.type == change_type)

    def to_report(self) -> DiffReport:
        return DiffReport(
            summary=DiffSummary(
                keys_to_create=self.count("create_key"),
                keys_to_update=self.count("update_key"),
                translations_to_create=self.count("create_translation"),
                translations_to_update=self.count("update_translation"),
            ),
            changes=[write.to_change() for write in self.writes],
        )


def parse_locales(raw: str | Iterable[str] | None) -> list[str] | None:
    """Split and validate a locale filter; ``None`` means every locale."""

    if raw is None:
        return None
    items = raw.split(",") if isinstance(raw, str) else list(raw)
    locales = [item.strip() for item in items if item and item.strip()]
    if not locales:
        return None
    invalid = sorted({locale for locale in locales if locale not in SUPPORTED_LOCALES})
    if invalid:
        message = (
            f"Invalid locales: {', '.join(invalid)}. "
            f"Valid locales: {', '.join(SUPPORTED_LOCALES)}"
        )
        raise ExportValidationError(message, errors=[("locales", message)])
    return sorted(set(locales))


class TransferService:
    """Import planning/application and export for one service at a time."""

    def __init__(self, *, session: Session, audit: AuditService) -> None:
        self._session = session
        self._audit = audit

    def _service_keys(self, service_id: str, key_ids: Sequence[str]) -> dict[str, L10nKey]:
        if not key_ids:
            return {}
        stmt = (
            select(L10nKey)
            .options(selectinload(L10nKey.translations))
            .where(L10nKey.service_id == service_id, L10nKey.id.in_(set(key_ids)))
        )
        return {key.id: key for key in self._session.execute(stmt).scalars()}

    def _missing_namespaces(self, keys: Sequence[TransferKey]) -> set[str]:
        wanted = {key.namespace_id for key in keys if key.namespace_id is not None}
        if not wanted:
            return set()
        found = set(
            self._session.execute(select(Namespace.id).where(Namespace.id.in_(wanted))).scalars()
        )
        return wanted - found

    def _validate(self, keys: Sequence[TransferKey]) -> None:
        """Raise one error listing every duplicate entry and unknown namespace."""

        issues: list[tuple[str, str]] = []
        seen_ids: set[str] = set()
        for index, key in enumerate(keys):
            path = f"data.keys[{index}]"
            if key.id in seen_ids:
                issues.append((f"{path}.id", f"Duplicate key id '{key.id}'"))
            seen_ids.add(key.id)
            seen_locales: set[str] = set()
            for position, translation in enumerate(key.translations):
                if translation.locale in seen_locales:
                    issues.append(
                        (
                            f"{path}.translations[{position}].locale",
                            f"Duplicate locale '{translation.locale}' for key '{key.id}'",
                        )
                    )
                seen_locales.add(translation.locale)

        missing = self._missing_namespaces(keys)
        for index, key in enumerate(keys):
            if key.namespace_id in missing:
                issues.append(
                    (
                        f"data.keys[{index}].namespaceId",
                        f"Namespace '{key.namespace_id}' does not exist",
                    )
                )

        if issues:
            summary = "; ".join(dict.fromkeys(message for _, message in issues))
            raise ImportValidationError(f"Invalid import: {summary}", errors=issues)

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def build_plan(self, service_id: str, keys: Sequence[TransferKey]) -> ImportPlan:
        self._validate(keys)
        stored = self._service_keys(service_id, [key.id for key in keys])
        plan = ImportPlan()

        for incoming in keys:
            existing = stored.get(incoming.id)
            incoming_fields = _key_fields(incoming)
            if existing is None:
                plan.writes.append(KeyWrite(key=incoming, after=incoming_fields))
                stored_translations: dict[str, Translation] = {}
            else:
                current_fields = _key_fields(existing)
                if current_fields != incoming_fields:
                    plan.writes.append(
                        KeyWrite(
                            key=incoming,
                            existing=existing,
                            before=current_fields,
                            after=incoming_fields,
                        )
                    )
                stored_translations = {item.locale: item for item in existing.translations}

            for translation in incoming.translations:
                current = stored_translations.get(translation.locale)
                incoming_translation = _translation_fields(translation)
                if current is None:
                    plan.writes.append(
                        TranslationWrite(
                            key=incoming,
                            translation=translation,
                            after=incoming_translation,
                        )
                    )
                    continue
                stored_fields = _translation_fields(current)
                if (
                    current.value != translation.value
                    or stored_fields["status"] != incoming_translation["status"]
                    or translation.version > current.version
                ):
                    after = dict(incoming_translation)
                    after["version"] = max(current.version + 1, translation.version)
                    plan.writes.append(
                        TranslationWrite(
                            key=incoming,
                            translation=translation,
                            existing=current,
                            before=stored_fields,
                            after=after,
                        )
                    )
        return plan

    def plan_import(self, service_id: str, keys: Sequence[TransferKey]) -> DiffReport:
        """Dry run: report the writes an import would perform."""

        return self.build_plan(service_id, keys).to_report()

    def apply_import(
        self,
        service: Service,
        keys: Sequence[TransferKey],
        actor_id: str,
    ) -> ImportResult:
        """Execute the planned writes; a constraint violation discards all of them."""

        service_id = service.id
        plan = self.build_plan(service_id, keys)
        keys_written = 0
        translations_written = 0
        try:
            for write in plan.writes:
                if isinstance(write, KeyWrite):
                    self._write_key(service_id, write, actor_id)
                    keys_written += 1
                else:
                    self._write_translation(write, actor_id)
                    translations_written += 1
        except (IntegrityError, FlushError) as exc:
            self._session.rollback()
            logger.warning(
                "transfer.import.conflict",
                extra=log_context(subject_id=actor_id, service_id=service_id),
            )
            raise ImportConflictError(
                "Import violates a uniqueness constraint; no changes were applied"
            ) from exc

        result = ImportResult(keys_written=keys_written, translations_written=translations_written)
        self._audit.log_event(
            actor=actor_id,
            action=AuditAction.IMPORT,
            entity_type=AuditEntityType.SERVICE,
            entity_id=service.id,
            after={
                "service": service.code,
                "keysWritten": keys_written,
                "translationsWritten": translations_written,
            },
        )
        logger.info(
            "transfer.import.applied",
            extra=log_context(
                subject_id=actor_id,
                service_id=service.id,
                keys_written=keys_written,
                translations_written=translations_written,
            ),
        )
        return result

    def _write_key(self, service_id: str, write: KeyWrite, actor_id: str) -> None:
        incoming = write.key
        key = write.existing
        if key is None:
            created = L10nKey(
                id=incoming.id,
                service_id=service_id,
                namespace_id=incoming.namespace_id,
                key_name=incoming.key_name,
                tags=list(incoming.tags),
                status=ContentStatus(incoming.status),
            )
            self._session.add(created)
            self._session.flush()
            self._audit.log_event(
                actor=actor_id,
                action=AuditAction.CREATE,
                entity_type=AuditEntityType.KEY,
                entity_id=created.id,
                after=key_snapshot(created),
            )
            return

        before = key_snapshot(key)
        key.key_name = incoming.key_name
        key.namespace_id = incoming.namespace_id
        key.tags = list(incoming.tags)
        key.status = ContentStatus(incoming.status)
        self._session.flush()
        self._audit.log_event(
            actor=actor_id,
            action=AuditAction.UPDATE,
            entity_type=AuditEntityType.KEY,
            entity_id=key.id,
            before=before,
            after=key_snapshot(key),
        )

    def _write_translation(self, write: TranslationWrite, actor_id: str) -> None:
        incoming = write.translation
        translation = write.existing
        if translation is None:
            created = Translation(
                id=new_id(),
                key_id=write.key.id,
                locale=incoming.locale,
                status=ContentStatus(incoming.status),
                version=incoming.version,
            )
            created.set_value(incoming.value)
            self._session.add(created)
            self._session.flush()
            self._audit.log_event(
                actor=actor_id,
                action=AuditAction.CREATE,
                entity_type=AuditEntityType.TRANSLATION,
                entity_id=created.id,
                after=translation_snapshot(created),
            )
            return

        before = translation_snapshot(translation)
        translation.set_value(incoming.value)
        translation.status = ContentStatus(incoming.status)
        translation.version = write.after["version"]
        self._session.flush()
        self._audit.log_event(
            actor=actor_id,
            action=AuditAction.UPDATE,
            entity_type=AuditEntityType.TRANSLATION,
            entity_id=translation.id,
            before=before,
            after=translation_snapshot(translation),
        )

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_service(
        self,
        service: Service,
        *,
        locales: Sequence[str] | None = None,
        status: ContentStatus | str | None = None,
        include_empty: bool = False,
    ) -> ExportPayload:
        wanted_status = _status(status) if status is not None else None
        wanted_locales = set(locales) if locales else None

        stmt = (
            select(L10nKey)
            .options(selectinload(L10nKey.translations))
            .where(L10nKey.service_id == service.id)
            .order_by(L10nKey.key_name, L10nKey.id)
        )
        if wanted_status is not None:
            stmt = stmt.where(L10nKey.status == ContentStatus(wanted_status))

        exported: list[TransferKey] = []
        seen_locales: set[str] = set()
        for key in self._session.execute(stmt).scalars():
            translations = [
                TransferTranslation(
                    locale=item.locale,
                    value=item.value,
                    status=_status(item.status),
                    version=item.version,
                )
                for item in sorted(key.translations, key=lambda row: row.locale)
                if (wanted_locales is None or item.locale in wanted_locales)
                and (wanted_status is None or _status(item.status) == wanted_status)
            ]
            if not translations and not include_empty:
                continue
            seen_locales.update(item.locale for item in translations)
            exported.append(
                TransferKey(
                    id=key.id,
                    key_name=key.key_name,
                    namespace_id=key.namespace_id,
                    tags=sorted(key.tags or []),
                    status=_status(key.status),
                    translations=translations,
                )
            )

        return ExportPayload(
            service=service.code,
            locales=sorted(wanted_locales) if wanted_locales is not None else sorted(seen_locales),
            exported_at=utc_now(),
            data=TransferData(keys=exported),
        )

    def record_export(self, service: Service, payload: ExportPayload, actor_id: str) -> str:
        return self._audit.log_event(
            actor=actor_id,
            action=AuditAction.EXPORT,
            entity_type=AuditEntityType.SERVICE,
            entity_id=service.id,
            after={
                "service": service.code,
                "locales": list(payload.locales),
                "keyCount": len(payload.data.keys),
            },
        )


__all__ = [
    "ExportValidationError",
    "ImportConflictError",
    "ImportPlan",
    "ImportValidationError",
    "KeyWrite",
    "PlannedWrite",
    "TransferError",
    "TransferService",
    "TranslationWrite",
    "parse_locales",
]
