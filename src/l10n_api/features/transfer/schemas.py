from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import Field, field_validator

from l10n_api.common.schema import BaseSchema
from l10n_db.models import ContentStatus

from ..catalog.schemas import Locale

ChangeType = Literal["create_key", "update_key", "create_translation", "update_translation"]


class TransferTranslation(BaseSchema):
    locale: Locale
    value: str = ""
    status: ContentStatus = ContentStatus.DRAFT
    version: int = Field(default=1, ge=1)


class TransferKey(BaseSchema):
    id: str = Field(min_length=1, max_length=64)
    key_name: str = Field(alias="keyName", min_length=1, max_length=255)
    namespace_id: str | None = Field(default=None, alias="namespaceId")
    tags: list[str] = Field(default_factory=list)
    status: ContentStatus = ContentStatus.DRAFT
    translations: list[TransferTranslation] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def _sorted_tags(cls, value: list[str]) -> list[str]:
        return sorted({tag.strip() for tag in value if tag and tag.strip()})


class TransferData(BaseSchema):
    keys: list[TransferKey] = Field(default_factory=list)


class ImportRequest(BaseSchema):
    """Import body; also accepts an export payload verbatim."""

    dry_run: bool = Field(default=False, alias="dryRun")
    service: str = Field(min_length=1, description="Service code")
    locales: list[str] | None = None
    exported_at: datetime | None = Field(default=None, alias="exportedAt")
    data: TransferData


class DiffSummary(BaseSchema):
    keys_to_create: int = Field(default=0, alias="keysToCreate")
    keys_to_update: int = Field(default=0, alias="keysToUpdate")
    translations_to_create: int = Field(default=0, alias="translationsToCreate")
    translations_to_update: int = Field(default=0, alias="translationsToUpdate")


class DiffChange(BaseSchema):
    type: ChangeType
    key_id: str = Field(alias="keyId")
    key_name: str = Field(alias="keyName")
    locale: str | None = None
    before: dict[str, Any] | None = None
    after: dict[str, Any]


class DiffReport(BaseSchema):
    summary: DiffSummary
    changes: list[DiffChange]


class ImportResult(BaseSchema):
    keys_written: int = Field(alias="keysWritten")
    translations_written: int = Field(alias="translationsWritten")


class ExportPayload(BaseSchema):
    service: str
    locales: list[str]
    exported_at: datetime = Field(alias="exportedAt")
    data: TransferData


__all__ = [
    "ChangeType",
    "DiffChange",
    "DiffReport",
    "DiffSummary",
    "ExportPayload",
    "ImportRequest",
    "ImportResult",
    "TransferData",
    "TransferKey",
    "TransferTranslation",
]
