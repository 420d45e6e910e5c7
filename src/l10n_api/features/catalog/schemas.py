from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from l10n_api.common.schema import BaseSchema
from l10n_db.models import ContentStatus

Locale = Literal["en", "es", "fr", "de", "it", "pt", "ru", "ja", "ko", "zh", "ar", "hi"]
Status = ContentStatus


def _normalize_tags(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    return sorted({tag.strip() for tag in value if tag and tag.strip()})


class ServiceOut(BaseSchema):
    id: str
    code: str
    name: str
    owners: list[str]
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @field_validator("owners", mode="before")
    @classmethod
    def _sorted_owners(cls, value: object) -> object:
        if isinstance(value, set | frozenset):
            return sorted(value)
        return value


class ServiceList(BaseSchema):
    items: list[ServiceOut]


class TranslationOut(BaseSchema):
    id: str
    key_id: str = Field(alias="keyId")
    locale: str
    value: str
    status: Status
    version: int
    checksum: str | None = None
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class KeyOut(BaseSchema):
    id: str
    service_id: str | None = Field(default=None, alias="serviceId")
    namespace_id: str | None = Field(default=None, alias="namespaceId")
    key_name: str = Field(alias="keyName")
    tags: list[str]
    status: Status
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class KeyDetail(KeyOut):
    translations: list[TranslationOut]


class KeyList(BaseSchema):
    items: list[KeyOut]


class KeyCreate(BaseSchema):
    """Payload for creating a key; ``serviceCode`` omitted means a legacy key."""

    id: str | None = Field(default=None, min_length=1, max_length=64)
    key_name: str = Field(alias="keyName", min_length=1, max_length=255)
    service_code: str | None = Field(default=None, alias="serviceCode", min_length=1)
    namespace_id: str | None = Field(default=None, alias="namespaceId")
    tags: list[str] = Field(default_factory=list)
    status: Status = "draft"

    @field_validator("tags")
    @classmethod
    def _normalize(cls, value: list[str] | None) -> list[str] | None:
        return _normalize_tags(value)


class KeyUpdate(BaseSchema):
    key_name: str | None = Field(default=None, alias="keyName", min_length=1, max_length=255)
    namespace_id: str | None = Field(default=None, alias="namespaceId")
    tags: list[str] | None = None
    status: Status | None = None

    @field_validator("tags")
    @classmethod
    def _normalize(cls, value: list[str] | None) -> list[str] | None:
        return _normalize_tags(value)


class TranslationCreate(BaseSchema):
    locale: Locale
    value: str = ""
    status: Status = "draft"


class TranslationUpdate(BaseSchema):
    locale: Locale | None = None
    value: str | None = None
    status: Status | None = None


class ReleaseBundleCreate(BaseSchema):
    locales: list[Locale] = Field(min_length=1)
    snapshot_ref: str = Field(alias="snapshotRef", min_length=1, max_length=500)


class ReleaseBundleOut(BaseSchema):
    id: str
    service_id: str = Field(alias="serviceId")
    locales: list[str]
    snapshot_ref: str = Field(alias="snapshotRef")
    created_at: datetime = Field(alias="createdAt")


class ReleaseBundleList(BaseSchema):
    items: list[ReleaseBundleOut]


__all__ = [
    "KeyCreate",
    "KeyDetail",
    "KeyList",
    "KeyOut",
    "KeyUpdate",
    "Locale",
    "ReleaseBundleCreate",
    "ReleaseBundleList",
    "ReleaseBundleOut",
    "ServiceList",
    "ServiceOut",
    "Status",
    "TranslationCreate",
    "TranslationOut",
    "TranslationUpdate",
]
