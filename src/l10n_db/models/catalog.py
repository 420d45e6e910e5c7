"""Catalog models: services, namespaces, keys, translations and release bundles."""

from __future__ import annotations

import hashlib
from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..base import Base, StringPrimaryKeyMixin, TimestampMixin, utc_now
from ..types import StringSet, UTCDateTime

SUPPORTED_LOCALES: tuple[str, ...] = (
    "en",
    "es",
    "fr",
    "de",
    "it",
    "pt",
    "ru",
    "ja",
    "ko",
    "zh",
    "ar",
    "hi",
)


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class ContentStatus(str, Enum):
    """Lifecycle state shared by keys and translations."""

    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


content_status_enum = SAEnum(
    ContentStatus,
    name="content_status",
    native_enum=False,
    length=20,
    values_callable=_enum_values,
)


def compute_checksum(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


class Service(StringPrimaryKeyMixin, TimestampMixin, Base):
    """Organizational unit owning keys; owners get full access beneath it."""

    __tablename__ = "service"

    code: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    owner_links: Mapped[list[ServiceOwner]] = relationship(
        back_populates="service",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def owners(self) -> frozenset[str]:
        return frozenset(link.subject_id for link in self.owner_links)

    def set_owners(self, subject_ids: set[str] | frozenset[str] | list[str]) -> None:
        wanted = set(subject_ids)
        self.owner_links = [link for link in self.owner_links if link.subject_id in wanted]
        present = {link.subject_id for link in self.owner_links}
        for subject_id in sorted(wanted - present):
            self.owner_links.append(ServiceOwner(subject_id=subject_id))


class ServiceOwner(Base):
    """Ownership link between a service and an identity subject."""

    __tablename__ = "service_owner"

    service_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("service.id", ondelete="CASCADE"),
        primary_key=True,
    )
    subject_id: Mapped[str] = mapped_column(String(255), primary_key=True)

    service: Mapped[Service] = relationship(back_populates="owner_links")

    __table_args__ = (Index("ix_service_owner_subject_id", "subject_id"),)


class Namespace(StringPrimaryKeyMixin, Base):
    """Grouping of keys; carries no access semantics."""

    __tablename__ = "namespace"

    service_id: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("service.id", ondelete="CASCADE"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class L10nKey(StringPrimaryKeyMixin, TimestampMixin, Base):
    """Localization key; a null ``service_id`` marks a legacy key."""

    __tablename__ = "l10n_key"

    service_id: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("service.id", ondelete="SET NULL"),
        nullable=True,
    )
    namespace_id: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("namespace.id", ondelete="SET NULL"),
        nullable=True,
    )
    key_name: Mapped[str] = mapped_column(String(255), nullable=False)
    tags: Mapped[list[str]] = mapped_column(StringSet(), nullable=False, default=list)
    status: Mapped[ContentStatus] = mapped_column(
        content_status_enum,
        nullable=False,
        default=ContentStatus.DRAFT,
    )

    service: Mapped[Service | None] = relationship()
    translations: Mapped[list[Translation]] = relationship(
        back_populates="key",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Translation.locale",
    )

    __table_args__ = (
        Index("ix_l10n_key_service_id", "service_id"),
        Index("ix_l10n_key_key_name", "key_name"),
    )


class Translation(StringPrimaryKeyMixin, TimestampMixin, Base):
    """Localized value of a key in one locale."""

    __tablename__ = "translation"

    key_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("l10n_key.id", ondelete="CASCADE"),
        nullable=False,
    )
    locale: Mapped[str] = mapped_column(String(10), nullable=False)
    value: Mapped[str] = mapped_column(Text(), nullable=False, default="")
    status: Mapped[ContentStatus] = mapped_column(
        content_status_enum,
        nullable=False,
        default=ContentStatus.DRAFT,
    )
    version: Mapped[int] = mapped_column(Integer(), nullable=False, default=1)
    checksum: Mapped[str | None] = mapped_column(String(64), nullable=True)

    key: Mapped[L10nKey] = relationship(back_populates="translations")

    __table_args__ = (UniqueConstraint("key_id", "locale"),)

    def set_value(self, value: str) -> None:
        self.value = value
        self.checksum = compute_checksum(value)


class ReleaseBundle(StringPrimaryKeyMixin, Base):
    """Snapshot reference for a set of locales of one service."""

    __tablename__ = "release_bundle"

    service_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("service.id", ondelete="CASCADE"),
        nullable=False,
    )
    locales: Mapped[list[str]] = mapped_column(JSON(), nullable=False, default=list)
    snapshot_ref: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)


__all__ = [
    "SUPPORTED_LOCALES",
    "ContentStatus",
    "L10nKey",
    "Namespace",
    "ReleaseBundle",
    "Service",
    "ServiceOwner",
    "Translation",
    "compute_checksum",
]
