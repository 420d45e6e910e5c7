"""Value types shared by the access resolver and the filter builder."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ResourceKind(StrEnum):
    SERVICE = "service"
    KEY = "l10n_key"
    TRANSLATION = "translation"


@dataclass(frozen=True, slots=True)
class ResourceRef:
    kind: ResourceKind
    id: str


@dataclass(frozen=True, slots=True)
class OwnershipChain:
    """Result of walking a resource up to its owning service.

    ``service_id`` is ``None`` for legacy keys (and their translations) that
    belong to no service.
    """

    resource: ResourceRef
    service_id: str | None
    is_owner: bool = False


__all__ = ["OwnershipChain", "ResourceKind", "ResourceRef"]
