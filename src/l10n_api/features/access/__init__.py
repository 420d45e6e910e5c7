from .filters import build_access_filter
from .service import AccessService, can_access, decide
from .types import OwnershipChain, ResourceKind, ResourceRef

__all__ = [
    "AccessService",
    "OwnershipChain",
    "ResourceKind",
    "ResourceRef",
    "build_access_filter",
    "can_access",
    "decide",
]
