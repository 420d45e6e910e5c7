"""Identity resolution and auth error types."""

from .errors import AuthenticationError, PermissionDeniedError, ResourceNotFoundError
from .identity import ANONYMOUS, Anonymous, AuthenticatedIdentity, Identity, Role, parse_roles
from .resolver import IdentityResolver

__all__ = [
    "ANONYMOUS",
    "Anonymous",
    "AuthenticatedIdentity",
    "AuthenticationError",
    "Identity",
    "IdentityResolver",
    "PermissionDeniedError",
    "ResourceNotFoundError",
    "Role",
    "parse_roles",
]
