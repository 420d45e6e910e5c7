"""Shared auth/permission error types."""


class AuthenticationError(Exception):
    """Raised when a request cannot be authenticated."""


class PermissionDeniedError(Exception):
    """Raised when an identity may see a resource but not perform the action."""

    def __init__(
        self,
        permission: str,
        *,
        resource_kind: str | None = None,
        resource_id: str | None = None,
    ) -> None:
        self.permission = permission
        self.resource_kind = resource_kind
        self.resource_id = resource_id
        msg = f"Permission '{permission}' denied"
        if resource_kind:
            msg = f"{msg} for {resource_kind}"
        super().__init__(msg)


class ResourceNotFoundError(Exception):
    """Raised when a resource is absent or not visible to the caller."""

    def __init__(self, resource_kind: str, resource_id: str) -> None:
        self.resource_kind = resource_kind
        self.resource_id = resource_id
        super().__init__(f"{resource_kind} '{resource_id}' not found")
