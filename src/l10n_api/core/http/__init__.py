"""HTTP dependency helpers built on the shared identity/role contracts."""

from .dependencies import (
    IdentityDep,
    SettingsDep,
    get_app_settings,
    get_current_identity,
    get_identity,
    require_capability,
)

__all__ = [
    "IdentityDep",
    "SettingsDep",
    "get_app_settings",
    "get_current_identity",
    "get_identity",
    "require_capability",
]
