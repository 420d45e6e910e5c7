"""Base model for request and response bodies."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """camelCase on the wire (via field aliases), unknown fields rejected.

    Dumps default to aliases without ``None`` values, so optional fields such as
    an event's ``before`` are omitted rather than rendered as ``null``.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
        extra="forbid",
        use_enum_values=True,
    )

    def model_dump(self, **kwargs: Any) -> dict[str, Any]:  # type: ignore[override]
        kwargs = {"exclude_none": True, "by_alias": True, **kwargs}
        return super().model_dump(**kwargs)

    def model_dump_json(self, **kwargs: Any) -> str:  # type: ignore[override]
        kwargs = {"exclude_none": True, "by_alias": True, **kwargs}
        return super().model_dump_json(**kwargs)


__all__ = ["BaseSchema"]
