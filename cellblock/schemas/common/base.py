"""
Base schema classes with common configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

__all__ = [
    "BaseSchema",
    "BaseCreateSchema",
    "BaseResponseSchema",
]


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    All application-facing schemas inherit from this to ensure consistent
    behaviour (ORM loading, whitespace stripping, enum handling).
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        # Keep enums as Enum instances; callers can still use `.value`.
        use_enum_values=False,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class BaseCreateSchema(BaseSchema):
    """Base schema for create operations; unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")


class BaseResponseSchema(BaseSchema):
    """Base schema for read snapshots handed back to callers."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)
