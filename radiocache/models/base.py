"""Base model for all radiocache Pydantic models."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class RadioCacheBaseModel(BaseModel):
    """Base model class for radiocache Pydantic models.

    Serialization always uses aliases and JSON-compatible values.
    """

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        use_enum_values=True,
        validate_assignment=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert model to dictionary with consistent serialization parameters."""
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")

    def to_dict_full(self) -> dict[str, Any]:
        """Convert model to dictionary including unset fields."""
        return self.model_dump(by_alias=True, exclude_unset=False, mode="json")
