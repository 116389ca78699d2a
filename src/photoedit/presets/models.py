"""
Preset data model.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from photoedit.core.models import AdjustmentPatch
from photoedit.core.types import PresetCategory

CUSTOM_PREFIX = "custom"


class Preset(BaseModel):
    """A named, partial adjustment record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str = Field(min_length=1)
    description: str = ""
    category: PresetCategory
    adjustments: AdjustmentPatch
    thumbnail_path: Optional[str] = None
    author: Optional[str] = None
    created_date: datetime = Field(default_factory=datetime.now)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @property
    def is_custom(self) -> bool:
        """Only custom presets may be deleted or exported."""
        return self.id.startswith(f"{CUSTOM_PREFIX}-")

    def to_dict(self) -> dict[str, Any]:
        """Serializable form with camelCase keys and unset adjustments dropped."""
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        data["adjustments"] = self.adjustments.model_dump(
            mode="json", by_alias=True, exclude_none=True
        )
        return data
