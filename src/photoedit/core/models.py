"""
Core data models for the photoedit core.

All models use Pydantic for validation and serialization. Field names are
snake_case; camelCase aliases are accepted on input so that adjustment and
preset documents written by camelCase clients load unchanged.
"""

import secrets
import time
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from photoedit.core.types import ExportFormat, FitMode, HueFamily, LocalAdjustmentType

_CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def generate_id(prefix: str) -> str:
    """Unique id of the form ``<prefix>-<epoch ms>-<9 base36 chars>``."""
    token = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"{prefix}-{int(time.time() * 1000)}-{token}"

# Conventional range of every scalar dial. Values outside the range are
# accepted by the model; AdjustmentSet.clamped() pulls them back in.
SCALAR_RANGES: dict[str, tuple[float, float]] = {
    "exposure": (-2.0, 2.0),
    "contrast": (-100.0, 100.0),
    "highlights": (-100.0, 100.0),
    "shadows": (-100.0, 100.0),
    "whites": (-100.0, 100.0),
    "blacks": (-100.0, 100.0),
    "temperature": (-1000.0, 1000.0),
    "tint": (-100.0, 100.0),
    "vibrance": (-100.0, 100.0),
    "saturation": (-100.0, 100.0),
    "sharpening": (0.0, 100.0),
    "noise_reduction": (0.0, 100.0),
    "clarity": (-100.0, 100.0),
    "dehaze": (-100.0, 100.0),
    "vignette": (-100.0, 100.0),
}

EXTENSION_FIELDS: tuple[str, ...] = (
    "hsl",
    "tone_curve",
    "split_toning",
    "color_grading",
    "lens_corrections",
    "local_adjustments",
)


class HueFamilyValues(BaseModel):
    """One value per hue family."""

    model_config = _CAMEL_CONFIG

    red: float = 0.0
    orange: float = 0.0
    yellow: float = 0.0
    green: float = 0.0
    aqua: float = 0.0
    blue: float = 0.0
    purple: float = 0.0
    magenta: float = 0.0

    def get(self, family: HueFamily) -> float:
        return getattr(self, family.value)


class HSLAdjustments(BaseModel):
    """Per hue family hue/saturation/luminance/lightness offsets (-100 to +100).

    ``lightness`` is kept apart from ``luminance``; only the first three
    maps drive pixels.
    """

    model_config = _CAMEL_CONFIG

    hue: HueFamilyValues = Field(default_factory=HueFamilyValues)
    saturation: HueFamilyValues = Field(default_factory=HueFamilyValues)
    luminance: HueFamilyValues = Field(default_factory=HueFamilyValues)
    lightness: HueFamilyValues = Field(default_factory=HueFamilyValues)

    def channel(self, family: HueFamily) -> tuple[float, float, float]:
        """Return (hue, saturation, luminance) for one family."""
        return (
            self.hue.get(family),
            self.saturation.get(family),
            self.luminance.get(family),
        )


class ToneCurve(BaseModel):
    """Zone and parametric tone curve offsets (-100 to +100)."""

    model_config = _CAMEL_CONFIG

    highlights: float = 0.0
    lights: float = 0.0
    darks: float = 0.0
    shadows: float = 0.0
    parametric_highlights: float = 0.0
    parametric_lights: float = 0.0
    parametric_darks: float = 0.0
    parametric_shadows: float = 0.0


class ToneTint(BaseModel):
    """Hue (0-360) and saturation (0-100) of a split toning zone."""

    model_config = _CAMEL_CONFIG

    hue: float = 0.0
    saturation: float = 0.0


class SplitToning(BaseModel):
    model_config = _CAMEL_CONFIG

    highlights: ToneTint = Field(default_factory=ToneTint)
    shadows: ToneTint = Field(default_factory=ToneTint)
    balance: float = 0.0


class ZoneGrade(BaseModel):
    """Hue/saturation/luminance of one color grading zone."""

    model_config = _CAMEL_CONFIG

    hue: float = 0.0
    saturation: float = 0.0
    luminance: float = 0.0

    @property
    def is_neutral(self) -> bool:
        return self.hue == 0 and self.saturation == 0 and self.luminance == 0


class ColorGrading(BaseModel):
    model_config = _CAMEL_CONFIG

    shadows: ZoneGrade = Field(default_factory=ZoneGrade)
    midtones: ZoneGrade = Field(default_factory=ZoneGrade)
    highlights: ZoneGrade = Field(default_factory=ZoneGrade)
    global_saturation: float = 0.0
    global_luminance: float = 0.0
    balance: float = 0.0


class LensCorrections(BaseModel):
    model_config = _CAMEL_CONFIG

    chromatic_aberration: float = 0.0  # 0 to 100
    distortion: float = 0.0  # -100 to +100
    vignetting: float = 0.0  # -100 to +100
    fringing: float = 0.0  # 0 to 100


class AdjustmentPatch(BaseModel):
    """Partial adjustment record: only the fields that are set take effect.

    Used by presets and local adjustments.
    """

    model_config = _CAMEL_CONFIG

    exposure: Optional[float] = None
    contrast: Optional[float] = None
    highlights: Optional[float] = None
    shadows: Optional[float] = None
    whites: Optional[float] = None
    blacks: Optional[float] = None
    temperature: Optional[float] = None
    tint: Optional[float] = None
    vibrance: Optional[float] = None
    saturation: Optional[float] = None
    sharpening: Optional[float] = None
    noise_reduction: Optional[float] = None
    clarity: Optional[float] = None
    dehaze: Optional[float] = None
    vignette: Optional[float] = None

    hsl: Optional[HSLAdjustments] = None
    tone_curve: Optional[ToneCurve] = None
    split_toning: Optional[SplitToning] = None
    color_grading: Optional[ColorGrading] = None
    lens_corrections: Optional[LensCorrections] = None

    def overrides(self) -> dict[str, Any]:
        """Fields this patch sets, as plain data keyed by field name."""
        return self.model_dump(exclude_unset=True, exclude_none=True)

    @property
    def is_empty(self) -> bool:
        return not self.overrides()


class LocalGeometry(BaseModel):
    model_config = _CAMEL_CONFIG

    x: float
    y: float
    width: Optional[float] = None
    height: Optional[float] = None
    radius: Optional[float] = None
    angle: Optional[float] = None
    feather: float = 0.0


class LocalAdjustment(BaseModel):
    """A masked adjustment: geometry plus a nested partial adjustment."""

    model_config = _CAMEL_CONFIG

    id: str
    type: LocalAdjustmentType
    geometry: LocalGeometry
    adjustments: AdjustmentPatch = Field(default_factory=AdjustmentPatch)
    inverted: bool = False


class AdjustmentSet(BaseModel):
    """Complete parameter record describing a photo edit.

    Every scalar at 0 and no extension present is the identity adjustment.
    """

    model_config = _CAMEL_CONFIG

    # Basic tone
    exposure: float = Field(default=0.0, description="Exposure in stops (-2 to +2)")
    contrast: float = 0.0
    highlights: float = 0.0
    shadows: float = 0.0
    whites: float = 0.0
    blacks: float = 0.0

    # Color
    temperature: float = Field(default=0.0, description="White balance shift (-1000 to +1000)")
    tint: float = 0.0
    vibrance: float = 0.0
    saturation: float = 0.0

    # Detail
    sharpening: float = Field(default=0.0, description="Sharpening amount (0 to 100)")
    noise_reduction: float = Field(default=0.0, description="Noise reduction (0 to 100)")

    # Effects
    clarity: float = 0.0
    dehaze: float = 0.0
    vignette: float = 0.0

    # Optional extensions
    hsl: Optional[HSLAdjustments] = None
    tone_curve: Optional[ToneCurve] = None
    split_toning: Optional[SplitToning] = None
    color_grading: Optional[ColorGrading] = None
    lens_corrections: Optional[LensCorrections] = None
    local_adjustments: Optional[list[LocalAdjustment]] = None

    @property
    def is_identity(self) -> bool:
        """True when applying this set leaves pixels untouched."""
        if any(getattr(self, name) != 0 for name in SCALAR_RANGES):
            return False
        return not any(getattr(self, name) for name in EXTENSION_FIELDS)

    def clamped(self) -> "AdjustmentSet":
        """Return a copy with every scalar pulled into its conventional range."""
        updates = {}
        for name, (low, high) in SCALAR_RANGES.items():
            value = getattr(self, name)
            if value < low or value > high:
                updates[name] = min(max(value, low), high)
        return self.model_copy(update=updates, deep=True)

    def merged(self, patch: Union[AdjustmentPatch, Mapping[str, Any]]) -> "AdjustmentSet":
        """Return a new set where every field set by ``patch`` overrides this one."""
        if not isinstance(patch, AdjustmentPatch):
            patch = AdjustmentPatch.model_validate(patch)
        data = self.model_dump()
        data.update(patch.overrides())
        return AdjustmentSet.model_validate(data)

    def snapshot(self) -> "AdjustmentSet":
        """Deep copy, detached from the caller's instance."""
        return self.model_copy(deep=True)

    def non_default_patch(self) -> AdjustmentPatch:
        """Patch containing only the scalars that differ from 0 and present extensions."""
        data: dict[str, Any] = {}
        for name in SCALAR_RANGES:
            value = getattr(self, name)
            if value != 0:
                data[name] = value
        for name in EXTENSION_FIELDS:
            if name == "local_adjustments":
                continue
            value = getattr(self, name)
            if value is not None:
                data[name] = value.model_dump()
        return AdjustmentPatch.model_validate(data)


class FileNaming(BaseModel):
    """Output file naming rules for batch exports."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    prefix: str = ""
    suffix: str = ""
    include_index: bool = False


class ExportOptions(BaseModel):
    """Format, quality, sizing and naming of an export. Immutable."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    format: str = Field(default="jpeg", description="jpeg, jpg, png, webp, tiff or tif")
    quality: int = Field(default=90, ge=1, le=100)
    width: Optional[int] = Field(default=None, ge=1)
    height: Optional[int] = Field(default=None, ge=1)
    fit: FitMode = Field(default=FitMode.INSIDE)
    resolution: Optional[int] = Field(default=None, ge=1, description="DPI written to the file")
    overwrite: bool = False
    file_naming: FileNaming = Field(default_factory=FileNaming)

    @field_validator("format", mode="before")
    @classmethod
    def normalize_format(cls, v: Any) -> Any:
        if isinstance(v, ExportFormat):
            return v.value
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def export_format(self) -> Optional[ExportFormat]:
        """The format as an ExportFormat, or None if it is not supported."""
        try:
            return ExportFormat(self.format)
        except ValueError:
            return None

    @property
    def resize_requested(self) -> bool:
        return self.width is not None or self.height is not None
