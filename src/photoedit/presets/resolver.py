"""
Merge presets onto adjustment sets.
"""

from typing import Any, Mapping, Union

from photoedit.core.models import AdjustmentPatch, AdjustmentSet
from photoedit.presets.models import Preset

PresetLike = Union[Preset, AdjustmentPatch, Mapping[str, Any]]


class PresetResolver:
    """Apply a preset's partial adjustments over a base AdjustmentSet.

    Every top-level field the preset sets replaces the base value; nested
    records (HSL, tone curve, ...) are replaced whole, not merged. The base
    is never mutated.
    """

    @staticmethod
    def resolve(base: AdjustmentSet, preset: PresetLike) -> AdjustmentSet:
        patch = preset.adjustments if isinstance(preset, Preset) else preset
        return base.merged(patch)
