"""
Presets: named partial adjustments and their resolution onto AdjustmentSets.
"""

from photoedit.presets.builtin import BUILTIN_PRESETS
from photoedit.presets.library import PresetLibrary
from photoedit.presets.models import Preset
from photoedit.presets.resolver import PresetResolver

__all__ = [
    "BUILTIN_PRESETS",
    "Preset",
    "PresetLibrary",
    "PresetResolver",
]
