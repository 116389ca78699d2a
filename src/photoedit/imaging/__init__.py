"""
Imaging module: codec primitives, the adjustment pipeline and export.

Provides the stage-ordered AdjustmentPipeline, the ExportEncoder, the
single-photo PhotoProcessor facade, histogram analysis and RAW decoding.
"""

from photoedit.imaging.encoder import ExportEncoder, output_extension, output_filename
from photoedit.imaging.histogram import HistogramAnalyzer, HistogramResult, HistogramStats
from photoedit.imaging.pipeline import (
    AdjustmentPipeline,
    PipelineResult,
    contrast_multiplier,
    exposure_gamma,
    highlight_shadow_brightness,
    noise_reduction_filter,
    saturation_multiplier,
    temperature_tint_hue,
    vignette_brightness,
    whites_blacks_linear,
)
from photoedit.imaging.processor import PhotoProcessor, ProcessingResult
from photoedit.imaging.raw import RawSettings, is_raw_file, settings_for_camera

__all__ = [
    # Pipeline
    "AdjustmentPipeline",
    "PipelineResult",
    "contrast_multiplier",
    "exposure_gamma",
    "highlight_shadow_brightness",
    "noise_reduction_filter",
    "saturation_multiplier",
    "temperature_tint_hue",
    "vignette_brightness",
    "whites_blacks_linear",
    # Export
    "ExportEncoder",
    "output_extension",
    "output_filename",
    # Processor
    "PhotoProcessor",
    "ProcessingResult",
    # Histogram
    "HistogramAnalyzer",
    "HistogramResult",
    "HistogramStats",
    # RAW
    "RawSettings",
    "is_raw_file",
    "settings_for_camera",
]
