"""
PhotoEdit - photo adjustment pipeline and batch export scheduler.

This package provides:

- A typed AdjustmentSet model with optional HSL, tone curve, split toning,
  color grading, lens correction and local adjustment records
- A stage-ordered, deterministic adjustment pipeline on Pillow and numpy
- Export encoding (JPEG, PNG, WebP, TIFF) with resize and file naming
- RAW decoding through rawpy with per-camera defaults
- Built-in and custom presets with JSON/YAML exchange
- A concurrency-bounded batch scheduler with per-file error isolation
"""

__version__ = "0.1.0"

# Core models
from photoedit.core.models import (
    AdjustmentPatch,
    AdjustmentSet,
    ExportOptions,
    FileNaming,
)
from photoedit.core.types import (
    ExportFormat,
    FitMode,
    JobStatus,
    PresetCategory,
)

# Configuration
from photoedit.config import (
    Settings,
    configure,
    get_settings,
)

# Imaging
from photoedit.imaging import (
    AdjustmentPipeline,
    ExportEncoder,
    PhotoProcessor,
)

# Presets
from photoedit.presets import (
    Preset,
    PresetLibrary,
    PresetResolver,
)

# Batch
from photoedit.batch import (
    BatchJob,
    BatchScheduler,
    JobStatistics,
)

__all__ = [
    "__version__",
    # Core
    "AdjustmentPatch",
    "AdjustmentSet",
    "ExportOptions",
    "FileNaming",
    "ExportFormat",
    "FitMode",
    "JobStatus",
    "PresetCategory",
    # Config
    "Settings",
    "configure",
    "get_settings",
    # Imaging
    "AdjustmentPipeline",
    "ExportEncoder",
    "PhotoProcessor",
    # Presets
    "Preset",
    "PresetLibrary",
    "PresetResolver",
    # Batch
    "BatchJob",
    "BatchScheduler",
    "JobStatistics",
]
