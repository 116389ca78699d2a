"""
Core data models, types and errors for the photoedit core.
"""

from photoedit.core.exceptions import (
    BatchError,
    DecodeFailure,
    DirectoryCreateFailure,
    ImagingError,
    InputFileMissing,
    JobNotFound,
    JobStateConflict,
    OutputExistsNoOverwrite,
    PhotoEditError,
    PresetError,
    PresetImportError,
    UnsupportedExportFormat,
)
from photoedit.core.models import (
    AdjustmentPatch,
    AdjustmentSet,
    ColorGrading,
    ExportOptions,
    FileNaming,
    HSLAdjustments,
    HueFamilyValues,
    LensCorrections,
    LocalAdjustment,
    LocalGeometry,
    SplitToning,
    ToneCurve,
    ToneTint,
    ZoneGrade,
    generate_id,
)
from photoedit.core.types import (
    ExportFormat,
    FitMode,
    HueFamily,
    JobStatus,
    LocalAdjustmentType,
    PresetCategory,
)

__all__ = [
    # Models
    "AdjustmentPatch",
    "AdjustmentSet",
    "ColorGrading",
    "ExportOptions",
    "FileNaming",
    "HSLAdjustments",
    "HueFamilyValues",
    "LensCorrections",
    "LocalAdjustment",
    "LocalGeometry",
    "SplitToning",
    "ToneCurve",
    "ToneTint",
    "ZoneGrade",
    "generate_id",
    # Types
    "ExportFormat",
    "FitMode",
    "HueFamily",
    "JobStatus",
    "LocalAdjustmentType",
    "PresetCategory",
    # Errors
    "BatchError",
    "DecodeFailure",
    "DirectoryCreateFailure",
    "ImagingError",
    "InputFileMissing",
    "JobNotFound",
    "JobStateConflict",
    "OutputExistsNoOverwrite",
    "PhotoEditError",
    "PresetError",
    "PresetImportError",
    "UnsupportedExportFormat",
]
