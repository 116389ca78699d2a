"""
Domain-specific enumerations for photo editing and batch export.
"""

from enum import Enum


class JobStatus(str, Enum):
    """Lifecycle status of a batch job.

    Cancellation is recorded as FAILED with a cancellation error.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class ExportFormat(str, Enum):
    """Formats the export encoder can produce."""

    JPEG = "jpeg"
    JPG = "jpg"
    PNG = "png"
    WEBP = "webp"
    TIFF = "tiff"
    TIF = "tif"


class FitMode(str, Enum):
    """How an image is fitted into target export dimensions."""

    COVER = "cover"  # Fill the box, crop the overflow
    CONTAIN = "contain"  # Fit inside the box, pad to exact size
    FILL = "fill"  # Stretch to exact size, ignoring aspect ratio
    INSIDE = "inside"  # Fit inside the box, no padding
    OUTSIDE = "outside"  # Cover the box, no cropping


class HueFamily(str, Enum):
    """The eight hue families addressed by HSL adjustments, in pipeline order."""

    RED = "red"
    ORANGE = "orange"
    YELLOW = "yellow"
    GREEN = "green"
    AQUA = "aqua"
    BLUE = "blue"
    PURPLE = "purple"
    MAGENTA = "magenta"


class LocalAdjustmentType(str, Enum):
    """Geometry kinds for local (masked) adjustments."""

    RADIAL = "radial"
    LINEAR = "linear"
    MASKING = "masking"


class PresetCategory(str, Enum):
    """Preset categories."""

    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"
    STREET = "street"
    BLACK_WHITE = "black-white"
    VINTAGE = "vintage"
    MODERN = "modern"
    ARTISTIC = "artistic"
