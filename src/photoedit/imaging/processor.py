"""
Single-photo operations: process, export, thumbnails, previews, histograms.

PhotoProcessor is the facade callers use for one image at a time. The batch
scheduler uses the same pipeline and encoder but drives them directly so
that per-file failures surface as exceptions.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from PIL import Image

from photoedit.config import ExportDefaults, get_settings
from photoedit.core.logging import get_logger
from photoedit.core.models import AdjustmentSet, ExportOptions
from photoedit.core.types import ExportFormat, FitMode
from photoedit.imaging import backend
from photoedit.imaging.encoder import ExportEncoder
from photoedit.imaging.histogram import HistogramAnalyzer, HistogramResult
from photoedit.imaging.pipeline import AdjustmentPipeline

logger = get_logger(__name__)


@dataclass
class ProcessingResult:
    """Result of running the pipeline on one photo."""

    image: Image.Image
    original_size: tuple[int, int]
    original_mode: str
    original_format: Optional[str]
    stages: list[str] = field(default_factory=list)

    def get_info(self) -> dict:
        """Get processing info as dictionary."""
        return {
            "size": f"{self.image.size[0]}x{self.image.size[1]}",
            "original_size": f"{self.original_size[0]}x{self.original_size[1]}",
            "mode": self.image.mode,
            "original_mode": self.original_mode,
            "original_format": self.original_format,
            "stages": self.stages,
        }


class PhotoProcessor:
    """Process and export individual photos.

    Supports:
    - Applying an AdjustmentSet to a photo
    - Exporting with format, quality and resize options
    - JPEG thumbnails and previews
    - Normalized RGB and luminance histograms
    """

    def __init__(
        self,
        pipeline: Optional[AdjustmentPipeline] = None,
        encoder: Optional[ExportEncoder] = None,
        defaults: Optional[ExportDefaults] = None,
    ):
        self.pipeline = pipeline or AdjustmentPipeline()
        self.encoder = encoder or ExportEncoder()
        self.defaults = defaults or get_settings().export
        self._histogram = HistogramAnalyzer()

    def process_photo(
        self,
        source: backend.ImageSource,
        adjustments: Optional[AdjustmentSet] = None,
    ) -> ProcessingResult:
        """Decode a photo and run the adjustment pipeline over it.

        Raises:
            DecodeFailure: If the photo cannot be decoded.
        """
        img = backend.decode(source)
        original = (img.size, img.mode, getattr(img, "format", None))

        stages: list[str] = []
        if adjustments is not None:
            result = self.pipeline.apply(img, adjustments)
            img, stages = result.image, result.stages

        return ProcessingResult(
            image=img,
            original_size=original[0],
            original_mode=original[1],
            original_format=original[2],
            stages=stages,
        )

    def export_photo(
        self,
        source: backend.ImageSource,
        output_path: Union[str, Path],
        options: Optional[ExportOptions] = None,
        adjustments: Optional[AdjustmentSet] = None,
    ) -> bool:
        """Process a photo and write the encoded result to ``output_path``.

        Returns:
            True on success; False if any step failed (the error is logged).
        """
        options = options or ExportOptions(
            format=self.defaults.format, quality=self.defaults.quality
        )
        try:
            result = self.process_photo(source, adjustments)
            self.encoder.write(result.image, output_path, options)
        except Exception as e:
            logger.error(
                f"Export failed for {source if isinstance(source, (str, Path)) else 'image'}: {e}",
                extra={"file": str(output_path), "error_type": type(e).__name__},
            )
            return False

        logger.info(f"Exported {output_path}", extra={"file": str(output_path)})
        return True

    def generate_thumbnail(
        self,
        source: backend.ImageSource,
        size: Optional[int] = None,
    ) -> bytes:
        """Square JPEG thumbnail, center-cropped to fill ``size`` x ``size``."""
        size = size or self.defaults.thumbnail_size
        img = backend.decode(source)
        thumb = backend.resize(img, size, size, fit=FitMode.COVER, without_enlargement=False)
        return backend.encode(thumb, ExportFormat.JPEG, quality=self.defaults.thumbnail_quality)

    def generate_preview(
        self,
        source: backend.ImageSource,
        max_dimension: Optional[int] = None,
    ) -> bytes:
        """JPEG preview fitting inside ``max_dimension`` on both sides."""
        max_dimension = max_dimension or self.defaults.preview_max_dimension
        img = backend.decode(source)
        preview = backend.resize(img, max_dimension, max_dimension, fit=FitMode.INSIDE)
        return backend.encode(preview, ExportFormat.JPEG, quality=self.defaults.preview_quality)

    def get_histogram(self, source: backend.ImageSource) -> HistogramResult:
        """Histograms of the photo, computed on a downscaled copy."""
        limit = self.defaults.histogram_max_dimension
        img = backend.resize(backend.decode(source), limit, limit, fit=FitMode.INSIDE)
        return self._histogram.analyze(img)

    def get_metadata(self, source: backend.ImageSource) -> dict[str, Any]:
        """Pixel geometry of a photo. EXIF parsing is out of scope."""
        img = backend.decode(source)
        dpi = img.info.get("dpi")
        return {
            "width": img.width,
            "height": img.height,
            "format": getattr(img, "format", None),
            "mode": img.mode,
            "channels": len(img.getbands()),
            "has_alpha": img.mode in ("LA", "RGBA"),
            "dpi": tuple(round(float(d)) for d in dpi) if dpi else None,
        }
