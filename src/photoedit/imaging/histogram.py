"""
Histogram analysis for photo evaluation.

Computes per-channel and luminance histograms (256 bins, normalized so the
tallest bin is 1.0) plus a few tonal statistics used for clipping warnings.
"""

from dataclasses import dataclass, field

import numpy as np
from PIL import Image

from photoedit.imaging.backend import LUMA_WEIGHTS

BINS = 256


@dataclass
class HistogramStats:
    """Statistics computed from the luminance channel."""

    mean: float
    median: float
    std_dev: float
    min_value: int
    max_value: int

    # Clipping detection
    shadow_clipping_percent: float  # % of pixels at 0-5
    highlight_clipping_percent: float  # % of pixels at 250-255

    notes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "mean": round(self.mean, 2),
            "median": round(self.median, 2),
            "std_dev": round(self.std_dev, 2),
            "min_value": self.min_value,
            "max_value": self.max_value,
            "shadow_clipping": f"{self.shadow_clipping_percent:.1f}%",
            "highlight_clipping": f"{self.highlight_clipping_percent:.1f}%",
            "notes": self.notes,
        }


@dataclass
class HistogramResult:
    """Normalized histograms of an image."""

    red: np.ndarray
    green: np.ndarray
    blue: np.ndarray
    luminance: np.ndarray

    stats: HistogramStats
    image_size: tuple[int, int]
    total_pixels: int

    def to_dict(self) -> dict:
        """Convert to dictionary with plain lists for serialization."""
        return {
            "red": self.red.tolist(),
            "green": self.green.tolist(),
            "blue": self.blue.tolist(),
            "luminance": self.luminance.tolist(),
            "image_size": f"{self.image_size[0]}x{self.image_size[1]}",
            "total_pixels": self.total_pixels,
            "statistics": self.stats.to_dict(),
        }


def _normalized(counts: np.ndarray) -> np.ndarray:
    peak = counts.max()
    if peak == 0:
        return counts.astype(np.float64)
    return counts.astype(np.float64) / peak


class HistogramAnalyzer:
    """Compute histograms and clipping statistics for decoded images."""

    def analyze(self, image: Image.Image) -> HistogramResult:
        """Analyze a decoded image.

        Grayscale images report the same histogram for all channels.
        """
        rgb = np.asarray(image.convert("RGB"), dtype=np.uint8)
        total_pixels = rgb.shape[0] * rgb.shape[1]

        channels = [
            np.bincount(rgb[:, :, i].ravel(), minlength=BINS)[:BINS] for i in range(3)
        ]

        luma = np.clip(np.rint(rgb.astype(np.float32) @ LUMA_WEIGHTS), 0, 255).astype(np.uint8)
        luma_counts = np.bincount(luma.ravel(), minlength=BINS)[:BINS]

        return HistogramResult(
            red=_normalized(channels[0]),
            green=_normalized(channels[1]),
            blue=_normalized(channels[2]),
            luminance=_normalized(luma_counts),
            stats=self._compute_stats(luma, luma_counts, total_pixels),
            image_size=image.size,
            total_pixels=total_pixels,
        )

    def _compute_stats(
        self,
        arr: np.ndarray,
        histogram: np.ndarray,
        total_pixels: int,
    ) -> HistogramStats:
        flat = arr.ravel()

        shadow_clip = float(histogram[:6].sum()) / total_pixels * 100
        highlight_clip = float(histogram[250:].sum()) / total_pixels * 100

        notes = []
        if shadow_clip > 5:
            notes.append(f"Shadow clipping detected ({shadow_clip:.1f}%).")
        if highlight_clip > 5:
            notes.append(f"Highlight clipping detected ({highlight_clip:.1f}%).")

        return HistogramStats(
            mean=float(flat.mean()),
            median=float(np.median(flat)),
            std_dev=float(flat.std()),
            min_value=int(flat.min()),
            max_value=int(flat.max()),
            shadow_clipping_percent=shadow_clip,
            highlight_clipping_percent=highlight_clip,
            notes=notes,
        )
