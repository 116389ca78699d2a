"""
Adjustment pipeline: applies an AdjustmentSet to a decoded image.

The pipeline runs sixteen stages in a fixed order. Every stage is skipped
when its driving parameters sit at their identity value, so the identity
adjustment returns the decoded pixels unchanged.

Per-zone and per-hue operations (HSL, color grading, split toning,
vignette) are approximated by whole-image modulation. Local adjustments,
HSL lightness and the geometric lens corrections are carried by the data
model but have no pixel effect.

The pipeline holds no state: one instance can serve any number of threads.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional

from PIL import Image

from photoedit.core.logging import LoggingMixin
from photoedit.core.models import (
    AdjustmentSet,
    ColorGrading,
    HSLAdjustments,
    HueFamilyValues,
    ToneCurve,
)
from photoedit.core.types import HueFamily
from photoedit.imaging import backend


# --- Formula helpers --------------------------------------------------------


def exposure_gamma(exposure: float) -> float:
    """Gamma factor for an exposure in stops: ``2 ** exposure``."""
    return 2.0 ** exposure


def contrast_multiplier(contrast: float) -> float:
    return 1.0 + contrast / 100.0


def highlight_shadow_brightness(highlights: float, shadows: float) -> float:
    """Combined brightness multiplier; raising shadows and lowering highlights both brighten."""
    return 1.0 + (shadows - highlights) / 200.0


def whites_blacks_linear(whites: float, blacks: float) -> tuple[float, float]:
    """(multiplier, offset) for the whites/blacks linear stage."""
    return 1.0 + whites / 100.0 * 0.5, blacks / 100.0 * 10.0


def saturation_multiplier(saturation: float, vibrance: float) -> float:
    return 1.0 + (saturation + vibrance) / 200.0


def temperature_tint_hue(temperature: float, tint: float) -> float:
    """Hue rotation in degrees for a white balance shift."""
    return ((temperature / 1000.0) * 0.5 + (tint / 1000.0) * 0.3) * 180.0


def vignette_brightness(vignette: float) -> float:
    """Global brightness multiplier approximating a vignette.

    Positive values darken (edges), negative values lighten.
    """
    if vignette > 0:
        return 1.0 - abs(vignette) / 100.0 * 0.4
    if vignette < 0:
        return 1.0 + abs(vignette) / 100.0 * 0.3
    return 1.0


def noise_reduction_filter(noise_reduction: float) -> tuple[str, float]:
    """Filter choice for a noise reduction amount.

    Returns ("median", radius) for strong reduction, ("blur", sigma) otherwise.
    """
    strength = noise_reduction / 100.0
    if strength > 0.5:
        return "median", max(1, round(strength * 3))
    return "blur", strength * 2.0


# --- Pipeline ---------------------------------------------------------------


@dataclass
class PipelineResult:
    """Edited image plus the names of the stages that ran."""

    image: Image.Image
    stages: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.stages)


Stage = Callable[[Image.Image, AdjustmentSet], Optional[Image.Image]]


class AdjustmentPipeline(LoggingMixin):
    """Apply an AdjustmentSet in the fixed stage order.

    Example:
        >>> pipeline = AdjustmentPipeline()
        >>> result = pipeline.apply(image, AdjustmentSet(exposure=1.0))
        >>> result.stages
        ['exposure']
    """

    def __init__(self) -> None:
        self._stages: list[tuple[str, Stage]] = [
            ("exposure", self._exposure),
            ("contrast", self._contrast),
            ("highlights_shadows", self._highlights_shadows),
            ("whites_blacks", self._whites_blacks),
            ("saturation_vibrance", self._saturation_vibrance),
            ("temperature_tint", self._temperature_tint),
            ("tone_curve", self._tone_curve),
            ("color_grading", self._color_grading),
            ("hsl", self._hsl),
            ("sharpening", self._sharpening),
            ("noise_reduction", self._noise_reduction),
            ("clarity", self._clarity),
            ("vignette", self._vignette),
            ("dehaze", self._dehaze),
            ("lens_corrections", self._lens_corrections),
            ("split_toning", self._split_toning),
        ]

    @property
    def stage_names(self) -> list[str]:
        return [name for name, _ in self._stages]

    def apply(self, image: Image.Image, adjustments: AdjustmentSet) -> PipelineResult:
        """Run every non-identity stage over ``image``.

        The input image is never modified.
        """
        if adjustments.is_identity:
            return PipelineResult(image=image.copy())

        current = image
        ran: list[str] = []
        for name, stage in self._stages:
            out = stage(current, adjustments)
            if out is None:
                continue
            current = out
            ran.append(name)
            self.logger.debug(f"Stage {name} applied")

        if adjustments.local_adjustments:
            self.logger.debug(
                f"{len(adjustments.local_adjustments)} local adjustment(s) not rendered"
            )

        if current is image:
            current = image.copy()
        return PipelineResult(image=current, stages=ran)

    # Each stage returns None when skipped.

    def _exposure(self, img: Image.Image, adj: AdjustmentSet) -> Optional[Image.Image]:
        if adj.exposure == 0:
            return None
        return backend.gamma(img, exposure_gamma(adj.exposure))

    def _contrast(self, img: Image.Image, adj: AdjustmentSet) -> Optional[Image.Image]:
        if adj.contrast == 0:
            return None
        return backend.linear(img, contrast_multiplier(adj.contrast), 0.0)

    def _highlights_shadows(self, img: Image.Image, adj: AdjustmentSet) -> Optional[Image.Image]:
        if adj.highlights == 0 and adj.shadows == 0:
            return None
        return backend.modulate(
            img, brightness=highlight_shadow_brightness(adj.highlights, adj.shadows)
        )

    def _whites_blacks(self, img: Image.Image, adj: AdjustmentSet) -> Optional[Image.Image]:
        if adj.whites == 0 and adj.blacks == 0:
            return None
        multiplier, offset = whites_blacks_linear(adj.whites, adj.blacks)
        return backend.linear(img, multiplier, offset)

    def _saturation_vibrance(self, img: Image.Image, adj: AdjustmentSet) -> Optional[Image.Image]:
        if adj.saturation == 0 and adj.vibrance == 0:
            return None
        return backend.modulate(
            img, saturation=saturation_multiplier(adj.saturation, adj.vibrance)
        )

    def _temperature_tint(self, img: Image.Image, adj: AdjustmentSet) -> Optional[Image.Image]:
        if adj.temperature == 0 and adj.tint == 0:
            return None
        return backend.modulate(img, hue=temperature_tint_hue(adj.temperature, adj.tint))

    def _tone_curve(self, img: Image.Image, adj: AdjustmentSet) -> Optional[Image.Image]:
        curve: Optional[ToneCurve] = adj.tone_curve
        if curve is None or (curve.highlights == 0 and curve.shadows == 0):
            return None
        # lights, darks and the parametric zones have no transform yet
        if curve.highlights != 0:
            img = backend.linear(img, 1.0 + curve.highlights / 200.0, 0.0)
        if curve.shadows != 0:
            img = backend.modulate(img, brightness=1.0 + curve.shadows / 200.0)
        return img

    def _color_grading(self, img: Image.Image, adj: AdjustmentSet) -> Optional[Image.Image]:
        grading: Optional[ColorGrading] = adj.color_grading
        if grading is None or grading.shadows.is_neutral:
            return None
        zone = grading.shadows
        return backend.modulate(
            img,
            brightness=1.0 + zone.luminance / 100.0,
            saturation=1.0 + zone.saturation / 100.0,
            hue=zone.hue * 0.1,
        )

    def _hsl(self, img: Image.Image, adj: AdjustmentSet) -> Optional[Image.Image]:
        hsl: Optional[HSLAdjustments] = adj.hsl
        if hsl is None:
            return None
        if hsl.lightness != HueFamilyValues():
            self.logger.debug(f"HSL lightness not rendered ({hsl.lightness.model_dump()})")
        touched = False
        for family in HueFamily:
            hue, sat, lum = hsl.channel(family)
            if hue == 0 and sat == 0 and lum == 0:
                continue
            img = backend.modulate(
                img,
                brightness=1.0 + lum / 100.0,
                saturation=1.0 + sat / 100.0,
                hue=hue * 0.1,
            )
            touched = True
        return img if touched else None

    def _sharpening(self, img: Image.Image, adj: AdjustmentSet) -> Optional[Image.Image]:
        if adj.sharpening <= 0:
            return None
        return backend.sharpen(img, sigma=1.0, amount=adj.sharpening / 100.0)

    def _noise_reduction(self, img: Image.Image, adj: AdjustmentSet) -> Optional[Image.Image]:
        if adj.noise_reduction <= 0:
            return None
        kind, value = noise_reduction_filter(adj.noise_reduction)
        if kind == "median":
            return backend.median(img, int(value))
        return backend.blur(img, value)

    def _clarity(self, img: Image.Image, adj: AdjustmentSet) -> Optional[Image.Image]:
        if adj.clarity > 0:
            return backend.sharpen(img, sigma=3.0, amount=abs(adj.clarity) / 100.0)
        if adj.clarity < 0:
            return backend.blur(img, abs(adj.clarity) / 100.0 * 0.5)
        return None

    def _vignette(self, img: Image.Image, adj: AdjustmentSet) -> Optional[Image.Image]:
        return self._apply_vignette(img, adj.vignette)

    @staticmethod
    def _apply_vignette(img: Image.Image, amount: float) -> Optional[Image.Image]:
        if amount == 0:
            return None
        return backend.modulate(img, brightness=vignette_brightness(amount))

    def _dehaze(self, img: Image.Image, adj: AdjustmentSet) -> Optional[Image.Image]:
        d = adj.dehaze
        if d == 0:
            return None
        strength = abs(d) / 100.0
        if d > 0:
            img = backend.modulate(
                img, brightness=1.0 + strength * 0.1, saturation=1.0 + strength * 0.2
            )
            return backend.linear(img, 1.0 + strength * 0.3, 0.0)
        img = backend.modulate(
            img, brightness=1.0 - strength * 0.1, saturation=1.0 - strength * 0.3
        )
        return backend.linear(img, 1.0 - strength * 0.2, strength * 20.0)

    def _lens_corrections(self, img: Image.Image, adj: AdjustmentSet) -> Optional[Image.Image]:
        lens = adj.lens_corrections
        if lens is None:
            return None
        if lens.chromatic_aberration or lens.distortion or lens.fringing:
            self.logger.debug(
                "Geometric lens corrections not rendered "
                f"(ca={lens.chromatic_aberration}, distortion={lens.distortion}, "
                f"fringing={lens.fringing})"
            )
        # Correcting vignetting is the inverse of adding it
        return self._apply_vignette(img, -lens.vignetting)

    def _split_toning(self, img: Image.Image, adj: AdjustmentSet) -> Optional[Image.Image]:
        toning = adj.split_toning
        if toning is None or (toning.highlights.hue == 0 and toning.shadows.hue == 0):
            return None
        return backend.modulate(img, hue=(toning.highlights.hue + toning.shadows.hue) * 0.05)
