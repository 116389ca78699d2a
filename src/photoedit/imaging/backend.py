"""
Image-processing primitives the adjustment pipeline composes.

This is the codec backend: decode, tone/color primitives (gamma, linear,
modulate), detail primitives (sharpen, blur, median), resize, encode and
write. Every primitive takes a PIL image and returns a new one; none keeps
state between calls, so they are safe to call from several threads.

Tone and color primitives work on the color channels only; an alpha channel
is carried through untouched. Grayscale images ignore hue and saturation.
"""

import io
import math
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, ImageFilter, UnidentifiedImageError

from photoedit.core.exceptions import DecodeFailure, UnsupportedExportFormat
from photoedit.core.types import ExportFormat, FitMode

ImageSource = Union[str, Path, bytes, Image.Image, np.ndarray]

# Modes the pipeline works in; anything else is converted on decode.
WORKING_MODES = ("L", "LA", "RGB", "RGBA")

# Single-channel 16-bit, 32-bit integer and float modes; scaled down to L on decode.
HIGH_BIT_MODES = ("I;16", "I;16B", "I;16L", "I;16N", "I", "F")

# Rec. 601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float32)

PIL_FORMATS = {
    ExportFormat.JPEG: "JPEG",
    ExportFormat.JPG: "JPEG",
    ExportFormat.PNG: "PNG",
    ExportFormat.WEBP: "WEBP",
    ExportFormat.TIFF: "TIFF",
    ExportFormat.TIF: "TIFF",
}


def decode(source: ImageSource) -> Image.Image:
    """Decode a source into a fully loaded PIL image in a working mode.

    Args:
        source: File path, encoded bytes, PIL image or uint8 numpy array.
            RAW camera files are decoded through rawpy.

    Raises:
        DecodeFailure: If the source is missing, unreadable or corrupt.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.is_file():
            raise DecodeFailure(f"Image file not found: {path}", path=path)

        # Import here: raw pulls in rawpy, only needed for camera files
        from photoedit.imaging.raw import decode_raw, is_raw_file

        if is_raw_file(path):
            img = decode_raw(path)
        else:
            img = _open(path, path)
    elif isinstance(source, bytes):
        img = _open(io.BytesIO(source), None)
    elif isinstance(source, Image.Image):
        img = source.copy()
    elif isinstance(source, np.ndarray):
        img = _from_array(source)
    else:
        raise TypeError(f"Unsupported source type: {type(source)}")

    if img.mode in HIGH_BIT_MODES:
        img = _to_8bit(img)
    if img.mode not in WORKING_MODES:
        has_alpha = "A" in img.getbands() or "transparency" in img.info
        img = img.convert("RGBA" if has_alpha else "RGB")
    return img


def _open(fp, path: Optional[Path]) -> Image.Image:
    try:
        with Image.open(fp) as opened:
            opened.load()
            img = opened.copy()
            img.format = opened.format
            return img
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
    ) as e:
        raise DecodeFailure(f"Unable to decode image: {e}", path=path) from e


def _to_8bit(img: Image.Image) -> Image.Image:
    """Scale a high-bit-depth single-channel image to 8-bit L.

    Integer modes are read as 16-bit samples (0-65535 onto 0-255), which is
    how 16-bit PNG and TIFF files open. Float images in 0-1 are scaled by 255;
    any other float range is stretched from its own min/max.
    """
    arr = np.asarray(img, dtype=np.float64)
    if img.mode != "F":
        arr = np.clip(arr, 0, 65535) / 257.0
    elif arr.min() >= 0.0 and arr.max() <= 1.0:
        arr = arr * 255.0
    else:
        lo, hi = float(arr.min()), float(arr.max())
        arr = (arr - lo) * (255.0 / (hi - lo)) if hi > lo else np.zeros_like(arr)
    return Image.fromarray(np.clip(np.rint(arr), 0, 255).astype(np.uint8), mode="L")


def _from_array(arr: np.ndarray) -> Image.Image:
    if arr.ndim == 2:
        return Image.fromarray(arr.astype(np.uint8), mode="L")
    if arr.ndim == 3 and arr.shape[2] == 3:
        return Image.fromarray(arr.astype(np.uint8), mode="RGB")
    if arr.ndim == 3 and arr.shape[2] == 4:
        return Image.fromarray(arr.astype(np.uint8), mode="RGBA")
    raise ValueError(f"Unsupported array shape: {arr.shape}")


def _split(image: Image.Image) -> tuple[np.ndarray, Optional[Image.Image]]:
    """Color channels as float32 array plus the alpha band, if any."""
    alpha = None
    if image.mode in ("LA", "RGBA"):
        alpha = image.getchannel("A")
        image = image.convert("L" if image.mode == "LA" else "RGB")
    return np.asarray(image, dtype=np.float32), alpha


def _join(arr: np.ndarray, alpha: Optional[Image.Image]) -> Image.Image:
    out = np.clip(np.rint(arr), 0, 255).astype(np.uint8)
    img = Image.fromarray(out, mode="L" if out.ndim == 2 else "RGB")
    if alpha is not None:
        img.putalpha(alpha)
    return img


def _filter_color(image: Image.Image, image_filter: ImageFilter.Filter) -> Image.Image:
    """Apply a PIL filter to the color channels, keeping alpha."""
    if image.mode in ("LA", "RGBA"):
        alpha = image.getchannel("A")
        base = image.convert("L" if image.mode == "LA" else "RGB").filter(image_filter)
        base.putalpha(alpha)
        return base
    return image.filter(image_filter)


def gamma(image: Image.Image, value: float) -> Image.Image:
    """Gamma curve ``out = 255 * (in / 255) ** (1 / value)``.

    Values above 1 brighten, values below 1 darken.
    """
    if value <= 0:
        raise ValueError(f"Gamma must be positive, got {value}")
    lut = np.clip(
        np.rint(255.0 * (np.arange(256, dtype=np.float64) / 255.0) ** (1.0 / value)), 0, 255
    ).astype(np.uint8)
    arr, alpha = _split(image)
    return _join(lut[arr.astype(np.uint8)], alpha)


def linear(image: Image.Image, multiplier: float, offset: float = 0.0) -> Image.Image:
    """Per-channel linear transform ``out = multiplier * in + offset``."""
    arr, alpha = _split(image)
    return _join(arr * multiplier + offset, alpha)


def hue_rotation_matrix(degrees: float) -> np.ndarray:
    """3x3 luminance-preserving hue rotation matrix."""
    rad = math.radians(degrees)
    c, s = math.cos(rad), math.sin(rad)
    return np.array(
        [
            [0.213 + c * 0.787 - s * 0.213, 0.715 - c * 0.715 - s * 0.715, 0.072 - c * 0.072 + s * 0.928],
            [0.213 - c * 0.213 + s * 0.143, 0.715 + c * 0.285 + s * 0.140, 0.072 - c * 0.072 - s * 0.283],
            [0.213 - c * 0.213 - s * 0.787, 0.715 - c * 0.715 + s * 0.715, 0.072 + c * 0.928 + s * 0.072],
        ],
        dtype=np.float32,
    )


def modulate(
    image: Image.Image,
    brightness: float = 1.0,
    saturation: float = 1.0,
    hue: float = 0.0,
) -> Image.Image:
    """Scale brightness and saturation, then rotate hue by ``hue`` degrees.

    A neutral call (1, 1, 0) returns an unchanged copy.
    """
    if brightness == 1.0 and saturation == 1.0 and hue == 0.0:
        return image.copy()

    arr, alpha = _split(image)
    if brightness != 1.0:
        arr = arr * brightness

    if arr.ndim == 3:
        if saturation != 1.0:
            luma = arr @ LUMA_WEIGHTS
            arr = luma[..., None] + (arr - luma[..., None]) * saturation
        if hue != 0.0:
            arr = arr @ hue_rotation_matrix(hue).T

    return _join(arr, alpha)


def sharpen(image: Image.Image, sigma: float = 1.0, amount: float = 1.0) -> Image.Image:
    """Unsharp mask with Gaussian radius ``sigma`` and strength ``amount`` (1.0 = 100%)."""
    percent = int(round(amount * 100))
    if percent <= 0:
        return image.copy()
    return _filter_color(image, ImageFilter.UnsharpMask(radius=sigma, percent=percent, threshold=0))


def blur(image: Image.Image, sigma: float) -> Image.Image:
    """Gaussian blur with radius ``sigma``."""
    if sigma <= 0:
        return image.copy()
    return _filter_color(image, ImageFilter.GaussianBlur(radius=sigma))


def median(image: Image.Image, radius: int) -> Image.Image:
    """Median filter over a (2 * radius + 1) square window."""
    if radius < 1:
        return image.copy()
    return _filter_color(image, ImageFilter.MedianFilter(size=2 * radius + 1))


def resize(
    image: Image.Image,
    width: Optional[int] = None,
    height: Optional[int] = None,
    fit: FitMode = FitMode.INSIDE,
    without_enlargement: bool = True,
) -> Image.Image:
    """Resize to target dimensions following a fit policy.

    With only one dimension given the other follows the aspect ratio.
    ``without_enlargement`` never scales the image up.
    """
    if width is None and height is None:
        return image.copy()

    src_w, src_h = image.size
    fit = FitMode(fit)
    resample = Image.Resampling.LANCZOS

    if width is None or height is None:
        scale = (width / src_w) if width is not None else (height / src_h)
        if without_enlargement:
            scale = min(scale, 1.0)
        new_size = (max(1, round(src_w * scale)), max(1, round(src_h * scale)))
        return image.resize(new_size, resample)

    if fit == FitMode.FILL:
        target = (width, height)
        if without_enlargement:
            target = (min(width, src_w), min(height, src_h))
        return image.resize(target, resample)

    scale_inside = min(width / src_w, height / src_h)
    scale_outside = max(width / src_w, height / src_h)

    if fit in (FitMode.INSIDE, FitMode.CONTAIN):
        scale = min(scale_inside, 1.0) if without_enlargement else scale_inside
        new_size = (max(1, round(src_w * scale)), max(1, round(src_h * scale)))
        resized = image.resize(new_size, resample)
        if fit == FitMode.INSIDE:
            return resized
        # CONTAIN: center on a black (or transparent) canvas of the exact size
        canvas = Image.new(resized.mode, (width, height))
        canvas.paste(resized, ((width - resized.width) // 2, (height - resized.height) // 2))
        return canvas

    scale = min(scale_outside, 1.0) if without_enlargement else scale_outside
    new_size = (max(1, round(src_w * scale)), max(1, round(src_h * scale)))
    resized = image.resize(new_size, resample)
    if fit == FitMode.OUTSIDE:
        return resized

    # COVER: crop the overflow around the center
    crop_w, crop_h = min(width, resized.width), min(height, resized.height)
    left = (resized.width - crop_w) // 2
    top = (resized.height - crop_h) // 2
    return resized.crop((left, top, left + crop_w, top + crop_h))


def encode(
    image: Image.Image,
    export_format: Union[ExportFormat, str],
    quality: int = 90,
    dpi: Optional[int] = None,
) -> bytes:
    """Encode an image to bytes.

    Raises:
        UnsupportedExportFormat: For formats outside ExportFormat.
    """
    try:
        fmt = ExportFormat(str(getattr(export_format, "value", export_format)).lower())
    except ValueError:
        raise UnsupportedExportFormat(str(export_format)) from None

    pil_format = PIL_FORMATS[fmt]
    save_kwargs: dict = {}
    if dpi:
        save_kwargs["dpi"] = (dpi, dpi)

    if pil_format == "JPEG":
        save_kwargs.update(quality=quality, progressive=True, optimize=True)
        # JPEG doesn't support alpha
        if image.mode in ("RGBA", "LA"):
            image = image.convert("RGB" if image.mode == "RGBA" else "L")
    elif pil_format == "PNG":
        save_kwargs["compress_level"] = 9
    elif pil_format == "WEBP":
        save_kwargs.update(quality=quality, method=6)
    elif pil_format == "TIFF":
        save_kwargs["compression"] = "tiff_lzw"

    buffer = io.BytesIO()
    image.save(buffer, format=pil_format, **save_kwargs)
    return buffer.getvalue()


def write(data: bytes, path: Union[str, Path]) -> Path:
    """Write encoded bytes to ``path``."""
    path = Path(path)
    path.write_bytes(data)
    return path
