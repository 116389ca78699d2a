"""
RAW camera file decoding.

RAW files are demosaiced by LibRaw through rawpy and handed to the pipeline
as 8-bit RGB images. Decoding is parameterized by RawSettings, with
per-manufacturer defaults from settings_for_camera().
"""

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image

from photoedit.core.exceptions import DecodeFailure
from photoedit.core.logging import get_logger

logger = get_logger(__name__)

RAW_EXTENSIONS = frozenset(
    {
        ".cr2", ".cr3", ".crw",  # Canon
        ".nef", ".nrw",  # Nikon
        ".arw", ".srf", ".sr2",  # Sony
        ".orf", ".ori",  # Olympus
        ".rw2",  # Panasonic
        ".pef", ".ptx",  # Pentax
        ".raf",  # Fujifilm
        ".3fr", ".fff",  # Hasselblad
        ".dcr", ".mrw", ".mdc",  # Kodak / Minolta
        ".erf",  # Epson
        ".mos",  # Leaf
        ".raw", ".rwl",  # Leica / Panasonic
        ".dng",  # Adobe
        ".iiq",  # Phase One
        ".k25", ".kdc",  # Kodak
        ".mef",  # Mamiya
        ".rdc",  # Ricoh
        ".bay",  # Casio
        ".x3f",  # Sigma
    }
)


class DemosaicAlgorithm(str, Enum):
    """Demosaic algorithms exposed by LibRaw without GPL demosaic packs."""

    LINEAR = "LINEAR"
    VNG = "VNG"
    PPG = "PPG"
    AHD = "AHD"
    DCB = "DCB"
    DHT = "DHT"
    AAHD = "AAHD"


class WhiteBalance(str, Enum):
    AUTO = "auto"
    CAMERA = "camera"
    CUSTOM = "custom"


@dataclass(frozen=True)
class RawSettings:
    """Settings for RAW development."""

    demosaic: DemosaicAlgorithm = DemosaicAlgorithm.AHD
    white_balance: WhiteBalance = WhiteBalance.CAMERA
    # Channel multipliers (R, G, B, G2) for WhiteBalance.CUSTOM
    custom_multipliers: Optional[tuple[float, float, float, float]] = None

    # Exposure compensation in stops (-2 to +3)
    exposure_compensation: float = 0.0
    highlight_recovery: int = 0  # 0-9, LibRaw highlight mode

    noise_reduction: bool = True
    denoising_strength: float = 0.25  # 0-1, mapped to the wavelet threshold

    output_gamma: tuple[float, float] = (2.222, 4.5)  # BT.709
    half_size: bool = False


def settings_for_camera(camera_make: str) -> RawSettings:
    """Default RawSettings for a camera manufacturer."""
    base = RawSettings()
    make = camera_make.strip().lower()

    if make == "canon":
        return replace(base, demosaic=DemosaicAlgorithm.DCB)
    if make == "nikon":
        return replace(base, demosaic=DemosaicAlgorithm.AHD)
    if make == "sony":
        return replace(base, demosaic=DemosaicAlgorithm.VNG)
    if make in ("fujifilm", "fuji"):
        # X-Trans sensors: LibRaw handles the layout itself, DHT keeps detail
        return replace(base, demosaic=DemosaicAlgorithm.DHT, denoising_strength=0.15)
    return base


def is_raw_file(path: Union[str, Path]) -> bool:
    """Check if a file is a camera RAW format by extension."""
    return Path(path).suffix.lower() in RAW_EXTENSIONS


def decode_raw(path: Union[str, Path], settings: Optional[RawSettings] = None) -> Image.Image:
    """Demosaic a RAW file into an 8-bit RGB image.

    Raises:
        DecodeFailure: If rawpy cannot read or develop the file.
    """
    import rawpy

    settings = settings or RawSettings()
    path = Path(path)

    params = dict(
        demosaic_algorithm=rawpy.DemosaicAlgorithm[settings.demosaic.value],
        use_camera_wb=settings.white_balance == WhiteBalance.CAMERA,
        use_auto_wb=settings.white_balance == WhiteBalance.AUTO,
        exp_shift=float(2 ** settings.exposure_compensation),
        highlight_mode=settings.highlight_recovery,
        gamma=settings.output_gamma,
        half_size=settings.half_size,
        no_auto_bright=True,
        output_bps=8,
    )
    if settings.white_balance == WhiteBalance.CUSTOM and settings.custom_multipliers:
        params["user_wb"] = list(settings.custom_multipliers)
    if settings.noise_reduction and settings.denoising_strength > 0:
        params["noise_thr"] = settings.denoising_strength * 1000

    try:
        with rawpy.imread(str(path)) as raw:
            rgb = raw.postprocess(**params)
    except (rawpy.LibRawError, OSError) as e:
        raise DecodeFailure(f"RAW processing failed: {e}", path=path) from e

    logger.debug(f"Decoded RAW {path.name} with {settings.demosaic.value}: {rgb.shape}")
    return Image.fromarray(np.ascontiguousarray(rgb, dtype=np.uint8), mode="RGB")
