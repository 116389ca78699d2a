"""
Export encoder: resize and encode pipeline output according to ExportOptions.
"""

from pathlib import Path
from typing import Optional, Union

from PIL import Image

from photoedit.core.exceptions import UnsupportedExportFormat
from photoedit.core.models import ExportOptions
from photoedit.core.types import ExportFormat
from photoedit.imaging import backend

EXTENSIONS = {
    ExportFormat.JPEG: ".jpg",
    ExportFormat.JPG: ".jpg",
    ExportFormat.PNG: ".png",
    ExportFormat.WEBP: ".webp",
    ExportFormat.TIFF: ".tiff",
    ExportFormat.TIF: ".tiff",
}

INDEX_WIDTH = 3


def output_extension(export_format: str, fallback: str = "") -> str:
    """File extension for an export format, ``fallback`` for unknown formats."""
    try:
        return EXTENSIONS[ExportFormat(str(export_format).lower())]
    except ValueError:
        return fallback


def output_filename(
    input_path: Union[str, Path],
    options: ExportOptions,
    index: int = 0,
) -> str:
    """Destination file name for the ``index``-th input of a batch.

    ``<prefix><stem><suffix>[_<index+1, 3 digits>]<ext>``. Example: prefix
    ``edit_`` with the index enabled turns ``photo.jpg`` at index 0 into
    ``edit_photo_001.jpg``.
    """
    input_path = Path(input_path)
    naming = options.file_naming
    name = f"{naming.prefix}{input_path.stem}{naming.suffix}"
    if naming.include_index:
        name += f"_{index + 1:0{INDEX_WIDTH}d}"
    return name + output_extension(options.format, input_path.suffix)


class ExportEncoder:
    """Turn an edited image into file bytes.

    Resizing follows the options' fit policy and never enlarges the image.
    """

    def encode(self, image: Image.Image, options: ExportOptions) -> bytes:
        """Encode ``image``.

        Raises:
            UnsupportedExportFormat: If the options name an unknown format.
        """
        fmt = options.export_format
        if fmt is None:
            raise UnsupportedExportFormat(options.format)

        if options.resize_requested:
            image = backend.resize(
                image,
                width=options.width,
                height=options.height,
                fit=options.fit,
                without_enlargement=True,
            )
        return backend.encode(image, fmt, quality=options.quality, dpi=options.resolution)

    def write(
        self,
        image: Image.Image,
        path: Union[str, Path],
        options: ExportOptions,
    ) -> Path:
        """Encode ``image`` and write it to ``path``."""
        return backend.write(self.encode(image, options), path)

    @staticmethod
    def output_extension(export_format: str, fallback: Optional[str] = "") -> str:
        return output_extension(export_format, fallback or "")
