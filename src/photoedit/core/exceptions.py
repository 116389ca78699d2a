"""
Exception hierarchy for the photoedit core.

- PhotoEditError (base)
  - ImagingError
    - DecodeFailure
    - UnsupportedExportFormat
  - BatchError
    - DirectoryCreateFailure
    - InputFileMissing
    - OutputExistsNoOverwrite
    - JobNotFound
    - JobStateConflict
  - PresetError
    - PresetImportError

All exceptions carry optional context about the path and operation involved.
"""

from pathlib import Path
from typing import Any, Union


class PhotoEditError(Exception):
    """Base exception for photoedit errors.

    Attributes:
        path: File or directory the error relates to.
        operation: Operation that failed.
        details: Additional error details.
    """

    def __init__(
        self,
        message: str,
        path: Union[str, Path, None] = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.path = str(path) if path is not None else None
        self.operation = operation
        self.details = details or {}

    def __str__(self) -> str:
        parts = [self.message]
        if self.operation:
            parts.append(f"Operation: {self.operation}")
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"Details: {details_str}")
        return " | ".join(parts)


class ImagingError(PhotoEditError):
    """Base class for decode/encode failures."""


class DecodeFailure(ImagingError):
    """Source image is missing, unreadable or corrupt."""

    def __init__(self, message: str = "Unable to decode image", **kwargs: Any):
        kwargs.setdefault("operation", "decode")
        super().__init__(message, **kwargs)


class UnsupportedExportFormat(ImagingError):
    """Requested export format is not one the encoder can produce."""

    def __init__(self, export_format: str, **kwargs: Any):
        kwargs.setdefault("operation", "encode")
        super().__init__(f"Unsupported export format: {export_format}", **kwargs)
        self.export_format = export_format


class BatchError(PhotoEditError):
    """Base class for batch scheduling errors."""


class DirectoryCreateFailure(BatchError):
    """Output directory could not be created before queueing."""


class InputFileMissing(BatchError):
    """An input file of a batch job does not exist."""

    def __init__(self, message: str = "Input file does not exist", **kwargs: Any):
        super().__init__(message, **kwargs)


class OutputExistsNoOverwrite(BatchError):
    """Destination exists and the job's export options forbid overwriting."""

    def __init__(
        self, message: str = "Output file exists and overwrite is disabled", **kwargs: Any
    ):
        super().__init__(message, **kwargs)


class JobNotFound(BatchError):
    """No job with the given id is registered."""

    def __init__(self, job_id: str):
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id


class JobStateConflict(BatchError):
    """Requested transition is not allowed from the job's current status."""

    def __init__(self, job_id: str, status: str, action: str):
        super().__init__(
            f"Cannot {action} job {job_id} in status '{status}'",
            operation=action,
        )
        self.job_id = job_id
        self.status = status


class PresetError(PhotoEditError):
    """Base class for preset library errors."""


class PresetImportError(PresetError):
    """Preset data could not be parsed."""
