"""
Batch job data models.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from photoedit.core.models import AdjustmentSet, ExportOptions, generate_id
from photoedit.core.types import JobStatus

JOB_ID_PREFIX = "batch"


class BatchJob(BaseModel):
    """One batch of files carried through one AdjustmentSet and one export configuration.

    Jobs handed out by the scheduler are snapshots; changing them has no
    effect on the job the scheduler runs.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Identity
    id: str = Field(default_factory=lambda: generate_id(JOB_ID_PREFIX))
    name: str
    created_at: datetime = Field(default_factory=datetime.now)

    # Inputs
    input_files: list[Path] = Field(default_factory=list)
    output_directory: Path
    adjustments: AdjustmentSet = Field(default_factory=AdjustmentSet)
    export_options: ExportOptions = Field(default_factory=ExportOptions)

    # State
    status: JobStatus = JobStatus.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    processed_files: int = 0
    errors: list[str] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def total_files(self) -> int:
        return len(self.input_files)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get processing duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def snapshot(self) -> "BatchJob":
        return self.model_copy(deep=True)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        data = self.model_dump(mode="json", by_alias=True)
        data["totalFiles"] = self.total_files
        data["durationSeconds"] = self.duration_seconds
        return data


class JobStatistics(BaseModel):
    """Aggregate counts over every job in the registry."""

    total: int = 0
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0
    total_files_processed: int = 0
    total_files_queued: int = 0
    total_errors: int = 0

    @property
    def success_rate(self) -> float:
        """Completed jobs as a percentage of finished jobs."""
        finished = self.completed + self.failed
        if finished == 0:
            return 0.0
        return (self.completed / finished) * 100


class QueueStatus(BaseModel):
    """Admission queue state at one instant."""

    queue_length: int
    queued_job_ids: list[str] = Field(default_factory=list)
    active_jobs: int
    max_concurrent_jobs: int

    @property
    def available_slots(self) -> int:
        return max(0, self.max_concurrent_jobs - self.active_jobs)
