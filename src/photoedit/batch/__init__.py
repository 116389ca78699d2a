"""
Batch module: job model, registry and the concurrency-bounded scheduler.
"""

from photoedit.batch.models import BatchJob, JobStatistics, QueueStatus
from photoedit.batch.registry import JobRegistry, progress_percent
from photoedit.batch.scheduler import CANCELLED_MESSAGE, BatchScheduler

__all__ = [
    "BatchJob",
    "BatchScheduler",
    "CANCELLED_MESSAGE",
    "JobRegistry",
    "JobStatistics",
    "QueueStatus",
    "progress_percent",
]
