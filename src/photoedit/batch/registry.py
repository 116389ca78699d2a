"""
In-memory job registry: the single owner of batch job state.

Every read and write of jobs and of the admission queue goes through one
re-entrant lock held by the registry. A condition variable on that lock is
notified on every state change so callers can wait for a job or for the
scheduler to go idle instead of polling.

Readers always receive deep-copied snapshots.
"""

import bisect
import threading
from collections import deque
from datetime import datetime
from typing import Callable, Optional

from photoedit.batch.models import BatchJob, JobStatistics
from photoedit.core.exceptions import JobNotFound, JobStateConflict
from photoedit.core.logging import get_logger
from photoedit.core.types import JobStatus

logger = get_logger(__name__)


def progress_percent(attempted: int, total: int) -> int:
    """Whole percentage of files attempted, rounding halves up."""
    if total <= 0:
        return 100
    return min(100, int(attempted * 100 / total + 0.5))


class JobRegistry:
    """Job id -> BatchJob table plus the FIFO admission queue.

    Transitions:
        pending -> processing -> completed | failed
        pending -> failed (cancellation, output directory failure)

    Terminal jobs never transition again; removal is their only exit.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._changed = threading.Condition(self._lock)
        self._jobs: dict[str, BatchJob] = {}
        self._queue: deque[str] = deque()
        # Input index of each recorded error, parallel to job.errors
        self._error_positions: dict[str, list[int]] = {}
        # Files attempted so far per processing job
        self._attempted: dict[str, int] = {}

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    # --- Internal helpers (call with the lock held) ---------------------------

    def _require(self, job_id: str) -> BatchJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFound(job_id)
        return job

    def _require_status(self, job: BatchJob, status: JobStatus, action: str) -> None:
        if job.status != status:
            raise JobStateConflict(job.id, job.status.value, action)

    def _notify(self) -> None:
        self._changed.notify_all()

    def wake(self) -> None:
        """Wake every waiter so it re-evaluates its predicate."""
        with self._changed:
            self._notify()

    # --- Reads ------------------------------------------------------------------

    def get(self, job_id: str) -> Optional[BatchJob]:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.snapshot() if job else None

    def all(self) -> list[BatchJob]:
        """All jobs, newest first."""
        with self._lock:
            jobs = [job.snapshot() for job in reversed(self._jobs.values())]
        return sorted(jobs, key=lambda j: j.created_at, reverse=True)

    def by_status(self, status: JobStatus) -> list[BatchJob]:
        status = JobStatus(status)
        return [job for job in self.all() if job.status == status]

    def processing_count(self) -> int:
        with self._lock:
            return sum(1 for job in self._jobs.values() if job.status == JobStatus.PROCESSING)

    def queued_ids(self) -> list[str]:
        with self._lock:
            return list(self._queue)

    def statistics(self) -> JobStatistics:
        with self._lock:
            stats = JobStatistics(total=len(self._jobs))
            for job in self._jobs.values():
                setattr(stats, job.status.value, getattr(stats, job.status.value) + 1)
                stats.total_files_processed += job.processed_files
                stats.total_files_queued += job.total_files
                stats.total_errors += len(job.errors)
            return stats

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._jobs

    # --- Writes -----------------------------------------------------------------

    def add(self, job: BatchJob) -> BatchJob:
        """Register a new pending job; the registry keeps its own copy."""
        with self._lock:
            if job.id in self._jobs:
                raise JobStateConflict(job.id, self._jobs[job.id].status.value, "add")
            self._jobs[job.id] = job.snapshot()
            self._notify()
            return job.snapshot()

    def enqueue(self, job_id: str) -> int:
        """Append a pending job to the admission queue.

        Returns:
            Queue length after the append.
        """
        with self._lock:
            job = self._require(job_id)
            self._require_status(job, JobStatus.PENDING, "queue")
            if job_id in self._queue:
                raise JobStateConflict(job_id, "queued", "queue")
            self._queue.append(job_id)
            self._notify()
            return len(self._queue)

    def admit(self, max_concurrent: int) -> list[BatchJob]:
        """Pop queued jobs while fewer than ``max_concurrent`` are processing.

        Each admitted job is moved to ``processing`` before this returns, so
        the cap holds at every instant a reader can observe.

        Returns:
            Snapshots of the admitted jobs, in FIFO order.
        """
        admitted: list[BatchJob] = []
        with self._lock:
            active = self.processing_count()
            while self._queue and active < max_concurrent:
                job = self._jobs.get(self._queue.popleft())
                if job is None or job.status != JobStatus.PENDING:
                    continue
                job.status = JobStatus.PROCESSING
                job.started_at = datetime.now()
                job.progress = 0
                job.processed_files = 0
                job.errors = []
                self._error_positions[job.id] = []
                self._attempted[job.id] = 0
                active += 1
                admitted.append(job.snapshot())
            if admitted:
                self._notify()
        return admitted

    def record_success(self, job_id: str) -> BatchJob:
        """Count one exported file of a processing job."""
        with self._lock:
            job = self._require(job_id)
            self._require_status(job, JobStatus.PROCESSING, "record file")
            job.processed_files += 1
            self._advance(job)
            return job.snapshot()

    def record_error(self, job_id: str, index: int, message: str) -> BatchJob:
        """Record the failure of the input at ``index``; errors stay in input order."""
        with self._lock:
            job = self._require(job_id)
            self._require_status(job, JobStatus.PROCESSING, "record file")
            positions = self._error_positions.setdefault(job_id, [])
            at = bisect.bisect_right(positions, index)
            positions.insert(at, index)
            job.errors.insert(at, message)
            self._advance(job)
            return job.snapshot()

    def _advance(self, job: BatchJob) -> None:
        attempted = self._attempted.get(job.id, 0) + 1
        self._attempted[job.id] = attempted
        job.progress = progress_percent(attempted, job.total_files)
        self._notify()

    def finish(self, job_id: str) -> BatchJob:
        """Close a processing job: completed without errors, failed otherwise."""
        with self._lock:
            job = self._require(job_id)
            self._require_status(job, JobStatus.PROCESSING, "finish")
            job.status = JobStatus.COMPLETED if not job.errors else JobStatus.FAILED
            job.completed_at = datetime.now()
            job.progress = 100
            self._error_positions.pop(job_id, None)
            self._attempted.pop(job_id, None)
            self._notify()
            return job.snapshot()

    def fail_pending(self, job_id: str, message: str, action: str = "fail") -> BatchJob:
        """Fail a job that has not started, removing it from the queue."""
        with self._lock:
            job = self._require(job_id)
            self._require_status(job, JobStatus.PENDING, action)
            if job_id in self._queue:
                self._queue.remove(job_id)
            job.status = JobStatus.FAILED
            job.errors.append(message)
            job.completed_at = datetime.now()
            self._notify()
            return job.snapshot()

    def remove(self, job_id: str) -> BatchJob:
        """Remove a terminal job."""
        with self._lock:
            job = self._require(job_id)
            if not job.is_terminal:
                raise JobStateConflict(job_id, job.status.value, "delete")
            del self._jobs[job_id]
            self._notify()
            return job

    # --- Waiting ------------------------------------------------------------------

    def wait_until(self, predicate: Callable[[], bool], timeout: Optional[float] = None) -> bool:
        """Block until ``predicate`` (evaluated under the lock) holds.

        Returns:
            The predicate's last value; False means the timeout elapsed.
        """
        with self._changed:
            return self._changed.wait_for(predicate, timeout=timeout)

    def is_terminal_or_gone(self, job_id: str) -> bool:
        with self._lock:
            job = self._jobs.get(job_id)
            return job is None or job.is_terminal

    def is_idle(self) -> bool:
        with self._lock:
            return not self._queue and self.processing_count() == 0
