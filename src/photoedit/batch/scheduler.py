"""
Batch scheduler: queues, admits and runs batch jobs.

Jobs are admitted from a FIFO queue while fewer than ``max_concurrent_jobs``
are processing. Each admitted job runs on its own worker thread and carries
its input files, in order, through the adjustment pipeline and the export
encoder. A failing file is recorded in the job's error list and the job moves
on; only an output directory that cannot be created stops a job, before it
is queued.

Within a job files run one at a time unless ``file_workers`` is raised, in
which case a bounded pool processes them while errors stay in input order.

Usage:
    scheduler = BatchScheduler()
    job = scheduler.create_batch_job("Holiday", files, "out/", adjustments, options)
    scheduler.queue_job(job.id)
    finished = scheduler.wait_for_job(job.id)
"""

import concurrent.futures
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

from photoedit.batch.models import BatchJob, JobStatistics, QueueStatus
from photoedit.batch.registry import JobRegistry
from photoedit.config import (
    MAX_CONCURRENT_JOBS,
    MIN_CONCURRENT_JOBS,
    BatchSettings,
    get_settings,
)
from photoedit.core.events import (
    BatchFileFailed,
    BatchFileProcessed,
    BatchJobCancelled,
    BatchJobFinished,
    BatchJobQueued,
    BatchJobStarted,
    EventBus,
    get_event_bus,
)
from photoedit.core.exceptions import (
    DirectoryCreateFailure,
    InputFileMissing,
    JobNotFound,
    JobStateConflict,
    OutputExistsNoOverwrite,
    PhotoEditError,
)
from photoedit.core.logging import LogContext, LoggingMixin, log_operation
from photoedit.core.models import AdjustmentSet, ExportOptions
from photoedit.core.types import JobStatus
from photoedit.imaging import backend
from photoedit.imaging.encoder import ExportEncoder, output_filename
from photoedit.imaging.pipeline import AdjustmentPipeline
from photoedit.presets.library import PresetLibrary
from photoedit.presets.resolver import PresetResolver

CANCELLED_MESSAGE = "Job cancelled by user"

PathLike = Union[str, Path]


class BatchScheduler(LoggingMixin):
    """Run batches of photo edits under a concurrency cap.

    Supports:
    - FIFO admission bounded by ``max_concurrent_jobs`` (1-10)
    - Per-file error isolation with a completed/failed outcome per job
    - Cancellation of jobs that have not started
    - Job snapshots, statistics and blocking waits
    - Batch events on the event bus
    """

    def __init__(
        self,
        settings: Optional[BatchSettings] = None,
        pipeline: Optional[AdjustmentPipeline] = None,
        encoder: Optional[ExportEncoder] = None,
        presets: Optional[PresetLibrary] = None,
        event_bus: Optional[EventBus] = None,
    ):
        """Initialize the scheduler.

        Args:
            settings: Batch settings. If None, uses the global settings.
            pipeline: Adjustment pipeline shared by all jobs.
            encoder: Export encoder shared by all jobs.
            presets: Preset library for create_batch_job_from_preset.
            event_bus: Bus batch events are published on.
        """
        self.settings = settings or get_settings().batch
        self.pipeline = pipeline or AdjustmentPipeline()
        self.encoder = encoder or ExportEncoder()
        self.events = event_bus or get_event_bus()
        self.registry = JobRegistry()

        self._presets = presets
        self._max_concurrent = self._clamp(self.settings.max_concurrent_jobs)
        self._file_workers = self.settings.file_workers
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=MAX_CONCURRENT_JOBS, thread_name_prefix="photoedit-batch"
        )
        self._closed = False

    def __enter__(self) -> "BatchScheduler":
        return self

    def __exit__(self, *args: Any) -> None:
        self.shutdown(wait=True)

    @staticmethod
    def _clamp(n: int) -> int:
        return max(MIN_CONCURRENT_JOBS, min(int(n), MAX_CONCURRENT_JOBS))

    @property
    def presets(self) -> PresetLibrary:
        if self._presets is None:
            self._presets = PresetLibrary()
        return self._presets

    @property
    def max_concurrent_jobs(self) -> int:
        return self._max_concurrent

    # --- Job creation -----------------------------------------------------------

    def create_batch_job(
        self,
        name: Optional[str],
        input_files: Sequence[PathLike],
        output_directory: PathLike,
        adjustments: Union[AdjustmentSet, Mapping[str, Any], None] = None,
        export_options: Union[ExportOptions, Mapping[str, Any], None] = None,
    ) -> BatchJob:
        """Create a pending job. No filesystem or pipeline work happens here.

        The adjustments and export options are copied; later changes to the
        caller's objects do not affect the job.
        """
        if adjustments is None:
            adjustments = AdjustmentSet()
        elif not isinstance(adjustments, AdjustmentSet):
            adjustments = AdjustmentSet.model_validate(adjustments)
        if export_options is None:
            export_options = ExportOptions()
        elif not isinstance(export_options, ExportOptions):
            export_options = ExportOptions.model_validate(export_options)

        job = BatchJob(
            name=name or self.settings.default_job_name,
            input_files=[Path(f) for f in input_files],
            output_directory=Path(output_directory),
            adjustments=adjustments.snapshot(),
            export_options=export_options.model_copy(deep=True),
        )
        snapshot = self.registry.add(job)
        self.logger.info(f"Created batch job {job.id} ({job.name}, {job.total_files} files)")
        return snapshot

    def create_batch_job_from_preset(
        self,
        name: Optional[str],
        input_files: Sequence[PathLike],
        output_directory: PathLike,
        preset_id: str,
        export_options: Union[ExportOptions, Mapping[str, Any], None] = None,
        base: Optional[AdjustmentSet] = None,
    ) -> Optional[BatchJob]:
        """Create a job whose adjustments are a preset resolved onto ``base``.

        Returns:
            The created job, or None if the preset does not exist.
        """
        preset = self.presets.get_preset_by_id(preset_id)
        if preset is None:
            self.logger.warning(f"Preset not found: {preset_id}")
            return None
        adjustments = PresetResolver.resolve(base or AdjustmentSet(), preset)
        return self.create_batch_job(
            name or preset.name, input_files, output_directory, adjustments, export_options
        )

    # --- Queueing and admission ----------------------------------------------

    def queue_job(self, job_id: str) -> bool:
        """Queue a pending job for processing.

        Creates the output directory first. If that fails the job is marked
        failed and never enters the queue.

        Returns:
            True if the job was queued.
        """
        self.log_method_call("queue_job", job_id=job_id)
        if self._closed:
            self.logger.warning(f"Scheduler is shut down; not queueing {job_id}")
            return False

        job = self.registry.get(job_id)
        if job is None:
            self.logger.warning(f"Job not found: {job_id}")
            return False
        if job.status != JobStatus.PENDING:
            self.logger.warning(f"Job {job_id} is not pending ({job.status.value})")
            return False

        try:
            job.output_directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            error = DirectoryCreateFailure(
                f"Failed to create output directory: {e}",
                path=job.output_directory,
                operation="queue",
            )
            self.logger.error(error.message, extra={"job_id": job_id})
            try:
                failed = self.registry.fail_pending(job_id, error.message, "queue")
            except (JobNotFound, JobStateConflict) as conflict:
                self.logger.warning(f"Could not fail job {job_id}: {conflict}")
                return False
            self._publish_finished(failed)
            return False

        try:
            queue_length = self.registry.enqueue(job_id)
        except (JobNotFound, JobStateConflict) as e:
            self.logger.warning(f"Cannot queue job {job_id}: {e}")
            return False

        self.logger.debug(f"Queued job {job_id} (queue length {queue_length})")
        self.events.publish(BatchJobQueued(job_id=job_id, queue_length=queue_length))
        self._admit()
        return True

    def _admit(self) -> None:
        """Move queued jobs into processing while below the cap."""
        if self._closed:
            return
        for job in self.registry.admit(self._max_concurrent):
            self.events.publish(BatchJobStarted(job_id=job.id, total_files=job.total_files))
            try:
                self._executor.submit(self._run_job, job)
            except RuntimeError:
                # Executor shut down between admission and submit
                self.logger.error(f"Could not start job {job.id}; scheduler is shut down")
                for index, input_file in enumerate(job.input_files):
                    self.registry.record_error(
                        job.id, index, f"{input_file}: Scheduler is shut down"
                    )
                self._publish_finished(self.registry.finish(job.id))

    # --- Execution ----------------------------------------------------------------

    def _run_job(self, job: BatchJob) -> None:
        with LogContext(job_id=job.id):
            try:
                with log_operation(self.logger, f"batch job {job.name} ({job.total_files} files)"):
                    if self._file_workers > 1 and job.total_files > 1:
                        self._run_files_pooled(job, self._file_workers)
                    else:
                        for index, input_file in enumerate(job.input_files):
                            self._handle_file(job, index, input_file)
            finally:
                finished = self.registry.finish(job.id)
                self.logger.info(
                    f"Batch job {finished.name} {finished.status.value}: "
                    f"processed {finished.processed_files}/{finished.total_files}, "
                    f"errors {len(finished.errors)}"
                )
                self._publish_finished(finished)
                self._admit()

    def _run_files_pooled(self, job: BatchJob, workers: int) -> None:
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=min(workers, job.total_files),
            thread_name_prefix=f"photoedit-{job.id}",
        ) as pool:
            futures = [
                pool.submit(self._handle_file_in_context, job, index, input_file)
                for index, input_file in enumerate(job.input_files)
            ]
            for future in futures:
                future.result()

    def _handle_file_in_context(self, job: BatchJob, index: int, input_file: Path) -> None:
        with LogContext(job_id=job.id):
            self._handle_file(job, index, input_file)

    def _handle_file(self, job: BatchJob, index: int, input_file: Path) -> None:
        """Process one file and record exactly one outcome for it."""
        try:
            output = self._process_file(job, index, input_file)
        except Exception as e:
            # Any failure is confined to this file
            message = e.message if isinstance(e, PhotoEditError) else (str(e) or type(e).__name__)
            error = f"{input_file}: {message}"
            snapshot = self.registry.record_error(job.id, index, error)
            self.logger.warning(
                f"Failed to process {input_file.name}: {message}",
                extra={"file": str(input_file), "error_type": type(e).__name__},
            )
            self.events.publish(
                BatchFileFailed(
                    job_id=job.id,
                    input_file=str(input_file),
                    error=error,
                    progress=snapshot.progress,
                )
            )
            return

        snapshot = self.registry.record_success(job.id)
        self.logger.debug(f"Processed {input_file.name} -> {output.name}")
        self.events.publish(
            BatchFileProcessed(
                job_id=job.id,
                input_file=str(input_file),
                output_file=str(output),
                progress=snapshot.progress,
            )
        )

    def _process_file(self, job: BatchJob, index: int, input_file: Path) -> Path:
        if not input_file.exists():
            raise InputFileMissing(path=input_file)

        output = job.output_directory / output_filename(input_file, job.export_options, index)
        if output.exists() and not job.export_options.overwrite:
            raise OutputExistsNoOverwrite(path=output)

        image = backend.decode(input_file)
        result = self.pipeline.apply(image, job.adjustments)
        return self.encoder.write(result.image, output, job.export_options)

    def _publish_finished(self, job: BatchJob) -> None:
        self.events.publish(
            BatchJobFinished(
                job_id=job.id,
                status=job.status.value,
                processed_files=job.processed_files,
                error_count=len(job.errors),
            )
        )

    # --- Queries --------------------------------------------------------------------

    def get_job(self, job_id: str) -> Optional[BatchJob]:
        return self.registry.get(job_id)

    def get_all_jobs(self) -> list[BatchJob]:
        """All jobs, newest first."""
        return self.registry.all()

    def get_jobs_by_status(self, status: Union[JobStatus, str]) -> list[BatchJob]:
        return self.registry.by_status(JobStatus(status))

    def get_statistics(self) -> JobStatistics:
        return self.registry.statistics()

    def get_queue_status(self) -> QueueStatus:
        queued = self.registry.queued_ids()
        return QueueStatus(
            queue_length=len(queued),
            queued_job_ids=queued,
            active_jobs=self.registry.processing_count(),
            max_concurrent_jobs=self._max_concurrent,
        )

    # --- Control ----------------------------------------------------------------------

    def cancel_job(self, job_id: str) -> bool:
        """Cancel a pending job. Jobs already processing cannot be cancelled.

        Returns:
            True if the job was cancelled.
        """
        try:
            self.registry.fail_pending(job_id, CANCELLED_MESSAGE, "cancel")
        except JobNotFound:
            return False
        except JobStateConflict as e:
            self.logger.info(f"Not cancelling {job_id}: {e.message}")
            return False

        self.logger.info(f"Cancelled job {job_id}")
        self.events.publish(BatchJobCancelled(job_id=job_id))
        return True

    def delete_job(self, job_id: str) -> bool:
        """Delete a completed or failed job."""
        try:
            self.registry.remove(job_id)
        except (JobNotFound, JobStateConflict):
            return False
        self.logger.debug(f"Deleted job {job_id}")
        return True

    def clear_completed_jobs(self) -> int:
        """Delete every completed job; failed jobs are kept.

        Returns:
            Number of jobs deleted.
        """
        return sum(
            1 for job in self.registry.by_status(JobStatus.COMPLETED) if self.delete_job(job.id)
        )

    def set_max_concurrent_jobs(self, n: int) -> int:
        """Set the concurrency cap, clamped to 1-10.

        Lowering the cap never interrupts running jobs; raising it admits
        queued jobs immediately.

        Returns:
            The cap in effect.
        """
        self._max_concurrent = self._clamp(n)
        self.logger.info(f"Max concurrent jobs set to {self._max_concurrent}")
        self._admit()
        return self._max_concurrent

    # --- Waiting and shutdown ---------------------------------------------------------

    def wait_for_job(self, job_id: str, timeout: Optional[float] = None) -> Optional[BatchJob]:
        """Block until a job is completed or failed.

        Returns:
            The job snapshot (possibly still running if the timeout elapsed),
            or None if the job does not exist.
        """
        self.registry.wait_until(lambda: self.registry.is_terminal_or_gone(job_id), timeout)
        return self.registry.get(job_id)

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no job is queued or processing.

        After shutdown queued jobs can no longer start, so only running jobs
        are waited for.

        Returns:
            False if the timeout elapsed first.
        """
        return self.registry.wait_until(self._is_idle, timeout)

    def _is_idle(self) -> bool:
        if self._closed:
            return self.registry.processing_count() == 0
        return self.registry.is_idle()

    def shutdown(self, wait: bool = True) -> None:
        """Stop admitting jobs. Queued jobs stay pending.

        Args:
            wait: Block until running jobs finish.
        """
        self._closed = True
        self.registry.wake()
        self._executor.shutdown(wait=wait)
        self.logger.debug("Batch scheduler shut down")
