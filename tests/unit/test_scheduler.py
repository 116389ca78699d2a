"""
Tests for the batch scheduler.
"""

import threading

import pytest
from PIL import Image

from photoedit.batch import CANCELLED_MESSAGE, BatchScheduler
from photoedit.config import BatchSettings, PresetSettings
from photoedit.core.events import get_event_bus
from photoedit.core.models import AdjustmentSet, ExportOptions, FileNaming
from photoedit.core.types import JobStatus
from photoedit.presets import PresetLibrary

TIMEOUT = 10


@pytest.fixture
def make_scheduler(blocking_pipeline):
    """Factory for schedulers that are shut down after the test.

    The blocking pipeline is released first so shutdown never waits on it.
    """
    created = []

    def factory(pipeline=None, **settings):
        options = {"max_concurrent_jobs": 3, "file_workers": 1}
        options.update(settings)
        scheduler = BatchScheduler(
            settings=BatchSettings(**options),
            pipeline=pipeline,
            presets=PresetLibrary(settings=PresetSettings()),
        )
        created.append(scheduler)
        return scheduler

    yield factory
    blocking_pipeline.release.set()
    for scheduler in created:
        scheduler.shutdown(wait=True)


@pytest.fixture
def scheduler(make_scheduler):
    return make_scheduler()


@pytest.fixture
def events():
    """Every batch event published during the test, in order."""
    received = []
    get_event_bus().subscribe("batch.*", received.append)
    return received


@pytest.fixture
def inputs(input_dir):
    return [input_dir / name for name in ("a.png", "b.png", "c.png")]


def single_file_jobs(scheduler, input_dir, tmp_path, count):
    return [
        scheduler.create_batch_job(
            f"job {i}", [input_dir / "a.png"], tmp_path / f"out{i}", export_options={"overwrite": True}
        )
        for i in range(count)
    ]


class TestCreateJob:
    """Tests for job creation."""

    def test_create_pending_job(self, scheduler, inputs, tmp_path):
        job = scheduler.create_batch_job("Holiday", inputs, tmp_path / "out")
        assert job.status == JobStatus.PENDING
        assert job.total_files == 3
        assert job.adjustments.is_identity
        assert job.export_options == ExportOptions()
        # Nothing touches the filesystem before queueing
        assert not (tmp_path / "out").exists()

    def test_default_name(self, scheduler, inputs, tmp_path):
        job = scheduler.create_batch_job(None, inputs, tmp_path)
        assert job.name == "Batch export"

    def test_accepts_mappings(self, scheduler, inputs, tmp_path):
        job = scheduler.create_batch_job(
            "m",
            inputs,
            tmp_path,
            adjustments={"exposure": 0.5, "toneCurve": {"highlights": 10}},
            export_options={"format": "PNG", "fileNaming": {"suffix": "_x"}},
        )
        assert job.adjustments.exposure == 0.5
        assert job.adjustments.tone_curve.highlights == 10
        assert job.export_options.format == "png"
        assert job.export_options.file_naming.suffix == "_x"

    def test_adjustments_are_copied(self, scheduler, inputs, tmp_path):
        adjustments = AdjustmentSet(contrast=10)
        job = scheduler.create_batch_job("c", inputs, tmp_path, adjustments)
        adjustments.contrast = 90
        job.adjustments.contrast = 50
        assert scheduler.get_job(job.id).adjustments.contrast == 10

    def test_from_preset(self, scheduler, inputs, tmp_path):
        job = scheduler.create_batch_job_from_preset(
            None, inputs, tmp_path, "portrait-warm", base=AdjustmentSet(sharpening=20)
        )
        assert job.name == "Warm Portrait"
        assert job.adjustments.temperature == 200
        assert job.adjustments.sharpening == 20

    def test_from_unknown_preset(self, scheduler, inputs, tmp_path):
        assert scheduler.create_batch_job_from_preset("x", inputs, tmp_path, "nope") is None
        assert scheduler.get_all_jobs() == []


class TestBatchRuns:
    """End-to-end job runs through the real pipeline."""

    def test_all_files_exported(self, scheduler, inputs, tmp_path):
        out = tmp_path / "out"
        job = scheduler.create_batch_job(
            "ok", inputs, out, AdjustmentSet(exposure=0.3), {"format": "png"}
        )
        assert scheduler.queue_job(job.id)
        done = scheduler.wait_for_job(job.id, timeout=TIMEOUT)

        assert done.status == JobStatus.COMPLETED
        assert done.processed_files == 3
        assert done.errors == []
        assert done.progress == 100
        assert done.started_at is not None and done.completed_at is not None
        assert sorted(p.name for p in out.iterdir()) == ["a.png", "b.png", "c.png"]

    def test_missing_input_isolated(self, scheduler, input_dir, tmp_path):
        """One missing input fails alone; the job ends failed with two exports."""
        missing = input_dir / "missing.jpg"
        files = [input_dir / "a.png", missing, input_dir / "c.png"]
        job = scheduler.create_batch_job("a", files, tmp_path / "out", export_options={"overwrite": True})
        scheduler.queue_job(job.id)
        done = scheduler.wait_for_job(job.id, timeout=TIMEOUT)

        assert done.processed_files == 2
        assert len(done.errors) == 1
        assert done.errors[0].startswith(f"{missing}: ")
        assert done.status == JobStatus.FAILED
        assert (tmp_path / "out" / "a.jpg").exists()
        assert (tmp_path / "out" / "c.jpg").exists()

    def test_output_directory_failure(self, scheduler, inputs, tmp_path, events):
        blocker = tmp_path / "blocker"
        blocker.write_text("regular file")
        job = scheduler.create_batch_job("b", inputs, blocker / "out")

        assert scheduler.queue_job(job.id) is False
        failed = scheduler.get_job(job.id)
        assert failed.status == JobStatus.FAILED
        assert failed.processed_files == 0
        assert len(failed.errors) == 1
        assert failed.errors[0].startswith("Failed to create output directory: ")
        assert scheduler.get_queue_status().queue_length == 0
        assert [e.event_type for e in events] == ["batch.job.finished"]

    def test_naming_with_prefix_and_index(self, scheduler, jpeg_file, tmp_path):
        options = ExportOptions(
            format="jpeg", file_naming=FileNaming(prefix="edit_", include_index=True)
        )
        job = scheduler.create_batch_job("d", [jpeg_file], tmp_path / "out", export_options=options)
        scheduler.queue_job(job.id)
        scheduler.wait_for_job(job.id, timeout=TIMEOUT)
        assert (tmp_path / "out" / "edit_photo_001.jpg").exists()

    def test_existing_output_without_overwrite(self, scheduler, inputs, tmp_path):
        out = tmp_path / "out"
        out.mkdir()
        (out / "b.jpg").write_bytes(b"keep me")
        job = scheduler.create_batch_job("o", inputs, out)
        scheduler.queue_job(job.id)
        done = scheduler.wait_for_job(job.id, timeout=TIMEOUT)

        assert done.processed_files == 2
        assert done.errors == [f"{inputs[1]}: Output file exists and overwrite is disabled"]
        assert (out / "b.jpg").read_bytes() == b"keep me"

    def test_existing_output_with_overwrite(self, scheduler, inputs, tmp_path):
        out = tmp_path / "out"
        out.mkdir()
        (out / "b.jpg").write_bytes(b"replace me")
        job = scheduler.create_batch_job("o", inputs, out, export_options={"overwrite": True})
        scheduler.queue_job(job.id)
        done = scheduler.wait_for_job(job.id, timeout=TIMEOUT)

        assert done.status == JobStatus.COMPLETED
        assert Image.open(out / "b.jpg").format == "JPEG"

    def test_corrupt_input(self, scheduler, input_dir, corrupt_file, tmp_path):
        files = [corrupt_file, input_dir / "a.png"]
        job = scheduler.create_batch_job("c", files, tmp_path / "out")
        scheduler.queue_job(job.id)
        done = scheduler.wait_for_job(job.id, timeout=TIMEOUT)

        assert done.processed_files == 1
        assert done.errors[0].startswith(f"{corrupt_file}: ")

    def test_unsupported_format_fails_every_file(self, scheduler, inputs, tmp_path):
        job = scheduler.create_batch_job("u", inputs, tmp_path / "out", export_options={"format": "bmp"})
        scheduler.queue_job(job.id)
        done = scheduler.wait_for_job(job.id, timeout=TIMEOUT)

        assert done.status == JobStatus.FAILED
        assert done.processed_files == 0
        assert done.errors == [f"{path}: Unsupported export format: bmp" for path in inputs]

    def test_empty_job_completes(self, scheduler, tmp_path):
        job = scheduler.create_batch_job("empty", [], tmp_path / "out")
        scheduler.queue_job(job.id)
        done = scheduler.wait_for_job(job.id, timeout=TIMEOUT)
        assert done.status == JobStatus.COMPLETED
        assert done.progress == 100

    def test_pooled_files_keep_error_order(self, make_scheduler, input_dir, tmp_path):
        scheduler = make_scheduler(file_workers=4)
        files = [
            input_dir / "a.png",
            input_dir / "gone1.png",
            input_dir / "b.png",
            input_dir / "gone2.png",
            input_dir / "gone3.png",
            input_dir / "c.png",
        ]
        job = scheduler.create_batch_job("pool", files, tmp_path / "out", export_options={"overwrite": True})
        scheduler.queue_job(job.id)
        done = scheduler.wait_for_job(job.id, timeout=TIMEOUT)

        assert done.processed_files == 3
        assert [e.split(": ")[0] for e in done.errors] == [
            str(files[1]),
            str(files[3]),
            str(files[4]),
        ]

    def test_events_and_progress(self, scheduler, inputs, tmp_path, events):
        job = scheduler.create_batch_job("e", inputs, tmp_path / "out")
        scheduler.queue_job(job.id)
        scheduler.wait_for_job(job.id, timeout=TIMEOUT)
        scheduler.shutdown(wait=True)

        assert [e.event_type for e in events] == [
            "batch.job.queued",
            "batch.job.started",
            "batch.file.processed",
            "batch.file.processed",
            "batch.file.processed",
            "batch.job.finished",
        ]
        assert [e.progress for e in events if e.event_type == "batch.file.processed"] == [33, 67, 100]
        assert events[-1].status == "completed"
        assert events[-1].processed_files == 3


class TestAdmission:
    """Admission control under a concurrency cap."""

    def test_cap_limits_processing_jobs(
        self, make_scheduler, blocking_pipeline, input_dir, tmp_path
    ):
        scheduler = make_scheduler(blocking_pipeline, max_concurrent_jobs=2)
        jobs = single_file_jobs(scheduler, input_dir, tmp_path, 3)
        for job in jobs:
            assert scheduler.queue_job(job.id)

        status = scheduler.get_queue_status()
        assert status.active_jobs == 2
        assert status.queued_job_ids == [jobs[2].id]
        assert status.available_slots == 0
        assert [scheduler.get_job(j.id).status for j in jobs] == [
            JobStatus.PROCESSING,
            JobStatus.PROCESSING,
            JobStatus.PENDING,
        ]

        blocking_pipeline.release.set()
        assert scheduler.wait_until_idle(timeout=TIMEOUT)
        assert all(scheduler.get_job(j.id).status == JobStatus.COMPLETED for j in jobs)

    def test_cap_never_exceeded(self, make_scheduler, blocking_pipeline, input_dir, tmp_path):
        scheduler = make_scheduler(blocking_pipeline, max_concurrent_jobs=2)
        observed = []
        lock = threading.Lock()

        def on_started(event):
            with lock:
                observed.append(scheduler.registry.processing_count())

        get_event_bus().subscribe("batch.job.started", on_started)
        for job in single_file_jobs(scheduler, input_dir, tmp_path, 5):
            scheduler.queue_job(job.id)
        blocking_pipeline.release.set()
        assert scheduler.wait_until_idle(timeout=TIMEOUT)

        assert len(observed) == 5
        assert max(observed) <= 2

    def test_fifo_admission(self, make_scheduler, blocking_pipeline, input_dir, tmp_path, events):
        scheduler = make_scheduler(blocking_pipeline, max_concurrent_jobs=1)
        jobs = single_file_jobs(scheduler, input_dir, tmp_path, 3)
        for job in jobs:
            scheduler.queue_job(job.id)
        blocking_pipeline.release.set()
        assert scheduler.wait_until_idle(timeout=TIMEOUT)

        started = [e.job_id for e in events if e.event_type == "batch.job.started"]
        assert started == [job.id for job in jobs]

    def test_raising_cap_admits_queued_jobs(
        self, make_scheduler, blocking_pipeline, input_dir, tmp_path
    ):
        scheduler = make_scheduler(blocking_pipeline, max_concurrent_jobs=1)
        for job in single_file_jobs(scheduler, input_dir, tmp_path, 3):
            scheduler.queue_job(job.id)
        assert scheduler.get_queue_status().active_jobs == 1

        assert scheduler.set_max_concurrent_jobs(3) == 3
        status = scheduler.get_queue_status()
        assert status.active_jobs == 3
        assert status.queue_length == 0

    def test_lowering_cap_keeps_running_jobs(
        self, make_scheduler, blocking_pipeline, input_dir, tmp_path
    ):
        scheduler = make_scheduler(blocking_pipeline, max_concurrent_jobs=3)
        for job in single_file_jobs(scheduler, input_dir, tmp_path, 3):
            scheduler.queue_job(job.id)
        scheduler.set_max_concurrent_jobs(1)
        assert scheduler.get_queue_status().active_jobs == 3

    @pytest.mark.parametrize("requested, expected", [(0, 1), (-5, 1), (4, 4), (10, 10), (50, 10)])
    def test_cap_is_clamped(self, scheduler, requested, expected):
        assert scheduler.set_max_concurrent_jobs(requested) == expected
        assert scheduler.max_concurrent_jobs == expected

    def test_queue_non_pending_job(self, make_scheduler, blocking_pipeline, input_dir, tmp_path):
        scheduler = make_scheduler(blocking_pipeline)
        job = single_file_jobs(scheduler, input_dir, tmp_path, 1)[0]
        assert scheduler.queue_job(job.id)
        assert not scheduler.queue_job(job.id)
        assert not scheduler.queue_job("batch-unknown")

    def test_queue_after_shutdown(self, scheduler, inputs, tmp_path):
        job = scheduler.create_batch_job("late", inputs, tmp_path / "out")
        scheduler.shutdown()
        assert scheduler.queue_job(job.id) is False
        assert scheduler.get_job(job.id).status == JobStatus.PENDING

    def test_idle_after_shutdown_ignores_queued_jobs(
        self, make_scheduler, blocking_pipeline, input_dir, tmp_path
    ):
        scheduler = make_scheduler(blocking_pipeline, max_concurrent_jobs=1)
        running, waiting = single_file_jobs(scheduler, input_dir, tmp_path, 2)
        scheduler.queue_job(running.id)
        scheduler.queue_job(waiting.id)

        scheduler.shutdown(wait=False)
        assert scheduler.wait_until_idle(timeout=0.05) is False

        blocking_pipeline.release.set()
        assert scheduler.wait_until_idle(timeout=TIMEOUT) is True
        assert scheduler.get_job(running.id).status == JobStatus.COMPLETED
        assert scheduler.get_job(waiting.id).status == JobStatus.PENDING


class TestJobControl:
    """Cancellation, deletion and queries."""

    def test_cancel_pending_and_processing(
        self, make_scheduler, blocking_pipeline, input_dir, tmp_path, events
    ):
        scheduler = make_scheduler(blocking_pipeline, max_concurrent_jobs=1)
        running, waiting = single_file_jobs(scheduler, input_dir, tmp_path, 2)
        scheduler.queue_job(running.id)
        scheduler.queue_job(waiting.id)

        assert scheduler.cancel_job(waiting.id) is True
        cancelled = scheduler.get_job(waiting.id)
        assert cancelled.status == JobStatus.FAILED
        assert cancelled.errors == [CANCELLED_MESSAGE]
        assert scheduler.get_queue_status().queue_length == 0
        assert "batch.job.cancelled" in [e.event_type for e in events]

        assert scheduler.cancel_job(running.id) is False
        assert scheduler.get_job(running.id).status == JobStatus.PROCESSING

        blocking_pipeline.release.set()
        assert scheduler.wait_for_job(running.id, timeout=TIMEOUT).status == JobStatus.COMPLETED
        assert scheduler.get_job(waiting.id).status == JobStatus.FAILED

    def test_cancel_unqueued_and_unknown(self, scheduler, inputs, tmp_path):
        job = scheduler.create_batch_job("x", inputs, tmp_path)
        assert scheduler.cancel_job(job.id)
        assert not scheduler.cancel_job(job.id)
        assert not scheduler.cancel_job("batch-unknown")

    def test_delete_only_terminal(self, scheduler, inputs, tmp_path):
        job = scheduler.create_batch_job("x", inputs, tmp_path)
        assert not scheduler.delete_job(job.id)
        scheduler.cancel_job(job.id)
        assert scheduler.delete_job(job.id)
        assert scheduler.get_job(job.id) is None
        assert not scheduler.delete_job(job.id)

    def test_clear_completed_keeps_failed(self, scheduler, inputs, tmp_path):
        ok = scheduler.create_batch_job("ok", inputs[:1], tmp_path / "ok")
        bad = scheduler.create_batch_job("bad", inputs, tmp_path / "bad")
        scheduler.cancel_job(bad.id)
        scheduler.queue_job(ok.id)
        scheduler.wait_for_job(ok.id, timeout=TIMEOUT)

        assert scheduler.clear_completed_jobs() == 1
        assert [j.id for j in scheduler.get_all_jobs()] == [bad.id]

    def test_statistics(self, scheduler, inputs, tmp_path):
        ok = scheduler.create_batch_job("ok", inputs, tmp_path / "ok")
        scheduler.create_batch_job("idle", inputs[:1], tmp_path / "idle")
        scheduler.queue_job(ok.id)
        scheduler.wait_for_job(ok.id, timeout=TIMEOUT)

        stats = scheduler.get_statistics()
        assert stats.total == 2
        assert stats.completed == 1
        assert stats.pending == 1
        assert stats.total_files_processed == 3
        assert stats.total_files_queued == 4
        assert stats.success_rate == 100.0

    def test_jobs_by_status(self, scheduler, inputs, tmp_path):
        first = scheduler.create_batch_job("1", inputs, tmp_path)
        second = scheduler.create_batch_job("2", inputs, tmp_path)
        scheduler.cancel_job(first.id)
        assert [j.id for j in scheduler.get_jobs_by_status("pending")] == [second.id]
        assert [j.id for j in scheduler.get_jobs_by_status(JobStatus.FAILED)] == [first.id]

    def test_snapshots_are_detached(self, scheduler, inputs, tmp_path):
        job = scheduler.create_batch_job("s", inputs, tmp_path)
        job.errors.append("tampered")
        job.status = JobStatus.COMPLETED
        fresh = scheduler.get_job(job.id)
        assert fresh.errors == []
        assert fresh.status == JobStatus.PENDING

    def test_wait_for_unknown_job(self, scheduler):
        assert scheduler.wait_for_job("batch-unknown", timeout=0.1) is None

    def test_context_manager(self, inputs, tmp_path):
        with BatchScheduler(settings=BatchSettings()) as scheduler:
            job = scheduler.create_batch_job("cm", inputs, tmp_path / "out")
            scheduler.queue_job(job.id)
        assert scheduler.get_job(job.id).status == JobStatus.COMPLETED
