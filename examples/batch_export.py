#!/usr/bin/env python3
"""
Batch Export Example

This example demonstrates the batch workflow:
1. Pick a built-in preset
2. Create a batch job for every JPEG/PNG in a folder
3. Queue it and follow progress through the event bus
4. Print the job summary
"""

import sys
from pathlib import Path

from photoedit import BatchScheduler, ExportOptions, FileNaming
from photoedit.core.events import get_event_bus
from photoedit.core.logging import setup_logging


def main():
    source_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("photos")
    output_dir = Path(sys.argv[2]) if len(sys.argv) > 2 else source_dir / "export"

    setup_logging(level="INFO")

    files = sorted(
        p for p in source_dir.iterdir() if p.suffix.lower() in (".jpg", ".jpeg", ".png")
    )
    if not files:
        print(f"No photos found in {source_dir}")
        return 1

    print("=" * 60)
    print("PhotoEdit - Batch Export Example")
    print("=" * 60)

    bus = get_event_bus()

    @bus.on("batch.file.*")
    def on_file(event):
        print(f"  [{event.progress:3d}%] {Path(event.input_file).name}")

    options = ExportOptions(
        format="jpeg",
        quality=85,
        width=2048,
        height=2048,
        file_naming=FileNaming(prefix="web_", include_index=True),
    )

    with BatchScheduler() as scheduler:
        job = scheduler.create_batch_job_from_preset(
            None, files, output_dir, "landscape-vivid", export_options=options
        )
        print(f"\nJob {job.id}: {job.total_files} files -> {output_dir}")
        scheduler.queue_job(job.id)
        done = scheduler.wait_for_job(job.id)

    print(f"\nStatus: {done.status.value}")
    print(f"Processed: {done.processed_files}/{done.total_files}")
    if done.errors:
        print("\nErrors:")
        for error in done.errors:
            print(f"  - {error}")
    return 0 if not done.errors else 2


if __name__ == "__main__":
    sys.exit(main())
