"""Entry point for running a recognition session over image folders."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import itertools
import logging
from pathlib import Path
from typing import Iterator

from smartattend.config.settings import get_settings
from smartattend.db.session import AsyncSessionFactory, engine, init_db
from smartattend.face import DescriptorStore, EuclideanMatcher, FaceDescriptor, FaceEncoder, PixelSampleEncoder
from smartattend.monitoring.logging import configure_logging
from smartattend.services.descriptors import SqlDescriptorArchive
from smartattend.services.recognition import AttendanceRecorder, RecognitionLoop

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".bmp"}


def _images_in(folder: Path) -> list[Path]:
    return sorted(p for p in folder.iterdir() if p.suffix.lower() in IMAGE_SUFFIXES)


def enroll_from_folder(store: DescriptorStore, encoder: FaceEncoder, root: Path) -> int:
    """
    Enroll every image under ``root/<student_id>/``.

    Returns the number of samples added. Images without a usable face are skipped.
    """

    added = 0
    for folder in sorted(p for p in root.iterdir() if p.is_dir()):
        for image_path in _images_in(folder):
            descriptor = encoder.encode(image_path.read_bytes())
            if descriptor is None:
                logger.warning("No face found in %s, skipping", image_path)
                continue
            store.enroll(folder.name, descriptor)
            added += 1
    return added


def _cycle_frames(frames_dir: Path) -> Iterator[Path]:
    frames = _images_in(frames_dir)
    if not frames:
        raise RuntimeError(f"No frames found in {frames_dir}")
    return itertools.cycle(frames)


async def main(argv: list[str] | None = None) -> None:
    """Enroll students, then match captured frames until interrupted or ``--cycles`` ends."""

    parser = argparse.ArgumentParser(description="Run a face-recognition attendance session.")
    parser.add_argument(
        "--enroll-root",
        type=Path,
        help="Folder with one subfolder per student id (default: restore saved descriptors)",
    )
    parser.add_argument("--frames", type=Path, required=True, help="Folder of captured face crops to replay")
    parser.add_argument("--subject", default="General")
    parser.add_argument("--period", type=int, default=1)
    parser.add_argument("--section", help="Mark unseen students of this section absent when the session ends")
    parser.add_argument("--cycles", type=int, default=0, help="Stop after this many frames (0 = run forever)")
    args = parser.parse_args(argv)

    configure_logging()
    settings = get_settings()
    await init_db()

    try:
        store = DescriptorStore()
        encoder = PixelSampleEncoder()
        archive = SqlDescriptorArchive(AsyncSessionFactory)
        if args.enroll_root is not None:
            added = enroll_from_folder(store, encoder, args.enroll_root)
            await archive.save(store)
        else:
            added = await archive.restore(store)
        logger.info("Enrolled %d samples for %d students", added, len(store))

        frames = _cycle_frames(args.frames)

        async def next_descriptor() -> FaceDescriptor | None:
            return encoder.encode(next(frames).read_bytes())

        recorder = AttendanceRecorder(
            AsyncSessionFactory,
            subject=args.subject,
            period=args.period,
            section=args.section,
        )
        loop = RecognitionLoop(
            EuclideanMatcher(store),
            next_descriptor,
            recorder,
            interval=settings.recognition_interval,
            threshold=settings.match_threshold,
        )

        if args.cycles:
            for _ in range(args.cycles):
                await loop.tick()
        else:
            await loop.run(asyncio.Event())
        await recorder.finish()
    finally:
        await engine.dispose()


def cli() -> None:
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(main())


if __name__ == "__main__":
    cli()
