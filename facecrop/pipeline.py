"""
Batch processing with bounded concurrency.

Responsibility:
    For every input image: acquire a slot, read, detect, adjust, crop,
    resize and save each face, release the slot. Join all tasks and
    report a summary.

Concurrency:
    A BoundedSemaphore admits at most `run.jobs` images at a time; the
    slot is released when the task finishes, whether it succeeded or not.
    Detectors are not thread-safe, so each worker thread builds its own.
    The AppConfig is frozen and shared read-only.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

from facecrop.config import AppConfig, DetectorConfig
from facecrop.cropper import crop_face
from facecrop.detector import Detector
from facecrop.input_handler import ImageItem, InputHandler
from facecrop.output_handler import OutputHandler
from facecrop.postprocessor import adjust_box

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchSummary:
    """Outcome of a batch run."""

    images: int
    processed: int
    failed: int
    faces: int


class BatchProcessor:
    """Runs the detect-and-crop pipeline over a batch of images.

    Usage:
        processor = BatchProcessor(config, output_handler)
        summary = processor.run(InputHandler(paths))
        output_handler.finalize()
    """

    def __init__(
        self,
        config: AppConfig,
        output: OutputHandler,
        detector_factory: Callable[[DetectorConfig], Detector] = Detector,
    ) -> None:
        """Prepare the processor.

        Raises:
            FileNotFoundError, RuntimeError, ValueError: If the detector
                backend cannot be loaded. Checked here, before any image
                is queued.
        """
        self._config = config
        self._output = output
        self._detector_factory = detector_factory
        self._local = threading.local()

        detector_factory(config.detector)

    def _detector(self) -> Detector:
        detector = getattr(self._local, "detector", None)
        if detector is None:
            detector = self._detector_factory(self._config.detector)
            self._local.detector = detector
        return detector

    def process_image(self, item: ImageItem) -> Optional[int]:
        """Detect, crop and save all faces of one image.

        Returns:
            The number of thumbnails written, or None if the image could
            not be read. A face whose box or thumbnail write fails is
            logged and skipped.

        Raises:
            Exception: Detection errors propagate to the caller.
        """
        image = InputHandler.read(item)
        if image is None:
            return None

        faces = self._detector().detect(image)
        logger.info("Detected %d face(s) in %s", len(faces), item.path)

        h, w = image.shape[:2]
        crop = self._config.crop

        written = 0
        for index, face in enumerate(faces):
            try:
                box = adjust_box(face, w, h, policy=crop.adjust, padding=crop.padding)
                thumbnail = crop_face(image, box, crop.size)
                path = self._output.save(item.stem, index, thumbnail)
            except (ValueError, OSError) as e:
                logger.warning("Skipping face %d of %s: %s", index, item.path, e)
                continue
            self._output.record(item.path, index, box, path)
            written += 1

        return written

    def run(self, items: Iterable[ImageItem]) -> BatchSummary:
        """Process all items with at most `run.jobs` in flight.

        A failing image is logged and counted; it never stops the batch.
        """
        jobs = self._config.run.jobs
        slots = threading.BoundedSemaphore(jobs)
        futures: Dict[Future, ImageItem] = {}

        with ThreadPoolExecutor(max_workers=jobs, thread_name_prefix="facecrop") as pool:
            for item in items:
                slots.acquire()
                try:
                    future = pool.submit(self.process_image, item)
                except BaseException:
                    slots.release()
                    raise
                future.add_done_callback(lambda _f: slots.release())
                futures[future] = item

        processed = failed = faces = 0
        for future, item in futures.items():
            try:
                count = future.result()
            except Exception:
                failed += 1
                logger.exception("Failed to process %s", item.path)
                continue

            if count is None:
                failed += 1
            else:
                processed += 1
                faces += count

        summary = BatchSummary(
            images=len(futures), processed=processed, failed=failed, faces=faces,
        )
        logger.info(
            "Batch finished: %d image(s), %d processed, %d failed, %d face(s) saved.",
            summary.images, summary.processed, summary.failed, summary.faces,
        )
        return summary
