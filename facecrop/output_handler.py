"""
Output handling for the face cropping pipeline.

Responsibility:
    Write face thumbnails into the output directory and, when requested,
    collect crop records for the manifest written on finalize.

Safe to call from several worker threads: file names are unique per
(image stem, face index) and the record buffer is lock-protected.

Non-goals:
    - No detection logic.
    - No input acquisition.
"""

import logging
import threading
from pathlib import Path
from typing import List

import cv2
import numpy as np

from facecrop.config import OutputConfig
from facecrop.face import Face
from facecrop.serializer import CropRecord, save_csv, save_json

logger = logging.getLogger(__name__)


class OutputHandler:
    """Saves thumbnails and buffers manifest records.

    Usage:
        handler = OutputHandler(config.output)
        path = handler.save("photo", 0, thumbnail)
        handler.record(source, 0, box, path)
        ...
        handler.finalize()  # Write the manifest, if any
    """

    def __init__(self, config: OutputConfig) -> None:
        """Create the output directory.

        Raises:
            OSError: If the directory cannot be created.
        """
        self._config = config
        self._directory = Path(config.directory).expanduser()
        self._directory.mkdir(parents=True, exist_ok=True)

        self._records: List[CropRecord] = []
        self._lock = threading.Lock()

        if config.image_format == "jpg":
            self._write_params = [cv2.IMWRITE_JPEG_QUALITY, config.jpeg_quality]
        else:
            self._write_params = []

        logger.info(
            "OutputHandler initialized: directory=%s, format=%s, manifest=%s",
            self._directory, config.image_format, config.manifest,
        )

    @property
    def directory(self) -> Path:
        return self._directory

    def thumbnail_path(self, stem: str, index: int) -> Path:
        return self._directory / f"{stem}_face{index:03d}.{self._config.image_format}"

    def save(self, stem: str, index: int, thumbnail: np.ndarray) -> Path:
        """Write one thumbnail and return its path.

        Raises:
            OSError: If OpenCV fails to write the file.
        """
        path = self.thumbnail_path(stem, index)
        try:
            written = cv2.imwrite(str(path), thumbnail, self._write_params)
        except cv2.error as e:
            raise OSError(f"Failed to write thumbnail {path}: {e}") from e

        if not written:
            raise OSError(f"Failed to write thumbnail: {path}")
        logger.debug("Saved %s", path)
        return path

    def record(self, source: Path, index: int, box: Face, output: Path) -> None:
        """Remember a written thumbnail for the manifest."""
        if self._config.manifest == "none":
            return
        with self._lock:
            self._records.append(CropRecord(
                source=str(source),
                face_index=index,
                box=box,
                output=str(output),
            ))

    def finalize(self) -> None:
        """Write the manifest if one was requested.

        Must be called after all workers have finished.
        """
        with self._lock:
            records = list(self._records)
            self._records.clear()

        if self._config.manifest == "json":
            save_json(records, str(self._directory / "manifest.json"))
        elif self._config.manifest == "csv":
            save_csv(records, str(self._directory / "manifest.csv"))

        logger.debug("OutputHandler finalized.")
