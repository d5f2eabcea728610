"""
Input handling for the face cropping pipeline.

Responsibility:
    Turn the command-line input paths into a list of image items, each
    with a unique output stem, and read them as BGR arrays on demand.

Non-goals:
    - No video or webcam sources.
    - No detection or output writing.

Robustness:
    - Validates every path at initialization time.
    - Logs and skips unreadable images (never crashes the batch).
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set

import cv2
import numpy as np

logger = logging.getLogger(__name__)

# Image extensions picked up when a directory is given
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp"}


@dataclass(frozen=True)
class ImageItem:
    """One input image.

    Attributes:
        index: 0-based position in the batch.
        path: Source file path.
        stem: Unique name used to prefix this image's thumbnails.
    """

    index: int
    path: Path
    stem: str


class InputHandler:
    """Ordered, de-duplicated collection of input images.

    Explicit file arguments are kept whatever their extension (OpenCV
    decides whether it can read them); directories contribute their image
    files in sorted order.

    Usage:
        handler = InputHandler(["a.jpg", "photos/"])
        for item in handler:
            image = handler.read(item)
    """

    def __init__(self, paths: Iterable[str]) -> None:
        """Resolve and validate the input paths.

        Raises:
            FileNotFoundError: If a path does not exist.
            ValueError: If no image files remain.
        """
        files: List[Path] = []
        seen: Set[Path] = set()

        for raw in paths:
            path = Path(raw).expanduser()
            if path.is_dir():
                found = sorted(
                    p for p in path.iterdir()
                    if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
                )
                if not found:
                    logger.warning("No image files found in directory: %s", path)
                candidates = found
            elif path.is_file():
                candidates = [path]
            else:
                raise FileNotFoundError(f"Input path not found: '{raw}'.")

            for candidate in candidates:
                key = candidate.resolve()
                if key in seen:
                    logger.debug("Skipping duplicate input: %s", candidate)
                    continue
                seen.add(key)
                files.append(candidate)

        if not files:
            raise ValueError(
                f"No input images found. Supported directory extensions: "
                f"{sorted(IMAGE_EXTENSIONS)}."
            )

        self._items = self._assign_stems(files)
        logger.info("Found %d input image(s).", len(self._items))

    @staticmethod
    def _assign_stems(files: List[Path]) -> List[ImageItem]:
        """Give every file a distinct stem: photo, photo-2, photo-3, ..."""
        items: List[ImageItem] = []
        used: Set[str] = set()

        for index, path in enumerate(files):
            stem = path.stem
            counter = 1
            while stem in used:
                counter += 1
                stem = f"{path.stem}-{counter}"
            used.add(stem)
            items.append(ImageItem(index=index, path=path, stem=stem))

        return items

    def __iter__(self) -> Iterator[ImageItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    @staticmethod
    def read(item: ImageItem) -> Optional[np.ndarray]:
        """Read an item as a BGR array, or return None if unreadable."""
        image = cv2.imread(str(item.path), cv2.IMREAD_COLOR)
        if image is None:
            logger.warning("Failed to read image: %s", item.path)
        return image
