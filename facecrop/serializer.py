"""
Crop manifest serialization.

Responsibility:
    Export the list of written thumbnails to JSON or CSV so a run can be
    traced back to its source images and boxes.

Non-goals:
    - No image writing.
    - No streaming output; files are written once, on finalize.
"""

import csv
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from facecrop.face import Face

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CropRecord:
    """One written thumbnail and the box it was cut from."""

    source: str
    face_index: int
    box: Face
    output: str

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "face_index": self.face_index,
            **self.box.to_dict(),
            "output": self.output,
        }


def _sorted(records: List[CropRecord]) -> List[CropRecord]:
    # Workers finish in any order; the manifest is ordered by source.
    return sorted(records, key=lambda r: (r.source, r.face_index))


def save_json(records: List[CropRecord], output_path: str) -> None:
    """Export crop records to a JSON file.

    Output schema:
        {
            "crops": [
                {"source": ..., "face_index": 0, "x": ..., "y": ...,
                 "width": ..., "height": ..., "score": ..., "output": ...}
            ],
            "total_sources": N,
            "total_crops": M
        }

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    ordered = _sorted(records)
    payload = {
        "crops": [r.to_dict() for r in ordered],
        "total_sources": len({r.source for r in ordered}),
        "total_crops": len(ordered),
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    logger.info("JSON manifest saved: %s (%d crops)", output_path, len(ordered))


def save_csv(records: List[CropRecord], output_path: str) -> None:
    """Export crop records to a CSV file.

    Columns: source, face_index, x, y, width, height, score, output

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    fieldnames = ["source", "face_index", "x", "y", "width", "height", "score", "output"]

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for record in _sorted(records):
            writer.writerow(record.to_dict())

    logger.info("CSV manifest saved: %s (%d rows)", output_path, len(records))


def _ensure_parent_dir(path: str) -> None:
    """Create parent directories if they don't exist."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
