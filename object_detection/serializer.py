"""
Serialization for the detection pipeline.

Responsibility:
    Export detection results to JSON or CSV for offline analysis.
    Writes complete files; no streaming output.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Dict, List, Sequence

from object_detection.class_names import class_name_for
from object_detection.detection import Detection

logger = logging.getLogger(__name__)

_CSV_FIELDS = ["frame_id", "class_id", "class_name", "x", "y", "width", "height", "confidence"]


def _detection_record(det: Detection, class_names: Sequence[str]) -> dict:
    record = det.to_dict()
    record["class_name"] = class_name_for(det.class_id, class_names) if class_names else None
    return record


def save_json(
    detections_by_frame: Dict[int, List[Detection]],
    output_path: str,
    class_names: Sequence[str] = (),
) -> None:
    """Export all detections to a JSON file.

    Output schema:
        {
            "frames": [
                {
                    "frame_id": 0,
                    "detections": [
                        {"class_id": ..., "class_name": ..., "x": ..., "y": ...,
                         "width": ..., "height": ..., "confidence": ...}
                    ]
                }
            ],
            "total_frames": N,
            "total_detections": M
        }

    Raises:
        OSError: If the output path is not writable.
        IndexError: If a class id is outside a non-empty name table.
    """
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)

    frames = []
    total_detections = 0
    for frame_id in sorted(detections_by_frame):
        dets = detections_by_frame[frame_id]
        total_detections += len(dets)
        frames.append({
            "frame_id": frame_id,
            "detections": [_detection_record(d, class_names) for d in dets],
        })

    payload = {
        "frames": frames,
        "total_frames": len(frames),
        "total_detections": total_detections,
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    logger.info(
        "JSON output saved: %s (%d frames, %d detections)",
        output_path, len(frames), total_detections,
    )


def save_csv(
    detections_by_frame: Dict[int, List[Detection]],
    output_path: str,
    class_names: Sequence[str] = (),
) -> None:
    """Export all detections to a CSV file, one row per detection.

    Raises:
        OSError: If the output path is not writable.
        IndexError: If a class id is outside a non-empty name table.
    """
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)

    total = 0
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_FIELDS)
        writer.writeheader()
        for frame_id in sorted(detections_by_frame):
            for det in detections_by_frame[frame_id]:
                writer.writerow({"frame_id": frame_id, **_detection_record(det, class_names)})
                total += 1

    logger.info("CSV output saved: %s (%d rows)", output_path, total)
