"""
Visualization for the detection pipeline.

Responsibility:
    Draw bounding boxes and "{class}: {confidence}" labels onto a copy
    of a frame, and show frames in a window. Performs no file I/O.

Non-goals:
    - No detection or model logic.
"""

from typing import List, Sequence

import cv2
import numpy as np

from object_detection.class_names import check_class_ids, class_name_for
from object_detection.config import VisualizationConfig
from object_detection.detection import Detection

# Cosmetic internals, not user-facing
_FONT = cv2.FONT_HERSHEY_SIMPLEX
_FONT_SCALE = 0.5
_FONT_THICKNESS = 1
_LABEL_BACKGROUND = (255, 255, 255)
_LABEL_TEXT = (0, 0, 0)


def format_label(detection: Detection, class_names: Sequence[str]) -> str:
    """Label text for a detection: "name: 0.87", or "0.87" without names.

    Raises:
        IndexError: If the class id is outside a non-empty name table.
    """
    label = f"{detection.confidence:.2f}"
    if class_names:
        label = f"{class_name_for(detection.class_id, class_names)}: {label}"
    return label


def draw_detections(
    frame: np.ndarray,
    detections: List[Detection],
    config: VisualizationConfig,
    class_names: Sequence[str] = (),
) -> np.ndarray:
    """Draw detections onto a copy of ``frame`` and return it.

    Raises:
        IndexError: If a detection's class id is outside ``class_names``.
    """
    check_class_ids(detections, class_names)
    annotated = frame.copy()

    for det in detections:
        box = det.box
        cv2.rectangle(
            annotated,
            (box.x, box.y),
            (box.right, box.bottom),
            color=config.box_color,
            thickness=config.thickness,
        )

        if not config.show_labels:
            continue

        label = format_label(det, class_names)
        (text_w, text_h), baseline = cv2.getTextSize(
            label, _FONT, _FONT_SCALE, _FONT_THICKNESS
        )

        # Keep the label inside the frame when the box touches the top edge
        top = max(box.y, text_h)
        cv2.rectangle(
            annotated,
            (box.x, top - text_h),
            (box.x + text_w, top + baseline),
            color=_LABEL_BACKGROUND,
            thickness=cv2.FILLED,
        )
        cv2.putText(
            annotated,
            label,
            (box.x, top),
            _FONT,
            _FONT_SCALE,
            _LABEL_TEXT,
            _FONT_THICKNESS,
        )

    return annotated


def show_frame(window_name: str, frame: np.ndarray) -> int:
    """Show a frame and return the key pressed during waitKey, or -1."""
    cv2.imshow(window_name, frame)
    key = cv2.waitKey(1)
    return -1 if key == -1 else key & 0xFF


def window_closed(window_name: str) -> bool:
    """True when the user closed the display window."""
    return cv2.getWindowProperty(window_name, cv2.WND_PROP_VISIBLE) < 1
