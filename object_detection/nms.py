"""
Non-maximum suppression for the detection pipeline.

Responsibility:
    Remove redundant overlapping detections with a greedy pass over
    detections sorted by descending confidence.

Behavior:
    - The sort is stable: equal confidences keep their input order.
    - A detection is discarded when its IoU with a kept detection is
      strictly greater than the threshold.
    - Suppression is class-agnostic by default: a box of one class can
      suppress a box of another class. The per-class variant runs the
      same pass independently within each class.
    - A pair with no positive union has IoU 0, so zero-area boxes never
      suppress and are never suppressed.
"""

from typing import List, Sequence

import numpy as np

from object_detection.detection import Box, Detection


def iou(a: Box, b: Box) -> float:
    """Intersection over union of two boxes. Returns 0.0 for an empty union."""
    inter_w = max(0, min(a.right, b.right) - max(a.x, b.x))
    inter_h = max(0, min(a.bottom, b.bottom) - max(a.y, b.y))
    inter = inter_w * inter_h
    union = a.area + b.area - inter
    if union <= 0:
        return 0.0
    return inter / union


def non_max_suppression(
    detections: Sequence[Detection],
    nms_threshold: float,
    class_agnostic: bool = True,
) -> List[int]:
    """Greedy NMS over a list of detections.

    Args:
        detections: Filtered detections, in decode order.
        nms_threshold: IoU above which the lower-confidence box is dropped.
        class_agnostic: If False, suppression only happens between
                        detections of the same class.

    Returns:
        Indices into ``detections`` of the survivors, in descending
        confidence order (ties in input order).
    """
    if not detections:
        return []

    boxes = np.array(
        [(d.box.x, d.box.y, d.box.right, d.box.bottom) for d in detections],
        dtype=np.float64,
    )
    scores = np.array([d.confidence for d in detections], dtype=np.float64)

    if class_agnostic:
        return _greedy_nms(boxes, scores, nms_threshold).tolist()

    class_ids = np.array([d.class_id for d in detections])
    kept: List[int] = []
    for cls in np.unique(class_ids):
        idx = np.flatnonzero(class_ids == cls)
        keep_local = _greedy_nms(boxes[idx], scores[idx], nms_threshold)
        kept.extend(idx[keep_local].tolist())

    # Merge per-class survivors back into one confidence-ordered list
    kept.sort()
    kept_arr = np.array(kept, dtype=np.int64)
    order = np.argsort(-scores[kept_arr], kind="stable")
    return kept_arr[order].tolist()


def _greedy_nms(boxes: np.ndarray, scores: np.ndarray, threshold: float) -> np.ndarray:
    """Core greedy pass. Expects boxes (N, 4) in xyxy and scores (N,)."""
    x1 = boxes[:, 0]
    y1 = boxes[:, 1]
    x2 = boxes[:, 2]
    y2 = boxes[:, 3]
    areas = (x2 - x1) * (y2 - y1)

    order = np.argsort(-scores, kind="stable")
    keep = []

    while order.size > 0:
        i = order[0]
        keep.append(i)
        rest = order[1:]

        xx1 = np.maximum(x1[i], x1[rest])
        yy1 = np.maximum(y1[i], y1[rest])
        xx2 = np.minimum(x2[i], x2[rest])
        yy2 = np.minimum(y2[i], y2[rest])

        inter = np.maximum(0.0, xx2 - xx1) * np.maximum(0.0, yy2 - yy1)
        union = areas[i] + areas[rest] - inter
        overlap = np.divide(inter, union, out=np.zeros_like(inter), where=union > 0)

        order = rest[overlap <= threshold]

    return np.array(keep, dtype=np.int64)
