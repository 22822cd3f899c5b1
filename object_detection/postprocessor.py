"""
Postprocessing for the detection pipeline.

Responsibility:
    Turn the raw YOLO output tensors of one forward pass into the final
    list of Detection objects: decode every anchor row, keep rows whose
    best class score clears the confidence threshold, then run
    non-maximum suppression.

Non-goals:
    - No drawing, saving, or display logic.
    - No model loading or inference.
    - No clamping to frame boundaries.

Hard-coded:
    - Darknet YOLO row layout: [cx, cy, w, h, objectness, class_scores...]
      with box values normalized to [0, 1]. The objectness column is
      not used; the confidence is the raw class score.
"""

import logging
from dataclasses import dataclass
from itertools import chain
from typing import Iterable, Iterator, List, Sequence

import numpy as np

from object_detection.detection import Box, Detection
from object_detection.nms import non_max_suppression

logger = logging.getLogger(__name__)

# Index of the first class score in an anchor row
_CLASS_SCORES_OFFSET = 5


@dataclass(frozen=True, slots=True)
class Candidate:
    """A decoded anchor row that has not been thresholded yet."""

    box: Box
    class_id: int
    confidence: float


def decode(
    output: np.ndarray,
    frame_width: int,
    frame_height: int,
) -> Iterator[Candidate]:
    """Lazily decode one raw output tensor into candidates, one per row.

    Box values are scaled by the frame size (not the network input
    size, since the blob is a plain square resize) and converted from
    center to corner format.

    Raises:
        ValueError: If the tensor has fewer than 6 columns.
    """
    rows = np.asarray(output)
    if rows.ndim != 2:
        rows = rows.reshape(-1, rows.shape[-1])
    if rows.shape[1] <= _CLASS_SCORES_OFFSET:
        raise ValueError(
            f"Expected rows of length 5 + num_classes, got shape {rows.shape}."
        )

    scores = rows[:, _CLASS_SCORES_OFFSET:]
    class_ids = np.argmax(scores, axis=1)
    confidences = scores[np.arange(scores.shape[0]), class_ids]

    # Scale in the tensor's own precision, then truncate toward zero
    dtype = rows.dtype if np.issubdtype(rows.dtype, np.floating) else np.float32
    scale = np.array(
        [frame_width, frame_height, frame_width, frame_height], dtype=dtype
    )
    cxcywh = (rows[:, :4].astype(dtype) * scale).astype(np.int64)
    lefts = cxcywh[:, 0] - np.fix(cxcywh[:, 2] / 2).astype(np.int64)
    tops = cxcywh[:, 1] - np.fix(cxcywh[:, 3] / 2).astype(np.int64)

    for i in range(rows.shape[0]):
        yield Candidate(
            box=Box(
                x=int(lefts[i]),
                y=int(tops[i]),
                width=int(cxcywh[i, 2]),
                height=int(cxcywh[i, 3]),
            ),
            class_id=int(class_ids[i]),
            confidence=float(confidences[i]),
        )


def decode_all(
    outputs: Sequence[np.ndarray],
    frame_width: int,
    frame_height: int,
) -> Iterator[Candidate]:
    """Decode every tensor of a forward pass, in tensor order then row order."""
    return chain.from_iterable(
        decode(output, frame_width, frame_height) for output in outputs
    )


def filter_candidates(
    candidates: Iterable[Candidate],
    confidence_threshold: float,
) -> List[Detection]:
    """Keep candidates whose confidence is strictly above the threshold.

    Decode order is preserved; it is the tie-break order for suppression.
    """
    return [
        Detection(box=c.box, class_id=c.class_id, confidence=c.confidence)
        for c in candidates
        if c.confidence > confidence_threshold
    ]


def postprocess(
    outputs: Sequence[np.ndarray],
    frame_width: int,
    frame_height: int,
    confidence_threshold: float,
    nms_threshold: float,
    class_agnostic: bool = True,
) -> List[Detection]:
    """Decode, threshold, and suppress the raw outputs of one forward pass.

    Args:
        outputs: Every output tensor returned by net.forward().
        frame_width: Original frame width in pixels.
        frame_height: Original frame height in pixels.
        confidence_threshold: Minimum (exclusive) class score to keep.
        nms_threshold: IoU above which overlapping boxes are suppressed.
        class_agnostic: Suppress across classes (default) or per class.

    Returns:
        Surviving detections sorted by confidence (descending). Empty
        if nothing clears the threshold or ``outputs`` is empty.
    """
    candidates = decode_all(outputs, frame_width, frame_height)
    detections = filter_candidates(candidates, confidence_threshold)
    keep = non_max_suppression(detections, nms_threshold, class_agnostic)

    logger.debug(
        "Postprocess: %d above threshold, %d after NMS", len(detections), len(keep)
    )
    return [detections[i] for i in keep]
