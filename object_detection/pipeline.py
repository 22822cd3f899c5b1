"""
Frame pipeline loop.

Pulls one frame at a time from a source, runs detection, and hands the
frame with its detections to a sink. The sink's return value is the stop
signal, polled once per frame after rendering. Everything runs
sequentially on the calling thread; no frame is requested before the
previous one is fully processed.
"""

import logging
from typing import Iterable, List, Protocol, Tuple

import numpy as np

from object_detection.detection import Detection

logger = logging.getLogger(__name__)

# Emit a progress line every this many frames
_PROGRESS_INTERVAL = 30


class FrameDetector(Protocol):
    def detect(self, frame: np.ndarray) -> List[Detection]: ...


class FrameSink(Protocol):
    def process_frame(
        self, frame_id: int, frame: np.ndarray, detections: List[Detection]
    ) -> bool: ...


def run_pipeline(
    detector: FrameDetector,
    frames: Iterable[Tuple[int, np.ndarray]],
    sink: FrameSink,
) -> int:
    """Run detection over every frame until the source ends or the sink stops.

    Args:
        detector: Anything with ``detect(frame) -> list[Detection]``.
        frames: Iterable of (frame_id, frame) tuples, e.g. an InputHandler.
        sink: Anything with ``process_frame(frame_id, frame, detections) -> bool``;
              returning False requests a stop.

    Returns:
        Number of frames fully processed. Ctrl-C ends the loop cleanly and
        returns the count so far.
    """
    frame_count = 0

    try:
        for frame_id, frame in frames:
            detections = detector.detect(frame)

            logger.debug("Frame %d: %d detections", frame_id, len(detections))

            keep_going = sink.process_frame(frame_id, frame, detections)
            frame_count += 1
            if frame_count % _PROGRESS_INTERVAL == 0:
                logger.info("Processed %d frames...", frame_count)

            if not keep_going:
                logger.info("Stopping loop per user request.")
                break
    except KeyboardInterrupt:
        logger.info("Interrupted by user after %d frames.", frame_count)

    return frame_count
