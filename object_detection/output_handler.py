"""
Output handling for the detection pipeline.

Responsibility:
    Route each frame's detections to the configured sinks (display
    window, annotated images, video file, JSON, CSV) and report the
    stop signal back to the frame loop.

Stop signal:
    In display mode, process_frame() returns False when the user
    presses 'q' or ESC, or closes the window. It is checked once per
    frame, after the frame has been rendered.

Class ids are checked against the name table on every frame, so a
mismatch fails the frame that carries it rather than the final export.

Memory:
    save_json/save_csv buffer every frame's detections until finalize(),
    so the buffer grows for the whole run. On an open-ended webcam
    source, prefer save_image/save_video or stop the run periodically.
"""

import logging
from typing import Dict, List, Optional, Sequence

import cv2
import numpy as np

from object_detection.class_names import check_class_ids
from object_detection.config import AppConfig, parse_output_modes, resolve_path
from object_detection.detection import Detection
from object_detection.serializer import save_csv, save_json
from object_detection.visualizer import draw_detections, show_frame, window_closed

logger = logging.getLogger(__name__)

_QUIT_KEYS = {ord("q"), 27}  # 'q' or ESC
_FILE_MODES = {"save_image", "save_video", "save_json", "save_csv"}
_VIDEO_FPS = 20.0


class OutputHandler:
    """Routes detection results to configured output sinks.

    Usage:
        handler = OutputHandler(config, class_names)
        keep_going = handler.process_frame(frame_id, frame, detections)
        ...
        handler.finalize()  # Flush buffered output, close windows
    """

    def __init__(self, config: AppConfig, class_names: Sequence[str] = ()) -> None:
        self._config = config
        self._class_names = tuple(class_names)
        self._modes = parse_output_modes(config.output.mode)
        self._window_name = config.output.window_name
        self._video_writer: Optional[cv2.VideoWriter] = None
        self._detections_buffer: Dict[int, List[Detection]] = {}

        self._save_path = resolve_path(config.output.save_path)
        if self._modes & _FILE_MODES:
            self._save_path.mkdir(parents=True, exist_ok=True)

        if "display" in self._modes:
            cv2.namedWindow(self._window_name)

        logger.info(
            "OutputHandler initialized: modes=%s, save_path=%s",
            sorted(self._modes), self._save_path,
        )

    def process_frame(
        self,
        frame_id: int,
        frame: np.ndarray,
        detections: List[Detection],
    ) -> bool:
        """Send one frame to every active sink.

        Returns:
            True to continue, False if the user asked to stop.

        Raises:
            IndexError: If a detection's class id is outside the name table.
        """
        check_class_ids(detections, self._class_names)

        if "save_json" in self._modes or "save_csv" in self._modes:
            self._detections_buffer[frame_id] = detections

        if not self._modes & {"display", "save_image", "save_video"}:
            return True

        annotated = draw_detections(
            frame, detections, self._config.visualization, self._class_names
        )

        if "save_image" in self._modes:
            output_file = self._save_path / f"frame_{frame_id:06d}.jpg"
            cv2.imwrite(str(output_file), annotated)
            logger.debug("Saved frame %d to %s", frame_id, output_file)

        if "save_video" in self._modes:
            self._write_video_frame(annotated)

        if "display" in self._modes:
            return self._display(annotated)

        return True

    def _display(self, annotated: np.ndarray) -> bool:
        key = show_frame(self._window_name, annotated)
        if key in _QUIT_KEYS:
            logger.info("Quit signal received (key press).")
            return False
        if window_closed(self._window_name):
            logger.info("Quit signal received (window closed).")
            return False
        return True

    def _write_video_frame(self, annotated: np.ndarray) -> None:
        if self._video_writer is None:
            output_file = str(self._save_path / "output.avi")
            h, w = annotated.shape[:2]
            fourcc = cv2.VideoWriter_fourcc(*"XVID")
            self._video_writer = cv2.VideoWriter(output_file, fourcc, _VIDEO_FPS, (w, h))
            logger.info("Video writer opened: %s (%dx%d)", output_file, w, h)

        self._video_writer.write(annotated)

    def finalize(self) -> None:
        """Flush buffered output and release resources.

        Must be called after all frames have been processed. The video
        writer and windows are released even if writing JSON/CSV fails.

        Raises:
            OSError: If a JSON/CSV file cannot be written.
        """
        try:
            if "save_json" in self._modes and self._detections_buffer:
                save_json(
                    self._detections_buffer,
                    str(self._save_path / "detections.json"),
                    self._class_names,
                )

            if "save_csv" in self._modes and self._detections_buffer:
                save_csv(
                    self._detections_buffer,
                    str(self._save_path / "detections.csv"),
                    self._class_names,
                )
        finally:
            if self._video_writer is not None:
                self._video_writer.release()
                self._video_writer = None
                logger.info("Video writer released.")

            if "display" in self._modes:
                cv2.destroyAllWindows()

            self._detections_buffer.clear()
            logger.info("OutputHandler finalized.")
