"""
Detector, the public API for per-frame object detection.

Public contract:
    Detector.detect(frame: np.ndarray) -> list[Detection]

Constraints:
    - Input must be a BGR numpy array (as returned by OpenCV).
    - Each call is independent: nothing is carried between frames.
    - Thread-safety is not guaranteed (single-threaded design).

Non-goals:
    - No file reading, camera access, or I/O of any kind after startup.
    - No visualization or output writing.
    - No tracking or temporal state.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np

from object_detection.class_names import load_class_names
from object_detection.config import AppConfig, load_config
from object_detection.detection import Detection
from object_detection.model_loader import get_output_names, load_model
from object_detection.preprocessor import preprocess
from object_detection.postprocessor import postprocess

logger = logging.getLogger(__name__)


class Detector:
    """YOLO object detector via OpenCV DNN.

    The constructor loads the network, its output layer names, and the
    class name table once. Any failure there is a startup failure.

    Usage:
        detector = Detector()                       # Uses defaults
        detector = Detector(config=my_config)       # Custom config
        detections = detector.detect(frame)         # BGR numpy array
    """

    def __init__(self, config: Optional[AppConfig] = None) -> None:
        """Initialize the detector, load the model and class names.

        Raises:
            FileNotFoundError: If model or class name files are missing.
            RuntimeError: If the model cannot be loaded or the backend is unavailable.
            ValueError: If configuration values or the class name file are invalid.
        """
        if config is None:
            config = load_config()

        self._config = config
        self._net = load_model(config.model)
        self._output_names = get_output_names(self._net)
        self._class_names = load_class_names(config.model.class_names_path)

        logger.info(
            "Detector initialized (backend=%s, outputs=%d, classes=%d, "
            "confidence_threshold=%.2f, nms_threshold=%.2f)",
            config.model.backend,
            len(self._output_names),
            len(self._class_names),
            config.detection.confidence_threshold,
            config.detection.nms_threshold,
        )

    def detect(self, frame: np.ndarray) -> List[Detection]:
        """Detect objects in a single BGR frame.

        Returns:
            Detections that survived thresholding and suppression,
            sorted by confidence (descending).

        Raises:
            TypeError: If frame is not a numpy ndarray.
            ValueError: If frame has incorrect shape or is empty.
        """
        self._validate_frame(frame)

        blob = preprocess(frame, self._config.model)

        self._net.setInput(blob)
        outputs = self._net.forward(list(self._output_names))

        h, w = frame.shape[:2]
        detection_config = self._config.detection
        return postprocess(
            outputs,
            frame_width=w,
            frame_height=h,
            confidence_threshold=detection_config.confidence_threshold,
            nms_threshold=detection_config.nms_threshold,
            class_agnostic=detection_config.class_agnostic_nms,
        )

    @property
    def config(self) -> AppConfig:
        """Return the active configuration (read-only)."""
        return self._config

    @property
    def output_names(self) -> Tuple[str, ...]:
        return self._output_names

    @property
    def class_names(self) -> Tuple[str, ...]:
        return self._class_names

    @staticmethod
    def _validate_frame(frame: np.ndarray) -> None:
        """Validate that the input frame meets the API contract.

        Raises:
            TypeError: If frame is not a numpy ndarray.
            ValueError: If frame is empty or has wrong dimensions.
        """
        if not isinstance(frame, np.ndarray):
            raise TypeError(
                f"Expected frame to be a numpy ndarray, "
                f"got {type(frame).__name__}."
            )

        if frame.size == 0:
            raise ValueError("Frame is empty (zero size).")

        if frame.ndim != 3:
            raise ValueError(
                f"Expected a 3-dimensional frame (H, W, C), "
                f"got {frame.ndim} dimensions with shape {frame.shape}."
            )

        if frame.shape[2] != 3:
            raise ValueError(
                f"Expected 3 channels (BGR), got {frame.shape[2]} channels."
            )
