"""
Preprocessing for the detection pipeline.

Responsibility:
    Convert a raw BGR frame into the 4D input blob the YOLO network
    expects: a direct square resize (no letterboxing), pixel values
    scaled to [0, 1], and channels swapped to RGB.

Non-goals:
    - No frame acquisition or I/O.
    - No inference or coordinate mapping.

Hard-coded:
    - No mean subtraction.
    - No center crop.
"""

import numpy as np
import cv2

from object_detection.config import ModelConfig

_ZERO_MEAN = (0.0, 0.0, 0.0)


def preprocess(frame: np.ndarray, config: ModelConfig) -> np.ndarray:
    """Convert a raw BGR frame into a DNN input blob.

    Args:
        frame: Input image as a BGR numpy array (H, W, 3).
        config: ModelConfig providing input_size, scale_factor, and swap_rb.

    Returns:
        A float32 array of shape (1, 3, input_h, input_w).

    Raises:
        ValueError: If the frame is empty.
    """
    if frame is None or frame.size == 0:
        raise ValueError(
            "Cannot preprocess an empty frame. "
            "Ensure the input source is providing valid frames."
        )

    return cv2.dnn.blobFromImage(
        image=frame,
        scalefactor=config.scale_factor,
        size=config.input_size,
        mean=_ZERO_MEAN,
        swapRB=config.swap_rb,
        crop=False,
    )
