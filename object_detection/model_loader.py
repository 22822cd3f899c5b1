"""
Model loading for the detection system.

Responsibility:
    Load the Darknet YOLO network from disk, configure the compute
    backend, and report the names of its output layers.

Non-goals:
    - No preprocessing, inference, or frame-level logic.
    - No automatic model downloading.

Failure behavior:
    - Missing model files raise FileNotFoundError with the exact
      missing path.
    - Unreadable model files or an unavailable backend raise RuntimeError.
"""

import logging
from typing import Tuple

import cv2

from object_detection.config import ModelConfig, resolve_path

logger = logging.getLogger(__name__)


def load_model(config: ModelConfig) -> cv2.dnn.Net:
    """Load and configure the YOLO network.

    Args:
        config: ModelConfig containing file paths and backend preference.

    Returns:
        A configured cv2.dnn.Net ready for inference.

    Raises:
        FileNotFoundError: If the .cfg or .weights file does not exist.
        RuntimeError: If OpenCV cannot parse the model or set the backend.
    """
    cfg_file = resolve_path(config.config_path)
    weights_file = resolve_path(config.weights_path)

    if not cfg_file.is_file():
        raise FileNotFoundError(
            f"Network configuration not found.\n"
            f"  Expected: {cfg_file}\n"
            f"  Provide the file or update 'model.config_path' in your config."
        )

    if not weights_file.is_file():
        raise FileNotFoundError(
            f"Network weights not found.\n"
            f"  Expected: {weights_file}\n"
            f"  Download the weights file and place it at the path above,\n"
            f"  or update 'model.weights_path' in your config."
        )

    logger.info("Loading model: cfg=%s, weights=%s", cfg_file, weights_file)
    try:
        net = cv2.dnn.readNetFromDarknet(str(cfg_file), str(weights_file))
    except cv2.error as e:
        raise RuntimeError(f"Failed to read Darknet model: {e}") from e

    if config.backend == "cuda":
        logger.info("Setting CUDA backend and target.")
        try:
            net.setPreferableBackend(cv2.dnn.DNN_BACKEND_CUDA)
            net.setPreferableTarget(cv2.dnn.DNN_TARGET_CUDA)
        except cv2.error as e:
            raise RuntimeError(
                f"Failed to set CUDA backend. Ensure OpenCV was built with "
                f"CUDA support.\n"
                f"  OpenCV error: {e}"
            ) from e
    else:
        logger.info("Using CPU backend.")
        net.setPreferableBackend(cv2.dnn.DNN_BACKEND_OPENCV)
        net.setPreferableTarget(cv2.dnn.DNN_TARGET_CPU)

    logger.info("Model loaded successfully.")
    return net


def get_output_names(net: cv2.dnn.Net) -> Tuple[str, ...]:
    """Names of the unconnected output layers, in network order.

    YOLO networks have one output layer per detection head; all of them
    must be requested from forward().
    """
    names = tuple(net.getUnconnectedOutLayersNames())
    if not names:
        raise RuntimeError("Loaded network reports no output layers.")
    logger.debug("Output layers: %s", names)
    return names
