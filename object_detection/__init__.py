"""
Object Detection: real-time YOLO detection using OpenCV DNN.

Public API:
    - Detector: Loads the network and detects objects in a frame.
    - Detection, Box: Data transfer objects for detected objects.
    - postprocess: Raw YOLO outputs → suppressed detections.
    - non_max_suppression: Greedy NMS returning kept indices.

Usage:
    from object_detection import Detector

    detector = Detector()
    detections = detector.detect(frame)
"""

from object_detection.detection import Box, Detection
from object_detection.detector import Detector
from object_detection.nms import non_max_suppression
from object_detection.postprocessor import postprocess

__all__ = ["Box", "Detection", "Detector", "non_max_suppression", "postprocess"]
