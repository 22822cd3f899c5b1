"""
Input handling for the detection pipeline.

Responsibility:
    Acquire frames from a webcam, a video file, a single image, or a
    directory of images behind one interface: read_frame() returns the
    next BGR frame or None at end of stream, and iteration yields
    (frame_id, frame) tuples.

Read failure policy:
    - Video file: the first failed read is end of stream.
    - Webcam: a failed read is retried; after ``max_read_failures``
      consecutive failures the stream is treated as ended.
    - Image directory: unreadable images are logged and skipped.

Non-goals:
    - No detection, drawing, or output writing.
    - No implicit fallback between source types.
"""

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)

_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp"}
_VIDEO_EXTENSIONS = {".mp4", ".avi", ".mov", ".mkv", ".wmv", ".flv"}


class InputHandler:
    """Frame source over a webcam, video file, image, or image directory.

    The source kind is detected from ``source``:
        - Integer or digit string  → webcam device index
        - File with image extension → single image
        - File with video extension → video file
        - Directory → all images in it, sorted by name

    Usage:
        with InputHandler(source="0") as frames:
            for frame_id, frame in frames:
                ...
    """

    def __init__(
        self,
        source: Union[str, int],
        resize_width: Optional[int] = None,
        max_read_failures: int = 30,
    ) -> None:
        """Open and validate the source.

        Raises:
            FileNotFoundError: If a file/directory source does not exist.
            ValueError: If the source kind cannot be determined or a
                        directory holds no images.
            RuntimeError: If a video/webcam source cannot be opened.
        """
        self._resize_width = resize_width
        self._max_read_failures = max_read_failures
        self._cap: Optional[cv2.VideoCapture] = None
        self._image_paths: List[Path] = []
        self._next_image = 0
        self._frame_id = 0

        source_str = str(source).strip()
        path = Path(source_str)

        if source_str.isdigit():
            self._kind = "webcam"
            self._open_capture(int(source_str))
        elif path.is_file():
            ext = path.suffix.lower()
            if ext in _IMAGE_EXTENSIONS:
                self._kind = "image"
                self._image_paths = [path]
            elif ext in _VIDEO_EXTENSIONS:
                self._kind = "video"
                self._open_capture(source_str)
            else:
                raise ValueError(
                    f"Unrecognized file extension '{ext}' for source '{source_str}'. "
                    f"Supported images: {sorted(_IMAGE_EXTENSIONS)}. "
                    f"Supported videos: {sorted(_VIDEO_EXTENSIONS)}."
                )
        elif path.is_dir():
            self._kind = "directory"
            self._image_paths = sorted(
                p for p in path.iterdir() if p.suffix.lower() in _IMAGE_EXTENSIONS
            )
            if not self._image_paths:
                raise ValueError(f"No image files found in directory: '{source_str}'.")
        else:
            raise FileNotFoundError(
                f"Input source not found: '{source_str}'. "
                f"Provide a valid file path, directory, or device index."
            )

        logger.info("InputHandler opened: kind=%s, source=%s", self._kind, source_str)

    @property
    def kind(self) -> str:
        return self._kind

    def _open_capture(self, source: Union[str, int]) -> None:
        self._cap = cv2.VideoCapture(source)
        if not self._cap.isOpened():
            raise RuntimeError(
                f"Failed to open {self._kind} source '{source}'. "
                f"Ensure it exists and is accessible."
            )

    def read_frame(self) -> Optional[np.ndarray]:
        """Return the next frame, or None once the source is exhausted."""
        if self._kind in ("image", "directory"):
            frame = self._read_image()
        else:
            frame = self._read_capture()

        if frame is None:
            return None
        return self._maybe_resize(frame)

    def __iter__(self) -> Iterator[Tuple[int, np.ndarray]]:
        """Yield (frame_id, frame) until read_frame() reports end of stream."""
        while True:
            frame = self.read_frame()
            if frame is None:
                return
            yield self._frame_id, frame
            self._frame_id += 1

    def _read_image(self) -> Optional[np.ndarray]:
        while self._next_image < len(self._image_paths):
            path = self._image_paths[self._next_image]
            self._next_image += 1
            frame = cv2.imread(str(path))
            if frame is not None:
                return frame
            logger.warning("Skipping unreadable image: %s", path)
        return None

    def _read_capture(self) -> Optional[np.ndarray]:
        if self._cap is None:
            return None

        failures = 0
        while True:
            ok, frame = self._cap.read()
            if ok and frame is not None:
                return frame

            if self._kind == "video":
                logger.info("End of video reached after %d frames.", self._frame_id)
                return None

            failures += 1
            if failures >= self._max_read_failures:
                logger.error(
                    "Webcam produced %d consecutive failed reads; ending stream.",
                    failures,
                )
                return None
            logger.warning("Failed to read frame from webcam, retrying.")

    def _maybe_resize(self, frame: np.ndarray) -> np.ndarray:
        """Downscale to resize_width (aspect preserved) if the frame is wider."""
        if self._resize_width is None:
            return frame

        h, w = frame.shape[:2]
        if w <= self._resize_width:
            return frame

        new_h = int(h * self._resize_width / w)
        return cv2.resize(frame, (self._resize_width, new_h), interpolation=cv2.INTER_AREA)

    def release(self) -> None:
        """Release the capture handle, if any."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.debug("VideoCapture released.")

    def __enter__(self) -> "InputHandler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
