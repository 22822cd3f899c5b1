"""
Tests for the input handler.

Webcam and video sources use a fake VideoCapture.
"""

import cv2
import numpy as np
import pytest

from object_detection.input_handler import InputHandler


class FakeCapture:
    def __init__(self, reads):
        self._reads = list(reads)
        self.released = False

    def isOpened(self):
        return True

    def read(self):
        if self._reads:
            frame = self._reads.pop(0)
            return frame is not None, frame
        return False, None

    def release(self):
        self.released = True


def _frame(value=0, shape=(20, 30, 3)):
    return np.full(shape, value, dtype=np.uint8)


@pytest.fixture
def fake_capture(monkeypatch):
    def _install(reads):
        capture = FakeCapture(reads)
        monkeypatch.setattr(cv2, "VideoCapture", lambda source: capture)
        return capture

    return _install


def test_single_image(tmp_path):
    path = tmp_path / "frame.png"
    cv2.imwrite(str(path), _frame(7))

    handler = InputHandler(str(path))
    frames = list(handler)

    assert handler.kind == "image"
    assert len(frames) == 1
    assert frames[0][0] == 0
    assert frames[0][1].shape == (20, 30, 3)


def test_directory_skips_unreadable_images(tmp_path):
    cv2.imwrite(str(tmp_path / "a.png"), _frame(1))
    (tmp_path / "b.png").write_bytes(b"not an image")
    cv2.imwrite(str(tmp_path / "c.png"), _frame(3))
    (tmp_path / "notes.txt").write_text("ignored")

    frames = list(InputHandler(str(tmp_path)))

    assert [frame_id for frame_id, _ in frames] == [0, 1]
    assert [int(frame[0, 0, 0]) for _, frame in frames] == [1, 3]


def test_read_frame_returns_none_at_end(tmp_path):
    path = tmp_path / "frame.png"
    cv2.imwrite(str(path), _frame())
    handler = InputHandler(str(path))

    assert handler.read_frame() is not None
    assert handler.read_frame() is None


def test_video_failed_read_is_end_of_stream(tmp_path, fake_capture):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"")
    capture = fake_capture([_frame(1), None, _frame(2)])

    with InputHandler(str(video)) as handler:
        frames = list(handler)

    assert len(frames) == 1
    assert capture.released


def test_webcam_retries_up_to_limit(fake_capture):
    fake_capture([_frame(1), None, _frame(2), None, None, None, _frame(3)])

    handler = InputHandler("0", max_read_failures=3)
    frames = [int(frame[0, 0, 0]) for _, frame in handler]

    assert handler.kind == "webcam"
    assert frames == [1, 2]


def test_resize_width_preserves_aspect(tmp_path):
    path = tmp_path / "wide.png"
    cv2.imwrite(str(path), _frame(shape=(200, 400, 3)))

    (_, frame), = list(InputHandler(str(path), resize_width=200))

    assert frame.shape == (100, 200, 3)


def test_missing_source(tmp_path):
    with pytest.raises(FileNotFoundError):
        InputHandler(str(tmp_path / "missing.mp4"))


def test_unknown_extension(tmp_path):
    path = tmp_path / "data.bin"
    path.write_bytes(b"")
    with pytest.raises(ValueError, match="extension"):
        InputHandler(str(path))


def test_unopenable_capture(monkeypatch):
    class ClosedCapture(FakeCapture):
        def isOpened(self):
            return False

    monkeypatch.setattr(cv2, "VideoCapture", lambda source: ClosedCapture([]))
    with pytest.raises(RuntimeError, match="Failed to open"):
        InputHandler("1")
