"""
Tests for the postprocessing module (decode, confidence filter, postprocess).
"""

import numpy as np
import pytest

from object_detection.detection import Box
from object_detection.postprocessor import (
    Candidate,
    decode,
    decode_all,
    filter_candidates,
    postprocess,
)


def _row(cx, cy, w, h, scores, objectness=1.0):
    return [cx, cy, w, h, objectness, *scores]


def _tensor(*rows):
    return np.array(rows, dtype=np.float32)


def test_decode_denormalizes_with_frame_size():
    tensor = _tensor(_row(0.5, 0.5, 0.2, 0.4, [0.1, 0.8, 0.05]))

    candidates = list(decode(tensor, frame_width=640, frame_height=480))

    assert len(candidates) == 1
    cand = candidates[0]
    assert cand.box == Box(x=256, y=144, width=128, height=192)
    assert cand.box.x + cand.box.width // 2 == 320
    assert cand.box.y + cand.box.height // 2 == 240
    assert cand.class_id == 1
    assert cand.confidence == pytest.approx(0.8)


def test_decode_is_lazy_and_emits_every_row():
    tensor = _tensor(
        _row(0.1, 0.1, 0.1, 0.1, [0.9, 0.0]),
        _row(0.2, 0.2, 0.1, 0.1, [0.0, 0.1]),
        _row(0.3, 0.3, 0.1, 0.1, [0.2, 0.3]),
    )
    gen = decode(tensor, 100, 100)
    assert not isinstance(gen, list)
    assert [c.class_id for c in gen] == [0, 1, 1]


def test_decode_ignores_objectness():
    tensor = _tensor(_row(0.5, 0.5, 0.1, 0.1, [0.3, 0.7], objectness=0.1))
    (cand,) = decode(tensor, 100, 100)
    assert cand.confidence == pytest.approx(0.7)


def test_decode_first_maximum_wins_ties():
    tensor = _tensor(_row(0.5, 0.5, 0.1, 0.1, [0.6, 0.6, 0.2]))
    (cand,) = decode(tensor, 100, 100)
    assert cand.class_id == 0


def test_decode_boxes_may_extend_past_frame():
    tensor = _tensor(_row(0.0, 0.0, 0.5, 0.5, [0.9]))
    (cand,) = decode(tensor, 200, 100)
    assert cand.box == Box(x=-50, y=-25, width=100, height=50)


def test_decode_scales_in_tensor_precision():
    # float32(0.7) * 10 rounds to 7.0 in float32 but truncates to 6 in float64
    tensor = _tensor(_row(0.5, 0.5, 0.7, 0.7, [0.9]))

    (cand,) = decode(tensor, frame_width=10, frame_height=10)

    assert cand.box == Box(x=2, y=2, width=7, height=7)


def test_decode_rejects_short_rows():
    with pytest.raises(ValueError, match="5 \\+ num_classes"):
        list(decode(np.zeros((2, 5), dtype=np.float32), 100, 100))


def test_decode_empty_tensor():
    assert list(decode(np.zeros((0, 85), dtype=np.float32), 640, 480)) == []


def test_decode_all_preserves_tensor_then_row_order():
    first = _tensor(
        _row(0.1, 0.1, 0.1, 0.1, [0.9, 0.0]),
        _row(0.2, 0.2, 0.1, 0.1, [0.0, 0.8]),
    )
    second = _tensor(_row(0.3, 0.3, 0.1, 0.1, [0.7, 0.0]))

    candidates = list(decode_all([first, second], 100, 100))

    assert [c.box.x for c in candidates] == [5, 15, 25]
    assert [c.class_id for c in candidates] == [0, 1, 0]


def test_filter_is_strict_and_keeps_order():
    box = Box(0, 0, 10, 10)
    candidates = [
        Candidate(box=box, class_id=0, confidence=0.9),
        Candidate(box=box, class_id=1, confidence=0.5),
        Candidate(box=box, class_id=2, confidence=0.3),
        Candidate(box=box, class_id=3, confidence=0.51),
    ]

    detections = filter_candidates(candidates, confidence_threshold=0.5)

    assert [d.class_id for d in detections] == [0, 3]
    assert all(d.confidence > 0.5 for d in detections)


def test_row_below_threshold_yields_nothing():
    tensor = _tensor(_row(0.5, 0.5, 0.2, 0.2, [0.3, 0.1]))
    assert postprocess([tensor], 640, 480, 0.5, 0.4) == []


def test_zero_tensors_yield_nothing():
    assert postprocess([], 640, 480, 0.5, 0.4) == []


def test_postprocess_suppresses_overlapping_boxes():
    tensor = _tensor(
        _row(0.5, 0.5, 0.2, 0.2, [0.6, 0.0]),
        _row(0.5, 0.5, 0.2, 0.2, [0.0, 0.9]),
        _row(0.1, 0.1, 0.1, 0.1, [0.7, 0.0]),
    )

    detections = postprocess([tensor], 100, 100, 0.5, 0.4)

    assert [(d.class_id, round(d.confidence, 2)) for d in detections] == [(1, 0.9), (0, 0.7)]


def test_postprocess_per_class_keeps_cross_class_overlap():
    tensor = _tensor(
        _row(0.5, 0.5, 0.2, 0.2, [0.6, 0.0]),
        _row(0.5, 0.5, 0.2, 0.2, [0.0, 0.9]),
    )

    detections = postprocess([tensor], 100, 100, 0.5, 0.4, class_agnostic=False)

    assert [d.class_id for d in detections] == [1, 0]
