"""
Tests for the detection data model.
"""

import dataclasses

import pytest

from object_detection.detection import Box, Detection


def test_box_derived_edges_and_area():
    box = Box(x=256, y=144, width=128, height=192)
    assert box.right == 384
    assert box.bottom == 336
    assert box.area == 128 * 192


def test_box_allows_negative_origin():
    box = Box(x=-10, y=-5, width=20, height=10)
    assert box.right == 10
    assert box.bottom == 5
    assert box.area == 200


def test_detection_is_frozen():
    det = Detection(box=Box(0, 0, 10, 10), class_id=2, confidence=0.9)
    with pytest.raises(dataclasses.FrozenInstanceError):
        det.confidence = 0.1


def test_detection_to_dict():
    det = Detection(box=Box(1, 2, 3, 4), class_id=7, confidence=0.876543)
    assert det.to_dict() == {
        "class_id": 7,
        "x": 1,
        "y": 2,
        "width": 3,
        "height": 4,
        "confidence": 0.8765,
    }
