"""
Tests for class name loading and lookup.
"""

import pytest

from object_detection.class_names import check_class_ids, class_name_for, load_class_names
from object_detection.detection import Box, Detection


def test_load_class_names(tmp_path):
    names_file = tmp_path / "coco.names"
    names_file.write_text("person\nbicycle\ncar\n", encoding="utf-8")

    assert load_class_names(str(names_file)) == ("person", "bicycle", "car")


def test_load_class_names_none():
    assert load_class_names(None) == ()


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_class_names(str(tmp_path / "missing.names"))


def test_empty_file(tmp_path):
    names_file = tmp_path / "empty.names"
    names_file.write_text("", encoding="utf-8")

    with pytest.raises(ValueError, match="empty"):
        load_class_names(str(names_file))


def test_class_name_for():
    names = ("person", "bicycle")
    assert class_name_for(1, names) == "bicycle"

    with pytest.raises(IndexError, match="out of range"):
        class_name_for(2, names)


def test_check_class_ids():
    detections = [
        Detection(box=Box(0, 0, 1, 1), class_id=0, confidence=0.9),
        Detection(box=Box(0, 0, 1, 1), class_id=5, confidence=0.8),
    ]

    check_class_ids(detections, ())
    check_class_ids(detections[:1], ("person",))
    with pytest.raises(IndexError, match="Class id 5"):
        check_class_ids(detections, ("person",))
