"""
Tests for the configuration module.
"""

import pytest

from object_detection.config import (
    AppConfig,
    DetectionConfig,
    ModelConfig,
    OutputConfig,
    _validate,
    apply_overrides,
    load_config,
)


def test_load_defaults():
    """Defaults match the reference detector settings."""
    config = load_config(None)
    assert isinstance(config, AppConfig)
    assert config.model.backend == "cpu"
    assert config.model.input_size == (416, 416)
    assert config.model.scale_factor == pytest.approx(1 / 255)
    assert config.model.swap_rb is True
    assert config.detection.confidence_threshold == 0.5
    assert config.detection.nms_threshold == 0.4
    assert config.detection.class_agnostic_nms is True


def test_validation_failure():
    with pytest.raises(ValueError, match="confidence_threshold"):
        _validate(AppConfig(detection=DetectionConfig(confidence_threshold=1.5)))

    with pytest.raises(ValueError, match="nms_threshold"):
        _validate(AppConfig(detection=DetectionConfig(nms_threshold=-0.1)))

    with pytest.raises(ValueError, match="backend"):
        _validate(AppConfig(model=ModelConfig(backend="invalid")))

    with pytest.raises(ValueError, match="output.mode"):
        _validate(AppConfig(output=OutputConfig(mode="display,hologram")))


def test_env_override(monkeypatch):
    monkeypatch.setenv("YOLO_DETECT_DETECTION_CONFIDENCE_THRESHOLD", "0.9")
    monkeypatch.setenv("YOLO_DETECT_DETECTION_CLASS_AGNOSTIC_NMS", "false")
    monkeypatch.setenv("YOLO_DETECT_MODEL_BACKEND", "cuda")

    config = load_config(None)

    assert config.detection.confidence_threshold == 0.9
    assert config.detection.class_agnostic_nms is False
    assert config.model.backend == "cuda"


def test_yaml_file(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "model:\n"
        "  input_size: [320, 320]\n"
        "  class_names_path: null\n"
        "detection:\n"
        "  nms_threshold: 0.5\n"
        "output:\n"
        "  mode: save_json\n",
        encoding="utf-8",
    )

    config = load_config(str(config_file))

    assert config.model.input_size == (320, 320)
    assert config.model.class_names_path is None
    assert config.detection.nms_threshold == 0.5
    assert config.output.mode == "save_json"


def test_missing_yaml_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_apply_overrides_ignores_none():
    base = load_config(None)

    config = apply_overrides(
        base,
        {
            "detection": {"confidence_threshold": 0.7, "nms_threshold": None},
            "input": {"source": None},
        },
    )

    assert config.detection.confidence_threshold == 0.7
    assert config.detection.nms_threshold == base.detection.nms_threshold
    assert config.input.source == base.input.source
    assert base.detection.confidence_threshold == 0.5


def test_apply_overrides_validates():
    with pytest.raises(ValueError, match="confidence_threshold"):
        apply_overrides(load_config(None), {"detection": {"confidence_threshold": 2.0}})
