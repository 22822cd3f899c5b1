"""
Configuration management for the object detection system.

Provides a layered configuration system with the following precedence
(highest to lowest):

    CLI arguments > Environment variables > YAML config file > Defaults

Design constraints:
    - Every tunable constant of the pipeline is a named option here.
    - Missing or invalid values fail early and loudly.
    - No detection logic, I/O, or model loading belongs here.

Non-goals:
    - No dynamic reloading.
    - No database-backed or remote configuration.
"""

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Project root resolution
# ---------------------------------------------------------------------------
# Resolved relative to this file's location: object_detection/config.py → repo root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def resolve_path(path: str) -> Path:
    """Resolve a possibly relative path against the project root."""
    resolved = Path(path)
    if not resolved.is_absolute():
        resolved = _PROJECT_ROOT / resolved
    return resolved


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModelConfig:
    """Model-related configuration.

    Attributes:
        config_path: Darknet .cfg network definition (relative to project root).
        weights_path: Darknet .weights file (relative to project root).
        class_names_path: Class name table, one name per line. None disables
                          class labels (only the confidence is drawn).
        backend: Compute backend, 'cpu' or 'cuda'.
        input_size: Spatial dimensions (width, height) of the square input blob.
        scale_factor: Pixel value scale factor applied during blob creation.
        swap_rb: Swap the first and last channels (BGR frames → RGB blob).
    """

    config_path: str = "data/yolov7-tiny.cfg"
    weights_path: str = "data/yolov7-tiny.weights"
    class_names_path: Optional[str] = "data/coco.names"
    backend: str = "cpu"
    input_size: Tuple[int, int] = (416, 416)
    scale_factor: float = 1 / 255.0
    swap_rb: bool = True


@dataclass(frozen=True)
class DetectionConfig:
    """Detection thresholds.

    Attributes:
        confidence_threshold: Class scores must be strictly above this.
        nms_threshold: IoU strictly above this suppresses the weaker box.
        class_agnostic_nms: Suppress across classes (True) or within each
                            class only (False).
    """

    confidence_threshold: float = 0.5
    nms_threshold: float = 0.4
    class_agnostic_nms: bool = True


@dataclass(frozen=True)
class InputConfig:
    """Input source configuration.

    Attributes:
        source: Input source: file path, directory path, video path,
                or integer device index (as string or int).
        resize_width: Optional width to downscale input frames before detection.
                      None means no resizing.
        max_read_failures: Consecutive failed webcam reads tolerated before
                           the stream is treated as ended.
    """

    source: str = "0"
    resize_width: Optional[int] = None
    max_read_failures: int = 30


@dataclass(frozen=True)
class OutputConfig:
    """Output behavior configuration.

    Attributes:
        mode: Output mode(s). Supports multiple comma-separated values:
              'display', 'save_image', 'save_video', 'save_json', 'save_csv'.
              Example: "display,save_json"
        save_path: Directory where output artifacts are written.
        window_name: Title of the display window.
    """

    mode: str = "display"
    save_path: str = "output/"
    window_name: str = "YOLO Object Detection"


@dataclass(frozen=True)
class VisualizationConfig:
    """Visualization rendering parameters.

    Attributes:
        box_color: BGR color tuple for bounding boxes.
        thickness: Line thickness in pixels.
        show_labels: Whether to render the class/confidence label.
    """

    box_color: Tuple[int, int, int] = (255, 178, 50)
    thickness: int = 3
    show_labels: bool = True


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration.

    Aggregates all sub-configurations into a single, frozen object.
    """

    model: ModelConfig = field(default_factory=ModelConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    input: InputConfig = field(default_factory=InputConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    visualization: VisualizationConfig = field(default_factory=VisualizationConfig)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

_VALID_BACKENDS = {"cpu", "cuda"}
_VALID_OUTPUT_MODES = {"display", "save_image", "save_video", "save_json", "save_csv"}


def parse_output_modes(mode: str) -> set:
    """Split a comma-separated output mode string into a set of modes."""
    return {m.strip() for m in mode.split(",") if m.strip()}


def _validate(config: AppConfig) -> None:
    """Validate configuration values. Raises ValueError on invalid state."""

    if config.model.backend not in _VALID_BACKENDS:
        raise ValueError(
            f"Invalid model.backend: '{config.model.backend}'. "
            f"Must be one of {_VALID_BACKENDS}."
        )

    modes = parse_output_modes(config.output.mode)
    invalid_modes = modes - _VALID_OUTPUT_MODES
    if not modes or invalid_modes:
        raise ValueError(
            f"Invalid output.mode: '{config.output.mode}'. "
            f"Valid modes: {_VALID_OUTPUT_MODES}. "
            f"Use comma-separated values for multiple outputs."
        )

    if not (0.0 <= config.detection.confidence_threshold <= 1.0):
        raise ValueError(
            f"detection.confidence_threshold must be in [0.0, 1.0], "
            f"got {config.detection.confidence_threshold}."
        )

    if not (0.0 <= config.detection.nms_threshold <= 1.0):
        raise ValueError(
            f"detection.nms_threshold must be in [0.0, 1.0], "
            f"got {config.detection.nms_threshold}."
        )

    if len(config.model.input_size) != 2:
        raise ValueError(
            f"model.input_size must be a (width, height) tuple, "
            f"got {config.model.input_size}."
        )

    if any(d <= 0 for d in config.model.input_size):
        raise ValueError(
            f"model.input_size dimensions must be positive, "
            f"got {config.model.input_size}."
        )

    if config.model.scale_factor <= 0:
        raise ValueError(
            f"model.scale_factor must be positive, "
            f"got {config.model.scale_factor}."
        )

    if config.input.resize_width is not None and config.input.resize_width <= 0:
        raise ValueError(
            f"input.resize_width must be positive or None, "
            f"got {config.input.resize_width}."
        )

    if config.input.max_read_failures < 1:
        raise ValueError(
            f"input.max_read_failures must be at least 1, "
            f"got {config.input.max_read_failures}."
        )


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------

def _parse_tuple(value, expected_len: int, cast_type=float):
    """Convert a list from YAML into a tuple of the expected type and length."""
    if isinstance(value, (list, tuple)):
        if len(value) != expected_len:
            raise ValueError(
                f"Expected {expected_len} values, got {len(value)}: {value}"
            )
        return tuple(cast_type(v) for v in value)
    return value


def _parse_bool(value) -> bool:
    """Accept real booleans from YAML and strings from the environment."""
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"Expected a boolean value, got '{value}'.")
    return bool(value)


def _parse_optional_path(value) -> Optional[str]:
    if value is None or str(value).strip() == "":
        return None
    return str(value)


def _build_model_config(raw: dict) -> ModelConfig:
    """Build ModelConfig from a raw YAML dict."""
    kwargs = {}
    if "config_path" in raw:
        kwargs["config_path"] = str(raw["config_path"])
    if "weights_path" in raw:
        kwargs["weights_path"] = str(raw["weights_path"])
    if "class_names_path" in raw:
        kwargs["class_names_path"] = _parse_optional_path(raw["class_names_path"])
    if "backend" in raw:
        kwargs["backend"] = str(raw["backend"]).lower()
    if "input_size" in raw:
        kwargs["input_size"] = _parse_tuple(raw["input_size"], 2, int)
    if "scale_factor" in raw:
        kwargs["scale_factor"] = float(raw["scale_factor"])
    if "swap_rb" in raw:
        kwargs["swap_rb"] = _parse_bool(raw["swap_rb"])
    return ModelConfig(**kwargs)


def _build_detection_config(raw: dict) -> DetectionConfig:
    """Build DetectionConfig from a raw YAML dict."""
    kwargs = {}
    if "confidence_threshold" in raw:
        kwargs["confidence_threshold"] = float(raw["confidence_threshold"])
    if "nms_threshold" in raw:
        kwargs["nms_threshold"] = float(raw["nms_threshold"])
    if "class_agnostic_nms" in raw:
        kwargs["class_agnostic_nms"] = _parse_bool(raw["class_agnostic_nms"])
    return DetectionConfig(**kwargs)


def _build_input_config(raw: dict) -> InputConfig:
    """Build InputConfig from a raw YAML dict."""
    kwargs = {}
    if "source" in raw:
        kwargs["source"] = str(raw["source"])
    if "resize_width" in raw:
        val = raw["resize_width"]
        kwargs["resize_width"] = int(val) if val is not None else None
    if "max_read_failures" in raw:
        kwargs["max_read_failures"] = int(raw["max_read_failures"])
    return InputConfig(**kwargs)


def _build_output_config(raw: dict) -> OutputConfig:
    """Build OutputConfig from a raw YAML dict."""
    kwargs = {}
    if "mode" in raw:
        kwargs["mode"] = str(raw["mode"]).lower()
    if "save_path" in raw:
        kwargs["save_path"] = str(raw["save_path"])
    if "window_name" in raw:
        kwargs["window_name"] = str(raw["window_name"])
    return OutputConfig(**kwargs)


def _build_visualization_config(raw: dict) -> VisualizationConfig:
    """Build VisualizationConfig from a raw YAML dict."""
    kwargs = {}
    if "box_color" in raw:
        kwargs["box_color"] = _parse_tuple(raw["box_color"], 3, int)
    if "thickness" in raw:
        kwargs["thickness"] = int(raw["thickness"])
    if "show_labels" in raw:
        kwargs["show_labels"] = _parse_bool(raw["show_labels"])
    return VisualizationConfig(**kwargs)


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------

_ENV_PREFIX = "YOLO_DETECT_"


def _apply_env_overrides(raw: dict) -> dict:
    """Apply environment variable overrides to the raw config dict.

    Environment variables follow the pattern:
        YOLO_DETECT_MODEL_BACKEND=cuda
        YOLO_DETECT_DETECTION_CONFIDENCE_THRESHOLD=0.7
    """
    env_map = {
        f"{_ENV_PREFIX}MODEL_BACKEND": ("model", "backend"),
        f"{_ENV_PREFIX}MODEL_CONFIG_PATH": ("model", "config_path"),
        f"{_ENV_PREFIX}MODEL_WEIGHTS_PATH": ("model", "weights_path"),
        f"{_ENV_PREFIX}MODEL_CLASS_NAMES_PATH": ("model", "class_names_path"),
        f"{_ENV_PREFIX}DETECTION_CONFIDENCE_THRESHOLD": ("detection", "confidence_threshold"),
        f"{_ENV_PREFIX}DETECTION_NMS_THRESHOLD": ("detection", "nms_threshold"),
        f"{_ENV_PREFIX}DETECTION_CLASS_AGNOSTIC_NMS": ("detection", "class_agnostic_nms"),
        f"{_ENV_PREFIX}INPUT_SOURCE": ("input", "source"),
        f"{_ENV_PREFIX}INPUT_RESIZE_WIDTH": ("input", "resize_width"),
        f"{_ENV_PREFIX}OUTPUT_MODE": ("output", "mode"),
        f"{_ENV_PREFIX}OUTPUT_SAVE_PATH": ("output", "save_path"),
    }

    for env_var, (section, key) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            raw.setdefault(section, {})[key] = value
            logger.debug("Config override from env: %s=%s", env_var, value)

    return raw


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------

def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load and validate application configuration.

    Precedence (highest → lowest):
        Environment variables > YAML file > Hard-coded defaults

    Args:
        config_path: Path to a YAML configuration file. If None,
                     the system runs entirely on defaults.

    Returns:
        A validated, frozen AppConfig instance.

    Raises:
        FileNotFoundError: If config_path is provided but does not exist.
        ValueError: If any configuration value is invalid.
        yaml.YAMLError: If the YAML file is malformed.
    """
    raw: dict = {}

    # --- Layer 1: YAML file ---
    if config_path is not None:
        resolved = resolve_path(config_path)

        if not resolved.is_file():
            raise FileNotFoundError(
                f"Configuration file not found: {resolved}. "
                f"Provide a valid path or omit to use defaults."
            )

        logger.info("Loading config from: %s", resolved)
        with open(resolved, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        if not isinstance(raw, dict):
            raise ValueError(
                f"Configuration file must contain a mapping at the top level: {resolved}"
            )

    # --- Layer 2: Environment variable overrides ---
    raw = _apply_env_overrides(raw)

    # --- Build typed configs ---
    config = AppConfig(
        model=_build_model_config(raw.get("model") or {}),
        detection=_build_detection_config(raw.get("detection") or {}),
        input=_build_input_config(raw.get("input") or {}),
        output=_build_output_config(raw.get("output") or {}),
        visualization=_build_visualization_config(raw.get("visualization") or {}),
    )

    # --- Validate ---
    _validate(config)

    logger.debug("Configuration loaded: %s", config)
    return config


def apply_overrides(config: AppConfig, overrides: Dict[str, Dict[str, Any]]) -> AppConfig:
    """Return a new config with per-section overrides applied, then validate it.

    Args:
        config: Base configuration.
        overrides: Mapping of section name → {field: value}. None values
                   are ignored, so unset CLI arguments can be passed through.

    Raises:
        ValueError: If the resulting configuration is invalid.
    """
    sections = {}
    for section, values in overrides.items():
        changes = {k: v for k, v in values.items() if v is not None}
        if changes:
            sections[section] = dataclasses.replace(getattr(config, section), **changes)
            logger.debug("Config override from CLI: %s=%s", section, changes)

    merged = dataclasses.replace(config, **sections)
    _validate(merged)
    return merged
