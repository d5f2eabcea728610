"""
Configuration management for the face cropping tool.

Provides a layered configuration system with the following precedence
(highest to lowest):

    CLI arguments > Environment variables > YAML config file > Defaults

Design constraints:
    - The tool MUST run with zero configuration apart from input paths.
    - Missing or invalid values fail early and loudly.
    - The resulting AppConfig is frozen; worker threads only read it.

Non-goals:
    - No dynamic reloading.
    - No per-image configuration.
"""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

Size = Tuple[int, int]


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DetectorConfig:
    """Face detector configuration.

    Attributes:
        mode: Detector backend, 'haar' (OpenCV cascade) or 'dlib'
              (HOG frontal-face detector).
        cascade_path: Cascade XML file. Relative names are looked up in the
                      working directory, then in OpenCV's bundled cascades.
        scale_factor: Image pyramid step for the cascade (must be > 1.0).
        min_neighbors: Neighbor rectangles required to keep a candidate.
        min_size: Smallest accepted face as (width, height), or None.
        max_size: Largest accepted face as (width, height), or None.
        upsample: Number of times dlib upsamples the image before detecting.
    """

    mode: str = "haar"
    cascade_path: str = "haarcascade_frontalface_default.xml"
    scale_factor: float = 1.1
    min_neighbors: int = 3
    min_size: Optional[Size] = None
    max_size: Optional[Size] = None
    upsample: int = 1


@dataclass(frozen=True)
class CropConfig:
    """Bounding-box adjustment and thumbnail geometry.

    Attributes:
        adjust: Adjustment policy, one of 'none', 'expand', 'square'.
        padding: Margin added on each side as a fraction of the face size.
                 Ignored by the 'none' policy.
        size: Thumbnail dimensions (width, height).
    """

    adjust: str = "none"
    padding: float = 0.25
    size: Size = (512, 512)


@dataclass(frozen=True)
class OutputConfig:
    """Output behavior configuration.

    Attributes:
        directory: Directory where thumbnails are written.
        image_format: Thumbnail file format, 'jpg' or 'png'.
        jpeg_quality: JPEG quality (1-100).
        manifest: Optional crop manifest, 'none', 'json' or 'csv'.
    """

    directory: str = "faces"
    image_format: str = "jpg"
    jpeg_quality: int = 95
    manifest: str = "none"


@dataclass(frozen=True)
class RunConfig:
    """Execution parameters.

    Attributes:
        jobs: Maximum number of images processed concurrently.
        verbose: Enable debug logging.
    """

    jobs: int = field(default_factory=lambda: os.cpu_count() or 1)
    verbose: bool = False


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration.

    Aggregates all sub-configurations into a single, frozen object.
    """

    detector: DetectorConfig = field(default_factory=DetectorConfig)
    crop: CropConfig = field(default_factory=CropConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    run: RunConfig = field(default_factory=RunConfig)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

VALID_MODES = ("haar", "dlib")
VALID_ADJUST_POLICIES = ("none", "expand", "square")
VALID_IMAGE_FORMATS = ("jpg", "png")
VALID_MANIFESTS = ("none", "json", "csv")


def _validate_size(name: str, value: Optional[Size]) -> None:
    if value is None:
        return
    if len(value) != 2:
        raise ValueError(f"{name} must be a (width, height) pair, got {value}.")
    if any(d <= 0 for d in value):
        raise ValueError(f"{name} dimensions must be positive, got {value}.")


def _validate(config: AppConfig) -> None:
    """Validate configuration values. Raises ValueError on invalid state."""
    det = config.detector

    if det.mode not in VALID_MODES:
        raise ValueError(
            f"Invalid detector.mode: '{det.mode}'. Must be one of {VALID_MODES}."
        )

    if det.scale_factor <= 1.0:
        raise ValueError(
            f"detector.scale_factor must be greater than 1.0, got {det.scale_factor}."
        )

    if det.min_neighbors < 0:
        raise ValueError(
            f"detector.min_neighbors must be non-negative, got {det.min_neighbors}."
        )

    if det.upsample < 0:
        raise ValueError(
            f"detector.upsample must be non-negative, got {det.upsample}."
        )

    _validate_size("detector.min_size", det.min_size)
    _validate_size("detector.max_size", det.max_size)

    if det.min_size is not None and det.max_size is not None:
        if det.min_size[0] > det.max_size[0] or det.min_size[1] > det.max_size[1]:
            raise ValueError(
                f"detector.min_size {det.min_size} exceeds "
                f"detector.max_size {det.max_size}."
            )

    if config.crop.adjust not in VALID_ADJUST_POLICIES:
        raise ValueError(
            f"Invalid crop.adjust: '{config.crop.adjust}'. "
            f"Must be one of {VALID_ADJUST_POLICIES}."
        )

    if config.crop.padding < 0:
        raise ValueError(
            f"crop.padding must be non-negative, got {config.crop.padding}."
        )

    _validate_size("crop.size", config.crop.size)

    if config.output.image_format not in VALID_IMAGE_FORMATS:
        raise ValueError(
            f"Invalid output.image_format: '{config.output.image_format}'. "
            f"Must be one of {VALID_IMAGE_FORMATS}."
        )

    if not (1 <= config.output.jpeg_quality <= 100):
        raise ValueError(
            f"output.jpeg_quality must be in [1, 100], "
            f"got {config.output.jpeg_quality}."
        )

    if config.output.manifest not in VALID_MANIFESTS:
        raise ValueError(
            f"Invalid output.manifest: '{config.output.manifest}'. "
            f"Must be one of {VALID_MANIFESTS}."
        )

    if not config.output.directory:
        raise ValueError("output.directory must not be empty.")

    if config.run.jobs < 1:
        raise ValueError(f"run.jobs must be at least 1, got {config.run.jobs}.")


# ---------------------------------------------------------------------------
# Value parsing
# ---------------------------------------------------------------------------

def parse_size(value) -> Size:
    """Parse a face or thumbnail size.

    Accepts an integer (square), a 'N' or 'WxH' string, or a two-item
    list/tuple as loaded from YAML.

    Raises:
        ValueError: If the value is malformed or not positive.
    """
    if isinstance(value, (list, tuple)):
        if len(value) != 2:
            raise ValueError(f"Expected 2 values, got {len(value)}: {value}")
        width, height = int(value[0]), int(value[1])
    elif isinstance(value, int):
        width = height = value
    else:
        text = str(value).strip().lower()
        try:
            if "x" in text:
                w_str, h_str = text.split("x", 1)
                width, height = int(w_str), int(h_str)
            else:
                width = height = int(text)
        except ValueError:
            raise ValueError(
                f"Invalid size '{value}'. Use N or WxH, e.g. 64 or 64x80."
            ) from None

    if width <= 0 or height <= 0:
        raise ValueError(f"Size dimensions must be positive, got '{value}'.")
    return width, height


def _parse_optional_size(value) -> Optional[Size]:
    if value is None or str(value).strip().lower() in ("", "none"):
        return None
    return parse_size(value)


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------

def _build_detector_config(raw: dict) -> DetectorConfig:
    """Build DetectorConfig from a raw YAML dict."""
    kwargs = {}
    if "mode" in raw:
        kwargs["mode"] = str(raw["mode"]).lower()
    if "cascade_path" in raw:
        kwargs["cascade_path"] = str(raw["cascade_path"])
    if "scale_factor" in raw:
        kwargs["scale_factor"] = float(raw["scale_factor"])
    if "min_neighbors" in raw:
        kwargs["min_neighbors"] = int(raw["min_neighbors"])
    if "min_size" in raw:
        kwargs["min_size"] = _parse_optional_size(raw["min_size"])
    if "max_size" in raw:
        kwargs["max_size"] = _parse_optional_size(raw["max_size"])
    if "upsample" in raw:
        kwargs["upsample"] = int(raw["upsample"])
    return DetectorConfig(**kwargs)


def _build_crop_config(raw: dict) -> CropConfig:
    """Build CropConfig from a raw YAML dict."""
    kwargs = {}
    if "adjust" in raw:
        kwargs["adjust"] = str(raw["adjust"]).lower()
    if "padding" in raw:
        kwargs["padding"] = float(raw["padding"])
    if "size" in raw:
        kwargs["size"] = parse_size(raw["size"])
    return CropConfig(**kwargs)


def _build_output_config(raw: dict) -> OutputConfig:
    """Build OutputConfig from a raw YAML dict."""
    kwargs = {}
    if "directory" in raw:
        kwargs["directory"] = str(raw["directory"])
    if "image_format" in raw:
        kwargs["image_format"] = str(raw["image_format"]).lower().lstrip(".")
    if "jpeg_quality" in raw:
        kwargs["jpeg_quality"] = int(raw["jpeg_quality"])
    if "manifest" in raw:
        kwargs["manifest"] = str(raw["manifest"]).lower()
    return OutputConfig(**kwargs)


def _build_run_config(raw: dict) -> RunConfig:
    """Build RunConfig from a raw YAML dict."""
    kwargs = {}
    if "jobs" in raw:
        kwargs["jobs"] = int(raw["jobs"])
    if "verbose" in raw:
        kwargs["verbose"] = _parse_bool(raw["verbose"])
    return RunConfig(**kwargs)


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------

_ENV_PREFIX = "FACECROP_"


def _apply_env_overrides(raw: dict) -> dict:
    """Apply environment variable overrides to the raw config dict.

    Environment variables follow the pattern:
        FACECROP_DETECTOR_MODE=dlib
        FACECROP_CROP_SIZE=256x256
    """
    env_map = {
        f"{_ENV_PREFIX}DETECTOR_MODE": ("detector", "mode"),
        f"{_ENV_PREFIX}DETECTOR_CASCADE_PATH": ("detector", "cascade_path"),
        f"{_ENV_PREFIX}DETECTOR_SCALE_FACTOR": ("detector", "scale_factor"),
        f"{_ENV_PREFIX}DETECTOR_MIN_NEIGHBORS": ("detector", "min_neighbors"),
        f"{_ENV_PREFIX}DETECTOR_MIN_SIZE": ("detector", "min_size"),
        f"{_ENV_PREFIX}DETECTOR_MAX_SIZE": ("detector", "max_size"),
        f"{_ENV_PREFIX}DETECTOR_UPSAMPLE": ("detector", "upsample"),
        f"{_ENV_PREFIX}CROP_ADJUST": ("crop", "adjust"),
        f"{_ENV_PREFIX}CROP_PADDING": ("crop", "padding"),
        f"{_ENV_PREFIX}CROP_SIZE": ("crop", "size"),
        f"{_ENV_PREFIX}OUTPUT_DIRECTORY": ("output", "directory"),
        f"{_ENV_PREFIX}OUTPUT_IMAGE_FORMAT": ("output", "image_format"),
        f"{_ENV_PREFIX}OUTPUT_JPEG_QUALITY": ("output", "jpeg_quality"),
        f"{_ENV_PREFIX}OUTPUT_MANIFEST": ("output", "manifest"),
        f"{_ENV_PREFIX}RUN_JOBS": ("run", "jobs"),
        f"{_ENV_PREFIX}RUN_VERBOSE": ("run", "verbose"),
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

    Precedence (highest to lowest):
        Environment variables > YAML file > Hard-coded defaults

    Args:
        config_path: Path to a YAML configuration file, relative paths
                     taken from the working directory. If None, the tool
                     runs on defaults.

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
        resolved = Path(config_path).expanduser()
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
                f"Configuration file {resolved} must contain a mapping, "
                f"got {type(raw).__name__}."
            )

    # --- Layer 2: Environment variable overrides ---
    raw = _apply_env_overrides(raw)

    # --- Build typed configs ---
    config = AppConfig(
        detector=_build_detector_config(raw.get("detector") or {}),
        crop=_build_crop_config(raw.get("crop") or {}),
        output=_build_output_config(raw.get("output") or {}),
        run=_build_run_config(raw.get("run") or {}),
    )

    _validate(config)

    logger.debug("Configuration loaded: %s", config)
    return config


def apply_overrides(config: AppConfig, **overrides) -> AppConfig:
    """Return a copy of config with command-line overrides applied.

    Keyword names are '<section>_<field>', e.g. detector_min_size=(64, 64)
    or run_jobs=4. A value of None means the option was not given.

    Raises:
        ValueError: If a key is unknown or the result is invalid.
    """
    sections = {
        "detector": config.detector,
        "crop": config.crop,
        "output": config.output,
        "run": config.run,
    }
    changes: dict = {name: {} for name in sections}

    for key, value in overrides.items():
        if value is None:
            continue
        section, _, name = key.partition("_")
        if section not in sections or not hasattr(sections[section], name):
            raise ValueError(f"Unknown configuration override: '{key}'.")
        changes[section][name] = value

    updated = AppConfig(**{
        name: replace(sections[name], **changes[name]) if changes[name] else sections[name]
        for name in sections
    })

    _validate(updated)
    return updated
