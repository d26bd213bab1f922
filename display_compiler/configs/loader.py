"""Configuration loader for display cluster builds.

Loads and validates ``defaults.yaml`` into typed, frozen dataclasses.
Block names, display geometry, the instruction cap and the flush interval
all come from the config -- nothing is hardcoded in the emitter or the
composer.

Usage::

    from display_compiler.configs.loader import load_config
    cfg = load_config()                        # shipped defaults
    cfg = load_config("/custom/defaults.yaml") # explicit path
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from display_compiler.utils.fs import load_yaml

logger = logging.getLogger(__name__)

MIN_INSTRUCTION_CAP = 4


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DisplaySpec:
    """Display block: footprint, drawable resolution and link name."""

    block: str
    size: int
    resolution: int
    link: str


@dataclass(frozen=True)
class ProcessorSpec:
    """Processor block and program packing limits."""

    block: str
    instruction_cap: int
    flush_interval: int


@dataclass(frozen=True)
class ClusterGeometry:
    """Generic layout geometry on the occupancy grid."""

    origin: int
    padding: int
    use_fixed_layouts: bool


@dataclass(frozen=True)
class ImageDefaults:
    """Image preparation defaults."""

    flip_vertical: bool
    background: tuple[int, int, int]


@dataclass(frozen=True)
class DisplayConfig:
    """Complete build configuration loaded from ``defaults.yaml``."""

    display: DisplaySpec
    processor: ProcessorSpec
    cluster: ClusterGeometry
    image: ImageDefaults


# ---------------------------------------------------------------------------
# Internal parsing helpers
# ---------------------------------------------------------------------------


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name)
    if not isinstance(section, dict):
        raise ConfigError(f"Missing or invalid '{name}' section")
    return section


def _parse_display(data: dict[str, Any]) -> DisplaySpec:
    """Parse the ``display`` section."""
    return DisplaySpec(
        block=str(data.get("block", "large-logic-display")),
        size=int(data["size"]),
        resolution=int(data["resolution"]),
        link=str(data.get("link", "display1")),
    )


def _parse_processor(data: dict[str, Any]) -> ProcessorSpec:
    """Parse the ``processor`` section."""
    return ProcessorSpec(
        block=str(data.get("block", "micro-processor")),
        instruction_cap=int(data["instruction_cap"]),
        flush_interval=int(data.get("flush_interval", 100)),
    )


def _parse_cluster(data: dict[str, Any]) -> ClusterGeometry:
    """Parse the ``cluster`` section."""
    return ClusterGeometry(
        origin=int(data.get("origin", 3)),
        padding=int(data.get("padding", 8)),
        use_fixed_layouts=bool(data.get("use_fixed_layouts", True)),
    )


def _parse_image(data: dict[str, Any]) -> ImageDefaults:
    """Parse the ``image`` section."""
    bg = data.get("background", [0, 0, 0])
    if not isinstance(bg, (list, tuple)) or len(bg) != 3:
        raise ConfigError(
            f"image.background must be a 3-element list, got {bg!r}"
        )
    return ImageDefaults(
        flip_vertical=bool(data.get("flip_vertical", True)),
        background=(int(bg[0]), int(bg[1]), int(bg[2])),
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_config(cfg: DisplayConfig) -> None:
    """Validate value ranges and cross-field consistency.

    Raises
    ------
    ConfigError
        On any invalid combination.
    """
    if cfg.display.size < 1:
        raise ConfigError(f"display.size must be >= 1, got {cfg.display.size}")
    if cfg.display.resolution < 1:
        raise ConfigError(
            f"display.resolution must be >= 1, got {cfg.display.resolution}"
        )
    if not cfg.display.link:
        raise ConfigError("display.link must be non-empty")

    p = cfg.processor
    if p.instruction_cap < MIN_INSTRUCTION_CAP:
        raise ConfigError(
            f"processor.instruction_cap must be >= {MIN_INSTRUCTION_CAP}, "
            f"got {p.instruction_cap}"
        )
    if p.flush_interval < 1:
        raise ConfigError(
            f"processor.flush_interval must be >= 1, got {p.flush_interval}"
        )
    if p.flush_interval >= p.instruction_cap:
        logger.warning(
            "flush_interval (%d) >= instruction_cap (%d): forced commits "
            "will never trigger",
            p.flush_interval,
            p.instruction_cap,
        )

    c = cfg.cluster
    if c.origin < 0 or c.padding < 0:
        raise ConfigError(
            f"cluster.origin and cluster.padding must be >= 0, "
            f"got origin={c.origin}, padding={c.padding}"
        )
    if c.origin > c.padding:
        raise ConfigError(
            f"cluster.origin ({c.origin}) pushes displays past the canvas "
            f"padding ({c.padding})"
        )

    for ch in cfg.image.background:
        if not 0 <= ch <= 255:
            raise ConfigError(
                f"image.background channels must be in [0, 255], "
                f"got {cfg.image.background}"
            )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(path: str | Path | None = None) -> DisplayConfig:
    """Load and validate the build configuration.

    Parameters
    ----------
    path : str | Path | None
        Path to a defaults YAML.  ``None`` loads the file shipped with the
        package.

    Returns
    -------
    DisplayConfig
        Validated, frozen configuration.

    Raises
    ------
    ConfigError
        If a section is missing or a value is out of range.
    FileNotFoundError
        If *path* does not exist.
    """
    if path is None:
        path = Path(__file__).parent / "defaults.yaml"
    path = Path(path)

    logger.info("Loading configuration from %s", path)
    data: dict[str, Any] = load_yaml(path)
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {path}")

    try:
        cfg = DisplayConfig(
            display=_parse_display(_section(data, "display")),
            processor=_parse_processor(_section(data, "processor")),
            cluster=_parse_cluster(_section(data, "cluster")),
            image=_parse_image(data.get("image") or {}),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    _validate_config(cfg)
    logger.debug("Configuration loaded successfully")
    return cfg
