"""Build configuration loading and per-run option validation."""

from display_compiler.configs.loader import (
    ClusterGeometry,
    ConfigError,
    DisplayConfig,
    DisplaySpec,
    ImageDefaults,
    ProcessorSpec,
    load_config,
)
from display_compiler.configs.options import (
    BuildOptions,
    load_build_options,
    parse_layout,
)

__all__ = [
    "BuildOptions",
    "ClusterGeometry",
    "ConfigError",
    "DisplayConfig",
    "DisplaySpec",
    "ImageDefaults",
    "ProcessorSpec",
    "load_build_options",
    "load_config",
    "parse_layout",
]
