"""Per-run build options, validated with pydantic.

Options are checked up front so the core can assume in-range values:
    - Image resolution: 1..176 per tile (display resolution limit)
    - Color count: 2..256 per tile
    - Dithering: ``none`` or ``floyd-steinberg``
    - Grid shape: 1..16 columns and rows
    - Instruction cap >= 4, flush interval >= 1 (when overriding defaults)

Resolutions, color counts and dither methods are lists applied cyclically
to tiles: tile ``i`` uses ``values[i % len(values)]``.

Usage:
    from display_compiler.configs.options import BuildOptions, load_build_options

    opts = BuildOptions(columns=2, rows=2, resolutions=[176, 88])
    opts = load_build_options("build.yaml")
"""

from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_RESOLUTION = 176
MIN_COLORS = 2
MAX_COLORS = 256
DITHER_METHODS = ("none", "floyd-steinberg")
_DITHER_ALIASES = {
    "no": "none",
    "floydsteinberg": "floyd-steinberg",
    "floyd_steinberg": "floyd-steinberg",
}


class BuildOptions(BaseModel):
    """Validated options for one cluster build."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field("Unnamed", min_length=1, description="Schematic name")
    columns: int = Field(1, ge=1, le=16, description="Displays per row")
    rows: int = Field(1, ge=1, le=16, description="Display rows")
    resolutions: List[int] = Field(
        default_factory=lambda: [MAX_RESOLUTION], min_length=1,
        description="Tile resolution(s), cyclic per tile",
    )
    color_counts: List[int] = Field(
        default_factory=lambda: [32], min_length=1,
        description="Palette size(s), cyclic per tile",
    )
    dither_methods: List[str] = Field(
        default_factory=lambda: ["none"], min_length=1,
        description="Dither method(s), cyclic per tile",
    )
    instruction_cap: Optional[int] = Field(None, ge=4, description="Override processor cap")
    flush_interval: Optional[int] = Field(None, ge=1, description="Override forced-commit interval")
    use_fixed_layouts: Optional[bool] = Field(None, description="Override fixed-layout usage")
    debug: bool = Field(False, description="Dump prepared tiles to the temp directory")

    @field_validator('resolutions')
    @classmethod
    def validate_resolutions(cls, v: List[int]) -> List[int]:
        for res in v:
            if not 1 <= res <= MAX_RESOLUTION:
                raise ValueError(
                    f"Image resolution must be in [1, {MAX_RESOLUTION}], got {res}"
                )
        return v

    @field_validator('color_counts')
    @classmethod
    def validate_color_counts(cls, v: List[int]) -> List[int]:
        for n in v:
            if not MIN_COLORS <= n <= MAX_COLORS:
                raise ValueError(
                    f"Color amount must be in [{MIN_COLORS}, {MAX_COLORS}], got {n}"
                )
        return v

    @field_validator('dither_methods')
    @classmethod
    def validate_dither_methods(cls, v: List[str]) -> List[str]:
        out = []
        for raw in v:
            method = raw.strip().lower()
            method = _DITHER_ALIASES.get(method, method)
            if method not in DITHER_METHODS:
                raise ValueError(
                    f"Dither method must be one of {DITHER_METHODS}, got '{raw}'"
                )
            out.append(method)
        return out

    @property
    def layout_name(self) -> str:
        return f"{self.columns}x{self.rows}"

    def resolution_for(self, tile_index: int) -> int:
        return self.resolutions[tile_index % len(self.resolutions)]

    def color_count_for(self, tile_index: int) -> int:
        return self.color_counts[tile_index % len(self.color_counts)]

    def dither_for(self, tile_index: int) -> str:
        return self.dither_methods[tile_index % len(self.dither_methods)]


def parse_layout(text: str) -> tuple[int, int]:
    """Parse ``"CxR"`` (columns x rows), e.g. ``"2x1"``."""
    parts = text.lower().split("x")
    if len(parts) != 2:
        raise ValueError(f"Layout must look like 'CxR' (e.g. 2x2), got '{text}'")
    try:
        columns, rows = int(parts[0]), int(parts[1])
    except ValueError as e:
        raise ValueError(f"Layout must look like 'CxR' (e.g. 2x2), got '{text}'") from e
    return columns, rows


def load_build_options(path: Union[str, Path]) -> BuildOptions:
    """Load and validate build options from YAML.

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails (with actionable error message)
    """
    from display_compiler.utils import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Build options not found: {path}")

    data = fs.load_yaml(path) or {}
    try:
        return BuildOptions(**data)
    except Exception as e:
        raise ValueError(f"Build options validation failed at {path}: {e}") from e
