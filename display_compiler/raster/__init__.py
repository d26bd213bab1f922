"""
Raster decomposition module.

Turns a quantized pixel grid into a color-sorted list of rectangles that
exactly tile the grid.
"""

from display_compiler.raster.decomposer import (
    color_keys,
    coverage,
    decompose,
    decompose_sorted,
    sort_by_color,
    used_colors,
)

__all__ = [
    "color_keys",
    "coverage",
    "decompose",
    "decompose_sorted",
    "sort_by_color",
    "used_colors",
]
