"""
Image preparation module.

Pillow-based loading, padding, tiling and palette reduction that turn an
input picture into per-tile pixel grids.
"""

from display_compiler.imaging.prepare import (
    DITHER_MODES,
    ImagingError,
    load_image,
    pad_to_aspect,
    prepare_tile,
    quantize_tile,
    split_tiles,
)

__all__ = [
    "DITHER_MODES",
    "ImagingError",
    "load_image",
    "pad_to_aspect",
    "prepare_tile",
    "quantize_tile",
    "split_tiles",
]
