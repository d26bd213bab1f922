"""Image preparation: load, pad, tile, resize and quantize with Pillow.

Produces the pixel grids consumed by the decomposer:
    1. Load the source image as RGB, optionally flipped vertically
       (displays draw with a bottom-left origin)
    2. Pad with background color, centered, to the cluster aspect ratio
    3. Split into ``columns x rows`` tiles, row-major
    4. Per tile: resize to ``resolution x resolution`` (aspect ignored),
       quantize to ``colors`` with the chosen dithering, return an RGBA
       ``uint8`` array shaped ``(H, W, 4)``

Public API:
    load_image(path, flip_vertical=True) → Image
    pad_to_aspect(image, columns, rows, background) → Image
    split_tiles(image, columns, rows) → list[Image]
    quantize_tile(tile, resolution, colors, dither) → np.ndarray
    prepare_tile(tile, resolution, colors, dither, debug_prefix=None) → np.ndarray
"""

from __future__ import annotations

import logging
import math
import tempfile
import uuid
from pathlib import Path

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from display_compiler.utils import fs

logger = logging.getLogger(__name__)

DITHER_MODES = {
    "none": Image.Dither.NONE,
    "floyd-steinberg": Image.Dither.FLOYDSTEINBERG,
}
"""Dither methods accepted by :func:`quantize_tile`.

Pillow palette quantization only implements Floyd-Steinberg error
diffusion, so ordered and Riemersma dithering are not offered.
"""


class ImagingError(Exception):
    """Raised when an input image cannot be read or prepared."""

    pass


def load_image(path: str | Path, flip_vertical: bool = True) -> Image.Image:
    """Open an image file as RGB.

    Raises
    ------
    ImagingError
        If the file is missing or not a readable image.
    """
    path = Path(path)
    try:
        with Image.open(path) as img:
            rgb = img.convert("RGB")
    except FileNotFoundError as e:
        raise ImagingError(f"Input image not found: {path}") from e
    except (UnidentifiedImageError, OSError) as e:
        raise ImagingError(f"Cannot read image {path}: {e}") from e

    if flip_vertical:
        rgb = ImageOps.flip(rgb)
    logger.info("Loaded %s (%dx%d)", path, rgb.width, rgb.height)
    return rgb


def pad_to_aspect(
    image: Image.Image,
    columns: int,
    rows: int,
    background: tuple[int, int, int] = (0, 0, 0),
) -> Image.Image:
    """Pad *image*, centered, to the smallest box with aspect ``columns / rows``.

    Too wide pads vertically, too tall pads horizontally.  The sizes are
    computed with integer arithmetic so exact ratios are not disturbed by
    float rounding.
    """
    w, h = image.size
    new_w, new_h = w, h
    # w / h > columns / rows  <=>  w * rows > h * columns
    if w * rows > h * columns:
        new_h = -(-w * rows // columns)
    elif w * rows < h * columns:
        new_w = -(-h * columns // rows)

    if (new_w, new_h) == (w, h):
        return image.copy()

    canvas = Image.new("RGB", (new_w, new_h), background)
    canvas.paste(image.convert("RGB"), ((new_w - w) // 2, (new_h - h) // 2))
    logger.debug("Padded %dx%d -> %dx%d", w, h, new_w, new_h)
    return canvas


def split_tiles(image: Image.Image, columns: int, rows: int) -> list[Image.Image]:
    """Crop *image* into ``columns * rows`` tiles, row-major.

    Tile size is the ceiling of the image size over the count; edge tiles
    may be smaller.  Images smaller than the grid are first enlarged
    (nearest neighbour) so that no tile is empty.
    """
    w, h = image.size
    if w < columns or h < rows:
        image = image.resize(
            (max(w, columns), max(h, rows)), Image.Resampling.NEAREST,
        )
        w, h = image.size

    tile_w = math.ceil(w / columns)
    tile_h = math.ceil(h / rows)

    tiles = []
    for row in range(rows):
        for col in range(columns):
            left = min(col * tile_w, w - 1)
            top = min(row * tile_h, h - 1)
            right = max(min(left + tile_w, w), left + 1)
            bottom = max(min(top + tile_h, h), top + 1)
            tiles.append(image.crop((left, top, right, bottom)))
    return tiles


def quantize_tile(
    tile: Image.Image,
    resolution: int,
    colors: int,
    dither: str = "none",
) -> np.ndarray:
    """Resize and color-reduce one tile.

    Parameters
    ----------
    tile : Image.Image
        Source tile.
    resolution : int
        Output edge length; aspect ratio is ignored.
    colors : int
        Maximum palette size (2..256).
    dither : str
        ``"none"`` or ``"floyd-steinberg"``.

    Returns
    -------
    np.ndarray
        ``uint8`` RGBA array shaped ``(resolution, resolution, 4)``.
    """
    if dither not in DITHER_MODES:
        raise ImagingError(
            f"Unknown dither method '{dither}'. Use one of {list(DITHER_MODES)}"
        )
    resized = tile.convert("RGB").resize(
        (resolution, resolution), Image.Resampling.LANCZOS,
    )
    quantized = resized.quantize(
        colors=colors,
        method=Image.Quantize.MEDIANCUT,
        dither=DITHER_MODES[dither],
    )
    return np.asarray(quantized.convert("RGBA"), dtype=np.uint8)


def prepare_tile(
    tile: Image.Image,
    resolution: int,
    colors: int,
    dither: str = "none",
    debug_prefix: str | None = None,
) -> np.ndarray:
    """:func:`quantize_tile`, optionally dumping the result for inspection.

    With *debug_prefix* set, the prepared tile is written as PNG to the
    system temp directory and the path is logged.
    """
    pixels = quantize_tile(tile, resolution, colors, dither)
    if debug_prefix is not None:
        out = Path(tempfile.gettempdir()) / f"{debug_prefix}_{uuid.uuid4().hex}.png"
        fs.atomic_save_image(pixels, out)
        logger.info("Wrote prepared tile %s to %s", debug_prefix, out)
    return pixels
