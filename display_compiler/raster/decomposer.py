"""Greedy rectangle decomposition of a quantized pixel grid.

The scan is row-major.  From every unclaimed cell it grows a run to the
right over unclaimed cells of the same color, then grows that run
downward one row at a time while the *whole* run width matches and is
unclaimed.  The block is claimed and emitted as one rectangle.

The result is the unique output of this scan, not a minimal cover: a
checkerboard yields one rectangle per cell.  Every cell is claimed exactly
once, so the rectangles partition the grid.

Input arrays are ``uint8`` shaped ``(H, W)`` or ``(H, W, C)``.  Channel
handling follows :meth:`Color.from_components`.
"""

from __future__ import annotations

import logging

import numpy as np

from display_compiler.program_ir.colors import Color, Rectangle

logger = logging.getLogger(__name__)


def color_keys(pixels: np.ndarray) -> np.ndarray:
    """Map a pixel grid to a ``(H, W)`` array of packed color keys.

    Parameters
    ----------
    pixels : np.ndarray
        ``uint8`` array shaped ``(H, W)`` or ``(H, W, C)``.

    Returns
    -------
    np.ndarray
        ``uint32`` keys, identical to ``Color.from_components(...).sort_key``
        for every pixel.
    """
    if pixels.ndim == 2:
        pixels = pixels[:, :, np.newaxis]
    if pixels.ndim != 3:
        raise ValueError(f"Pixel grid must be 2-D or 3-D, got shape {pixels.shape}")

    h, w, channels = pixels.shape
    px = pixels.astype(np.uint32)
    alpha = np.uint32(255)

    if channels in (1, 2):
        g = px[:, :, 0]
        return (g << 24) | (g << 16) | (g << 8) | alpha
    if channels in (3, 4):
        return (px[:, :, 0] << 24) | (px[:, :, 1] << 16) | (px[:, :, 2] << 8) | alpha
    return np.full((h, w), 0xFFFFFFFF, dtype=np.uint32)


def decompose(pixels: np.ndarray) -> list[Rectangle]:
    """Decompose a pixel grid into same-color rectangles (scan order).

    Parameters
    ----------
    pixels : np.ndarray
        Quantized pixel grid, ``(H, W)`` or ``(H, W, C)``.

    Returns
    -------
    list[Rectangle]
        Rectangles in the order the scan found them.  Use
        :func:`sort_by_color` (or :func:`decompose_sorted`) before
        emission.
    """
    keys = color_keys(pixels).tolist()
    height = len(keys)
    width = len(keys[0]) if height else 0
    claimed = [[False] * width for _ in range(height)]

    colors: dict[int, Color] = {}
    rects: list[Rectangle] = []

    for y in range(height):
        row = keys[y]
        row_claimed = claimed[y]
        for x in range(width):
            if row_claimed[x]:
                continue
            key = row[x]

            run_w = 1
            while (
                x + run_w < width
                and not row_claimed[x + run_w]
                and row[x + run_w] == key
            ):
                run_w += 1

            run_h = 1
            while y + run_h < height:
                next_row = keys[y + run_h]
                next_claimed = claimed[y + run_h]
                if any(
                    next_claimed[xx] or next_row[xx] != key
                    for xx in range(x, x + run_w)
                ):
                    break
                run_h += 1

            for yy in range(y, y + run_h):
                claimed_row = claimed[yy]
                for xx in range(x, x + run_w):
                    claimed_row[xx] = True

            color = colors.get(key)
            if color is None:
                color = colors[key] = Color.from_key(key)
            rects.append(Rectangle(x, y, run_w, run_h, color))

    logger.debug(
        "Decomposed %dx%d grid into %d rectangles (%d colors)",
        width, height, len(rects), len(colors),
    )
    return rects


def sort_by_color(rects: list[Rectangle]) -> list[Rectangle]:
    """Stable sort by color key so equal colors are contiguous."""
    return sorted(rects, key=lambda r: r.color.sort_key)


def decompose_sorted(pixels: np.ndarray) -> list[Rectangle]:
    """:func:`decompose` followed by :func:`sort_by_color`."""
    return sort_by_color(decompose(pixels))


def coverage(rects: list[Rectangle], width: int, height: int) -> np.ndarray:
    """Count how many rectangles cover each cell of a ``width x height`` grid.

    An exact partition yields an all-ones ``(height, width)`` array.
    """
    counts = np.zeros((height, width), dtype=np.int32)
    for r in rects:
        counts[r.y:r.y + r.height, r.x:r.x + r.width] += 1
    return counts


def used_colors(rects: list[Rectangle]) -> list[Color]:
    """Distinct colors in first-seen order."""
    seen: dict[Color, None] = {}
    for r in rects:
        seen.setdefault(r.color, None)
    return list(seen)
