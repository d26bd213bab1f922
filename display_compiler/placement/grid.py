"""Occupancy grid shared by every structure in one cluster build.

Cells are indexed ``[x, y]`` and are write-once: a cell becomes claimed
when a display footprint or a processor is placed on it and is never
released.  One grid belongs to one build; concurrent builds need
independent grids.
"""

from __future__ import annotations

import logging

import numpy as np

from display_compiler.program_ir.units import DrawingSurface

logger = logging.getLogger(__name__)


class PlacementError(Exception):
    """Raised when a placement would violate the occupancy grid."""

    pass


class OccupancyGrid:
    """Boolean claim map over the output canvas.

    Parameters
    ----------
    width, height : int
        Canvas size in grid cells.  Both must be positive.
    """

    def __init__(self, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise PlacementError(
                f"Occupancy grid must be at least 1x1, got {width}x{height}"
            )
        self._cells = np.zeros((width, height), dtype=bool)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self._cells.shape[0]

    @property
    def height(self) -> int:
        return self._cells.shape[1]

    @property
    def shape(self) -> tuple[int, int]:
        return (self.width, self.height)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_claimed(self, x: int, y: int) -> bool:
        if not self.in_bounds(x, y):
            raise PlacementError(f"Cell ({x}, {y}) outside grid {self.shape}")
        return bool(self._cells[x, y])

    def claimed_count(self) -> int:
        return int(self._cells.sum())

    def free_count(self) -> int:
        return self._cells.size - self.claimed_count()

    def unclaimed_centroid(self) -> tuple[float, float] | None:
        """Mean ``(x, y)`` of all unclaimed cells, or ``None`` if full."""
        xs, ys = np.nonzero(~self._cells)
        if xs.size == 0:
            return None
        return (float(xs.mean()), float(ys.mean()))

    def to_array(self) -> np.ndarray:
        """Read-only copy of the claim map, indexed ``[x, y]``."""
        out = self._cells.copy()
        out.flags.writeable = False
        return out

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def claim(self, x: int, y: int) -> None:
        """Claim one cell.

        Raises
        ------
        PlacementError
            If the cell is outside the grid or already claimed.
        """
        if not self.in_bounds(x, y):
            raise PlacementError(f"Cannot claim ({x}, {y}): outside grid {self.shape}")
        if self._cells[x, y]:
            raise PlacementError(f"Cannot claim ({x}, {y}): already claimed")
        self._cells[x, y] = True

    def claim_footprint(self, surface: DrawingSurface) -> int:
        """Claim every in-bounds cell of a surface footprint.

        Cells falling outside the canvas are skipped.  Returns the number
        of cells claimed.

        Raises
        ------
        PlacementError
            If the footprint overlaps an already claimed cell.
        """
        claimed = 0
        for x, y in surface.footprint():
            if not self.in_bounds(x, y):
                continue
            if self._cells[x, y]:
                raise PlacementError(
                    f"Surface '{surface.surface_id}' footprint overlaps "
                    f"claimed cell ({x}, {y})"
                )
            self._cells[x, y] = True
            claimed += 1
        logger.debug(
            "Claimed %d footprint cells for surface %s at (%d, %d)",
            claimed, surface.surface_id, surface.x, surface.y,
        )
        return claimed

    def __repr__(self) -> str:
        return (
            f"OccupancyGrid({self.width}x{self.height}, "
            f"claimed={self.claimed_count()})"
        )
