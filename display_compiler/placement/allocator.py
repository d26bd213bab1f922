"""Processor placement on the shared occupancy grid.

Two strategies share one interface, ``allocate(surface)``, which claims a
cell and returns it, or returns ``None`` (not found) when no cell can be
handed out:

``BfsAllocator``
    Nearest unclaimed cell to the surface's root by breadth-first search.
    Neighbors are explored in the fixed order +x, -x, +y, -y, so ties
    between equally distant cells always resolve the same way.

``FixedTableAllocator``
    Hands out coordinates from a literal, pre-validated list per surface.
    Used for the small hand-placed layouts in
    :mod:`display_compiler.placement.layouts`.

Both claim through the grid, so no coordinate is returned twice within one
build.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Mapping, Protocol, Sequence

import numpy as np

from display_compiler.placement.grid import OccupancyGrid, PlacementError
from display_compiler.program_ir.units import DrawingSurface

logger = logging.getLogger(__name__)

NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))
"""Exploration order: +x, -x, +y, -y."""


class Allocator(Protocol):
    """Hands out processor cells for a surface."""

    grid: OccupancyGrid

    def allocate(self, surface: DrawingSurface) -> tuple[int, int] | None:
        ...


class BfsAllocator:
    """Breadth-first nearest-free-cell allocator.

    Parameters
    ----------
    grid : OccupancyGrid
        Shared grid; claimed cells are written through it.
    """

    def __init__(self, grid: OccupancyGrid) -> None:
        self.grid = grid

    def allocate(self, surface: DrawingSurface) -> tuple[int, int] | None:
        """Claim the unclaimed cell nearest to ``surface.root``."""
        cell = self.nearest_free(surface.root)
        if cell is not None:
            logger.debug(
                "Placed processor for %s at %s (root %s)",
                surface.surface_id, cell, surface.root,
            )
        return cell

    def nearest_free(self, root: tuple[int, int]) -> tuple[int, int] | None:
        """Claim and return the nearest unclaimed cell to *root*.

        Parameters
        ----------
        root : tuple[int, int]
            Start cell; must lie inside the grid.

        Returns
        -------
        tuple[int, int] | None
            The claimed cell, or ``None`` when every reachable cell is
            already claimed.

        Raises
        ------
        PlacementError
            If *root* is outside the grid.
        """
        grid = self.grid
        rx, ry = root
        if not grid.in_bounds(rx, ry):
            raise PlacementError(f"BFS root {root} outside grid {grid.shape}")

        if not grid.is_claimed(rx, ry):
            grid.claim(rx, ry)
            return (rx, ry)

        visited = np.zeros(grid.shape, dtype=bool)
        visited[rx, ry] = True
        queue: deque[tuple[int, int]] = deque([(rx, ry)])

        while queue:
            x, y = queue.popleft()
            if not grid.is_claimed(x, y):
                grid.claim(x, y)
                return (x, y)
            for dx, dy in NEIGHBOR_OFFSETS:
                nx, ny = x + dx, y + dy
                if grid.in_bounds(nx, ny) and not visited[nx, ny]:
                    visited[nx, ny] = True
                    queue.append((nx, ny))

        return None


class FixedTableAllocator:
    """Allocator backed by literal per-surface coordinate tables.

    Parameters
    ----------
    grid : OccupancyGrid
        Shared grid; handed-out cells are claimed through it.
    tables : Mapping[str, Sequence[tuple[int, int]]]
        Ordered coordinates keyed by ``surface_id``.
    """

    def __init__(
        self,
        grid: OccupancyGrid,
        tables: Mapping[str, Sequence[tuple[int, int]]],
    ) -> None:
        self.grid = grid
        self._queues: dict[str, deque[tuple[int, int]]] = {
            sid: deque((int(x), int(y)) for x, y in coords)
            for sid, coords in tables.items()
        }

    def validate(self) -> None:
        """Check every table cell is in bounds, unique and still free.

        Call after surface footprints are claimed.

        Raises
        ------
        PlacementError
            On the first invalid coordinate.
        """
        seen: dict[tuple[int, int], str] = {}
        for sid, queue in self._queues.items():
            for x, y in queue:
                if not self.grid.in_bounds(x, y):
                    raise PlacementError(
                        f"Table for '{sid}' has ({x}, {y}) outside grid "
                        f"{self.grid.shape}"
                    )
                if self.grid.is_claimed(x, y):
                    raise PlacementError(
                        f"Table for '{sid}' has ({x}, {y}) on a claimed cell"
                    )
                if (x, y) in seen:
                    raise PlacementError(
                        f"Tables for '{seen[(x, y)]}' and '{sid}' share ({x}, {y})"
                    )
                seen[(x, y)] = sid

    def remaining(self, surface_id: str) -> int:
        return len(self._queues.get(surface_id, ()))

    def allocate(self, surface: DrawingSurface) -> tuple[int, int] | None:
        """Claim and return the next table cell for *surface*."""
        queue = self._queues.get(surface.surface_id)
        if not queue:
            return None
        x, y = queue.popleft()
        self.grid.claim(x, y)
        logger.debug("Placed processor for %s at (%d, %d) from table", surface.surface_id, x, y)
        return (x, y)
