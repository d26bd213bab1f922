"""
Placement module.

Shared occupancy grid, BFS and fixed-table processor allocators, and the
cluster layouts that position displays on the grid.
"""

from display_compiler.placement.allocator import (
    NEIGHBOR_OFFSETS,
    Allocator,
    BfsAllocator,
    FixedTableAllocator,
)
from display_compiler.placement.grid import OccupancyGrid, PlacementError
from display_compiler.placement.layouts import (
    FIXED_SHAPES,
    ClusterShape,
    generic_shape,
    resolve_shape,
)

__all__ = [
    "NEIGHBOR_OFFSETS",
    "Allocator",
    "BfsAllocator",
    "FixedTableAllocator",
    "OccupancyGrid",
    "PlacementError",
    "FIXED_SHAPES",
    "ClusterShape",
    "generic_shape",
    "resolve_shape",
]
