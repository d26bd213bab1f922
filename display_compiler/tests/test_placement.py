"""Tests for the occupancy grid, allocators and cluster layouts.

Validates write-once claims, BFS nearest-cell order and exhaustion,
fixed-table handout and validation, and layout geometry.
"""

from __future__ import annotations

import pytest

from display_compiler.placement import (
    FIXED_SHAPES,
    BfsAllocator,
    ClusterShape,
    FixedTableAllocator,
    OccupancyGrid,
    PlacementError,
    generic_shape,
    resolve_shape,
)
from display_compiler.program_ir import DrawingSurface


def _point(x: int, y: int, sid: str = "s") -> DrawingSurface:
    """Surface whose root is exactly ``(x, y)``."""
    return DrawingSurface(sid, x=x, y=y, size=1)


# ---------------------------------------------------------------------------
# Occupancy grid
# ---------------------------------------------------------------------------


class TestOccupancyGrid:
    def test_claim_is_write_once(self) -> None:
        grid = OccupancyGrid(3, 3)
        grid.claim(1, 1)
        with pytest.raises(PlacementError, match="already claimed"):
            grid.claim(1, 1)

    def test_claim_out_of_bounds(self) -> None:
        with pytest.raises(PlacementError, match="outside grid"):
            OccupancyGrid(3, 3).claim(3, 0)

    def test_is_claimed_out_of_bounds(self) -> None:
        with pytest.raises(PlacementError):
            OccupancyGrid(3, 3).is_claimed(-1, 0)

    def test_footprint_clipped_to_canvas(self) -> None:
        grid = OccupancyGrid(3, 3)
        claimed = grid.claim_footprint(DrawingSurface("s", x=-1, y=-1, size=2))
        assert claimed == 1
        assert grid.is_claimed(0, 0)

    def test_footprint_overlap_rejected(self) -> None:
        grid = OccupancyGrid(6, 6)
        grid.claim_footprint(DrawingSurface("a", 0, 0, size=3))
        with pytest.raises(PlacementError, match="overlaps"):
            grid.claim_footprint(DrawingSurface("b", 2, 2, size=3))

    def test_unclaimed_centroid(self) -> None:
        grid = OccupancyGrid(3, 1)
        grid.claim(0, 0)
        assert grid.unclaimed_centroid() == (1.5, 0.0)

    def test_full_grid_has_no_centroid(self) -> None:
        grid = OccupancyGrid(1, 1)
        grid.claim(0, 0)
        assert grid.unclaimed_centroid() is None
        assert grid.free_count() == 0

    def test_to_array_is_read_only(self) -> None:
        arr = OccupancyGrid(2, 2).to_array()
        with pytest.raises(ValueError):
            arr[0, 0] = True

    def test_empty_grid_rejected(self) -> None:
        with pytest.raises(PlacementError):
            OccupancyGrid(0, 4)


# ---------------------------------------------------------------------------
# BFS allocator
# ---------------------------------------------------------------------------


class TestBfsAllocator:
    def test_free_root_returned(self) -> None:
        alloc = BfsAllocator(OccupancyGrid(3, 3))
        assert alloc.allocate(_point(1, 1)) == (1, 1)

    def test_single_claimed_cell_not_found(self) -> None:
        grid = OccupancyGrid(1, 1)
        grid.claim(0, 0)
        assert BfsAllocator(grid).allocate(_point(0, 0)) is None

    def test_neighbor_order(self) -> None:
        grid = OccupancyGrid(3, 3)
        grid.claim(1, 1)
        alloc = BfsAllocator(grid)
        got = [alloc.allocate(_point(1, 1)) for _ in range(5)]
        assert got == [(2, 1), (0, 1), (1, 2), (1, 0), (2, 2)]

    def test_unique_until_exhausted(self) -> None:
        grid = OccupancyGrid(5, 5)
        alloc = BfsAllocator(grid)
        cells = [alloc.allocate(_point(2, 2)) for _ in range(25)]
        assert len(set(cells)) == 25
        assert alloc.allocate(_point(2, 2)) is None
        assert grid.free_count() == 0

    def test_nearest_by_grid_distance(self) -> None:
        grid = OccupancyGrid(9, 9)
        grid.claim_footprint(DrawingSurface("d", 2, 2, size=5))
        cell = BfsAllocator(grid).allocate(DrawingSurface("d", 2, 2, size=5))
        # Root (4, 4); the footprint edge is 3 steps away on every side.
        assert abs(cell[0] - 4) + abs(cell[1] - 4) == 3

    def test_root_out_of_bounds(self) -> None:
        with pytest.raises(PlacementError, match="outside grid"):
            BfsAllocator(OccupancyGrid(3, 3)).allocate(_point(10, 10))


# ---------------------------------------------------------------------------
# Fixed-table allocator
# ---------------------------------------------------------------------------


class TestFixedTableAllocator:
    def test_hands_out_in_order(self) -> None:
        grid = OccupancyGrid(4, 4)
        alloc = FixedTableAllocator(grid, {"a": [(0, 0), (3, 3)]})
        surface = _point(1, 1, "a")
        assert alloc.allocate(surface) == (0, 0)
        assert alloc.remaining("a") == 1
        assert alloc.allocate(surface) == (3, 3)
        assert alloc.allocate(surface) is None
        assert grid.is_claimed(3, 3)

    def test_unknown_surface_not_found(self) -> None:
        alloc = FixedTableAllocator(OccupancyGrid(2, 2), {"a": [(0, 0)]})
        assert alloc.allocate(_point(0, 0, "b")) is None

    def test_validate_out_of_bounds(self) -> None:
        alloc = FixedTableAllocator(OccupancyGrid(2, 2), {"a": [(5, 0)]})
        with pytest.raises(PlacementError, match="outside grid"):
            alloc.validate()

    def test_validate_claimed(self) -> None:
        grid = OccupancyGrid(2, 2)
        grid.claim(0, 0)
        with pytest.raises(PlacementError, match="claimed cell"):
            FixedTableAllocator(grid, {"a": [(0, 0)]}).validate()

    def test_validate_shared_cell(self) -> None:
        alloc = FixedTableAllocator(OccupancyGrid(2, 2), {"a": [(0, 1)], "b": [(0, 1)]})
        with pytest.raises(PlacementError, match="share"):
            alloc.validate()


# ---------------------------------------------------------------------------
# Layouts
# ---------------------------------------------------------------------------


class TestLayouts:
    def test_generic_offsets_and_canvas(self) -> None:
        shape = generic_shape(3, 2)
        assert shape.surface_offsets[4] == (9, 9)
        assert shape.canvas == (26, 20)
        assert not shape.is_fixed

    def test_surface_ids(self) -> None:
        shape = generic_shape(2, 2)
        assert shape.surface_id(3) == "2x2_1c1"
        assert shape.tile_position(2) == (0, 1)

    @pytest.mark.parametrize(
        "key, canvas",
        [((1, 1), (9, 7)), ((2, 1), (14, 7)), ((1, 2), (8, 12)), ((2, 2), (16, 12))],
    )
    def test_fixed_canvas(self, key: tuple[int, int], canvas: tuple[int, int]) -> None:
        assert FIXED_SHAPES[key].canvas == canvas

    @pytest.mark.parametrize("key", sorted(FIXED_SHAPES))
    def test_fixed_tables_valid_after_footprints(self, key: tuple[int, int]) -> None:
        shape = FIXED_SHAPES[key]
        grid = OccupancyGrid(*shape.canvas)
        tables = {}
        for i, (x, y) in enumerate(shape.surface_offsets):
            grid.claim_footprint(DrawingSurface(shape.surface_id(i), x, y))
            tables[shape.surface_id(i)] = shape.processor_tables[i]
        FixedTableAllocator(grid, tables).validate()

    def test_resolve_prefers_fixed(self) -> None:
        assert resolve_shape(2, 2) is FIXED_SHAPES[(2, 2)]
        assert not resolve_shape(2, 2, use_fixed=False).is_fixed
        assert not resolve_shape(3, 3).is_fixed

    def test_fixed_only_for_standard_size(self) -> None:
        assert not resolve_shape(1, 1, surface_size=4).is_fixed

    def test_offset_count_checked(self) -> None:
        with pytest.raises(ValueError, match="surface offsets"):
            ClusterShape(columns=2, rows=1, surface_offsets=((0, 0),), canvas=(10, 10))
