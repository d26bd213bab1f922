"""Tests for the instruction emitter.

Validates cap enforcement, forced commits, color re-emission at program
boundaries, coordinate scaling and placement exhaustion.
"""

from __future__ import annotations

import logging
from fractions import Fraction

import numpy as np
import pytest

from display_compiler.emitter import (
    EmissionError,
    InstructionEmitter,
    scale_rect,
)
from display_compiler.placement import BfsAllocator, FixedTableAllocator, OccupancyGrid
from display_compiler.program_ir import Color, DrawingSurface, DrawRect, Link, Rectangle

RED = Color(255, 0, 0)
BLUE = Color(0, 0, 255)
SET_RED = "draw color 255 0 0 255 0 0"
FLUSH = "drawflush display1"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def surface() -> DrawingSurface:
    return DrawingSurface("s0", x=0, y=0, size=6)


@pytest.fixture()
def grid(surface: DrawingSurface) -> OccupancyGrid:
    g = OccupancyGrid(20, 20)
    g.claim_footprint(surface)
    return g


def _row_of(n: int, color: Color = RED) -> list[Rectangle]:
    return [Rectangle(i, 0, 1, 1, color) for i in range(n)]


# ---------------------------------------------------------------------------
# Program packing
# ---------------------------------------------------------------------------


class TestPacking:
    def test_cap_splits_into_two_units(
        self, grid: OccupancyGrid, surface: DrawingSurface,
    ) -> None:
        emitter = InstructionEmitter(BfsAllocator(grid), cap=10, flush_interval=3)
        result = emitter.emit(surface, _row_of(6))

        assert len(result.units) == 2
        assert all(u.instruction_count <= 10 for u in result.units)
        assert result.units[0].lines() == [
            SET_RED,
            "draw rect 0 0 1 1 0 0",
            "draw rect 1 0 1 1 0 0",
            FLUSH,
            SET_RED,
            "draw rect 2 0 1 1 0 0",
            "draw rect 3 0 1 1 0 0",
            FLUSH,
            SET_RED,
            FLUSH,
        ]
        assert result.units[1].lines()[0] == SET_RED
        assert result.placed_rectangles == 6
        assert not result.exhausted

    def test_commit_at_cap_closes_program(
        self, grid: OccupancyGrid, surface: DrawingSurface,
    ) -> None:
        emitter = InstructionEmitter(BfsAllocator(grid), cap=10, flush_interval=4)
        result = emitter.emit(surface, _row_of(6))

        (unit,) = result.units
        assert unit.lines() == [
            SET_RED,
            "draw rect 0 0 1 1 0 0",
            "draw rect 1 0 1 1 0 0",
            "draw rect 2 0 1 1 0 0",
            FLUSH,
            SET_RED,
            "draw rect 3 0 1 1 0 0",
            "draw rect 4 0 1 1 0 0",
            "draw rect 5 0 1 1 0 0",
            FLUSH,
        ]
        assert result.placed_rectangles == 6

    def test_every_unit_draws(self, surface: DrawingSurface) -> None:
        for cap in range(4, 16):
            for interval in range(1, 8):
                grid = OccupancyGrid(20, 20)
                grid.claim_footprint(surface)
                result = InstructionEmitter(
                    BfsAllocator(grid), cap=cap, flush_interval=interval,
                ).emit(surface, _row_of(9))
                for unit in result.units:
                    assert any(line.startswith("draw rect") for line in unit.lines())
                assert result.placed_rectangles == 9

    def test_instruction_count_matches_text(
        self, grid: OccupancyGrid, surface: DrawingSurface,
    ) -> None:
        emitter = InstructionEmitter(BfsAllocator(grid), cap=10, flush_interval=3)
        for unit in emitter.emit(surface, _row_of(6)).units:
            assert len(unit.lines()) == unit.instruction_count
            assert not unit.program.endswith("\n")

    def test_color_change_emits_set_color(
        self, grid: OccupancyGrid, surface: DrawingSurface,
    ) -> None:
        rects = [Rectangle(0, 0, 1, 1, RED), Rectangle(1, 0, 1, 1, BLUE)]
        result = InstructionEmitter(BfsAllocator(grid)).emit(surface, rects)
        assert result.units[0].lines() == [
            SET_RED,
            "draw rect 0 0 1 1 0 0",
            "draw color 0 0 255 255 0 0",
            "draw rect 1 0 1 1 0 0",
            FLUSH,
        ]

    def test_long_mixed_stream(self, surface: DrawingSurface) -> None:
        rng = np.random.default_rng(7)
        palette = [RED, BLUE, Color(0, 255, 0)]
        rects = [
            Rectangle(i % 50, i // 50, 1, 1, palette[int(k)])
            for i, k in enumerate(rng.integers(0, 3, size=500))
        ]
        grid = OccupancyGrid(40, 40)
        grid.claim_footprint(surface)
        result = InstructionEmitter(BfsAllocator(grid), cap=50, flush_interval=7).emit(
            surface, rects,
        )

        draws = 0
        for unit in result.units:
            lines = unit.lines()
            assert unit.instruction_count <= 50
            assert lines[0].startswith("draw color")
            assert lines[-1] == FLUSH
            draws += sum(1 for line in lines if line.startswith("draw rect"))
        assert draws == 500
        assert len({u.position for u in result.units}) == len(result.units)

    def test_units_link_their_surface(
        self, grid: OccupancyGrid, surface: DrawingSurface,
    ) -> None:
        result = InstructionEmitter(BfsAllocator(grid)).emit(surface, _row_of(2))
        (unit,) = result.units
        assert unit.config.links == (Link("display1", 0, 0),)
        assert unit.surface is surface
        assert unit.block == "micro-processor"
        assert not any(
            unit.position == cell for cell in surface.footprint()
        )

    def test_empty_stream_places_nothing(
        self, grid: OccupancyGrid, surface: DrawingSurface,
    ) -> None:
        before = grid.claimed_count()
        result = InstructionEmitter(BfsAllocator(grid)).emit(surface, [])
        assert result.units == ()
        assert grid.claimed_count() == before


# ---------------------------------------------------------------------------
# Scaling
# ---------------------------------------------------------------------------


class TestScaling:
    def test_integer_scale(self) -> None:
        assert scale_rect(Rectangle(1, 1, 3, 3, RED), Fraction(176, 88)) == DrawRect(2, 2, 6, 6)

    def test_ceiling_per_field(self) -> None:
        assert scale_rect(Rectangle(1, 0, 3, 1, RED), Fraction(176, 100)) == DrawRect(2, 0, 6, 2)

    def test_scale_applied_in_program(
        self, grid: OccupancyGrid, surface: DrawingSurface,
    ) -> None:
        result = InstructionEmitter(BfsAllocator(grid)).emit(
            surface, [Rectangle(0, 0, 8, 8, RED)], scale=Fraction(176, 8),
        )
        assert "draw rect 0 0 176 176 0 0" in result.units[0].lines()


# ---------------------------------------------------------------------------
# Exhaustion and validation
# ---------------------------------------------------------------------------


class TestExhaustion:
    def test_mid_stream_exhaustion(
        self, surface: DrawingSurface, caplog: pytest.LogCaptureFixture,
    ) -> None:
        grid = OccupancyGrid(8, 8)
        alloc = FixedTableAllocator(grid, {"s0": [(7, 7)]})
        with caplog.at_level(logging.WARNING):
            result = InstructionEmitter(alloc, cap=4, flush_interval=100).emit(
                surface, _row_of(5),
            )

        assert len(result.units) == 1
        assert result.exhausted
        assert result.placed_rectangles == 2
        assert result.dropped_rectangles == 3
        assert "No free processor cell" in caplog.text

    def test_exhaustion_on_final_program(self, surface: DrawingSurface) -> None:
        alloc = FixedTableAllocator(OccupancyGrid(8, 8), {})
        result = InstructionEmitter(alloc).emit(surface, _row_of(1))
        assert result.units == ()
        assert result.exhausted
        assert result.dropped_rectangles == 1

    def test_commit_at_cap_is_not_exhaustion(
        self, surface: DrawingSurface, caplog: pytest.LogCaptureFixture,
    ) -> None:
        alloc = FixedTableAllocator(OccupancyGrid(8, 8), {"s0": [(7, 7)]})
        with caplog.at_level(logging.WARNING):
            result = InstructionEmitter(alloc, cap=10, flush_interval=4).emit(
                surface, _row_of(6),
            )

        assert len(result.units) == 1
        assert not result.exhausted
        assert result.dropped_rectangles == 0
        assert "No free processor cell" not in caplog.text

    def test_emitter_reusable_across_surfaces(self, grid: OccupancyGrid) -> None:
        emitter = InstructionEmitter(BfsAllocator(grid), cap=10, flush_interval=3)
        a = emitter.emit(DrawingSurface("a", 0, 0), _row_of(6))
        b = emitter.emit(DrawingSurface("b", 0, 0), _row_of(1))
        assert len(a.units) == 2
        assert len(b.units) == 1
        assert b.units[0].lines()[0] == SET_RED


class TestValidation:
    def test_cap_too_small(self, grid: OccupancyGrid) -> None:
        with pytest.raises(EmissionError, match="cap"):
            InstructionEmitter(BfsAllocator(grid), cap=3)

    def test_flush_interval_positive(self, grid: OccupancyGrid) -> None:
        with pytest.raises(EmissionError, match="Flush interval"):
            InstructionEmitter(BfsAllocator(grid), flush_interval=0)

    def test_scale_positive(self, grid: OccupancyGrid, surface: DrawingSurface) -> None:
        with pytest.raises(EmissionError, match="Scale"):
            InstructionEmitter(BfsAllocator(grid)).emit(surface, _row_of(1), scale=0)

    def test_finalize_empty_program(
        self, grid: OccupancyGrid, surface: DrawingSurface,
    ) -> None:
        emitter = InstructionEmitter(BfsAllocator(grid))
        emitter._reset_state(surface, 0)
        with pytest.raises(EmissionError, match="empty program"):
            emitter._finalize()
        assert grid.claimed_count() == len(surface.footprint())
