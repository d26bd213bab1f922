"""Cluster composer: tiles, displays and processors on one shared grid.

A build runs in three phases:
    1. Prepare: every tile is turned into a quantized pixel grid and
       decomposed into color-sorted rectangles
    2. Reserve: the occupancy grid is created from the layout canvas and
       every display footprint is claimed before any processor is placed
    3. Emit: tiles are processed nearest-first to the centroid of the
       remaining free cells, each one packing its rectangles into
       processor programs placed by the allocator

Processing order matters only under contention: with BFS placement the
tiles near the middle of the free area get first pick of the free cells.

Usage::

    from display_compiler.cluster import ClusterComposer

    composer = ClusterComposer(load_config(), BuildOptions(columns=2, rows=2))
    build = composer.build(image)          # PIL image
    build = composer.build_from_grids([px0, px1, px2, px3])
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Callable, Optional, Sequence

import numpy as np
from PIL import Image

from display_compiler.configs.loader import DisplayConfig
from display_compiler.configs.options import BuildOptions
from display_compiler.emitter.emitter import EmissionResult, InstructionEmitter
from display_compiler.imaging.prepare import pad_to_aspect, prepare_tile, split_tiles
from display_compiler.placement.allocator import (
    Allocator,
    BfsAllocator,
    FixedTableAllocator,
)
from display_compiler.placement.grid import OccupancyGrid
from display_compiler.placement.layouts import ClusterShape, resolve_shape
from display_compiler.program_ir.colors import Rectangle
from display_compiler.program_ir.units import DrawingSurface, ExecutionUnit
from display_compiler.raster.decomposer import decompose_sorted
from display_compiler.utils.logging_config import log_context

logger = logging.getLogger(__name__)

TilePreparer = Callable[..., np.ndarray]
"""``(tile, resolution, colors, dither, debug_prefix=...) -> (H, W, C) uint8``."""


@dataclass(eq=False)
class Tile:
    """One display's share of the cluster."""

    index: int
    column: int
    row: int
    surface: DrawingSurface
    pixels: np.ndarray
    rectangles: list[Rectangle] = field(default_factory=list)
    result: Optional[EmissionResult] = None

    @property
    def resolution(self) -> int:
        """Edge length of the pixel grid (the larger side)."""
        return int(max(self.pixels.shape[0], self.pixels.shape[1]))


@dataclass(frozen=True)
class ClusterBuild:
    """Result of one cluster build.

    Parameters
    ----------
    shape : ClusterShape
        Layout used.
    grid : OccupancyGrid
        Final occupancy state (displays plus processors).
    tiles : tuple[Tile, ...]
        Tiles in row-major order.
    order : tuple[int, ...]
        Tile indices in the order they were emitted.
    """

    shape: ClusterShape
    grid: OccupancyGrid
    tiles: tuple[Tile, ...]
    order: tuple[int, ...]

    @property
    def surfaces(self) -> list[DrawingSurface]:
        return [t.surface for t in self.tiles]

    @property
    def results(self) -> list[EmissionResult]:
        return [t.result for t in self.tiles if t.result is not None]

    @property
    def units(self) -> list[ExecutionUnit]:
        """All placed processors, in emission order."""
        units: list[ExecutionUnit] = []
        for index in self.order:
            result = self.tiles[index].result
            if result is not None:
                units.extend(result.units)
        return units

    @property
    def rectangle_count(self) -> int:
        return sum(len(t.rectangles) for t in self.tiles)

    @property
    def dropped_rectangles(self) -> int:
        return sum(r.dropped_rectangles for r in self.results)

    @property
    def exhausted_surfaces(self) -> list[str]:
        return [r.surface.surface_id for r in self.results if r.exhausted]

    @property
    def complete(self) -> bool:
        """``True`` when every rectangle of every tile was placed."""
        return not self.exhausted_surfaces


def tile_order(
    surfaces: Sequence[DrawingSurface],
    centroid: tuple[float, float] | None,
) -> list[int]:
    """Indices of *surfaces* sorted by squared distance to *centroid*.

    The distance is measured from each surface's footprint origin.  Ties
    keep row-major order.  Without a centroid (no free cells) the order is
    row-major.
    """
    indices = list(range(len(surfaces)))
    if centroid is None:
        return indices
    cx, cy = centroid

    def distance(i: int) -> float:
        s = surfaces[i]
        return (s.x - cx) ** 2 + (s.y - cy) ** 2

    return sorted(indices, key=distance)


class ClusterComposer:
    """Compose a display cluster from an image or pre-quantized tiles.

    Parameters
    ----------
    config : DisplayConfig
        Block names, display geometry and program limits.
    options : BuildOptions
        Grid shape, per-tile resolution/colors/dither and overrides.
    prepare : TilePreparer
        Tile preparation function; the Pillow implementation by default.
    """

    def __init__(
        self,
        config: DisplayConfig,
        options: BuildOptions,
        prepare: TilePreparer = prepare_tile,
    ) -> None:
        self.config = config
        self.options = options
        self._prepare = prepare

        cap = options.instruction_cap or config.processor.instruction_cap
        flush = options.flush_interval or config.processor.flush_interval
        self.cap = cap
        self.flush_interval = flush

        use_fixed = config.cluster.use_fixed_layouts
        if options.use_fixed_layouts is not None:
            use_fixed = options.use_fixed_layouts
        self.shape = resolve_shape(
            options.columns,
            options.rows,
            use_fixed=use_fixed,
            surface_size=config.display.size,
            origin=config.cluster.origin,
            padding=config.cluster.padding,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, image: Image.Image) -> ClusterBuild:
        """Pad, tile, prepare and compose *image*.

        The image is expected to be flipped already if needed (see
        :func:`display_compiler.imaging.load_image`).
        """
        shape = self.shape
        padded = pad_to_aspect(
            image, shape.columns, shape.rows, self.config.image.background,
        )
        pieces = split_tiles(padded, shape.columns, shape.rows)

        grids = []
        for i, piece in enumerate(pieces):
            debug_prefix = None
            if self.options.debug:
                debug_prefix = f"{self.options.name}_{shape.surface_id(i)}"
            grids.append(
                self._prepare(
                    piece,
                    self.options.resolution_for(i),
                    self.options.color_count_for(i),
                    self.options.dither_for(i),
                    debug_prefix=debug_prefix,
                )
            )
        return self.build_from_grids(grids)

    def build_from_grids(self, grids: Sequence[np.ndarray]) -> ClusterBuild:
        """Compose from one quantized pixel grid per tile (row-major).

        Raises
        ------
        ValueError
            If the number of grids does not match the layout.
        PlacementError
            If a display footprint or a fixed table conflicts with the grid.
        """
        shape = self.shape
        if len(grids) != shape.tile_count:
            raise ValueError(
                f"Layout {shape.name} needs {shape.tile_count} tiles, "
                f"got {len(grids)}"
            )

        with log_context(layout=shape.name):
            tiles = self._make_tiles(grids)
            grid = OccupancyGrid(*shape.canvas)
            for tile in tiles:
                grid.claim_footprint(tile.surface)
            logger.info(
                "Reserved %d display footprints on %dx%d grid",
                len(tiles), grid.width, grid.height,
            )

            allocator = self._make_allocator(grid, tiles)
            emitter = InstructionEmitter(
                allocator,
                cap=self.cap,
                flush_interval=self.flush_interval,
                processor_block=self.config.processor.block,
            )

            order = tile_order([t.surface for t in tiles], grid.unclaimed_centroid())
            logger.debug("Tile order: %s", order)
            for index in order:
                self._emit_tile(emitter, tiles[index])

        build = ClusterBuild(shape=shape, grid=grid, tiles=tuple(tiles), order=tuple(order))
        if build.complete:
            logger.info(
                "Built %s: %d rectangles, %d processors",
                shape.name, build.rectangle_count, len(build.units),
            )
        else:
            logger.warning(
                "Built %s with %d rectangles dropped (surfaces out of space: %s)",
                shape.name, build.dropped_rectangles,
                ", ".join(build.exhausted_surfaces),
            )
        return build

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _make_tiles(self, grids: Sequence[np.ndarray]) -> list[Tile]:
        display = self.config.display
        tiles = []
        for i, pixels in enumerate(grids):
            col, row = self.shape.tile_position(i)
            x, y = self.shape.surface_offsets[i]
            surface = DrawingSurface(
                surface_id=self.shape.surface_id(i),
                x=x,
                y=y,
                size=display.size,
                link=display.link,
                block=display.block,
            )
            tile = Tile(index=i, column=col, row=row, surface=surface, pixels=pixels)
            tile.rectangles = decompose_sorted(pixels)
            logger.debug(
                "Tile %s: %d rectangles", surface.surface_id, len(tile.rectangles),
            )
            tiles.append(tile)
        return tiles

    def _make_allocator(self, grid: OccupancyGrid, tiles: list[Tile]) -> Allocator:
        if self.shape.processor_tables is None:
            return BfsAllocator(grid)
        tables = {
            tile.surface.surface_id: self.shape.processor_tables[tile.index]
            for tile in tiles
        }
        allocator = FixedTableAllocator(grid, tables)
        allocator.validate()
        return allocator

    def _emit_tile(self, emitter: InstructionEmitter, tile: Tile) -> None:
        with log_context(tile=tile.surface.surface_id):
            scale = Fraction(self.config.display.resolution, tile.resolution)
            tile.result = emitter.emit(tile.surface, tile.rectangles, scale)


def build_cluster(
    image: Image.Image,
    options: BuildOptions,
    config: DisplayConfig,
) -> ClusterBuild:
    """Convenience wrapper: ``ClusterComposer(config, options).build(image)``."""
    return ClusterComposer(config, options).build(image)
