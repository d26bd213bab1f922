"""Cluster layouts: generic grid geometry and hand-placed fixed shapes.

A layout fixes, for every tile of a ``columns x rows`` cluster, where its
display sits on the occupancy grid and (for fixed shapes) which cells its
processors may use.  Tiles are numbered row-major.

Generic layouts place display ``(col, row)`` at
``(col * size + origin, row * size + origin)`` on a canvas of
``(columns * size + padding, rows * size + padding)`` cells and rely on
BFS placement.

Fixed shapes (1x1, 2x1, 1x2, 2x2) carry literal display offsets and
processor tables that were laid out by hand around the displays.  Their
canvas is the bounding box of all footprints and table cells.
"""

from __future__ import annotations

from dataclasses import dataclass

Coord = tuple[int, int]


@dataclass(frozen=True)
class ClusterShape:
    """Tile -> display offset (and optional processor table) mapping.

    Parameters
    ----------
    columns, rows : int
        Cluster size in displays.
    surface_offsets : tuple[Coord, ...]
        Display footprint origin per tile, row-major.
    processor_tables : tuple[tuple[Coord, ...], ...] | None
        Ordered processor cells per tile; ``None`` selects BFS placement.
    canvas : Coord
        Occupancy-grid size ``(width, height)``.
    """

    columns: int
    rows: int
    surface_offsets: tuple[Coord, ...]
    canvas: Coord
    processor_tables: tuple[tuple[Coord, ...], ...] | None = None

    def __post_init__(self) -> None:
        if self.columns < 1 or self.rows < 1:
            raise ValueError(
                f"Cluster shape must be at least 1x1, got {self.columns}x{self.rows}"
            )
        if len(self.surface_offsets) != self.tile_count:
            raise ValueError(
                f"{self.name}: expected {self.tile_count} surface offsets, "
                f"got {len(self.surface_offsets)}"
            )
        if (
            self.processor_tables is not None
            and len(self.processor_tables) != self.tile_count
        ):
            raise ValueError(
                f"{self.name}: expected {self.tile_count} processor tables, "
                f"got {len(self.processor_tables)}"
            )

    @property
    def name(self) -> str:
        return f"{self.columns}x{self.rows}"

    @property
    def tile_count(self) -> int:
        return self.columns * self.rows

    @property
    def is_fixed(self) -> bool:
        return self.processor_tables is not None

    def tile_position(self, index: int) -> Coord:
        """``(col, row)`` of a row-major tile index."""
        return (index % self.columns, index // self.columns)

    def surface_id(self, index: int) -> str:
        col, row = self.tile_position(index)
        return f"{self.name}_{col}c{row}"


def generic_shape(
    columns: int,
    rows: int,
    *,
    surface_size: int = 6,
    origin: int = 3,
    padding: int = 8,
) -> ClusterShape:
    """Regular grid of displays for BFS placement."""
    offsets = tuple(
        (col * surface_size + origin, row * surface_size + origin)
        for row in range(rows)
        for col in range(columns)
    )
    canvas = (columns * surface_size + padding, rows * surface_size + padding)
    return ClusterShape(columns=columns, rows=rows, surface_offsets=offsets, canvas=canvas)


def _fixed(
    columns: int,
    rows: int,
    offsets: tuple[Coord, ...],
    tables: tuple[tuple[Coord, ...], ...],
    surface_size: int = 6,
) -> ClusterShape:
    xs = [x + surface_size for x, _ in offsets] + [x + 1 for t in tables for x, _ in t]
    ys = [y + surface_size for _, y in offsets] + [y + 1 for t in tables for _, y in t]
    return ClusterShape(
        columns=columns,
        rows=rows,
        surface_offsets=offsets,
        canvas=(max(xs), max(ys)),
        processor_tables=tables,
    )


def _column(x: int, ys: range) -> tuple[Coord, ...]:
    return tuple((x, y) for y in ys)


def _row(xs: range, y: int) -> tuple[Coord, ...]:
    return tuple((x, y) for x in xs)


FIXED_SHAPES: dict[Coord, ClusterShape] = {
    (1, 1): _fixed(
        1, 1,
        offsets=((1, 0),),
        tables=(
            _column(0, range(0, 6)) + _row(range(0, 8), 6) + _column(8, range(0, 6)),
        ),
    ),
    (2, 1): _fixed(
        2, 1,
        offsets=((1, 0), (7, 0)),
        tables=(
            _column(0, range(0, 6)) + _row(range(0, 7), 6),
            _column(13, range(0, 6)) + _row(range(13, 6, -1), 6),
        ),
    ),
    (1, 2): _fixed(
        1, 2,
        offsets=((1, 0), (1, 6)),
        tables=(
            _column(0, range(0, 6)) + _column(7, range(0, 6)),
            _column(0, range(6, 12)) + _column(7, range(6, 12)),
        ),
    ),
    (2, 2): _fixed(
        2, 2,
        offsets=((2, 0), (8, 0), (2, 6), (8, 6)),
        tables=(
            _column(1, range(0, 6)) + _column(0, range(0, 6)),
            _column(14, range(0, 6)) + _column(15, range(0, 6)),
            ((14, 7), (14, 6)) + _column(14, range(8, 12)) + _column(15, range(6, 12)),
            _column(1, range(6, 12)) + _column(0, range(6, 12)),
        ),
    ),
}
"""Hand-placed layouts keyed by ``(columns, rows)``."""


def resolve_shape(
    columns: int,
    rows: int,
    *,
    use_fixed: bool = True,
    surface_size: int = 6,
    origin: int = 3,
    padding: int = 8,
) -> ClusterShape:
    """Fixed shape when one exists and *use_fixed*, else a generic grid."""
    if use_fixed and surface_size == 6:
        fixed = FIXED_SHAPES.get((columns, rows))
        if fixed is not None:
            return fixed
    return generic_shape(
        columns, rows, surface_size=surface_size, origin=origin, padding=padding,
    )
