"""Placed structures: drawing surfaces and the execution units feeding them.

A *drawing surface* is a fixed-size display block occupying a square
footprint on the occupancy grid.  An *execution unit* is one processor
carrying a finalized program, bound to one grid cell and linked to the
surface it draws on.

Per-unit configuration is built by value: ``ProcessorConfig`` is frozen
and every ``with_*`` call returns a new instance, so no two units share a
mutable configuration object.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace


@dataclass(frozen=True, slots=True)
class DrawingSurface:
    """Display block with a square footprint anchored at ``(x, y)``.

    Parameters
    ----------
    surface_id : str
        Stable identifier, e.g. ``"2x2_1c0"`` (layout, column, row).
    x, y : int
        Footprint origin on the occupancy grid.  The footprint covers
        ``[x, x + size) x [y, y + size)``.
    size : int
        Footprint edge length in grid cells.
    link : str
        Name under which linked processors address this surface.
    block : str
        Block type written to the schematic.
    """

    surface_id: str
    x: int
    y: int
    size: int = 6
    link: str = "display1"
    block: str = "large-logic-display"

    def __post_init__(self) -> None:
        if self.size < 1:
            raise ValueError(f"DrawingSurface size must be >= 1, got {self.size}")

    @property
    def root(self) -> tuple[int, int]:
        """Footprint centre, the preferred root for processor placement."""
        return (self.x + self.size // 2, self.y + self.size // 2)

    def footprint(self) -> list[tuple[int, int]]:
        """Every grid cell covered by the surface."""
        return [
            (self.x + dx, self.y + dy)
            for dy in range(self.size)
            for dx in range(self.size)
        ]


@dataclass(frozen=True, slots=True)
class Link:
    """Processor -> surface link, as stored in the processor config."""

    name: str
    x: int
    y: int


@dataclass(frozen=True, slots=True)
class ProcessorConfig:
    """Immutable processor configuration (program text plus links)."""

    code: str = ""
    links: tuple[Link, ...] = field(default_factory=tuple)

    def with_code(self, code: str) -> ProcessorConfig:
        return replace(self, code=code)

    def with_link(self, surface: DrawingSurface) -> ProcessorConfig:
        link = Link(name=surface.link, x=surface.x, y=surface.y)
        return replace(self, links=self.links + (link,))


@dataclass(frozen=True, slots=True)
class ExecutionUnit:
    """One processor bound to a grid cell and a target surface.

    Parameters
    ----------
    surface : DrawingSurface
        Surface the program draws on.
    x, y : int
        Claimed occupancy-grid cell.
    config : ProcessorConfig
        Finalized configuration; ``config.code`` is the newline-joined
        program without a trailing newline.
    instruction_count : int
        Number of instructions in the program.
    block : str
        Block type written to the schematic.
    """

    surface: DrawingSurface
    x: int
    y: int
    config: ProcessorConfig
    instruction_count: int
    block: str = "micro-processor"

    @property
    def program(self) -> str:
        return self.config.code

    @property
    def position(self) -> tuple[int, int]:
        return (self.x, self.y)

    def lines(self) -> list[str]:
        return self.config.code.split("\n")
