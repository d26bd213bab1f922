"""Instruction emitter -- sorted rectangles to capacity-bounded programs.

One emitter run turns the rectangles of one drawing surface into one or
more processor programs, none longer than ``cap`` instructions.

Scaling:
    Rectangles are in source pixels of the tile.  Each of x, y, width and
    height is multiplied by ``scale`` (display resolution / tile
    resolution) and rounded **up** independently.  ``scale`` is held as a
    ``Fraction`` so the ceiling is exact.  Independent rounding can make
    neighbouring rectangles overlap by one display unit; the later one
    simply redraws those pixels.

Color state:
    A ``draw color`` is emitted whenever the color changes and at the start
    of every program, since each processor runs independently and starts
    with no color of its own.

Forced commits:
    Every ``flush_interval`` instructions a ``drawflush`` is emitted,
    followed by the current color again.

Overflow:
    When the next instruction would bring the program to ``cap``, the
    program is closed with a ``drawflush``, a processor cell is requested
    from the allocator, and a new program starts with the current color.
    If the instruction that hit the cap was itself a forced ``drawflush``,
    the closing ``drawflush`` stands in for it and the new program starts
    empty.  A program with no ``draw rect`` is never placed.  If the
    allocator has no cell left, the rest of the surface is dropped and the
    result is marked ``exhausted``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from fractions import Fraction
from io import StringIO
from typing import Sequence

from display_compiler.placement.allocator import Allocator
from display_compiler.program_ir.colors import Color, Rectangle
from display_compiler.program_ir.instructions import (
    CommitFrame,
    DrawRect,
    Instruction,
    SetColor,
    render,
)
from display_compiler.program_ir.units import (
    DrawingSurface,
    ExecutionUnit,
    ProcessorConfig,
)

logger = logging.getLogger(__name__)

LINE_SEPARATOR = "\n"
MIN_CAP = 4


class EmissionError(Exception):
    """Raised when program emission is misconfigured or degenerate."""

    pass


@dataclass(frozen=True)
class EmissionResult:
    """Outcome of emitting one surface.

    Parameters
    ----------
    surface : DrawingSurface
        Surface the programs draw on.
    units : tuple[ExecutionUnit, ...]
        Placed processors, in emission order.
    rectangles : int
        Rectangles handed to the emitter.
    placed_rectangles : int
        Rectangles whose draw instruction landed in a placed unit.
    exhausted : bool
        ``True`` when the allocator ran out of cells and the remainder of
        the surface was dropped.
    """

    surface: DrawingSurface
    units: tuple[ExecutionUnit, ...]
    rectangles: int
    placed_rectangles: int
    exhausted: bool

    @property
    def dropped_rectangles(self) -> int:
        return self.rectangles - self.placed_rectangles


def scale_rect(rect: Rectangle, scale: Fraction) -> DrawRect:
    """Scale a source-pixel rectangle to display units, ceiling per axis."""
    return DrawRect(
        x=math.ceil(rect.x * scale),
        y=math.ceil(rect.y * scale),
        width=math.ceil(rect.width * scale),
        height=math.ceil(rect.height * scale),
    )


class InstructionEmitter:
    """Pack rectangles into processor programs and place the processors.

    Parameters
    ----------
    allocator : Allocator
        Source of processor cells (shared across surfaces of one build).
    cap : int
        Maximum instructions per program, at least 4.
    flush_interval : int
        Instructions between forced ``drawflush`` commits.
    template : ProcessorConfig | None
        Base configuration copied into every unit.
    processor_block : str
        Block type recorded on each execution unit.
    """

    def __init__(
        self,
        allocator: Allocator,
        *,
        cap: int = 1000,
        flush_interval: int = 100,
        template: ProcessorConfig | None = None,
        processor_block: str = "micro-processor",
    ) -> None:
        if cap < MIN_CAP:
            raise EmissionError(f"Instruction cap must be >= {MIN_CAP}, got {cap}")
        if flush_interval < 1:
            raise EmissionError(
                f"Flush interval must be >= 1, got {flush_interval}"
            )
        self._allocator = allocator
        self._cap = cap
        self._flush_interval = flush_interval
        self._template = template if template is not None else ProcessorConfig()
        self._processor_block = processor_block
        self._reset_state(None, 0)

    @property
    def cap(self) -> int:
        return self._cap

    @property
    def flush_interval(self) -> int:
        return self._flush_interval

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def emit(
        self,
        surface: DrawingSurface,
        rects: Sequence[Rectangle],
        scale: Fraction | int = 1,
    ) -> EmissionResult:
        """Emit and place all programs for one surface.

        Parameters
        ----------
        surface : DrawingSurface
            Target display; also the placement root for its processors.
        rects : Sequence[Rectangle]
            Color-sorted rectangles of the surface's tile.
        scale : Fraction | int
            Display units per source pixel.

        Returns
        -------
        EmissionResult
            Placed units plus drop accounting.
        """
        scale = Fraction(scale)
        if scale <= 0:
            raise EmissionError(f"Scale must be positive, got {scale}")

        self._reset_state(surface, len(rects))

        for rect in rects:
            if rect.color != self._last_color or not self._color_in_program:
                self._append(SetColor(rect.color))
            self._append(scale_rect(rect, scale))

            if self._since_commit >= self._flush_interval:
                self._append(CommitFrame(surface.link))
                # A commit that closed the program leaves nothing to re-color
                if self._count > 0:
                    self._append(SetColor(rect.color))

            if self._exhausted:
                break

        if not self._exhausted and self._pending_rects > 0:
            self._write(CommitFrame(surface.link))
            self._finalize()

        result = EmissionResult(
            surface=surface,
            units=tuple(self._units),
            rectangles=len(rects),
            placed_rectangles=self._placed_rects,
            exhausted=self._exhausted,
        )
        logger.info(
            "Surface %s: %d rectangles -> %d processors",
            surface.surface_id, result.rectangles, len(result.units),
        )
        return result

    # ------------------------------------------------------------------
    # Internal: program buffer
    # ------------------------------------------------------------------

    def _reset_state(self, surface: DrawingSurface | None, total: int) -> None:
        self._surface = surface
        self._total = total
        self._buf = StringIO()
        self._count = 0
        self._since_commit = 0
        self._last_color: Color | None = None
        self._color_in_program = False
        self._pending_rects = 0
        self._placed_rects = 0
        self._units: list[ExecutionUnit] = []
        self._exhausted = False

    def _append(self, op: Instruction) -> None:
        """Write *op*, first closing the program if it would reach the cap."""
        if self._exhausted:
            return
        if self._count + 1 >= self._cap:
            self._write(CommitFrame(self._surface.link))
            if not self._finalize():
                return
            if isinstance(op, CommitFrame):
                return
            if not isinstance(op, SetColor) and self._last_color is not None:
                self._write(SetColor(self._last_color))
        self._write(op)

    def _write(self, op: Instruction) -> None:
        self._buf.write(render(op))
        self._buf.write(LINE_SEPARATOR)
        self._count += 1

        if isinstance(op, CommitFrame):
            self._since_commit = 0
            return
        self._since_commit += 1
        if isinstance(op, SetColor):
            self._last_color = op.color
            self._color_in_program = True
        elif isinstance(op, DrawRect):
            self._pending_rects += 1

    def _finalize(self) -> bool:
        """Close the current program and place it on a processor.

        Returns
        -------
        bool
            ``False`` when no processor cell was available.

        Raises
        ------
        EmissionError
            If the program is empty.
        """
        text = self._buf.getvalue()
        if len(text) <= len(LINE_SEPARATOR) or not text.endswith(LINE_SEPARATOR):
            raise EmissionError(
                f"Cannot finalize an empty program for surface "
                f"{self._surface.surface_id}"
            )
        code = text[: -len(LINE_SEPARATOR)]

        cell = self._allocator.allocate(self._surface)
        if cell is None:
            self._exhausted = True
            logger.warning(
                "No free processor cell for surface %s; dropping %d of %d "
                "rectangles",
                self._surface.surface_id,
                self._total - self._placed_rects,
                self._total,
            )
            return False

        x, y = cell
        config = self._template.with_code(code).with_link(self._surface)
        self._units.append(
            ExecutionUnit(
                surface=self._surface,
                x=x,
                y=y,
                config=config,
                instruction_count=self._count,
                block=self._processor_block,
            )
        )

        self._placed_rects += self._pending_rects
        self._pending_rects = 0
        self._buf = StringIO()
        self._count = 0
        self._since_commit = 0
        self._color_in_program = False
        return True
