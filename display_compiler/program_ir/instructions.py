"""Processor instructions -- the vocabulary between rectangles and program text.

Every instruction is an immutable, slotted dataclass.  Only three forms
exist; the emitter renders them to logic text::

    SetColor     -> draw color R G B A 0 0
    DrawRect     -> draw rect X Y W H 0 0
    CommitFrame  -> drawflush <link>

``DrawRect`` coordinates are **display** units (already scaled from
source pixels).  ``CommitFrame`` names the processor's link to its display,
which is how the host addresses the surface to flush.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass

from display_compiler.program_ir.colors import Color


@dataclass(frozen=True, slots=True)
class Instruction(ABC):
    """Base class for all processor instructions."""

    pass


@dataclass(frozen=True, slots=True)
class SetColor(Instruction):
    """Set the current draw color of the processor."""

    color: Color


@dataclass(frozen=True, slots=True)
class DrawRect(Instruction):
    """Fill a rectangle with the current color.

    Parameters
    ----------
    x, y : int
        Origin in display units.
    width, height : int
        Extent in display units.
    """

    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class CommitFrame(Instruction):
    """Make the accumulated drawing state visible on the linked display."""

    link: str

    def __post_init__(self) -> None:
        if not self.link:
            raise ValueError("CommitFrame requires a non-empty link name")


def render(op: Instruction) -> str:
    """Render one instruction as a single line of logic text (no newline)."""
    if isinstance(op, SetColor):
        c = op.color
        return f"draw color {c.r} {c.g} {c.b} {c.a} 0 0"
    if isinstance(op, DrawRect):
        return f"draw rect {op.x} {op.y} {op.width} {op.height} 0 0"
    if isinstance(op, CommitFrame):
        return f"drawflush {op.link}"
    raise TypeError(f"Unsupported instruction: {type(op).__name__}")
