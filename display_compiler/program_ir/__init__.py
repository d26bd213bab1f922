"""
Program intermediate representation.

Defines colors, rectangles, processor instructions and placed structures
as immutable dataclasses.  This vocabulary is the contract between the
rectangle decomposer, the instruction emitter and schematic export.

Rectangle coordinates are source pixels; instruction coordinates are
display units; structure coordinates are occupancy-grid cells.
"""

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
    Link,
    ProcessorConfig,
)

__all__ = [
    "Color",
    "Rectangle",
    "Instruction",
    "SetColor",
    "DrawRect",
    "CommitFrame",
    "render",
    "DrawingSurface",
    "ExecutionUnit",
    "Link",
    "ProcessorConfig",
]
