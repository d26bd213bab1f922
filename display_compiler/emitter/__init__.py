"""
Instruction emission module.

Converts color-sorted rectangles into capacity-bounded processor programs
and places each program on the shared occupancy grid.
"""

from display_compiler.emitter.emitter import (
    EmissionError,
    EmissionResult,
    InstructionEmitter,
    scale_rect,
)

__all__ = ["EmissionError", "EmissionResult", "InstructionEmitter", "scale_rect"]
