"""
Schematic export module.

Assembles placed displays and processors into a schematic, writes it to
disk and produces the build summary.
"""

from display_compiler.export.schematic import (
    PlacedStructure,
    Schematic,
    SchematicWriter,
    YamlSchematicWriter,
    load_schematic,
    structure_for_unit,
)
from display_compiler.export.summary import summarize

__all__ = [
    "PlacedStructure",
    "Schematic",
    "SchematicWriter",
    "YamlSchematicWriter",
    "load_schematic",
    "structure_for_unit",
    "summarize",
]
