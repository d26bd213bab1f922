"""Schematic assembly and serialization.

A :class:`Schematic` is the flat list of placed structures (displays and
processors) of one build, in grid coordinates.  Writers turn it into a
file; the shipped writer emits YAML through PyYAML.  Binary game formats
can be added by implementing :class:`SchematicWriter`.

Serialized layout::

    name: Unnamed
    width: 16
    height: 12
    structures:
    - block: large-logic-display
      x: 2
      y: 0
      size: 6
    - block: micro-processor
      x: 8
      y: 6
      config:
        links:
        - {name: display1, x: 2, y: 0}
        code: |-
          draw color 255 0 0 255 0 0
          ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, Union

from display_compiler.program_ir.units import ExecutionUnit, Link, ProcessorConfig
from display_compiler.utils import fs

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacedStructure:
    """A block at a grid position, optionally carrying a processor config."""

    block: str
    x: int
    y: int
    size: int = 1
    config: ProcessorConfig | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"block": self.block, "x": self.x, "y": self.y}
        if self.size != 1:
            out["size"] = self.size
        if self.config is not None:
            out["config"] = {
                "links": [
                    {"name": link.name, "x": link.x, "y": link.y}
                    for link in self.config.links
                ],
                "code": self.config.code,
            }
        return out


@dataclass
class Schematic:
    """Named set of placed structures on a ``width x height`` grid."""

    name: str
    width: int
    height: int
    structures: list[PlacedStructure] = field(default_factory=list)

    @classmethod
    def from_build(cls, build, name: str) -> Schematic:
        """Collect displays and processors of a :class:`ClusterBuild`."""
        schematic = cls(name=name, width=build.grid.width, height=build.grid.height)
        for surface in build.surfaces:
            schematic.structures.append(
                PlacedStructure(
                    block=surface.block, x=surface.x, y=surface.y, size=surface.size,
                )
            )
        for unit in build.units:
            schematic.structures.append(structure_for_unit(unit))
        return schematic

    @property
    def block_count(self) -> int:
        return len(self.structures)

    def blocks_of(self, block: str) -> list[PlacedStructure]:
        return [s for s in self.structures if s.block == block]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "width": self.width,
            "height": self.height,
            "structures": [s.to_dict() for s in self.structures],
        }


def structure_for_unit(unit: ExecutionUnit) -> PlacedStructure:
    return PlacedStructure(block=unit.block, x=unit.x, y=unit.y, config=unit.config)


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------


class SchematicWriter(Protocol):
    """Anything that can persist a schematic to a path."""

    def write(self, schematic: Schematic, path: Union[str, Path]) -> None:
        ...


class YamlSchematicWriter:
    """Write schematics as YAML (atomic replace)."""

    suffix = ".yaml"

    def dumps(self, schematic: Schematic) -> str:
        return fs.dump_yaml(schematic.to_dict())

    def write(self, schematic: Schematic, path: Union[str, Path]) -> None:
        path = Path(path)
        fs.atomic_write_text(path, self.dumps(schematic))
        logger.info(
            "Wrote schematic '%s' (%d blocks) to %s",
            schematic.name, schematic.block_count, path,
        )


def load_schematic(path: Union[str, Path]) -> Schematic:
    """Read back a YAML schematic written by :class:`YamlSchematicWriter`."""
    data = fs.load_yaml(path)
    if not isinstance(data, dict) or "structures" not in data:
        raise ValueError(f"Not a schematic file: {path}")

    structures = []
    for item in data["structures"]:
        config = None
        if "config" in item:
            cfg = item["config"]
            config = ProcessorConfig(
                code=cfg.get("code", ""),
                links=tuple(
                    Link(name=l["name"], x=int(l["x"]), y=int(l["y"]))
                    for l in cfg.get("links", [])
                ),
            )
        structures.append(
            PlacedStructure(
                block=item["block"],
                x=int(item["x"]),
                y=int(item["y"]),
                size=int(item.get("size", 1)),
                config=config,
            )
        )
    return Schematic(
        name=str(data.get("name", "")),
        width=int(data.get("width", 0)),
        height=int(data.get("height", 0)),
        structures=structures,
    )
