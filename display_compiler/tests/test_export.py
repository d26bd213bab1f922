"""Tests for schematic assembly, YAML output and the build summary."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from display_compiler.cluster import ClusterBuild, ClusterComposer
from display_compiler.configs import BuildOptions, load_config
from display_compiler.export import (
    Schematic,
    YamlSchematicWriter,
    load_schematic,
    summarize,
)


def _solid(rgb: tuple[int, int, int]) -> np.ndarray:
    px = np.zeros((8, 8, 3), dtype=np.uint8)
    px[:, :] = rgb
    return px


@pytest.fixture()
def build() -> ClusterBuild:
    composer = ClusterComposer(load_config(), BuildOptions(name="Flag"))
    return composer.build_from_grids([_solid((255, 0, 0))])


@pytest.fixture()
def schematic(build: ClusterBuild) -> Schematic:
    return Schematic.from_build(build, "Flag")


class TestSchematic:
    def test_structures(self, schematic: Schematic) -> None:
        assert schematic.block_count == 2
        (display,) = schematic.blocks_of("large-logic-display")
        (proc,) = schematic.blocks_of("micro-processor")
        assert (display.x, display.y, display.size) == (1, 0, 6)
        assert proc.config is not None
        assert proc.config.code.splitlines()[-1] == "drawflush display1"

    def test_to_dict(self, schematic: Schematic) -> None:
        data = schematic.to_dict()
        assert (data["name"], data["width"], data["height"]) == ("Flag", 9, 7)
        proc = data["structures"][1]
        assert proc["config"]["links"] == [{"name": "display1", "x": 1, "y": 0}]
        assert "size" not in proc

    def test_yaml_written_and_read_back(self, schematic: Schematic, tmp_path: Path) -> None:
        path = tmp_path / "out" / "flag.yaml"
        YamlSchematicWriter().write(schematic, path)
        loaded = load_schematic(path)
        assert loaded == schematic

    def test_dumps_is_yaml_text(self, schematic: Schematic) -> None:
        text = YamlSchematicWriter().dumps(schematic)
        assert text.startswith("name: Flag")
        assert "drawflush display1" in text

    def test_load_rejects_other_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "x.yaml"
        path.write_text("foo: 1\n")
        with pytest.raises(ValueError, match="Not a schematic"):
            load_schematic(path)


class TestSummary:
    def test_counts(self, build: ClusterBuild, schematic: Schematic) -> None:
        text = summarize(build, schematic)
        assert "Processors used:  1" in text
        assert "Total blocks:     2" in text
        assert "fixed placement" in text
        assert "#FF0000FF" not in text

    def test_verbose_lists_colors(self, build: ClusterBuild, schematic: Schematic) -> None:
        assert "1x1_0c0: 1 colors: #FF0000FF" in summarize(build, schematic, verbose=True)

    def test_reports_dropped_rectangles(self) -> None:
        board = np.zeros((16, 16, 3), dtype=np.uint8)
        board[(np.indices((16, 16)).sum(axis=0) % 2) == 1] = 255
        build = ClusterComposer(
            load_config(), BuildOptions(instruction_cap=4),
        ).build_from_grids([board])
        text = summarize(build, Schematic.from_build(build, "Board"))
        assert "WARNING: 1x1_0c0 ran out of processor space" in text
