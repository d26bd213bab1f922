"""Tests for the build_schematic command-line entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest
from PIL import Image

from display_compiler.export import load_schematic
from display_compiler.scripts.build_schematic import (
    build_parser,
    main,
    options_from_args,
)


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch: pytest.MonkeyPatch):
    """main() configures the root logger; undo that after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.captureWarnings(False)


@pytest.fixture()
def image_path(tmp_path: Path) -> Path:
    path = tmp_path / "cat.png"
    img = Image.new("RGB", (12, 12), (200, 30, 30))
    img.paste((20, 20, 200), (0, 0, 6, 12))
    img.save(path)
    return path


class TestMain:
    def test_writes_schematic(self, image_path: Path, tmp_path: Path) -> None:
        out = tmp_path / "cat.yaml"
        rc = main(["-i", str(image_path), "-o", str(out), "-r", "8", "-c", "2"])

        assert rc == 0
        schematic = load_schematic(out)
        assert schematic.name == "cat"
        assert schematic.blocks_of("micro-processor")

    def test_print_output(
        self, image_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        rc = main(["-i", str(image_path), "--print-output", "-r", "4", "--name", "Tiny"])
        captured = capsys.readouterr()
        assert rc == 0
        assert captured.out.startswith("name: Tiny")
        assert "Processors used" in captured.err

    def test_existing_output_requires_yes(self, image_path: Path, tmp_path: Path) -> None:
        out = tmp_path / "cat.yaml"
        out.write_text("keep me")

        assert main(["-i", str(image_path), "-o", str(out), "-r", "4"]) == 1
        assert main(["-i", str(image_path), "-o", str(out), "-r", "4", "-n"]) == 1
        assert out.read_text() == "keep me"

        assert main(["-i", str(image_path), "-o", str(out), "-r", "4", "-y"]) == 0
        assert out.read_text() != "keep me"

    def test_yes_and_no_exclusive(self, image_path: Path) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["-i", str(image_path), "-y", "-n"])
        assert exc.value.code == 2

    def test_invalid_resolution(self, image_path: Path, tmp_path: Path) -> None:
        rc = main(["-i", str(image_path), "-o", str(tmp_path / "x.yaml"), "-r", "500"])
        assert rc == 1

    def test_missing_input(self, tmp_path: Path) -> None:
        rc = main(["-i", str(tmp_path / "nope.png"), "-o", str(tmp_path / "x.yaml")])
        assert rc == 1

    def test_layout_build(self, image_path: Path, tmp_path: Path) -> None:
        out = tmp_path / "wide.yaml"
        rc = main([
            "-i", str(image_path), "-o", str(out),
            "--layout", "2x1", "-r", "8", "-r", "4", "-c", "4", "-d", "floyd-steinberg",
        ])
        assert rc == 0
        assert len(load_schematic(out).blocks_of("large-logic-display")) == 2


class TestOptionsFromArgs:
    def test_file_then_overrides(self, tmp_path: Path) -> None:
        opts_file = tmp_path / "build.yaml"
        opts_file.write_text("name: FromFile\ncolumns: 2\ncolor_counts: [64]\n")
        args = build_parser().parse_args([
            "-i", "img.png", "--options", str(opts_file), "-c", "16", "--no-fixed-layouts",
        ])
        opts = options_from_args(args)

        assert opts.name == "FromFile"
        assert opts.columns == 2
        assert opts.color_counts == [16]
        assert opts.use_fixed_layouts is False

    def test_name_defaults_to_input_stem(self) -> None:
        args = build_parser().parse_args(["-i", "pics/sunset.jpg"])
        assert options_from_args(args).name == "sunset"

    def test_bad_layout(self) -> None:
        args = build_parser().parse_args(["-i", "a.png", "--layout", "wide"])
        with pytest.raises(ValueError, match="CxR"):
            options_from_args(args)
