#!/usr/bin/env python3
"""
Build Schematic Script.

Convert an image into a cluster of logic displays driven by processors
and write the result as a YAML schematic.

Usage:
    python -m display_compiler.scripts.build_schematic -i cat.png
    python -m display_compiler.scripts.build_schematic -i cat.png -o cat.yaml -y
    python -m display_compiler.scripts.build_schematic -i wide.png --layout 2x1 -r 176 -r 88
    python -m display_compiler.scripts.build_schematic -i cat.png --options build.yaml -v

Per-tile options (-r, -c, -d) may be repeated; tile i uses value i modulo
the number given.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from display_compiler.cluster.composer import ClusterComposer
from display_compiler.configs.loader import ConfigError, load_config
from display_compiler.configs.options import (
    BuildOptions,
    load_build_options,
    parse_layout,
)
from display_compiler.export.schematic import Schematic, YamlSchematicWriter
from display_compiler.export.summary import summarize
from display_compiler.imaging.prepare import ImagingError, load_image
from display_compiler.placement.grid import PlacementError
from display_compiler.utils.logging_config import install_excepthook, setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="display-compiler",
        description="Compile an image into a logic display schematic",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-i", "--input", required=True, help="Input image path")
    parser.add_argument(
        "-o",
        "--output",
        help="Output schematic path (default: <input stem>.yaml)",
    )
    parser.add_argument(
        "--print-output",
        action="store_true",
        help="Print the schematic to stdout instead of writing a file",
    )

    overwrite = parser.add_mutually_exclusive_group()
    overwrite.add_argument(
        "-y", "--yes", action="store_true", help="Overwrite an existing output file",
    )
    overwrite.add_argument(
        "-n", "--no", action="store_true", help="Never overwrite; exit if output exists",
    )

    parser.add_argument("--name", help="Schematic name")
    parser.add_argument(
        "-r", "--resolution", type=int, action="append",
        help="Tile resolution (repeatable, cyclic per tile)",
    )
    parser.add_argument(
        "-c", "--colors", type=int, action="append",
        help="Palette size per tile (repeatable, cyclic per tile)",
    )
    parser.add_argument(
        "-d", "--dither", action="append",
        help="Dither method: none or floyd-steinberg (repeatable, cyclic per tile)",
    )
    parser.add_argument("--layout", help="Cluster layout as CxR, e.g. 2x2")
    parser.add_argument("--cap", type=int, help="Instruction cap per processor")
    parser.add_argument(
        "--flush-interval", type=int, help="Instructions between forced drawflush",
    )
    parser.add_argument(
        "--no-fixed-layouts",
        action="store_true",
        help="Place processors by search even where a fixed layout exists",
    )
    parser.add_argument("--options", help="YAML file with build options")
    parser.add_argument("--config", help="Defaults YAML (block names, limits)")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose summary and logging",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Dump prepared tiles to the temp directory",
    )
    parser.add_argument("--log-json", action="store_true", help="JSON log lines")
    parser.add_argument("--log-file", help="Also write logs to this file")
    return parser


def options_from_args(args: argparse.Namespace) -> BuildOptions:
    """Merge ``--options`` file values with command-line overrides.

    Raises
    ------
    ValueError
        If the merged options fail validation.
    """
    data: dict[str, Any] = {}
    if args.options:
        data = load_build_options(args.options).model_dump(exclude_unset=True)

    if args.name:
        data["name"] = args.name
    elif "name" not in data:
        data["name"] = Path(args.input).stem or "Unnamed"
    if args.layout:
        data["columns"], data["rows"] = parse_layout(args.layout)
    if args.resolution:
        data["resolutions"] = args.resolution
    if args.colors:
        data["color_counts"] = args.colors
    if args.dither:
        data["dither_methods"] = args.dither
    if args.cap is not None:
        data["instruction_cap"] = args.cap
    if args.flush_interval is not None:
        data["flush_interval"] = args.flush_interval
    if args.no_fixed_layouts:
        data["use_fixed_layouts"] = False
    if args.debug:
        data["debug"] = True

    try:
        return BuildOptions(**data)
    except ValueError as e:
        raise ValueError(f"Invalid build options: {e}") from e


def resolve_output(args: argparse.Namespace) -> Optional[Path]:
    """Output path, or ``None`` when the schematic goes to stdout."""
    if args.print_output:
        return None
    if args.output:
        return Path(args.output)
    return Path(Path(args.input).stem + YamlSchematicWriter.suffix)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        "DEBUG" if args.verbose else "INFO",
        log_file=args.log_file,
        json=args.log_json,
        quiet_libs=["PIL"],
    )
    install_excepthook()

    try:
        options = options_from_args(args)
    except (ValueError, FileNotFoundError) as e:
        logger.error("%s", e)
        return 1

    output = resolve_output(args)
    if output is not None and output.exists():
        if args.no:
            logger.error("Output %s exists and --no was given", output)
            return 1
        if not args.yes:
            logger.error("Output %s exists; pass -y to overwrite", output)
            return 1
        logger.info("Overwriting %s", output)

    try:
        config = load_config(args.config)
        composer = ClusterComposer(config, options)
        image = load_image(args.input, flip_vertical=config.image.flip_vertical)
        build = composer.build(image)
    except (ConfigError, FileNotFoundError, ImagingError, PlacementError) as e:
        logger.error("%s", e)
        return 1

    schematic = Schematic.from_build(build, options.name)
    writer = YamlSchematicWriter()
    if output is None:
        sys.stdout.write(writer.dumps(schematic))
    else:
        writer.write(schematic, output)

    print(summarize(build, schematic, verbose=args.verbose), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
