"""Human-readable build summary, printed after a schematic is written."""

from __future__ import annotations

from display_compiler.export.schematic import Schematic
from display_compiler.raster.decomposer import used_colors


def summarize(build, schematic: Schematic, verbose: bool = False) -> str:
    """Summarize a :class:`ClusterBuild` and its schematic.

    Parameters
    ----------
    build : ClusterBuild
        Composed cluster.
    schematic : Schematic
        Schematic assembled from *build*.
    verbose : bool
        Also list every used color (``#RRGGBBAA``) per tile.

    Returns
    -------
    str
        Multi-line report.
    """
    units = build.units
    lines = [
        f"Schematic:        {schematic.name}",
        f"Layout:           {build.shape.name}"
        f" ({'fixed' if build.shape.is_fixed else 'bfs'} placement)",
        f"Grid:             {schematic.width}x{schematic.height}",
        f"Displays:         {len(build.surfaces)}",
        f"Processors used:  {len(units)}",
        f"Total blocks:     {schematic.block_count}",
        f"Rectangles:       {build.rectangle_count}",
        f"Instructions:     {sum(u.instruction_count for u in units)}",
    ]

    for result in build.results:
        if result.exhausted:
            lines.append(
                f"WARNING: {result.surface.surface_id} ran out of processor "
                f"space, {result.dropped_rectangles} of {result.rectangles} "
                f"rectangles dropped"
            )

    if verbose:
        for tile in build.tiles:
            colors = used_colors(tile.rectangles)
            lines.append(
                f"{tile.surface.surface_id}: {len(colors)} colors: "
                + " ".join(c.hex() for c in colors)
            )
    return "\n".join(lines)
