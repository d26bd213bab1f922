"""
Display Compiler Package.

Compiles an image into a cluster of logic displays and the processors that
draw on them: quantized tiles are decomposed into same-color rectangles,
packed into capacity-bounded instruction programs, and the processors are
placed around the displays on a shared occupancy grid.

Subpackages:
    program_ir: Colors, rectangles, instructions and execution units
    raster: Rectangle decomposition of pixel grids
    emitter: Rectangle streams to processor programs
    placement: Occupancy grid, allocators and cluster layouts
    cluster: Tile ordering and whole-cluster builds
    imaging: Image loading, tiling and palette reduction
    export: Schematic assembly, YAML output and build summary
    configs: Defaults loading and build option validation
    utils: Logging setup and atomic file helpers
"""

__all__ = [
    "program_ir",
    "raster",
    "emitter",
    "placement",
    "cluster",
    "imaging",
    "export",
    "configs",
    "utils",
]
