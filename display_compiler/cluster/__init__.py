"""
Cluster composition module.

Reserves display footprints, orders tiles and drives decomposition and
emission for every display of a cluster.
"""

from display_compiler.cluster.composer import (
    ClusterBuild,
    ClusterComposer,
    Tile,
    build_cluster,
    tile_order,
)

__all__ = ["ClusterBuild", "ClusterComposer", "Tile", "build_cluster", "tile_order"]
