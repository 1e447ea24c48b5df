"""
ndmap: Neurodiversity Map.

Visualizes precomputed profile projections: nodes colored by a trait score,
cluster confidence ellipses, weighted edges, and a per-profile radar chart.
Clustering and projection happen upstream; this package only loads, derives
and draws.
"""

__version__ = "0.1.0"

from ndmap.models import (
    Node,
    Edge,
    Dataset,
    LoadState,
    LoadStatus,
    ViewState,
    Scene,
    RadarPoint,
)

__all__ = [
    "Node",
    "Edge",
    "Dataset",
    "LoadState",
    "LoadStatus",
    "ViewState",
    "Scene",
    "RadarPoint",
]
