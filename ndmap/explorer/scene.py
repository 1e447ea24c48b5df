"""
Scene Assembler
===============

Turns nodes, edges and a ViewState into everything the renderer draws:
extent, edge segments, cluster ellipses, cluster colors and node colors.

Records with non-finite positions are skipped, never reported.
"""

import math
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ndmap.config.defaults import CONFIG, get_value
from ndmap.config.traits import TRAITS, trait_label
from ndmap.geometry.colormap import trait_color
from ndmap.geometry.ellipse import EPSILON, MIN_POINTS, fit_ellipse
from ndmap.geometry.mapping import compute_extent
from ndmap.ingest.schema import normalize_cluster
from ndmap.models import (
    ClusterEllipse,
    Edge,
    EdgeSegment,
    Node,
    RadarPoint,
    Scene,
    ViewState,
)

ELLIPSE_SCALE = CONFIG['ellipse']['scale']
MIN_CLUSTER_POINTS = CONFIG['ellipse']['min_points']
CLUSTER_PALETTE = tuple(CONFIG['ellipse']['palette'])


def cluster_key(label) -> Optional[str]:
    """Cluster id for grouping, None when the node has no cluster."""
    return normalize_cluster(label)


def assign_cluster_colors(
    cluster_ids: Iterable[str],
    palette: Sequence[str] = CLUSTER_PALETTE,
) -> Dict[str, str]:
    """Sorted ids take palette colors in order, wrapping around."""
    ids = sorted(set(str(c) for c in cluster_ids))
    return {cid: palette[i % len(palette)] for i, cid in enumerate(ids)}


def cluster_points(nodes: Iterable[Node]) -> Dict[str, List[Tuple[float, float]]]:
    """Finite positions grouped by cluster id, in node order."""
    groups = defaultdict(list)
    for n in nodes:
        cid = cluster_key(n.cluster)
        if cid is None or not n.has_position:
            continue
        groups[cid].append((n.x, n.y))
    return dict(groups)


def fit_cluster_ellipses(
    nodes: Iterable[Node],
    scale: float = ELLIPSE_SCALE,
    min_points: int = MIN_CLUSTER_POINTS,
    epsilon: float = EPSILON,
) -> List[ClusterEllipse]:
    """One ellipse per cluster with at least min_points finite points (never fewer than 3)."""
    min_points = max(min_points, MIN_POINTS)
    ellipses = []
    for cid, pts in cluster_points(nodes).items():
        if len(pts) < min_points:
            continue
        fit = fit_ellipse(pts, k=scale, epsilon=epsilon)
        ellipses.append(ClusterEllipse(
            cluster_id=cid,
            cx=fit.cx,
            cy=fit.cy,
            width=fit.width,
            height=fit.height,
            angle=fit.angle,
        ))
    return ellipses


def build_segments(nodes: Iterable[Node], edges: Iterable[Edge]) -> List[EdgeSegment]:
    """Segments for edges whose endpoints both exist and have finite positions."""
    by_id = {}
    for n in nodes:
        by_id.setdefault(n.id, n)

    segments = []
    for e in edges:
        a = by_id.get(str(e.source_id))
        b = by_id.get(str(e.target_id))
        if a is None or b is None:
            continue
        if not (a.has_position and b.has_position):
            continue
        weight = e.weight if math.isfinite(e.weight) else 1.0
        segments.append(EdgeSegment(a.x, a.y, b.x, b.y, weight))
    return segments


def assemble_scene(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    view: ViewState,
    ellipse_scale: Optional[float] = None,
    palette: Optional[Sequence[str]] = None,
    config: Optional[dict] = None,
) -> Scene:
    """
    Derive one frame of drawable state. Pure function of its inputs.

    Extent padding, colormap and ellipse settings come from config (keys it
    lacks fall back to CONFIG); ellipse_scale and palette override it.
    """
    nodes = tuple(nodes)
    if ellipse_scale is None:
        ellipse_scale = get_value('ellipse', 'scale', config)
    if palette is None:
        palette = get_value('ellipse', 'palette', config)

    extent = compute_extent(
        ((n.x, n.y) for n in nodes),
        pad_fraction=get_value('extent', 'pad_fraction', config),
        empty=tuple(get_value('extent', 'empty', config)),
    )
    segments = build_segments(nodes, edges)

    fitted = fit_cluster_ellipses(
        nodes,
        ellipse_scale,
        min_points=get_value('ellipse', 'min_points', config),
        epsilon=get_value('ellipse', 'epsilon', config),
    )
    cluster_colors = assign_cluster_colors((e.cluster_id for e in fitted), palette)
    ellipses = fitted if view.show_ellipses else []

    vmin = get_value('colormap', 'vmin', config)
    vmax = get_value('colormap', 'vmax', config)
    stops = get_value('colormap', 'stops', config)
    missing = get_value('colormap', 'missing_color', config)
    node_colors = {
        n.id: trait_color(n.trait(view.trait), vmin, vmax, stops, missing)
        for n in nodes if n.has_position
    }

    return Scene(
        extent=extent,
        segments=tuple(segments),
        ellipses=tuple(ellipses),
        cluster_colors=cluster_colors,
        node_colors=node_colors,
        nodes=nodes,
    )


# =============================================================================
# PROFILE PANEL
# =============================================================================

def radar_data(node: Optional[Node], traits: Sequence[str] = TRAITS) -> List[RadarPoint]:
    """Radar axes in trait order; 0 for missing scores or no selection."""
    points = []
    for t in traits:
        value = node.trait(t) if node is not None else 0.0
        if not math.isfinite(value):
            value = 0.0
        points.append(RadarPoint(trait=trait_label(t), value=value))
    return points


def user_options(nodes: Iterable[Node]) -> List[Tuple[str, str]]:
    """Unique (id, label) pairs sorted by label, for the user picker."""
    seen = set()
    options = []
    for n in nodes:
        if n.id in seen:
            continue
        seen.add(n.id)
        options.append((n.id, n.display_label))
    return sorted(options, key=lambda o: o[1])
