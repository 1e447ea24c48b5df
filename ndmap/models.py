"""
ndmap Models
============

Data structures shared by ingest, scene assembly and rendering.
Zero calculations, just containers.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ndmap.config.defaults import CONFIG, get_value
from ndmap.config.traits import TRAITS, validate_trait
from ndmap.geometry.colormap import RGB
from ndmap.geometry.mapping import Extent


# =============================================================================
# INPUT RECORDS
# =============================================================================

@dataclass(frozen=True)
class Node:
    """One profile."""
    id: str
    x: float
    y: float
    cluster: Optional[str] = None
    traits: Dict[str, float] = field(default_factory=dict)
    label: Optional[str] = None

    @property
    def has_position(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    @property
    def display_label(self) -> str:
        return self.label or self.id

    def trait(self, name: str) -> float:
        """Score for a trait, NaN when absent."""
        return self.traits.get(name, math.nan)


@dataclass(frozen=True)
class Edge:
    """Weighted link between two node ids. May reference unknown ids."""
    source_id: str
    target_id: str
    weight: float = 1.0


@dataclass(frozen=True)
class Dataset:
    """Everything loaded from the two source tables."""
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()
    diagnostics: Tuple[str, ...] = ()

    def node_by_id(self) -> Dict[str, Node]:
        """id -> node; the first node wins when an id repeats."""
        by_id = {}
        for n in self.nodes:
            by_id.setdefault(n.id, n)
        return by_id


# =============================================================================
# LOAD RESULT
# =============================================================================

class LoadStatus(Enum):
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True)
class LoadState:
    """Outcome of fetching the source tables."""
    status: LoadStatus
    dataset: Dataset = field(default_factory=Dataset)
    reason: Optional[str] = None

    @classmethod
    def loading(cls) -> "LoadState":
        return cls(LoadStatus.LOADING)

    @classmethod
    def loaded(cls, dataset: Dataset) -> "LoadState":
        return cls(LoadStatus.LOADED, dataset=dataset)

    @classmethod
    def failed(cls, reason: str) -> "LoadState":
        return cls(LoadStatus.FAILED, reason=reason)

    @property
    def is_loaded(self) -> bool:
        return self.status is LoadStatus.LOADED

    @property
    def is_failed(self) -> bool:
        return self.status is LoadStatus.FAILED


# =============================================================================
# VIEW STATE
# =============================================================================

_VIEW = CONFIG['view']

# Settings ViewState.from_config reads from config['view']
_CONFIGURED = (
    'show_edges', 'edge_scale', 'point_radius', 'show_ellipses',
    'edge_scale_range', 'point_radius_range',
)


@dataclass(frozen=True)
class ViewState:
    """
    Display settings and selection. Replace, don't mutate.

    The *_range fields are the control limits the settings are validated
    against; they ride along through with_changes().
    """
    trait: str = TRAITS[0]
    show_edges: bool = _VIEW['show_edges']
    edge_scale: float = _VIEW['edge_scale']
    point_radius: float = _VIEW['point_radius']
    show_ellipses: bool = _VIEW['show_ellipses']
    selected_id: Optional[str] = None
    edge_scale_range: Tuple[float, float] = field(
        default=_VIEW['edge_scale_range'], repr=False, compare=False)
    point_radius_range: Tuple[float, float] = field(
        default=_VIEW['point_radius_range'], repr=False, compare=False)

    def __post_init__(self):
        validate_trait(self.trait)
        lo, hi = self.edge_scale_range
        if not lo <= self.edge_scale <= hi:
            raise ValueError(f"edge_scale must be in [{lo}, {hi}], got {self.edge_scale}")
        lo, hi = self.point_radius_range
        if not lo <= self.point_radius <= hi:
            raise ValueError(f"point_radius must be in [{lo}, {hi}], got {self.point_radius}")

    @classmethod
    def from_config(cls, config: Optional[dict] = None, **settings) -> "ViewState":
        """Defaults and limits from config['view'], then explicit settings on top."""
        values = {key: get_value('view', key, config) for key in _CONFIGURED}
        values['edge_scale_range'] = tuple(values['edge_scale_range'])
        values['point_radius_range'] = tuple(values['point_radius_range'])
        values.update(settings)
        return cls(**values)

    def with_changes(self, **changes) -> "ViewState":
        return replace(self, **changes)

    def select(self, node_id: Optional[str]) -> "ViewState":
        return replace(self, selected_id=node_id or None)


# =============================================================================
# DERIVED DRAWABLES
# =============================================================================

@dataclass(frozen=True)
class EdgeSegment:
    """Edge with both endpoints resolved to finite data coordinates."""
    x1: float
    y1: float
    x2: float
    y2: float
    weight: float


@dataclass(frozen=True)
class ClusterEllipse:
    """Fitted ellipse for one cluster (data space)."""
    cluster_id: str
    cx: float
    cy: float
    width: float
    height: float
    angle: float


@dataclass(frozen=True)
class Scene:
    """Complete drawable state for one frame."""
    extent: Extent
    segments: Tuple[EdgeSegment, ...]
    ellipses: Tuple[ClusterEllipse, ...]
    cluster_colors: Dict[str, str]
    node_colors: Dict[str, RGB]
    nodes: Tuple[Node, ...]


@dataclass(frozen=True)
class RadarPoint:
    """One radar axis for the selected profile."""
    trait: str
    value: float


def radar_values(points: List[RadarPoint]) -> List[float]:
    return [p.value for p in points]
