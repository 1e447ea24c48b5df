"""
Map Session
===========

Application state for one explorer instance: load state, view state,
canvas geometry. Every change produces a new ViewState; scene and mapper
are derived on demand from the current snapshot.

A closed session ignores load results that arrive later.
"""

import logging
from typing import List, Optional, Tuple

import matplotlib.pyplot as plt

from ndmap.config.defaults import CONFIG
from ndmap.geometry.mapping import CoordinateMapper
from ndmap.geometry.picking import pick_nearest
from ndmap.models import Edge, LoadState, Node, RadarPoint, Scene, ViewState
from .renderer import MapRenderer
from .scene import assemble_scene, radar_data, user_options

logger = logging.getLogger(__name__)


class MapSession:
    """One explorer instance."""

    def __init__(
        self,
        view: Optional[ViewState] = None,
        width: float = CONFIG['canvas']['width'],
        height: float = CONFIG['canvas']['height'],
        pixel_ratio: float = CONFIG['canvas']['pixel_ratio'],
        config: dict = None,
    ):
        self.config = config or CONFIG
        self.view = view or ViewState.from_config(self.config)
        self.width = width
        self.height = height
        self.pixel_ratio = pixel_ratio
        self.state = LoadState.loading()
        self.closed = False
        self.renderer = MapRenderer(self.config)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self, loader) -> LoadState:
        """Run loader.load() and apply the result."""
        self.state = LoadState.loading()
        result = loader.load()
        self.apply(result)
        return self.state

    def apply(self, result: LoadState) -> bool:
        """Adopt a load result. Returns False if the session is already closed."""
        if self.closed:
            logger.debug("Session closed, discarding %s load result", result.status.value)
            return False
        self.state = result
        if self.view.selected_id and self.view.selected_id not in self._node_ids():
            self.view = self.view.select(None)
        return True

    def close(self):
        self.closed = True

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return self.state.dataset.nodes

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return self.state.dataset.edges

    def _node_ids(self):
        return {n.id for n in self.nodes}

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    def scene(self) -> Scene:
        return assemble_scene(
            self.nodes,
            self.edges,
            self.view,
            config=self.config,
        )

    def mapper(self, scene: Optional[Scene] = None) -> CoordinateMapper:
        scene = scene or self.scene()
        return CoordinateMapper(
            scene.extent,
            self.width,
            self.height,
            margin=self.config['canvas']['margin'],
        )

    def status_message(self) -> Optional[str]:
        if self.state.is_failed:
            return f"Could not load data: {self.state.reason}"
        return None

    # -------------------------------------------------------------------------
    # Interaction
    # -------------------------------------------------------------------------

    def update(self, **changes) -> ViewState:
        """Replace view settings (trait, toggles, sizes, selection)."""
        self.view = self.view.with_changes(**changes)
        return self.view

    def select(self, node_id: Optional[str]) -> ViewState:
        """Select a node by id; None or '' clears the selection."""
        if node_id and node_id not in self._node_ids():
            logger.warning("Unknown node id %r, selection unchanged", node_id)
            return self.view
        self.view = self.view.select(node_id)
        return self.view

    def click(self, x: float, y: float) -> Optional[str]:
        """Select the node nearest to a canvas click (logical pixels)."""
        node_id = pick_nearest(self.nodes, self.mapper(), x, y)
        if node_id is not None:
            self.view = self.view.select(node_id)
        return node_id

    def focus_profile(self) -> ViewState:
        """Jump to the viewer's own profile."""
        return self.select(self.config['view']['own_profile_id'])

    def selected_node(self) -> Optional[Node]:
        if not self.view.selected_id:
            return None
        return self.state.dataset.node_by_id().get(self.view.selected_id)

    def radar(self) -> List[RadarPoint]:
        return radar_data(self.selected_node())

    def user_options(self) -> List[Tuple[str, str]]:
        return user_options(self.nodes)

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def render(self, output_path: Optional[str] = None):
        scene = self.scene()
        return self.renderer.render(
            scene,
            self.view,
            self.mapper(scene),
            pixel_ratio=self.pixel_ratio,
            output_path=output_path,
            message=self.status_message(),
        )

    def render_radar(self, output_path: Optional[str] = None):
        node = self.selected_node()
        title = f"{node.id} (cluster {node.cluster})" if node and node.cluster else (node.id if node else None)
        return self.renderer.render_radar(self.radar(), output_path=output_path, title=title)

    def show(self):
        """Interactive window; clicking a point selects it and redraws."""
        fig = self.render()
        ax = fig.axes[0]

        def on_click(x, y):
            node_id = self.click(x, y)
            if node_id is None:
                return
            print(f"Selected: {node_id}")
            for point in self.radar():
                print(f"  {point.trait:<20} {point.value:g}")
            scene = self.scene()
            self.renderer.draw(ax, scene, self.view, self.mapper(scene), message=self.status_message())
            fig.canvas.draw_idle()

        self.renderer.connect_clicks(fig, ax, on_click)
        plt.show()
