"""
ndmap Map Renderer
==================

Render the trait map with matplotlib.
Zero calculations, just draw what the scene holds.

The axes are laid out in CSS pixels: x runs 0..W, y runs H..0 (top-left
origin, like a canvas). Figure dpi is base_dpi × pixel_ratio, so the saved
image has W·ratio × H·ratio device pixels while all coordinates stay logical.
"""

import logging
import math
from typing import Callable, List, Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.collections import LineCollection, PatchCollection
from matplotlib.colors import LinearSegmentedColormap
from matplotlib.patches import Circle, Ellipse

from ndmap.config.defaults import CONFIG
from ndmap.geometry.colormap import hex_to_rgb, to_rgb01
from ndmap.geometry.mapping import CoordinateMapper
from ndmap.models import RadarPoint, Scene, ViewState, radar_values

logger = logging.getLogger(__name__)

# Layer order, back to front
Z_GRID, Z_ELLIPSE, Z_EDGE, Z_NODE, Z_HIGHLIGHT, Z_LEGEND, Z_MESSAGE = range(7)


class MapRenderer:
    """Render a Scene onto matplotlib axes."""

    def __init__(self, config: dict = None):
        self.config = config or CONFIG
        self.style = self.config['style']
        self.canvas = self.config['canvas']
        self.ellipse = self.config['ellipse']

    def px(self, pixels: float) -> float:
        """Logical pixels → points (matplotlib line widths)."""
        return pixels * 72.0 / self.canvas['base_dpi']

    # -------------------------------------------------------------------------
    # Figure setup
    # -------------------------------------------------------------------------

    def create_figure(self, width: float, height: float, pixel_ratio: float = 1.0):
        """Figure of width×height logical pixels with one full-bleed axes."""
        base_dpi = self.canvas['base_dpi']
        fig = plt.figure(
            figsize=(width / base_dpi, height / base_dpi),
            dpi=base_dpi * (pixel_ratio or 1.0),
        )
        ax = fig.add_axes([0, 0, 1, 1])
        return fig, ax

    # -------------------------------------------------------------------------
    # Layers
    # -------------------------------------------------------------------------

    def draw(
        self,
        ax,
        scene: Scene,
        view: ViewState,
        mapper: CoordinateMapper,
        message: Optional[str] = None,
    ):
        """Clear ax and draw every enabled layer."""
        ax.clear()
        ax.set_xlim(0, mapper.width)
        ax.set_ylim(mapper.height, 0)
        ax.set_axis_off()

        self.draw_grid(ax, mapper)
        if view.show_ellipses:
            self.draw_ellipses(ax, scene, mapper)
        if view.show_edges:
            self.draw_edges(ax, scene, view, mapper)
        self.draw_nodes(ax, scene, view, mapper)
        self.draw_highlight(ax, scene, view, mapper)
        self.draw_labels(ax, view, mapper)
        self.draw_legend(ax, mapper)

        if message:
            ax.text(
                mapper.width / 2, mapper.height / 2, message,
                ha='center', va='center', fontsize=10, color='#991b1b',
                zorder=Z_MESSAGE,
            )

    def draw_grid(self, ax, mapper: CoordinateMapper):
        m = mapper.margin
        w, h = mapper.width, mapper.height
        div = self.canvas['grid_divisions']
        color = self.style['grid_color']

        for gx in range(div + 1):
            x = m + gx * (w - 2 * m) / div
            ax.plot([x, x], [m, h - m], color=color, linewidth=self.px(1), zorder=Z_GRID)
        for gy in range(div + 1):
            y = m + gy * (h - 2 * m) / div
            ax.plot([m, w - m], [y, y], color=color, linewidth=self.px(1), zorder=Z_GRID)

    def draw_ellipses(self, ax, scene: Scene, mapper: CoordinateMapper):
        # Each axis is scaled by its own pixels-per-unit ratio
        for e in scene.ellipses:
            color = scene.cluster_colors.get(e.cluster_id, self.ellipse['fallback_color'])
            rgb = to_rgb01(hex_to_rgb(color))
            rx = (e.width / 2) * mapper.scale_x
            ry = (e.height / 2) * mapper.scale_y
            ax.add_patch(Ellipse(
                (mapper.to_screen_x(e.cx), mapper.to_screen_y(e.cy)),
                width=2 * rx,
                height=2 * ry,
                angle=-math.degrees(e.angle),
                facecolor=(*rgb, self.ellipse['fill_alpha']),
                edgecolor=(*rgb, self.ellipse['stroke_alpha']),
                linewidth=self.px(self.ellipse['stroke_width']),
                zorder=Z_ELLIPSE,
                gid=f"ellipse:{e.cluster_id}",
            ))

    def draw_edges(self, ax, scene: Scene, view: ViewState, mapper: CoordinateMapper):
        if not scene.segments:
            return
        lines = []
        widths = []
        for s in scene.segments:
            lines.append([
                (mapper.to_screen_x(s.x1), mapper.to_screen_y(s.y1)),
                (mapper.to_screen_x(s.x2), mapper.to_screen_y(s.y2)),
            ])
            widths.append(self.px(max(self.style['edge_min_width'], s.weight * view.edge_scale)))

        ax.add_collection(LineCollection(
            lines,
            colors=self.style['edge_color'],
            alpha=self.style['edge_alpha'],
            linewidths=widths,
            capstyle='round',
            zorder=Z_EDGE,
            gid='edges',
        ))

    def draw_nodes(self, ax, scene: Scene, view: ViewState, mapper: CoordinateMapper):
        circles = []
        colors = []
        for n in scene.nodes:
            if not n.has_position:
                continue
            circles.append(Circle(
                (mapper.to_screen_x(n.x), mapper.to_screen_y(n.y)),
                radius=view.point_radius,
            ))
            colors.append(to_rgb01(scene.node_colors[n.id]))
        if not circles:
            return

        ax.add_collection(PatchCollection(
            circles,
            facecolors=colors,
            edgecolors='none',
            zorder=Z_NODE,
            gid='nodes',
        ))

    def draw_highlight(self, ax, scene: Scene, view: ViewState, mapper: CoordinateMapper):
        if not view.selected_id:
            return
        node = next((n for n in scene.nodes if n.id == view.selected_id), None)
        if node is None or not node.has_position:
            return

        ax.add_patch(Circle(
            (mapper.to_screen_x(node.x), mapper.to_screen_y(node.y)),
            radius=view.point_radius + self.style['highlight_offset'],
            fill=False,
            edgecolor=self.style['highlight_color'],
            linewidth=self.px(self.style['highlight_width']),
            zorder=Z_HIGHLIGHT,
            gid=f"highlight:{node.id}",
        ))

    def draw_labels(self, ax, view: ViewState, mapper: CoordinateMapper):
        """Axis names in the top-left/bottom-right corners, trait caption top-right."""
        m = mapper.margin
        w, h = mapper.width, mapper.height
        first_axis, second_axis = self.canvas['axis_labels']
        text_style = dict(
            fontsize=self.px(self.style['label_size']),
            color=self.style['label_color'],
            zorder=Z_LEGEND,
        )

        ax.text(m + 8, m + 6, first_axis, ha='left', va='top', gid='axis-label', **text_style)
        ax.text(w - m - 8, h - m - 6, second_axis, ha='right', va='bottom', gid='axis-label', **text_style)
        ax.text(w - m - 8, m + 6, f"Color: {view.trait}", ha='right', va='top', gid='caption', **text_style)

    def trait_colormap(self) -> LinearSegmentedColormap:
        stops = [(float(pos), color) for pos, color in self.config['colormap']['stops']]
        return LinearSegmentedColormap.from_list('ndmap_trait', stops)

    def draw_legend(self, ax, mapper: CoordinateMapper):
        """Horizontal gradient of the trait colormap with score ticks, bottom-left."""
        cmap_cfg = self.config['colormap']
        bar_w = self.style['legend_width']
        bar_h = self.style['legend_height']
        x0 = mapper.margin + 8
        y0 = mapper.height - mapper.margin - 30

        ax.imshow(
            np.linspace(0.0, 1.0, 256).reshape(1, -1),
            cmap=self.trait_colormap(),
            aspect='auto',
            extent=(x0, x0 + bar_w, y0 + bar_h, y0),
            zorder=Z_LEGEND,
            gid='legend',
        )

        vmin, vmax = cmap_cfg['vmin'], cmap_cfg['vmax']
        for tick in cmap_cfg['ticks']:
            x = x0 + (tick - vmin) / ((vmax - vmin) or 1) * bar_w
            ax.text(
                x, y0 + bar_h + 3, f"{tick:g}",
                ha='center', va='top',
                fontsize=self.px(self.style['label_size']),
                color=self.style['label_color'],
                zorder=Z_LEGEND,
                gid='legend-tick',
            )

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def render(
        self,
        scene: Scene,
        view: ViewState,
        mapper: CoordinateMapper,
        pixel_ratio: float = 1.0,
        output_path: Optional[str] = None,
        message: Optional[str] = None,
    ):
        """Render the map to a new figure, saving it when output_path is given."""
        fig, ax = self.create_figure(mapper.width, mapper.height, pixel_ratio)
        self.draw(ax, scene, view, mapper, message=message)

        if output_path:
            fig.savefig(output_path, dpi=fig.dpi)
            logger.info("Saved map: %s", output_path)

        return fig

    def render_radar(
        self,
        points: List[RadarPoint],
        output_path: Optional[str] = None,
        title: Optional[str] = None,
    ):
        """Radar chart of one profile (radius 0..radar_max)."""
        labels = [p.trait for p in points]
        values = radar_values(points)
        n = len(points)
        angles = [2 * math.pi * i / n for i in range(n)]

        fig = plt.figure(figsize=(4, 4))
        ax = fig.add_subplot(111, projection='polar')
        ax.set_theta_offset(math.pi / 2)
        ax.set_theta_direction(-1)

        ax.fill(
            angles + angles[:1], values + values[:1],
            color=self.style['radar_fill'], alpha=self.style['radar_fill_alpha'],
        )
        ax.plot(
            angles + angles[:1], values + values[:1],
            color=self.style['radar_stroke'], linewidth=1,
        )
        ax.set_xticks(angles)
        ax.set_xticklabels(labels, fontsize=8)
        ax.set_ylim(0, self.style['radar_max'])
        ax.tick_params(axis='y', labelsize=8)
        if title:
            ax.set_title(title, fontsize=10)

        fig.tight_layout()
        if output_path:
            fig.savefig(output_path, dpi=150)
            logger.info("Saved radar: %s", output_path)

        return fig

    def connect_clicks(self, fig, ax, on_click: Callable[[float, float], None]) -> int:
        """Forward left clicks inside ax as (x, y) logical pixels."""
        def _handler(event):
            if event.inaxes is not ax or event.xdata is None or event.ydata is None:
                return
            if event.button != 1:
                return
            on_click(event.xdata, event.ydata)

        return fig.canvas.mpl_connect('button_press_event', _handler)
