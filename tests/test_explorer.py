"""Tests for the renderer, session and CLI."""

import copy
import math

import matplotlib.pyplot as plt
import numpy as np
import pytest
from matplotlib.collections import LineCollection, PatchCollection
from matplotlib.patches import Ellipse

from ndmap.config.defaults import CONFIG, load_config
from ndmap.config.traits import TRAITS
from ndmap.explorer.cli import main
from ndmap.explorer.renderer import MapRenderer
from ndmap.explorer.scene import assemble_scene, radar_data
from ndmap.explorer.session import MapSession
from ndmap.geometry.colormap import DEFAULT_STOPS, MISSING_COLOR, hex_to_rgb, to_rgb01, trait_color
from ndmap.geometry.mapping import CoordinateMapper
from ndmap.models import Dataset, LoadState, Node, ViewState


def _by_gid(artists, prefix):
    return [a for a in artists if (a.get_gid() or '').startswith(prefix)]


class StubLoader:
    def __init__(self, state):
        self.state = state
        self.calls = 0

    def load(self):
        self.calls += 1
        return self.state


@pytest.fixture
def dataset(triangle_nodes, triangle_edges):
    return Dataset(nodes=tuple(triangle_nodes), edges=tuple(triangle_edges))


@pytest.fixture
def session(dataset):
    s = MapSession(width=400, height=300)
    s.load(StubLoader(LoadState.loaded(dataset)))
    return s


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

class TestRenderer:

    def _draw(self, nodes, edges, view, width=400, height=300):
        scene = assemble_scene(nodes, edges, view)
        mapper = CoordinateMapper(scene.extent, width, height)
        renderer = MapRenderer()
        fig, ax = renderer.create_figure(width, height)
        renderer.draw(ax, scene, view, mapper)
        return fig, ax, scene, mapper

    def test_layers(self, triangle_nodes, triangle_edges):
        view = ViewState(selected_id='b')
        _, ax, scene, mapper = self._draw(triangle_nodes, triangle_edges, view)

        assert len(ax.lines) == 10  # grid
        assert len(_by_gid(ax.patches, 'ellipse:')) == 1
        edges = _by_gid(ax.collections, 'edges')
        assert len(edges) == 1 and isinstance(edges[0], LineCollection)
        assert len(edges[0].get_segments()) == 2
        nodes = _by_gid(ax.collections, 'nodes')
        assert len(nodes) == 1 and isinstance(nodes[0], PatchCollection)
        assert len(nodes[0].get_paths()) == 4
        ring = _by_gid(ax.patches, 'highlight:b')
        assert len(ring) == 1
        assert ring[0].get_radius() == view.point_radius + 4
        assert ring[0].get_fill() is False
        assert ring[0].center == pytest.approx(mapper.to_screen((2.0, 0.0)))

    def test_toggles(self, triangle_nodes, triangle_edges):
        view = ViewState(show_edges=False, show_ellipses=False)
        _, ax, _, _ = self._draw(triangle_nodes, triangle_edges, view)
        assert _by_gid(ax.collections, 'edges') == []
        assert _by_gid(ax.patches, 'ellipse:') == []
        assert _by_gid(ax.patches, 'highlight:') == []

    def test_edge_width_floor(self, triangle_nodes, triangle_edges):
        renderer = MapRenderer()
        view = ViewState(edge_scale=0.2)
        _, ax, _, _ = self._draw(triangle_nodes, triangle_edges, view)
        widths = list(_by_gid(ax.collections, 'edges')[0].get_linewidths())
        # weight 2 × 0.2 = 0.4 px and 1 × 0.2 = 0.2 px both floor at 0.6 px
        assert widths == pytest.approx([renderer.px(0.6), renderer.px(0.6)])

    def test_ellipse_geometry(self, triangle_nodes, triangle_edges):
        _, ax, scene, mapper = self._draw(triangle_nodes, triangle_edges, ViewState())
        (patch,) = _by_gid(ax.patches, 'ellipse:')
        (e,) = scene.ellipses
        assert isinstance(patch, Ellipse)
        assert patch.width == pytest.approx(e.width * mapper.scale_x)
        assert patch.height == pytest.approx(e.height * mapper.scale_y)
        assert patch.angle == pytest.approx(-math.degrees(e.angle))
        assert patch.get_facecolor()[3] == pytest.approx(0.25)
        assert patch.get_edgecolor()[3] == pytest.approx(0.35)

    def test_node_fill_colors(self, triangle_nodes, triangle_edges):
        _, ax, _, _ = self._draw(triangle_nodes, triangle_edges, ViewState(trait='Attention'))
        (nodes,) = _by_gid(ax.collections, 'nodes')
        # a, b, c scored 1, 9, 5; d has no Attention score
        expected = [to_rgb01(trait_color(v)) for v in (1.0, 9.0, 5.0, None)]
        assert expected[3] == to_rgb01(hex_to_rgb(MISSING_COLOR))
        np.testing.assert_allclose(nodes.get_facecolor()[:, :3], np.array(expected))

    def test_caption_and_axis_labels(self, triangle_nodes, triangle_edges):
        _, ax, _, _ = self._draw(triangle_nodes, triangle_edges, ViewState(trait='Motivation'))
        (caption,) = _by_gid(ax.texts, 'caption')
        assert caption.get_text() == 'Color: Motivation'
        labels = [t.get_text() for t in _by_gid(ax.texts, 'axis-label')]
        assert labels == ['KPCA-1', 'KPCA-2']

    def test_legend_gradient_and_ticks(self, triangle_nodes, triangle_edges):
        _, ax, _, mapper = self._draw(triangle_nodes, triangle_edges, ViewState())
        (bar,) = _by_gid(ax.images, 'legend')
        cmap = bar.get_cmap()
        np.testing.assert_allclose(cmap(0.0)[:3], to_rgb01(hex_to_rgb(DEFAULT_STOPS[0][1])), atol=1e-6)
        np.testing.assert_allclose(cmap(1.0)[:3], to_rgb01(hex_to_rgb(DEFAULT_STOPS[-1][1])), atol=1e-6)

        ticks = _by_gid(ax.texts, 'legend-tick')
        assert [t.get_text() for t in ticks] == ['1', '3', '5', '7', '9']
        xs = [t.get_position()[0] for t in ticks]
        left, right = bar.get_extent()[:2]
        assert xs[0] == pytest.approx(left)
        assert xs[-1] == pytest.approx(right)
        assert xs == sorted(xs)
        # legend stays inside the canvas
        assert 0 < left < right < mapper.width
        assert ax.get_xlim() == (0, mapper.width)

    def test_selection_without_position_has_no_ring(self, triangle_nodes, triangle_edges):
        _, ax, _, _ = self._draw(triangle_nodes, triangle_edges, ViewState(selected_id='e'))
        assert _by_gid(ax.patches, 'highlight:') == []

    def test_axes_in_css_pixels(self, triangle_nodes, triangle_edges):
        _, ax, _, _ = self._draw(triangle_nodes, triangle_edges, ViewState(), width=500, height=200)
        assert ax.get_xlim() == (0, 500)
        assert ax.get_ylim() == (200, 0)

    def test_pixel_ratio_scales_backing_store(self, tmp_path, triangle_nodes, triangle_edges):
        view = ViewState()
        scene = assemble_scene(triangle_nodes, triangle_edges, view)
        mapper = CoordinateMapper(scene.extent, 300, 200)
        out = tmp_path / 'map.png'
        MapRenderer().render(scene, view, mapper, pixel_ratio=2.0, output_path=str(out))
        image = plt.imread(str(out))
        assert image.shape[:2] == (400, 600)

    def test_radar_chart(self, tmp_path):
        fig = MapRenderer().render_radar(radar_data(None), output_path=str(tmp_path / 'radar.png'))
        ax = fig.axes[0]
        assert ax.name == 'polar'
        assert len(ax.get_xticks()) == len(TRAITS)
        assert (tmp_path / 'radar.png').exists()


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class TestSession:

    def test_starts_loading(self):
        s = MapSession()
        assert s.state.status.value == 'loading'
        assert s.nodes == ()

    def test_click_selects_nearest(self, session):
        x, y = session.mapper().to_screen((2.0, 0.0))
        assert session.click(x + 1, y - 1) == 'b'
        assert session.view.selected_id == 'b'
        assert session.selected_node().id == 'b'

    def test_click_on_empty_dataset_keeps_selection(self):
        s = MapSession()
        s.apply(LoadState.loaded(Dataset()))
        assert s.click(10, 10) is None
        assert s.view.selected_id is None

    def test_select_and_clear(self, session):
        session.select('c')
        assert session.view.selected_id == 'c'
        session.select('missing')
        assert session.view.selected_id == 'c'
        session.select(None)
        assert session.selected_node() is None

    def test_focus_profile(self, dataset):
        config = copy.deepcopy(CONFIG)
        config['view']['own_profile_id'] = 'c'
        s = MapSession(config=config)
        s.apply(LoadState.loaded(dataset))
        s.focus_profile()
        assert s.view.selected_id == 'c'

    def test_update_replaces_view(self, session):
        before = session.view
        session.update(trait='Attention', point_radius=8)
        assert session.view is not before
        assert session.view.point_radius == 8
        with pytest.raises(ValueError):
            session.update(point_radius=50)

    def test_radar_follows_selection(self, session):
        session.select('b')
        values = {p.trait: p.value for p in session.radar()}
        assert values['Attention'] == 9.0

    def test_late_result_discarded_after_close(self, dataset):
        s = MapSession()
        s.close()
        assert s.apply(LoadState.loaded(dataset)) is False
        assert s.nodes == ()

    def test_failed_load_surfaces_message(self):
        s = MapSession()
        s.load(StubLoader(LoadState.failed('HTTP 404 fetching x')))
        assert s.state.is_failed
        assert 'HTTP 404' in s.status_message()
        fig = s.render()
        texts = [t.get_text() for t in fig.axes[0].texts]
        assert any('Could not load data' in t for t in texts)

    def test_reload_drops_stale_selection(self, session):
        session.select('a')
        session.apply(LoadState.loaded(Dataset()))
        assert session.view.selected_id is None

    def test_duplicate_ids_resolve_to_first_node(self):
        s = MapSession()
        s.apply(LoadState.loaded(Dataset(nodes=(Node('a', 0.0, 0.0), Node('a', 5.0, 5.0)))))
        s.select('a')
        node = s.selected_node()
        assert (node.x, node.y) == (0.0, 0.0)
        (ring,) = _by_gid(s.render().axes[0].patches, 'highlight:a')
        assert ring.center == pytest.approx(s.mapper().to_screen((node.x, node.y)))

    def test_yaml_overrides_reach_scene(self, tmp_path):
        path = tmp_path / 'ndmap.yaml'
        path.write_text(
            "extent:\n  pad_fraction: 0.5\n"
            "colormap:\n  missing_color: '#ff0000'\n"
            "ellipse:\n  min_points: 4\n"
        )
        s = MapSession(config=load_config(path))
        s.apply(LoadState.loaded(Dataset(nodes=(
            Node('a', 0.0, 0.0, cluster='1'),
            Node('b', 10.0, 0.0, cluster='1'),
            Node('c', 5.0, 5.0, cluster='1'),
        ))))
        scene = s.scene()
        assert scene.extent.xmin == pytest.approx(-5.0)
        assert scene.extent.xmax == pytest.approx(15.0)
        assert scene.node_colors['a'] == (255, 0, 0)
        assert scene.ellipses == ()

    def test_view_limits_from_config(self):
        config = copy.deepcopy(CONFIG)
        config['view']['point_radius_range'] = (2, 20)
        config['view']['point_radius'] = 15
        s = MapSession(config=config)
        assert s.view.point_radius == 15
        s.update(point_radius=18)
        assert s.view.point_radius == 18
        with pytest.raises(ValueError):
            s.update(point_radius=25)

    def test_render_matches_click_mapping(self, session):
        session.select('c')
        fig = session.render()
        ax = fig.axes[0]
        (ring,) = _by_gid(ax.patches, 'highlight:c')
        assert session.click(*ring.center) == 'c'


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

class TestCli:

    @pytest.fixture
    def sources(self, tmp_path, nodes_csv, edges_csv):
        nodes = tmp_path / 'nodes.csv'
        edges = tmp_path / 'edges.csv'
        nodes.write_text(nodes_csv)
        edges.write_text(edges_csv)
        return str(nodes), str(edges)

    def test_render_map_and_radar(self, tmp_path, sources, capsys):
        out = tmp_path / 'map.png'
        radar = tmp_path / 'radar.png'
        code = main([
            '--nodes', sources[0], '--edges', sources[1],
            '--trait', 'Attention', '--select', 'User 3',
            '-o', str(out), '--radar', str(radar),
        ])
        assert code == 0
        assert out.exists() and radar.exists()
        printed = capsys.readouterr().out
        assert 'Nodes:    6' in printed
        assert '(2 drawable)' in printed
        assert 'Selected: User 3 (cluster 1)' in printed

    def test_list_users(self, sources, capsys):
        assert main(['--nodes', sources[0], '--edges', sources[1], '--list']) == 0
        printed = capsys.readouterr().out
        assert 'Users (6)' in printed
        assert 'User 1  (Ada)' in printed

    def test_focus_profile(self, sources, capsys):
        assert main(['--nodes', sources[0], '--edges', sources[1], '--focus']) == 0
        assert 'Selected: User 1' in capsys.readouterr().out

    def test_load_failure_exit_code(self, tmp_path, capsys):
        code = main(['--nodes', str(tmp_path / 'x.csv'), '--edges', str(tmp_path / 'y.csv')])
        assert code == 1
        assert 'could not load data' in capsys.readouterr().err

    def test_invalid_view_setting(self, sources, capsys):
        code = main(['--nodes', sources[0], '--edges', sources[1], '--point-size', '40'])
        assert code == 2

    def test_config_file_sets_view_limits(self, tmp_path, sources):
        path = tmp_path / 'ndmap.yaml'
        path.write_text("view:\n  point_radius_range: [2, 20]\n  point_radius: 15\n")
        out = tmp_path / 'map.png'
        code = main([
            '--nodes', sources[0], '--edges', sources[1],
            '--config', str(path), '--point-size', '18', '-o', str(out),
        ])
        assert code == 0
        assert out.exists()

    def test_trait_definitions(self, capsys):
        assert main(['--traits']) == 0
        printed = capsys.readouterr().out
        for t in TRAITS:
            assert t in printed
