"""
ndmap Explorer CLI
==================

Command-line interface for the trait map.

Usage:
    ndmap -o map.png
    ndmap --nodes nodes.csv --edges edges.csv --trait Attention -o map.png
    ndmap --select "User 7" --radar radar.png -o map.png
    ndmap --interactive
"""

import argparse
import logging
import sys
from typing import List, Optional

import matplotlib.pyplot as plt

from ndmap.config.defaults import load_config
from ndmap.config.traits import TRAITS, TRAIT_DEFS
from ndmap.ingest.fetch import DatasetLoader
from ndmap.models import ViewState
from .session import MapSession


def _parse_click(value: str):
    try:
        x, y = (float(v) for v in value.split(','))
    except ValueError:
        raise argparse.ArgumentTypeError(f"--click expects X,Y in pixels, got {value!r}")
    return x, y


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='ndmap',
        description='Neurodiversity Map - trait map of profile nodes'
    )
    parser.add_argument('--nodes', help='Node table (URL or CSV path)')
    parser.add_argument('--edges', help='Edge table (URL or CSV path)')
    parser.add_argument('--config', help='YAML file overriding the defaults')
    parser.add_argument(
        '--trait',
        default=TRAITS[0],
        choices=TRAITS,
        help='Trait used to color nodes'
    )
    parser.add_argument('--no-edges', action='store_true', help='Hide edges')
    parser.add_argument('--edge-scale', type=float, default=None, help='Edge thickness multiplier (0.2-8)')
    parser.add_argument('--point-size', type=float, default=None, help='Point radius in pixels (2-10)')
    parser.add_argument('--no-ellipses', action='store_true', help='Hide cluster ellipses')

    selection = parser.add_mutually_exclusive_group()
    selection.add_argument('--select', help='Select a node by id')
    selection.add_argument('--focus', action='store_true', help='Select your own profile')
    selection.add_argument('--click', type=_parse_click, help='Select the node nearest to X,Y (pixels)')

    parser.add_argument('--width', type=float, default=None, help='Canvas width in pixels')
    parser.add_argument('--height', type=float, default=None, help='Canvas height in pixels')
    parser.add_argument('--pixel-ratio', type=float, default=None, help='Device pixel ratio')
    parser.add_argument('-o', '--output', help='Map image path (png, pdf, svg)')
    parser.add_argument('--radar', help='Radar chart image path for the selected node')
    parser.add_argument('--list', action='store_true', help='List users and exit')
    parser.add_argument('--traits', action='store_true', help='Print trait definitions and exit')
    parser.add_argument('--interactive', action='store_true', help='Open a window; click points to select')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    if args.traits:
        print("Trait definitions:")
        for t in TRAITS:
            print(f"  {t}: {TRAIT_DEFS[t]}")
        return 0

    config = load_config(args.config)
    canvas = config['canvas']

    settings = {'trait': args.trait}
    if args.no_edges:
        settings['show_edges'] = False
    if args.no_ellipses:
        settings['show_ellipses'] = False
    if args.edge_scale is not None:
        settings['edge_scale'] = args.edge_scale
    if args.point_size is not None:
        settings['point_radius'] = args.point_size

    try:
        view = ViewState.from_config(config, **settings)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    session = MapSession(
        view=view,
        width=args.width or canvas['width'],
        height=args.height or canvas['height'],
        pixel_ratio=args.pixel_ratio or canvas['pixel_ratio'],
        config=config,
    )

    loader = DatasetLoader.from_config(config)
    if args.nodes:
        loader.nodes_source = args.nodes
    if args.edges:
        loader.edges_source = args.edges

    print(f"Loading from {loader.nodes_source} and {loader.edges_source}...")
    state = session.load(loader)
    if state.is_failed:
        print(f"Error: could not load data: {state.reason}", file=sys.stderr)
        return 1

    dataset = state.dataset
    scene = session.scene()
    print(f"\nDataset:")
    print(f"  Nodes:    {len(dataset.nodes)}")
    print(f"  Edges:    {len(dataset.edges)} ({len(scene.segments)} drawable)")
    print(f"  Clusters: {len(scene.cluster_colors)}")
    for note in dataset.diagnostics:
        print(f"  Note: {note}")

    if args.list:
        options = session.user_options()
        print(f"\nUsers ({len(options)}):")
        for node_id, label in options:
            print(f"  {node_id}" if label == node_id else f"  {node_id}  ({label})")
        return 0

    if args.select:
        session.select(args.select)
    elif args.focus:
        session.focus_profile()
    elif args.click:
        session.click(*args.click)

    node = session.selected_node()
    if node is not None:
        print(f"\nSelected: {node.id}" + (f" (cluster {node.cluster})" if node.cluster else ""))
        for point in session.radar():
            print(f"  {point.trait:<20} {point.value:g}")

    if args.interactive:
        session.show()
        return 0

    if args.output:
        fig = session.render(args.output)
        plt.close(fig)
        print(f"Saved: {args.output}")
    if args.radar:
        fig = session.render_radar(args.radar)
        plt.close(fig)
        print(f"Saved: {args.radar}")

    session.close()
    return 0


if __name__ == '__main__':
    sys.exit(main())
