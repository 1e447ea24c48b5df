"""
Trait map explorer.

Scene assembly, matplotlib rendering, session state and the CLI.

Example:
    >>> from ndmap.explorer import MapSession
    >>> from ndmap.ingest import DatasetLoader
    >>>
    >>> session = MapSession()
    >>> session.load(DatasetLoader('nodes.csv', 'edges.csv'))
    >>> session.update(trait='Attention')
    >>> session.click(450, 320)
    >>> session.render('map.png')
"""

from .scene import (
    assemble_scene,
    assign_cluster_colors,
    build_segments,
    cluster_key,
    fit_cluster_ellipses,
    radar_data,
    user_options,
)
from .renderer import MapRenderer
from .session import MapSession

__all__ = [
    # Scene
    'assemble_scene',
    'assign_cluster_colors',
    'build_segments',
    'cluster_key',
    'fit_cluster_ellipses',
    'radar_data',
    'user_options',
    # Drawing
    'MapRenderer',
    # Session
    'MapSession',
]
