"""
ndmap Configuration
===================
All constants for loading, scene assembly and drawing.
Single source of truth. Every module reads its numbers from here.

Usage:
    from ndmap.config.defaults import CONFIG
    pad = CONFIG['extent']['pad_fraction']

    # With a YAML override file
    from ndmap.config.defaults import load_config
    config = load_config('ndmap.yaml')
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


CONFIG = {

    # =================================================================
    # Data sources
    # =================================================================
    'sources': {
        'nodes_url': (
            'https://raw.githubusercontent.com/laiadc/ND_test/main/'
            'neuroprofiles_with_clusters.csv'
        ),
        'edges_url': (
            'https://raw.githubusercontent.com/laiadc/ND_test/main/edges.csv'
        ),
        'timeout': 30.0,
    },

    # =================================================================
    # Drawing surface
    # =================================================================
    'canvas': {
        'width': 900,
        'height': 650,
        'margin': 10,
        'pixel_ratio': 1.0,
        'base_dpi': 100,
        'grid_divisions': 4,
        'axis_labels': ('KPCA-1', 'KPCA-2'),
    },

    # =================================================================
    # Extent padding
    # =================================================================
    'extent': {
        'pad_fraction': 0.08,
        'empty': (-1.0, 1.0, -1.0, 1.0),
    },

    # =================================================================
    # Cluster ellipses
    # =================================================================
    'ellipse': {
        'scale': 2.5,
        'epsilon': 1e-9,
        'min_points': 3,
        'fill_alpha': 0.25,
        'stroke_alpha': 0.35,
        'stroke_width': 2.0,
        'fallback_color': '#cccccc',
        'palette': [
            '#FADA7A', '#FFC7A7', '#FFCFD2', '#F1C0E8', '#CFBAF0',
            '#90DBF4', '#A3C4F3', '#8EECF5', '#98F5E1', '#B9FBC0',
        ],
    },

    # =================================================================
    # Trait colormap (purple ramp, 1..9 score domain)
    # =================================================================
    'colormap': {
        'stops': [
            (0.0, '#31083E'),
            (0.111, '#3D0A89'),
            (0.222, '#532496'),
            (0.333, '#6A3FA3'),
            (0.444, '#815AB0'),
            (0.555, '#9775BE'),
            (0.666, '#AD90CB'),
            (0.777, '#C3ABD8'),
            (0.888, '#D8C5E4'),
            (1.0, '#ECE0F0'),
        ],
        'missing_color': '#bbbbbb',
        'vmin': 1.0,
        'vmax': 9.0,
        'ticks': [1, 3, 5, 7, 9],
    },

    # =================================================================
    # Layer styling
    # =================================================================
    'style': {
        'grid_color': '#e5e7eb',
        'edge_color': '#6b7280',
        'edge_alpha': 0.7,
        'edge_min_width': 0.6,
        'highlight_color': '#111827',
        'highlight_width': 3.0,
        'highlight_offset': 4.0,
        'radar_fill': '#d182f1',
        'radar_fill_alpha': 0.45,
        'radar_stroke': '#111827',
        'radar_max': 9.0,
        'label_color': '#4b5563',
        'label_size': 12,
        'legend_width': 160,
        'legend_height': 8,
    },

    # =================================================================
    # View defaults and control limits
    # =================================================================
    'view': {
        'show_edges': True,
        'edge_scale': 1.0,
        'edge_scale_range': (0.2, 8.0),
        'point_radius': 5,
        'point_radius_range': (2, 10),
        'show_ellipses': True,
        'own_profile_id': 'User 1',
    },
}


ENV_OVERRIDES = {
    'NDMAP_NODES_URL': ('sources', 'nodes_url'),
    'NDMAP_EDGES_URL': ('sources', 'edges_url'),
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Build the effective configuration.

    Order: CONFIG defaults, then the YAML file (if given), then environment
    overrides for the source URLs.

    Raises:
        ValueError: If the YAML file does not contain a mapping
        FileNotFoundError: If path is given but does not exist
    """
    config = copy.deepcopy(CONFIG)

    if path is not None:
        path = Path(path)
        with open(path) as f:
            override = yaml.safe_load(f) or {}
        if not isinstance(override, dict):
            raise ValueError(f"Config file {path} must contain a mapping, got {type(override).__name__}")
        config = _deep_merge(config, override)

    for env_var, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            config[section][key] = value

    return config


def get_value(section: str, key: str, config: Optional[Dict[str, Any]] = None) -> Any:
    """Look up one setting, falling back to the defaults."""
    cfg = config or CONFIG
    return cfg.get(section, {}).get(key, CONFIG[section][key])
