"""
Geometry package for ndmap.

Pure numerical helpers behind the map:

1. Colormap: trait score → RGB via interpolated stops.
2. Ellipse fit: cluster point cloud → covariance ellipse.
3. Mapping: padded data extent ↔ canvas pixels.
4. Picking: canvas click → nearest node id.

No drawing and no I/O here.
"""

from ndmap.geometry.colormap import (
    color_for,
    trait_color,
    hex_to_rgb,
    to_rgb01,
)
from ndmap.geometry.ellipse import EllipseFit, eig2x2, fit_ellipse
from ndmap.geometry.mapping import Extent, CoordinateMapper, compute_extent
from ndmap.geometry.picking import pick_nearest

__all__ = [
    'color_for',
    'trait_color',
    'hex_to_rgb',
    'to_rgb01',
    'EllipseFit',
    'eig2x2',
    'fit_ellipse',
    'Extent',
    'CoordinateMapper',
    'compute_extent',
    'pick_nearest',
]
