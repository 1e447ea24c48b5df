"""
Data space ↔ pixel space.

Extent: padded bounding box over finite node positions.
CoordinateMapper: linear map of the extent into the margin-inset canvas
rectangle, Y flipped (data "up" = smaller pixel y).

Zero spans use 1 as the denominator, so every finite input maps to a
finite pixel coordinate.
"""

from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np

from ndmap.config.defaults import CONFIG

PAD_FRACTION = CONFIG['extent']['pad_fraction']
EMPTY_EXTENT = tuple(CONFIG['extent']['empty'])
MARGIN = CONFIG['canvas']['margin']


@dataclass(frozen=True)
class Extent:
    """Axis-aligned data-space rectangle."""
    xmin: float
    xmax: float
    ymin: float
    ymax: float

    @property
    def span_x(self) -> float:
        return self.xmax - self.xmin

    @property
    def span_y(self) -> float:
        return self.ymax - self.ymin


def _padded_range(values: np.ndarray, pad_fraction: float, empty: Tuple[float, float]) -> Tuple[float, float]:
    finite = values[np.isfinite(values)]
    if len(finite) == 0:
        return empty
    lo, hi = float(finite.min()), float(finite.max())
    pad = ((hi - lo) or 1.0) * pad_fraction
    return lo - pad, hi + pad


def compute_extent(
    positions: Iterable[Tuple[float, float]],
    pad_fraction: float = PAD_FRACTION,
    empty: Tuple[float, float, float, float] = EMPTY_EXTENT,
) -> Extent:
    """
    Padded bounding box of the finite coordinates.

    Each axis is padded by pad_fraction of its span (a zero span pads by
    pad_fraction). No positions → `empty` (default [-1, 1] × [-1, 1]); an
    axis with no finite value falls back to its `empty` range on its own.
    """
    pts = np.asarray(list(positions), dtype=np.float64).reshape(-1, 2)
    xmin, xmax, ymin, ymax = empty
    if len(pts) == 0:
        return Extent(xmin, xmax, ymin, ymax)

    xmin, xmax = _padded_range(pts[:, 0], pad_fraction, (xmin, xmax))
    ymin, ymax = _padded_range(pts[:, 1], pad_fraction, (ymin, ymax))
    return Extent(xmin, xmax, ymin, ymax)


@dataclass(frozen=True)
class CoordinateMapper:
    """
    Maps data coordinates into a W×H canvas with a fixed margin.

    Stateless; build one per (extent, canvas size) and share it between
    drawing and hit-testing.
    """
    extent: Extent
    width: float
    height: float
    margin: float = MARGIN

    @property
    def inner_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def inner_height(self) -> float:
        return self.height - 2 * self.margin

    @property
    def scale_x(self) -> float:
        """Pixels per data unit along x."""
        return self.inner_width / (self.extent.span_x or 1)

    @property
    def scale_y(self) -> float:
        """Pixels per data unit along y."""
        return self.inner_height / (self.extent.span_y or 1)

    def to_screen_x(self, x: float) -> float:
        u = (x - self.extent.xmin) / (self.extent.span_x or 1)
        return u * self.inner_width + self.margin

    def to_screen_y(self, y: float) -> float:
        v = 1 - (y - self.extent.ymin) / (self.extent.span_y or 1)
        return v * self.inner_height + self.margin

    def to_data_x(self, px: float) -> float:
        u = (px - self.margin) / (self.inner_width or 1)
        return self.extent.xmin + u * (self.extent.span_x or 1)

    def to_data_y(self, py: float) -> float:
        v = (py - self.margin) / (self.inner_height or 1)
        return self.extent.ymin + (1 - v) * (self.extent.span_y or 1)

    def to_screen(self, point: Tuple[float, float]) -> Tuple[float, float]:
        return self.to_screen_x(point[0]), self.to_screen_y(point[1])

    def to_data(self, pixel: Tuple[float, float]) -> Tuple[float, float]:
        return self.to_data_x(pixel[0]), self.to_data_y(pixel[1])
