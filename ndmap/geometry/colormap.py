"""
Trait colormap.

Piecewise-linear interpolation over ordered (position, hex) stops.
Each RGB channel is interpolated independently and rounded half up.
"""

import math
from typing import Optional, Sequence, Tuple

from ndmap.config.defaults import CONFIG

RGB = Tuple[int, int, int]

DEFAULT_STOPS = tuple(CONFIG['colormap']['stops'])
MISSING_COLOR = CONFIG['colormap']['missing_color']


def hex_to_rgb(color: str) -> RGB:
    """'#RRGGBB' (or '#RGB') -> (r, g, b) ints."""
    h = color.lstrip('#')
    if len(h) == 3:
        h = ''.join(c * 2 for c in h)
    if len(h) != 6:
        raise ValueError(f"Not a hex color: {color!r}")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def to_rgb01(rgb: RGB) -> Tuple[float, float, float]:
    """(r, g, b) ints -> matplotlib float triple."""
    return rgb[0] / 255.0, rgb[1] / 255.0, rgb[2] / 255.0


def _round_half_up(v: float) -> int:
    return int(math.floor(v + 0.5))


def color_for(t: float, stops: Sequence[Tuple[float, str]] = DEFAULT_STOPS) -> RGB:
    """
    Map t in [0, 1] to a color.

    t is clamped to [0, 1] (NaN counts as 0). The bracketing stop pair is
    found by advancing while t is past the next stop's position.
    """
    if t is None or math.isnan(t):
        t = 0.0
    t = min(1.0, max(0.0, float(t)))

    i = 0
    while i < len(stops) - 1 and t > stops[i + 1][0]:
        i += 1

    t0, c0 = stops[i]
    t1, c1 = stops[min(i + 1, len(stops) - 1)]
    u = (t - t0) / ((t1 - t0) or 1)

    r0, g0, b0 = hex_to_rgb(c0)
    r1, g1, b1 = hex_to_rgb(c1)
    return (
        _round_half_up(r0 + (r1 - r0) * u),
        _round_half_up(g0 + (g1 - g0) * u),
        _round_half_up(b0 + (b1 - b0) * u),
    )


def trait_color(
    value: Optional[float],
    vmin: float = CONFIG['colormap']['vmin'],
    vmax: float = CONFIG['colormap']['vmax'],
    stops: Sequence[Tuple[float, str]] = DEFAULT_STOPS,
    missing_color: str = MISSING_COLOR,
) -> RGB:
    """Color for a raw trait score; the gray sentinel when the score is missing."""
    if value is None:
        return hex_to_rgb(missing_color)
    try:
        value = float(value)
    except (TypeError, ValueError):
        return hex_to_rgb(missing_color)
    if math.isnan(value):
        return hex_to_rgb(missing_color)

    t = (value - vmin) / ((vmax - vmin) or 1)
    return color_for(min(1.0, max(0.0, t)), stops)
