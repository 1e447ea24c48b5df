"""Nearest-point hit testing in pixel space."""

import math
from typing import Iterable, Optional

from .mapping import CoordinateMapper


def pick_nearest(
    nodes: Iterable,
    mapper: CoordinateMapper,
    click_x: float,
    click_y: float,
) -> Optional[str]:
    """
    Id of the node whose projected position is closest to the click.

    Nodes need `id`, `x` and `y` attributes; nodes with a non-finite
    coordinate are skipped. Ties keep the first node in iteration order.
    Returns None when no node has finite coordinates.
    """
    best_id = None
    best_d2 = math.inf

    for node in nodes:
        if not (math.isfinite(node.x) and math.isfinite(node.y)):
            continue
        dx = mapper.to_screen_x(node.x) - click_x
        dy = mapper.to_screen_y(node.y) - click_y
        d2 = dx * dx + dy * dy
        if d2 < best_d2:
            best_d2 = d2
            best_id = node.id

    return best_id
