"""
Covariance ellipse fitting.

Takes a 2-D point cloud (one cluster), produces the ellipse drawn around it:
mean → population covariance (+ epsilon) → closed-form 2×2 eigendecomposition
→ scaled axes and major-axis angle.

Axis multipliers: 1.5·k for the major axis, 2·k for the minor axis.
"""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from ndmap.config.defaults import CONFIG

EPSILON = CONFIG['ellipse']['epsilon']

# Fewer points than this do not define a covariance ellipse
MIN_POINTS = 3

# Below this L1 norm the first eigenvector candidate is treated as zero
_DEGENERATE_VEC = 1e-12

WIDTH_FACTOR = 1.5
HEIGHT_FACTOR = 2.0


@dataclass(frozen=True)
class EllipseFit:
    """Ellipse in data space. angle is in radians, counter-clockwise."""
    cx: float
    cy: float
    width: float
    height: float
    angle: float


def eig2x2(a: float, b: float, d: float) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """
    Eigen-decomposition of the symmetric matrix [[a, b], [b, d]].

    Returns
    -------
    (lambda_major, lambda_minor), (vx, vy)
        Eigenvalues (major first) and the unit eigenvector of the major one.
    """
    tr = a + d
    det = a * d - b * b
    tmp = math.sqrt(max(0.0, tr * tr / 4.0 - det))
    l1 = tr / 2.0 + tmp
    l2 = tr / 2.0 - tmp

    vx, vy = b, l1 - a
    if abs(vx) + abs(vy) < _DEGENERATE_VEC:
        vx, vy = l1 - d, b

    n = math.hypot(vx, vy) or 1.0
    return (l1, l2), (vx / n, vy / n)


def covariance_2d(points: np.ndarray, epsilon: float = EPSILON) -> Tuple[float, float, float]:
    """Population covariance (sxx, sxy, syy) with epsilon on the diagonal."""
    centered = points - points.mean(axis=0)
    n = len(points)
    sxx = float(np.sum(centered[:, 0] * centered[:, 0]) / n)
    syy = float(np.sum(centered[:, 1] * centered[:, 1]) / n)
    sxy = float(np.sum(centered[:, 0] * centered[:, 1]) / n)
    return sxx + epsilon, sxy, syy + epsilon


def fit_ellipse(
    points: Sequence[Tuple[float, float]],
    k: float = 1.0,
    epsilon: float = EPSILON,
) -> EllipseFit:
    """
    Fit a confidence ellipse to at least three points.

    Parameters
    ----------
    points : sequence of (x, y)
        Finite coordinates. Callers drop non-finite points first.
    k : float
        Scale applied to both axes.
    epsilon : float
        Diagonal regularization; keeps collinear or identical points defined.

    Returns
    -------
    EllipseFit
        width = 1.5·k·sqrt(λ_major), height = 2·k·sqrt(λ_minor),
        angle = atan2 of the major eigenvector.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < MIN_POINTS:
        raise ValueError(f"fit_ellipse needs at least {MIN_POINTS} points, got {len(pts)}")

    cx, cy = (float(v) for v in pts.mean(axis=0))
    sxx, sxy, syy = covariance_2d(pts, epsilon)
    (l1, l2), (vx, vy) = eig2x2(sxx, sxy, syy)

    return EllipseFit(
        cx=cx,
        cy=cy,
        width=WIDTH_FACTOR * k * math.sqrt(max(l1, 0.0)),
        height=HEIGHT_FACTOR * k * math.sqrt(max(l2, 0.0)),
        angle=math.atan2(vy, vx),
    )
