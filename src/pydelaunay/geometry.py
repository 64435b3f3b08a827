from enum import Enum, IntEnum

import numpy as np
from numpy.typing import NDArray
from shewchuk import incircle_test
from shewchuk import orientation as exact_orientation

# Shewchuk's static error bound for the vectorised in-circle filter
_EPSILON = 2.0**-53
_ICC_ERRBOUND = (10.0 + 96.0 * _EPSILON) * _EPSILON


class Orientation(IntEnum):
    CLOCKWISE = -1
    COLLINEAR = 0
    COUNTERCLOCKWISE = 1


class PointInTriangle(Enum):
    inside = 0
    edge = 1
    vertex = 2
    outside = 3


def orient2d(pa: NDArray, pb: NDArray, pc: NDArray) -> float:
    """
    Plain floating point 2D orientation determinant.
    Returns > 0 if points are in counterclockwise order
    Returns < 0 if points are in clockwise order
    Returns = 0 if points are collinear

    The value is twice the signed area of the triangle. Use `orientation` when
    only the sign matters, it is exact.
    """
    detleft = (pa[0] - pc[0]) * (pb[1] - pc[1])
    detright = (pa[1] - pc[1]) * (pb[0] - pc[0])
    return float(detleft - detright)


def orientation(a: NDArray, b: NDArray, c: NDArray) -> Orientation:
    """
    Classify `c` against the directed line a -> b using Shewchuk's adaptive
    exact predicate, so collinear inputs are reported as COLLINEAR and never
    as a spurious turn.
    """
    return Orientation(
        exact_orientation(
            float(a[0]),
            float(a[1]),
            float(b[0]),
            float(b[1]),
            float(c[0]),
            float(c[1]),
        )
    )


def in_circumcircle(a: NDArray, b: NDArray, c: NDArray, p: NDArray) -> bool:
    """
    True if `p` lies strictly inside the circle through the counterclockwise
    triangle (a, b, c). Points on the circle are not inside.
    """
    return (
        incircle_test(
            float(p[0]),
            float(p[1]),
            float(a[0]),
            float(a[1]),
            float(b[0]),
            float(b[1]),
            float(c[0]),
            float(c[1]),
        )
        > 0
    )


def incircle_candidates(
    a: NDArray[np.floating],
    b: NDArray[np.floating],
    c: NDArray[np.floating],
    points: NDArray[np.floating],
) -> NDArray[np.bool_]:
    """
    Vectorised floating point in-circle filter.

    :param a, b, c: counterclockwise triangle vertices
    :param points: (n, 2) query points
    :return: mask of the points that are inside the circumcircle or too close
        to it for floating point to decide; every other point is certainly
        outside or on the circle
    """
    adx = a[0] - points[:, 0]
    ady = a[1] - points[:, 1]
    bdx = b[0] - points[:, 0]
    bdy = b[1] - points[:, 1]
    cdx = c[0] - points[:, 0]
    cdy = c[1] - points[:, 1]

    bdxcdy = bdx * cdy
    cdxbdy = cdx * bdy
    alift = adx * adx + ady * ady

    cdxady = cdx * ady
    adxcdy = adx * cdy
    blift = bdx * bdx + bdy * bdy

    adxbdy = adx * bdy
    bdxady = bdx * ady
    clift = cdx * cdx + cdy * cdy

    det = (
        alift * (bdxcdy - cdxbdy)
        + blift * (cdxady - adxcdy)
        + clift * (adxbdy - bdxady)
    )
    permanent = (
        (np.abs(bdxcdy) + np.abs(cdxbdy)) * alift
        + (np.abs(cdxady) + np.abs(adxcdy)) * blift
        + (np.abs(adxbdy) + np.abs(bdxady)) * clift
    )
    return det > -_ICC_ERRBOUND * permanent


def edge_orientations(
    triangle: NDArray[np.floating], point: NDArray[np.floating]
) -> list[Orientation]:
    """Orientation of `point` against each edge, edge i being opposite vertex i."""
    return [
        orientation(triangle[(i + 1) % 3], triangle[(i + 2) % 3], point)
        for i in range(3)
    ]


def point_inside_triangle(
    triangle: NDArray[np.floating],
    point: NDArray[np.floating],
    signs: list[Orientation] | None = None,
) -> tuple[PointInTriangle, int | None]:
    """
    Locate a point with respect to a counterclockwise triangle.

    Returns the position and, for `edge`, the position (0, 1 or 2) of the
    triangle vertex opposite the edge holding the point; for `vertex`, the
    position of the coincident vertex.

    :param signs: precomputed `edge_orientations(triangle, point)`
    """
    if signs is None:
        signs = edge_orientations(triangle, point)
    if Orientation.CLOCKWISE in signs:
        return PointInTriangle.outside, None

    on_edges = [i for i, sign in enumerate(signs) if sign == Orientation.COLLINEAR]
    if not on_edges:
        return PointInTriangle.inside, None
    if len(on_edges) == 1:
        return PointInTriangle.edge, on_edges[0]
    if len(on_edges) == 2:
        # the point sits on the vertex shared by both edges
        return PointInTriangle.vertex, 3 - on_edges[0] - on_edges[1]
    # zero area triangle
    return PointInTriangle.outside, None


def circumcenter(
    a: NDArray[np.floating], b: NDArray[np.floating], c: NDArray[np.floating]
) -> NDArray[np.floating] | None:
    """Circumcenter of triangle (a, b, c), or None if the triangle is degenerate."""
    ax, ay = float(a[0]), float(a[1])
    bx, by = float(b[0]), float(b[1])
    cx, cy = float(c[0]), float(c[1])

    d = 2.0 * (ax * (by - cy) + bx * (cy - ay) + cx * (ay - by))
    if d == 0.0:
        return None

    a_sq = ax * ax + ay * ay
    b_sq = bx * bx + by * by
    c_sq = cx * cx + cy * cy

    ux = (a_sq * (by - cy) + b_sq * (cy - ay) + c_sq * (ay - by)) / d
    uy = (a_sq * (cx - bx) + b_sq * (ax - cx) + c_sq * (bx - ax)) / d
    return np.array([ux, uy], dtype=np.float64)


def triangle_area(a: NDArray, b: NDArray, c: NDArray) -> float:
    """Signed area, positive for counterclockwise triangles."""
    return 0.5 * orient2d(a, b, c)


def polygon_area(coords: list[NDArray] | NDArray) -> float:
    """Signed area of polygon (positive for CCW)."""
    x = [p[0] for p in coords]
    y = [p[1] for p in coords]
    return 0.5 * sum(
        x[i] * y[i + 1] - x[i + 1] * y[i] for i in range(-1, len(coords) - 1)
    )
