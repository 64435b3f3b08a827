from dataclasses import dataclass

import numpy as np
from loguru import logger
from numpy.typing import ArrayLike

from pydelaunay.geometry import (
    Orientation,
    in_circumcircle,
    incircle_candidates,
    orientation,
)
from pydelaunay.mesh import edge_to_triangles


@dataclass(frozen=True)
class CheckResult:
    """
    Verdict of `check_triangulation`.

    :param valid: True for a consistent Delaunay triangulation
    :param reason: why the check failed
    :param witness: (triangle row, point index) of a point found strictly
        inside the circumcircle of that triangle
    """

    valid: bool
    reason: str | None = None
    witness: tuple[int, int] | None = None

    def __bool__(self) -> bool:
        return self.valid


def _failure(reason: str, witness: tuple[int, int] | None = None) -> CheckResult:
    logger.debug(f"Not a Delaunay triangulation: {reason}")
    return CheckResult(valid=False, reason=reason, witness=witness)


def check_triangulation(points: ArrayLike, triangles: ArrayLike) -> CheckResult:
    """
    Verify that `triangles` is a Delaunay triangulation of `points`.

    The consistency pass requires an (m, 3) integer array of distinct, in
    range vertex indices, no edge shared by more than two triangles and no
    zero area triangle. The Delaunay pass requires the open circumcircle of
    every triangle to contain no point of `points`. Triangles may be given
    in either orientation.

    This is O(n * m) and meant as a validation tool.
    """
    points = np.asarray(points, dtype=np.float64)
    if points.size == 0:
        points = points.reshape(0, 2)
    if points.ndim != 2 or points.shape[1] != 2:
        return _failure(f"points must be an (n, 2) array, got shape {points.shape}")

    triangles = np.asarray(triangles)
    if triangles.size == 0:
        return CheckResult(valid=True)
    if triangles.ndim != 2 or triangles.shape[1] != 3:
        return _failure(f"triangles must be an (m, 3) array, got shape {triangles.shape}")
    if not np.issubdtype(triangles.dtype, np.integer):
        return _failure(f"triangle indices must be integers, got {triangles.dtype}")

    n_points = len(points)
    out_of_range = np.flatnonzero(np.any((triangles < 0) | (triangles >= n_points), axis=1))
    if len(out_of_range):
        row = int(out_of_range[0])
        return _failure(f"triangle {row} {triangles[row].tolist()} has an index out of range")

    repeated = np.flatnonzero(
        (triangles[:, 0] == triangles[:, 1])
        | (triangles[:, 1] == triangles[:, 2])
        | (triangles[:, 2] == triangles[:, 0])
    )
    if len(repeated):
        row = int(repeated[0])
        return _failure(f"triangle {row} {triangles[row].tolist()} repeats a vertex")

    for edge, rows in edge_to_triangles(triangles).items():
        if len(rows) > 2:
            return _failure(f"edge {edge} is shared by triangles {rows}")

    circles = []
    for row, (a, b, c) in enumerate(points[triangles]):
        turn = orientation(a, b, c)
        if turn == Orientation.COLLINEAR:
            return _failure(f"triangle {row} {triangles[row].tolist()} is degenerate")
        circles.append((a, b, c) if turn == Orientation.COUNTERCLOCKWISE else (a, c, b))

    for row, (a, b, c) in enumerate(circles):
        # cheap floating point filter, confirmed with the exact predicate
        candidates = incircle_candidates(a, b, c, points)
        candidates[triangles[row]] = False
        for point_idx in np.flatnonzero(candidates):
            if in_circumcircle(a, b, c, points[point_idx]):
                return _failure(
                    f"point {point_idx} lies inside the circumcircle of triangle {row}",
                    witness=(row, int(point_idx)),
                )

    return CheckResult(valid=True)


def is_delaunay_triangulation(points: ArrayLike, triangles: ArrayLike) -> bool:
    return check_triangulation(points, triangles).valid
