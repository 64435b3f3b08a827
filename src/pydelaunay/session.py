import time
from dataclasses import dataclass
from os import PathLike

import numpy as np
from loguru import logger
from numpy.typing import NDArray

from pydelaunay.checker import CheckResult, check_triangulation
from pydelaunay.config import BOUNDING_BOX, BOUNDING_TRIANGLE, DEFAULT_POINT_COUNT
from pydelaunay.geometry import PointInTriangle, point_inside_triangle
from pydelaunay.mesh import MeshSnapshot
from pydelaunay.point_file import generate_random_point_file, read_points
from pydelaunay.triangulator import DelaunayTriangulation, get_sorted_points
from pydelaunay.voronoi import VoronoiBuilder


@dataclass(frozen=True)
class BoundingBox:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def square(cls, extent: float) -> "BoundingBox":
        return cls(-extent, -extent, extent, extent)

    @property
    def corners(self) -> NDArray[np.floating]:
        return np.array(
            [
                [self.min_x, self.min_y],
                [self.max_x, self.min_y],
                [self.max_x, self.max_y],
                [self.min_x, self.max_y],
            ]
        )

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def contains_points(self, points: NDArray[np.floating]) -> NDArray[np.bool_]:
        return (
            (points[:, 0] >= self.min_x)
            & (points[:, 0] <= self.max_x)
            & (points[:, 1] >= self.min_y)
            & (points[:, 1] <= self.max_y)
        )


class DelaunaySession:
    """
    Triangulation, Voronoi diagram and validity check of a set of points
    restricted to a square domain.
    """

    def __init__(
        self,
        extent: float = BOUNDING_BOX,
        bounding_triangle: NDArray[np.floating] = BOUNDING_TRIANGLE,
    ):
        self.extent = extent
        self.bounding_box = BoundingBox.square(extent)
        self.triangulation = DelaunayTriangulation(bounding_triangle)
        self.voronoi = VoronoiBuilder()

        sentinels = self.triangulation.mesh.bounding_triangle
        for corner in self.bounding_box.corners:
            position, _ = point_inside_triangle(sentinels, corner)
            if position != PointInTriangle.inside:
                raise ValueError(
                    f"Bounding triangle does not enclose the domain corner {corner}"
                )

    # ------------------------------------------------------------------
    # triangulation

    def add_point(self, x: float, y: float) -> bool:
        """
        Insert a point of the domain. Returns False if it coincides with an
        existing vertex; raises ValueError if it lies outside the domain.
        """
        if not self.bounding_box.contains(x, y):
            logger.warning(f"Point [{x}, {y}] is not contained in the bounding box")
            raise ValueError(f"Point [{x}, {y}] is not contained in the bounding box")
        logger.debug(f"Adding point {x} {y}")
        return self.triangulation.add_point(x, y)

    def load_points(self, path: str | PathLike, sort: bool = False) -> int:
        """
        Insert every point of a point file, in file order unless `sort`.
        Points outside the domain are reported and skipped.

        :return: number of points added
        """
        points = read_points(path)
        inside = self.bounding_box.contains_points(points)
        if not np.all(inside):
            logger.warning(
                f"Skipping {np.count_nonzero(~inside)} points outside the bounding box"
            )
            points = points[inside]
        if sort:
            points, _ = get_sorted_points(points)

        start = time.perf_counter()
        n_added = self.triangulation.add_points(points)
        elapsed = time.perf_counter() - start
        logger.info(
            f"Delaunay Triangulation: inserted {n_added} of {len(points)} points in {elapsed:.3f} s"
        )
        return n_added

    def generate_points_file(
        self,
        path: str | PathLike,
        n_points: int = DEFAULT_POINT_COUNT,
        seed: int | None = None,
    ) -> NDArray[np.floating]:
        return generate_random_point_file(path, self.extent, n_points, seed)

    def clear_triangulation(self) -> None:
        self.triangulation.clear_triangulation()

    def get_vertices(self) -> NDArray[np.floating]:
        return self.triangulation.get_vertices()

    def get_triangles(self) -> NDArray[np.integer]:
        return self.triangulation.get_triangles()

    def get_active_mask(self) -> NDArray[np.bool_]:
        return self.triangulation.get_active_mask()

    def snapshot(self) -> MeshSnapshot:
        return self.triangulation.snapshot()

    # ------------------------------------------------------------------
    # Voronoi diagram

    def refresh_voronoi(self) -> None:
        self.voronoi.refresh_diagram(self.snapshot())

    def clear_voronoi(self) -> None:
        self.voronoi.clear_diagram()

    def voronoi_vertices(self) -> NDArray[np.floating]:
        return self.voronoi.vertices

    def voronoi_edges(self) -> NDArray[np.integer]:
        return self.voronoi.edges

    # ------------------------------------------------------------------
    # validation

    def check_triangulation(self) -> CheckResult:
        """Run the Delaunay checker on the current triangulation, sentinels excluded."""
        points, triangles = self.snapshot().without_sentinels()
        result = check_triangulation(points, triangles)
        if result.valid:
            logger.info("Success: it is a Delaunay triangulation!")
        else:
            logger.warning(f"Error: it is NOT a Delaunay triangulation! ({result.reason})")
        return result
