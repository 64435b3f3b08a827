from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np
from loguru import logger
from numpy.typing import NDArray

from pydelaunay.config import BOUNDING_TRIANGLE, N_SENTINELS
from pydelaunay.geometry import (
    Orientation,
    PointInTriangle,
    edge_orientations,
    in_circumcircle,
    point_inside_triangle,
)
from pydelaunay.mesh import MeshSnapshot, MeshStore


@dataclass
class ContainingTriangle:
    idx: int
    position: PointInTriangle
    vertex_pos: int | None


def _scan_active_triangles(
    mesh: MeshStore, point: NDArray[np.floating]
) -> ContainingTriangle:
    for triangle_idx in np.flatnonzero(mesh.active):
        position, vertex_pos = point_inside_triangle(
            mesh.triangle_points(triangle_idx), point
        )
        if position != PointInTriangle.outside:
            return ContainingTriangle(int(triangle_idx), position, vertex_pos)
    raise ValueError(f"Point {point} lies outside the bounding triangle")


def find_containing_triangle(
    mesh: MeshStore,
    point: NDArray[np.floating],
    last_triangle_idx: int,
) -> ContainingTriangle:
    """
    Lawson's visibility walk to find the triangle containing a point.
    Starts from the most recently created triangle and crosses any edge that
    has the point on its far side, until a triangle containing the point (in
    its interior, on an edge or on a vertex) is reached.

    Parameters:
    - mesh: the mesh store
    - point: The point to locate
    - last_triangle_idx: Index of the last formed triangle (starting point for search)

    Returns:
    - The containing triangle and where the point lies in it

    Raises ValueError if no active triangle contains the point.
    """
    if mesh.is_active(last_triangle_idx):
        triangle_idx = last_triangle_idx
    else:
        triangle_idx = int(np.flatnonzero(mesh.active)[-1])

    # Keep track of visited triangles to avoid cycles
    visited = {triangle_idx}
    steps = 0
    while True:
        triangle = mesh.triangle_points(triangle_idx)
        signs = edge_orientations(triangle, point)
        position, vertex_pos = point_inside_triangle(triangle, point, signs)
        if position != PointInTriangle.outside:
            logger.trace(f"Found triangle {triangle_idx} in {steps} steps")
            return ContainingTriangle(triangle_idx, position, vertex_pos)

        next_idx = None
        for i, sign in enumerate(signs):
            if sign != Orientation.CLOCKWISE:
                continue
            adjacent_idx = int(mesh.triangle_neighbors[triangle_idx, i])
            if adjacent_idx != -1 and adjacent_idx not in visited:
                next_idx = adjacent_idx
                break

        if next_idx is None:
            break
        triangle_idx = next_idx
        visited.add(triangle_idx)
        steps += 1

    logger.debug(f"Walk towards {point} stopped after {steps} steps, scanning the mesh")
    return _scan_active_triangles(mesh, point)


def lawson_swapping(
    point_idx: int,
    stack: list[tuple[int, int]],
    mesh: MeshStore,
) -> int:
    """
    Restore the Delaunay condition by flipping edges as necessary.

    Every entry of the stack is a (neighbor_idx, triangle_idx) pair where
    `triangle_idx` has the new point as a vertex and `neighbor_idx` lies across
    the edge opposite to it. Entries whose triangles were replaced in the
    meantime are skipped. Points on the circumcircle do not trigger a flip.

    :param point_idx: Index of the newly inserted point
    :param stack: pairs of triangles to check
    :param mesh: mesh store to legalize in place
    :return: number of flips performed
    """
    p = mesh.points[point_idx]
    n_flips = 0
    while stack:
        neighbor_idx, triangle_idx = stack.pop()
        if not (mesh.is_active(neighbor_idx) and mesh.is_active(triangle_idx)):
            continue

        edge_pos = np.flatnonzero(mesh.triangle_neighbors[triangle_idx] == neighbor_idx)
        if len(edge_pos) != 1:
            continue
        if mesh.triangle_vertices[triangle_idx, edge_pos[0]] != point_idx:
            continue

        a, b, c = mesh.triangle_points(neighbor_idx)
        if not in_circumcircle(a, b, c, p):
            continue

        logger.trace(
            f"Point {point_idx} lies in circumcircle of triangle {neighbor_idx}; flipping shared edge"
        )
        for new_idx in mesh.flip_edge(triangle_idx, neighbor_idx):
            outer_idx = int(mesh.triangle_neighbors[new_idx, 0])
            if outer_idx >= 0:
                stack.append((outer_idx, new_idx))
        n_flips += 1

    return n_flips


def insert_point(mesh: MeshStore, point: NDArray[np.floating]) -> int | None:
    """
    Insert a point into the triangulation.

    :param mesh: mesh store to update in place
    :param point: coordinates of the point
    :return: index of the new vertex, or None if the point coincides with an
        existing vertex (nothing is added in that case)
    """
    containing = find_containing_triangle(mesh, point, mesh.last_triangle_idx)

    if containing.position == PointInTriangle.vertex:
        vertex = mesh.triangle_vertices[containing.idx, containing.vertex_pos]
        logger.debug(
            f"Point {point} coincides with existing vertex {vertex}! Not adding it again"
        )
        mesh.last_triangle_idx = containing.idx
        return None

    if containing.position == PointInTriangle.edge:
        new_triangles = mesh.split_edge(containing.idx, containing.vertex_pos, point)
    else:
        new_triangles = mesh.split_triangle(containing.idx, point)
    point_idx = mesh.n_vertices - 1

    stack = []
    for triangle_idx in new_triangles:
        outer_idx = int(mesh.triangle_neighbors[triangle_idx, 0])
        if outer_idx >= 0:
            stack.append((outer_idx, triangle_idx))
    n_flips = lawson_swapping(point_idx, stack, mesh)

    logger.debug(
        f"Inserted point {point_idx} ({containing.position.name} of triangle {containing.idx}), {n_flips} flips"
    )
    return point_idx


class DelaunayTriangulation:
    """
    Incremental Delaunay triangulation seeded with a bounding triangle.

    Vertices 0, 1 and 2 are the bounding triangle; inserted points follow in
    insertion order. Triangle slots are never reused, use `get_active_mask` to
    tell live triangles from replaced ones.
    """

    def __init__(self, bounding_triangle: NDArray[np.floating] = BOUNDING_TRIANGLE):
        self.mesh = MeshStore(bounding_triangle)

    @property
    def is_empty(self) -> bool:
        return self.mesh.n_vertices == N_SENTINELS

    def add_point(self, x: float, y: float) -> bool:
        """
        Insert (x, y). Returns False, leaving the triangulation untouched, if the
        point coincides with an existing vertex.
        """
        point = np.array([x, y], dtype=np.float64)
        if not np.all(np.isfinite(point)):
            raise ValueError(f"Cannot insert non finite point {point}")
        return insert_point(self.mesh, point) is not None

    def add_points(self, points: Iterable) -> int:
        """Insert points in order, returns how many were actually added."""
        n_added = 0
        for x, y in points:
            n_added += self.add_point(x, y)
        return n_added

    def clear_triangulation(self) -> None:
        self.mesh.clear()
        logger.debug("Triangulation cleared")

    def get_vertices(self) -> NDArray[np.floating]:
        return self.mesh.points.copy()

    def get_triangles(self) -> NDArray[np.integer]:
        """Flat vertex triples of every triangle slot, replaced ones included."""
        return self.mesh.triangle_vertices.ravel().copy()

    def get_active_mask(self) -> NDArray[np.bool_]:
        return self.mesh.active.copy()

    def snapshot(self) -> MeshSnapshot:
        return self.mesh.active_snapshot()


def get_sorted_points(
    points: NDArray[np.floating],
) -> tuple[NDArray[np.floating], NDArray[np.integer]]:
    """
    Sort points into a spatially coherent order to improve incremental insertion efficiency.

    :param points: input points
    :return: sorted points and their original indices
    """
    points = np.asarray(points, dtype=np.float64)
    if len(points) == 0:
        return points.reshape(0, 2), np.empty(0, dtype=int)

    # Normalize the points to [0, 1] range
    min_vals = np.min(points, axis=0)
    span = np.max(points, axis=0) - min_vals
    span[span == 0] = 1.0
    normalized_points = (points - min_vals) / span

    # sort the points into bins
    grid_size = int(np.sqrt(len(points)))
    grid_size = max(grid_size, 4)  # Minimum grid size of 4x4

    y_idxs = (0.99 * grid_size * normalized_points[:, 1]).astype(int)
    x_idxs = (0.99 * grid_size * normalized_points[:, 0]).astype(int)

    # Create bin numbers in a snake-like pattern
    bin_numbers = np.where(
        y_idxs % 2 == 0,
        y_idxs * grid_size + x_idxs,
        (y_idxs + 1) * grid_size - x_idxs - 1,
    )

    # Sort the points by their bin numbers
    sorted_indices = np.argsort(bin_numbers, kind="stable")
    return points[sorted_indices], sorted_indices


def triangulate(
    points: NDArray[np.floating],
    sort: bool = False,
    bounding_triangle: NDArray[np.floating] = BOUNDING_TRIANGLE,
) -> DelaunayTriangulation:
    """
    Delaunay triangulation of a point set by incremental insertion.

    :param points: (n, 2) input points
    :param sort: insert in spatially sorted order (vertex indices then follow
        the sorted order)
    :param bounding_triangle: sentinel triangle enclosing every point
    :return: the populated triangulation
    """
    points = np.asarray(points, dtype=np.float64)
    if sort:
        points, _ = get_sorted_points(points)

    triangulation = DelaunayTriangulation(bounding_triangle)
    n_added = triangulation.add_points(points)
    logger.debug(f"Triangulated {n_added} of {len(points)} points")
    return triangulation
