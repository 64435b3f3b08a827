from dataclasses import dataclass

import numpy as np
from loguru import logger
from numpy.typing import NDArray

from pydelaunay.config import BOUNDING_TRIANGLE, N_SENTINELS
from pydelaunay.geometry import Orientation, orientation

_INITIAL_CAPACITY = 64


@dataclass(frozen=True)
class MeshSnapshot:
    """
    Immutable copy of a mesh: every vertex (sentinels first) and the active
    triangles, together with the slot index each of them has in the store.
    """

    points: NDArray[np.floating]
    triangles: NDArray[np.integer]
    triangle_indices: NDArray[np.integer]
    n_sentinels: int = N_SENTINELS

    @property
    def n_real_points(self) -> int:
        return len(self.points) - self.n_sentinels

    def real_triangle_mask(self) -> NDArray[np.bool_]:
        """Mask of the triangles that do not touch the bounding triangle."""
        return np.all(self.triangles >= self.n_sentinels, axis=1)

    def real_triangles(self) -> NDArray[np.integer]:
        return self.triangles[self.real_triangle_mask()]

    def without_sentinels(
        self,
    ) -> tuple[NDArray[np.floating], NDArray[np.integer]]:
        """
        Points and triangles with the bounding triangle removed, re-indexed so
        that vertex `i` of the result is vertex `i + n_sentinels` of the mesh.
        """
        return (
            self.points[self.n_sentinels :],
            self.real_triangles() - self.n_sentinels,
        )

    def plot(self, **kwargs):
        from pydelaunay.plotting import plot_triangulation

        return plot_triangulation(self, **kwargs)


def edge_to_triangles(
    triangles: NDArray[np.integer],
) -> dict[tuple[int, int], list[int]]:
    """
    edge -> list of triangle rows that share it (undirected edge as sorted pair)
    """
    edges: dict[tuple[int, int], list[int]] = {}
    for row, (a, b, c) in enumerate(triangles.tolist()):
        for u, v in ((a, b), (b, c), (c, a)):
            key = (u, v) if u < v else (v, u)
            edges.setdefault(key, []).append(row)
    return edges


def _grow(array: NDArray, fill) -> NDArray:
    grown = np.full((2 * len(array),) + array.shape[1:], fill, dtype=array.dtype)
    grown[: len(array)] = array
    return grown


class MeshStore:
    """
    Index-stable storage of a triangulation.

    Vertices are only ever appended. Triangles are never removed: a triangle
    replaced by a split or a flip is deactivated and keeps its slot, so
    indices held by callers stay valid. For every triangle [v0, v1, v2]
    (counterclockwise) the neighbours are stored as
    [t_opposite_v0, t_opposite_v1, t_opposite_v2], -1 on the outer boundary.
    """

    def __init__(
        self,
        bounding_triangle: NDArray[np.floating] = BOUNDING_TRIANGLE,
        capacity: int = _INITIAL_CAPACITY,
    ):
        bounding_triangle = np.asarray(bounding_triangle, dtype=np.float64)
        if bounding_triangle.shape != (3, 2):
            raise ValueError("Bounding triangle must be a (3, 2) array")
        if orientation(*bounding_triangle) != Orientation.COUNTERCLOCKWISE:
            raise ValueError("Bounding triangle must be counterclockwise")

        self.bounding_triangle = bounding_triangle
        self._capacity = max(int(capacity), 4)
        self.clear()

    def clear(self) -> None:
        """Reset the store to the bounding triangle alone."""
        self._points = np.zeros((self._capacity, 2), dtype=np.float64)
        self._vertices = np.full((self._capacity, 3), -1, dtype=np.int64)
        self._neighbors = np.full((self._capacity, 3), -1, dtype=np.int64)
        self._active = np.zeros(self._capacity, dtype=bool)
        self._n_points = 0
        self._n_triangles = 0

        for point in self.bounding_triangle:
            self.add_vertex(point)
        self.last_triangle_idx = self.add_triangle(0, 1, 2)

    # ------------------------------------------------------------------
    # read access

    @property
    def n_vertices(self) -> int:
        return self._n_points

    @property
    def n_triangles(self) -> int:
        return self._n_triangles

    @property
    def n_active(self) -> int:
        return int(np.count_nonzero(self.active))

    @property
    def points(self) -> NDArray[np.floating]:
        """View on the vertex coordinates, invalidated by later mutation."""
        return self._points[: self._n_points]

    @property
    def triangle_vertices(self) -> NDArray[np.integer]:
        return self._vertices[: self._n_triangles]

    @property
    def triangle_neighbors(self) -> NDArray[np.integer]:
        return self._neighbors[: self._n_triangles]

    @property
    def active(self) -> NDArray[np.bool_]:
        return self._active[: self._n_triangles]

    def is_active(self, triangle_idx: int) -> bool:
        return 0 <= triangle_idx < self._n_triangles and bool(
            self._active[triangle_idx]
        )

    def triangle_points(self, triangle_idx: int) -> NDArray[np.floating]:
        return self._points[self._vertices[triangle_idx]]

    def find_neighbor_edge_index(self, triangle_idx: int, neighbor_idx: int) -> int:
        """
        Find which edge index (0, 1, or 2) connects to the given neighbor.
        Returns the index i such that triangle_neighbors[triangle_idx, i] == neighbor_idx
        """
        for i, neighbor in enumerate(self._neighbors[triangle_idx]):
            if neighbor == neighbor_idx:
                return i
        raise RuntimeError(
            f"Triangle {triangle_idx} is not a neighbor of triangle {neighbor_idx}"
        )

    def active_snapshot(self) -> MeshSnapshot:
        """Copy of the current vertices and active triangles, detached from the store."""
        triangle_indices = np.flatnonzero(self.active)
        points = self.points.copy()
        triangles = self.triangle_vertices[triangle_indices].copy()
        for array in (points, triangles, triangle_indices):
            array.setflags(write=False)
        return MeshSnapshot(
            points=points,
            triangles=triangles,
            triangle_indices=triangle_indices,
        )

    # ------------------------------------------------------------------
    # primitive mutation

    def add_vertex(self, point: NDArray[np.floating]) -> int:
        if self._n_points == len(self._points):
            self._points = _grow(self._points, 0.0)
        idx = self._n_points
        self._points[idx] = (float(point[0]), float(point[1]))
        self._n_points += 1
        return idx

    def add_triangle(
        self,
        i: int,
        j: int,
        k: int,
        neighbors: tuple[int, int, int] = (-1, -1, -1),
    ) -> int:
        if self._n_triangles == len(self._vertices):
            self._vertices = _grow(self._vertices, -1)
            self._neighbors = _grow(self._neighbors, -1)
            self._active = _grow(self._active, False)
        idx = self._n_triangles
        self._vertices[idx] = (i, j, k)
        self._neighbors[idx] = neighbors
        self._active[idx] = True
        self._n_triangles += 1
        return idx

    def deactivate(self, triangle_idx: int) -> None:
        if not 0 <= triangle_idx < self._n_triangles:
            raise IndexError(f"Triangle {triangle_idx} does not exist")
        self._active[triangle_idx] = False

    def _require_active(self, triangle_idx: int) -> None:
        if not self.is_active(triangle_idx):
            raise RuntimeError(f"Triangle {triangle_idx} is not an active triangle")

    def _update_external_neighbor(
        self, neighbor_idx: int, old_idx: int, new_idx: int
    ) -> None:
        if neighbor_idx < 0:
            # outer boundary
            return
        for i, ref in enumerate(self._neighbors[neighbor_idx]):
            if ref == old_idx:
                self._neighbors[neighbor_idx, i] = new_idx
                return
        raise RuntimeError(f"{old_idx} not found in {neighbor_idx} neighbors!")

    # ------------------------------------------------------------------
    # topological operations

    def split_triangle(
        self, triangle_idx: int, point: NDArray[np.floating]
    ) -> tuple[int, int, int]:
        """
        Insert `point` inside an active triangle, replacing it with three new
        triangles. The new vertex is vertex 0 of each of them and the edge
        opposite to it is an edge of the original triangle.

        :return: indices of the new triangles
        """
        self._require_active(triangle_idx)
        v = self._vertices[triangle_idx].copy()
        n = self._neighbors[triangle_idx].copy()

        point_idx = self.add_vertex(point)
        first = self._n_triangles
        new = (first, first + 1, first + 2)
        for k in range(3):
            self.add_triangle(
                point_idx,
                int(v[(k + 1) % 3]),
                int(v[(k + 2) % 3]),
                neighbors=(int(n[k]), new[(k + 1) % 3], new[(k + 2) % 3]),
            )

        self.deactivate(triangle_idx)
        for k in range(3):
            self._update_external_neighbor(int(n[k]), triangle_idx, new[k])

        logger.trace(f"Split triangle {triangle_idx} into {new} around {point_idx}")
        self.last_triangle_idx = new[-1]
        return new

    def split_edge(
        self, triangle_idx: int, opposite_pos: int, point: NDArray[np.floating]
    ) -> tuple[int, ...]:
        """
        Insert `point` on the edge of `triangle_idx` opposite the vertex at
        position `opposite_pos`. Both triangles sharing the edge are split in
        two; if the edge lies on the outer boundary only `triangle_idx` is.
        The new vertex is vertex 0 of each new triangle.

        :return: indices of the new triangles (4, or 2 on the boundary)
        """
        self._require_active(triangle_idx)
        tv = self._vertices[triangle_idx]
        tn = self._neighbors[triangle_idx]
        a = int(tv[opposite_pos])
        b = int(tv[(opposite_pos + 1) % 3])
        c = int(tv[(opposite_pos + 2) % 3])
        t_opp_b = int(tn[(opposite_pos + 1) % 3])  # across edge c-a
        t_opp_c = int(tn[(opposite_pos + 2) % 3])  # across edge a-b
        other_idx = int(tn[opposite_pos])  # across edge b-c

        if other_idx < 0:
            point_idx = self.add_vertex(point)
            t_ab = self._n_triangles
            t_ca = t_ab + 1
            self.add_triangle(point_idx, a, b, neighbors=(t_opp_c, -1, t_ca))
            self.add_triangle(point_idx, c, a, neighbors=(t_opp_b, t_ab, -1))
            self.deactivate(triangle_idx)
            self._update_external_neighbor(t_opp_c, triangle_idx, t_ab)
            self._update_external_neighbor(t_opp_b, triangle_idx, t_ca)
            logger.trace(f"Split boundary edge ({b}, {c}) of {triangle_idx}")
            self.last_triangle_idx = t_ca
            return t_ab, t_ca

        self._require_active(other_idx)
        j = self.find_neighbor_edge_index(other_idx, triangle_idx)
        ov = self._vertices[other_idx]
        on = self._neighbors[other_idx]
        d = int(ov[j])
        if int(ov[(j + 1) % 3]) != c or int(ov[(j + 2) % 3]) != b:
            raise RuntimeError(
                f"Triangles {triangle_idx} and {other_idx} are not consistently oriented"
            )
        o_opp_c = int(on[(j + 1) % 3])  # across edge b-d
        o_opp_b = int(on[(j + 2) % 3])  # across edge d-c

        point_idx = self.add_vertex(point)
        t_ab = self._n_triangles
        t_ca, t_bd, t_dc = t_ab + 1, t_ab + 2, t_ab + 3
        self.add_triangle(point_idx, a, b, neighbors=(t_opp_c, t_bd, t_ca))
        self.add_triangle(point_idx, c, a, neighbors=(t_opp_b, t_ab, t_dc))
        self.add_triangle(point_idx, b, d, neighbors=(o_opp_c, t_dc, t_ab))
        self.add_triangle(point_idx, d, c, neighbors=(o_opp_b, t_ca, t_bd))

        self.deactivate(triangle_idx)
        self.deactivate(other_idx)
        self._update_external_neighbor(t_opp_c, triangle_idx, t_ab)
        self._update_external_neighbor(t_opp_b, triangle_idx, t_ca)
        self._update_external_neighbor(o_opp_c, other_idx, t_bd)
        self._update_external_neighbor(o_opp_b, other_idx, t_dc)

        logger.trace(
            f"Split edge ({b}, {c}) shared by {triangle_idx} and {other_idx} at {point_idx}"
        )
        self.last_triangle_idx = t_dc
        return t_ab, t_ca, t_bd, t_dc

    def flip_edge(self, t1: int, t2: int) -> tuple[int, int]:
        """
        Replace two neighbouring triangles with the two triangles on the other
        diagonal of their quadrilateral. Vertex 0 of both new triangles is the
        vertex of `t1` opposite the shared edge, and the edge opposite to it is
        an outer edge of the quadrilateral.

        Raises RuntimeError, leaving the store untouched, if the triangles are
        not active or do not share exactly one edge.
        """
        self._require_active(t1)
        self._require_active(t2)
        if t1 == t2:
            raise RuntimeError(f"Cannot flip triangle {t1} with itself")
        if np.count_nonzero(self._neighbors[t1] == t2) != 1:
            raise RuntimeError(f"Triangles {t1} and {t2} do not share exactly one edge")

        i1 = self.find_neighbor_edge_index(t1, t2)
        i2 = self.find_neighbor_edge_index(t2, t1)
        v1, n1 = self._vertices[t1], self._neighbors[t1]
        v2, n2 = self._vertices[t2], self._neighbors[t2]

        p = int(v1[i1])
        b = int(v1[(i1 + 1) % 3])
        c = int(v1[(i1 + 2) % 3])
        d = int(v2[i2])
        if (
            int(v2[(i2 + 1) % 3]) != c
            or int(v2[(i2 + 2) % 3]) != b
            or len(set(v1.tolist()) & set(v2.tolist())) != 2
        ):
            raise RuntimeError(f"Triangles {t1} and {t2} do not share exactly one edge")

        n1_opp_b = int(n1[(i1 + 1) % 3])  # across edge c-p
        n1_opp_c = int(n1[(i1 + 2) % 3])  # across edge p-b
        n2_opp_c = int(n2[(i2 + 1) % 3])  # across edge b-d
        n2_opp_b = int(n2[(i2 + 2) % 3])  # across edge d-c

        t_pbd = self._n_triangles
        t_pdc = t_pbd + 1
        self.add_triangle(p, b, d, neighbors=(n2_opp_c, t_pdc, n1_opp_c))
        self.add_triangle(p, d, c, neighbors=(n2_opp_b, n1_opp_b, t_pbd))

        self.deactivate(t1)
        self.deactivate(t2)
        self._update_external_neighbor(n2_opp_c, t2, t_pbd)
        self._update_external_neighbor(n1_opp_c, t1, t_pbd)
        self._update_external_neighbor(n2_opp_b, t2, t_pdc)
        self._update_external_neighbor(n1_opp_b, t1, t_pdc)

        logger.trace(f"Flipped edge ({b}, {c}) -> ({p}, {d}): {t1}, {t2} -> {t_pbd}, {t_pdc}")
        self.last_triangle_idx = t_pdc
        return t_pbd, t_pdc
