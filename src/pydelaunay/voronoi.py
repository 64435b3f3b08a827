from dataclasses import dataclass

import numpy as np
from loguru import logger
from numpy.typing import NDArray

from pydelaunay.geometry import circumcenter
from pydelaunay.mesh import MeshSnapshot, edge_to_triangles


@dataclass(frozen=True)
class VoronoiDiagram:
    """
    Bounded part of the Voronoi diagram of a triangulation.

    `vertices[i]` is the circumcenter of the triangle in slot
    `triangle_indices[i]` of the mesh; `edges` holds pairs of rows of
    `vertices` whose triangles share an edge.
    """

    vertices: NDArray[np.floating]
    edges: NDArray[np.integer]
    triangle_indices: NDArray[np.integer]

    @property
    def n_vertices(self) -> int:
        return len(self.vertices)

    @property
    def n_edges(self) -> int:
        return len(self.edges)

    def edge_segments(self) -> NDArray[np.floating]:
        """(n_edges, 2, 2) array with the end points of every edge."""
        return self.vertices[self.edges]


def build_voronoi(snapshot: MeshSnapshot) -> VoronoiDiagram:
    """
    Dual of the triangles that do not touch the bounding triangle.

    Edges between a real triangle and a sentinel triangle would be unbounded
    rays and are left out.
    """
    dual_idx: dict[int, int] = {}
    centers = []
    slots = []
    for row in np.flatnonzero(snapshot.real_triangle_mask()):
        center = circumcenter(*snapshot.points[snapshot.triangles[row]])
        if center is None:
            logger.warning(
                f"Triangle {snapshot.triangle_indices[row]} is degenerate, no Voronoi vertex"
            )
            continue
        dual_idx[int(row)] = len(centers)
        centers.append(center)
        slots.append(snapshot.triangle_indices[row])

    edges = []
    for rows in edge_to_triangles(snapshot.triangles).values():
        if len(rows) != 2:
            continue
        r1, r2 = rows
        if r1 in dual_idx and r2 in dual_idx:
            edges.append((dual_idx[r1], dual_idx[r2]))

    return VoronoiDiagram(
        vertices=np.array(centers, dtype=np.float64).reshape(-1, 2),
        edges=np.array(edges, dtype=np.int64).reshape(-1, 2),
        triangle_indices=np.array(slots, dtype=np.int64),
    )


class VoronoiBuilder:
    """Holds the diagram of the last snapshot it was refreshed with."""

    def __init__(self):
        self._diagram: VoronoiDiagram | None = None

    @property
    def diagram(self) -> VoronoiDiagram | None:
        return self._diagram

    @property
    def vertices(self) -> NDArray[np.floating]:
        if self._diagram is None:
            return np.empty((0, 2), dtype=np.float64)
        return self._diagram.vertices

    @property
    def edges(self) -> NDArray[np.integer]:
        if self._diagram is None:
            return np.empty((0, 2), dtype=np.int64)
        return self._diagram.edges

    def refresh_diagram(self, snapshot: MeshSnapshot) -> VoronoiDiagram:
        self._diagram = None
        self._diagram = build_voronoi(snapshot)
        logger.debug(
            f"Voronoi diagram with {self._diagram.n_vertices} vertices and {self._diagram.n_edges} edges"
        )
        return self._diagram

    def clear_diagram(self) -> None:
        self._diagram = None
