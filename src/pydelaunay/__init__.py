"""
pydelaunay: incremental 2D Delaunay triangulation, its Voronoi dual and a
Delaunay property checker.
"""

__version__ = "0.1.0"

from pydelaunay.checker import CheckResult, check_triangulation, is_delaunay_triangulation
from pydelaunay.geometry import Orientation, in_circumcircle, orientation
from pydelaunay.mesh import MeshSnapshot, MeshStore
from pydelaunay.session import BoundingBox, DelaunaySession
from pydelaunay.triangulator import DelaunayTriangulation, triangulate
from pydelaunay.voronoi import VoronoiBuilder, VoronoiDiagram, build_voronoi

__all__ = [
    "BoundingBox",
    "CheckResult",
    "DelaunaySession",
    "DelaunayTriangulation",
    "MeshSnapshot",
    "MeshStore",
    "Orientation",
    "VoronoiBuilder",
    "VoronoiDiagram",
    "build_voronoi",
    "check_triangulation",
    "in_circumcircle",
    "is_delaunay_triangulation",
    "orientation",
    "triangulate",
    "__version__",
]
