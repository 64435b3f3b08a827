import numpy as np
import pytest

from pydelaunay.geometry import Orientation, orientation, triangle_area
from pydelaunay.mesh import MeshStore


def _assert_mesh_consistent(mesh: MeshStore) -> None:
    vertices = mesh.triangle_vertices
    neighbors = mesh.triangle_neighbors
    for t in np.flatnonzero(mesh.active):
        assert orientation(*mesh.triangle_points(t)) == Orientation.COUNTERCLOCKWISE
        for i in range(3):
            n = int(neighbors[t, i])
            if n < 0:
                continue
            assert mesh.active[n], f"triangle {t} points to dead triangle {n}"
            j = list(neighbors[n]).index(t)
            assert {vertices[t, (i + 1) % 3], vertices[t, (i + 2) % 3]} == {
                vertices[n, (j + 1) % 3],
                vertices[n, (j + 2) % 3],
            }


def _active_area(mesh: MeshStore) -> float:
    return sum(
        triangle_area(*mesh.triangle_points(t)) for t in np.flatnonzero(mesh.active)
    )


@pytest.fixture
def assert_mesh_consistent():
    return _assert_mesh_consistent


@pytest.fixture
def active_area():
    return _active_area


@pytest.fixture
def random_points():
    rng = np.random.default_rng(42)
    return rng.uniform(-100.0, 100.0, size=(200, 2))
