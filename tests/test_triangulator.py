from itertools import permutations

import numpy as np
import pytest

from pydelaunay.checker import is_delaunay_triangulation
from pydelaunay.config import BOUNDING_BOX, BOUNDING_TRIANGLE
from pydelaunay.geometry import PointInTriangle, polygon_area, triangle_area
from pydelaunay.point_file import generate_random_points
from pydelaunay.triangulator import (
    DelaunayTriangulation,
    find_containing_triangle,
    get_sorted_points,
    triangulate,
)


def real_triangle_set(triangulation: DelaunayTriangulation) -> set[frozenset]:
    """Real triangles as sets of coordinates, independent of vertex numbering."""
    snapshot = triangulation.snapshot()
    return {
        frozenset(map(tuple, snapshot.points[tri].tolist()))
        for tri in snapshot.real_triangles()
    }


def is_delaunay(triangulation: DelaunayTriangulation) -> bool:
    return is_delaunay_triangulation(*triangulation.snapshot().without_sentinels())


def real_area(triangulation: DelaunayTriangulation) -> float:
    snapshot = triangulation.snapshot()
    return sum(triangle_area(*snapshot.points[tri]) for tri in snapshot.real_triangles())


def convex_hull(points: np.ndarray) -> list:
    """Andrew's monotone chain, counterclockwise."""
    pts = sorted(map(tuple, points.tolist()))

    def cross(o, a, b):
        return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])

    lower, upper = [], []
    for p in pts:
        while len(lower) >= 2 and cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)
    for p in reversed(pts):
        while len(upper) >= 2 and cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)
    return lower[:-1] + upper[:-1]


@pytest.mark.parametrize(
    "points", list(permutations([(0.0, 0.0), (10.0, 0.0), (0.0, 10.0)]))
)
def test_three_points(points):
    triangulation = DelaunayTriangulation()
    assert triangulation.is_empty
    for x, y in points:
        assert triangulation.add_point(x, y)
    assert not triangulation.is_empty

    assert real_triangle_set(triangulation) == {
        frozenset({(0.0, 0.0), (10.0, 0.0), (0.0, 10.0)})
    }
    assert is_delaunay(triangulation)


def test_square():
    triangulation = triangulate(
        np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]])
    )
    snapshot = triangulation.snapshot()
    real = snapshot.real_triangles()

    assert len(real) == 2
    # either diagonal, but both triangles share it
    assert len(set(real[0]) & set(real[1])) == 2
    assert is_delaunay(triangulation)


def test_duplicate_point_is_rejected():
    triangulation = DelaunayTriangulation()
    assert triangulation.add_point(1.0, 1.0)
    assert triangulation.add_point(5.0, 2.0)
    vertices = triangulation.get_vertices()
    triangles = triangulation.get_triangles()

    assert not triangulation.add_point(1.0, 1.0)
    np.testing.assert_array_equal(triangulation.get_vertices(), vertices)
    np.testing.assert_array_equal(triangulation.get_triangles(), triangles)


def test_points_on_edges(assert_mesh_consistent):
    triangulation = DelaunayTriangulation()
    triangulation.add_points([(0.0, 0.0), (10.0, 0.0), (0.0, 10.0)])

    # on the edge between (0, 0) and (10, 0)
    containing = find_containing_triangle(
        triangulation.mesh, np.array([5.0, 0.0]), triangulation.mesh.last_triangle_idx
    )
    assert containing.position == PointInTriangle.edge
    assert triangulation.add_point(5.0, 0.0)
    assert triangulation.add_point(5.0, 5.0)

    assert len(triangulation.snapshot().real_triangles()) == 3
    assert_mesh_consistent(triangulation.mesh)
    assert is_delaunay(triangulation)


def test_collinear_points():
    triangulation = DelaunayTriangulation()
    triangulation.add_points([(float(x), 0.0) for x in (0, 4, 2, 1, 3)])
    assert len(triangulation.snapshot().real_triangles()) == 0
    assert is_delaunay(triangulation)

    triangulation.add_point(2.0, 1.0)
    assert len(triangulation.snapshot().real_triangles()) == 4
    assert is_delaunay(triangulation)


def test_random_points(random_points, assert_mesh_consistent, active_area):
    triangulation = triangulate(random_points)
    mesh = triangulation.mesh

    assert mesh.n_vertices == len(random_points) + 3
    assert_mesh_consistent(mesh)
    assert is_delaunay(triangulation)
    # the active triangles tile the bounding triangle
    assert active_area(mesh) == pytest.approx(triangle_area(*BOUNDING_TRIANGLE), rel=1e-9)
    # and the real ones tile the convex hull of the points
    assert real_area(triangulation) == pytest.approx(polygon_area(convex_hull(random_points)))


def test_random_points_cover_hull_at_domain_scale():
    points = generate_random_points(1000, extent=BOUNDING_BOX, seed=0)
    triangulation = triangulate(points)

    assert is_delaunay(triangulation)
    assert real_area(triangulation) == pytest.approx(polygon_area(convex_hull(points)))


def test_flat_hull_triangle_is_lost_to_sentinels():
    # the circumcircle of (-1e6, 0), (0, 1), (1e6, 0) has a radius of about
    # 5e11, far beyond the sentinels, so that triangle is never created
    points = np.array([[-1e6, 0.0], [0.0, 1.0], [1e6, 0.0], [0.0, 5e5]])
    triangulation = triangulate(points)

    assert real_triangle_set(triangulation) == {
        frozenset({(-1e6, 0.0), (0.0, 1.0), (0.0, 5e5)}),
        frozenset({(0.0, 1.0), (1e6, 0.0), (0.0, 5e5)}),
    }
    hull_area = polygon_area(convex_hull(points))
    assert real_area(triangulation) == pytest.approx(hull_area - 1e6, rel=1e-12)
    assert is_delaunay(triangulation)


def test_insertion_order_does_not_matter(random_points):
    points = random_points[:100]
    shuffled = np.random.default_rng(7).permutation(points)

    expected = real_triangle_set(triangulate(points))
    assert real_triangle_set(triangulate(shuffled)) == expected
    assert real_triangle_set(triangulate(points, sort=True)) == expected


def test_get_sorted_points(random_points):
    sorted_points, indices = get_sorted_points(random_points)
    assert sorted(indices.tolist()) == list(range(len(random_points)))
    np.testing.assert_array_equal(sorted_points, random_points[indices])

    empty, empty_indices = get_sorted_points(np.empty((0, 2)))
    assert empty.shape == (0, 2)
    assert len(empty_indices) == 0


def test_active_mask_matches_triangles(random_points):
    triangulation = triangulate(random_points[:20])
    triangles = triangulation.get_triangles()
    mask = triangulation.get_active_mask()

    assert len(triangles) == 3 * len(mask)
    active = triangles.reshape(-1, 3)[mask]
    np.testing.assert_array_equal(active, triangulation.snapshot().triangles)


def test_tombstoned_indices_are_stable():
    triangulation = DelaunayTriangulation()
    triangulation.add_point(0.0, 0.0)
    before = triangulation.get_triangles()

    triangulation.add_point(1.0, 1.0)
    after = triangulation.get_triangles()
    np.testing.assert_array_equal(after[: len(before)], before)
    assert not triangulation.get_active_mask()[0]


def test_invalid_points():
    triangulation = DelaunayTriangulation()
    with pytest.raises(ValueError):
        triangulation.add_point(2e10, 0.0)
    with pytest.raises(ValueError):
        triangulation.add_point(np.nan, 0.0)
    assert triangulation.is_empty


def test_clear_triangulation(random_points):
    triangulation = triangulate(random_points[:10])
    triangulation.clear_triangulation()

    assert triangulation.is_empty
    assert len(triangulation.get_vertices()) == 3
    assert triangulation.get_triangles().tolist() == [0, 1, 2]
    assert triangulation.get_active_mask().tolist() == [True]

    triangulation.add_point(1.0, 1.0)
    assert len(triangulation.get_vertices()) == 4
