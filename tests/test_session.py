import numpy as np
import pytest

from pydelaunay.point_file import write_points
from pydelaunay.session import BoundingBox, DelaunaySession


def test_bounding_box():
    box = BoundingBox.square(10.0)
    assert box.contains(10.0, -10.0)
    assert not box.contains(10.5, 0.0)
    points = np.array([[0.0, 0.0], [11.0, 0.0], [-10.0, 10.0]])
    assert box.contains_points(points).tolist() == [True, False, True]
    assert box.corners.shape == (4, 2)


def test_domain_must_fit_in_bounding_triangle():
    with pytest.raises(ValueError):
        DelaunaySession(extent=1e11)


def test_add_point():
    session = DelaunaySession(extent=100.0)
    assert session.add_point(1.0, 1.0)
    assert not session.add_point(1.0, 1.0)
    with pytest.raises(ValueError):
        session.add_point(101.0, 0.0)
    assert len(session.get_vertices()) == 4


def test_load_points_skips_outside_domain(tmp_path):
    path = tmp_path / "points.txt"
    write_points(path, [[0.0, 0.0], [5.0, 0.0], [500.0, 0.0], [0.0, 5.0], [0.0, 0.0]])

    session = DelaunaySession(extent=100.0)
    assert session.load_points(path) == 3
    assert session.snapshot().n_real_points == 3
    assert len(session.snapshot().real_triangles()) == 1


def test_generate_load_and_check(tmp_path):
    path = tmp_path / "points.txt"
    session = DelaunaySession(extent=1000.0)
    session.generate_points_file(path, n_points=300, seed=11)

    assert session.load_points(path, sort=True) == 300
    result = session.check_triangulation()
    assert result.valid

    session.clear_triangulation()
    assert len(session.get_vertices()) == 3
    assert session.get_active_mask().tolist() == [True]
    assert session.check_triangulation().valid


def test_voronoi():
    session = DelaunaySession(extent=100.0)
    for x, y in [(0.0, 0.0), (10.0, 0.0), (0.0, 10.0)]:
        session.add_point(x, y)

    assert session.voronoi_vertices().shape == (0, 2)
    session.refresh_voronoi()
    np.testing.assert_allclose(session.voronoi_vertices(), [[5.0, 5.0]])
    assert session.voronoi_edges().shape == (0, 2)

    session.add_point(10.0, 10.0)
    session.refresh_voronoi()
    assert len(session.voronoi_vertices()) == 2
    assert len(session.voronoi_edges()) == 1

    session.clear_voronoi()
    assert session.voronoi.diagram is None
    assert len(session.voronoi_vertices()) == 0
