from os import PathLike

import numpy as np

from pydelaunay.mesh import MeshSnapshot
from pydelaunay.voronoi import VoronoiDiagram


def plot_triangulation(
    snapshot: MeshSnapshot,
    diagram: VoronoiDiagram | None = None,
    show: bool = True,
    title: str = "Triangulation",
    point_labels: bool = False,
    exclude_super_t: bool = True,
    filename: str | PathLike | None = None,
    ax=None,
):
    """
    Plot the triangulation (and optionally its Voronoi diagram) using matplotlib.

    :param snapshot: mesh to draw
    :param diagram: Voronoi diagram drawn on top of the mesh
    :param show: Whether to call plt.show() after plotting
    :param title: Title of the plot
    :param point_labels: Whether to label points with their indices
    :param exclude_super_t: Skip the bounding triangle and the triangles touching it
    :param filename: save the figure there
    :param ax: matplotlib axes to draw on, a new figure otherwise
    :return: the axes
    """
    import matplotlib.pyplot as plt

    if ax is None:
        _, ax = plt.subplots()

    if exclude_super_t:
        triangles = snapshot.real_triangles()
        first_point = snapshot.n_sentinels
    else:
        triangles = snapshot.triangles
        first_point = 0
    all_points = snapshot.points

    for tri in triangles:
        pts = all_points[tri]
        tri_closed = np.vstack([pts, pts[0]])  # Close the triangle
        ax.plot(tri_closed[:, 0], tri_closed[:, 1], "k-", linewidth=1)

    if diagram is not None:
        for (x0, y0), (x1, y1) in diagram.edge_segments():
            ax.plot([x0, x1], [y0, y1], "b--", linewidth=1)
        if diagram.n_vertices:
            ax.plot(diagram.vertices[:, 0], diagram.vertices[:, 1], "bx", markersize=4)

    # Draw points
    shown = all_points[first_point:]
    ax.plot(shown[:, 0], shown[:, 1], "ro", markersize=3)

    if point_labels:
        for idx, (x, y) in enumerate(shown, start=first_point):
            ax.text(x, y, str(idx), fontsize=8, ha="right", va="bottom", color="blue")

    ax.set_aspect("equal")
    ax.set_title(title)

    if filename is not None:
        ax.figure.savefig(filename)
    if show:
        plt.show()
    return ax
