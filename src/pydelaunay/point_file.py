import warnings
from os import PathLike
from pathlib import Path

import numpy as np
from loguru import logger
from numpy.typing import NDArray

from pydelaunay.config import BOUNDING_BOX


def read_points(path: str | PathLike) -> NDArray[np.floating]:
    """
    Read a point file: one point per line, x and y separated by whitespace.

    :return: (n, 2) array in file order
    """
    path = Path(path)
    with warnings.catch_warnings():
        # numpy warns about input without data, reported below instead
        warnings.simplefilter("ignore", UserWarning)
        points = np.loadtxt(path, dtype=np.float64, ndmin=2)
    if points.size == 0:
        logger.warning(f"{path} contains no points")
        return np.empty((0, 2), dtype=np.float64)
    if points.shape[1] != 2:
        raise ValueError(
            f"{path}: expected 2 coordinates per line, found {points.shape[1]}"
        )
    logger.info(f"Read {len(points)} points from {path}")
    return points


def write_points(path: str | PathLike, points: NDArray[np.floating]) -> None:
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    np.savetxt(path, points, fmt="%.17g")


def generate_random_points(
    n_points: int, extent: float = BOUNDING_BOX, seed: int | None = None
) -> NDArray[np.floating]:
    """Uniform random points in [-extent, extent] x [-extent, extent]."""
    if n_points < 0:
        raise ValueError(f"Number of points must be non negative, got {n_points}")
    rng = np.random.default_rng(seed)
    return rng.uniform(-extent, extent, size=(n_points, 2))


def generate_random_point_file(
    path: str | PathLike,
    extent: float = BOUNDING_BOX,
    n_points: int = 1000,
    seed: int | None = None,
) -> NDArray[np.floating]:
    points = generate_random_points(n_points, extent, seed)
    write_points(path, points)
    logger.info(f"Wrote {n_points} random points to {path}")
    return points
