import sys
from argparse import ArgumentParser

import numpy as np
from loguru import logger

from pydelaunay.config import BOUNDING_BOX, DEFAULT_POINT_COUNT
from pydelaunay.point_file import generate_random_point_file
from pydelaunay.session import DelaunaySession

_LOG_LEVELS = ("INFO", "DEBUG", "TRACE")


def configure_logging(level: str = "INFO") -> None:
    logger.remove()
    logger.add(sys.stderr, level=level)


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="pydelaunay",
        description="Incremental Delaunay triangulation and Voronoi diagram of 2D points",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="-v debug, -vv trace"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="write a file of random points")
    generate.add_argument("output", help="output point file")
    generate.add_argument(
        "-n", "--n-points", type=int, default=DEFAULT_POINT_COUNT, help="number of points"
    )
    generate.add_argument(
        "--extent", type=float, default=BOUNDING_BOX, help="half side of the domain"
    )
    generate.add_argument("--seed", type=int, default=None, help="random seed")

    triangulate = subparsers.add_parser("triangulate", help="triangulate a point file")
    triangulate.add_argument("input", help="input point file")
    triangulate.add_argument(
        "--extent", type=float, default=BOUNDING_BOX, help="half side of the domain"
    )
    triangulate.add_argument(
        "--sort", action="store_true", help="insert points in spatially sorted order"
    )
    triangulate.add_argument(
        "--check", action="store_true", help="verify the Delaunay property"
    )
    triangulate.add_argument(
        "--voronoi", action="store_true", help="build the Voronoi diagram"
    )
    triangulate.add_argument("--plot", metavar="FILE", help="save a plot of the result")
    return parser


def run_triangulate(args) -> int:
    session = DelaunaySession(extent=args.extent)
    session.load_points(args.input, sort=args.sort)
    snapshot = session.snapshot()
    n_triangles = int(np.count_nonzero(snapshot.real_triangle_mask()))
    print(f"vertices: {snapshot.n_real_points}")
    print(f"triangles: {n_triangles}")

    exit_code = 0
    if args.voronoi:
        session.refresh_voronoi()
        print(f"voronoi vertices: {len(session.voronoi_vertices())}")
        print(f"voronoi edges: {len(session.voronoi_edges())}")

    if args.check:
        result = session.check_triangulation()
        print(f"delaunay: {'yes' if result.valid else 'no'}")
        if not result.valid:
            exit_code = 1

    if args.plot:
        from pydelaunay.plotting import plot_triangulation

        plot_triangulation(
            snapshot,
            diagram=session.voronoi.diagram,
            show=False,
            filename=args.plot,
        )
        logger.info(f"Plot saved to {args.plot}")

    return exit_code


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(_LOG_LEVELS[min(args.verbose, len(_LOG_LEVELS) - 1)])

    if args.command == "generate":
        generate_random_point_file(args.output, args.extent, args.n_points, args.seed)
        return 0
    return run_triangulate(args)
