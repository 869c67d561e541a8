"""Command-line front end: build a surface and write it as STL."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from surfgen.builder import IndexedMesh, build_mesh
from surfgen.config import BOUNDARY_NAMES, SoapFilmSettings
from surfgen.generators import enneper_surface, icosahedron, rounded_box, sphere
from surfgen.io import write_stl
from surfgen.logging_config import setup_logging
from surfgen.soap import BoundaryCurve, relax, saddle_boundary, unit_circle

BOUNDARIES: Dict[str, BoundaryCurve] = {
    "circle": unit_circle,
    "saddle": saddle_boundary,
}


def _soap(args: argparse.Namespace) -> IndexedMesh:
    settings = SoapFilmSettings.load(args.config) if args.config else SoapFilmSettings()
    if args.boundary is not None:
        settings.boundary = args.boundary
    if args.refinements is not None:
        settings.refinements = args.refinements
    if args.smoothing_steps is not None:
        settings.smoothing_steps = args.smoothing_steps
    settings.validate()
    return build_mesh(relax(BOUNDARIES[settings.boundary],
                            settings.refinements, settings.smoothing_steps))


def _box(args: argparse.Namespace) -> IndexedMesh:
    half = args.size / 2
    return build_mesh(rounded_box((-half, -half, -half), (half, half, half),
                                  (args.radius,) * 3, args.steps))


def _enneper(args: argparse.Namespace) -> IndexedMesh:
    return build_mesh(enneper_surface((-args.extent, args.extent), (-args.extent, args.extent),
                                      args.steps, args.steps))


def _icosahedron(args: argparse.Namespace) -> IndexedMesh:
    return build_mesh(icosahedron(args.radius))


def _sphere(args: argparse.Namespace) -> IndexedMesh:
    return build_mesh(sphere(args.radius, args.steps, use_sines=args.sines))


def _logging_args(p: argparse.ArgumentParser, suppress: bool = False) -> None:
    p.add_argument("-v", "--verbose", action="store_true",
                   default=argparse.SUPPRESS if suppress else False,
                   help="Enable debug logging.")
    p.add_argument("--log-file", default=argparse.SUPPRESS if suppress else None,
                   help="Also write log output to this file.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="surfgen",
        description="Generate a procedural surface and write it as STL.",
    )
    _logging_args(parser)
    # Subcommands accept the logging options too; SUPPRESS keeps them from
    # overwriting values given before the subcommand name.
    common = argparse.ArgumentParser(add_help=False)
    _logging_args(common, suppress=True)
    sub = parser.add_subparsers(dest="command", required=True)

    def _output_args(p: argparse.ArgumentParser, default: str) -> None:
        p.add_argument("--output", type=Path, default=Path(default),
                       help=f"Destination STL file (default: {default}).")
        p.add_argument("--ascii", action="store_true", help="Write ASCII instead of binary STL.")

    soap = sub.add_parser("soap", parents=[common], help="Relax a soap film spanning a closed wire.")
    soap.add_argument("--boundary", choices=BOUNDARY_NAMES, default=None,
                      help="Boundary curve (default: saddle).")
    soap.add_argument("--refinements", type=int, default=None,
                      help="Refinement passes, 0-8 (default: 6).")
    soap.add_argument("--smoothing-steps", type=int, default=None,
                      help="Smoothing steps per refinement, 0-10 (default: 2).")
    soap.add_argument("--config", type=Path, default=None,
                      help="YAML file with soap film settings.")
    _output_args(soap, "soap.stl")
    soap.set_defaults(func=_soap)

    box = sub.add_parser("box", parents=[common], help="Rounded box.")
    box.add_argument("--size", type=float, default=2.0, help="Inner box edge length.")
    box.add_argument("--radius", type=float, default=0.25, help="Rounding radius.")
    box.add_argument("--steps", type=int, default=8, help="Subdivisions per rounded corner.")
    _output_args(box, "box.stl")
    box.set_defaults(func=_box)

    enneper = sub.add_parser("enneper", parents=[common], help="Enneper's minimal surface.")
    enneper.add_argument("--extent", type=float, default=1.0, help="Parameter half-width.")
    enneper.add_argument("--steps", type=int, default=50, help="Grid steps per direction.")
    _output_args(enneper, "enneper.stl")
    enneper.set_defaults(func=_enneper)

    ico = sub.add_parser("icosahedron", parents=[common], help="Regular icosahedron.")
    ico.add_argument("--radius", type=float, default=1.0, help="Circumradius.")
    _output_args(ico, "icosahedron.stl")
    ico.set_defaults(func=_icosahedron)

    sph = sub.add_parser("sphere", parents=[common], help="Sphere from eight triangulated octants.")
    sph.add_argument("--radius", type=float, default=1.0, help="Sphere radius.")
    sph.add_argument("--steps", type=int, default=9, help="Subdivisions per octant edge.")
    sph.add_argument("--sines", action="store_true",
                     help="Space lattice points by sine instead of linearly.")
    _output_args(sph, "sphere.stl")
    sph.set_defaults(func=_sphere)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, args.log_file)

    try:
        mesh = args.func(args)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    write_stl(mesh, args.output, binary=not args.ascii, name=f"surfgen {args.command}")
    print(f"{args.output}: {mesh.vertex_count} vertices, {mesh.triangle_count} triangles")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
