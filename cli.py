# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Science Solutions International Laboratory, Inc.
# ems-gnuplot-exporter/cli.py
from pathlib import Path
import argparse
import logging

import numpy as np
import meshio

from gnuplot import gnuplot
from gnuplot.errors import ExportError
from gnuplot.mesh1d import LineMesh

log = logging.getLogger("ems-gnuplot")


def _scalar_column(values):
    """Return ``values`` as a 1D column, or None if it has several components."""
    values = np.asarray(values)
    if values.ndim == 2 and values.shape[1] == 1:
        values = values[:, 0]
    return values if values.ndim == 1 else None


def _select_variables(mesh: meshio.Mesh, names):
    point_data = getattr(mesh, "point_data", None) or {}
    if not names:
        # 既定: "id" 以外のスカラー point_data をすべて出力
        names = sorted(k for k in point_data if k != "id" and _scalar_column(point_data[k]) is not None)
    if not names:
        raise SystemExit("input mesh has no scalar point data to plot")

    columns = []
    for name in names:
        if name not in point_data:
            raise SystemExit(f"point data '{name}' not found (available: {', '.join(sorted(point_data))})")
        values = _scalar_column(point_data[name])
        if values is None:
            shape = np.asarray(point_data[name]).shape
            raise SystemExit(f"point data '{name}' has shape {shape}; only scalars can be plotted")
        columns.append(values)
    return list(names), columns


def main(argv=None):
    parser = argparse.ArgumentParser(description="Export a 1D mesh solution as a gnuplot script and data file")
    parser.add_argument("input", help="meshio で読める 1D メッシュ (line 要素 + point_data)")
    parser.add_argument("output", help="gnuplot script path; data goes to <output>_data")
    parser.add_argument("--var", action="append", dest="vars", help="point_data name to plot (repeatable)")
    parser.add_argument("--title", default="", help="plot title")
    parser.add_argument("--grid", action="store_true", help="element boundary ticks on x2 axis with grid")
    parser.add_argument("--png", action="store_true", help="redirect output to <output>.png")
    parser.add_argument("--axes-limits", default="", help="literal inserted after 'plot' (e.g. '[][0:1]')")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s:%(name)s:%(message)s",
    )

    in_path = Path(args.input)
    out_path = Path(args.output)

    mesh = meshio.read(in_path)
    names, columns = _select_variables(mesh, args.vars)
    # node-major: soln[node * n_vars + var]
    soln = np.column_stack(columns).reshape(-1)
    log.debug("read %s: %d points, variables %s", in_path, len(mesh.points), names)

    options = gnuplot.PlotOptions(
        title=args.title,
        grid=args.grid,
        png_output=args.png,
        axes_limits=args.axes_limits,
    )
    try:
        line_mesh = LineMesh.from_meshio(mesh)
        gnuplot.write_gnuplot_nodal_data(out_path, line_mesh, soln, names, options=options)
    except (ExportError, ValueError) as exc:
        raise SystemExit(f"export failed: {exc}") from exc


if __name__ == "__main__":
    main()
