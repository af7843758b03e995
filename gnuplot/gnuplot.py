# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Science Solutions International Laboratory, Inc.
# ems-gnuplot-exporter/gnuplot/gnuplot.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence, TextIO

import numpy as np
import meshio

from .errors import (
    FileOpenError,
    MissingSolutionError,
    NoBoundaryError,
    SolutionSizeError,
    UnsupportedDimensionError,
)
from .mesh1d import LEFT, RIGHT, LineMesh

logger = logging.getLogger(__name__)

# Bit flags accepted by PlotOptions.from_flags
GRID_ON = 1
PNG_OUTPUT = 2

DATA_SUFFIX = "_data"
TICK_SEPARATOR = ", \\\n"


@dataclass
class PlotOptions:
    title: str = ""
    grid: bool = False
    png_output: bool = False
    # inserted verbatim between "plot" and the first data file reference
    axes_limits: str = ""

    @classmethod
    def from_flags(cls, title: str = "", flags: int = 0, axes_limits: str = "") -> "PlotOptions":
        return cls(
            title=title,
            grid=bool(flags & GRID_ON),
            png_output=bool(flags & PNG_OUTPUT),
            axes_limits=axes_limits,
        )


@dataclass
class PlotLayout:
    """Domain extent and element-boundary tick positions of a 1D mesh."""

    x_min: float
    x_max: float
    # in element traversal order; x_min is inserted where the left boundary element is met
    ticks: List[float] = field(default_factory=list)

    def xtics(self) -> str:
        return TICK_SEPARATOR.join(f'"" {_fmt(x)}' for x in self.ticks)


def _fmt(v) -> str:
    # shortest general form, six significant digits like a default C++ stream
    return format(v, "g")


def _as_line_mesh(mesh: LineMesh | meshio.Mesh) -> LineMesh:
    if isinstance(mesh, LineMesh):
        return mesh
    return LineMesh.from_meshio(mesh)


def data_file_path(path: str | Path) -> Path:
    return Path(f"{path}{DATA_SUFFIX}")


def compute_layout(mesh: LineMesh) -> PlotLayout:
    """Find the domain extent and collect a tick at every element boundary.

    A single pass over the active elements: the element without a left
    neighbor gives ``x_min``, the one without a right neighbor gives ``x_max``
    and every element contributes its right node as a tick.
    """
    x_min: float | None = None
    x_max: float | None = None
    ticks: List[float] = []

    for e in mesh.active_elements():
        if mesh.neighbor(e, LEFT) is None:
            x_min = mesh.point(mesh.node(e, LEFT))
            ticks.append(x_min)
        if mesh.neighbor(e, RIGHT) is None:
            x_max = mesh.point(mesh.node(e, RIGHT))
        ticks.append(mesh.point(mesh.node(e, RIGHT)))

    if x_min is None or x_max is None:
        side = "left" if x_min is None else "right"
        raise NoBoundaryError(
            f"No boundary element found on the {side} side of the 1D mesh",
            {"n_active_elem": mesh.n_active_elem()},
        )
    return PlotLayout(x_min=x_min, x_max=x_max, ticks=ticks)


def collect_nodal_values(mesh: LineMesh, soln: np.ndarray, n_vars: int) -> Dict[float, List]:
    """Map every node coordinate to its ``n_vars`` solution values.

    Nodes shared by neighboring elements land on the same coordinate; the
    last element visited wins.
    """
    node_map: Dict[float, List] = {}
    for e in mesh.active_elements():
        for side in (LEFT, RIGHT):
            gid = mesh.node(e, side)
            values = soln[gid * n_vars : (gid + 1) * n_vars].tolist()
            node_map[mesh.point(gid)] = values
    return node_map


def _solution_buffer(soln) -> np.ndarray:
    buf = np.asarray(soln).reshape(-1)
    if np.iscomplexobj(buf):
        # gnuplot reads one real number per column
        logger.warning("complex solution buffer: writing the real part only")
        buf = buf.real
    return buf.astype(float)


def _open_for_writing(path: Path, what: str) -> TextIO:
    try:
        return path.open("w", encoding="utf-8")
    except OSError as exc:
        raise FileOpenError(f"Cannot open {what} file for writing: {exc}", {"path": str(path)}) from exc


def _script_lines(path: str | Path, layout: PlotLayout, names: Sequence[str], options: PlotOptions) -> List[str]:
    data_name = data_file_path(path)
    lines: List[str] = [
        "# This file was generated by gnuplot/gnuplot.py\n",
        "# Stores 1D solution data in GNUplot format\n",
        f"# Execute this by loading gnuplot and typing \"call '{path}'\"\n",
        "reset\n",
        f'set title "{options.title}"\n',
        'set xlabel "x"\n',
        "set xtics nomirror\n",
        f"set xrange [{_fmt(layout.x_min)}:{_fmt(layout.x_max)}]\n",
    ]
    if options.grid:
        lines.append(f"set x2tics ({layout.xtics()})\n")
        lines.append("set grid noxtics noytics x2tics\n")
    if options.png_output:
        lines.append("set terminal png\n")
        lines.append(f'set output "{path}.png"\n')

    plot = f'plot {options.axes_limits} "{data_name}" using 1:2 title "{names[0]}" with lines'
    for i in range(1, len(names)):
        plot += f'{TICK_SEPARATOR}"{data_name}" using 1:{i + 2} title "{names[i]}" with lines'
    lines.append(plot + "\n")
    return lines


def write_gnuplot(
    path: str | Path,
    mesh: LineMesh | meshio.Mesh,
    soln=None,
    names: Sequence[str] | None = None,
    *,
    options: PlotOptions | None = None,
    title: str = "",
    grid: bool = False,
    png_output: bool = False,
    axes_limits: str = "",
    rank: int = 0,
) -> None:
    """Write a gnuplot script to ``path`` and its nodal data to ``path + "_data"``.

    ``soln`` is a flat buffer indexed ``soln[node_id * n_vars + var]`` with
    ``n_vars = len(names)``. Every rank must call this, since the active
    element count is queried collectively; only rank 0 writes files.

    Raises MissingSolutionError, UnsupportedDimensionError, SolutionSizeError
    or NoBoundaryError before anything is written, and FileOpenError when an
    output file cannot be opened. A data file failure leaves the already
    written script in place.

    Plot settings come either from ``options`` or from the individual
    keywords; passing both raises TypeError. Complex buffers are written as
    their real part.
    """
    if options is not None and (title or grid or png_output or axes_limits):
        raise TypeError("pass either options= or title/grid/png_output/axes_limits, not both")
    if options is None:
        options = PlotOptions(title=title, grid=grid, png_output=png_output, axes_limits=axes_limits)
    line_mesh = _as_line_mesh(mesh)

    n_active_elem = line_mesh.n_active_elem()
    if rank != 0:
        logger.debug("rank %d: skipping gnuplot output (%d active elements)", rank, n_active_elem)
        return

    if soln is None or names is None:
        raise MissingSolutionError("A solution buffer and variable names are required", {"path": str(path)})
    if line_mesh.mesh_dimension != 1:
        raise UnsupportedDimensionError(
            "Gnuplot output supports 1D meshes only",
            {"mesh_dimension": line_mesh.mesh_dimension},
        )
    names = list(names)
    n_vars = len(names)
    if n_vars == 0:
        raise MissingSolutionError("At least one variable name is required", {"path": str(path)})

    buf = _solution_buffer(soln)
    required = (line_mesh.max_node_id + 1) * n_vars
    if buf.size < required:
        raise SolutionSizeError(
            "Solution buffer is too short for the mesh",
            {"size": int(buf.size), "required": required, "n_vars": n_vars},
        )

    layout = compute_layout(line_mesh)

    path = Path(path)
    with _open_for_writing(path, "script") as out:
        out.write("".join(_script_lines(path, layout, names, options)))
    logger.info("gnuplot script written to %s", path)

    node_map = collect_nodal_values(line_mesh, buf, n_vars)
    data_path = data_file_path(path)
    with _open_for_writing(data_path, "data") as data:
        for x in sorted(node_map):
            data.write("\t".join([_fmt(x)] + [_fmt(v) for v in node_map[x]]) + "\n")
    logger.info("gnuplot data written to %s (%d nodes, %d variables)", data_path, len(node_map), n_vars)


def write_gnuplot_nodal_data(
    path: str | Path,
    mesh: LineMesh | meshio.Mesh,
    soln,
    names: Sequence[str],
    **kwargs,
) -> None:
    t0 = time.perf_counter()
    write_gnuplot(path, mesh, soln, names, **kwargs)
    logger.debug("write_gnuplot_nodal_data: %.3f s", time.perf_counter() - t0)


def write_gnuplot_mesh(path: str | Path, mesh: LineMesh | meshio.Mesh, **kwargs) -> None:
    """Topology-only export; always fails because there is nothing to plot."""
    write_gnuplot(path, mesh, None, None, **kwargs)
