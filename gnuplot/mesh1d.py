# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Science Solutions International Laboratory, Inc.
# ems-gnuplot-exporter/gnuplot/mesh1d.py
from __future__ import annotations

from typing import Dict, Iterator, List, Tuple

import numpy as np
import meshio

LEFT = 0
RIGHT = 1


class LineMesh:
    """Read-only view of a 1D mesh made of two-node line elements.

    ``elements[e] = (left_node, right_node)``; node ids index rows of ``points``
    and the x coordinate is column 0. Elements masked out by ``active`` are
    skipped everywhere, including the neighbor search.
    """

    def __init__(self, points, elements, dimension: int = 1, active=None):
        pts = np.asarray(points, dtype=float)
        if pts.ndim == 1:
            pts = pts.reshape(-1, 1)
        conn = np.asarray(elements, dtype=int)
        if conn.size == 0:
            conn = conn.reshape(0, 2)
        if conn.ndim != 2 or conn.shape[1] != 2:
            raise ValueError(f"Line elements must have shape (n, 2), got {conn.shape}")
        if conn.size and (conn.min() < 0 or conn.max() >= len(pts)):
            raise ValueError("Element connectivity references a node outside the point array")

        if active is None:
            mask = np.ones(len(conn), dtype=bool)
        else:
            mask = np.asarray(active, dtype=bool).reshape(-1)
            if mask.size != len(conn):
                raise ValueError(f"Active mask has {mask.size} entries for {len(conn)} elements")

        self.points = pts
        self.elements = conn
        self.mesh_dimension = int(dimension)
        self._active = mask
        self._neighbors = self._find_neighbors()

    @classmethod
    def from_meshio(cls, mesh: meshio.Mesh) -> "LineMesh":
        """Collect every 1D cell block of a meshio mesh.

        The mesh dimension is the highest ``CellBlock.dim`` among the blocks,
        so a mesh carrying triangles is reported as 2D. Higher-order edges
        (``line3``, ``line4``, ...) list their two end nodes first; only those
        are kept. An optional ``cell_data["active"]`` entry (one array per
        block) deactivates elements where it is 0.
        """
        dimension = 0
        conns: List[np.ndarray] = []
        masks: List[np.ndarray] = []
        active_blocks = None
        if isinstance(getattr(mesh, "cell_data", None), dict) and "active" in mesh.cell_data:
            active_blocks = mesh.cell_data["active"]

        for bidx, block in enumerate(mesh.cells):
            dimension = max(dimension, int(block.dim))
            if block.dim != 1:
                continue
            data = np.asarray(block.data, dtype=int)[:, :2]
            conns.append(data)
            if active_blocks is not None and bidx < len(active_blocks):
                masks.append(np.asarray(active_blocks[bidx]).reshape(-1) != 0)
            else:
                masks.append(np.ones(len(data), dtype=bool))

        elements = np.concatenate(conns) if conns else np.empty((0, 2), dtype=int)
        active = np.concatenate(masks) if masks else np.empty(0, dtype=bool)
        return cls(mesh.points, elements, dimension=dimension, active=active)

    def _find_neighbors(self) -> List[List[int | None]]:
        # Left neighbor shares our node 0, right neighbor shares our node 1.
        by_node: Dict[int, List[Tuple[int, int]]] = {}
        for e in self.active_elements():
            for side in (LEFT, RIGHT):
                by_node.setdefault(int(self.elements[e, side]), []).append((e, side))

        neighbors: List[List[int | None]] = [[None, None] for _ in range(len(self.elements))]
        for e in self.active_elements():
            for side in (LEFT, RIGHT):
                for other, _ in by_node[int(self.elements[e, side])]:
                    if other != e:
                        neighbors[e][side] = other
                        break
        return neighbors

    def n_active_elem(self) -> int:
        return int(np.count_nonzero(self._active))

    def active_elements(self) -> Iterator[int]:
        for e in np.flatnonzero(self._active):
            yield int(e)

    def node(self, elem: int, side: int) -> int:
        return int(self.elements[elem, side])

    def neighbor(self, elem: int, side: int) -> int | None:
        return self._neighbors[elem][side]

    def point(self, node_id: int) -> float:
        return float(self.points[node_id, 0])

    @property
    def max_node_id(self) -> int:
        """Largest node id referenced by an active element, -1 if there is none."""
        ids = self.elements[self._active]
        return int(ids.max()) if ids.size else -1
