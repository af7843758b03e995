# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Science Solutions International Laboratory, Inc.
"""Exceptions raised by the gnuplot exporter.

Every error carries an optional ``context`` dict (path, counts, ...) that is
appended to the message as ``| key=value, ...``.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping

__all__ = [
    "ExportError",
    "FileOpenError",
    "MissingSolutionError",
    "UnsupportedDimensionError",
    "SolutionSizeError",
    "NoBoundaryError",
]


def _format_context(ctx: Dict[str, Any] | None) -> str:
    if not ctx:
        return ""
    parts = []
    for k in sorted(ctx):
        sv = repr(ctx[k])
        if len(sv) > 120:
            sv = sv[:117] + "..."
        parts.append(f"{k}={sv}")
    return " | " + ", ".join(parts)


class ExportError(Exception):
    """Base class for all export failures."""

    def __init__(self, message: str, context: Mapping[str, Any] | None = None):
        self.context = dict(context) if context else None
        super().__init__(message)

    def __str__(self) -> str:
        return super().__str__() + _format_context(self.context)


class FileOpenError(ExportError):
    """An output file (script or data) could not be opened for writing."""


class MissingSolutionError(ExportError, ValueError):
    """Solution buffer or variable names were not supplied."""


class UnsupportedDimensionError(ExportError, ValueError):
    """The mesh is not one-dimensional."""


class SolutionSizeError(ExportError, ValueError):
    """Solution buffer is shorter than (max_node_id + 1) * n_vars."""


class NoBoundaryError(ExportError, ValueError):
    """No active element lacks a neighbor on one side (empty or cyclic mesh)."""
