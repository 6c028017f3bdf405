"""Helpers for square binary pixel grids (1 = ink, 0 = background)."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any

import numpy as np

from ..core.errors import DimensionMismatchError
from ..core.types import Array

INK = "██"
BACKGROUND = "░░"


def grid_side_for(length: int) -> int:
    """Return the side of the square grid that flattens to ``length`` values."""

    side = math.isqrt(length)
    if side == 0 or side * side != length:
        raise DimensionMismatchError(f"{length} values do not form a square grid")
    return side


def flatten_grid(grid: Any) -> Array:
    """Flatten a square grid row-major into a ``float32`` input vector."""

    array = np.asarray(grid)
    if array.ndim != 2 or array.shape[0] != array.shape[1]:
        raise DimensionMismatchError(f"Expected a square grid, got shape {array.shape}")
    return array.astype(np.float32).reshape(-1)


def unflatten(vector: Any) -> Array:
    values = np.asarray(vector).reshape(-1)
    side = grid_side_for(values.size)
    return (values != 0).astype(np.int8).reshape(side, side)


def binarize(
    image: Any,
    grid_side: int,
    *,
    ink_threshold: int = 128,
    fill_ratio: float = 0.2,
) -> Array:
    """Downsample a greyscale raster into a ``grid_side`` square binary grid.

    A pixel counts as ink when darker than ``ink_threshold``; a cell is ink
    when more than ``fill_ratio`` of its pixels are.  Rows and columns beyond
    the last whole cell are ignored.
    """

    pixels = np.asarray(image)
    if pixels.ndim != 2:
        raise DimensionMismatchError(f"Expected a 2-D greyscale image, got shape {pixels.shape}")
    cell = min(pixels.shape) // grid_side if grid_side > 0 else 0
    if cell == 0:
        raise DimensionMismatchError(
            f"An image of shape {pixels.shape} is too small for a {grid_side}x{grid_side} grid"
        )
    span = cell * grid_side
    dark = pixels[:span, :span] < ink_threshold
    ratio = dark.reshape(grid_side, cell, grid_side, cell).mean(axis=(1, 3))
    return (ratio > fill_ratio).astype(np.int8)


def read_grid(path: str | Path) -> Array:
    """Read a grid written one row per line, as 0/1 digits optionally separated
    by commas or spaces."""

    rows = []
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        cells = [ch for ch in line if ch not in ", \t"]
        if not cells:
            continue
        if any(ch not in "01" for ch in cells):
            raise ValueError(f"Grid rows may only contain 0 and 1, got {line!r}")
        rows.append([int(ch) for ch in cells])
    if not rows or any(len(row) != len(rows) for row in rows):
        raise DimensionMismatchError(f"{path} does not contain a square grid")
    return np.array(rows, dtype=np.int8)


def render_grid(grid: Any, *, ink: str = INK, background: str = BACKGROUND) -> str:
    """Render a grid as text, one line per row."""

    array = np.asarray(grid)
    if array.ndim == 1:
        array = unflatten(array)
    return "\n".join("".join(ink if cell else background for cell in row) for row in array)


__all__ = ["binarize", "flatten_grid", "grid_side_for", "read_grid", "render_grid", "unflatten"]
