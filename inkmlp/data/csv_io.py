"""Reader and writer for the ``label,p0,p1,...`` grid dataset format."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from ..core.dataset import Dataset
from .grid import flatten_grid
from .labels import INVALID_INDEX, LabelScheme

logger = logging.getLogger(__name__)


def read_dataset(
    path: str | Path,
    scheme: LabelScheme,
    *,
    grid_side: int,
) -> Dataset:
    """Load every well-formed, mapped line of ``path`` as a one-hot sample.

    A line is kept only when it has exactly ``1 + grid_side**2`` fields, every
    pixel field parses as a number and its label belongs to ``scheme``.  All
    other lines are skipped; the file is never rejected as a whole.
    """

    path = Path(path)
    input_size = grid_side * grid_side
    expected = 1 + input_size
    text = path.read_bytes().decode("utf-8", errors="replace")
    lines = pd.Series(text.splitlines(), dtype=object)
    lines = lines[lines.str.strip() != ""]
    empty = Dataset.from_samples([], input_size=input_size, output_size=scheme.num_classes)
    if lines.empty:
        logger.info("No samples in %s", path)
        return empty

    parts = lines.str.split(",", expand=True)
    field_counts = parts.notna().sum(axis=1)
    well_formed = parts[field_counts == expected]
    if well_formed.empty:
        logger.info("No well-formed lines in %s (%d skipped)", path, len(lines))
        return empty

    labels = well_formed[0].str.strip()
    pixels = well_formed.iloc[:, 1:expected].apply(
        lambda column: pd.to_numeric(column.str.strip(), errors="coerce")
    )
    numeric = pixels.notna().all(axis=1)
    indices = labels.map(scheme.index)
    mapped = indices != INVALID_INDEX
    keep = numeric & mapped

    skipped_format = len(lines) - int(numeric.sum())
    skipped_label = int((numeric & ~mapped).sum())
    logger.info(
        "Read %d samples from %s (%d malformed and %d unmapped lines skipped)",
        int(keep.sum()),
        path,
        skipped_format,
        skipped_label,
    )
    if not keep.any():
        return empty

    eye = np.eye(scheme.num_classes, dtype=np.float32)
    return Dataset(
        inputs=pixels[keep].to_numpy(dtype=np.float32),
        targets=eye[indices[keep].to_numpy(dtype=np.int64)],
        labels=tuple(labels[keep]),
    )


def append_sample(path: str | Path, label: str, grid: Any) -> None:
    """Append ``grid`` under ``label`` as one line of ``path``."""

    label = str(label).strip()
    if not label or any(ch in label for ch in ",\r\n"):
        raise ValueError(f"Invalid dataset label {label!r}")
    values = flatten_grid(grid)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, lineterminator="\n")
        writer.writerow([label, *(int(v) if float(v).is_integer() else float(v) for v in values)])


__all__ = ["append_sample", "read_dataset"]
