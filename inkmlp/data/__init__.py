"""Dataset files, pixel grids and label schemes."""

from .csv_io import append_sample, read_dataset
from .grid import binarize, flatten_grid, grid_side_for, read_grid, render_grid, unflatten
from .labels import (
    A4F,
    ALPHANUMERIC,
    INVALID_INDEX,
    LabelScheme,
    available_label_schemes,
    get_label_scheme,
    predict_label,
    register_label_scheme,
)

__all__ = [
    "A4F",
    "ALPHANUMERIC",
    "INVALID_INDEX",
    "LabelScheme",
    "append_sample",
    "available_label_schemes",
    "binarize",
    "flatten_grid",
    "get_label_scheme",
    "grid_side_for",
    "predict_label",
    "read_dataset",
    "read_grid",
    "register_label_scheme",
    "render_grid",
    "unflatten",
]
