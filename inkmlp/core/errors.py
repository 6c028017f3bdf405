"""Exception hierarchy shared by the numeric core and its collaborators."""

from __future__ import annotations


class InkMLPError(Exception):
    """Base class for errors raised by inkmlp."""


class DimensionMismatchError(InkMLPError, ValueError):
    """An input vector or stored parameter disagrees with the model sizes."""


class EmptyDatasetError(InkMLPError, ValueError):
    """Training was requested on a dataset with no usable samples."""


class ModelFormatError(InkMLPError, ValueError):
    """A persisted model is corrupt or internally inconsistent."""


class NonFiniteLossError(InkMLPError, FloatingPointError):
    """An epoch produced a NaN or infinite mean loss."""


__all__ = [
    "DimensionMismatchError",
    "EmptyDatasetError",
    "InkMLPError",
    "ModelFormatError",
    "NonFiniteLossError",
]
