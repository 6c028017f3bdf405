"""Numeric core: parameters, forward pass, decision rule."""

from . import activations, errors, types
from .dataset import Dataset
from .model import Model

__all__ = ["Dataset", "Model", "activations", "errors", "types"]
