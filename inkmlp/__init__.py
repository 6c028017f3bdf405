"""inkmlp public API."""

from .core import activations  # noqa: F401
from .core import types  # noqa: F401
from .core.dataset import Dataset
from .core.errors import (
    DimensionMismatchError,
    EmptyDatasetError,
    InkMLPError,
    ModelFormatError,
    NonFiniteLossError,
)
from .core.model import Model
from .core.types import PredictionResult, Sample, TrainResult
from .persistence import dumps, load, loads, save
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer, train

__all__ = [
    "Dataset",
    "DimensionMismatchError",
    "EmptyDatasetError",
    "InkMLPError",
    "Model",
    "ModelFormatError",
    "NonFiniteLossError",
    "PredictionResult",
    "Sample",
    "TrainResult",
    "Trainer",
    "activations",
    "dumps",
    "load",
    "load_preset",
    "loads",
    "presets",
    "run_pipeline",
    "save",
    "train",
    "types",
]
