"""Core typing contracts for inkmlp."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

Array = np.ndarray


@dataclass(frozen=True)
class Sample:
    """A single labelled example: an input vector and its one-hot target."""

    input: Array
    target: Array

    def __post_init__(self) -> None:
        inputs = np.array(self.input, dtype=np.float32).reshape(-1)
        target = np.array(self.target, dtype=np.float32).reshape(-1)
        if np.count_nonzero(target == 1.0) != 1 or np.count_nonzero(target) != 1:
            raise ValueError(f"Sample target must be one-hot, got {target.tolist()}")
        inputs.setflags(write=False)
        target.setflags(write=False)
        object.__setattr__(self, "input", inputs)
        object.__setattr__(self, "target", target)

    @property
    def class_index(self) -> int:
        return int(np.argmax(self.target))


@dataclass(frozen=True)
class ForwardState:
    """Intermediate values captured during the forward pass."""

    hidden_raw: Array
    hidden: Array
    probs: Array


@dataclass(frozen=True)
class PredictionResult:
    """Winning class index and its softmax probability."""

    predicted_index: int
    confidence: float


@dataclass(frozen=True)
class TrainResult:
    """Summary returned by :meth:`inkmlp.training.trainer.Trainer.run`."""

    epochs: int
    last_loss: float | None
    cancelled: bool = False


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`inkmlp.training.pipelines.run_pipeline`."""

    epochs: int
    model_path: str
    metrics_path: str
    train_samples: int
    test_samples: int
    last_loss: float | None = None
    test_accuracy: float | None = None
