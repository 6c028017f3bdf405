"""Single-hidden-layer classifier: parameters, forward pass and decision rule."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

import numpy as np

from .activations import leaky_relu, softmax
from .errors import DimensionMismatchError
from .types import Array, ForwardState, PredictionResult

INIT_LIMIT = 0.1
PARAMETER_NAMES = ("w1", "b1", "w2", "b2")


def _check_size(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return int(value)


@dataclass(eq=False)
class Model:
    """Weights and biases of an ``input -> hidden -> output`` network.

    ``w1`` has shape ``(input_size, hidden_size)`` and ``w2`` has shape
    ``(hidden_size, output_size)``; all parameters are ``float32``.  The shapes
    are fixed at construction, training mutates the arrays in place.
    """

    w1: Array
    b1: Array
    w2: Array
    b2: Array

    def __post_init__(self) -> None:
        self.w1 = np.array(self.w1, dtype=np.float32)
        self.b1 = np.array(self.b1, dtype=np.float32)
        self.w2 = np.array(self.w2, dtype=np.float32)
        self.b2 = np.array(self.b2, dtype=np.float32)
        if self.w1.ndim != 2 or self.w2.ndim != 2:
            raise DimensionMismatchError("w1 and w2 must be matrices")
        if self.b1.ndim != 1 or self.b2.ndim != 1:
            raise DimensionMismatchError("b1 and b2 must be vectors")
        if 0 in self.w1.shape or 0 in self.w2.shape:
            raise DimensionMismatchError("Model dimensions must be non-zero")
        if self.w2.shape[0] != self.w1.shape[1]:
            raise DimensionMismatchError(
                f"w2 expects {self.w2.shape[0]} hidden units but w1 provides {self.w1.shape[1]}"
            )
        if self.b1.shape[0] != self.hidden_size:
            raise DimensionMismatchError(
                f"b1 has {self.b1.shape[0]} entries, expected {self.hidden_size}"
            )
        if self.b2.shape[0] != self.output_size:
            raise DimensionMismatchError(
                f"b2 has {self.b2.shape[0]} entries, expected {self.output_size}"
            )

    @classmethod
    def initialize(
        cls,
        input_size: int,
        hidden_size: int,
        output_size: int,
        rng: Any | None = None,
    ) -> "Model":
        """Create a model with ``uniform(-0.1, 0.1)`` weights and zero biases.

        ``rng`` is anything exposing numpy's ``uniform(low, high, size)``; it is
        used for construction only and is not kept on the model.
        """

        input_size = _check_size("input_size", input_size)
        hidden_size = _check_size("hidden_size", hidden_size)
        output_size = _check_size("output_size", output_size)
        if rng is None:
            rng = np.random.default_rng()
        w1 = rng.uniform(-INIT_LIMIT, INIT_LIMIT, size=(input_size, hidden_size))
        w2 = rng.uniform(-INIT_LIMIT, INIT_LIMIT, size=(hidden_size, output_size))
        return cls(
            w1=w1,
            b1=np.zeros(hidden_size, dtype=np.float32),
            w2=w2,
            b2=np.zeros(output_size, dtype=np.float32),
        )

    @property
    def input_size(self) -> int:
        return int(self.w1.shape[0])

    @property
    def hidden_size(self) -> int:
        return int(self.w1.shape[1])

    @property
    def output_size(self) -> int:
        return int(self.w2.shape[1])

    @property
    def dims(self) -> tuple[int, int, int]:
        return self.input_size, self.hidden_size, self.output_size

    def check_input(self, inputs: Any) -> Array:
        """Return ``inputs`` as a ``float32`` vector of length ``input_size``."""

        vector = np.asarray(inputs, dtype=np.float32)
        if vector.ndim != 1 or vector.shape[0] != self.input_size:
            raise DimensionMismatchError(
                f"Expected an input vector of length {self.input_size}, got shape {vector.shape}"
            )
        return vector

    def forward(self, inputs: Any) -> ForwardState:
        x = self.check_input(inputs)
        hidden_raw = self.b1 + x @ self.w1
        hidden = leaky_relu(hidden_raw)
        logits = self.b2 + hidden @ self.w2
        return ForwardState(hidden_raw=hidden_raw, hidden=hidden, probs=softmax(logits))

    def predict(self, inputs: Any) -> PredictionResult:
        """Classify ``inputs``; equal probabilities resolve to the lowest index."""

        probs = self.forward(inputs).probs
        best = int(np.argmax(probs))
        return PredictionResult(predicted_index=best, confidence=float(probs[best]))

    def state_dict(self) -> Mapping[str, Array]:
        return {name: getattr(self, name).copy() for name in PARAMETER_NAMES}

    @classmethod
    def from_state_dict(cls, state: Mapping[str, Array]) -> "Model":
        missing = [name for name in PARAMETER_NAMES if name not in state]
        if missing:
            raise KeyError(f"Missing parameters in state dict: {', '.join(missing)}")
        return cls(**{name: state[name] for name in PARAMETER_NAMES})

    def copy(self) -> "Model":
        return Model.from_state_dict(self.state_dict())

    def parameter_count(self) -> int:
        return int(sum(getattr(self, name).size for name in PARAMETER_NAMES))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Model):
            return NotImplemented
        return all(
            getattr(self, name).shape == getattr(other, name).shape
            and getattr(self, name).tobytes() == getattr(other, name).tobytes()
            for name in PARAMETER_NAMES
        )

    __hash__ = None  # type: ignore[assignment]


__all__ = ["INIT_LIMIT", "Model", "PARAMETER_NAMES"]
