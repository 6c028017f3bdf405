"""Activation utilities for inkmlp."""

from __future__ import annotations

import numpy as np

from .types import Array

NEGATIVE_SLOPE = 0.01


def leaky_relu(x: Array) -> Array:
    """Return ``x`` where positive and ``0.01 * x`` elsewhere."""

    return np.where(x > 0, x, NEGATIVE_SLOPE * x).astype(x.dtype, copy=False)


def hidden_gradient_mask(hidden_raw: Array, mode: str = "zero") -> Array:
    """Multiplier applied to the hidden gradient for each hidden unit.

    ``"zero"`` blocks the gradient of every unit whose pre-activation is not
    positive, ``"leaky"`` lets ``0.01`` of it through to match the forward
    slope.
    """

    if mode == "zero":
        negative = 0.0
    elif mode == "leaky":
        negative = NEGATIVE_SLOPE
    else:
        raise ValueError(f"Unknown hidden mask mode: {mode!r}")
    return np.where(hidden_raw <= 0, negative, 1.0).astype(hidden_raw.dtype, copy=False)


def softmax(logits: Array) -> Array:
    shifted = logits - np.max(logits)
    exp = np.exp(shifted)
    return exp / np.sum(exp)


__all__ = ["NEGATIVE_SLOPE", "hidden_gradient_mask", "leaky_relu", "softmax"]
