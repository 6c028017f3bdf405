"""Cross-entropy loss used by the per-example training step."""

from __future__ import annotations

import numpy as np

from ..core.types import Array

EPSILON = 1e-7


def cross_entropy(probs: Array, target: Array, eps: float = EPSILON) -> float:
    """Return ``-sum(target * ln(probs + eps))`` for a single example."""

    return float(-np.sum(target * np.log(probs + eps)))


def softmax_cross_entropy_grad(probs: Array, target: Array) -> Array:
    """Gradient of the loss with respect to the logits (softmax folded in)."""

    return (probs - target).astype(np.float32, copy=False)


__all__ = ["EPSILON", "cross_entropy", "softmax_cross_entropy_grad"]
