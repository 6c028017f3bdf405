"""Per-example SGD training loop for the single-hidden-layer classifier."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Callable, Iterable, Mapping, Sequence

import numpy as np

from ..core.activations import hidden_gradient_mask
from ..core.dataset import Dataset
from ..core.errors import DimensionMismatchError, EmptyDatasetError, NonFiniteLossError
from ..core.model import Model
from ..core.types import Array, Sample, TrainResult
from ..persistence import save as save_model
from .losses import cross_entropy, softmax_cross_entropy_grad

logger = logging.getLogger(__name__)

BACKPROP_MODES = ("standard", "in_place")
HIDDEN_MASK_MODES = ("zero", "leaky")


def _as_dataset(dataset: Dataset | Iterable[Sample]) -> Dataset:
    if isinstance(dataset, Dataset):
        return dataset
    return Dataset.from_samples(dataset)


class Trainer:
    """Train a :class:`Model` in place, one example at a time.

    ``backprop`` selects which value of ``w2`` feeds the hidden gradient:
    ``"standard"`` uses the weights from before the output-layer update,
    ``"in_place"`` uses the freshly updated ones.  ``hidden_mask`` selects how
    units with a non-positive pre-activation pass gradient back (see
    :func:`inkmlp.core.activations.hidden_gradient_mask`).
    """

    def __init__(
        self,
        model: Model,
        lr: float,
        *,
        backprop: str = "standard",
        hidden_mask: str = "zero",
        callbacks: Sequence[object] | None = None,
        check_finite: bool = False,
        checkpoint_path: str | Path | None = None,
    ) -> None:
        if not lr > 0:
            raise ValueError(f"Learning rate must be positive, got {lr}")
        if backprop not in BACKPROP_MODES:
            raise ValueError(f"backprop must be one of {BACKPROP_MODES}, got {backprop!r}")
        if hidden_mask not in HIDDEN_MASK_MODES:
            raise ValueError(
                f"hidden_mask must be one of {HIDDEN_MASK_MODES}, got {hidden_mask!r}"
            )
        self.model = model
        self.lr = float(lr)
        self.backprop = backprop
        self.hidden_mask = hidden_mask
        self.callbacks = list(callbacks or [])
        self.check_finite = check_finite
        self.checkpoint_path = Path(checkpoint_path) if checkpoint_path else None

    def step(self, inputs: Array, target: Array) -> float:
        """Run forward, loss, backward and update for one example."""

        model = self.model
        lr = np.float32(self.lr)
        x = model.check_input(inputs)
        state = model.forward(x)
        loss = cross_entropy(state.probs, target)
        d_out = softmax_cross_entropy_grad(state.probs, target)

        if self.backprop == "standard":
            d_hidden = model.w2 @ d_out
        model.w2 -= lr * np.outer(state.hidden, d_out)
        model.b2 -= lr * d_out
        if self.backprop == "in_place":
            d_hidden = model.w2 @ d_out

        d_hidden = d_hidden * hidden_gradient_mask(state.hidden_raw, self.hidden_mask)
        model.w1 -= lr * np.outer(x, d_hidden)
        model.b1 -= lr * d_hidden
        return loss

    def run(
        self,
        dataset: Dataset | Iterable[Sample],
        epochs: int,
        *,
        should_stop: Callable[[], bool] | None = None,
    ) -> TrainResult:
        """Train for ``epochs`` passes over ``dataset`` in order.

        ``should_stop`` is polled before every epoch; returning true ends the
        run early without touching the current epoch.
        """

        if epochs < 0:
            raise ValueError(f"epochs must be non-negative, got {epochs}")
        data = _as_dataset(dataset)
        if len(data) == 0:
            raise EmptyDatasetError("Nothing to train on: the dataset has no samples")
        if data.input_size != self.model.input_size:
            raise DimensionMismatchError(
                f"Dataset inputs have {data.input_size} features, model expects "
                f"{self.model.input_size}"
            )
        if data.output_size != self.model.output_size:
            raise DimensionMismatchError(
                f"Dataset targets have {data.output_size} classes, model expects "
                f"{self.model.output_size}"
            )

        completed = 0
        last_loss: float | None = None
        cancelled = False
        for epoch in range(1, epochs + 1):
            if should_stop is not None and should_stop():
                cancelled = True
                logger.info("Training cancelled before epoch %d", epoch)
                break
            total = 0.0
            for x, target in zip(data.inputs, data.targets):
                total += self.step(x, target)
            last_loss = total / len(data)
            completed = epoch
            logger.info("Epoch %d - Loss: %f", epoch, last_loss)
            if self.check_finite and not math.isfinite(last_loss):
                raise NonFiniteLossError(f"Epoch {epoch} produced a mean loss of {last_loss}")
            self._emit_epoch(epoch, {"loss": last_loss})
            if self.checkpoint_path is not None:
                save_model(self.model, self.checkpoint_path)

        return TrainResult(epochs=completed, last_loss=last_loss, cancelled=cancelled)

    def _emit_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)


def train(
    model: Model,
    dataset: Dataset | Iterable[Sample],
    epochs: int,
    learning_rate: float,
    **options,
) -> TrainResult:
    """Functional shortcut for ``Trainer(model, learning_rate, **options).run(...)``."""

    should_stop = options.pop("should_stop", None)
    trainer = Trainer(model, learning_rate, **options)
    return trainer.run(dataset, epochs, should_stop=should_stop)


__all__ = ["BACKPROP_MODES", "HIDDEN_MASK_MODES", "Trainer", "train"]
