"""In-memory dataset of one-hot labelled samples."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

import numpy as np

from .errors import DimensionMismatchError
from .types import Array, Sample


def _check_one_hot(targets: Array) -> None:
    if targets.size == 0:
        return
    binary = np.all((targets == 0.0) | (targets == 1.0))
    if not binary or not np.all(targets.sum(axis=1) == 1.0):
        raise ValueError("Every target row must be one-hot")


@dataclass(frozen=True)
class Dataset:
    """Ordered samples stored as ``(N, input_size)`` / ``(N, output_size)`` arrays.

    ``labels`` optionally keeps the original string label of every row, as read
    from a dataset file.
    """

    inputs: Array
    targets: Array
    labels: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        inputs = np.array(self.inputs, dtype=np.float32)
        targets = np.array(self.targets, dtype=np.float32)
        if inputs.ndim != 2 or targets.ndim != 2:
            raise DimensionMismatchError("inputs and targets must both be 2-D")
        if inputs.shape[0] != targets.shape[0]:
            raise DimensionMismatchError(
                f"{inputs.shape[0]} inputs but {targets.shape[0]} targets"
            )
        labels = tuple(str(label) for label in self.labels)
        if labels and len(labels) != inputs.shape[0]:
            raise ValueError(f"{len(labels)} labels for {inputs.shape[0]} samples")
        _check_one_hot(targets)
        inputs.setflags(write=False)
        targets.setflags(write=False)
        object.__setattr__(self, "inputs", inputs)
        object.__setattr__(self, "targets", targets)
        object.__setattr__(self, "labels", labels)

    @classmethod
    def from_samples(
        cls,
        samples: Iterable[Sample],
        *,
        input_size: int = 0,
        output_size: int = 0,
        labels: Sequence[str] = (),
    ) -> "Dataset":
        """Stack ``samples``; the sizes are only needed for an empty dataset."""

        items = list(samples)
        if not items:
            return cls(
                inputs=np.zeros((0, input_size), dtype=np.float32),
                targets=np.zeros((0, output_size), dtype=np.float32),
                labels=tuple(labels),
            )
        in_sizes = {item.input.shape[0] for item in items}
        out_sizes = {item.target.shape[0] for item in items}
        if len(in_sizes) != 1 or len(out_sizes) != 1:
            raise DimensionMismatchError("All samples must share input and target sizes")
        return cls(
            inputs=np.stack([item.input for item in items]),
            targets=np.stack([item.target for item in items]),
            labels=tuple(labels),
        )

    @property
    def input_size(self) -> int:
        return int(self.inputs.shape[1])

    @property
    def output_size(self) -> int:
        return int(self.targets.shape[1])

    @property
    def class_indices(self) -> Array:
        return np.argmax(self.targets, axis=1) if len(self) else np.zeros(0, dtype=np.int64)

    def __len__(self) -> int:
        return int(self.inputs.shape[0])

    def __getitem__(self, index: int) -> Sample:
        return Sample(input=self.inputs[index], target=self.targets[index])

    def __iter__(self) -> Iterator[Sample]:
        for idx in range(len(self)):
            yield self[idx]

    def _slice(self, start: int, stop: int) -> "Dataset":
        return Dataset(
            inputs=self.inputs[start:stop],
            targets=self.targets[start:stop],
            labels=self.labels[start:stop] if self.labels else (),
        )

    def holdout(self, count: int) -> tuple["Dataset", "Dataset"]:
        """Split off the last ``count`` samples, returning ``(head, tail)``."""

        if count < 0:
            raise ValueError("holdout count must be non-negative")
        cut = max(0, len(self) - count)
        return self._slice(0, cut), self._slice(cut, len(self))


__all__ = ["Dataset"]
