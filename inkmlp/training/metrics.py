"""Evaluation metrics for a trained classifier on a held-out dataset."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping

import numpy as np
from sklearn.metrics import confusion_matrix

from ..core.dataset import Dataset
from ..core.errors import DimensionMismatchError
from ..core.model import Model
from ..core.types import Array


@dataclass(frozen=True)
class EvaluationReport:
    """Outcome of classifying every sample of a dataset."""

    correct: int
    total: int
    predictions: Array = field(repr=False)
    targets: Array = field(repr=False)
    confusion: Array = field(repr=False)
    mean_confidence: float = 0.0

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0

    @property
    def macro_f1(self) -> float:
        return macro_f1(self.confusion)

    def as_metrics(self) -> Mapping[str, float]:
        return {
            "accuracy": float(self.accuracy),
            "macro_f1": float(self.macro_f1),
            "correct": float(self.correct),
            "total": float(self.total),
            "mean_confidence": float(self.mean_confidence),
        }


def macro_f1(confusion: Array) -> float:
    """Unweighted mean F1 over the classes that occur in ``confusion``."""

    f1_scores: List[float] = []
    for cls in range(confusion.shape[0]):
        tp = confusion[cls, cls]
        fp = confusion[:, cls].sum() - tp
        fn = confusion[cls, :].sum() - tp
        if tp + fp + fn == 0:
            continue
        precision = tp / (tp + fp + 1e-9)
        recall = tp / (tp + fn + 1e-9)
        f1_scores.append(2 * precision * recall / (precision + recall + 1e-9))
    return float(np.mean(f1_scores)) if f1_scores else 0.0


def evaluate(model: Model, dataset: Dataset) -> EvaluationReport:
    """Predict every sample of ``dataset`` and compare with its target class."""

    if dataset.input_size != model.input_size:
        raise DimensionMismatchError(
            f"Dataset inputs have {dataset.input_size} features, model expects "
            f"{model.input_size}"
        )
    if dataset.output_size != model.output_size:
        raise DimensionMismatchError(
            f"Dataset targets have {dataset.output_size} classes, model expects "
            f"{model.output_size}"
        )

    predictions = np.zeros(len(dataset), dtype=np.int64)
    confidences = np.zeros(len(dataset), dtype=np.float64)
    for idx, x in enumerate(dataset.inputs):
        result = model.predict(x)
        predictions[idx] = result.predicted_index
        confidences[idx] = result.confidence
    targets = dataset.class_indices.astype(np.int64)
    confusion = confusion_matrix(
        targets, predictions, labels=np.arange(model.output_size)
    ) if len(dataset) else np.zeros((model.output_size, model.output_size), dtype=np.int64)
    return EvaluationReport(
        correct=int(np.sum(predictions == targets)),
        total=len(dataset),
        predictions=predictions,
        targets=targets,
        confusion=confusion,
        mean_confidence=float(confidences.mean()) if len(dataset) else 0.0,
    )


def per_class_accuracy(report: EvaluationReport) -> Dict[int, float]:
    totals = report.confusion.sum(axis=1)
    return {
        cls: float(report.confusion[cls, cls] / totals[cls])
        for cls in range(report.confusion.shape[0])
        if totals[cls]
    }


__all__ = ["EvaluationReport", "evaluate", "macro_f1", "per_class_accuracy"]
