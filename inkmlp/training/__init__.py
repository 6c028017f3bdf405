"""Training loop, loss, evaluation and pipelines."""

from .metrics import EvaluationReport, evaluate
from .trainer import Trainer, train

__all__ = ["EvaluationReport", "Trainer", "evaluate", "train"]
