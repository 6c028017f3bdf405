"""Pipeline assembly: dataset file in, trained and evaluated model file out."""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Mapping

import numpy as np

from ..core.errors import EmptyDatasetError
from ..core.model import Model
from ..core.types import RunResult
from ..data.csv_io import read_dataset
from ..data.labels import LabelScheme, get_label_scheme
from ..persistence import save
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from .metrics import evaluate
from .trainer import Trainer

logger = logging.getLogger(__name__)

_PRESETS: Dict[str, Mapping[str, Any]] = {
    "alnum-28": {
        "data": {
            "csv_path": "dataset.csv",
            "grid_side": 28,
            "label_scheme": "alphanumeric",
            "holdout": 0,
        },
        "model": {"hidden": 64, "seed": None},
        "train": {
            "epochs": 20,
            "lr": 0.01,
            "backprop": "standard",
            "hidden_mask": "zero",
            "check_finite": False,
            "run_dir": "runs/alnum-28",
            "enable_plots": False,
        },
    },
    "a4f-56": {
        "data": {
            "csv_path": "dataset.csv",
            "grid_side": 56,
            "label_scheme": "a4f",
            "holdout": 100,
        },
        "model": {"hidden": 256, "seed": None},
        "train": {
            "epochs": 1000,
            "lr": 0.001,
            "backprop": "standard",
            "hidden_mask": "zero",
            "check_finite": False,
            "run_dir": "runs/a4f-56",
            "enable_plots": False,
        },
    },
}


def presets() -> Mapping[str, Mapping[str, Any]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> Dict[str, Any]:
    try:
        return deepcopy(dict(_PRESETS[name]))
    except KeyError:
        available = ", ".join(sorted(_PRESETS))
        raise KeyError(f"Unknown preset: {name}. Available presets: {available}") from None


def resolve_label_scheme(data_cfg: Mapping[str, Any]) -> LabelScheme:
    """Return the scheme named by ``label_scheme`` or built from ``labels``."""

    symbols = data_cfg.get("labels")
    if symbols:
        return LabelScheme.from_symbols(
            "custom",
            [str(symbol) for symbol in symbols],
            case_sensitive=bool(data_cfg.get("case_sensitive", True)),
        )
    return get_label_scheme(str(data_cfg.get("label_scheme", "alphanumeric")))


def model_path_for(config: Mapping[str, Any]) -> Path:
    train_cfg = config.get("train", {})
    if train_cfg.get("model_path"):
        return Path(train_cfg["model_path"])
    return Path(train_cfg.get("run_dir", "runs/default")) / "model.npz"


def run_pipeline(config: Mapping[str, Any]) -> RunResult:
    data_cfg = dict(config["data"])
    model_cfg = dict(config.get("model", {}))
    train_cfg = dict(config.get("train", {}))

    scheme = resolve_label_scheme(data_cfg)
    grid_side = int(data_cfg.get("grid_side", 28))
    dataset = read_dataset(data_cfg["csv_path"], scheme, grid_side=grid_side)
    train_set, test_set = dataset.holdout(int(data_cfg.get("holdout", 0)))
    if len(train_set) == 0:
        raise EmptyDatasetError(
            f"Nothing to train on: {data_cfg['csv_path']} has {len(dataset)} usable samples "
            f"and {len(test_set)} are held out"
        )

    seed = model_cfg.get("seed")
    model = Model.initialize(
        grid_side * grid_side,
        int(model_cfg.get("hidden", 64)),
        scheme.num_classes,
        rng=np.random.default_rng(seed),
    )

    run_dir = Path(train_cfg.get("run_dir", "runs/default"))
    run_dir.mkdir(parents=True, exist_ok=True)
    model_path = model_path_for(config)
    epochs = int(train_cfg.get("epochs", 1))
    lr = float(train_cfg.get("lr", 0.01))

    _print_startup_summary(
        csv_path=str(data_cfg["csv_path"]),
        scheme=scheme,
        dims=model.dims,
        train_samples=len(train_set),
        test_samples=len(test_set),
        epochs=epochs,
        lr=lr,
        param_count=model.parameter_count(),
    )

    train_jsonl = JsonlSink(run_dir / "metrics_train.jsonl", split="train", seed=seed)
    train_csv = CsvSink(run_dir / "metrics_train.csv", split="train")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))

    trainer = Trainer(
        model,
        lr,
        backprop=str(train_cfg.get("backprop", "standard")),
        hidden_mask=str(train_cfg.get("hidden_mask", "zero")),
        callbacks=[train_jsonl, train_csv, plots],
        check_finite=bool(train_cfg.get("check_finite", False)),
    )
    result = trainer.run(train_set, epochs)
    plots.close()
    save(model, model_path)

    test_accuracy = None
    if len(test_set):
        report = evaluate(model, test_set)
        test_accuracy = report.accuracy
        (run_dir / "metrics_test.json").write_text(json.dumps(report.as_metrics(), indent=2))
        logger.info("Number of correct answers: %d/%d", report.correct, report.total)

    (run_dir / "config.json").write_text(json.dumps(_safe_config(config, model_path), indent=2))

    return RunResult(
        epochs=result.epochs,
        model_path=str(model_path),
        metrics_path=str(train_jsonl.path),
        train_samples=len(train_set),
        test_samples=len(test_set),
        last_loss=result.last_loss,
        test_accuracy=test_accuracy,
    )


def _safe_config(config: Mapping[str, Any], model_path: Path) -> Mapping[str, Any]:
    copied = json.loads(json.dumps(config, default=str))
    copied.setdefault("train", {})["model_path"] = str(model_path)
    return copied


def _print_startup_summary(
    *,
    csv_path: str,
    scheme: LabelScheme,
    dims: tuple[int, int, int],
    train_samples: int,
    test_samples: int,
    epochs: int,
    lr: float,
    param_count: int,
) -> None:
    print("=== inkmlp run ===")
    print(f"Dataset       : {csv_path}")
    print(f"Labels        : {scheme.name} ({scheme.num_classes} classes)")
    print(f"Dimensions    : {list(dims)}")
    print(f"Samples       : {train_samples} train / {test_samples} held out")
    print(f"Epochs        : {epochs}")
    print(f"Learning rate : {lr}")
    print(f"Parameters    : {param_count}")
    print("==================")


__all__ = ["load_preset", "model_path_for", "presets", "resolve_label_scheme", "run_pipeline"]
