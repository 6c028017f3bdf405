"""Command line entry point for inkmlp: train, predict, evaluate and inspect grids."""

from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path
from typing import Iterable

from inkmlp import persistence
from inkmlp.core.errors import InkMLPError
from inkmlp.data.csv_io import append_sample, read_dataset
from inkmlp.data.grid import flatten_grid, read_grid, render_grid
from inkmlp.data.labels import available_label_schemes, predict_label
from inkmlp.training import pipelines
from inkmlp.training.metrics import evaluate


def configure_logging() -> None:
    """Set up logging from ``INKMLP_LOG_LEVEL`` (default ``INFO``)."""

    level_name = os.getenv("INKMLP_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _add_label_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--label-scheme",
        choices=available_label_schemes(),
        help="Registered label scheme mapping labels to class indices",
    )
    parser.add_argument(
        "--labels",
        help="Comma separated custom alphabet, overrides --label-scheme",
    )


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    commands = parser.add_subparsers(dest="command", required=True)

    train = commands.add_parser("train", help="Train a model from a dataset CSV")
    train.add_argument(
        "--preset",
        choices=preset_names,
        default="alnum-28",
        help="Preset configuration to start from",
    )
    train.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    train.add_argument("--csv-path", help="Dataset CSV to train on")
    train.add_argument("--grid-side", type=int, help="Side of the square input grid")
    _add_label_options(train)
    train.add_argument("--holdout", type=int, help="Trailing samples kept for evaluation")
    train.add_argument("--hidden", type=int, help="Hidden layer width")
    train.add_argument("--epochs", type=int, help="Number of passes over the dataset")
    train.add_argument("--lr", type=float, help="Learning rate")
    train.add_argument("--seed", type=int, help="Seed for weight initialisation")
    train.add_argument("--backprop", choices=["standard", "in_place"])
    train.add_argument("--hidden-mask", choices=["zero", "leaky"])
    train.add_argument("--check-finite", action="store_true", help="Fail on NaN/Inf loss")
    train.add_argument("--run-dir", help="Directory for metrics and the model file")
    train.add_argument("--model-path", help="Where to write the trained model")
    train.add_argument("--enable-plots", action="store_true", help="Write loss.png")
    train.add_argument("--dump-config", type=Path, help="Dump the resolved config to JSON")

    predict = commands.add_parser("predict", help="Classify a grid file")
    predict.add_argument("--model", required=True, type=Path, help="Trained model file")
    predict.add_argument("--input", required=True, type=Path, help="Grid file, one row per line")
    _add_label_options(predict)

    evaluate_cmd = commands.add_parser("evaluate", help="Score a model on a dataset CSV")
    evaluate_cmd.add_argument("--model", required=True, type=Path, help="Trained model file")
    evaluate_cmd.add_argument("--csv-path", required=True, help="Dataset CSV")
    _add_label_options(evaluate_cmd)
    evaluate_cmd.add_argument(
        "--holdout", type=int, help="Only score the trailing N samples of the file"
    )

    preview = commands.add_parser("preview", help="Render a grid file to the console")
    preview.add_argument("--input", required=True, type=Path, help="Grid file")

    append = commands.add_parser("append", help="Append a labelled grid to a dataset CSV")
    append.add_argument("--csv-path", required=True, help="Dataset CSV")
    append.add_argument("--label", required=True, help="Label of the grid")
    append.add_argument("--input", required=True, type=Path, help="Grid file")

    commands.add_parser("list-presets", help="List available presets and exit")
    return parser.parse_args(argv)


def _load_override(path: Path) -> dict:
    text = path.read_text()
    if path.suffix in {".yml", ".yaml"}:
        try:
            import yaml  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load YAML configs") from exc
        return yaml.safe_load(text) or {}
    return json.loads(text)


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


def _label_config(args: argparse.Namespace) -> dict:
    cfg: dict = {}
    if args.labels:
        cfg["labels"] = [item.strip() for item in args.labels.split(",") if item.strip()]
    if args.label_scheme:
        cfg["label_scheme"] = args.label_scheme
    return cfg


def _resolve_train_config(args: argparse.Namespace) -> dict:
    config = pipelines.load_preset(args.preset)
    if args.config:
        config = _merge(config, _load_override(args.config))

    data_cfg = config.setdefault("data", {})
    model_cfg = config.setdefault("model", {})
    train_cfg = config.setdefault("train", {})
    data_cfg.update(_label_config(args))
    for key, value in (
        ("csv_path", args.csv_path),
        ("grid_side", args.grid_side),
        ("holdout", args.holdout),
    ):
        if value is not None:
            data_cfg[key] = value
    for key, value in (("hidden", args.hidden), ("seed", args.seed)):
        if value is not None:
            model_cfg[key] = value
    for key, value in (
        ("epochs", args.epochs),
        ("lr", args.lr),
        ("backprop", args.backprop),
        ("hidden_mask", args.hidden_mask),
        ("run_dir", args.run_dir),
        ("model_path", args.model_path),
    ):
        if value is not None:
            train_cfg[key] = value
    if args.check_finite:
        train_cfg["check_finite"] = True
    if args.enable_plots:
        train_cfg["enable_plots"] = True
    return config


def _run_train(args: argparse.Namespace) -> None:
    config = _resolve_train_config(args)
    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))
    result = pipelines.run_pipeline(config)
    payload = {
        "epochs": result.epochs,
        "last_loss": result.last_loss,
        "metrics": result.metrics_path,
        "model": result.model_path,
        "test_accuracy": result.test_accuracy,
    }
    print(json.dumps(payload, sort_keys=True))


def _run_predict(args: argparse.Namespace) -> None:
    model = persistence.load(args.model)
    scheme = pipelines.resolve_label_scheme(_label_config(args))
    grid = read_grid(args.input)
    label, result = predict_label(model, flatten_grid(grid), scheme)
    print(f"{label} {result.confidence:.4f}")


def _run_evaluate(args: argparse.Namespace) -> None:
    model = persistence.load(args.model)
    scheme = pipelines.resolve_label_scheme(_label_config(args))
    side = int(round(model.input_size ** 0.5))
    dataset = read_dataset(args.csv_path, scheme, grid_side=side)
    if args.holdout is not None:
        _, dataset = dataset.holdout(args.holdout)
    report = evaluate(model, dataset)
    print(f"Number of correct answers: {report.correct}/{report.total}")
    print(json.dumps(report.as_metrics(), sort_keys=True))


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging()

    if args.command == "list-presets":
        for name in sorted(pipelines.presets().keys()):
            print(name)
        return

    try:
        if args.command == "train":
            _run_train(args)
        elif args.command == "predict":
            _run_predict(args)
        elif args.command == "evaluate":
            _run_evaluate(args)
        elif args.command == "preview":
            print(render_grid(read_grid(args.input)))
        elif args.command == "append":
            append_sample(args.csv_path, args.label, read_grid(args.input))
            print(f"Saved with tag [{args.label.strip()}]")
    except (InkMLPError, OSError, KeyError) as exc:
        raise SystemExit(f"error: {exc}") from None


if __name__ == "__main__":
    main()
