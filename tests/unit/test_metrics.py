import csv
import json

import numpy as np
import pytest

from inkmlp.core.dataset import Dataset
from inkmlp.core.errors import DimensionMismatchError
from inkmlp.core.model import Model
from inkmlp.reporting import CsvSink, JsonlSink, PlotAdapter
from inkmlp.training.metrics import evaluate, macro_f1, per_class_accuracy


def _zero_model():
    return Model(w1=np.zeros((2, 2)), b1=np.zeros(2), w2=np.zeros((2, 2)), b2=np.zeros(2))


def test_evaluate_counts_correct_predictions():
    dataset = Dataset(
        inputs=np.ones((3, 2), dtype=np.float32),
        targets=np.eye(2, dtype=np.float32)[[0, 1, 0]],
    )
    report = evaluate(_zero_model(), dataset)
    assert report.correct == 2 and report.total == 3
    assert report.accuracy == pytest.approx(2 / 3)
    np.testing.assert_array_equal(report.confusion, [[2, 0], [1, 0]])
    assert report.mean_confidence == pytest.approx(0.5)
    assert report.macro_f1 == pytest.approx(0.4, abs=1e-6)
    assert per_class_accuracy(report) == {0: 1.0, 1: 0.0}
    metrics = report.as_metrics()
    assert metrics["correct"] == 2.0 and metrics["total"] == 3.0


def test_evaluate_empty_dataset():
    empty = Dataset.from_samples([], input_size=2, output_size=2)
    report = evaluate(_zero_model(), empty)
    assert report.total == 0 and report.accuracy == 0.0
    assert report.confusion.shape == (2, 2)


def test_evaluate_rejects_mismatched_dataset():
    wrong_classes = Dataset(inputs=np.ones((2, 2), dtype=np.float32), targets=np.eye(3)[[0, 2]])
    with pytest.raises(DimensionMismatchError, match="3 classes"):
        evaluate(_zero_model(), wrong_classes)
    wrong_inputs = Dataset(inputs=np.ones((2, 4), dtype=np.float32), targets=np.eye(2))
    with pytest.raises(DimensionMismatchError, match="4 features"):
        evaluate(_zero_model(), wrong_inputs)


def test_macro_f1_ignores_absent_classes():
    confusion = np.array([[3, 0, 0], [0, 2, 0], [0, 0, 0]])
    assert macro_f1(confusion) == pytest.approx(1.0, abs=1e-6)
    assert macro_f1(np.zeros((2, 2))) == 0.0


def test_jsonl_and_csv_sinks(tmp_path):
    jsonl = JsonlSink(tmp_path / "metrics.jsonl", split="train", seed=3)
    table = CsvSink(tmp_path / "metrics.csv", split="train")
    for epoch, loss in ((1, 0.7), (2, 0.5)):
        jsonl.on_epoch(epoch, {"loss": loss})
        table(epoch, {"loss": loss})
    records = [json.loads(line) for line in (tmp_path / "metrics.jsonl").read_text().splitlines()]
    assert records == [
        {"epoch": 1, "split": "train", "seed": 3, "loss": 0.7},
        {"epoch": 2, "split": "train", "seed": 3, "loss": 0.5},
    ]
    with (tmp_path / "metrics.csv").open() as handle:
        rows = list(csv.DictReader(handle))
    assert [row["epoch"] for row in rows] == ["1", "2"]
    assert rows[0].keys() == {"epoch", "loss", "split"}


def test_plot_adapter_disabled_writes_nothing(tmp_path):
    plots = PlotAdapter(tmp_path / "run", enable_plots=False)
    plots.on_epoch(1, {"loss": 1.0})
    assert plots.close() is None
    assert not (tmp_path / "run").exists()


def test_plot_adapter_writes_loss_curve(tmp_path):
    pytest.importorskip("matplotlib")
    plots = PlotAdapter(tmp_path, enable_plots=True)
    for epoch in range(1, 4):
        plots(epoch, {"loss": 1.0 / epoch})
    path = plots.close()
    assert path == tmp_path / "loss.png"
    assert path.exists()
