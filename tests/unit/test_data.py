import numpy as np
import pytest

from inkmlp.core.dataset import Dataset
from inkmlp.core.errors import DimensionMismatchError
from inkmlp.core.model import Model
from inkmlp.data.csv_io import append_sample, read_dataset
from inkmlp.data.grid import (
    binarize,
    flatten_grid,
    grid_side_for,
    read_grid,
    render_grid,
    unflatten,
)
from inkmlp.data.labels import (
    A4F,
    ALPHANUMERIC,
    INVALID_INDEX,
    LabelScheme,
    get_label_scheme,
    predict_label,
    register_label_scheme,
)

XO = LabelScheme.from_symbols("xo", ["x", "o"])


def test_alphanumeric_scheme():
    assert ALPHANUMERIC.num_classes == 36
    assert ALPHANUMERIC.index("7") == 7
    assert ALPHANUMERIC.index("A") == 10
    assert ALPHANUMERIC.index(" z ") == 35
    assert ALPHANUMERIC.index("?") == INVALID_INDEX
    assert ALPHANUMERIC.label(10) == "A"
    assert ALPHANUMERIC.label(36) is None


def test_a4f_scheme():
    assert [A4F.index(label) for label in ("a", "4", " F ")] == [0, 1, 2]
    assert A4F.index("b") == INVALID_INDEX
    np.testing.assert_array_equal(A4F.one_hot("f"), [0, 0, 1])
    with pytest.raises(KeyError):
        A4F.one_hot("q")


def test_custom_schemes_must_be_injective():
    with pytest.raises(ValueError):
        LabelScheme.from_symbols("dup", ["a", "A"], case_sensitive=False)
    assert LabelScheme.from_symbols("ok", ["a", "A"]).num_classes == 2


def test_registry():
    assert get_label_scheme("a4f") is A4F
    with pytest.raises(ValueError):
        register_label_scheme(LabelScheme("a4f", ["x"]))
    with pytest.raises(KeyError, match="Available schemes"):
        get_label_scheme("nope")


def test_predict_label_names_the_class():
    model = Model(w1=np.zeros((2, 1)), b1=np.zeros(1), w2=np.zeros((1, 2)), b2=[0.0, 1.0])
    label, result = predict_label(model, [1.0, 0.0], XO)
    assert label == "o"
    assert result.predicted_index == 1


def test_predict_label_rejects_scheme_of_other_size():
    model = Model(w1=np.zeros((2, 1)), b1=np.zeros(1), w2=np.zeros((1, 2)), b2=np.zeros(2))
    with pytest.raises(DimensionMismatchError, match="3 classes"):
        predict_label(model, [1.0, 0.0], A4F)
    with pytest.raises(DimensionMismatchError):
        predict_label(model, [1.0, 0.0], ALPHANUMERIC)


def test_grid_helpers():
    assert grid_side_for(784) == 28
    assert grid_side_for(3136) == 56
    with pytest.raises(DimensionMismatchError):
        grid_side_for(5)
    vector = flatten_grid([[1, 0], [0, 1]])
    assert vector.dtype == np.float32
    np.testing.assert_array_equal(vector, [1, 0, 0, 1])
    np.testing.assert_array_equal(unflatten(vector), [[1, 0], [0, 1]])
    with pytest.raises(DimensionMismatchError):
        flatten_grid([[1, 0, 1], [0, 1, 0]])


def test_render_grid():
    assert render_grid([[1, 0], [0, 1]]) == "██░░\n░░██"
    assert render_grid([0, 0, 0, 1], ink="#", background=".") == "..\n.#"


def test_binarize_marks_cells_above_fill_ratio():
    image = np.full((8, 8), 255, dtype=np.uint8)
    image[0:4, 0:4] = 0
    image[4, 4] = 0  # 1 of 16 pixels: below the fill ratio
    image[0:2, 4:6] = 10  # 4 of 16 pixels: above it
    grid = binarize(image, 2)
    np.testing.assert_array_equal(grid, [[1, 1], [0, 0]])
    with pytest.raises(DimensionMismatchError):
        binarize(image, 16)


def test_read_grid(tmp_path):
    path = tmp_path / "grid.txt"
    path.write_text("1 0 0\n0,1,0\n001\n\n")
    np.testing.assert_array_equal(read_grid(path), np.eye(3))
    path.write_text("10\n01\n11\n")
    with pytest.raises(DimensionMismatchError):
        read_grid(path)
    path.write_text("12\n01\n")
    with pytest.raises(ValueError):
        read_grid(path)


def test_read_dataset_skips_malformed_lines(tmp_path):
    path = tmp_path / "dataset.csv"
    path.write_text(
        "\n".join(
            [
                "x,1,0,0,1",
                "o,0,1,1,0",
                "x,1,0,0",
                "q,1,1,1,1",
                "o,1,a,0,0",
                "x,1,0,0,1,1",
                "",
                " x , 1, 1, 0, 0",
            ]
        )
        + "\n"
    )
    dataset = read_dataset(path, XO, grid_side=2)
    assert len(dataset) == 3
    assert dataset.labels == ("x", "o", "x")
    np.testing.assert_array_equal(dataset.class_indices, [0, 1, 0])
    np.testing.assert_array_equal(dataset.inputs[2], [1, 1, 0, 0])
    assert dataset.input_size == 4 and dataset.output_size == 2


def test_read_dataset_without_usable_lines(tmp_path):
    path = tmp_path / "dataset.csv"
    path.write_text("")
    empty = read_dataset(path, A4F, grid_side=2)
    assert len(empty) == 0 and empty.input_size == 4 and empty.output_size == 3
    path.write_text("z,1,0,0,1\n")
    assert len(read_dataset(path, A4F, grid_side=2)) == 0


def test_append_sample_round_trip(tmp_path):
    path = tmp_path / "data" / "dataset.csv"
    append_sample(path, "x", [[1, 0], [0, 1]])
    append_sample(path, " o ", [[0, 1], [1, 0]])
    assert path.read_text().splitlines() == ["x,1,0,0,1", "o,0,1,1,0"]
    dataset = read_dataset(path, XO, grid_side=2)
    np.testing.assert_array_equal(dataset.class_indices, [0, 1])
    with pytest.raises(ValueError):
        append_sample(path, "a,b", [[1, 0], [0, 1]])
    with pytest.raises(ValueError):
        append_sample(path, "  ", [[1, 0], [0, 1]])


def test_dataset_holdout_takes_the_tail():
    dataset = Dataset(
        inputs=np.arange(10, dtype=np.float32).reshape(5, 2),
        targets=np.eye(2, dtype=np.float32)[[0, 1, 0, 1, 0]],
        labels=("a", "b", "a", "b", "a"),
    )
    head, tail = dataset.holdout(2)
    assert len(head) == 3 and len(tail) == 2
    assert tail.labels == ("b", "a")
    np.testing.assert_array_equal(tail.inputs[0], [6, 7])
    head, tail = dataset.holdout(10)
    assert len(head) == 0 and len(tail) == 5
    with pytest.raises(ValueError):
        dataset.holdout(-1)


def test_dataset_rejects_inconsistent_arrays():
    with pytest.raises(DimensionMismatchError):
        Dataset(inputs=np.zeros((3, 2)), targets=np.eye(2))
    with pytest.raises(ValueError):
        Dataset(inputs=np.zeros((2, 2)), targets=np.full((2, 2), 0.5))


def test_read_dataset_skips_undecodable_lines(tmp_path):
    path = tmp_path / "dataset.csv"
    path.write_bytes(b"x,1,0,0,1\n\xff\xfe,0,1,1,0\no,0,\xc31,1,0\no,0,1,1,0\n")
    dataset = read_dataset(path, XO, grid_side=2)
    assert dataset.labels == ("x", "o")
    np.testing.assert_array_equal(dataset.inputs[1], [0, 1, 1, 0])
