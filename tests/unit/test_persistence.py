import io

import numpy as np
import pytest

from inkmlp.core.errors import ModelFormatError
from inkmlp.core.model import Model
from inkmlp.core.types import Sample
from inkmlp.persistence import FORMAT_TAG, dumps, load, loads, save
from inkmlp.training.trainer import train


def _archive(**overrides):
    model = Model.initialize(4, 3, 2, rng=np.random.default_rng(0))
    entries = {
        "format": np.array(FORMAT_TAG),
        "version": np.array(1, dtype=np.int64),
        "dims": np.array(model.dims, dtype=np.int64),
        **model.state_dict(),
    }
    entries.update(overrides)
    entries = {key: value for key, value in entries.items() if value is not None}
    buffer = io.BytesIO()
    np.savez(buffer, **entries)
    return buffer.getvalue()


@pytest.mark.parametrize("dims", [(4, 3, 2), (3, 1, 2), (3, 2, 1), (1, 1, 1)])
def test_save_load_round_trip_is_bit_exact(tmp_path, dims):
    model = Model.initialize(*dims, rng=np.random.default_rng(5))
    x = np.ones(dims[0], dtype=np.float32)
    target = np.zeros(dims[2], dtype=np.float32)
    target[-1] = 1.0
    train(model, [Sample(input=x, target=target)], 3, 0.1)
    path = tmp_path / "model.npz"
    save(model, path)
    restored = load(path)
    assert restored == model
    for name in ("w1", "b1", "w2", "b2"):
        assert getattr(restored, name).dtype == np.float32
    assert restored.predict(x) == model.predict(x)


def test_save_leaves_no_temporary_files(tmp_path):
    model = Model.initialize(4, 3, 2, rng=np.random.default_rng(0))
    save(model, tmp_path / "nested" / "model.npz")
    save(model, tmp_path / "nested" / "model.npz")
    assert [p.name for p in (tmp_path / "nested").iterdir()] == ["model.npz"]


def test_dumps_loads_and_file_objects():
    model = Model.initialize(6, 2, 3, rng=np.random.default_rng(9))
    assert loads(dumps(model)) == model
    buffer = io.BytesIO()
    save(model, buffer)
    buffer.seek(0)
    assert load(buffer) == model


def test_missing_file_raises_os_error(tmp_path):
    with pytest.raises(OSError):
        load(tmp_path / "missing.npz")


@pytest.mark.parametrize("payload", [b"", b"not a model file", b"PK\x03\x04truncated"])
def test_garbage_is_rejected(payload):
    with pytest.raises(ModelFormatError):
        loads(payload)


def test_truncated_archive_is_rejected():
    data = dumps(Model.initialize(4, 3, 2, rng=np.random.default_rng(0)))
    with pytest.raises(ModelFormatError):
        loads(data[: len(data) // 2])


def test_plain_npy_is_rejected():
    buffer = io.BytesIO()
    np.save(buffer, np.zeros(3, dtype=np.float32))
    with pytest.raises(ModelFormatError):
        loads(buffer.getvalue())


def test_declared_dims_mismatch_is_rejected():
    with pytest.raises(ModelFormatError, match="declared dimensions"):
        loads(_archive(dims=np.array([5, 3, 2], dtype=np.int64)))


def test_unsupported_version_is_rejected():
    with pytest.raises(ModelFormatError, match="version"):
        loads(_archive(version=np.array(2, dtype=np.int64)))


def test_wrong_tag_is_rejected():
    with pytest.raises(ModelFormatError, match="tag"):
        loads(_archive(format=np.array("something-else")))


def test_missing_parameter_is_rejected():
    with pytest.raises(ModelFormatError, match="b2"):
        loads(_archive(b2=None))


def test_non_float32_parameters_are_rejected():
    with pytest.raises(ModelFormatError, match="float32"):
        loads(_archive(w1=np.zeros((4, 3), dtype=np.float64)))
