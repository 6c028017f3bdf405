"""
persistence.py
~~~~~~~~~~~~~~

Binary persistence for :class:`inkmlp.core.model.Model`.

A model file is an uncompressed ``.npz`` archive (``allow_pickle=False``)
holding:

- ``format``: the tag ``"inkmlp-mlp"``
- ``version``: integer format version, currently ``1``
- ``dims``: ``int64[3]`` with ``input_size, hidden_size, output_size``
- ``w1``, ``b1``, ``w2``, ``b2``: ``float32`` parameter arrays

The declared ``dims`` are checked against every array shape on load, so a
truncated or mismatched file is rejected instead of yielding a model that would
index out of bounds during inference.
"""

from __future__ import annotations

import contextlib
import io
import logging
import os
import tempfile
import zipfile
from pathlib import Path
from typing import BinaryIO, Mapping, Union

import numpy as np

from .core.errors import ModelFormatError
from .core.model import PARAMETER_NAMES, Model

logger = logging.getLogger(__name__)

FORMAT_TAG = "inkmlp-mlp"
FORMAT_VERSION = 1

PathOrHandle = Union[str, "os.PathLike[str]", BinaryIO]


def _write(model: Model, handle: BinaryIO) -> None:
    np.savez(
        handle,
        format=np.array(FORMAT_TAG),
        version=np.array(FORMAT_VERSION, dtype=np.int64),
        dims=np.array(model.dims, dtype=np.int64),
        **{name: value for name, value in model.state_dict().items()},
    )


def _expected_shapes(dims: tuple[int, int, int]) -> Mapping[str, tuple[int, ...]]:
    input_size, hidden_size, output_size = dims
    return {
        "w1": (input_size, hidden_size),
        "b1": (hidden_size,),
        "w2": (hidden_size, output_size),
        "b2": (output_size,),
    }


def _read(handle: BinaryIO) -> Model:
    try:
        archive = np.load(handle, allow_pickle=False)
    except (ValueError, EOFError, zipfile.BadZipFile) as exc:
        raise ModelFormatError(f"Not a model file: {exc}") from exc
    if not isinstance(archive, np.lib.npyio.NpzFile):
        raise ModelFormatError("Not a model file: expected an archive of arrays")

    with archive:
        required = {"format", "version", "dims", *PARAMETER_NAMES}
        missing = sorted(required - set(archive.files))
        if missing:
            raise ModelFormatError(f"Model file is missing entries: {', '.join(missing)}")
        try:
            tag = archive["format"]
            version = archive["version"]
            dims = archive["dims"]
            arrays = {name: archive[name] for name in PARAMETER_NAMES}
        except (ValueError, zipfile.BadZipFile, EOFError) as exc:
            raise ModelFormatError(f"Corrupt model file: {exc}") from exc

    if tag.shape != () or str(tag) != FORMAT_TAG:
        raise ModelFormatError(f"Unexpected format tag {tag!r}")
    if version.shape != () or not np.issubdtype(version.dtype, np.integer):
        raise ModelFormatError("Model format version must be an integer scalar")
    if int(version) != FORMAT_VERSION:
        raise ModelFormatError(
            f"Unsupported model format version {int(version)} (expected {FORMAT_VERSION})"
        )
    if dims.shape != (3,) or not np.issubdtype(dims.dtype, np.integer) or np.any(dims <= 0):
        raise ModelFormatError(f"Invalid declared dimensions {dims.tolist()}")

    declared = (int(dims[0]), int(dims[1]), int(dims[2]))
    for name, shape in _expected_shapes(declared).items():
        array = arrays[name]
        if array.dtype != np.float32:
            raise ModelFormatError(f"{name} must be float32, found {array.dtype}")
        if array.shape != shape:
            raise ModelFormatError(
                f"{name} has shape {array.shape} but declared dimensions {declared} "
                f"require {shape}"
            )
    return Model.from_state_dict(arrays)


def save(model: Model, destination: PathOrHandle) -> None:
    """Write ``model`` to a path or to a writable binary file object.

    Paths are written through a temporary sibling file that is renamed into
    place once complete.
    """

    if not isinstance(destination, (str, os.PathLike)):
        _write(model, destination)
        return

    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            _write(model, handle)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise
    logger.info("Saved %dx%dx%d model to %s", *model.dims, path)


def load(source: PathOrHandle) -> Model:
    """Read a model from a path or a readable binary file object.

    Raises ``OSError`` when the file cannot be read and
    :class:`~inkmlp.core.errors.ModelFormatError` when its contents are not a
    consistent model.
    """

    if not isinstance(source, (str, os.PathLike)):
        return _read(source)
    with open(source, "rb") as handle:
        model = _read(handle)
    logger.info("Loaded %dx%dx%d model from %s", *model.dims, source)
    return model


def dumps(model: Model) -> bytes:
    buffer = io.BytesIO()
    _write(model, buffer)
    return buffer.getvalue()


def loads(data: bytes) -> Model:
    return _read(io.BytesIO(data))


__all__ = ["FORMAT_TAG", "FORMAT_VERSION", "dumps", "load", "loads", "save"]
