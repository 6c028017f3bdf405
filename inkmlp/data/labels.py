"""Label schemes: injective mappings between string labels and class indices."""

from __future__ import annotations

import string
from typing import Callable, Iterable, MutableMapping, Sequence

import numpy as np

from ..core.errors import DimensionMismatchError
from ..core.types import Array

INVALID_INDEX = -1


def _strip_upper(label: str) -> str:
    return label.strip().upper()


def _strip_lower(label: str) -> str:
    return label.strip().lower()


class LabelScheme:
    """A fixed alphabet of labels, each mapped to its position in ``symbols``.

    ``normalize`` is applied to both the alphabet and every looked-up label,
    which is how case-insensitive schemes are expressed.  Labels outside the
    alphabet map to :data:`INVALID_INDEX`.
    """

    def __init__(
        self,
        name: str,
        symbols: Sequence[str],
        *,
        normalize: Callable[[str], str] = str.strip,
    ) -> None:
        if not symbols:
            raise ValueError("A label scheme needs at least one symbol")
        self.name = name
        self.symbols = tuple(str(symbol) for symbol in symbols)
        self.normalize = normalize
        self._index: dict[str, int] = {}
        for idx, symbol in enumerate(self.symbols):
            key = normalize(symbol)
            if key in self._index:
                raise ValueError(f"Label scheme {name!r} maps {symbol!r} twice")
            self._index[key] = idx

    @classmethod
    def from_symbols(
        cls, name: str, symbols: Iterable[str], *, case_sensitive: bool = True
    ) -> "LabelScheme":
        return cls(name, list(symbols), normalize=str.strip if case_sensitive else _strip_lower)

    @property
    def num_classes(self) -> int:
        return len(self.symbols)

    def index(self, label: str) -> int:
        return self._index.get(self.normalize(str(label)), INVALID_INDEX)

    def label(self, index: int) -> str | None:
        if 0 <= index < len(self.symbols):
            return self.symbols[index]
        return None

    def one_hot(self, label: str) -> Array:
        idx = self.index(label)
        if idx == INVALID_INDEX:
            raise KeyError(f"Label {label!r} is not part of scheme {self.name!r}")
        target = np.zeros(self.num_classes, dtype=np.float32)
        target[idx] = 1.0
        return target

    def __repr__(self) -> str:
        return f"LabelScheme(name={self.name!r}, num_classes={self.num_classes})"


_REGISTRY: MutableMapping[str, LabelScheme] = {}


def register_label_scheme(scheme: LabelScheme, *, replace: bool = False) -> LabelScheme:
    if scheme.name in _REGISTRY and not replace:
        raise ValueError(f"Label scheme {scheme.name!r} is already registered")
    _REGISTRY[scheme.name] = scheme
    return scheme


def get_label_scheme(name: str) -> LabelScheme:
    try:
        return _REGISTRY[name]
    except KeyError:
        available = ", ".join(sorted(_REGISTRY))
        raise KeyError(f"Unknown label scheme {name!r}. Available schemes: {available}") from None


def available_label_schemes() -> list[str]:
    return sorted(_REGISTRY)


def predict_label(model, inputs, scheme: LabelScheme):
    """Classify ``inputs`` with ``model`` and name the class through ``scheme``.

    Returns ``(label, result)``.  The scheme must name exactly the model's
    output classes, otherwise :class:`DimensionMismatchError` is raised.
    """

    if scheme.num_classes != model.output_size:
        raise DimensionMismatchError(
            f"Label scheme {scheme.name!r} has {scheme.num_classes} classes, model has "
            f"{model.output_size} outputs"
        )
    result = model.predict(inputs)
    return scheme.label(result.predicted_index), result


ALPHANUMERIC = register_label_scheme(
    LabelScheme(
        "alphanumeric",
        list(string.digits) + list(string.ascii_uppercase),
        normalize=_strip_upper,
    )
)
A4F = register_label_scheme(LabelScheme("a4f", ["a", "4", "f"], normalize=_strip_lower))


__all__ = [
    "A4F",
    "ALPHANUMERIC",
    "INVALID_INDEX",
    "LabelScheme",
    "available_label_schemes",
    "get_label_scheme",
    "predict_label",
    "register_label_scheme",
]
