"""
Archive abstraction used by ``NaiveBayesClassifier.serialize``.

The model writes ``dimensionality``, ``num_classes``, ``training_points``,
``means``, ``variances`` and ``priors`` in that order. Matrices are flattened
in column-major order; the scalars come first so a reader can size the
matrices before reading them.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Protocol, runtime_checkable

from ...exceptions import SerializationError

FIELD_ORDER = (
    "dimensionality",
    "num_classes",
    "training_points",
    "means",
    "variances",
    "priors",
)


@runtime_checkable
class Archive(Protocol):
    """Bidirectional archive: stores values when saving, returns them when loading."""

    loading: bool

    def field(self, name: str, value: Any = None) -> Any:
        ...


class DictArchive:
    """In-memory archive backed by an ordered dictionary."""

    def __init__(self, data: dict[str, Any] | None = None, loading: bool | None = None) -> None:
        self.data: OrderedDict[str, Any] = OrderedDict(data or {})
        self.loading = bool(data) if loading is None else loading

    def field(self, name: str, value: Any = None) -> Any:
        if self.loading:
            try:
                return self.data[name]
            except KeyError as e:
                raise SerializationError(f"Archive is missing field '{name}'") from e
        self.data[name] = value
        return value

    def for_reading(self) -> "DictArchive":
        """A loading archive over the same contents."""
        return DictArchive(self.data, loading=True)


__all__ = ["FIELD_ORDER", "Archive", "DictArchive"]
