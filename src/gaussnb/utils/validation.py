from __future__ import annotations

import functools
import logging
from typing import Any, Callable, TypeVar

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..exceptions import LabelRangeError, ShapeMismatchError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def validate_config(func: F) -> F:
    """
    Decorator that calls ``validate()`` on the config argument before the call.

    The config is looked up as the ``cfg`` keyword or the first positional
    argument after ``self``/``cls``.
    """
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        cfg = kwargs.get("cfg")
        if cfg is None and len(args) > 1:
            cfg = args[1]
        if cfg is not None and hasattr(cfg, "validate"):
            logger.debug("Validating %s for %s", type(cfg).__name__, func.__qualname__)
            cfg.validate()
        return func(*args, **kwargs)
    return wrapper  # type: ignore


def as_batch(data: ArrayLike, dimensionality: int | None = None) -> NDArray[np.float64]:
    """
    Convert ``data`` to a float64 matrix with one column per sample.

    A 1-D input is read as a batch of single-feature samples. It is rejected
    when the model has more than one feature, since it would then be
    ambiguous; single points go through ``as_point``.
    """
    X = np.asarray(data, dtype=np.float64)
    if X.ndim == 1 and X.size == 0:
        X = X.reshape(dimensionality or 0, 0)
    elif X.ndim == 1:
        if dimensionality not in (None, 1):
            raise ShapeMismatchError(
                f"Got a 1-D array of {X.shape[0]} values for a {dimensionality}-feature "
                "model; pass a (features, samples) matrix or use the single-point methods"
            )
        X = X[np.newaxis, :]
    if X.ndim != 2:
        raise ShapeMismatchError(f"Expected a 2-D (features, samples) matrix, got ndim={X.ndim}")
    if dimensionality is not None and X.shape[0] != dimensionality:
        raise ShapeMismatchError(
            f"Data has {X.shape[0]} features but the model has {dimensionality}"
        )
    return X


def as_point(point: ArrayLike, dimensionality: int | None = None) -> NDArray[np.float64]:
    """Convert ``point`` to a float64 vector; a (D, 1) column is flattened."""
    x = np.asarray(point, dtype=np.float64)
    if x.ndim == 0:
        x = x.reshape(1)
    elif x.ndim == 2 and x.shape[1] == 1:
        x = x[:, 0]
    if x.ndim != 1:
        raise ShapeMismatchError(f"Expected a single point, got shape {x.shape}")
    if dimensionality is not None and x.shape[0] != dimensionality:
        raise ShapeMismatchError(
            f"Point has {x.shape[0]} features but the model has {dimensionality}"
        )
    return x


def as_labels(labels: ArrayLike, num_samples: int, num_classes: int) -> NDArray[np.intp]:
    """Check that ``labels`` is one integer in [0, num_classes) per sample."""
    y = np.asarray(labels)
    if y.ndim == 0:
        y = y.reshape(1)
    y = y.ravel()
    if y.shape[0] != num_samples:
        raise ShapeMismatchError(
            f"Got {y.shape[0]} labels for {num_samples} samples"
        )
    if y.size and not np.issubdtype(y.dtype, np.integer):
        if not np.all(np.equal(np.mod(y, 1), 0)):
            raise LabelRangeError("Labels must be integers")
    y = y.astype(np.intp, copy=False)
    if y.size and (y.min() < 0 or y.max() >= num_classes):
        raise LabelRangeError(
            f"Labels must lie in [0, {num_classes}), got range [{y.min()}, {y.max()}]"
        )
    return y


def as_label(label: Any, num_classes: int) -> int:
    """Check a single label."""
    return int(as_labels([label], 1, num_classes)[0])


__all__ = ["validate_config", "as_batch", "as_point", "as_labels", "as_label"]
