"""
Per-class mean and variance estimation.

Two strategies are provided and agree to within round-off:

* a two-pass grouped reduction over the columns of a batch (``batch_statistics``);
* the Chan/Golub/LeVeque pairwise merge of two populations (``merge_moments``),
  which reduces to Welford's update when one side is a single sample.

All functions take and return ``ModelState`` values; inputs are never mutated.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..exceptions import DegenerateInputError
from ..utils.validation import as_batch, as_label, as_labels, as_point
from .state import ModelState

logger = logging.getLogger(__name__)


def batch_statistics(
    data: NDArray[np.float64], labels: NDArray[np.intp], num_classes: int
) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
    """
    Two-pass per-class counts, means and sample variances of a batch.

    Args:
        data: (D, N) matrix, one column per sample.
        labels: (N,) integer labels in [0, num_classes).
        num_classes: Number of classes C.

    Returns:
        counts (C,), means (D, C), variances (D, C). Classes without samples
        get zero columns; classes with a single sample get zero variance.
    """
    n = data.shape[1]
    membership = np.zeros((n, num_classes))
    membership[np.arange(n), labels] = 1.0
    counts = membership.sum(axis=0)

    means = np.divide(
        data @ membership,
        counts,
        out=np.zeros((data.shape[0], num_classes)),
        where=counts > 0,
    )

    # Second pass over the centered data.
    centered = data - means[:, labels]
    variances = np.divide(
        (centered**2) @ membership,
        counts - 1,
        out=np.zeros((data.shape[0], num_classes)),
        where=counts > 1,
    )
    return counts, means, variances


def merge_moments(
    n_old: NDArray[np.float64],
    mu_old: NDArray[np.float64],
    var_old: NDArray[np.float64],
    n_new: NDArray[np.float64],
    mu_new: NDArray[np.float64],
    var_new: NDArray[np.float64],
) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
    """
    Merge two populations' counts, means and sample variances.

    Counts are (C,), means and variances are (D, C); every class is merged at
    once. A class with ``n_new == 0`` is returned unchanged.
    """
    n = n_old + n_new
    populated = n > 0
    delta = mu_new - mu_old

    weight_new = np.divide(n_new, n, out=np.zeros_like(n), where=populated)
    mu = mu_old + delta * weight_new

    m2_old = var_old * np.maximum(n_old - 1, 0)
    m2_new = var_new * np.maximum(n_new - 1, 0)
    cross = np.divide(n_old * n_new, n, out=np.zeros_like(n), where=populated)
    m2 = m2_old + m2_new + delta**2 * cross

    return n, mu, m2 / np.maximum(n - 1, 1)


def _with_counts(
    counts: NDArray[np.float64],
    means: NDArray[np.float64],
    variances: NDArray[np.float64],
) -> ModelState:
    total = int(counts.sum())
    priors = counts / total if total > 0 else np.zeros_like(counts)
    return ModelState(means=means, variances=variances, priors=priors, training_points=total)


def fit_replace(
    data: ArrayLike,
    labels: ArrayLike,
    num_classes: int,
    incremental_variance: bool = False,
) -> ModelState:
    """
    Fit a fresh state on one batch, discarding any previous statistics.

    Args:
        data: (D, N) training matrix.
        labels: (N,) labels in [0, num_classes).
        num_classes: Number of classes C.
        incremental_variance: Fold the samples in one at a time with Welford's
            update instead of the two-pass reduction. Slower, but does not
            lose precision when the features have a large offset.

    Raises:
        DegenerateInputError: If the batch is empty.
    """
    X = as_batch(data)
    y = as_labels(labels, X.shape[1], num_classes)
    if X.shape[1] == 0:
        raise DegenerateInputError("Cannot train on an empty dataset")

    if not incremental_variance:
        counts, means, variances = batch_statistics(X, y, num_classes)
        return _with_counts(counts, means, variances)

    d = X.shape[0]
    counts = np.zeros(num_classes)
    means = np.zeros((d, num_classes))
    m2 = np.zeros((d, num_classes))
    for k in range(X.shape[1]):
        j = y[k]
        counts[j] += 1
        delta = X[:, k] - means[:, j]
        means[:, j] += delta / counts[j]
        m2[:, j] += delta * (X[:, k] - means[:, j])

    return _with_counts(counts, means, m2 / np.maximum(counts - 1, 1))


def fit_merge(state: ModelState, data: ArrayLike, labels: ArrayLike) -> ModelState:
    """
    Merge a batch into an existing fit as if both had been seen together.

    An empty batch returns an unchanged copy of ``state``.

    Raises:
        ShapeMismatchError: If the batch dimensionality differs from the state.
        LabelRangeError: If a label is outside [0, num_classes).
    """
    X = as_batch(data, state.dimensionality)
    y = as_labels(labels, X.shape[1], state.num_classes)
    if X.shape[1] == 0:
        logger.debug("Empty batch passed to fit_merge; model unchanged")
        return state.copy()

    n_new, mu_new, var_new = batch_statistics(X, y, state.num_classes)
    counts, means, variances = merge_moments(
        state.class_counts, state.means, state.variances, n_new, mu_new, var_new
    )
    return _with_counts(counts, means, variances)


def fit_one(state: ModelState, point: ArrayLike, label: int) -> ModelState:
    """Welford update of a single class with one sample."""
    x = as_point(point, state.dimensionality)
    j = as_label(label, state.num_classes)

    n_new = np.zeros(state.num_classes)
    n_new[j] = 1.0
    mu_new = state.means.copy()
    mu_new[:, j] = x

    counts, means, variances = merge_moments(
        state.class_counts,
        state.means,
        state.variances,
        n_new,
        mu_new,
        np.zeros_like(state.variances),
    )
    return _with_counts(counts, means, variances)


__all__ = ["batch_statistics", "merge_moments", "fit_replace", "fit_merge", "fit_one"]
