"""Batched class log-likelihoods and posterior normalization."""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..enums import VariancePolicy
from ..exceptions import NumericalError
from ..utils.validation import as_batch, as_point
from .state import ModelState

LOG_2PI = math.log(2.0 * math.pi)


def effective_variances(
    state: ModelState,
    policy: VariancePolicy = VariancePolicy.PROPAGATE,
    floor: float = 1e-9,
) -> NDArray[np.float64]:
    """
    Variances the evaluator will actually use under ``policy``.

    FLOOR clamps every entry to at least ``floor``. REJECT raises if a class
    that can be predicted (positive prior) has a non-positive variance.
    PROPAGATE returns the variances unchanged.
    """
    if policy is VariancePolicy.FLOOR:
        return np.maximum(state.variances, floor)
    if policy is VariancePolicy.REJECT:
        reachable = state.priors > 0
        bad = state.variances[:, reachable] <= 0
        if np.any(bad):
            classes = np.flatnonzero(reachable)[np.any(bad, axis=0)]
            raise NumericalError(
                f"Non-positive variances for classes {classes.tolist()}; "
                "install a variance floor before classifying"
            )
    return state.variances


def log_likelihood(
    state: ModelState,
    data: ArrayLike,
    policy: VariancePolicy = VariancePolicy.PROPAGATE,
    floor: float = 1e-9,
) -> NDArray[np.float64]:
    """
    Unnormalized log-posterior of every class for every column of ``data``.

    The quadratic term sum_i (x_i - mu_ij)^2 / var_ij is accumulated one
    feature at a time over the whole (C, N) grid, on differences taken
    against the class means. No Python loop runs over the samples, each
    column is computed on its own, so a point scores exactly as it does
    inside a batch, and large common offsets do not cancel.

    A non-positive variance is treated as a point mass: the feature adds
    nothing when x_i equals the class mean and makes the class impossible
    (-inf) otherwise. Zero priors give -inf. NaN is never introduced.

    Args:
        state: Fitted parameters.
        data: (D, N) query matrix.
        policy: Zero-variance handling, see ``VariancePolicy``.
        floor: Variance floor used by ``VariancePolicy.FLOOR``.

    Returns:
        (C, N) matrix; column k belongs to ``data[:, k]``.
    """
    X = as_batch(data, state.dimensionality)
    means = state.means
    variances = effective_variances(state, policy, floor)

    degenerate = variances <= 0
    safe = np.where(degenerate, 1.0, variances)
    inv = np.where(degenerate, 0.0, 1.0 / safe)

    # (C, N)
    quadratic = np.zeros((state.num_classes, X.shape[1]))
    for i in range(X.shape[0]):
        diff = X[i][np.newaxis, :] - means[i][:, np.newaxis]
        quadratic += diff * diff * inv[i][:, np.newaxis]

    log_det = np.sum(np.log(safe), axis=0)
    dims = np.sum(~degenerate, axis=0)
    with np.errstate(divide="ignore"):
        log_priors = np.log(state.priors)

    class_terms = log_priors - 0.5 * dims * LOG_2PI - 0.5 * log_det
    result = class_terms[:, np.newaxis] - 0.5 * quadratic

    for j in np.flatnonzero(np.any(degenerate, axis=0)):
        rows = degenerate[:, j]
        mismatch = np.any(X[rows, :] != means[rows, j][:, np.newaxis], axis=0)
        result[j, mismatch] = -np.inf

    return result


def log_likelihood_point(
    state: ModelState,
    point: ArrayLike,
    policy: VariancePolicy = VariancePolicy.PROPAGATE,
    floor: float = 1e-9,
) -> NDArray[np.float64]:
    """Single-point form of ``log_likelihood``; returns a (C,) vector."""
    x = as_point(point, state.dimensionality)
    return log_likelihood(state, x[:, np.newaxis], policy, floor)[:, 0]


def normalize_log_posteriors(log_likelihoods: ArrayLike) -> NDArray[np.float64]:
    """
    Turn log-likelihood columns into posterior probabilities.

    Each column is shifted by its maximum before exponentiating. A column in
    which every class is -inf (e.g. an untrained model) becomes uniform.
    """
    ll = np.asarray(log_likelihoods, dtype=np.float64)
    squeeze = ll.ndim == 1
    if squeeze:
        ll = ll[:, np.newaxis]

    top = np.max(ll, axis=0) if ll.shape[0] else np.zeros(ll.shape[1])
    dead = ~np.isfinite(top)
    probabilities = np.exp(ll - np.where(dead, 0.0, top))
    probabilities[:, dead] = 1.0 / max(ll.shape[0], 1)
    probabilities /= np.sum(probabilities, axis=0)

    return probabilities[:, 0] if squeeze else probabilities


def predict_labels(log_likelihoods: ArrayLike) -> NDArray[np.intp]:
    """Argmax over classes per column; exact ties go to the smallest index."""
    ll = np.asarray(log_likelihoods)
    return np.argmax(ll, axis=0)


__all__ = [
    "LOG_2PI",
    "effective_variances",
    "log_likelihood",
    "log_likelihood_point",
    "normalize_log_posteriors",
    "predict_labels",
]
