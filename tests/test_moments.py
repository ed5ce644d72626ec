import numpy as np
import pytest

from gaussnb.exceptions import DegenerateInputError, LabelRangeError, ShapeMismatchError
from gaussnb.models.moments import (
    batch_statistics,
    fit_merge,
    fit_one,
    fit_replace,
    merge_moments,
)
from gaussnb.models.state import ModelState


def assert_states_close(a: ModelState, b: ModelState, atol: float = 1e-10) -> None:
    assert a.training_points == b.training_points
    np.testing.assert_allclose(a.means, b.means, rtol=0, atol=atol)
    np.testing.assert_allclose(a.variances, b.variances, rtol=0, atol=atol)
    np.testing.assert_allclose(a.priors, b.priors, rtol=0, atol=atol)


def test_batch_statistics_two_clusters(two_cluster_data):
    """Two-pass reduction gives the textbook per-class moments."""
    X, y = two_cluster_data
    counts, means, variances = batch_statistics(X, y, 2)
    np.testing.assert_array_equal(counts, [3, 3])
    np.testing.assert_array_equal(means, [[0.0, 10.0]])
    np.testing.assert_array_equal(variances, [[1.0, 1.0]])


def test_batch_statistics_matches_numpy(random_dataset):
    """Per-class means and ddof=1 variances agree with numpy reductions."""
    X, y = random_dataset
    counts, means, variances = batch_statistics(X, y, 3)
    for j in range(3):
        cols = X[:, y == j]
        assert counts[j] == cols.shape[1]
        np.testing.assert_allclose(means[:, j], cols.mean(axis=1), rtol=1e-12)
        np.testing.assert_allclose(variances[:, j], cols.var(axis=1, ddof=1), rtol=1e-10)


def test_batch_statistics_absent_and_singleton_classes():
    """An absent class gets zero columns; a singleton class gets zero variance."""
    X = np.array([[1.0, 2.0, 7.0], [4.0, 6.0, -1.0]])
    y = np.array([0, 0, 2])
    counts, means, variances = batch_statistics(X, y, 4)
    np.testing.assert_array_equal(counts, [2, 0, 1, 0])
    np.testing.assert_array_equal(means[:, 1], 0.0)
    np.testing.assert_array_equal(means[:, 2], [7.0, -1.0])
    np.testing.assert_array_equal(variances[:, 1:], 0.0)


def test_merge_moments_equals_union(random_dataset):
    """Merging two halves equals the statistics of the whole batch."""
    X, y = random_dataset
    a = batch_statistics(X[:, :100], y[:100], 3)
    b = batch_statistics(X[:, 100:], y[100:], 3)
    whole = batch_statistics(X, y, 3)

    merged = merge_moments(*a, *b)
    for got, want in zip(merged, whole):
        np.testing.assert_allclose(got, want, rtol=1e-12, atol=1e-12)


def test_merge_moments_empty_side_is_noop():
    """A class absent from the new batch keeps its statistics."""
    n_old = np.array([4.0, 0.0])
    mu_old = np.array([[2.0, 0.0]])
    var_old = np.array([[3.0, 0.0]])
    n, mu, var = merge_moments(
        n_old, mu_old, var_old, np.zeros(2), np.zeros((1, 2)), np.zeros((1, 2))
    )
    np.testing.assert_array_equal(n, n_old)
    np.testing.assert_array_equal(mu, mu_old)
    np.testing.assert_array_equal(var, var_old)


def test_fit_replace_two_clusters(two_cluster_data):
    """Replace training reproduces the expected parameters."""
    X, y = two_cluster_data
    state = fit_replace(X, y, 2)
    np.testing.assert_array_equal(state.means, [[0.0, 10.0]])
    np.testing.assert_array_equal(state.variances, [[1.0, 1.0]])
    np.testing.assert_array_equal(state.priors, [0.5, 0.5])
    assert state.training_points == 6


def test_fit_replace_incremental_variance_agrees(random_dataset):
    """Welford folding and the two-pass reduction agree to round-off."""
    X, y = random_dataset
    assert_states_close(fit_replace(X, y, 3), fit_replace(X, y, 3, incremental_variance=True))


def test_fit_replace_incremental_variance_with_large_offset():
    """Welford folding keeps precision when features sit on a large offset."""
    rng = np.random.default_rng(7)
    noise = rng.normal(size=(2, 50))
    y = np.arange(50) % 2
    state = fit_replace(noise + 1e9, y, 2, incremental_variance=True)
    reference = fit_replace(noise, y, 2)
    np.testing.assert_allclose(state.variances, reference.variances, rtol=1e-6)


def test_fit_replace_empty_batch_raises():
    with pytest.raises(DegenerateInputError):
        fit_replace(np.empty((3, 0)), np.empty(0, dtype=int), 2)


def test_fit_replace_label_out_of_range():
    with pytest.raises(LabelRangeError):
        fit_replace(np.ones((1, 3)), [0, 1, 2], 2)


def test_fit_replace_label_count_mismatch():
    with pytest.raises(ShapeMismatchError):
        fit_replace(np.ones((1, 3)), [0, 1], 2)


def test_fit_replace_empty_class_is_zero():
    """A class with no samples keeps zero mean, variance and prior."""
    state = fit_replace(np.array([[1.0, 3.0]]), [0, 0], 3)
    np.testing.assert_array_equal(state.means[:, 1:], 0.0)
    np.testing.assert_array_equal(state.variances[:, 1:], 0.0)
    np.testing.assert_array_equal(state.priors, [1.0, 0.0, 0.0])


def test_incremental_parity_two_clusters(two_cluster_data):
    """First two points of each class by Replace, the rest by Merge."""
    X, y = two_cluster_data
    full = fit_replace(X, y, 2)

    first = [0, 1, 3, 4]
    rest = [2, 5]
    partial = fit_replace(X[:, first], y[first], 2)
    partial = fit_merge(partial, X[:, rest], y[rest])
    assert_states_close(full, partial, atol=1e-10)


@pytest.mark.parametrize("chunks", [2, 3, 7, 240])
def test_merge_partition_equals_batch(random_dataset, chunks):
    """Any partition merged into an empty state equals a single Replace fit."""
    X, y = random_dataset
    state = ModelState.empty(4, 3)
    for idx in np.array_split(np.arange(X.shape[1]), chunks):
        state = fit_merge(state, X[:, idx], y[idx])
    assert_states_close(fit_replace(X, y, 3), state, atol=1e-8)


def test_fit_merge_empty_batch_is_noop(two_cluster_data):
    X, y = two_cluster_data
    state = fit_replace(X, y, 2)
    merged = fit_merge(state, np.empty((1, 0)), np.empty(0, dtype=int))
    assert_states_close(state, merged, atol=0)
    assert merged is not state


def test_fit_merge_dimension_mismatch(two_cluster_data):
    X, y = two_cluster_data
    state = fit_replace(X, y, 2)
    with pytest.raises(ShapeMismatchError):
        fit_merge(state, np.ones((2, 2)), [0, 1])


def test_fit_one_sequence_matches_replace(two_cluster_data):
    """Six single-point updates from an empty model match the batch fit."""
    X, y = two_cluster_data
    state = ModelState.empty(1, 2)
    for value, label in [(-1, 0), (0, 0), (1, 0), (9, 1), (10, 1), (11, 1)]:
        state = fit_one(state, [value], label)
    assert_states_close(fit_replace(X, y, 2), state, atol=1e-12)


def test_fit_one_any_order_matches_merge(random_dataset):
    """Folding points one at a time, shuffled, equals one Merge of the batch."""
    X, y = random_dataset
    seed = fit_replace(X[:, :40], y[:40], 3)
    batch = fit_merge(seed, X[:, 40:], y[40:])

    state = seed
    order = np.random.default_rng(3).permutation(np.arange(40, X.shape[1]))
    for k in order:
        state = fit_one(state, X[:, k], y[k])
    assert_states_close(batch, state, atol=1e-9)


def test_fit_one_does_not_mutate_input(two_cluster_data):
    X, y = two_cluster_data
    state = fit_replace(X, y, 2)
    before = state.copy()
    fit_one(state, [4.0], 1)
    assert_states_close(before, state, atol=0)


def test_fit_one_dimension_mismatch():
    with pytest.raises(ShapeMismatchError):
        fit_one(ModelState.empty(2, 2), [1.0, 2.0, 3.0], 0)


def test_fit_one_label_out_of_range():
    with pytest.raises(LabelRangeError):
        fit_one(ModelState.empty(1, 2), [1.0], 5)


def test_variances_non_negative_and_positive_with_spread(random_dataset):
    X, y = random_dataset
    state = fit_replace(X, y, 3)
    assert np.all(state.variances > 0)
    single = fit_one(ModelState.empty(4, 3), X[:, 0], y[0])
    assert np.all(single.variances >= 0)
