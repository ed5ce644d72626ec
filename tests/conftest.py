"""Shared test configuration and fixtures."""

from __future__ import annotations

import numpy as np
import pytest
from pathlib import Path

from gaussnb import NaiveBayesClassifier


# ============================================================================
# Path Fixtures
# ============================================================================


@pytest.fixture
def workspace_dir(tmp_path: Path) -> Path:
    """Create a temporary workspace directory for testing."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace


# ============================================================================
# Dataset Fixtures
# ============================================================================


@pytest.fixture
def two_cluster_data() -> tuple[np.ndarray, np.ndarray]:
    """One feature; class 0 at [-1, 0, 1] and class 1 at [9, 10, 11]."""
    X = np.array([[-1.0, 0.0, 1.0, 9.0, 10.0, 11.0]])
    y = np.array([0, 0, 0, 1, 1, 1])
    return X, y


@pytest.fixture
def random_dataset() -> tuple[np.ndarray, np.ndarray]:
    """Four features, three classes, shuffled; columns are samples."""
    rng = np.random.default_rng(1234)
    centers = np.array([[0.0, 3.0, -2.0], [1.0, -1.0, 4.0], [5.0, 5.0, 5.0], [-3.0, 0.0, 2.0]])
    scales = np.array([0.5, 1.5, 3.0, 1.0])
    y = rng.integers(0, 3, size=240)
    X = centers[:, y] + rng.normal(size=(4, 240)) * scales[:, np.newaxis]
    return X, y


@pytest.fixture
def iris() -> tuple[np.ndarray, np.ndarray]:
    """Iris as a (features, samples) matrix and labels."""
    from sklearn.datasets import load_iris

    data = load_iris()
    return data.data.T.copy(), data.target.copy()


# ============================================================================
# Classifier Fixtures
# ============================================================================


@pytest.fixture
def two_cluster_classifier(two_cluster_data) -> NaiveBayesClassifier:
    """Classifier fitted on ``two_cluster_data`` in Replace mode."""
    X, y = two_cluster_data
    return NaiveBayesClassifier(data=X, labels=y, num_classes=2)


@pytest.fixture
def three_class_classifier() -> NaiveBayesClassifier:
    """Two features, three classes at (0,0), (5,0), (0,5), unit variances."""
    clf = NaiveBayesClassifier(dimensionality=2, num_classes=3)
    clf.replace_state(
        means=[[0.0, 5.0, 0.0], [0.0, 0.0, 5.0]],
        variances=np.ones((2, 3)),
        priors=np.full(3, 1.0 / 3.0),
        training_points=3,
    )
    return clf
