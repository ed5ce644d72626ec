"""Gaussian Naive Bayes classifier."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..enums import FitMode, VariancePolicy
from ..exceptions import ShapeMismatchError
from ..utils.validation import validate_config
from . import likelihood, moments
from .state import ModelState

if TYPE_CHECKING:
    from ..configs import NaiveBayesConfig
    from ..utils.io.archive import Archive

logger = logging.getLogger(__name__)


class NaiveBayesClassifier:
    """
    Gaussian Naive Bayes classifier over column-per-sample data.

    Each feature is modelled, given the class, as an independent Gaussian.
    Training estimates per-class means, sample variances and priors; the
    predicted label is the class with the largest log-posterior.

    Example:
        >>> clf = NaiveBayesClassifier(data=X, labels=y, num_classes=3)
        >>> clf.train(X_more, y_more)            # merged into the current fit
        >>> labels, probs = clf.classify_batch_proba(X_test)
    """

    def __init__(
        self,
        data: ArrayLike | None = None,
        labels: ArrayLike | None = None,
        num_classes: int = 0,
        incremental_variance: bool = False,
        dimensionality: int = 0,
        variance_policy: VariancePolicy | str = VariancePolicy.PROPAGATE,
        variance_floor: float = 1e-9,
    ) -> None:
        """
        Build either a trained or an empty classifier.

        Args:
            data (ArrayLike, optional): (D, N) training matrix. When given the
                model is fitted immediately in Replace mode.
            labels (ArrayLike, optional): (N,) labels; required with ``data``.
            num_classes (int): Number of classes C.
            incremental_variance (bool): Use Welford's per-sample update for
                Replace-mode fits instead of the two-pass reduction.
            dimensionality (int): D for an empty model. Ignored with ``data``.
            variance_policy (VariancePolicy | str): Zero-variance handling at
                classification time. Defaults to PROPAGATE.
            variance_floor (float): Floor used by ``VariancePolicy.FLOOR``.
        """
        self.num_classes = num_classes
        self.incremental_variance = incremental_variance
        self.variance_policy = VariancePolicy(variance_policy)
        self.variance_floor = variance_floor

        if data is not None:
            if labels is None:
                raise ShapeMismatchError("labels are required when training data is given")
            self._state = moments.fit_replace(data, labels, num_classes, incremental_variance)
        else:
            self._state = ModelState.empty(dimensionality, num_classes)

    @classmethod
    @validate_config
    def from_config(
        cls,
        cfg: "NaiveBayesConfig",
        data: ArrayLike | None = None,
        labels: ArrayLike | None = None,
    ) -> "NaiveBayesClassifier":
        """Create a classifier from a ``NaiveBayesConfig``."""
        return cls(
            data=data,
            labels=labels,
            num_classes=cfg.num_classes,
            incremental_variance=cfg.incremental_variance,
            dimensionality=cfg.dimensionality,
            variance_policy=cfg.variance_policy,
            variance_floor=cfg.variance_floor,
        )

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def fit_replace(self, data: ArrayLike, labels: ArrayLike) -> "NaiveBayesClassifier":
        """Discard the current fit and train on ``data`` alone."""
        self._state = moments.fit_replace(
            data, labels, self.num_classes, self.incremental_variance
        )
        logger.debug(
            "Replace fit on %s points (D=%s, C=%s)",
            self._state.training_points,
            self._state.dimensionality,
            self.num_classes,
        )
        return self

    def fit_merge(self, data: ArrayLike, labels: ArrayLike) -> "NaiveBayesClassifier":
        """Merge ``data`` into the current fit."""
        self._state = moments.fit_merge(self._state, data, labels)
        logger.debug("Merged batch; model now fitted on %s points", self._state.training_points)
        return self

    def fit_one(self, point: ArrayLike, label: int) -> "NaiveBayesClassifier":
        """Incrementally update the fit with a single labelled point."""
        self._state = moments.fit_one(self._state, point, label)
        return self

    def train(
        self,
        data: ArrayLike,
        labels: ArrayLike,
        incremental: bool | FitMode | str = True,
    ) -> "NaiveBayesClassifier":
        """
        Train on a batch.

        With ``incremental=True`` (the default) the current model is the
        starting point; otherwise the model is refitted from scratch. A
        ``FitMode`` (or its value, "merge" or "replace") may be passed instead
        of the flag.
        """
        if isinstance(incremental, bool):
            mode = FitMode.MERGE if incremental else FitMode.REPLACE
        else:
            mode = FitMode(incremental)
        if mode is FitMode.MERGE:
            return self.fit_merge(data, labels)
        return self.fit_replace(data, labels)

    def train_point(self, point: ArrayLike, label: int) -> "NaiveBayesClassifier":
        """Train on a single point; always incremental."""
        return self.fit_one(point, label)

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def log_likelihood(self, point: ArrayLike) -> NDArray[np.float64]:
        """Unnormalized class log-posteriors of one point, shape (C,)."""
        return likelihood.log_likelihood_point(
            self._state, point, self.variance_policy, self.variance_floor
        )

    def log_likelihood_batch(self, data: ArrayLike) -> NDArray[np.float64]:
        """Unnormalized class log-posteriors of a batch, shape (C, N)."""
        return likelihood.log_likelihood(
            self._state, data, self.variance_policy, self.variance_floor
        )

    def classify(self, point: ArrayLike) -> int:
        """Predicted label of one point."""
        return int(np.argmax(self.log_likelihood(point)))

    def classify_proba(self, point: ArrayLike) -> tuple[int, NDArray[np.float64]]:
        """Predicted label of one point and its (C,) posterior vector."""
        ll = self.log_likelihood(point)
        return int(np.argmax(ll)), likelihood.normalize_log_posteriors(ll)

    def classify_batch(self, data: ArrayLike) -> NDArray[np.intp]:
        """Predicted label of every column of ``data``."""
        return likelihood.predict_labels(self.log_likelihood_batch(data))

    def classify_batch_proba(
        self, data: ArrayLike
    ) -> tuple[NDArray[np.intp], NDArray[np.float64]]:
        """Labels (N,) and posterior matrix (C, N) for a batch."""
        ll = self.log_likelihood_batch(data)
        return likelihood.predict_labels(ll), likelihood.normalize_log_posteriors(ll)

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def dimensionality(self) -> int:
        return self._state.dimensionality

    @property
    def training_points(self) -> int:
        return self._state.training_points

    @property
    def means(self) -> NDArray[np.float64]:
        """(D, C) class means. Modifying the array in place edits the model."""
        return self._state.means

    @means.setter
    def means(self, value: ArrayLike) -> None:
        self.replace_state(means=value)

    @property
    def variances(self) -> NDArray[np.float64]:
        """(D, C) class variances. Modifying the array in place edits the model."""
        return self._state.variances

    @variances.setter
    def variances(self, value: ArrayLike) -> None:
        self.replace_state(variances=value)

    @property
    def priors(self) -> NDArray[np.float64]:
        """(C,) class priors. Modifying the array in place edits the model."""
        return self._state.priors

    @priors.setter
    def priors(self, value: ArrayLike) -> None:
        self.replace_state(priors=value)

    def replace_state(
        self,
        means: ArrayLike | None = None,
        variances: ArrayLike | None = None,
        priors: ArrayLike | None = None,
        training_points: int | None = None,
    ) -> None:
        """
        Install new parameters; omitted ones are kept.

        The resulting shapes must be consistent, otherwise ShapeMismatchError
        is raised and the model is left untouched.
        """
        current = self._state
        candidate = ModelState(
            means=current.means if means is None else np.array(means, dtype=np.float64, ndmin=2),
            variances=(
                current.variances
                if variances is None
                else np.array(variances, dtype=np.float64, ndmin=2)
            ),
            priors=current.priors if priors is None else np.array(priors, dtype=np.float64, ndmin=1),
            training_points=(
                current.training_points if training_points is None else int(training_points)
            ),
        )
        candidate.validate()
        self._state = candidate
        self.num_classes = candidate.num_classes

    def serialize(self, archive: "Archive") -> None:
        """Write the model to ``archive``, or read it back when it is loading."""
        state = self._state.serialize(archive)
        if archive.loading:
            self._state = state
            self.num_classes = state.num_classes

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(dimensionality={self.dimensionality}, "
            f"num_classes={self.num_classes}, training_points={self.training_points})"
        )

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, NaiveBayesClassifier):
            return NotImplemented
        a, b = self._state, other._state
        return (
            a.training_points == b.training_points
            and np.array_equal(a.means, b.means)
            and np.array_equal(a.variances, b.variances)
            and np.array_equal(a.priors, b.priors)
        )

    __hash__ = None  # type: ignore[assignment]
