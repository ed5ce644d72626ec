"""Plain-data container for the fitted Gaussian Naive Bayes parameters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ..exceptions import SerializationError, ShapeMismatchError

if TYPE_CHECKING:
    from ..utils.io.archive import Archive


@dataclass
class ModelState:
    """
    Parameters of a Gaussian Naive Bayes model.

    Attributes:
        means: (D, C) matrix; column j holds the feature means of class j.
        variances: (D, C) matrix of per-class sample variances.
        priors: (C,) vector of class priors. All zeros until the model has
            seen a training point.
        training_points: Number of samples the parameters were fitted on.
    """

    means: NDArray[np.float64]
    variances: NDArray[np.float64]
    priors: NDArray[np.float64]
    training_points: int = 0

    @classmethod
    def empty(cls, dimensionality: int = 0, num_classes: int = 0) -> "ModelState":
        """Zero-initialized, untrained state."""
        return cls(
            means=np.zeros((dimensionality, num_classes)),
            variances=np.zeros((dimensionality, num_classes)),
            priors=np.zeros(num_classes),
            training_points=0,
        )

    @property
    def dimensionality(self) -> int:
        return int(self.means.shape[0])

    @property
    def num_classes(self) -> int:
        return int(self.priors.shape[0])

    @property
    def is_trained(self) -> bool:
        return self.training_points > 0

    @property
    def class_counts(self) -> NDArray[np.float64]:
        """Per-class sample counts recovered from the priors."""
        return np.rint(self.priors * self.training_points)

    def validate(self) -> None:
        """Raise ShapeMismatchError unless the shapes are mutually consistent."""
        if self.means.ndim != 2:
            raise ShapeMismatchError(f"means must be 2-D, got shape {self.means.shape}")
        d, c = self.means.shape
        if self.variances.shape != (d, c):
            raise ShapeMismatchError(
                f"variances shape {self.variances.shape} does not match means {(d, c)}"
            )
        if self.priors.shape != (c,):
            raise ShapeMismatchError(
                f"priors shape {self.priors.shape} does not match {c} classes"
            )
        if self.training_points < 0:
            raise ShapeMismatchError("training_points must be non-negative")

    def copy(self) -> "ModelState":
        return ModelState(
            means=self.means.copy(),
            variances=self.variances.copy(),
            priors=self.priors.copy(),
            training_points=self.training_points,
        )

    def serialize(self, archive: "Archive") -> "ModelState":
        """
        Stream the state through ``archive``.

        Returns ``self`` when saving and the decoded state when loading.
        Matrices travel flattened in column-major order after the scalars
        that give their shape.
        """
        if not archive.loading:
            archive.field("dimensionality", self.dimensionality)
            archive.field("num_classes", self.num_classes)
            archive.field("training_points", self.training_points)
            archive.field("means", self.means.flatten(order="F"))
            archive.field("variances", self.variances.flatten(order="F"))
            archive.field("priors", np.array(self.priors))
            return self

        d = int(archive.field("dimensionality"))
        c = int(archive.field("num_classes"))
        training_points = int(archive.field("training_points"))
        try:
            means = np.array(archive.field("means"), dtype=np.float64).reshape((d, c), order="F")
            variances = np.array(archive.field("variances"), dtype=np.float64).reshape(
                (d, c), order="F"
            )
            priors = np.array(archive.field("priors"), dtype=np.float64).reshape(c)
        except ValueError as e:
            raise SerializationError(f"Archived matrices do not fit D={d}, C={c}") from e

        loaded = ModelState(
            means=means, variances=variances, priors=priors, training_points=training_points
        )
        loaded.validate()
        return loaded
