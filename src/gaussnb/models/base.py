"""
PyTorch module wrapper around ``NaiveBayesClassifier``.
"""

from collections.abc import Mapping
from typing import Any, cast

import numpy as np
import torch
from torch import nn

from ..enums import VariancePolicy
from ..utils.io.archive import FIELD_ORDER, DictArchive
from .naive_bayes import NaiveBayesClassifier

_PREFIX = "naive_bayes."


def _to_numpy(value: Any) -> np.ndarray:
    if isinstance(value, torch.Tensor):
        return value.detach().cpu().numpy()
    return np.asarray(value)


class GaussianNaiveBayesModel(nn.Module):
    """
    Gaussian Naive Bayes as an ``nn.Module``.

    Torch code passes (Batch, Features) tensors; the wrapped classifier works on
    (Features, Batch) matrices, so inputs are transposed at this boundary.
    """

    def __init__(
        self,
        num_classes: int,
        output_type: str = "prediction",
        incremental_variance: bool = False,
        variance_policy: VariancePolicy | str = VariancePolicy.PROPAGATE,
        variance_floor: float = 1e-9,
    ) -> None:
        """
        Initialize the module.

        Args:
            num_classes (int): Number of classes.
            output_type (str, optional): "prediction" returns labels of shape
                (Batch, 1); "proba" returns posteriors of shape (Batch, C).
                Defaults to "prediction".
            incremental_variance (bool): See ``NaiveBayesClassifier``.
            variance_policy (VariancePolicy | str): See ``NaiveBayesClassifier``.
            variance_floor (float): See ``NaiveBayesClassifier``.
        """
        super().__init__()
        if output_type not in ("prediction", "proba"):
            raise ValueError(f"Unknown output_type '{output_type}'")
        self.output_type = output_type
        self.classifier = NaiveBayesClassifier(
            num_classes=num_classes,
            incremental_variance=incremental_variance,
            variance_policy=variance_policy,
            variance_floor=variance_floor,
        )
        self._is_fitted = False

        # Dummy parameter so optimizer/device placement works; the statistics
        # themselves live on the CPU in numpy.
        self.dummy_param = nn.Parameter(torch.empty(0))

    @property
    def num_classes(self) -> int:
        return self.classifier.num_classes

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Forward pass for inference.
        x: (Batch, Features) or (Batch, Seq, Features); for sequences the last
        step is classified.
        """
        device = x.device
        x_np = _to_numpy(x)
        if x_np.ndim == 3:
            x_np = x_np[:, -1, :]

        batch_size = x_np.shape[0]
        if not self._is_fitted:
            width = 1 if self.output_type == "prediction" else self.num_classes
            out_np = np.zeros((batch_size, width), dtype=np.float32)
        else:
            labels, probabilities = self.classifier.classify_batch_proba(x_np.T)
            if self.output_type == "prediction":
                out_np = labels[:, np.newaxis]
            else:
                out_np = probabilities.T

        return torch.from_numpy(np.ascontiguousarray(out_np)).to(device).to(torch.float32)

    def fit(
        self,
        X: torch.Tensor | np.ndarray,  # noqa: N803
        y: torch.Tensor | np.ndarray,
        incremental: bool = False,
    ) -> "GaussianNaiveBayesModel":
        """Fit on (Batch, Features) data; ``incremental`` merges into the current fit."""
        X_np = _to_numpy(X)
        y_np = _to_numpy(y)
        if X_np.ndim == 3:
            b, s, f = X_np.shape
            X_np = X_np.reshape(b * s, f)
            y_np = y_np.reshape(b * s)
        if y_np.ndim == 2 and y_np.shape[1] == 1:
            y_np = y_np.ravel()

        if incremental and self._is_fitted:
            self.classifier.fit_merge(X_np.T, y_np)
        else:
            self.classifier.fit_replace(X_np.T, y_np)
        self._is_fitted = True
        return self

    def partial_fit(
        self, X: torch.Tensor | np.ndarray, y: torch.Tensor | np.ndarray  # noqa: N803
    ) -> "GaussianNaiveBayesModel":
        """Merge a batch into the current fit."""
        return self.fit(X, y, incremental=True)

    def state_dict(self, *args: Any, **kwargs: Any) -> dict[str, Any]:  # type: ignore[override]
        """Include the classifier parameters as tensors."""
        sd = cast(dict[str, Any], super().state_dict(*args, **kwargs))
        if self._is_fitted:
            archive = DictArchive(loading=False)
            self.classifier.serialize(archive)
            for name, value in archive.data.items():
                sd[_PREFIX + name] = torch.as_tensor(np.asarray(value))
        return sd

    def load_state_dict(
        self, state_dict: Mapping[str, Any], strict: bool = True, assign: bool = False
    ) -> Any:
        """Restore the classifier parameters written by ``state_dict``."""
        state_dict_copy = dict(state_dict)
        fields = {
            name: _to_numpy(state_dict_copy.pop(_PREFIX + name))
            for name in FIELD_ORDER
            if _PREFIX + name in state_dict_copy
        }
        if fields:
            self.classifier.serialize(DictArchive(fields, loading=True))
            self._is_fitted = True
        return super().load_state_dict(state_dict_copy, strict=strict, assign=assign)
