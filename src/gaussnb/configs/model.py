from __future__ import annotations

from dataclasses import dataclass

from gaussnb.configs.base import BaseConfig
from gaussnb.enums import VariancePolicy
from gaussnb.exceptions import ConfigurationError

__all__ = ["NaiveBayesConfig"]


@dataclass
class NaiveBayesConfig(BaseConfig):
    num_classes: int = 2
    dimensionality: int = 0
    incremental_variance: bool = False
    variance_policy: str = VariancePolicy.PROPAGATE.value
    variance_floor: float = 1e-9

    def validate(self) -> None:
        """Raise ConfigurationError on invalid settings."""
        if self.num_classes < 1:
            raise ConfigurationError("num_classes must be at least 1")
        if self.dimensionality < 0:
            raise ConfigurationError("dimensionality cannot be negative")
        try:
            VariancePolicy(self.variance_policy)
        except ValueError as e:
            choices = [p.value for p in VariancePolicy]
            raise ConfigurationError(
                f"Unknown variance_policy '{self.variance_policy}', expected one of {choices}"
            ) from e
        if not self.variance_floor > 0:
            raise ConfigurationError("variance_floor must be positive")
