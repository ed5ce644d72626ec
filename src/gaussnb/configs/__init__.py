from __future__ import annotations

from hydra.core.config_store import ConfigStore

from .base import BaseConfig, deep_sanitize
from .model import NaiveBayesConfig


def register_configs() -> None:
    """Register structured configs with Hydra ConfigStore."""
    cs = ConfigStore.instance()

    cs.store(name="config", node=NaiveBayesConfig)
    cs.store(group="model", name="gaussian_nb", node=NaiveBayesConfig)


# Explicit exports
Config = NaiveBayesConfig

__all__ = [
    "NaiveBayesConfig",
    "Config",
    "register_configs",
    "BaseConfig",
    "deep_sanitize",
]
