
from __future__ import annotations

import yaml
from dataclasses import asdict, dataclass
from typing import Any, Dict, Type, TypeVar

T = TypeVar("T", bound="BaseConfig")

__all__ = ["BaseConfig", "deep_sanitize"]


@dataclass
class BaseConfig:
    """Base configuration class with utility methods."""

    @classmethod
    def from_yaml(cls: Type[T], path: str) -> T:
        """Load configuration from a YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls: type[T], data: Any) -> T:
        """Create configuration from a dict or DictConfig; unknown keys are ignored."""
        data = deep_sanitize(data)
        kwargs = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a dictionary."""
        return asdict(self)

    def to_yaml(self, path: str) -> None:
        """Write configuration to a YAML file."""
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)


def deep_sanitize(cfg: Any) -> Any:
    """Recursively convert DictConfig/ListConfig to primitives."""
    from omegaconf import DictConfig, ListConfig
    if isinstance(cfg, DictConfig):
        return {k: deep_sanitize(v) for k, v in cfg.items()}
    if isinstance(cfg, ListConfig):
        return [deep_sanitize(v) for v in cfg]
    if isinstance(cfg, dict):
        return {k: deep_sanitize(v) for k, v in cfg.items()}
    if isinstance(cfg, list | tuple):
        return [deep_sanitize(v) for v in cfg]
    return cfg
