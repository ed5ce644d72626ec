"""
Model persistence with metadata.

A saved model is an ``.npz`` payload holding the serialized parameters plus a
JSON file with the same stem holding a ``ModelMetadata`` record. The metadata
carries a hash of the parameters so a mismatched or corrupted pair is detected
on load.
"""

import hashlib
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, cast

import numpy as np

from ...exceptions import SerializationError
from ...models.naive_bayes import NaiveBayesClassifier
from ...models.state import ModelState
from .archive import FIELD_ORDER, DictArchive

logger = logging.getLogger(__name__)

FORMAT_VERSION = "1.0.0"


@dataclass
class ModelMetadata:
    """Metadata for a saved model.

    Attributes:
        version: Semantic version of the payload layout (e.g., "1.0.0")
        model_type: Model type name
        training_config: Classifier settings needed to rebuild it
        framework_version: Numerical backend version string (e.g., "numpy-2.1.0")
        training_date: ISO format timestamp
        parameter_hash: SHA256 of the serialized parameters
        description: Human-readable description (optional)
        tags: List of tags for organization (optional)
    """

    version: str = FORMAT_VERSION
    model_type: str = "GaussianNaiveBayes"
    training_config: dict[str, Any] = field(default_factory=dict)
    framework_version: str = field(default_factory=lambda: f"numpy-{np.__version__}")
    training_date: str = field(default_factory=lambda: datetime.now().isoformat())
    parameter_hash: str = "unknown"
    description: str | None = None
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert metadata to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ModelMetadata":
        """Create metadata from dictionary."""
        return cls(**data)

    def to_json(self) -> str:
        """Convert metadata to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "ModelMetadata":
        """Create metadata from JSON string."""
        return cls.from_dict(json.loads(json_str))


def compute_parameter_hash(state: ModelState) -> str:
    """SHA256 over the serialized parameters, in archive order."""
    archive = DictArchive(loading=False)
    state.serialize(archive)
    hasher = hashlib.sha256()
    for name in FIELD_ORDER:
        hasher.update(name.encode())
        hasher.update(np.ascontiguousarray(archive.data[name], dtype=np.float64).tobytes())
    return hasher.hexdigest()


def check_version_compatibility(current_version: str, checkpoint_version: str) -> bool:
    """Check if a saved payload version can be read by this code.

    Uses semantic versioning: major.minor.patch; only the major version must
    match.
    """

    def parse_version(version: str) -> tuple[int, int, int]:
        """Parse version string into tuple of integers."""
        parts = version.split(".")
        if len(parts) != 3:
            raise ValueError(f"Invalid version format: {version}")
        v_tuple = tuple(map(int, parts))
        return cast(tuple[int, int, int], v_tuple)

    current = parse_version(current_version)
    checkpoint = parse_version(checkpoint_version)

    return current[0] == checkpoint[0]


def _payload_path(path: str | Path) -> Path:
    path = Path(path)
    return path if path.suffix == ".npz" else path.with_suffix(".npz")


def save_model(
    model: NaiveBayesClassifier,
    save_path: str | Path,
    description: str | None = None,
    tags: list[str] | None = None,
) -> ModelMetadata:
    """Save a classifier and its metadata.

    Args:
        model: Classifier to save
        save_path: Target path; the payload gets an ``.npz`` suffix and the
            metadata a ``.json`` suffix
        description: Model description (optional)
        tags: List of tags (optional)

    Returns:
        The metadata that was written
    """
    payload_path = _payload_path(save_path)
    payload_path.parent.mkdir(parents=True, exist_ok=True)

    archive = DictArchive(loading=False)
    model.serialize(archive)

    metadata = ModelMetadata(
        training_config={
            "num_classes": model.num_classes,
            "incremental_variance": model.incremental_variance,
            "variance_policy": model.variance_policy.value,
            "variance_floor": model.variance_floor,
        },
        parameter_hash=compute_parameter_hash(model.state),
        description=description,
        tags=tags or [],
    )

    with open(payload_path, "wb") as f:
        np.savez(f, **{name: np.asarray(value) for name, value in archive.data.items()})
    with open(payload_path.with_suffix(".json"), "w") as f:
        f.write(metadata.to_json())

    logger.info("Saved model (%s points) to %s", model.training_points, payload_path)
    return metadata


def load_model(load_path: str | Path) -> tuple[NaiveBayesClassifier, ModelMetadata]:
    """Load a classifier saved with ``save_model``.

    Returns:
        Tuple of (classifier, metadata)

    Raises:
        FileNotFoundError: If the payload does not exist
        SerializationError: If the payload is incomplete, of an incompatible
            version, or does not match the metadata hash
    """
    payload_path = _payload_path(load_path)
    if not payload_path.exists():
        raise FileNotFoundError(f"Model not found: {payload_path}")

    metadata_path = payload_path.with_suffix(".json")
    metadata = (
        ModelMetadata.from_json(metadata_path.read_text())
        if metadata_path.exists()
        else ModelMetadata()
    )
    if not check_version_compatibility(FORMAT_VERSION, metadata.version):
        raise SerializationError(
            f"Payload version {metadata.version} is incompatible with {FORMAT_VERSION}"
        )

    with np.load(payload_path, allow_pickle=False) as payload:
        missing = [name for name in FIELD_ORDER if name not in payload.files]
        if missing:
            raise SerializationError(f"Payload {payload_path} is missing {missing}")
        archive = DictArchive({name: payload[name] for name in FIELD_ORDER}, loading=True)

    cfg = metadata.training_config
    model = NaiveBayesClassifier(
        incremental_variance=cfg.get("incremental_variance", False),
        variance_policy=cfg.get("variance_policy", "propagate"),
        variance_floor=cfg.get("variance_floor", 1e-9),
    )
    model.serialize(archive)

    if metadata.parameter_hash != "unknown":
        actual = compute_parameter_hash(model.state)
        if actual != metadata.parameter_hash:
            raise SerializationError(
                f"Parameter hash mismatch for {payload_path}: "
                f"expected {metadata.parameter_hash}, got {actual}"
            )

    logger.info("Loaded model (%s points) from %s", model.training_points, payload_path)
    return model, metadata


__all__ = [
    "FORMAT_VERSION",
    "ModelMetadata",
    "compute_parameter_hash",
    "check_version_compatibility",
    "save_model",
    "load_model",
]
