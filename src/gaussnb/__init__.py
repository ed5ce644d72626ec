"""Gaussian Naive Bayes classification with batch and incremental training."""

from .enums import FitMode, VariancePolicy
from .exceptions import (
    ConfigurationError,
    DegenerateInputError,
    GaussNBError,
    LabelRangeError,
    NumericalError,
    SerializationError,
    ShapeMismatchError,
)
from .models import GaussianNaiveBayesModel, ModelState, NaiveBayesClassifier
from .utils.io import DictArchive
from .utils.io.model_versioning import ModelMetadata, load_model, save_model

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DegenerateInputError",
    "DictArchive",
    "FitMode",
    "GaussNBError",
    "GaussianNaiveBayesModel",
    "LabelRangeError",
    "ModelMetadata",
    "ModelState",
    "NaiveBayesClassifier",
    "NumericalError",
    "SerializationError",
    "ShapeMismatchError",
    "VariancePolicy",
    "load_model",
    "save_model",
]
