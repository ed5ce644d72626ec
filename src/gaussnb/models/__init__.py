"""Gaussian Naive Bayes model, its statistics engine and torch wrapper."""

from .state import ModelState
from .naive_bayes import NaiveBayesClassifier
from .base import GaussianNaiveBayesModel

__all__ = [
    "GaussianNaiveBayesModel",
    "ModelState",
    "NaiveBayesClassifier",
]
