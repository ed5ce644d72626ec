from __future__ import annotations

class GaussNBError(Exception):
    """Base exception for gaussnb."""
    pass

class ShapeMismatchError(GaussNBError, ValueError):
    """Raised when an input's dimensionality disagrees with the model."""
    pass

class LabelRangeError(ShapeMismatchError):
    """Raised when a label falls outside [0, num_classes)."""
    pass

class DegenerateInputError(GaussNBError, ValueError):
    """Raised when a training batch cannot produce a fit (e.g. it is empty)."""
    pass

class NumericalError(GaussNBError, ArithmeticError):
    """Raised when the model parameters cannot be evaluated safely."""
    pass

class ConfigurationError(GaussNBError):
    """Raised when configuration is invalid."""
    pass

class SerializationError(GaussNBError):
    """Raised when a model archive cannot be written or read back."""
    pass
