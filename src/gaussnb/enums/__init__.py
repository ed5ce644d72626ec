from .policies import FitMode, VariancePolicy

__all__ = ["FitMode", "VariancePolicy"]
