from enum import Enum


class FitMode(Enum):
    """How a training batch combines with the current fit."""
    REPLACE = "replace"
    MERGE = "merge"


class VariancePolicy(Enum):
    """What the evaluator does with zero variances."""
    PROPAGATE = "propagate"
    FLOOR = "floor"
    REJECT = "reject"
