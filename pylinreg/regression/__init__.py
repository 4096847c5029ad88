"""
Updatable simple linear regression.

This module provides the incremental accumulator, its persisted encoding,
streaming prediction write-back and the service that ties them together.

Public API:
    predict(intercept, slope, x) -> float
    RegressionProcedures: host-facing entry points
    ModelService: build / build_from_queries / update / load

Example:
    >>> from pylinreg.regression import RegressionAccumulator
    >>> acc = RegressionAccumulator()
    >>> for x, y in [(1, 1.345), (2, 2.596), (3, 3.259)]:
    ...     acc.add_point(x, y)
    >>> round(acc.slope(), 3)
    0.957
"""

from pylinreg.regression.prediction import predict
from pylinreg.regression.accumulator import RegressionAccumulator, SufficientStatistics
from pylinreg.regression.codec import encode, decode
from pylinreg.regression.batch import BatchApplier, PredictionReport
from pylinreg.regression.solution import ModelParams, ModelSolution
from pylinreg.regression.service import ModelService, Selector, model_key_for
from pylinreg.regression.procedures import RegressionProcedures

__all__ = [
    "predict",
    "RegressionAccumulator",
    "SufficientStatistics",
    "encode",
    "decode",
    "BatchApplier",
    "PredictionReport",
    "ModelParams",
    "ModelSolution",
    "ModelService",
    "Selector",
    "model_key_for",
    "RegressionProcedures",
]
