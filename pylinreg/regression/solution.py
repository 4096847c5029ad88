"""
Model solution types.

Contains the parameter payload and user-facing solution wrapper.
"""

from dataclasses import dataclass
from typing import Any, Hashable

from pylinreg.core.result import Result
from pylinreg.regression.accumulator import SufficientStatistics
from pylinreg.regression.prediction import predict


@dataclass(frozen=True)
class ModelParams:
    """
    Parameter payload for a persisted model.

    slope and intercept are derived copies; stats is the ground truth.
    """
    model_key: Hashable
    independent: str
    dependent: str
    slope: float
    intercept: float
    stats: SufficientStatistics


@dataclass
class ModelSolution:
    """
    User-facing model results.

    Wraps the operation Result and provides convenient accessors for the
    fitted line and the counters of the operation that produced it. A
    solution is a frozen snapshot: predict() never sees later updates.
    """
    _result: Result[ModelParams]

    @property
    def model_key(self) -> Hashable:
        return self._result.params.model_key

    @property
    def independent(self) -> str:
        return self._result.params.independent

    @property
    def dependent(self) -> str:
        return self._result.params.dependent

    @property
    def slope(self) -> float:
        return self._result.params.slope

    @property
    def intercept(self) -> float:
        return self._result.params.intercept

    @property
    def stats(self) -> SufficientStatistics:
        return self._result.params.stats

    @property
    def count(self) -> int:
        return self._result.params.stats.n

    @property
    def n_absorbed(self) -> int:
        return self._result.info.get('n_absorbed', 0)

    @property
    def n_removed(self) -> int:
        return self._result.info.get('n_removed', 0)

    @property
    def n_predicted(self) -> int:
        return self._result.info.get('n_predicted', 0)

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def operation(self) -> str:
        return self._result.operation

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def predict(self, x: float) -> float:
        return predict(self.intercept, self.slope, x)

    def summary(self) -> str:
        """Generate a short text summary of the model."""
        lines = [
            "Simple Linear Regression Model",
            "=" * 60,
            f"Key: {self.model_key!r}",
            f"Model: {self.dependent} ~ {self.independent}",
            f"Observations: {self.count}",
            "",
            f"{'Intercept:':<12} {self.intercept:14.6f}",
            f"{'Slope:':<12} {self.slope:14.6f}",
            "-" * 60,
            f"Operation: {self.operation}",
        ]
        if self.info.get('n_predicted'):
            lines.append(f"Predictions written: {self.info['n_predicted']}")
        if self.timing:
            lines.append(f"Time: {self.timing.get('total_seconds', 0):.4f}s")
        for w in self.warnings:
            lines.append(f"Warning: {w}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"ModelSolution(key={self.model_key!r}, n={self.count}, "
            f"slope={self.slope:.6g}, intercept={self.intercept:.6g})"
        )
