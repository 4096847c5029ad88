"""
Incremental simple linear regression.

The model is held as five sufficient statistics (n, Σx, Σy, Σx², Σxy).
Adding or removing a point is O(1) and exactly reversible in the
statistics, and the statistics are the whole persisted state of a model:
slope and intercept are always derived from them.

Removal contract:
    remove_point() does NOT check that the point was ever added. Removing
    a point that was not added (or removing it twice) produces statistics
    that still look valid (n >= 2) but describe the wrong data. The only
    safeguard is the n >= 0 floor. Callers must feed removals that exactly
    match earlier additions.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass

from pylinreg.core.exceptions import (
    DegenerateModelError,
    NegativeCountError,
    ValidationError,
)
from pylinreg.core.validation import check_finite, check_min_count
from pylinreg.regression.prediction import predict

MIN_POINTS = 2

# n Σx² - (Σx)² is treated as zero below this many ulps of n Σx², per point.
# Identical x values that are not exactly representable, and sums left
# behind by removals, leave a residue of a few ulps rather than exact 0.
DEGENERACY_ULPS = 16


@dataclass(frozen=True)
class SufficientStatistics:
    """
    Complete state of a simple linear regression model.

    Invariant: n >= 0, and every sum is 0.0 when n == 0.
    """
    n: int = 0
    sum_x: float = 0.0
    sum_y: float = 0.0
    sum_xx: float = 0.0
    sum_xy: float = 0.0

    def __post_init__(self):
        if self.n < 0:
            raise ValidationError(f"n: must be >= 0, got {self.n}")
        if self.n == 0 and any((self.sum_x, self.sum_y, self.sum_xx, self.sum_xy)):
            raise ValidationError("sums must all be 0 when n == 0")


class RegressionAccumulator:
    """
    Mutable sufficient statistics for one model.

    An accumulator lives for the duration of one build or update. It is
    not thread-safe; concurrent mutation of one instance is not allowed.
    """

    def __init__(self):
        self._n = 0
        self._sum_x = 0.0
        self._sum_y = 0.0
        self._sum_xx = 0.0
        self._sum_xy = 0.0

    @classmethod
    def from_stats(cls, stats: SufficientStatistics) -> RegressionAccumulator:
        acc = cls()
        acc.restore(stats)
        return acc

    # === Mutation ===

    def add_point(self, x: float, y: float) -> None:
        """
        Add one observation.

        Raises:
            ValidationError: If x or y is not a finite number. Nothing is
                changed in that case.
        """
        x = check_finite(x, 'x')
        y = check_finite(y, 'y')
        self._n += 1
        self._sum_x += x
        self._sum_y += y
        self._sum_xx += x * x
        self._sum_xy += x * y

    def remove_point(self, x: float, y: float) -> None:
        """
        Remove one previously added observation.

        See the module docstring for the removal contract.

        Raises:
            ValidationError: If x or y is not a finite number
            NegativeCountError: If the accumulator is empty. The state is
                left unchanged.
        """
        x = check_finite(x, 'x')
        y = check_finite(y, 'y')
        if self._n - 1 < 0:
            raise NegativeCountError(
                f"cannot remove point ({x}, {y}): accumulator holds {self._n} points",
                count=self._n,
            )
        self._n -= 1
        if self._n == 0:
            # Re-zero instead of subtracting to drop float residue.
            self._sum_x = self._sum_y = self._sum_xx = self._sum_xy = 0.0
            return
        self._sum_x -= x
        self._sum_y -= y
        self._sum_xx -= x * x
        self._sum_xy -= x * y

    # === Derived values ===

    @property
    def count(self) -> int:
        return self._n

    def slope(self) -> float:
        """
        Least-squares slope.

        slope = (n Σxy - Σx Σy) / (n Σx² - (Σx)²)

        Raises:
            InsufficientDataError: If fewer than 2 points are held
            DegenerateModelError: If all x values are identical, to within
                rounding of the running sums
        """
        check_min_count(self._n, MIN_POINTS, 'slope')
        scale = self._n * self._sum_xx
        denominator = scale - self._sum_x * self._sum_x
        if denominator <= scale * DEGENERACY_ULPS * self._n * sys.float_info.epsilon:
            raise DegenerateModelError(
                f"slope: independent variable has zero variance over {self._n} points",
                count=self._n,
            )
        return (self._n * self._sum_xy - self._sum_x * self._sum_y) / denominator

    def intercept(self) -> float:
        """
        Least-squares intercept, (Σy - slope Σx) / n.

        Raises:
            InsufficientDataError: If fewer than 2 points are held
            DegenerateModelError: If all x values are identical, to within
                rounding of the running sums
        """
        slope = self.slope()
        return (self._sum_y - slope * self._sum_x) / self._n

    def predict(self, x: float) -> float:
        return predict(self.intercept(), self.slope(), x)

    def validate(self) -> None:
        """Raise if the current state cannot yield a slope and intercept."""
        self.slope()

    # === State transfer ===

    def snapshot(self) -> SufficientStatistics:
        return SufficientStatistics(
            n=self._n,
            sum_x=self._sum_x,
            sum_y=self._sum_y,
            sum_xx=self._sum_xx,
            sum_xy=self._sum_xy,
        )

    def restore(self, stats: SufficientStatistics) -> None:
        self._n = stats.n
        self._sum_x = stats.sum_x
        self._sum_y = stats.sum_y
        self._sum_xx = stats.sum_xx
        self._sum_xy = stats.sum_xy

    def __repr__(self) -> str:
        return (
            f"RegressionAccumulator(n={self._n}, sum_x={self._sum_x!r}, "
            f"sum_y={self._sum_y!r}, sum_xx={self._sum_xx!r}, sum_xy={self._sum_xy!r})"
        )
