"""
Streaming application of a model to record sequences.

BatchApplier classifies records as they stream past:
    known      both variables usable -> feeds the accumulator
    candidate  independent usable, dependent absent -> receives a prediction

Every method consumes its iterable in a single pass and holds at most one
record at a time.
"""

import logging
from dataclasses import dataclass, field
from typing import Hashable, Iterable

from pylinreg.core.exceptions import InvalidArgumentError, MissingFieldError, WriteBackError
from pylinreg.core.policies import ApplyPolicy, DEFAULT
from pylinreg.core.protocols import Record, WriteBack
from pylinreg.core.validation import check_min_count, is_usable
from pylinreg.regression.accumulator import MIN_POINTS, RegressionAccumulator
from pylinreg.regression.prediction import predict

logger = logging.getLogger(__name__)


@dataclass
class PredictionReport:
    """Outcome of one apply_predictions() pass."""
    n_predicted: int = 0
    n_skipped: int = 0
    failures: list[tuple[Hashable, str]] = field(default_factory=list)

    @property
    def n_failed(self) -> int:
        return len(self.failures)


class BatchApplier:
    """
    Moves records into and out of an accumulator and writes predictions.

    Args:
        independent: Attribute holding x
        dependent: Attribute holding observed y
        accumulator: Accumulator to mutate
        writer: WriteBack collaborator receiving predictions
        policy: Failure policy (defaults to abort-on-write-error,
            skip-on-missing-field)
        target: Attribute predictions are written to; defaults to dependent
    """

    def __init__(
        self,
        independent: str,
        dependent: str,
        accumulator: RegressionAccumulator,
        writer: WriteBack | None = None,
        policy: ApplyPolicy = DEFAULT,
        target: str | None = None,
    ):
        self.independent = independent
        self.dependent = dependent
        self.accumulator = accumulator
        self.writer = writer
        self.policy = policy
        self.target = target or dependent

    def absorb_known(self, records: Iterable[Record]) -> int:
        """Add every complete record to the accumulator. Returns the number added."""
        added = 0
        for record in records:
            point = self._point(record)
            if point is not None:
                self.accumulator.add_point(*point)
                added += 1
        logger.debug("absorbed %d points into %r", added, self.accumulator)
        return added

    def absorb_removal(self, records: Iterable[Record]) -> int:
        """
        Remove every complete record from the accumulator. Returns the number removed.

        Raises:
            NegativeCountError: If removals outnumber the points held. Points
                removed before the failing one stay removed in the
                accumulator; callers discard it.
        """
        removed = 0
        for record in records:
            point = self._point(record)
            if point is not None:
                self.accumulator.remove_point(*point)
                removed += 1
        logger.debug("removed %d points from %r", removed, self.accumulator)
        return removed

    def apply_predictions(self, records: Iterable[Record]) -> PredictionReport:
        """
        Write a prediction onto every record whose dependent is absent.

        Records that already carry the dependent attribute are never
        written. The slope and intercept are read once before the pass and
        the accumulator is not touched afterwards.

        Raises:
            InsufficientDataError: If the accumulator holds fewer than 2
                points; nothing is written
            DegenerateModelError: If the model has no defined slope
            WriteBackError: On the first failed write, under an abort policy
            InvalidArgumentError: If no WriteBack collaborator was given
        """
        check_min_count(self.accumulator.count, MIN_POINTS, 'apply_predictions')
        if self.writer is None:
            raise InvalidArgumentError(
                "apply_predictions requires a WriteBack collaborator",
                argument='writer',
                value=None,
            )
        slope = self.accumulator.slope()
        intercept = self.accumulator.intercept()

        report = PredictionReport()
        for record in records:
            if record.has(self.dependent):
                report.n_skipped += 1
                continue
            x = record.get(self.independent)
            if not is_usable(x):
                if self.policy.raises_on_missing_field:
                    raise MissingFieldError(
                        f"record {record.handle!r}: no usable value for {self.independent!r}",
                        handle=record.handle,
                        attribute=self.independent,
                    )
                report.n_skipped += 1
                continue

            value = predict(intercept, slope, float(x))
            try:
                self.writer.set(record.handle, self.target, value)
            except Exception as e:
                if self.policy.aborts_on_write_error:
                    raise WriteBackError(
                        f"failed to write {self.target!r} on record {record.handle!r}: {e}",
                        handle=record.handle,
                        attribute=self.target,
                    ) from e
                logger.warning(
                    "skipping record %r: write of %r failed: %s",
                    record.handle, self.target, e,
                )
                report.failures.append((record.handle, str(e)))
                continue
            report.n_predicted += 1

        return report

    def _point(self, record: Record) -> tuple[float, float] | None:
        x = record.get(self.independent)
        y = record.get(self.dependent)
        if is_usable(x) and is_usable(y):
            return float(x), float(y)
        if self.policy.raises_on_missing_field:
            attribute = self.dependent if is_usable(x) else self.independent
            raise MissingFieldError(
                f"record {record.handle!r}: no usable value for {attribute!r}",
                handle=record.handle,
                attribute=attribute,
            )
        logger.debug("skipping incomplete record %r", record.handle)
        return None
