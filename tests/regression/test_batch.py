"""
Tests for BatchApplier: record classification, streaming absorption and
prediction write-back.
"""

import pytest

from pylinreg.core.datasource import Row
from pylinreg.core.exceptions import (
    DegenerateModelError,
    InsufficientDataError,
    InvalidArgumentError,
    MissingFieldError,
    NegativeCountError,
    PyLinRegError,
    WriteBackError,
)
from pylinreg.core.policies import LENIENT, STRICT
from pylinreg.regression import BatchApplier, RegressionAccumulator, predict


def rows(*values):
    return [Row(handle=i, values=v) for i, v in enumerate(values)]


def applier(acc=None, writer=None, **kwargs):
    return BatchApplier('time', 'progress', acc or RegressionAccumulator(), writer=writer, **kwargs)


class TestAbsorbKnown:

    def test_complete_records_absorbed(self, known_points):
        batch = applier()
        added = batch.absorb_known(rows(*({'time': x, 'progress': y} for x, y in known_points)))
        assert added == 3
        assert batch.accumulator.count == 3

    def test_incomplete_records_skipped(self):
        batch = applier()
        added = batch.absorb_known(rows(
            {'time': 1.0, 'progress': 2.0},
            {'time': 2.0},
            {'progress': 3.0},
            {'time': 'late', 'progress': 3.0},
            {'time': 3.0, 'progress': float('nan')},
            {'time': True, 'progress': 1.0},
            {'time': 4, 'progress': 5},
        ))
        assert added == 2
        assert batch.accumulator.snapshot().sum_x == 5.0

    def test_strict_policy_raises_on_incomplete(self):
        batch = applier(policy=STRICT)
        with pytest.raises(MissingFieldError) as info:
            batch.absorb_known(rows({'time': 1.0, 'progress': 2.0}, {'time': 2.0}))
        assert info.value.handle == 1
        assert info.value.attribute == 'progress'

    def test_streams_without_materializing(self):
        pulled = []

        def source():
            for i in range(1000):
                pulled.append(i)
                yield Row(handle=i, values={'time': float(i), 'progress': 2.0 * i})

        batch = applier()
        stream = source()
        assert batch.absorb_known(stream) == 1000
        assert len(pulled) == 1000
        assert batch.accumulator.slope() == pytest.approx(2.0)


class TestAbsorbRemoval:

    def test_symmetric_with_absorb(self, known_points):
        batch = applier()
        records = rows(*({'time': x, 'progress': y} for x, y in known_points))
        batch.absorb_known(records)
        assert batch.absorb_removal(records[:2]) == 2
        assert batch.accumulator.count == 1

    def test_incomplete_removals_skipped(self, fitted_accumulator):
        batch = applier(fitted_accumulator)
        assert batch.absorb_removal(rows({'time': 1.0}, {'time': 1.0, 'progress': 1.345})) == 1
        assert fitted_accumulator.count == 2

    def test_too_many_removals(self):
        batch = applier()
        with pytest.raises(NegativeCountError):
            batch.absorb_removal(rows({'time': 1.0, 'progress': 1.0}))


class TestApplyPredictions:

    def test_writes_candidates(self, fitted_accumulator, recording_writer):
        batch = applier(fitted_accumulator, recording_writer, target='predicted')
        report = batch.apply_predictions(rows({'time': 4.0}, {'time': 5.0}))
        slope, intercept = fitted_accumulator.slope(), fitted_accumulator.intercept()
        assert report.n_predicted == 2
        assert recording_writer.writes == [
            (0, 'predicted', predict(intercept, slope, 4.0)),
            (1, 'predicted', predict(intercept, slope, 5.0)),
        ]

    def test_default_target_is_dependent(self, fitted_accumulator, recording_writer):
        batch = applier(fitted_accumulator, recording_writer)
        batch.apply_predictions(rows({'time': 4.0}))
        assert recording_writer.writes[0][1] == 'progress'

    def test_never_overwrites_observed_dependent(self, fitted_accumulator, recording_writer):
        mixed = rows(
            {'time': 1.0, 'progress': 1.345},
            {'time': 4.0},
            {'time': 2.0, 'progress': 2.596},
            {'time': 6.0, 'progress': 'n/a'},
            {'time': 5.0},
        )
        batch = applier(fitted_accumulator, recording_writer, target='progress')
        report = batch.apply_predictions(mixed)
        assert [h for h, _, _ in recording_writer.writes] == [1, 4]
        assert report.n_skipped == 3

    def test_candidates_without_usable_x_skipped(self, fitted_accumulator, recording_writer):
        batch = applier(fitted_accumulator, recording_writer)
        report = batch.apply_predictions(rows({'time': 'soon'}, {}, {'time': 4.0}))
        assert report.n_predicted == 1
        assert report.n_skipped == 2

    def test_strict_raises_on_candidate_without_x(self, fitted_accumulator, recording_writer):
        batch = applier(fitted_accumulator, recording_writer, policy=STRICT)
        with pytest.raises(MissingFieldError):
            batch.apply_predictions(rows({'time': 'soon'}))

    def test_requires_two_points_and_writes_nothing(self, recording_writer):
        acc = RegressionAccumulator()
        acc.add_point(1.0, 1.0)
        batch = applier(acc, recording_writer)
        with pytest.raises(InsufficientDataError):
            batch.apply_predictions(rows({'time': 4.0}))
        assert recording_writer.writes == []

    def test_degenerate_model(self, recording_writer):
        acc = RegressionAccumulator()
        acc.add_point(1.0, 1.0)
        acc.add_point(1.0, 2.0)
        with pytest.raises(DegenerateModelError):
            applier(acc, recording_writer).apply_predictions(rows({'time': 4.0}))
        assert recording_writer.writes == []

    def test_write_failure_aborts_by_default(self, fitted_accumulator, failing_writer_factory):
        writer = failing_writer_factory(fail_on={1})
        before = fitted_accumulator.snapshot()
        batch = applier(fitted_accumulator, writer, target='predicted')
        with pytest.raises(WriteBackError) as info:
            batch.apply_predictions(rows({'time': 4.0}, {'time': 5.0}, {'time': 6.0}))
        assert info.value.handle == 1
        assert info.value.attribute == 'predicted'
        assert isinstance(info.value.__cause__, IOError)
        assert [h for h, _, _ in writer.writes] == [0]
        assert fitted_accumulator.snapshot() == before

    def test_write_failure_skipped_under_lenient(self, fitted_accumulator, failing_writer_factory):
        writer = failing_writer_factory(fail_on={1})
        before = fitted_accumulator.snapshot()
        batch = applier(fitted_accumulator, writer, policy=LENIENT)
        report = batch.apply_predictions(rows({'time': 4.0}, {'time': 5.0}, {'time': 6.0}))
        assert report.n_predicted == 2
        assert report.n_failed == 1
        assert report.failures[0][0] == 1
        assert [h for h, _, _ in writer.writes] == [0, 2]
        assert fitted_accumulator.snapshot() == before

    def test_requires_writer(self, fitted_accumulator):
        with pytest.raises(InvalidArgumentError, match="WriteBack") as info:
            applier(fitted_accumulator).apply_predictions(rows({'time': 4.0}))
        assert info.value.argument == 'writer'
        assert isinstance(info.value, PyLinRegError)
