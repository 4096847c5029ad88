"""
Model lifecycle orchestration.

ModelService runs every mutating operation through the same sequence:

    load/create -> mutate -> validate (n >= 2, slope defined) -> persist -> predict

Nothing reaches the registry before validation succeeds, so a failed
build or update leaves the previously persisted model untouched. All
operations on one model key are serialized by a per-key lock.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Hashable, Iterable, Iterator, Literal

from pylinreg.core.exceptions import (
    InvalidArgumentError,
    ModelNotFoundError,
    PyLinRegError,
    UpstreamQueryError,
)
from pylinreg.core.policies import ApplyPolicy, DEFAULT
from pylinreg.core.protocols import (
    DataSource,
    ModelRegistry,
    QueryResult,
    Record,
    WriteBack,
)
from pylinreg.core.result import Result
from pylinreg.core.timing import Timer
from pylinreg.core.validation import (
    check_choice,
    check_columns,
    check_min_count,
    check_name,
)
from pylinreg.regression.accumulator import (
    MIN_POINTS,
    RegressionAccumulator,
    SufficientStatistics,
)
from pylinreg.regression.batch import BatchApplier, PredictionReport
from pylinreg.regression.codec import decode, encode
from pylinreg.regression.solution import ModelParams, ModelSolution

logger = logging.getLogger(__name__)

EntityKind = Literal['node', 'relationship']
SelectionMode = Literal['known', 'candidate']

ENTITY_KINDS = ('node', 'relationship')
KNOWN = 'known'
CANDIDATE = 'candidate'


@dataclass(frozen=True)
class Selector:
    """
    Built-in record selection.

    mode 'known' selects entities carrying both variables; mode
    'candidate' selects entities carrying the independent variable only.
    """
    label: str
    entity_kind: EntityKind = 'node'
    independent: str | None = None
    dependent: str | None = None
    mode: SelectionMode = KNOWN

    def __post_init__(self):
        check_choice(self.entity_kind, ENTITY_KINDS, 'entity_kind')
        check_choice(self.mode, (KNOWN, CANDIDATE), 'mode')


def model_key_for(label: str, independent: str, dependent: str) -> str:
    """Key under which build() stores the model for a label/variable triple."""
    return f"{label}|{independent}|{dependent}"


class ModelService:
    """
    Builds, updates and loads persisted regression models.

    Args:
        source: DataSource supplying records for build()
        writer: WriteBack receiving predictions
        registry: ModelRegistry persisting models
        policy: Failure policy for batch application
    """

    def __init__(
        self,
        source: DataSource | None,
        writer: WriteBack,
        registry: ModelRegistry,
        policy: ApplyPolicy = DEFAULT,
    ):
        self.source = source
        self.writer = writer
        self.registry = registry
        self.policy = policy
        self._locks = _KeyLocks()

    # === Operations ===

    def build(
        self,
        selector: Selector,
        independent: str,
        dependent: str,
        new_field: str | None = None,
    ) -> ModelSolution:
        """
        Build a model from every entity the selector matches.

        Known entities train the model; entities with the independent
        variable but no dependent receive predictions under new_field.
        Any model already stored for the label/variable triple is replaced.

        Raises:
            InsufficientDataError: Fewer than 2 usable known entities
            DegenerateModelError: All known x values identical
            InvalidArgumentError: The service has no DataSource
        """
        if self.source is None:
            raise InvalidArgumentError(
                "build() requires a DataSource", argument='source', value=None,
            )
        _check_names(independent, dependent, new_field)
        key = model_key_for(selector.label, independent, dependent)
        known = replace(selector, independent=independent, dependent=dependent, mode=KNOWN)
        candidates = replace(known, mode=CANDIDATE)

        with self._locks.hold(key):
            return self._run(
                'build',
                key,
                independent,
                dependent,
                new_field,
                additions=self.source.fetch(known),
                candidates=_Deferred(lambda: self.source.fetch(candidates)),
                label=selector.label,
            )

    def build_from_queries(
        self,
        known: QueryResult,
        candidates: QueryResult | None,
        independent: str,
        dependent: str,
        new_field: str | None,
        model_key: Hashable,
    ) -> ModelSolution:
        """
        Build a model from caller-supplied results.

        known must expose columns named exactly independent and dependent.
        candidates may be None, meaning build only. The model is always
        stored under model_key, replacing any existing one.

        Raises:
            SchemaMismatchError: known lacks one of the variable columns
            UpstreamQueryError: A result failed while being read
            InsufficientDataError: Fewer than 2 usable rows
            DegenerateModelError: All x values identical
        """
        _check_names(independent, dependent, new_field)
        check_columns(known.columns, (independent, dependent), 'model query')

        with self._locks.hold(model_key):
            return self._run(
                'build_from_queries',
                model_key,
                independent,
                dependent,
                new_field,
                additions=_guarded(known, 'model query'),
                candidates=_guarded(candidates, 'map query') if candidates is not None else None,
            )

    def update(
        self,
        model_key: Hashable,
        removals: QueryResult | None,
        additions: QueryResult | None,
        candidates: QueryResult | None,
        independent: str,
        dependent: str,
        new_field: str | None = None,
    ) -> ModelSolution:
        """
        Remove and add points on a persisted model, then re-predict.

        Each of removals, additions and candidates may be None to skip
        that phase. Removals must exactly match points added earlier
        (see accumulator module docstring).

        Raises:
            ModelNotFoundError: No model is stored under model_key
            SerializationError: The stored payload is unreadable
            SchemaMismatchError: removals/additions lack a variable column
            NegativeCountError: More removals than stored points
            InsufficientDataError: Fewer than 2 points remain
            DegenerateModelError: Remaining x values all identical
        """
        _check_names(independent, dependent, new_field)
        if removals is not None:
            check_columns(removals.columns, (independent, dependent), 'remove query')
        if additions is not None:
            check_columns(additions.columns, (independent, dependent), 'add query')

        with self._locks.hold(model_key):
            handle = self.registry.find(model_key)
            if handle is None:
                raise ModelNotFoundError(
                    f"no model stored under key {model_key!r}",
                    model_key=model_key,
                )
            stats = decode(self.registry.get_payload(handle))
            return self._run(
                'update',
                model_key,
                independent,
                dependent,
                new_field,
                accumulator=RegressionAccumulator.from_stats(stats),
                handle=handle,
                removals=_guarded(removals, 'remove query') if removals is not None else None,
                additions=_guarded(additions, 'add query') if additions is not None else None,
                candidates=_guarded(candidates, 'map query') if candidates is not None else None,
            )

    def load(self, model_key: Hashable, independent: str = '', dependent: str = '') -> ModelSolution:
        """
        Read a frozen snapshot of a persisted model.

        The registry does not return variable names, so they are echoed
        from the arguments for display only.

        Raises:
            ModelNotFoundError: No model is stored under model_key
            SerializationError: The stored payload is unreadable
        """
        with self._locks.hold(model_key):
            handle = self.registry.find(model_key)
            if handle is None:
                raise ModelNotFoundError(
                    f"no model stored under key {model_key!r}",
                    model_key=model_key,
                )
            stats = decode(self.registry.get_payload(handle))

        acc = RegressionAccumulator.from_stats(stats)
        params = ModelParams(
            model_key=model_key,
            independent=independent,
            dependent=dependent,
            slope=acc.slope(),
            intercept=acc.intercept(),
            stats=stats,
        )
        return ModelSolution(Result(
            params=params,
            info={'model_key': model_key},
            timing=None,
            operation='load',
        ))

    def predict(self, model_key: Hashable, x: float) -> float:
        """Predict y at x with the currently persisted model."""
        return self.load(model_key).predict(x)

    # === Pipeline ===

    def _run(
        self,
        operation: str,
        key: Hashable,
        independent: str,
        dependent: str,
        new_field: str | None,
        *,
        accumulator: RegressionAccumulator | None = None,
        handle: Any = None,
        label: str | None = None,
        removals: Iterable[Record] | None = None,
        additions: Iterable[Record] | None = None,
        candidates: Iterable[Record] | None = None,
    ) -> ModelSolution:
        timer = Timer()
        timer.start()

        acc = accumulator if accumulator is not None else RegressionAccumulator()
        applier = BatchApplier(
            independent,
            dependent,
            acc,
            writer=self.writer,
            policy=self.policy,
            target=new_field,
        )
        n_removed = n_absorbed = 0

        # === Mutate ===
        if removals is not None:
            with timer.section('remove'):
                n_removed = applier.absorb_removal(removals)
        if additions is not None:
            with timer.section('absorb'):
                n_absorbed = applier.absorb_known(additions)

        # === Validate ===
        with timer.section('validate'):
            check_min_count(acc.count, MIN_POINTS, f"{operation} {key!r}")
            slope = acc.slope()
            intercept = acc.intercept()
        stats = acc.snapshot()

        # === Persist ===
        with timer.section('persist'):
            self._persist(key, independent, dependent, stats, slope, intercept, handle, label)
        logger.info(
            "%s: stored model %r (n=%d, slope=%g, intercept=%g)",
            operation, key, stats.n, slope, intercept,
        )

        # === Predict ===
        report = PredictionReport()
        if candidates is not None:
            with timer.section('predict'):
                report = applier.apply_predictions(candidates)
            logger.info(
                "%s: wrote %d predictions for model %r", operation, report.n_predicted, key,
            )

        timer.stop()

        params = ModelParams(
            model_key=key,
            independent=independent,
            dependent=dependent,
            slope=slope,
            intercept=intercept,
            stats=stats,
        )
        info: dict[str, Any] = {
            'model_key': key,
            'n_removed': n_removed,
            'n_absorbed': n_absorbed,
            'n_predicted': report.n_predicted,
            'n_skipped': report.n_skipped,
            'n_write_failures': report.n_failed,
        }
        warnings = tuple(
            f"write-back failed for record {h!r}: {msg}" for h, msg in report.failures
        )
        return ModelSolution(Result(
            params=params,
            info=info,
            timing=timer.result(),
            operation=operation,
            warnings=warnings,
        ))

    def _persist(
        self,
        key: Hashable,
        independent: str,
        dependent: str,
        stats: SufficientStatistics,
        slope: float,
        intercept: float,
        handle: Any = None,
        label: str | None = None,
    ) -> None:
        payload = encode(stats)
        if handle is None:
            handle = self.registry.find(key)
        if handle is None:
            handle = self.registry.create(
                key, independent, dependent, slope, intercept, label=label,
            )
            self.registry.set_payload(handle, payload)
        else:
            self.registry.set_payload(handle, payload)
            self.registry.update_fields(handle, slope, intercept)


class _KeyLocks:
    """
    One lock per model key, shared by every holder and waiter.

    An entry is dropped as soon as nobody holds or waits on it, so the
    table only ever contains keys with an operation in flight.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._entries: dict[Hashable, _KeyLock] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _KeyLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[key]


class _KeyLock:
    __slots__ = ('lock', 'users')

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class _Deferred:
    """Iterable that only calls its factory when iteration starts."""

    def __init__(self, factory):
        self._factory = factory

    def __iter__(self) -> Iterator[Record]:
        return iter(self._factory())


def _guarded(records: Iterable[Record], name: str) -> Iterator[Record]:
    """Re-raise failures of a caller-supplied result as UpstreamQueryError."""
    try:
        iterator = iter(records)
    except PyLinRegError:
        raise
    except Exception as e:
        raise UpstreamQueryError(f"{name}: failed to start reading results: {e}", query=name) from e
    while True:
        try:
            record = next(iterator)
        except StopIteration:
            return
        except PyLinRegError:
            raise
        except Exception as e:
            raise UpstreamQueryError(f"{name}: failed while reading results: {e}", query=name) from e
        yield record


def _check_names(independent: str, dependent: str, new_field: str | None) -> None:
    check_name(independent, 'independent')
    check_name(dependent, 'dependent')
    if new_field is not None:
        check_name(new_field, 'new_field')
