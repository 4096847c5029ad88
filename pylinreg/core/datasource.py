"""
In-memory query results for pylinreg.

RowSet is the "I have rows" abstraction. It doesn't know or care whether
its rows train a model, get removed from one, or receive predictions. It
just satisfies the QueryResult protocol so caller-supplied data can be fed
to the model service without a database.

Usage:
    from pylinreg.core.datasource import RowSet

    rows = RowSet.from_rows([{'time': 1.0, 'progress': 1.3}, ...])
    rows = RowSet.from_arrays(time=t, progress=p)
    rows = RowSet.from_dataframe(df)

    rows.columns      # ('time', 'progress')
    for row in rows:  # Row records, handle = row position or index label
        row.get('time')

Missing values (None, NaN) are reported as absent attributes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import chain
from typing import Any, Hashable, Iterable, Iterator, Mapping, TYPE_CHECKING
import numpy as np
from numpy.typing import NDArray

from pylinreg.core.exceptions import ValidationError

if TYPE_CHECKING:
    import pandas as pd


@dataclass(frozen=True)
class Row:
    """A single tabular row exposed through the Record protocol."""
    handle: Hashable
    values: Mapping[str, Any]

    def get(self, name: str) -> Any:
        value = self.values.get(name)
        return None if _is_missing(value) else value

    def has(self, name: str) -> bool:
        return self.get(name) is not None


@dataclass
class RowSet:
    """
    Query result backed by an iterable of rows.

    Construct via factory classmethods, not directly. Iteration is lazy:
    rows are produced one at a time from the underlying iterable.
    """
    _columns: tuple[str, ...]
    _rows: Iterable[Row]
    _metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    @property
    def metadata(self) -> dict[str, Any]:
        return self._metadata.copy()

    def __iter__(self) -> Iterator[Row]:
        return iter(self._rows)

    # === Factory Methods ===

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[Mapping[str, Any]],
        *,
        columns: Iterable[str] | None = None,
    ) -> RowSet:
        """
        Construct from mappings of column name to value.

        If columns is not given, the first row's keys are used; only that
        row is pulled from the iterable up front.
        """
        iterator = iter(rows)
        if columns is None:
            first = next(iterator, None)
            if first is None:
                return cls(_columns=(), _rows=(), _metadata={'source': 'rows'})
            columns = tuple(first.keys())
            iterator = chain([first], iterator)

        indexed = (Row(handle=i, values=row) for i, row in enumerate(iterator))
        return cls(
            _columns=tuple(columns),
            _rows=indexed,
            _metadata={'source': 'rows'},
        )

    @classmethod
    def from_arrays(cls, **named_arrays: NDArray) -> RowSet:
        """Construct from equal-length 1D arrays, one per column."""
        if not named_arrays:
            raise ValidationError("from_arrays: at least one column is required")

        storage = {
            name: np.asarray(arr, dtype=np.float64)
            for name, arr in named_arrays.items()
        }
        lengths = {name: arr.shape[0] for name, arr in storage.items()}
        if len(set(lengths.values())) > 1:
            details = ", ".join(f"{name}={n}" for name, n in lengths.items())
            raise ValidationError(f"Inconsistent lengths: {details}")
        n_rows = next(iter(lengths.values()))

        def rows() -> Iterator[Row]:
            for i in range(n_rows):
                yield Row(
                    handle=i,
                    values={name: float(arr[i]) for name, arr in storage.items()},
                )

        return cls(
            _columns=tuple(storage),
            _rows=Reiterable(rows),
            _metadata={'source': 'arrays', 'n_rows': n_rows},
        )

    @classmethod
    def from_dataframe(cls, df: 'pd.DataFrame') -> RowSet:
        """
        Construct from a pandas DataFrame.

        Row handles are the DataFrame index labels. Rows are read with
        itertuples so the frame is never copied.
        """
        columns = tuple(str(c) for c in df.columns)

        def rows() -> Iterator[Row]:
            for index, *values in df.itertuples(index=True, name=None):
                yield Row(handle=index, values=dict(zip(columns, values)))

        return cls(
            _columns=columns,
            _rows=Reiterable(rows),
            _metadata={'source': 'dataframe', 'n_rows': len(df)},
        )


class Reiterable:
    """Wraps a generator function so every iteration starts fresh."""

    def __init__(self, factory):
        self._factory = factory

    def __iter__(self) -> Iterator[Row]:
        return self._factory()


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (float, np.floating)):
        return bool(np.isnan(value))
    return False
