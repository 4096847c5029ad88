"""
Core infrastructure for pylinreg.

This module provides shared abstractions and utilities used by the
regression and graph submodules.

Key components:
    protocols: Record, QueryResult, DataSource, WriteBack, ModelRegistry
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    policies: Batch failure policies
    datasource: RowSet, an in-memory QueryResult
"""

from pylinreg.core.protocols import (
    Record,
    QueryResult,
    DataSource,
    WriteBack,
    ModelRegistry,
)
from pylinreg.core.result import Result
from pylinreg.core.policies import ApplyPolicy, select_policy
from pylinreg.core.datasource import RowSet
from pylinreg.core.exceptions import (
    PyLinRegError,
    ValidationError,
    InvalidArgumentError,
    SchemaMismatchError,
    MissingFieldError,
    NumericalError,
    InsufficientDataError,
    DegenerateModelError,
    NegativeCountError,
    ModelNotFoundError,
    SerializationError,
    UpstreamQueryError,
    WriteBackError,
)

__all__ = [
    # Protocols
    "Record",
    "QueryResult",
    "DataSource",
    "WriteBack",
    "ModelRegistry",
    # Result
    "Result",
    # Configuration
    "ApplyPolicy",
    "select_policy",
    # Data
    "RowSet",
    # Exceptions
    "PyLinRegError",
    "ValidationError",
    "InvalidArgumentError",
    "SchemaMismatchError",
    "MissingFieldError",
    "NumericalError",
    "InsufficientDataError",
    "DegenerateModelError",
    "NegativeCountError",
    "ModelNotFoundError",
    "SerializationError",
    "UpstreamQueryError",
    "WriteBackError",
]
