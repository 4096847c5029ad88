"""
Exception hierarchy for pylinreg.

All exceptions inherit from PyLinRegError to allow catching any
library-specific error. Each failure mode of the model lifecycle has its
own class so callers can tell them apart without parsing messages.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""

from typing import Any, Hashable, Sequence


class PyLinRegError(Exception):
    """Base exception for all pylinreg errors."""
    pass


class ValidationError(PyLinRegError):
    """
    Input validation failed.

    Raised when caller-provided inputs fail validation checks.
    """
    pass


class InvalidArgumentError(ValidationError):
    """
    An argument has a value outside its allowed set, or a required
    argument or collaborator is missing.

    Attributes:
        argument: Name of the offending argument
        value: The rejected value
        allowed: The values that would have been accepted
    """

    def __init__(
        self,
        message: str,
        argument: str | None = None,
        value: Any = None,
        allowed: Sequence[str] | None = None,
    ):
        super().__init__(message)
        self.argument = argument
        self.value = value
        self.allowed = tuple(allowed) if allowed is not None else None


class SchemaMismatchError(ValidationError):
    """
    Query result columns don't match the expected variable names.

    Attributes:
        expected: Column names that were required
        actual: Column names the query actually returned
    """

    def __init__(
        self,
        message: str,
        expected: Sequence[str] = (),
        actual: Sequence[str] = (),
    ):
        super().__init__(message)
        self.expected = tuple(expected)
        self.actual = tuple(actual)


class MissingFieldError(ValidationError):
    """
    A record lacks a usable value for a required attribute.

    Only raised under a strict classification policy; by default such
    records are skipped.

    Attributes:
        handle: External handle of the offending record
        attribute: Attribute that was absent or non-numeric
    """

    def __init__(self, message: str, handle: Any = None, attribute: str | None = None):
        super().__init__(message)
        self.handle = handle
        self.attribute = attribute


class NumericalError(PyLinRegError):
    """
    Numerical computation failed.

    Base class for errors arising from the state of the sufficient statistics.
    """
    pass


class InsufficientDataError(NumericalError):
    """
    Fewer data points than the model needs.

    Attributes:
        count: Number of points currently held
        required: Minimum number of points needed
    """

    def __init__(self, message: str, count: int, required: int = 2):
        super().__init__(message)
        self.count = count
        self.required = required


class DegenerateModelError(NumericalError):
    """
    The independent variable has zero variance, so no slope is defined.

    Attributes:
        count: Number of points currently held
    """

    def __init__(self, message: str, count: int):
        super().__init__(message)
        self.count = count


class NegativeCountError(NumericalError):
    """
    A removal would drive the point count below zero.

    Attributes:
        count: Point count at the time of the rejected removal
    """

    def __init__(self, message: str, count: int):
        super().__init__(message)
        self.count = count


class ModelNotFoundError(PyLinRegError):
    """
    No persisted model exists under the requested key.

    Attributes:
        model_key: The key that was looked up
    """

    def __init__(self, message: str, model_key: Hashable):
        super().__init__(message)
        self.model_key = model_key


class SerializationError(PyLinRegError):
    """
    A persisted model payload is corrupt or carries an unknown version.

    Attributes:
        version: Version tag read from the payload, if it got that far
    """

    def __init__(self, message: str, version: int | None = None):
        super().__init__(message)
        self.version = version


class UpstreamQueryError(PyLinRegError):
    """
    The data collaborator failed to execute a caller-supplied query.

    The original failure is always available as __cause__.

    Attributes:
        query: The query that failed
    """

    def __init__(self, message: str, query: Any = None):
        super().__init__(message)
        self.query = query


class WriteBackError(PyLinRegError):
    """
    Writing a predicted value back onto a record failed.

    Attributes:
        handle: External handle of the record being written
        attribute: Attribute that was being set
    """

    def __init__(self, message: str, handle: Any = None, attribute: str | None = None):
        super().__init__(message)
        self.handle = handle
        self.attribute = attribute
