"""
Generic result container for pylinreg operations.

Every model operation (build, custom build, update, load) returns its
payload in the same envelope so that timing, counters and non-fatal
warnings are reported uniformly.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (model key, record counters)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) so a snapshot can be shared with readers
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for model operations.

    Type Parameters:
        P: The operation's parameter payload type

    Attributes:
        params: Operation payload (fitted line, sufficient statistics)
        info: Structured metadata (model key, records absorbed/predicted)
        timing: Execution timing breakdown, or None if not measured
        operation: Identifier of the operation that produced this result
        warnings: Non-fatal issues encountered (e.g. skipped write-backs)

    Examples:
        >>> Result(
        ...     params=ModelParams(...),
        ...     info={'model_key': 'Task|time|progress', 'n_absorbed': 3},
        ...     timing={'total_seconds': 0.01, 'absorb': 0.004},
        ...     operation='build'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    operation: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
