"""
Core protocols for pylinreg.

These define the structural interfaces of the external collaborators:
the store that supplies records, the mechanism that writes predictions
back, and the registry that persists models. We use Protocol (structural
typing) rather than ABC (nominal typing) so any graph driver, dataframe
wrapper or test double can be plugged in without subclassing.

Design Principles:
    - Minimal contracts: prescribe only what the model lifecycle needs
    - Lazy by default: every record sequence is a single-pass iterable
    - Opaque handles: records and models are identified by whatever the
      collaborator hands out
"""

from typing import Protocol, Any, Hashable, Iterable, Iterator, Sequence, runtime_checkable


@runtime_checkable
class Record(Protocol):
    """
    A property bag owned by the external store.

    Values are of dynamic type; classification decides whether a value is
    usable. The handle is stable for the lifetime of the record and is what
    WriteBack receives.
    """

    @property
    def handle(self) -> Hashable:
        """Stable external identifier of this record."""
        ...

    def get(self, name: str) -> Any:
        """Value of the named attribute, or None if absent."""
        ...

    def has(self, name: str) -> bool:
        """True if the named attribute is present (whatever its type)."""
        ...


@runtime_checkable
class QueryResult(Protocol):
    """
    Result of a caller-supplied query.

    Iterating yields Records. For tabular results each row is a Record
    whose attributes are the columns; for entity results each row is the
    entity itself. Iteration happens at most once.
    """

    @property
    def columns(self) -> Sequence[str]:
        """Names of the columns this result exposes."""
        ...

    def __iter__(self) -> Iterator[Record]:
        ...


@runtime_checkable
class DataSource(Protocol):
    """
    Supplier of records.

    fetch() serves the two built-in selection modes (see service.Selector);
    execute() runs an arbitrary caller-supplied query in whatever query
    mechanism the implementation provides.
    """

    def fetch(self, selector: Any) -> Iterable[Record]:
        """
        Lazily yield the records matching a selector.

        Args:
            selector: service.Selector naming the label, entity kind,
                variable names and selection mode
        """
        ...

    def execute(self, query: Any) -> QueryResult:
        """
        Run a caller-supplied query.

        Raises:
            Any exception; the service re-raises it as UpstreamQueryError.
        """
        ...


@runtime_checkable
class WriteBack(Protocol):
    """
    Sink for predicted values.

    Fire-and-forget from the model's perspective; durability is owned by
    the implementation.
    """

    def set(self, handle: Hashable, attribute: str, value: float) -> None:
        """Set one attribute on the record identified by handle."""
        ...


@runtime_checkable
class ModelRegistry(Protocol):
    """
    Persistent store for models.

    A model handle is whatever create()/find() return; the registry stores
    the opaque payload plus slope/intercept display copies.
    """

    def create(
        self,
        key: Hashable,
        independent: str,
        dependent: str,
        slope: float,
        intercept: float,
        label: str | None = None,
    ) -> Any:
        """
        Create a model entry and return its handle.

        label is the record label the model was built from, when known.
        """
        ...

    def find(self, key: Hashable) -> Any | None:
        """Return the handle of the model stored under key, or None."""
        ...

    def update_fields(self, handle: Any, slope: float, intercept: float) -> None:
        """Refresh the display copies of slope and intercept."""
        ...

    def get_payload(self, handle: Any) -> bytes:
        """Return the serialized sufficient statistics."""
        ...

    def set_payload(self, handle: Any, payload: bytes) -> None:
        """Replace the serialized sufficient statistics."""
        ...
