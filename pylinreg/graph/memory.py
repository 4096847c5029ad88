"""
In-memory property graph.

InMemoryGraph implements all three collaborator protocols (DataSource,
WriteBack, ModelRegistry) over a dictionary of entities. It is the
reference adapter for tests and for embedding the regression procedures
without a database.

Models are stored as ordinary nodes labelled 'LinReg', carrying display
copies of the fitted line next to the serialized statistics:

    (:LinReg {modelKey, nodeLabel, indVar, depVar, intercept, slope, serializedModel})

nodeLabel is only set for models built from a label.

Caller-supplied queries are registered Python callables:

    graph.register_query('known', lambda g: g.table('Task', ['time', 'progress']))
    graph.execute('known')
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable, Iterable, Iterator, Sequence

from pylinreg.core.datasource import Reiterable, Row, RowSet
from pylinreg.core.exceptions import ValidationError
from pylinreg.core.protocols import QueryResult

MODEL_LABEL = 'LinReg'
PAYLOAD_PROPERTY = 'serializedModel'

QueryFunction = Callable[['InMemoryGraph'], QueryResult]


@dataclass
class Entity:
    """A node or relationship. Satisfies the Record protocol."""
    handle: int
    kind: str
    labels: frozenset[str]
    properties: dict[str, Any] = field(default_factory=dict)
    start: int | None = None
    end: int | None = None

    def get(self, name: str) -> Any:
        return self.properties.get(name)

    def has(self, name: str) -> bool:
        return name in self.properties


@dataclass
class EntityResult:
    """Query result whose rows are entities."""
    _columns: tuple[str, ...]
    _entities: Iterable[Entity]

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities)


class InMemoryGraph:
    """Dictionary-backed graph of nodes, relationships and stored models."""

    def __init__(self):
        self._entities: dict[int, Entity] = {}
        self._ids = itertools.count()
        self._queries: dict[Hashable, QueryFunction] = {}
        self._models: dict[Hashable, int] = {}

    # === Graph construction ===

    def create_node(self, *labels: str, **properties: Any) -> Entity:
        return self._add('node', labels, properties)

    def create_relationship(
        self,
        rel_type: str,
        start: int | None = None,
        end: int | None = None,
        **properties: Any,
    ) -> Entity:
        return self._add('relationship', (rel_type,), properties, start=start, end=end)

    def entity(self, handle: int) -> Entity:
        try:
            return self._entities[handle]
        except KeyError:
            raise KeyError(f"graph has no entity with handle {handle!r}") from None

    def entities(self, label: str, kind: str = 'node') -> Iterator[Entity]:
        """Lazily yield the entities of kind carrying label."""
        for entity in self._entities.values():
            if entity.kind == kind and label in entity.labels:
                yield entity

    def _add(
        self,
        kind: str,
        labels: Sequence[str],
        properties: dict[str, Any],
        start: int | None = None,
        end: int | None = None,
    ) -> Entity:
        handle = next(self._ids)
        entity = Entity(
            handle=handle,
            kind=kind,
            labels=frozenset(labels),
            properties=dict(properties),
            start=start,
            end=end,
        )
        self._entities[handle] = entity
        return entity

    # === DataSource ===

    def fetch(self, selector: Any) -> Iterator[Entity]:
        """
        Yield entities for a service.Selector.

        known:     label matches, both variables present
        candidate: label matches, independent present, dependent absent
        """
        want_dependent = selector.mode == 'known'
        for entity in self.entities(selector.label, selector.entity_kind):
            if not entity.has(selector.independent):
                continue
            if entity.has(selector.dependent) == want_dependent:
                yield entity

    def register_query(self, name: Hashable, query: QueryFunction) -> None:
        self._queries[name] = query

    def execute(self, query: Hashable) -> QueryResult:
        """
        Run a registered query.

        Raises:
            KeyError: No query registered under that name
        """
        if query not in self._queries:
            raise KeyError(f"no query registered as {query!r}")
        return self._queries[query](self)

    def table(self, label: str, columns: Sequence[str], kind: str = 'node') -> RowSet:
        """
        Tabular result of the given property columns, one row per entity.

        Entities lacking a column yield a row with that value missing.
        """
        columns = tuple(columns)

        def rows() -> Iterator[Row]:
            for entity in self.entities(label, kind):
                yield Row(
                    handle=entity.handle,
                    values={c: entity.properties.get(c) for c in columns},
                )

        return RowSet(_columns=columns, _rows=Reiterable(rows), _metadata={'source': 'graph'})

    def match(
        self,
        label: str,
        kind: str = 'node',
        where: Callable[[Entity], bool] | None = None,
    ) -> EntityResult:
        """Entity result of every entity of kind carrying label that passes where."""
        def entities() -> Iterator[Entity]:
            for entity in self.entities(label, kind):
                if where is None or where(entity):
                    yield entity

        return EntityResult(_columns=(kind,), _entities=Reiterable(entities))

    # === WriteBack ===

    def set(self, handle: Hashable, attribute: str, value: float) -> None:
        self.entity(handle).properties[attribute] = value

    # === ModelRegistry ===

    def create(
        self,
        key: Hashable,
        independent: str,
        dependent: str,
        slope: float,
        intercept: float,
        label: str | None = None,
    ) -> int:
        if key in self._models:
            raise ValidationError(f"a model is already stored under key {key!r}")
        properties = {
            'modelKey': key,
            'indVar': independent,
            'depVar': dependent,
            'slope': slope,
            'intercept': intercept,
        }
        if label is not None:
            properties['nodeLabel'] = label
        node = self.create_node(MODEL_LABEL, **properties)
        self._models[key] = node.handle
        return node.handle

    def find(self, key: Hashable) -> int | None:
        return self._models.get(key)

    def update_fields(self, handle: int, slope: float, intercept: float) -> None:
        node = self.entity(handle)
        node.properties['slope'] = slope
        node.properties['intercept'] = intercept

    def get_payload(self, handle: int) -> bytes:
        node = self.entity(handle)
        if PAYLOAD_PROPERTY not in node.properties:
            raise KeyError(f"model {handle!r} has no stored payload")
        return node.properties[PAYLOAD_PROPERTY]

    def set_payload(self, handle: int, payload: bytes) -> None:
        self.entity(handle).properties[PAYLOAD_PROPERTY] = bytes(payload)
