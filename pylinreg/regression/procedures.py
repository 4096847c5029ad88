"""
Entry points exposed to the host system.

RegressionProcedures is the only surface a host (a graph database plugin,
a CLI, a web handler) needs to register. Collaborators are passed in at
construction instead of being injected from ambient context.

Procedures:
    predict(intercept, slope, x)
    simple_regression(label, independent, dependent, new_field, entity_kind)
    custom_regression(model_query, map_query, independent, dependent, new_field, model_key)
    update_regression(remove_query, add_query, map_query, independent, dependent, new_field, model_key)

An empty query (None or blank string) means "skip that phase".
"""

from typing import Any, Hashable

from pylinreg.core.exceptions import (
    InvalidArgumentError,
    PyLinRegError,
    UpstreamQueryError,
)
from pylinreg.core.policies import ApplyPolicy, DEFAULT
from pylinreg.core.protocols import DataSource, ModelRegistry, QueryResult, WriteBack
from pylinreg.core.validation import check_choice
from pylinreg.regression.prediction import predict
from pylinreg.regression.service import ENTITY_KINDS, ModelService, Selector
from pylinreg.regression.solution import ModelSolution


class RegressionProcedures:
    """
    Host-facing regression procedures.

    Example:
        >>> graph = InMemoryGraph()
        >>> procs = RegressionProcedures(graph, graph, graph)
        >>> procs.simple_regression('Task', 'time', 'progress', 'predicted', 'node')
    """

    def __init__(
        self,
        source: DataSource,
        writer: WriteBack,
        registry: ModelRegistry,
        policy: ApplyPolicy = DEFAULT,
    ):
        self.source = source
        self.service = ModelService(source, writer, registry, policy=policy)

    @staticmethod
    def predict(intercept: float, slope: float, x: float) -> float:
        """y = slope * x + intercept"""
        return predict(intercept, slope, x)

    def simple_regression(
        self,
        label: str,
        independent: str,
        dependent: str,
        new_field: str,
        entity_kind: str,
    ) -> ModelSolution:
        """
        Build a model from all entities of entity_kind carrying label.

        Raises:
            InvalidArgumentError: entity_kind is not 'node' or 'relationship'
        """
        check_choice(entity_kind, ENTITY_KINDS, 'entity_kind')
        selector = Selector(label=label, entity_kind=entity_kind)
        return self.service.build(selector, independent, dependent, new_field)

    def custom_regression(
        self,
        model_query: Any,
        map_query: Any,
        independent: str,
        dependent: str,
        new_field: str,
        model_key: Hashable,
    ) -> ModelSolution:
        """
        Build a model from arbitrary known/candidate queries.

        model_query must return columns named independent and dependent.
        map_query returns the entities to predict for; empty means build only.

        Raises:
            InvalidArgumentError: model_query is empty
            UpstreamQueryError: A query failed to execute
            SchemaMismatchError: model_query columns don't match
        """
        if _is_empty(model_query):
            raise InvalidArgumentError(
                "custom_regression requires a model query",
                argument='model_query',
                value=model_query,
            )
        known = self._execute(model_query)
        candidates = None if _is_empty(map_query) else self._execute(map_query)
        return self.service.build_from_queries(
            known, candidates, independent, dependent, new_field, model_key,
        )

    def update_regression(
        self,
        remove_query: Any,
        add_query: Any,
        map_query: Any,
        independent: str,
        dependent: str,
        new_field: str,
        model_key: Hashable,
    ) -> ModelSolution:
        """
        Update the model stored under model_key.

        Raises:
            ModelNotFoundError: No model under model_key
            UpstreamQueryError: A query failed to execute
            InsufficientDataError: Fewer than 2 points would remain; the
                stored model is left unchanged
        """
        removals = None if _is_empty(remove_query) else self._execute(remove_query)
        additions = None if _is_empty(add_query) else self._execute(add_query)
        candidates = None if _is_empty(map_query) else self._execute(map_query)
        return self.service.update(
            model_key, removals, additions, candidates, independent, dependent, new_field,
        )

    def _execute(self, query: Any) -> QueryResult:
        try:
            return self.source.execute(query)
        except PyLinRegError:
            raise
        except Exception as e:
            raise UpstreamQueryError(f"query {query!r} failed: {e}", query=query) from e


def _is_empty(query: Any) -> bool:
    if query is None:
        return True
    return isinstance(query, str) and not query.strip()
