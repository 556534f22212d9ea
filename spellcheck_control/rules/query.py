#!/usr/bin/env python3
"""Query engine boundary.

Query rules delegate to an external engine (such as a Dataview-style plugin)
that runs a query string and returns the documents it selected. The engine is
an optional capability: when none is installed, query rules simply do not
match.

Engines may answer synchronously or return an awaitable; either way the
result is a :class:`QueryResult` (or a mapping with the same shape).
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, List, Mapping, Optional, Protocol, Union, runtime_checkable


@dataclass(frozen=True)
class QueryResult:
    """Outcome of running one query.

    Attributes:
        successful: False when the engine rejected or failed the query
        items: Result rows; each a path string, a mapping or an object with a
            ``path`` and/or a nested ``file.path``
        error: Engine-provided error message for unsuccessful queries
    """

    successful: bool
    items: List[Any] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QueryResult":
        """Coerce an engine's raw response mapping.

        Accepts ``{"successful": ..., "items": [...]}`` as well as the
        ``{"successful": ..., "value": {"values": [...]}}`` shape produced by
        Dataview list queries.
        """
        items = data.get("items")
        if items is None:
            value = data.get("value")
            if isinstance(value, Mapping):
                items = value.get("values")
            else:
                items = getattr(value, "values", None)
        return cls(
            successful=bool(data.get("successful", False)),
            items=list(items or []),
            error=data.get("error"),
        )

    def contains(self, path: str) -> bool:
        """Return True if any result item refers to ``path``."""
        return any(path in item_paths(item) for item in self.items)


QueryResponse = Union[QueryResult, Mapping[str, Any]]


@runtime_checkable
class QueryEngine(Protocol):
    """Capability to run a query string against the vault."""

    def query(self, query: str) -> Union[QueryResponse, Awaitable[QueryResponse]]:
        ...


def _get(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def item_paths(item: Any) -> List[str]:
    """Paths a result item refers to: its own path and its file's path."""
    if isinstance(item, str):
        return [item]

    paths = []
    path = _get(item, "path")
    if isinstance(path, str):
        paths.append(path)
    file_ref = _get(item, "file")
    if file_ref is not None:
        file_path = _get(file_ref, "path")
        if isinstance(file_path, str):
            paths.append(file_path)
    return paths


async def run_query(engine: QueryEngine, query: str) -> QueryResult:
    """Run ``query`` on ``engine``, awaiting the answer if needed.

    Exceptions raised by the engine propagate to the caller.
    """
    response = engine.query(query)
    if inspect.isawaitable(response):
        response = await response
    if isinstance(response, QueryResult):
        return response
    if isinstance(response, Mapping):
        return QueryResult.from_dict(response)
    raise TypeError(f"Unsupported query response type: {type(response).__name__}")
