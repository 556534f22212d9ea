"""Shared pytest fixtures for Spellcheck Control tests."""
import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import yaml

from spellcheck_control.core.logging import Logger, set_global_logger
from spellcheck_control.integration.document import Document, InMemoryMetadata
from spellcheck_control.rules.engine import RuleEngine
from spellcheck_control.rules.query import QueryResult


class ListHandler(logging.Handler):
    """Logging handler that keeps records in memory."""

    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def messages(self, level: Optional[int] = None) -> List[str]:
        return [r.getMessage() for r in self.records if level is None or r.levelno == level]


class FakeQueryEngine:
    """Query engine answering from a fixed query -> paths table."""

    def __init__(self, results: Optional[Dict[str, List[Any]]] = None, delay: float = 0.0):
        self.results = results or {}
        self.delay = delay
        self.calls: List[str] = []

    async def query(self, query: str) -> QueryResult:
        self.calls.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if query not in self.results:
            return QueryResult(successful=False, error=f"Unknown query: {query}")
        return QueryResult(successful=True, items=list(self.results[query]))


class FakeWorkspace:
    """Host workspace recording applied decisions."""

    def __init__(self, document: Optional[Document] = None):
        self.document = document
        self.applied: List[tuple] = []

    def active_document(self) -> Optional[Document]:
        return self.document

    def apply_spellcheck(self, document: Document, enabled: bool) -> None:
        self.applied.append((document.path, enabled))


@pytest.fixture
def log_handler() -> ListHandler:
    return ListHandler()


@pytest.fixture
def logger(log_handler: ListHandler) -> Logger:
    """Debug-level logger writing only to ``log_handler``."""
    return Logger(name="spellcheck_control.tests", level="DEBUG", handlers=[log_handler])


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset global logger and config between tests."""
    from spellcheck_control.core.config import set_global_config

    yield
    set_global_logger(None)
    set_global_config(None)


@pytest.fixture
def metadata() -> InMemoryMetadata:
    return InMemoryMetadata()


@pytest.fixture
def engine(metadata: InMemoryMetadata, logger: Logger) -> RuleEngine:
    return RuleEngine(metadata, logger=logger)


@pytest.fixture
def query_engine() -> FakeQueryEngine:
    return FakeQueryEngine()


@pytest.fixture
def doc() -> Document:
    """A document two folders deep."""
    return Document.from_path("Notes/Sub/doc.md")


@pytest.fixture
def sample_settings() -> Dict[str, Any]:
    """A settings document covering every evaluated rule kind."""
    return {
        "rules": [
            {
                "type": "folder",
                "name": "Code",
                "path": "Code",
                "recursive": True,
                "enable_spellcheck": False,
            },
            {
                "type": "tag",
                "name": "Prose",
                "tag": "prose",
                "include_subtags": True,
                "enable_spellcheck": True,
            },
            {
                "type": "property",
                "name": "Drafts",
                "property_name": "status",
                "property_value": "draft",
                "enable_spellcheck": False,
            },
            {
                "type": "dataview",
                "name": "Reading list",
                "enabled": False,
                "query": 'LIST FROM "Reading"',
                "enable_spellcheck": False,
            },
        ]
    }


@pytest.fixture
def settings_file(tmp_path: Path, sample_settings: Dict[str, Any]) -> Path:
    """Settings file written from ``sample_settings``."""
    path = tmp_path / "settings.yaml"
    with open(path, "w") as f:
        yaml.safe_dump(sample_settings, f, sort_keys=False)
    return path


@pytest.fixture
def make_query_engine():
    """Factory for query engines with given results and latency."""
    return FakeQueryEngine


@pytest.fixture
def make_workspace():
    """Factory for fake host workspaces."""
    return FakeWorkspace
