# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-14
# Description: conftest.py
# -----------------------------------------------------------------------------

import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# add project root to sys.path
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from errors.ConnectorErrors import AlreadyExistsError  # noqa: E402
from query.Keyspace import Keyspace  # noqa: E402
from schema.RecordDefinition import DataField, KeyField, RecordDefinition, VectorField  # noqa: E402
from schema.SchemaReader import SchemaReader  # noqa: E402


@dataclass
class Term:
    id: str
    category: str
    term: str
    embedding: Optional[List[float]] = None


def term_definition(distance_function: str = "cosine", dimensions: int = 3) -> RecordDefinition:
    return RecordDefinition(
        name="terms",
        record_type=Term,
        fields=[
            KeyField("id"),
            DataField("category", str, filterable=True),
            DataField("term", str, full_text_searchable=True),
            VectorField("embedding", dimensions=dimensions, distance_function=distance_function),
        ],
    )


class FakeNativeClient:
    """In-memory NativeClient: records every call, answers SELECTs with `rows`.

    `queued_rows` answers successive SELECTs in order before falling back to `rows`.
    """

    _INDEX_NAME = re.compile(r"INDEX `([^`]+)`")

    def __init__(self) -> None:
        self.collections: set = set()
        self.indexes: Dict[str, str] = {}
        self.search_indexes: Dict[str, Dict[str, Any]] = {}
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.statements: List[str] = []
        self.calls: List[str] = []
        self.rows: List[Dict[str, Any]] = []
        self.queued_rows: List[List[Dict[str, Any]]] = []
        self.reject_ids: set = set()
        self.fail_with: Optional[Exception] = None

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def query(self, statement, parameters=None, timeout=None):
        self.calls.append("query")
        self.statements.append(statement)
        self.last_parameters = dict(parameters or {})
        self._maybe_fail()
        if statement.startswith("CREATE"):
            name = self._INDEX_NAME.search(statement).group(1)
            if name in self.indexes:
                raise RuntimeError(f"Index {name} already exists")
            self.indexes[name] = statement
            return []
        if statement.startswith("DROP INDEX"):
            name = self._INDEX_NAME.search(statement).group(1)
            if name not in self.indexes:
                raise RuntimeError(f"Index {name} not found")
            del self.indexes[name]
            return []
        if statement.startswith("SELECT") and self.queued_rows:
            return self.queued_rows.pop(0)
        return list(self.rows)

    def collection_exists(self, keyspace: Keyspace) -> bool:
        self.calls.append("collection_exists")
        return keyspace in self.collections

    def create_collection(self, keyspace: Keyspace, timeout=None) -> None:
        self.calls.append("create_collection")
        self._maybe_fail()
        if keyspace in self.collections:
            raise AlreadyExistsError(f"Collection {keyspace} already exists")
        self.collections.add(keyspace)

    def drop_collection(self, keyspace: Keyspace, timeout=None) -> None:
        self.calls.append("drop_collection")
        if keyspace not in self.collections:
            raise RuntimeError(f"Collection {keyspace} not found")
        self.collections.remove(keyspace)

    def upsert_search_index(self, keyspace: Keyspace, definition: Dict[str, Any]) -> None:
        self.calls.append("upsert_search_index")
        self._maybe_fail()
        self.search_indexes[definition["name"]] = definition

    def drop_search_index(self, keyspace: Keyspace, name: str) -> None:
        self.calls.append("drop_search_index")
        if name not in self.search_indexes:
            raise RuntimeError(f"Search index {name} not found")
        del self.search_indexes[name]

    def upsert_documents(self, keyspace, documents, timeout=None):
        self.calls.append("upsert_documents")
        self._maybe_fail()
        failures = {}
        for doc_id, body in documents.items():
            if doc_id in self.reject_ids:
                failures[doc_id] = RuntimeError(f"write of {doc_id} rejected")
                continue
            self.documents[doc_id] = dict(body)
        return failures

    def get_document(self, keyspace, doc_id, timeout=None):
        self.calls.append("get_document")
        body = self.documents.get(doc_id)
        return dict(body) if body is not None else None

    def remove_document(self, keyspace, doc_id, timeout=None) -> bool:
        self.calls.append("remove_document")
        return self.documents.pop(doc_id, None) is not None


class FakeEmbedder:
    """Deterministic embedder: vector derived from the text length."""

    def __init__(self, dimensions: int = 3, fail_on: Optional[str] = None) -> None:
        self.dimensions = dimensions
        self.fail_on = fail_on
        self.batches: List[List[str]] = []

    def embed(self, text: str) -> List[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts):
        texts = list(texts)
        self.batches.append(texts)
        if self.fail_on is not None and self.fail_on in texts:
            raise RuntimeError(f"embedding service rejected {self.fail_on!r}")
        return [[float(len(t))] + [0.5] * (self.dimensions - 1) for t in texts]


@pytest.fixture
def term_schema():
    return SchemaReader().read(term_definition())


@pytest.fixture
def keyspace() -> Keyspace:
    return Keyspace("vectors", "demo", "terms")


@pytest.fixture
def native_client() -> FakeNativeClient:
    return FakeNativeClient()


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()
