# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-18
# Description: test_couchbase_integration.py
# -----------------------------------------------------------------------------

import os
import time
import uuid

import pytest

from config.Config import Config
from filtering.FilterPredicate import where
from index.IndexStrategy import GraphStrategy
from records.Glossary import Glossary, glossary_definition
from schema.SchemaReader import SchemaReader


def _build_cfg_or_skip() -> Config:
    """Build strict Config and skip cleanly if any variable is missing."""
    missing = [v for v in Config.COUCHBASE_ENV_VARS if not os.getenv(v)]
    if missing:
        pytest.skip(f"Missing Couchbase config for integration test: {missing}")
    try:
        return Config.from_env()
    except ValueError as e:
        pytest.skip(f"Config could not be initialised: {e}")


@pytest.fixture(scope="module")
def collection():
    cfg = _build_cfg_or_skip()

    # imported here so unit runs do not need the SDK's native extension loaded
    from store.CouchbaseNativeClient import CouchbaseNativeClient
    from store.CouchbaseVectorCollection import CouchbaseVectorCollection

    client = CouchbaseNativeClient(cfg=cfg)
    schema = SchemaReader().read(glossary_definition(dimensions=4, distance_function="cosine"))
    coll = CouchbaseVectorCollection(
        client,
        cfg.keyspace,
        schema,
        strategy=GraphStrategy(),
        index_name=f"it_{uuid.uuid4().hex[:8]}",
        include_vectors=True,
    )
    coll.ensure()
    yield coll
    coll.manager.drop_index(coll.index_name)


@pytest.mark.integration
def test_ensure_is_idempotent(collection):
    collection.ensure()
    assert collection.manager.collection_exists()


@pytest.mark.integration
def test_upsert_get_search_delete(collection):
    key = f"it-{uuid.uuid4().hex}"
    entry = Glossary(
        key=key,
        category="AI",
        term="Embedding",
        definition="A dense vector representation of text",
        definition_embedding=[0.5, 0.5, 0.5, 0.5],
    )
    written, failed = collection.upsert([entry])
    assert written == [key]
    assert failed == {}

    fetched = collection.get(key)
    assert fetched.term == "Embedding"
    assert fetched.definition_embedding == pytest.approx([0.5, 0.5, 0.5, 0.5])

    # query service needs a moment to see the mutation
    time.sleep(2)
    results = collection.get_where(where("category") == "AI", top=50)
    assert key in [r.key for r in results]

    assert collection.delete(key) is True
    assert collection.get(key) is None


@pytest.mark.integration
def test_vector_and_hybrid_search(collection):
    key = f"it-{uuid.uuid4().hex}"
    entry = Glossary(
        key=key,
        category="IT",
        term="Couchbase",
        definition="A distributed document database",
        definition_embedding=[1.0, 0.0, 0.0, 0.0],
    )
    collection.upsert([entry])
    time.sleep(2)

    try:
        hits = collection.vector_search([1.0, 0.0, 0.0, 0.0], top_k=5, where=where("category") == "IT")
        assert hits
        assert all(h.record.category == "IT" for h in hits)
        scores = [h.score for h in hits]
        assert scores == sorted(scores, reverse=True)

        hybrid = collection.hybrid_search([1.0, 0.0, 0.0, 0.0], "couchbase", top_k=5)
        match = [h for h in hybrid if h.record.key == key]
        assert match
        assert match[0].keyword_score == pytest.approx(1.0)
    finally:
        collection.delete(key)
