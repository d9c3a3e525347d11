# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-16
# Description: test_collection_manager.py
# -----------------------------------------------------------------------------
import pytest

from errors.ConnectorErrors import IndexStrategyError
from index.IndexStrategy import CompositeStrategy, FullTextStrategy, QuantizedStrategy
from store.CollectionManager import CollectionManager


class ClusterDown(Exception):
    pass


@pytest.fixture
def manager(native_client, keyspace, term_schema):
    return CollectionManager(native_client, keyspace, term_schema)


def test_ensure_collection_twice(manager, native_client, keyspace):
    assert manager.ensure_collection() is True
    assert manager.ensure_collection() is False

    assert native_client.collections == {keyspace}
    assert manager.collection_exists()


def test_ensure_index_twice_no_structural_change(manager, native_client):
    assert manager.ensure_index("idx_terms") is True
    snapshot = dict(native_client.indexes)

    assert manager.ensure_index("idx_terms") is False
    assert native_client.indexes == snapshot


@pytest.mark.parametrize("strategy", [QuantizedStrategy("IVF,SQ8"), CompositeStrategy()])
def test_ensure_index_other_strategies_idempotent(manager, native_client, strategy):
    manager.ensure_index("idx", strategy)
    manager.ensure_index("idx", strategy)
    assert list(native_client.indexes) == ["idx"]


def test_full_text_index_uses_search_service(manager, native_client):
    manager.ensure_index("fts", FullTextStrategy())
    manager.ensure_index("fts", FullTextStrategy())

    assert list(native_client.search_indexes) == ["fts"]
    assert native_client.statements == []


def test_message_based_already_exists_is_absorbed(manager, native_client):
    native_client.fail_with = RuntimeError("Index idx already exists (code 4300)")
    assert manager.ensure_index("idx") is False


def test_other_failures_propagate_unmodified(manager, native_client):
    boom = ClusterDown("authentication failure")
    native_client.fail_with = boom

    with pytest.raises(ClusterDown) as exc:
        manager.ensure_collection()
    assert exc.value is boom

    with pytest.raises(ClusterDown):
        manager.ensure_index("idx")


def test_invalid_strategy_rejected_before_native_call(manager, native_client):
    with pytest.raises(IndexStrategyError):
        manager.ensure_index("idx", CompositeStrategy(quantization="SQ8"))
    assert native_client.calls == []


def test_drop_index_and_collection(manager, native_client):
    manager.ensure_collection()
    manager.ensure_index("idx")
    manager.ensure_index("fts", FullTextStrategy())

    assert manager.drop_index("idx") is True
    assert manager.drop_index("idx") is False
    assert manager.drop_index("fts", FullTextStrategy()) is True
    assert native_client.statements[-2].startswith("DROP INDEX `idx` ON `vectors`.`demo`.`terms`")

    assert manager.drop_collection() is True
    assert manager.drop_collection() is False
    assert not manager.collection_exists()
