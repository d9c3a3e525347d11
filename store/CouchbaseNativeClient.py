# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-08
# Description: CouchbaseNativeClient
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional

from couchbase.auth import PasswordAuthenticator
from couchbase.cluster import Cluster
from couchbase.exceptions import (
    CollectionAlreadyExistsException,
    CouchbaseException,
    DocumentNotFoundException,
)
from couchbase.management.options import CreateCollectionOptions, DropCollectionOptions
from couchbase.management.search import SearchIndex
from couchbase.options import ClusterOptions, GetOptions, QueryOptions, RemoveOptions, UpsertOptions

from config.Config import Config
from errors.ConnectorErrors import AlreadyExistsError
from query.Keyspace import Keyspace
from store.NativeClient import NativeClient
from utility.logging_utils import get_class_logger


def _with_timeout(options_cls, timeout: Optional[timedelta], **kwargs):
    if timeout is not None:
        kwargs["timeout"] = timeout
    return options_cls(**kwargs)


@dataclass
class CouchbaseNativeClient(NativeClient):
    """NativeClient on the Couchbase Python SDK (4.x)."""
    cfg: Config
    connect_timeout: timedelta = timedelta(seconds=10)
    logger: Any = None

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)

        self.logger.info(
            "Connecting to Couchbase cluster %s as '%s'",
            self.cfg.couchbase_connection_string,
            self.cfg.couchbase_username,
        )
        self.cluster = Cluster(
            self.cfg.couchbase_connection_string,
            ClusterOptions(PasswordAuthenticator(self.cfg.couchbase_username, self.cfg.couchbase_password)),
        )
        self.cluster.wait_until_ready(self.connect_timeout)
        self.logger.info("Couchbase cluster ready (keyspace=%s)", self.cfg.keyspace)

    def test_connection(self) -> bool:
        """Cheap health check: does the cluster answer a ping?"""
        try:
            self.cluster.ping()
            return True
        except CouchbaseException as e:
            self.logger.error("Couchbase ping failed: %s", e)
            return False

    def _collection(self, keyspace: Keyspace):
        return self.cluster.bucket(keyspace.bucket).scope(keyspace.scope).collection(keyspace.collection)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    def query(
            self,
            statement: str,
            parameters: Mapping[str, Any] | None = None,
            timeout: Optional[timedelta] = None,
    ) -> List[Dict[str, Any]]:
        self.logger.debug("SQL++: %s (params=%s)", statement, sorted((parameters or {}).keys()))
        opts = _with_timeout(QueryOptions, timeout, named_parameters=dict(parameters or {}))
        result = self.cluster.query(statement, opts)
        rows = list(result.rows())
        self.logger.debug("SQL++ returned %d rows", len(rows))
        return rows

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------
    def collection_exists(self, keyspace: Keyspace) -> bool:
        manager = self.cluster.bucket(keyspace.bucket).collections()
        for scope in manager.get_all_scopes():
            if scope.name != keyspace.scope:
                continue
            return any(c.name == keyspace.collection for c in scope.collections)
        return False

    def create_collection(self, keyspace: Keyspace, timeout: Optional[timedelta] = None) -> None:
        manager = self.cluster.bucket(keyspace.bucket).collections()
        try:
            manager.create_collection(
                keyspace.scope,
                keyspace.collection,
                None,
                _with_timeout(CreateCollectionOptions, timeout),
            )
        except CollectionAlreadyExistsException as e:
            raise AlreadyExistsError(f"Collection {keyspace} already exists") from e

    def drop_collection(self, keyspace: Keyspace, timeout: Optional[timedelta] = None) -> None:
        manager = self.cluster.bucket(keyspace.bucket).collections()
        manager.drop_collection(keyspace.scope, keyspace.collection, _with_timeout(DropCollectionOptions, timeout))

    # -------------------------------------------------------------------------
    # Search (full-text) indexes
    # -------------------------------------------------------------------------
    def upsert_search_index(self, keyspace: Keyspace, definition: Dict[str, Any]) -> None:
        scope = self.cluster.bucket(keyspace.bucket).scope(keyspace.scope)
        scope.search_indexes().upsert_index(SearchIndex.from_json(definition))

    def drop_search_index(self, keyspace: Keyspace, name: str) -> None:
        scope = self.cluster.bucket(keyspace.bucket).scope(keyspace.scope)
        scope.search_indexes().drop_index(name)

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------
    def upsert_documents(
            self,
            keyspace: Keyspace,
            documents: Mapping[str, Dict[str, Any]],
            timeout: Optional[timedelta] = None,
    ) -> Dict[str, Exception]:
        collection = self._collection(keyspace)
        failures: Dict[str, Exception] = {}
        for doc_id, body in documents.items():
            try:
                collection.upsert(doc_id, body, _with_timeout(UpsertOptions, timeout))
            except CouchbaseException as e:
                self.logger.warning("Upsert of '%s' into %s failed: %s", doc_id, keyspace, e)
                failures[doc_id] = e
        return failures

    def get_document(
            self,
            keyspace: Keyspace,
            doc_id: str,
            timeout: Optional[timedelta] = None,
    ) -> Optional[Dict[str, Any]]:
        try:
            result = self._collection(keyspace).get(doc_id, _with_timeout(GetOptions, timeout))
        except DocumentNotFoundException:
            return None
        return result.content_as[dict]

    def remove_document(
            self,
            keyspace: Keyspace,
            doc_id: str,
            timeout: Optional[timedelta] = None,
    ) -> bool:
        try:
            self._collection(keyspace).remove(doc_id, _with_timeout(RemoveOptions, timeout))
        except DocumentNotFoundException:
            return False
        return True
