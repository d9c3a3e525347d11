# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-08
# Description: CollectionManager
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from errors.ConnectorErrors import is_already_exists, is_not_found
from index.IndexStrategy import FullTextStrategy, IndexStrategy
from index.IndexStrategyRegistry import IndexDefinition, IndexStrategyRegistry
from query.Keyspace import Keyspace, quote_identifier
from schema.SchemaDescriptor import SchemaDescriptor
from store.NativeClient import NativeClient
from utility.logging_utils import get_class_logger


class CollectionManager:
    """
    Idempotent collection and index lifecycle for one keyspace.

    ensure_collection() / ensure_index() are safe to call on every startup:
    an "already exists" answer from the cluster counts as success. Any other
    failure is re-raised exactly as the client raised it.
    """

    def __init__(
        self,
        client: NativeClient,
        keyspace: Keyspace,
        schema: SchemaDescriptor,
        registry: Optional[IndexStrategyRegistry] = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.client = client
        self.keyspace = keyspace
        self.schema = schema
        self.registry = registry or IndexStrategyRegistry()
        self.logger = logger or get_class_logger(self.__class__)

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------
    def collection_exists(self) -> bool:
        return self.client.collection_exists(self.keyspace)

    def ensure_collection(self, timeout: Optional[timedelta] = None) -> bool:
        """Create the collection if needed. Returns True if it was created by this call."""
        self.logger.info("Ensuring collection %s for '%s'", self.keyspace, self.schema.name)
        try:
            self.client.create_collection(self.keyspace, timeout=timeout)
        except Exception as e:
            if is_already_exists(e):
                self.logger.info("Collection %s already exists", self.keyspace)
                return False
            self.logger.error("Creating collection %s failed: %s", self.keyspace, e, exc_info=True)
            raise
        self.logger.info("Created collection %s", self.keyspace)
        return True

    def drop_collection(self, timeout: Optional[timedelta] = None) -> bool:
        """Drop the collection. Returns False if it did not exist."""
        try:
            self.client.drop_collection(self.keyspace, timeout=timeout)
        except Exception as e:
            if is_not_found(e):
                self.logger.info("Collection %s does not exist; nothing to drop", self.keyspace)
                return False
            self.logger.error("Dropping collection %s failed: %s", self.keyspace, e, exc_info=True)
            raise
        self.logger.info("Dropped collection %s", self.keyspace)
        return True

    # -------------------------------------------------------------------------
    # Indexes
    # -------------------------------------------------------------------------
    def ensure_index(
        self,
        name: str,
        strategy: Optional[IndexStrategy] = None,
        *,
        vector_property: Optional[str] = None,
        timeout: Optional[timedelta] = None,
    ) -> bool:
        """
        Create index `name` with `strategy` (default: registry default).
        The strategy is validated against the schema before anything is sent.
        Returns True if the index was created by this call.
        """
        strategy = strategy or self.registry.default_strategy()
        definition = self.registry.render_index(name, self.keyspace, self.schema, strategy, vector_property)

        self.logger.info("Ensuring %s index '%s' on %s", strategy.kind.value, name, self.keyspace)
        try:
            self._create(definition, timeout)
        except Exception as e:
            if is_already_exists(e):
                self.logger.info("Index '%s' already exists on %s", name, self.keyspace)
                return False
            self.logger.error("Creating index '%s' on %s failed: %s", name, self.keyspace, e, exc_info=True)
            raise
        self.logger.info("Created index '%s' on %s", name, self.keyspace)
        return True

    def drop_index(
        self,
        name: str,
        strategy: Optional[IndexStrategy] = None,
        *,
        timeout: Optional[timedelta] = None,
    ) -> bool:
        """Drop index `name`. Returns False if it did not exist."""
        try:
            if isinstance(strategy, FullTextStrategy):
                self.client.drop_search_index(self.keyspace, name)
            else:
                self.client.query(f"DROP INDEX {quote_identifier(name)} ON {self.keyspace.render()}", timeout=timeout)
        except Exception as e:
            if is_not_found(e):
                self.logger.info("Index '%s' does not exist on %s; nothing to drop", name, self.keyspace)
                return False
            self.logger.error("Dropping index '%s' on %s failed: %s", name, self.keyspace, e, exc_info=True)
            raise
        self.logger.info("Dropped index '%s' on %s", name, self.keyspace)
        return True

    def _create(self, definition: IndexDefinition, timeout: Optional[timedelta]) -> None:
        if definition.search_definition is not None:
            self.client.upsert_search_index(self.keyspace, definition.search_definition)
        else:
            self.client.query(definition.statement, timeout=timeout)
