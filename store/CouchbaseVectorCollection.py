# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-09
# Description: CouchbaseVectorCollection
# -----------------------------------------------------------------------------
from __future__ import annotations

import dataclasses
import logging
import math
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import settings
from errors.ConnectorErrors import DimensionMismatchError, SchemaError
from filtering.FilterCompiler import FilterCompiler
from filtering.FilterPredicate import FilterPredicate
from index.IndexStrategy import FullTextStrategy, IndexStrategy
from index.IndexStrategyRegistry import IndexStrategyRegistry, default_index_name
from query.CompiledQuery import KEY_COLUMN
from query.Keyspace import Keyspace
from query.QueryRequest import HybridWeights, QueryRequest
from query.VectorQueryCompiler import VectorQueryCompiler
from results.ResultDecoder import ResultDecoder
from results.SearchResult import SearchResult
from schema.SchemaDescriptor import SchemaDescriptor
from store.CollectionManager import CollectionManager
from store.NativeClient import NativeClient
from utility.logging_utils import get_class_logger


def record_fields(record: Any) -> Dict[str, Any]:
    """Property-name -> value view of a dict, a dataclass instance or a plain object."""
    if isinstance(record, Mapping):
        return dict(record)
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return {f.name: getattr(record, f.name) for f in dataclasses.fields(record)}
    if hasattr(record, "__dict__"):
        return dict(vars(record))
    raise SchemaError(f"Cannot read fields from record of type {type(record).__name__}")


class CouchbaseVectorCollection:
    """
    One record type stored in one Couchbase collection.

    Wires SchemaDescriptor, IndexStrategyRegistry, FilterCompiler,
    VectorQueryCompiler and ResultDecoder to a NativeClient. Every
    compile-time check runs before the client is called.
    """

    def __init__(
        self,
        client: NativeClient,
        keyspace: Keyspace,
        schema: SchemaDescriptor,
        *,
        strategy: Optional[IndexStrategy] = None,
        index_name: Optional[str] = None,
        search_index: Optional[str] = None,
        search_strategy: Optional[FullTextStrategy] = None,
        registry: Optional[IndexStrategyRegistry] = None,
        assumed_quantization: Optional[str] = None,
        include_vectors: bool = False,
        timeout: Optional[timedelta] = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.client = client
        self.keyspace = keyspace
        self.schema = schema
        self.registry = registry or IndexStrategyRegistry()
        self.strategy = strategy or self.registry.default_strategy()
        self.index_name = index_name or settings.VECTOR_INDEX_NAME or default_index_name(schema)
        self.search_index = search_index or settings.SEARCH_INDEX_NAME or None
        self.search_strategy = search_strategy or FullTextStrategy()
        self.logger = logger or get_class_logger(self.__class__)

        if timeout is None and settings.NATIVE_TIMEOUT_SECONDS > 0:
            timeout = timedelta(seconds=settings.NATIVE_TIMEOUT_SECONDS)
        self.timeout = timeout

        self.filter_compiler = FilterCompiler()
        self.compiler = VectorQueryCompiler(
            keyspace,
            self.registry,
            index_name=self.index_name,
            search_index_name=self.search_index,
            assumed_quantization=assumed_quantization,
            filter_compiler=self.filter_compiler,
        )
        self.decoder = ResultDecoder(include_vectors=include_vectors)
        self.manager = CollectionManager(client, keyspace, schema, self.registry)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------
    def ensure(self) -> None:
        """Collection, the vector index and the search index if one is configured; safe on every startup."""
        self.manager.ensure_collection(timeout=self.timeout)
        self.manager.ensure_index(self.index_name, self.strategy, timeout=self.timeout)
        if self.search_index:
            self.manager.ensure_index(self.search_index, self.search_strategy, timeout=self.timeout)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------
    def to_document(self, record: Any) -> Tuple[str, Dict[str, Any]]:
        """(document id, JSON body) for a record, keyed by storage names."""
        fields = record_fields(record)
        doc_id = self.schema.document_id(fields)

        body: Dict[str, Any] = {}
        if self.schema.has_composite_key:
            for k in self.schema.keys:
                body[k.storage_name] = str(fields[k.name])

        for p in self.schema.data_properties:
            value = fields.get(p.name)
            if isinstance(value, (datetime, date)):
                value = value.isoformat()
            body[p.storage_name] = value

        for v in self.schema.vector_properties:
            vec = fields.get(v.name)
            if vec is None:
                raise SchemaError(f"Record '{doc_id}' has no value for vector property '{v.name}'")
            if hasattr(vec, "tolist"):
                vec = vec.tolist()
            if isinstance(vec, (str, bytes)) or not isinstance(vec, Iterable):
                raise SchemaError(f"Record '{doc_id}' property '{v.name}' is not a vector: {type(vec).__name__}")
            vec = list(vec)
            if len(vec) != v.dimensions:
                raise DimensionMismatchError(v.name, v.dimensions, len(vec))
            if any(isinstance(x, bool) or not isinstance(x, (int, float)) or not math.isfinite(x) for x in vec):
                raise SchemaError(f"Record '{doc_id}' has non-numeric or non-finite values in '{v.name}'")
            vec = [float(x) for x in vec]
            body[v.storage_name] = vec

        return doc_id, body

    def upsert(self, records: Iterable[Any]) -> Tuple[List[str], Dict[str, Exception]]:
        """
        Write records in one batch.
        Returns (ids written, {id: error} for the ones the cluster rejected).
        """
        documents: Dict[str, Dict[str, Any]] = {}
        for record in records:
            doc_id, body = self.to_document(record)
            documents[doc_id] = body
        return self.write_documents(documents)

    def write_documents(self, documents: Mapping[str, Dict[str, Any]]) -> Tuple[List[str], Dict[str, Exception]]:
        """Write already-serialised documents (see to_document) in one round of upserts."""
        if not documents:
            return [], {}

        failures = self.client.upsert_documents(self.keyspace, documents, timeout=self.timeout)
        written = [doc_id for doc_id in documents if doc_id not in failures]
        self.logger.info(
            "Upserted %d/%d records into %s (%d failed)",
            len(written),
            len(documents),
            self.keyspace,
            len(failures),
        )
        return written, failures

    def delete(self, key: Any) -> bool:
        doc_id = self._doc_id(key)
        removed = self.client.remove_document(self.keyspace, doc_id, timeout=self.timeout)
        self.logger.info("Delete '%s' from %s: %s", doc_id, self.keyspace, "removed" if removed else "not found")
        return removed

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------
    def get(self, key: Any, *, include_vectors: Optional[bool] = None) -> Optional[Any]:
        doc_id = self._doc_id(key)
        body = self.client.get_document(self.keyspace, doc_id, timeout=self.timeout)
        if body is None:
            return None
        row = dict(body)
        row[KEY_COLUMN] = doc_id
        return self.decoder.decode_records([row], self.schema, include_vectors=include_vectors)[0]

    def get_where(
        self,
        predicate: Optional[FilterPredicate] = None,
        *,
        top: int = settings.SEARCH_DEFAULTS["top_k"],
        skip: int = 0,
        include_vectors: Optional[bool] = None,
    ) -> List[Any]:
        fragment = self.filter_compiler.compile(predicate, self.schema) if predicate is not None else None
        compiled = self.compiler.compile_filtered_get(self.schema, fragment, top, skip)
        rows = self.client.query(compiled.statement, compiled.parameters, timeout=self.timeout)
        return self.decoder.decode_records(rows, self.schema, include_vectors=include_vectors)

    def search(
        self,
        request: QueryRequest,
        *,
        include_vectors: Optional[bool] = None,
    ) -> List[SearchResult]:
        """Hybrid requests go through the search index when one is configured."""
        if request.is_hybrid and self.search_index:
            return self._search_index_hybrid(request, include_vectors)

        compiled = self.compiler.compile(request, self.schema, self.strategy)
        rows = self.client.query(compiled.statement, compiled.parameters, timeout=self.timeout)
        results = self.decoder.decode(rows, self.schema, compiled, include_vectors=include_vectors)
        self.logger.info(
            "%s search on %s returned %d results (top_k=%d, skip=%d)",
            compiled.mode.value,
            self.keyspace,
            len(results),
            request.top_k,
            request.skip,
        )
        return results

    def vector_search(
        self,
        vector: Sequence[float],
        *,
        top_k: int = settings.SEARCH_DEFAULTS["top_k"],
        skip: int = settings.SEARCH_DEFAULTS["skip"],
        where: Optional[FilterPredicate] = None,
        vector_property: Optional[str] = None,
    ) -> List[SearchResult]:
        return self.search(QueryRequest(
            vector=vector, top_k=top_k, skip=skip, filter=where, vector_property=vector_property,
        ))

    def hybrid_search(
        self,
        vector: Sequence[float],
        keywords: str,
        *,
        top_k: int = settings.SEARCH_DEFAULTS["top_k"],
        skip: int = settings.SEARCH_DEFAULTS["skip"],
        where: Optional[FilterPredicate] = None,
        weights: Optional[HybridWeights] = None,
        vector_property: Optional[str] = None,
    ) -> List[SearchResult]:
        return self.search(QueryRequest(
            vector=vector,
            top_k=top_k,
            skip=skip,
            filter=where,
            keywords=keywords,
            weights=weights or HybridWeights(),
            vector_property=vector_property,
        ))

    def _search_index_hybrid(self, request: QueryRequest, include_vectors: Optional[bool]) -> List[SearchResult]:
        compiled = self.compiler.compile_search_hybrid(request, self.schema, self.search_strategy)
        keyword_rows = self.client.query(
            compiled.keyword.statement, compiled.keyword.parameters, timeout=self.timeout
        )
        vector_rows = self.client.query(
            compiled.vector.statement, compiled.vector.parameters, timeout=self.timeout
        )
        results = self.decoder.decode_search(
            keyword_rows, vector_rows, self.schema, compiled, include_vectors=include_vectors
        )
        self.logger.info(
            "search_hybrid on %s via '%s' returned %d results (top_k=%d, skip=%d)",
            self.keyspace,
            compiled.index_name,
            len(results),
            request.top_k,
            request.skip,
        )
        return results

    def _doc_id(self, key: Any) -> str:
        if isinstance(key, Mapping):
            return self.schema.document_id(key)
        if self.schema.has_composite_key:
            raise SchemaError(f"'{self.schema.name}' has a multi-part key; pass a mapping of key values")
        if key is None or key == "":
            raise SchemaError("Key must not be empty")
        return str(key)
