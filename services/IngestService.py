# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-11
# Description: IngestService.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import settings
from embedding.Embedder import Embedder
from errors.ConnectorErrors import ConnectorError
from store.CouchbaseVectorCollection import CouchbaseVectorCollection, record_fields
from utility.logging_utils import get_class_logger


@dataclass
class BatchResult:
    """Per-record outcome of a batch upsert."""
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def errors_as_text(self) -> Dict[str, str]:
        return {k: f"{type(e).__name__}: {e}" for k, e in self.failed.items()}


class IngestService:
    """
    Pipelined batch upsert:
      - records without a vector get one from the embedder, computed
        on a bounded thread pool (one embed_batch call per chunk)
      - documents are then written in batches of `batch_size`
      - every record ends up in exactly one of succeeded / failed
    """

    def __init__(
        self,
        *,
        collection: CouchbaseVectorCollection,
        embedder: Optional[Embedder] = None,
        text_property: Optional[str] = None,
        vector_property: Optional[str] = None,
        max_workers: int = settings.INGEST_MAX_WORKERS,
        batch_size: int = settings.INGEST_BATCH_SIZE,
        logger: logging.Logger | None = None,
    ) -> None:
        self.collection = collection
        self.embedder = embedder
        self.max_workers = max_workers
        self.batch_size = batch_size
        self.logger = logger or get_class_logger(self.__class__)

        schema = collection.schema
        vector = schema.vector_property(vector_property)
        if vector is None:
            raise ConnectorError(f"Schema '{schema.name}' has no vector property {vector_property or ''}".strip())
        self.vector_property = vector.name

        if text_property is None and schema.full_text_properties:
            text_property = schema.full_text_properties[0].name
        self.text_property = text_property

    # -------------------------------------------------------------------------
    def upsert_records(self, records: Iterable[Any]) -> BatchResult:
        result = BatchResult()
        pending: List[Tuple[str, Dict[str, Any]]] = []

        seen: Dict[str, int] = {}
        for i, record in enumerate(records):
            try:
                fields = record_fields(record)
                doc_id = self.collection.schema.document_id(fields)
            except ConnectorError as e:
                result.failed[f"#{i}"] = e
                continue
            # first occurrence wins; later ones are reported by position
            if doc_id in seen:
                result.failed[f"#{i}"] = ConnectorError(
                    f"Record #{i} repeats id '{doc_id}' of record #{seen[doc_id]} in the same ingest"
                )
                continue
            seen[doc_id] = i
            pending.append((doc_id, fields))

        self.logger.info(
            "Ingesting %d records into %s (workers=%d, batch=%d)",
            len(pending),
            self.collection.keyspace,
            self.max_workers,
            self.batch_size,
        )

        embedded = self._embed_missing(pending, result)
        self._write(embedded, result)

        self.logger.info(
            "Ingest complete: %d succeeded, %d failed",
            len(result.succeeded),
            len(result.failed),
        )
        return result

    def _embed_missing(
        self,
        pending: List[Tuple[str, Dict[str, Any]]],
        result: BatchResult,
    ) -> List[Tuple[str, Dict[str, Any]]]:
        ready: List[Tuple[str, Dict[str, Any]]] = []
        to_embed: List[Tuple[str, Dict[str, Any], str]] = []

        for doc_id, fields in pending:
            if fields.get(self.vector_property) is not None:
                ready.append((doc_id, fields))
                continue
            text = fields.get(self.text_property) if self.text_property else None
            if self.embedder is None or not isinstance(text, str) or not text.strip():
                result.failed[doc_id] = ConnectorError(
                    f"Record '{doc_id}' has no '{self.vector_property}' and no text to embed"
                )
                continue
            to_embed.append((doc_id, fields, text))

        if not to_embed:
            return ready

        chunks = [to_embed[i:i + self.batch_size] for i in range(0, len(to_embed), self.batch_size)]
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            self.logger.debug("Embedding %d texts in %d chunks", len(to_embed), len(chunks))
            futures: List[Tuple[List[Tuple[str, Dict[str, Any], str]], Future]] = [
                (chunk, executor.submit(self.embedder.embed_batch, [t for _, _, t in chunk]))
                for chunk in chunks
            ]
            for chunk, future in futures:
                try:
                    vectors = list(future.result())
                except Exception as e:
                    self.logger.error("Embedding chunk of %d texts failed: %s", len(chunk), e, exc_info=True)
                    for doc_id, _, _ in chunk:
                        result.failed[doc_id] = e
                    continue
                if len(vectors) != len(chunk):
                    error = ConnectorError(
                        f"Embedder returned {len(vectors)} vectors for {len(chunk)} texts"
                    )
                    self.logger.error("Embedding chunk rejected: %s", error)
                    for doc_id, _, _ in chunk:
                        result.failed[doc_id] = error
                    continue
                for (doc_id, fields, _), vec in zip(chunk, vectors):
                    ready.append((doc_id, {**fields, self.vector_property: vec}))

        return ready

    def _write(self, ready: List[Tuple[str, Dict[str, Any]]], result: BatchResult) -> None:
        for i in range(0, len(ready), self.batch_size):
            documents: Dict[str, Dict[str, Any]] = {}
            for doc_id, fields in ready[i:i + self.batch_size]:
                try:
                    _, body = self.collection.to_document(fields)
                except (ConnectorError, TypeError, ValueError) as e:
                    result.failed[doc_id] = e
                    continue
                documents[doc_id] = body

            try:
                written, failures = self.collection.write_documents(documents)
            except Exception as e:
                self.logger.error(
                    "Batch write at offset %d failed (%d documents): %s", i, len(documents), e, exc_info=True
                )
                for doc_id in documents:
                    result.failed[doc_id] = e
                continue

            result.succeeded.extend(written)
            result.failed.update(failures)
