# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-07
# Description: ResultDecoder
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import settings
from errors.ConnectorErrors import DecodeError, InvalidScoreError, MissingFieldError
from query.CompiledQuery import (
    KEY_COLUMN,
    KEYWORD_SCORE_COLUMN,
    SCORE_COLUMN,
    VECTOR_SCORE_COLUMN,
    CompiledQuery,
    CompiledSearch,
    QueryMode,
    ScoreKind,
)
from results.SearchResult import SearchResult
from schema.SchemaDescriptor import ScalarType, SchemaDescriptor
from utility.logging_utils import get_class_logger


def distance_to_similarity(distance: float) -> float:
    """Map a non-negative distance onto (0, 1], 1 meaning identical."""
    return 1.0 / (1.0 + distance)


class ResultDecoder:
    """
    Maps native result rows back onto the schema's record type.

    Any bad row aborts the whole decode; callers never see a partial list.
    Row order is preserved as returned by the engine (order across equal
    scores is undefined).
    """

    def __init__(self, *, include_vectors: bool = True, logger: logging.Logger | None = None) -> None:
        self.include_vectors = include_vectors
        self.logger = logger or get_class_logger(self.__class__)

    def decode(
        self,
        rows: Iterable[Mapping[str, Any]],
        schema: SchemaDescriptor,
        compiled: Optional[CompiledQuery] = None,
        *,
        include_vectors: Optional[bool] = None,
    ) -> List[SearchResult]:
        kind = compiled.score_kind if compiled is not None else ScoreKind.SIMILARITY
        if kind is ScoreKind.NONE:
            raise DecodeError("Query produces no score column; use decode_records()")
        include = self.include_vectors if include_vectors is None else include_vectors
        vectors_required = compiled is None or compiled.mode is not QueryMode.HYBRID

        results: List[SearchResult] = []
        for i, row in enumerate(rows):
            record = self._record(row, schema, i, include, vectors_required)
            if kind is ScoreKind.HYBRID:
                results.append(self._hybrid_result(record, row, compiled, i))
                continue
            if SCORE_COLUMN not in row or row[SCORE_COLUMN] is None:
                raise MissingFieldError(SCORE_COLUMN, i)
            score = self._finite(row[SCORE_COLUMN], i)
            if kind is ScoreKind.DISTANCE:
                if score < 0:
                    raise InvalidScoreError(row[SCORE_COLUMN], i)
                score = distance_to_similarity(score)
            results.append(SearchResult(record=record, score=score))

        self.logger.debug("Decoded %d rows for '%s' (score=%s)", len(results), schema.name, kind.value)
        return results

    def decode_records(
        self,
        rows: Iterable[Mapping[str, Any]],
        schema: SchemaDescriptor,
        *,
        include_vectors: Optional[bool] = None,
    ) -> List[Any]:
        """Records of a filtered get or a key lookup; no score handling."""
        include = self.include_vectors if include_vectors is None else include_vectors
        records = [self._record(row, schema, i, include, True) for i, row in enumerate(rows)]
        self.logger.debug("Decoded %d records for '%s'", len(records), schema.name)
        return records

    def decode_search(
        self,
        keyword_rows: Iterable[Mapping[str, Any]],
        vector_rows: Iterable[Mapping[str, Any]],
        schema: SchemaDescriptor,
        compiled: CompiledSearch,
        *,
        include_vectors: Optional[bool] = None,
    ) -> List[SearchResult]:
        """
        Merge the keyword and kNN candidate pools of a search-index hybrid
        query. Keyword relevance is scaled so the best match in the pool is 1;
        a record missing from one pool gets 0 for that component.
        """
        include = self.include_vectors if include_vectors is None else include_vectors
        keyword = self._search_pool(keyword_rows, schema, include, non_negative=True)
        vector = self._search_pool(vector_rows, schema, include, non_negative=False)

        best = max((score for _, score in keyword.values()), default=0.0)
        results: List[SearchResult] = []
        for key in [*vector, *(k for k in keyword if k not in vector)]:
            record, v = vector.get(key, (None, 0.0))
            kw_record, k_raw = keyword.get(key, (None, 0.0))
            k = k_raw / best if best > 0 else 0.0
            results.append(SearchResult(
                record=record if record is not None else kw_record,
                score=compiled.vector_weight * v + compiled.keyword_weight * k,
                vector_score=v,
                keyword_score=k,
            ))

        results.sort(key=lambda r: r.score, reverse=True)
        page = results[compiled.skip:compiled.skip + compiled.top_k]
        self.logger.debug(
            "Merged %d keyword and %d vector candidates for '%s' into %d results",
            len(keyword),
            len(vector),
            schema.name,
            len(page),
        )
        return page

    # -------------------------------------------------------------------------
    def _hybrid_result(
        self,
        record: Any,
        row: Mapping[str, Any],
        compiled: CompiledQuery,
        index: int,
    ) -> SearchResult:
        # Missing component = zero contribution
        v_raw = row.get(VECTOR_SCORE_COLUMN)
        k_raw = row.get(KEYWORD_SCORE_COLUMN)
        v = self._finite(v_raw, index) if v_raw is not None else 0.0
        k = self._finite(k_raw, index) if k_raw is not None else 0.0

        w_v = compiled.vector_weight
        w_k = compiled.keyword_weight
        if w_v is None:
            w_v = settings.SEARCH_DEFAULTS["vector_weight"]
        if w_k is None:
            w_k = settings.SEARCH_DEFAULTS["keyword_weight"]

        return SearchResult(
            record=record,
            score=w_v * v + w_k * k,
            vector_score=v,
            keyword_score=k,
        )

    def _search_pool(
        self,
        rows: Iterable[Mapping[str, Any]],
        schema: SchemaDescriptor,
        include_vectors: bool,
        non_negative: bool,
    ) -> Dict[str, Tuple[Any, float]]:
        pool: Dict[str, Tuple[Any, float]] = {}
        for i, row in enumerate(rows):
            key = row.get(KEY_COLUMN)
            if key is None:
                raise MissingFieldError(KEY_COLUMN, i)
            if row.get(SCORE_COLUMN) is None:
                raise MissingFieldError(SCORE_COLUMN, i)
            score = self._finite(row[SCORE_COLUMN], i)
            if non_negative and score < 0:
                raise InvalidScoreError(row[SCORE_COLUMN], i)
            record = self._record(row, schema, i, include_vectors, False)
            pool.setdefault(str(key), (record, score))
        return pool

    def _record(
        self,
        row: Mapping[str, Any],
        schema: SchemaDescriptor,
        index: int,
        include_vectors: bool,
        vectors_required: bool,
    ) -> Any:
        fields: Dict[str, Any] = {}

        if schema.has_composite_key:
            for k in schema.keys:
                value = row.get(k.storage_name)
                if value is None:
                    raise MissingFieldError(k.name, index)
                fields[k.name] = value
        else:
            key = schema.key
            value = row.get(key.storage_name)
            if value is None:
                value = row.get(KEY_COLUMN)
            if value is None:
                raise MissingFieldError(key.name, index)
            fields[key.name] = value

        for p in schema.data_properties:
            fields[p.name] = self._scalar(row.get(p.storage_name), p.scalar_type)

        for v in schema.vector_properties:
            value = row.get(v.storage_name)
            if value is None:
                if vectors_required:
                    raise MissingFieldError(v.name, index)
                fields[v.name] = None
                continue
            if not isinstance(value, (list, tuple)):
                raise DecodeError(f"Result row {index} field '{v.name}' is not a vector: {type(value).__name__}")
            if len(value) != v.dimensions:
                raise DecodeError(
                    f"Result row {index} field '{v.name}' has {len(value)} dimensions, expected {v.dimensions}"
                )
            if any(isinstance(x, bool) or not isinstance(x, (int, float)) for x in value):
                raise DecodeError(f"Result row {index} field '{v.name}' has non-numeric vector elements")
            fields[v.name] = [float(x) for x in value] if include_vectors else None

        if schema.record_type is None:
            return fields
        try:
            return schema.record_type(**fields)
        except TypeError as e:
            raise DecodeError(
                f"Cannot build {schema.record_type.__name__} from result row {index}: {e}"
            ) from e

    @staticmethod
    def _scalar(value: Any, scalar_type: ScalarType) -> Any:
        if value is not None and scalar_type is ScalarType.DATETIME and isinstance(value, str):
            try:
                return datetime.fromisoformat(value)
            except ValueError as e:
                raise DecodeError(f"Stored datetime {value!r} is not ISO-8601") from e
        return value

    @staticmethod
    def _finite(value: Any, index: int) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidScoreError(value, index)
        score = float(value)
        if not math.isfinite(score):
            raise InvalidScoreError(value, index)
        return score
