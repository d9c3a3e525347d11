# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-06
# Description: VectorQueryCompiler
# -----------------------------------------------------------------------------
from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, List, Optional

import settings
from errors.ConnectorErrors import CompileError, DimensionMismatchError, QuantizationMismatchError
from filtering.FilterCompiler import FilterCompiler, NativeFragment
from index.IndexStrategy import (
    FullTextStrategy,
    IndexStrategy,
    QuantizedStrategy,
    normalize_quantization,
    strategy_quantization,
)
from index.IndexStrategyRegistry import SEARCH_VECTOR_SIMILARITY, IndexStrategyRegistry, default_index_name
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
from query.Keyspace import DOC_ALIAS, Keyspace, field_ref, quote_identifier
from query.QueryRequest import HybridWeights, QueryRequest
from schema.SchemaDescriptor import DistanceFunction, SchemaDescriptor, VectorProperty
from utility.logging_utils import get_class_logger

QUERY_VECTOR_PARAM = "query_vector"
VECTOR_WEIGHT_PARAM = "vector_weight"
KEYWORD_WEIGHT_PARAM = "keyword_weight"
KEYWORD_PARAM_PREFIX = "kw"
SEARCH_REQUEST_PARAM = "search_request"


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class VectorQueryCompiler:
    """
    Turns a QueryRequest into one parameterised SQL++ statement.

    Pure vector search projects every data/vector property plus a score
    column and orders by it; hybrid search projects a vector similarity, a
    keyword score and their weighted sum. Nothing is executed here, and
    every check runs before a statement is produced.

    For quantized indexes the statement starts with a `/* vector-index ... */`
    comment. The engine ignores it; it only labels the statement in logs and
    query monitoring. What keeps query and index in agreement is the
    quantization mismatch check and the nprobes argument of
    APPROX_VECTOR_DISTANCE.
    """

    def __init__(
        self,
        keyspace: Keyspace,
        registry: Optional[IndexStrategyRegistry] = None,
        *,
        index_name: Optional[str] = None,
        search_index_name: Optional[str] = None,
        assumed_quantization: Optional[str] = None,
        filter_compiler: Optional[FilterCompiler] = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.keyspace = keyspace
        self.registry = registry or IndexStrategyRegistry()
        self.index_name = index_name or settings.VECTOR_INDEX_NAME or None
        self.search_index_name = search_index_name or settings.SEARCH_INDEX_NAME or None
        self.assumed_quantization = normalize_quantization(
            assumed_quantization if assumed_quantization is not None else settings.QUANTIZATION
        )
        self.filter_compiler = filter_compiler or FilterCompiler()
        self.logger = logger or get_class_logger(self.__class__)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------
    def compile(
        self,
        request: QueryRequest,
        schema: SchemaDescriptor,
        strategy: Optional[IndexStrategy] = None,
        fragment: Optional[NativeFragment] = None,
        index_name: Optional[str] = None,
    ) -> CompiledQuery:
        strategy = strategy or self.registry.default_strategy()
        if isinstance(strategy, FullTextStrategy):
            raise CompileError(
                "A full-text index cannot serve as the vector index of a search; "
                "use compile_search_hybrid() for hybrid search through it"
            )

        self._check_paging(request.top_k, request.skip)
        vector = self._target_vector(request, schema)
        self.registry.validate(schema, strategy, vector.name)
        self._check_quantization(strategy)

        if fragment is None and request.filter is not None:
            fragment = self.filter_compiler.compile(request.filter, schema)

        parameters: Dict[str, Any] = {QUERY_VECTOR_PARAM: [float(x) for x in request.vector]}
        distance = self.registry.distance_call(strategy, vector, QUERY_VECTOR_PARAM)
        name = index_name or self.index_name or default_index_name(schema, vector)

        if request.is_hybrid:
            compiled = self._compile_hybrid(request, schema, vector, distance, fragment, parameters, name)
        else:
            compiled = self._compile_vector(request, schema, strategy, vector, distance, fragment, parameters, name)

        self.logger.debug(
            "Compiled %s query on %s (strategy=%s, index=%s): %s",
            compiled.mode.value,
            self.keyspace,
            strategy.kind.value,
            name,
            compiled.statement,
        )
        return compiled

    def compile_filtered_get(
        self,
        schema: SchemaDescriptor,
        fragment: Optional[NativeFragment] = None,
        top: int = settings.SEARCH_DEFAULTS["top_k"],
        skip: int = 0,
    ) -> CompiledQuery:
        """Records matching a filter, without any vector ranking. Ordered by key."""
        self._check_paging(top, skip)
        parameters: Dict[str, Any] = {}
        clauses = [
            f"SELECT {', '.join(self._projection(schema))}",
            f"FROM {self.keyspace.render()} AS {DOC_ALIAS}",
        ]
        if fragment is not None:
            self._merge(parameters, fragment.parameters)
            clauses.append(f"WHERE {fragment.text}")
        clauses.append(f"ORDER BY META({DOC_ALIAS}).id")
        clauses.append(self._limit(top, skip))
        return CompiledQuery(
            statement=" ".join(clauses),
            parameters=parameters,
            mode=QueryMode.FILTERED_GET,
            score_kind=ScoreKind.NONE,
        )

    def compile_search_hybrid(
        self,
        request: QueryRequest,
        schema: SchemaDescriptor,
        strategy: Optional[FullTextStrategy] = None,
        fragment: Optional[NativeFragment] = None,
        index_name: Optional[str] = None,
    ) -> CompiledSearch:
        """
        Hybrid search through a search (FTS) index: a keyword match and a kNN
        request, each run with SEARCH() and ranked by SEARCH_SCORE(). The
        filter fragment restricts both candidate pools.
        """
        strategy = strategy or FullTextStrategy()
        if not isinstance(strategy, FullTextStrategy):
            raise CompileError(f"Search-index hybrid needs a full-text index, got {strategy.kind.value}")
        if not request.is_hybrid:
            raise CompileError("Search-index hybrid needs keywords")

        self._check_paging(request.top_k, request.skip)
        vector = self._target_vector(request, schema)
        self.registry.validate(schema, strategy, vector.name)
        if vector.distance_function not in SEARCH_VECTOR_SIMILARITY:
            raise CompileError(
                f"Search indexes cannot rank '{vector.name}' by {vector.distance_function.value}"
            )
        terms = request.keyword_terms()
        if not terms:
            raise CompileError("Hybrid search needs at least one keyword")
        self._check_weights(request.weights)

        name = index_name or self.search_index_name
        if not name:
            raise CompileError("Search-index hybrid needs a search index name")
        if fragment is None and request.filter is not None:
            fragment = self.filter_compiler.compile(request.filter, schema)

        pool = max(math.ceil(1.5 * (request.skip + request.top_k)), settings.SEARCH_MIN_CANDIDATES)
        keyword_request = {
            "query": {"disjuncts": [
                {"match": " ".join(terms), "field": p.storage_name} for p in schema.full_text_properties
            ]},
            "size": pool,
        }
        vector_request = {
            "query": {"match_none": {}},
            "knn": [{
                "field": vector.storage_name,
                "vector": [float(x) for x in request.vector],
                "k": pool,
            }],
            "size": pool,
        }

        compiled = CompiledSearch(
            keyword=self._search_statement(schema, keyword_request, name, fragment, pool),
            vector=self._search_statement(schema, vector_request, name, fragment, pool),
            vector_weight=float(request.weights.vector),
            keyword_weight=float(request.weights.keyword),
            top_k=request.top_k,
            skip=request.skip,
            index_name=name,
        )
        self.logger.debug(
            "Compiled search-index hybrid on %s (index=%s, pool=%d): %s",
            self.keyspace,
            name,
            pool,
            compiled.keyword.statement,
        )
        return compiled

    # -------------------------------------------------------------------------
    # Statement builders
    # -------------------------------------------------------------------------
    def _compile_vector(
        self,
        request: QueryRequest,
        schema: SchemaDescriptor,
        strategy: IndexStrategy,
        vector: VectorProperty,
        distance: str,
        fragment: Optional[NativeFragment],
        parameters: Dict[str, Any],
        index_name: str,
    ) -> CompiledQuery:
        metric = vector.distance_function
        if metric is DistanceFunction.COSINE:
            score, kind, direction = f"1 - {distance}", ScoreKind.SIMILARITY, "DESC"
        elif metric is DistanceFunction.DOT_PRODUCT:
            # engine returns the negated dot product as a distance
            score, kind, direction = f"-({distance})", ScoreKind.SIMILARITY, "DESC"
        else:
            score, kind, direction = distance, ScoreKind.DISTANCE, "ASC"

        projection = self._projection(schema) + [f"{score} AS {SCORE_COLUMN}"]

        clauses: List[str] = []
        if isinstance(strategy, QuantizedStrategy):
            # label only, no effect on the plan
            clauses.append(f"/* vector-index {strategy.description} */")
        clauses.append(f"SELECT {', '.join(projection)}")
        clauses.append(f"FROM {self.keyspace.render()} AS {DOC_ALIAS}")

        hint = self.registry.index_hint(index_name, strategy)
        if hint:
            clauses.append(hint)
        if fragment is not None:
            self._merge(parameters, fragment.parameters)
            clauses.append(f"WHERE {fragment.text}")

        clauses.append(f"ORDER BY {SCORE_COLUMN} {direction}")
        clauses.append(self._limit(request.top_k, request.skip))

        return CompiledQuery(
            statement=" ".join(clauses),
            parameters=parameters,
            mode=QueryMode.VECTOR,
            score_kind=kind,
            index_name=index_name if hint else None,
        )

    def _compile_hybrid(
        self,
        request: QueryRequest,
        schema: SchemaDescriptor,
        vector: VectorProperty,
        distance: str,
        fragment: Optional[NativeFragment],
        parameters: Dict[str, Any],
        index_name: str,
    ) -> CompiledQuery:
        terms = request.keyword_terms()
        if not terms:
            raise CompileError("Hybrid search needs at least one keyword")
        text_fields = schema.full_text_properties
        if not text_fields:
            raise CompileError(f"Hybrid search needs a full-text searchable property on '{schema.name}'")

        weights = request.weights
        self._check_weights(weights)

        metric = vector.distance_function
        if metric is DistanceFunction.COSINE:
            vector_score = f"(1 - {distance})"
        elif metric is DistanceFunction.DOT_PRODUCT:
            vector_score = f"(-({distance}))"
        else:
            vector_score = f"(1 / (1 + {distance}))"

        matches: List[str] = []
        for i, term in enumerate(terms):
            param = f"{KEYWORD_PARAM_PREFIX}{i}"
            parameters[param] = _like_pattern(term)
            any_field = " OR ".join(
                f"LOWER({field_ref(p.storage_name)}) LIKE ${param}" for p in text_fields
            )
            matches.append(f"(CASE WHEN ({any_field}) THEN 1 ELSE 0 END)")
        keyword_score = f"(({' + '.join(matches)}) / {len(terms)})"

        parameters[VECTOR_WEIGHT_PARAM] = float(weights.vector)
        parameters[KEYWORD_WEIGHT_PARAM] = float(weights.keyword)
        combined = (
            f"${VECTOR_WEIGHT_PARAM} * IFMISSINGORNULL({vector_score}, 0) + "
            f"${KEYWORD_WEIGHT_PARAM} * IFMISSINGORNULL({keyword_score}, 0)"
        )

        projection = self._projection(schema) + [
            f"{vector_score} AS {VECTOR_SCORE_COLUMN}",
            f"{keyword_score} AS {KEYWORD_SCORE_COLUMN}",
            f"{combined} AS {SCORE_COLUMN}",
        ]

        # No index hint: a vector index skips documents without a vector,
        # and those must still be ranked by their keyword signal.
        clauses = [
            f"SELECT {', '.join(projection)}",
            f"FROM {self.keyspace.render()} AS {DOC_ALIAS}",
        ]
        if fragment is not None:
            self._merge(parameters, fragment.parameters)
            clauses.append(f"WHERE {fragment.text}")
        clauses.append(f"ORDER BY {SCORE_COLUMN} DESC")
        clauses.append(self._limit(request.top_k, request.skip))

        return CompiledQuery(
            statement=" ".join(clauses),
            parameters=parameters,
            mode=QueryMode.HYBRID,
            score_kind=ScoreKind.HYBRID,
            vector_weight=float(weights.vector),
            keyword_weight=float(weights.keyword),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------
    def _projection(self, schema: SchemaDescriptor) -> List[str]:
        columns = [f"META({DOC_ALIAS}).id AS {KEY_COLUMN}"]
        if schema.has_composite_key:
            columns += [f"{field_ref(k.storage_name)} AS {quote_identifier(k.storage_name)}" for k in schema.keys]
        columns += [
            f"{field_ref(p.storage_name)} AS {quote_identifier(p.storage_name)}"
            for p in (*schema.data_properties, *schema.vector_properties)
        ]
        return columns

    def _search_statement(
        self,
        schema: SchemaDescriptor,
        search_request: Dict[str, Any],
        index_name: str,
        fragment: Optional[NativeFragment],
        pool: int,
    ) -> CompiledQuery:
        parameters: Dict[str, Any] = {SEARCH_REQUEST_PARAM: search_request}
        projection = self._projection(schema) + [f"SEARCH_SCORE() AS {SCORE_COLUMN}"]
        where = f"SEARCH({DOC_ALIAS}, ${SEARCH_REQUEST_PARAM}, {json.dumps({'index': index_name})})"
        if fragment is not None:
            self._merge(parameters, fragment.parameters)
            where = f"{where} AND {fragment.text}"
        clauses = [
            f"SELECT {', '.join(projection)}",
            f"FROM {self.keyspace.render()} AS {DOC_ALIAS}",
            f"WHERE {where}",
            f"ORDER BY {SCORE_COLUMN} DESC",
            self._limit(pool, 0),
        ]
        return CompiledQuery(
            statement=" ".join(clauses),
            parameters=parameters,
            mode=QueryMode.SEARCH_HYBRID,
            score_kind=ScoreKind.SEARCH,
            index_name=index_name,
        )

    @staticmethod
    def _check_weights(weights: HybridWeights) -> None:
        for w in (weights.vector, weights.keyword):
            if not isinstance(w, (int, float)) or isinstance(w, bool) or not math.isfinite(w) or w < 0:
                raise CompileError(f"Hybrid weights must be finite and non-negative, got {weights!r}")

    def _target_vector(self, request: QueryRequest, schema: SchemaDescriptor) -> VectorProperty:
        vector = schema.vector_property(request.vector_property)
        if vector is None:
            wanted = request.vector_property or "(default)"
            raise CompileError(f"Schema '{schema.name}' has no vector property {wanted}")

        values = list(request.vector)
        if len(values) != vector.dimensions:
            raise DimensionMismatchError(vector.name, vector.dimensions, len(values))
        for v in values:
            if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
                raise CompileError(f"Query vector components must be finite numbers, got {v!r}")
        return vector

    def _check_quantization(self, strategy: IndexStrategy) -> None:
        if self.assumed_quantization is None:
            return
        declared = strategy_quantization(strategy)
        if declared != self.assumed_quantization:
            raise QuantizationMismatchError(declared, self.assumed_quantization)

    @staticmethod
    def _check_paging(top: int, skip: int) -> None:
        if isinstance(top, bool) or not isinstance(top, int) or top < 1:
            raise CompileError(f"top_k must be an integer >= 1, got {top!r}")
        if isinstance(skip, bool) or not isinstance(skip, int) or skip < 0:
            raise CompileError(f"skip must be an integer >= 0, got {skip!r}")

    @staticmethod
    def _merge(parameters: Dict[str, Any], extra: Dict[str, Any]) -> None:
        clash = set(parameters) & set(extra)
        if clash:
            raise CompileError(f"Filter parameters collide with query parameters: {sorted(clash)}")
        parameters.update(extra)

    @staticmethod
    def _limit(top: int, skip: int) -> str:
        return f"LIMIT {top} OFFSET {skip}" if skip else f"LIMIT {top}"
