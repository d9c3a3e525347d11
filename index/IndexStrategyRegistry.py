# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-04
# Description: IndexStrategyRegistry
# -----------------------------------------------------------------------------
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Optional

import settings
from errors.ConnectorErrors import IndexStrategyError
from index.IndexStrategy import (
    CompositeStrategy,
    FullTextStrategy,
    GraphStrategy,
    IndexStrategy,
    QuantizedStrategy,
    StrategyKind,
    is_valid_quantization,
    ivf_centroids,
    normalize_quantization,
    parse_product_quantization,
)
from query.Keyspace import Keyspace, field_ref, quote_identifier
from schema.SchemaDescriptor import DistanceFunction, SchemaDescriptor, VectorProperty
from utility.logging_utils import get_class_logger

# DistanceFunction -> metric name the engine understands
NATIVE_METRICS: Dict[DistanceFunction, str] = {
    DistanceFunction.COSINE: "cosine",
    DistanceFunction.DOT_PRODUCT: "dot",
    DistanceFunction.EUCLIDEAN: "l2",
    DistanceFunction.EUCLIDEAN_SQUARED: "l2_squared",
    DistanceFunction.HAMMING: "hamming",
}

# DistanceFunction -> vector similarity of a search (FTS) index field.
# Both euclidean flavours rank identically, so they share l2_norm.
SEARCH_VECTOR_SIMILARITY: Dict[DistanceFunction, str] = {
    DistanceFunction.COSINE: "cosine",
    DistanceFunction.DOT_PRODUCT: "dot_product",
    DistanceFunction.EUCLIDEAN: "l2_norm",
    DistanceFunction.EUCLIDEAN_SQUARED: "l2_norm",
}

_IVF_PREFIX = re.compile(r"^IVF\d*$", re.IGNORECASE)

_REAL_VALUED_METRICS = frozenset({
    DistanceFunction.COSINE,
    DistanceFunction.DOT_PRODUCT,
    DistanceFunction.EUCLIDEAN,
    DistanceFunction.EUCLIDEAN_SQUARED,
})


@dataclass(frozen=True)
class IndexDefinition:
    """What CollectionManager sends to the cluster to create one named index."""
    name: str
    kind: StrategyKind
    statement: Optional[str] = None                     # SQL++ DDL
    search_definition: Optional[Dict[str, Any]] = None  # search service index JSON


@dataclass(frozen=True)
class StrategyRendering:
    """
    Per-variant native syntax. New strategies are added by registering a row,
    not by touching the compilers.
    """
    supported_metrics: FrozenSet[DistanceFunction]
    distance_function: Optional[str]
    uses_index_hint: bool
    render_index: Callable[[str, Keyspace, SchemaDescriptor, VectorProperty, Any], IndexDefinition]


def _include_fields(schema: SchemaDescriptor) -> List[str]:
    return [
        p.storage_name
        for p in schema.data_properties
        if p.filterable or p.full_text_searchable
    ]


def _vector_with(vector: VectorProperty, extra: Dict[str, Any]) -> str:
    params: Dict[str, Any] = {
        "dimension": vector.dimensions,
        "similarity": NATIVE_METRICS[vector.distance_function],
    }
    params.update(extra)
    return json.dumps(params)


def _render_graph(name: str, keyspace: Keyspace, schema: SchemaDescriptor,
                  vector: VectorProperty, strategy: GraphStrategy) -> IndexDefinition:
    include = _include_fields(schema)
    include_clause = f" INCLUDE ({', '.join(quote_identifier(f) for f in include)})" if include else ""
    with_clause = _vector_with(vector, {
        "graph": {"neighbors": strategy.neighbor_count, "construction": strategy.construction_factor},
    })
    statement = (
        f"CREATE VECTOR INDEX {quote_identifier(name)} ON {keyspace.render()}"
        f"({quote_identifier(vector.storage_name)} VECTOR){include_clause} "
        f"USING GSI WITH {with_clause}"
    )
    return IndexDefinition(name=name, kind=StrategyKind.GRAPH, statement=statement)


def _render_quantized(name: str, keyspace: Keyspace, schema: SchemaDescriptor,
                      vector: VectorProperty, strategy: QuantizedStrategy) -> IndexDefinition:
    include = _include_fields(schema)
    include_clause = f" INCLUDE ({', '.join(quote_identifier(f) for f in include)})" if include else ""
    extra: Dict[str, Any] = {"description": strategy.description}
    if strategy.centroids_to_probe:
        extra["scan_nprobes"] = strategy.centroids_to_probe
    statement = (
        f"CREATE VECTOR INDEX {quote_identifier(name)} ON {keyspace.render()}"
        f"({quote_identifier(vector.storage_name)} VECTOR){include_clause} "
        f"USING GSI WITH {_vector_with(vector, extra)}"
    )
    return IndexDefinition(name=name, kind=StrategyKind.QUANTIZED, statement=statement)


def _render_composite(name: str, keyspace: Keyspace, schema: SchemaDescriptor,
                      vector: VectorProperty, strategy: CompositeStrategy) -> IndexDefinition:
    if strategy.scalar_keys:
        scalar = [schema.get_property(k).storage_name for k in strategy.scalar_keys]
    else:
        scalar = _include_fields(schema)
    keys = [f"{quote_identifier(vector.storage_name)} VECTOR"] + [quote_identifier(s) for s in scalar]
    statement = (
        f"CREATE INDEX {quote_identifier(name)} ON {keyspace.render()}({', '.join(keys)}) "
        f"USING GSI WITH {_vector_with(vector, {})}"
    )
    return IndexDefinition(name=name, kind=StrategyKind.COMPOSITE, statement=statement)


def _render_full_text(name: str, keyspace: Keyspace, schema: SchemaDescriptor,
                      vector: Optional[VectorProperty], strategy: FullTextStrategy) -> IndexDefinition:
    properties = {
        p.storage_name: {
            "enabled": True,
            "dynamic": False,
            "fields": [{
                "name": p.storage_name,
                "type": "text",
                "analyzer": strategy.analyzer,
                "index": True,
                "store": True,
            }],
        }
        for p in schema.full_text_properties
    }
    if vector is not None and vector.distance_function in SEARCH_VECTOR_SIMILARITY:
        properties[vector.storage_name] = {
            "enabled": True,
            "dynamic": False,
            "fields": [{
                "name": vector.storage_name,
                "type": "vector",
                "dims": vector.dimensions,
                "similarity": SEARCH_VECTOR_SIMILARITY[vector.distance_function],
                "vector_index_optimized_for": "recall",
                "index": True,
            }],
        }
    definition = {
        "type": "fulltext-index",
        "name": name,
        "sourceType": "gocbcore",
        "sourceName": keyspace.bucket,
        "params": {
            "doc_config": {"mode": "scope.collection.type_field", "type_field": "type"},
            "mapping": {
                "default_analyzer": strategy.analyzer,
                "default_mapping": {"enabled": False, "dynamic": False},
                "types": {
                    f"{keyspace.scope}.{keyspace.collection}": {
                        "enabled": True,
                        "dynamic": False,
                        "properties": properties,
                    }
                },
            },
        },
    }
    return IndexDefinition(name=name, kind=StrategyKind.FULL_TEXT, search_definition=definition)


DEFAULT_RENDERINGS: Dict[StrategyKind, StrategyRendering] = {
    StrategyKind.GRAPH: StrategyRendering(
        supported_metrics=frozenset(DistanceFunction),
        distance_function="APPROX_VECTOR_DISTANCE",
        uses_index_hint=True,
        render_index=_render_graph,
    ),
    # scalar/product quantization is defined over real-valued vectors
    StrategyKind.QUANTIZED: StrategyRendering(
        supported_metrics=_REAL_VALUED_METRICS,
        distance_function="APPROX_VECTOR_DISTANCE",
        uses_index_hint=True,
        render_index=_render_quantized,
    ),
    StrategyKind.COMPOSITE: StrategyRendering(
        supported_metrics=frozenset(DistanceFunction),
        distance_function="VECTOR_DISTANCE",
        uses_index_hint=False,
        render_index=_render_composite,
    ),
    # keyword index; also serves kNN for the metrics the search service knows
    StrategyKind.FULL_TEXT: StrategyRendering(
        supported_metrics=frozenset(SEARCH_VECTOR_SIMILARITY),
        distance_function=None,
        uses_index_hint=False,
        render_index=_render_full_text,
    ),
}


class IndexStrategyRegistry:
    """
    Knows the supported index strategies, validates them against a schema,
    and renders their native syntax (index DDL, query-time distance call and
    index hint) from a per-variant table.
    """

    def __init__(
        self,
        renderings: Optional[Dict[StrategyKind, StrategyRendering]] = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.renderings = dict(renderings or DEFAULT_RENDERINGS)
        self.logger = logger or get_class_logger(self.__class__)

    @staticmethod
    def default_strategy() -> GraphStrategy:
        return GraphStrategy(
            neighbor_count=settings.GRAPH_NEIGHBOR_COUNT,
            construction_factor=settings.GRAPH_CONSTRUCTION_FACTOR,
        )

    def rendering(self, strategy: IndexStrategy) -> StrategyRendering:
        try:
            return self.renderings[strategy.kind]
        except (AttributeError, KeyError) as e:
            raise IndexStrategyError(f"Unsupported index strategy {strategy!r}") from e

    # -------------------------------------------------------------------------
    def validate(
        self,
        schema: SchemaDescriptor,
        strategy: IndexStrategy,
        vector_property: Optional[str] = None,
    ) -> None:
        rendering = self.rendering(strategy)

        if isinstance(strategy, FullTextStrategy):
            self._validate_full_text(schema, strategy)
            return

        vector = schema.vector_property(vector_property)
        if vector is None:
            target = f"'{vector_property}'" if vector_property else "any"
            raise IndexStrategyError(
                f"{strategy.kind.value} index requires a vector property; schema '{schema.name}' has no {target}"
            )

        if vector.distance_function not in rendering.supported_metrics:
            raise IndexStrategyError(
                f"{strategy.kind.value} index does not support distance function "
                f"'{vector.distance_function.value}' on '{vector.name}'"
            )

        if isinstance(strategy, GraphStrategy):
            if strategy.neighbor_count < 1 or strategy.construction_factor < 1:
                raise IndexStrategyError("graph neighbor_count and construction_factor must be >= 1")
        elif isinstance(strategy, QuantizedStrategy):
            self._validate_quantized(vector, strategy)
        elif isinstance(strategy, CompositeStrategy):
            self._validate_composite(schema, strategy)

    def _validate_quantized(self, vector: VectorProperty, strategy: QuantizedStrategy) -> None:
        scheme = strategy.scheme
        if not scheme or not is_valid_quantization(scheme):
            raise IndexStrategyError(f"Unsupported quantization scheme {strategy.quantization!r}")
        if "," in strategy.quantization:
            prefix = strategy.quantization.split(",", 1)[0].strip()
            if not _IVF_PREFIX.match(prefix):
                raise IndexStrategyError(f"Quantization prefix must be IVF or IVF<n>, got {prefix!r}")
            sized = ivf_centroids(strategy.quantization)
            if sized is not None and sized != strategy.centroids:
                raise IndexStrategyError(
                    f"{strategy.quantization!r} sizes {sized} centroids but centroids={strategy.centroids}"
                )

        if strategy.centroids is not None and strategy.centroids < 1:
            raise IndexStrategyError("centroids must be >= 1")
        if strategy.centroids_to_probe is not None:
            if strategy.centroids_to_probe < 1:
                raise IndexStrategyError("centroids_to_probe must be >= 1")
            if strategy.centroids is not None and strategy.centroids_to_probe > strategy.centroids:
                raise IndexStrategyError(
                    f"centroids_to_probe ({strategy.centroids_to_probe}) exceeds centroids ({strategy.centroids})"
                )

        pq = parse_product_quantization(scheme)
        if pq is not None:
            subquantizers, _bits = pq
            if subquantizers < 1 or vector.dimensions % subquantizers != 0:
                raise IndexStrategyError(
                    f"{scheme} needs a dimension count divisible by {subquantizers}; "
                    f"'{vector.name}' has {vector.dimensions}"
                )

    def _validate_composite(self, schema: SchemaDescriptor, strategy: CompositeStrategy) -> None:
        if normalize_quantization(strategy.quantization) is not None:
            raise IndexStrategyError(
                "composite indexes store exact vectors; a quantization setting is not allowed "
                f"(got {strategy.quantization!r})"
            )
        for key in strategy.scalar_keys:
            prop = schema.get_property(key)
            if prop is None or prop not in schema.data_properties:
                raise IndexStrategyError(f"composite scalar key '{key}' is not a data property of '{schema.name}'")

    def _validate_full_text(self, schema: SchemaDescriptor, strategy: FullTextStrategy) -> None:
        if not strategy.analyzer or not strategy.analyzer.strip():
            raise IndexStrategyError("full-text index requires an analyzer")
        if not schema.full_text_properties:
            raise IndexStrategyError(
                f"full-text index requires at least one full-text searchable property on '{schema.name}'"
            )

    # -------------------------------------------------------------------------
    def render_index(
        self,
        name: str,
        keyspace: Keyspace,
        schema: SchemaDescriptor,
        strategy: IndexStrategy,
        vector_property: Optional[str] = None,
    ) -> IndexDefinition:
        self.validate(schema, strategy, vector_property)
        vector = schema.vector_property(vector_property)
        definition = self.rendering(strategy).render_index(name, keyspace, schema, vector, strategy)
        self.logger.debug("Rendered %s index '%s' on %s", strategy.kind.value, name, keyspace)
        return definition

    def distance_call(self, strategy: IndexStrategy, vector: VectorProperty, vector_param: str) -> str:
        rendering = self.rendering(strategy)
        if rendering.distance_function is None:
            raise IndexStrategyError(f"{strategy.kind.value} index cannot compute vector distances")
        args = [
            field_ref(vector.storage_name),
            f"${vector_param}",
            json.dumps(NATIVE_METRICS[vector.distance_function]),
        ]
        if isinstance(strategy, QuantizedStrategy) and strategy.centroids_to_probe:
            args.append(str(strategy.centroids_to_probe))
        return f"{rendering.distance_function}({', '.join(args)})"

    def index_hint(self, name: str, strategy: IndexStrategy) -> Optional[str]:
        if not self.rendering(strategy).uses_index_hint:
            return None
        return f"USE INDEX ({quote_identifier(name)} USING GSI)"


def default_index_name(schema: SchemaDescriptor, vector: Optional[VectorProperty] = None) -> str:
    """Name used when settings.VECTOR_INDEX_NAME is empty: idx_<record>_<vector storage name>."""
    vector = vector or schema.vector_property()
    suffix = vector.storage_name if vector is not None else "fts"
    return f"idx_{schema.name}_{suffix}"
