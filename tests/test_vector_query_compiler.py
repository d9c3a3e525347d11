# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-15
# Description: test_vector_query_compiler.py
# -----------------------------------------------------------------------------
import math

import pytest

from conftest import term_definition
from errors.ConnectorErrors import (
    CompileError,
    DimensionMismatchError,
    IndexStrategyError,
    QuantizationMismatchError,
)
from filtering.FilterPredicate import Equals
from index.IndexStrategy import CompositeStrategy, FullTextStrategy, GraphStrategy, QuantizedStrategy
from query.CompiledQuery import QueryMode, ScoreKind
from query.QueryRequest import HybridWeights, QueryRequest
from query.VectorQueryCompiler import VectorQueryCompiler
from schema.RecordDefinition import DataField, KeyField, RecordDefinition, VectorField
from schema.SchemaReader import SchemaReader
from store.CouchbaseVectorCollection import CouchbaseVectorCollection


@pytest.fixture
def compiler(keyspace):
    return VectorQueryCompiler(keyspace, index_name="idx_terms", assumed_quantization="")


def test_category_filter_cosine_top_one(compiler, term_schema):
    request = QueryRequest(vector=[0.1, 0.2, 0.3], top_k=1, filter=Equals("category", "AI"))
    compiled = compiler.compile(request, term_schema, GraphStrategy())

    sql = compiled.statement
    assert "WHERE d.`category` = $f0" in sql
    assert compiled.parameters["f0"] == "AI"
    assert "1 - APPROX_VECTOR_DISTANCE(d.`embedding`, $query_vector, \"cosine\") AS __score" in sql
    assert sql.endswith("ORDER BY __score DESC LIMIT 1")
    assert "USE INDEX (`idx_terms` USING GSI)" in sql
    assert compiled.parameters["query_vector"] == [0.1, 0.2, 0.3]
    assert compiled.mode is QueryMode.VECTOR
    assert compiled.score_kind is ScoreKind.SIMILARITY


def test_projection_selects_every_property(compiler, term_schema):
    compiled = compiler.compile(QueryRequest(vector=[1, 0, 0]), term_schema)
    sql = compiled.statement

    assert sql.startswith("SELECT META(d).id AS __key, d.`category` AS `category`, d.`term` AS `term`, "
                          "d.`embedding` AS `embedding`, ")
    assert "FROM `vectors`.`demo`.`terms` AS d" in sql
    assert "WHERE" not in sql


def test_distance_metric_sorts_ascending(compiler):
    schema = SchemaReader().read(term_definition("euclidean"))
    compiled = compiler.compile(QueryRequest(vector=[1, 2, 3], top_k=3, skip=6), schema)

    assert "APPROX_VECTOR_DISTANCE(d.`embedding`, $query_vector, \"l2\") AS __score" in compiled.statement
    assert compiled.statement.endswith("ORDER BY __score ASC LIMIT 3 OFFSET 6")
    assert compiled.score_kind is ScoreKind.DISTANCE


def test_dot_product_negates_engine_distance(compiler):
    schema = SchemaReader().read(term_definition("dot_product"))
    compiled = compiler.compile(QueryRequest(vector=[1, 2, 3]), schema)

    assert "-(APPROX_VECTOR_DISTANCE(d.`embedding`, $query_vector, \"dot\")) AS __score" in compiled.statement
    assert "ORDER BY __score DESC" in compiled.statement


def test_composite_is_exact_without_hint(compiler, term_schema):
    compiled = compiler.compile(QueryRequest(vector=[1, 2, 3]), term_schema, CompositeStrategy())

    assert "USE INDEX" not in compiled.statement
    assert "APPROX_VECTOR_DISTANCE" not in compiled.statement
    assert "VECTOR_DISTANCE(d.`embedding`, $query_vector, \"cosine\")" in compiled.statement
    assert compiled.index_name is None


def test_quantized_emits_description_and_centroid_count(compiler, term_schema):
    strategy = QuantizedStrategy("IVF,SQ8", centroids_to_probe=4)
    compiled = compiler.compile(QueryRequest(vector=[1, 2, 3]), term_schema, strategy)

    assert compiled.statement.startswith("/* vector-index IVF,SQ8 */ SELECT")
    assert "APPROX_VECTOR_DISTANCE(d.`embedding`, $query_vector, \"cosine\", 4)" in compiled.statement


def test_quantization_mismatch_is_fatal(keyspace, term_schema):
    compiler = VectorQueryCompiler(keyspace, index_name="idx", assumed_quantization="IVF,SQ8")

    compiler.compile(QueryRequest(vector=[1, 2, 3]), term_schema, QuantizedStrategy("SQ8"))
    with pytest.raises(QuantizationMismatchError):
        compiler.compile(QueryRequest(vector=[1, 2, 3]), term_schema, QuantizedStrategy("PQ3x8"))
    with pytest.raises(QuantizationMismatchError):
        compiler.compile(QueryRequest(vector=[1, 2, 3]), term_schema, GraphStrategy())


@pytest.mark.parametrize("length", [0, 2, 4, 1536])
def test_dimension_mismatch_makes_no_native_call(keyspace, term_schema, native_client, length):
    collection = CouchbaseVectorCollection(native_client, keyspace, term_schema, index_name="idx")

    with pytest.raises(DimensionMismatchError) as exc:
        collection.search(QueryRequest(vector=[0.5] * length))

    assert exc.value.expected == 3
    assert exc.value.actual == length
    assert native_client.calls == []


@pytest.mark.parametrize("request_kwargs", [
    {"vector": [1, 2, 3], "top_k": 0},
    {"vector": [1, 2, 3], "skip": -1},
    {"vector": [1, 2, math.nan]},
    {"vector": [1, 2, math.inf]},
    {"vector": [1, 2, 3], "vector_property": "term"},
    {"vector": [1, 2, 3], "keywords": "   "},
])
def test_invalid_requests(compiler, term_schema, request_kwargs):
    with pytest.raises(CompileError):
        compiler.compile(QueryRequest(**request_kwargs), term_schema)


def test_full_text_strategy_cannot_rank_vectors(compiler, term_schema):
    with pytest.raises(CompileError):
        compiler.compile(QueryRequest(vector=[1, 2, 3]), term_schema, FullTextStrategy())


def test_strategy_validated_before_compiling(compiler):
    schema = SchemaReader().read(term_definition("hamming"))
    with pytest.raises(IndexStrategyError):
        compiler.compile(QueryRequest(vector=[1, 0, 1]), schema, QuantizedStrategy("SQ8"))


def test_hybrid_weighted_sum_with_missing_signals(compiler, term_schema):
    request = QueryRequest(
        vector=[1, 2, 3],
        keywords="Neural network neural",
        weights=HybridWeights(vector=0.3, keyword=0.7),
        filter=Equals("category", "AI"),
    )
    compiled = compiler.compile(request, term_schema)
    sql = compiled.statement

    assert compiled.mode is QueryMode.HYBRID
    assert compiled.score_kind is ScoreKind.HYBRID
    assert (compiled.vector_weight, compiled.keyword_weight) == (0.3, 0.7)
    assert compiled.parameters["vector_weight"] == 0.3
    assert compiled.parameters["keyword_weight"] == 0.7
    assert compiled.parameters["kw0"] == "%neural%"
    assert compiled.parameters["kw1"] == "%network%"
    assert "kw2" not in compiled.parameters
    assert "LOWER(d.`term`) LIKE $kw0" in sql
    assert "$vector_weight * IFMISSINGORNULL(" in sql
    assert "$keyword_weight * IFMISSINGORNULL(" in sql
    assert "AS __vector_score" in sql and "AS __keyword_score" in sql
    # keyword-only candidates must not be dropped by a vector index
    assert "USE INDEX" not in sql
    assert "WHERE d.`category` = $f0" in sql
    assert sql.endswith(f"ORDER BY __score DESC LIMIT {request.top_k}")


def test_hybrid_distance_metric_maps_to_similarity(compiler):
    schema = SchemaReader().read(term_definition("euclidean"))
    compiled = compiler.compile(QueryRequest(vector=[1, 2, 3], keywords="ai"), schema)
    assert "(1 / (1 + APPROX_VECTOR_DISTANCE(d.`embedding`, $query_vector, \"l2\"))) AS __vector_score" \
        in compiled.statement


def test_hybrid_escapes_like_wildcards(compiler, term_schema):
    compiled = compiler.compile(QueryRequest(vector=[1, 2, 3], keywords="100%_sure"), term_schema)
    assert compiled.parameters["kw0"] == "%100\\%\\_sure%"


def test_hybrid_needs_full_text_property(compiler):
    schema = SchemaReader().read(RecordDefinition(name="plain", fields=[
        KeyField("id"), DataField("category", filterable=True), VectorField("v", dimensions=3),
    ]))
    with pytest.raises(CompileError):
        compiler.compile(QueryRequest(vector=[1, 2, 3], keywords="ai"), schema)


def test_negative_hybrid_weight_rejected(compiler, term_schema):
    request = QueryRequest(vector=[1, 2, 3], keywords="ai", weights=HybridWeights(vector=-1, keyword=1))
    with pytest.raises(CompileError):
        compiler.compile(request, term_schema)


def test_filtered_get(compiler, term_schema):
    from filtering.FilterCompiler import FilterCompiler

    fragment = FilterCompiler().compile(Equals("category", "AI"), term_schema)
    compiled = compiler.compile_filtered_get(term_schema, fragment, top=10, skip=20)

    assert compiled.mode is QueryMode.FILTERED_GET
    assert compiled.score_kind is ScoreKind.NONE
    assert "__score" not in compiled.statement
    assert compiled.statement.endswith("WHERE d.`category` = $f0 ORDER BY META(d).id LIMIT 10 OFFSET 20")
    assert compiled.parameters == {"f0": "AI"}


def test_compiler_is_reusable_across_requests(compiler, term_schema):
    first = compiler.compile(QueryRequest(vector=[1, 2, 3], filter=Equals("category", "AI")), term_schema)
    second = compiler.compile(QueryRequest(vector=[3, 2, 1]), term_schema)

    assert "f0" in first.parameters
    assert "f0" not in second.parameters
    assert second.parameters["query_vector"] == [3.0, 2.0, 1.0]


def test_search_index_hybrid_runs_keyword_and_knn_through_search(keyspace, term_schema):
    compiler = VectorQueryCompiler(keyspace, index_name="idx_terms", search_index_name="fts_terms")
    request = QueryRequest(
        vector=[0.1, 0.2, 0.3],
        top_k=5,
        filter=Equals("category", "AI"),
        keywords="Neural  network neural",
        weights=HybridWeights(0.4, 0.6),
    )

    compiled = compiler.compile_search_hybrid(request, term_schema)

    for side in (compiled.keyword, compiled.vector):
        assert side.mode is QueryMode.SEARCH_HYBRID
        assert side.score_kind is ScoreKind.SEARCH
        assert 'WHERE SEARCH(d, $search_request, {"index": "fts_terms"}) AND d.`category` = $f0' in side.statement
        assert "SEARCH_SCORE() AS __score" in side.statement
        assert side.statement.endswith("ORDER BY __score DESC LIMIT 100")
        assert side.parameters["f0"] == "AI"

    keyword_request = compiled.keyword.parameters["search_request"]
    assert keyword_request["query"] == {"disjuncts": [{"match": "neural network", "field": "term"}]}

    knn = compiled.vector.parameters["search_request"]["knn"][0]
    assert knn == {"field": "embedding", "vector": [0.1, 0.2, 0.3], "k": 100}
    assert compiled.vector.parameters["search_request"]["query"] == {"match_none": {}}

    assert (compiled.vector_weight, compiled.keyword_weight) == (0.4, 0.6)
    assert (compiled.top_k, compiled.skip, compiled.index_name) == (5, 0, "fts_terms")


def test_search_index_hybrid_pool_grows_with_paging(keyspace, term_schema):
    compiler = VectorQueryCompiler(keyspace, search_index_name="fts_terms")
    request = QueryRequest(vector=[1, 2, 3], top_k=100, skip=60, keywords="token")

    compiled = compiler.compile_search_hybrid(request, term_schema)
    assert compiled.keyword.statement.endswith("LIMIT 240")
    assert compiled.vector.parameters["search_request"]["knn"][0]["k"] == 240


@pytest.mark.parametrize("strategy, request_kwargs, metric, index", [
    (GraphStrategy(), {"keywords": "token"}, "cosine", "fts"),
    (None, {}, "cosine", "fts"),
    (None, {"keywords": "   "}, "cosine", "fts"),
    (None, {"keywords": "token"}, "hamming", "fts"),
    (None, {"keywords": "token"}, "cosine", None),
])
def test_search_index_hybrid_rejections(keyspace, monkeypatch, strategy, request_kwargs, metric, index):
    monkeypatch.setattr("settings.SEARCH_INDEX_NAME", "")
    compiler = VectorQueryCompiler(keyspace, search_index_name=index)
    schema = SchemaReader().read(term_definition(metric))

    with pytest.raises(CompileError):
        compiler.compile_search_hybrid(QueryRequest(vector=[1, 0, 1], **request_kwargs), schema, strategy)
