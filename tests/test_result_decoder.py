# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-15
# Description: test_result_decoder.py
# -----------------------------------------------------------------------------
import math
from datetime import datetime

import pytest

from conftest import Term, term_definition
from errors.ConnectorErrors import DecodeError, InvalidScoreError, MissingFieldError
from query.CompiledQuery import CompiledQuery, CompiledSearch, QueryMode, ScoreKind
from results.ResultDecoder import ResultDecoder
from schema.RecordDefinition import DataField, KeyField, RecordDefinition, VectorField
from schema.SchemaReader import SchemaReader


def _rows():
    return [
        {"__key": "t1", "category": "AI", "term": "Neural network", "embedding": [0.1, 0.2, 0.3], "__score": 0.93},
        {"__key": "t2", "category": "ML", "term": "Gradient", "embedding": [0.3, 0.2, 0.1], "__score": 0.81},
        {"__key": "t3", "category": "AI", "term": "Token", "embedding": [0.0, 1.0, 0.0], "__score": 0.81},
    ]


def test_round_trip_preserves_fields_scores_and_order(term_schema):
    rows = _rows()
    results = ResultDecoder().decode(rows, term_schema)

    assert [r.record for r in results] == [
        Term(id=row["__key"], category=row["category"], term=row["term"], embedding=row["embedding"])
        for row in rows
    ]
    assert [r.score for r in results] == [row["__score"] for row in rows]


def test_dict_records_when_no_record_type():
    definition = term_definition()
    definition.record_type = None
    schema = SchemaReader().read(definition)

    results = ResultDecoder().decode(_rows()[:1], schema)
    assert results[0].record == {
        "id": "t1", "category": "AI", "term": "Neural network", "embedding": [0.1, 0.2, 0.3],
    }


def test_storage_names_map_back_to_properties():
    schema = SchemaReader().read(RecordDefinition(name="hotels", fields=[
        KeyField("hotel_id", storage_name="HotelId"),
        DataField("opened", "datetime", storage_name="Opened"),
        VectorField("embedding", dimensions=2, storage_name="Emb"),
    ]))
    rows = [{"HotelId": "h1", "Opened": "2024-05-01T10:00:00", "Emb": [1, 0], "__score": 0.5}]

    record = ResultDecoder().decode(rows, schema)[0].record
    assert record == {"hotel_id": "h1", "opened": datetime(2024, 5, 1, 10, 0), "embedding": [1.0, 0.0]}


def test_distance_scores_become_similarities(term_schema):
    compiled = CompiledQuery(statement="", score_kind=ScoreKind.DISTANCE)
    rows = [dict(_rows()[0], __score=0.0), dict(_rows()[1], __score=3.0)]

    results = ResultDecoder().decode(rows, term_schema, compiled)
    assert [r.score for r in results] == [1.0, 0.25]


@pytest.mark.parametrize("missing", ["__key", "embedding"])
def test_missing_key_or_vector_aborts_whole_decode(term_schema, missing):
    rows = _rows()
    del rows[2][missing]

    with pytest.raises(MissingFieldError) as exc:
        ResultDecoder().decode(rows, term_schema)
    assert exc.value.row_index == 2


def test_missing_data_property_is_none(term_schema):
    rows = _rows()[:1]
    del rows[0]["term"]
    assert ResultDecoder().decode(rows, term_schema)[0].record.term is None


@pytest.mark.parametrize("score", [math.nan, -math.inf, math.inf, "high", True, None])
def test_invalid_scores(term_schema, score):
    rows = _rows()
    rows[1]["__score"] = score

    with pytest.raises(DecodeError):
        ResultDecoder().decode(rows, term_schema)


def test_nan_is_invalid_score(term_schema):
    rows = _rows()
    rows[0]["__score"] = float("nan")
    with pytest.raises(InvalidScoreError):
        ResultDecoder().decode(rows, term_schema)


def test_negative_distance_is_invalid(term_schema):
    compiled = CompiledQuery(statement="", score_kind=ScoreKind.DISTANCE)
    with pytest.raises(InvalidScoreError):
        ResultDecoder().decode([dict(_rows()[0], __score=-0.5)], term_schema, compiled)


def test_wrong_vector_length(term_schema):
    rows = [dict(_rows()[0], embedding=[1.0, 2.0])]
    with pytest.raises(DecodeError):
        ResultDecoder().decode(rows, term_schema)


@pytest.mark.parametrize("embedding", [[1, "x", 3], [1.0, None, 0.0], [True, 0.0, 0.0]])
def test_non_numeric_vector_element_is_decode_error(term_schema, embedding):
    rows = _rows()
    rows[1]["embedding"] = embedding

    with pytest.raises(DecodeError) as exc:
        ResultDecoder().decode(rows, term_schema)
    assert "row 1" in str(exc.value)


def test_hybrid_keyword_only_candidate_keeps_weighted_keyword_score(term_schema):
    compiled = CompiledQuery(
        statement="",
        mode=QueryMode.HYBRID,
        score_kind=ScoreKind.HYBRID,
        vector_weight=0.3,
        keyword_weight=0.7,
    )
    rows = [
        {"__key": "both", "category": "AI", "term": "a", "embedding": [1, 0, 0],
         "__vector_score": 0.9, "__keyword_score": 0.5},
        # no vector stored, so no vector signal
        {"__key": "kw-only", "category": "AI", "term": "b", "__keyword_score": 0.5},
    ]

    results = ResultDecoder().decode(rows, term_schema, compiled)

    assert [r.record.id for r in results] == ["both", "kw-only"]
    assert results[0].score == pytest.approx(0.3 * 0.9 + 0.7 * 0.5)
    assert results[1].score == pytest.approx(0.7 * 0.5)
    assert results[1].vector_score == 0.0
    assert results[1].record.embedding is None


def test_include_vectors_false_drops_vectors(term_schema):
    results = ResultDecoder(include_vectors=False).decode(_rows(), term_schema)
    assert all(r.record.embedding is None for r in results)

    records = ResultDecoder().decode_records(_rows(), term_schema, include_vectors=False)
    assert records[0].embedding is None
    assert records[0].id == "t1"


def test_decode_refuses_scoreless_query(term_schema):
    compiled = CompiledQuery(statement="", mode=QueryMode.FILTERED_GET, score_kind=ScoreKind.NONE)
    with pytest.raises(DecodeError):
        ResultDecoder().decode(_rows(), term_schema, compiled)


def test_empty_rows(term_schema):
    assert ResultDecoder().decode([], term_schema) == []


def _search(vector_weight=0.5, keyword_weight=0.5, top_k=10, skip=0):
    side = CompiledQuery(statement="", mode=QueryMode.SEARCH_HYBRID, score_kind=ScoreKind.SEARCH)
    return CompiledSearch(
        keyword=side,
        vector=side,
        vector_weight=vector_weight,
        keyword_weight=keyword_weight,
        top_k=top_k,
        skip=skip,
    )


def _term_row(key, score, embedding=None):
    row = {"__key": key, "category": "AI", "term": key.upper(), "__score": score}
    if embedding is not None:
        row["embedding"] = embedding
    return row


def test_search_pools_merge_with_missing_component_as_zero(term_schema):
    keyword_rows = [_term_row("a", 4.0), _term_row("b", 2.0)]
    vector_rows = [_term_row("c", 0.9, [0, 1, 0]), _term_row("a", 0.5, [1, 0, 0])]

    results = ResultDecoder().decode_search(keyword_rows, vector_rows, term_schema, _search())

    assert [r.record.id for r in results] == ["a", "c", "b"]
    assert [r.score for r in results] == pytest.approx([0.75, 0.45, 0.25])
    assert (results[0].vector_score, results[0].keyword_score) == (0.5, 1.0)
    assert (results[1].vector_score, results[1].keyword_score) == (0.9, 0.0)
    assert (results[2].vector_score, results[2].keyword_score) == (0.0, 0.5)
    # keyword-only hit has no stored vector
    assert results[2].record.embedding is None
    assert results[0].record.embedding == [1.0, 0.0, 0.0]


def test_search_pools_are_paged_after_merging(term_schema):
    vector_rows = [_term_row(k, s, [1, 0, 0]) for k, s in [("a", 0.9), ("b", 0.8), ("c", 0.7), ("d", 0.6)]]

    results = ResultDecoder().decode_search([], vector_rows, term_schema, _search(top_k=2, skip=1))

    assert [r.record.id for r in results] == ["b", "c"]


@pytest.mark.parametrize("keyword_rows, vector_rows", [
    ([_term_row("a", -1.0)], []),
    ([_term_row("a", math.inf)], []),
    ([], [_term_row("a", "0.9", [1, 0, 0])]),
    ([{"category": "AI", "__score": 1.0}], []),
    ([], [{"__key": "a", "category": "AI", "embedding": [1, 0, 0]}]),
])
def test_bad_search_rows_abort_the_merge(term_schema, keyword_rows, vector_rows):
    with pytest.raises(DecodeError):
        ResultDecoder().decode_search(keyword_rows, vector_rows, term_schema, _search())
