# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-11
# Description: SearchService
# -----------------------------------------------------------------------------
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Dict, List, Mapping, Optional

import settings
from embedding.Embedder import Embedder
from filtering.FilterPredicate import Equals, FilterPredicate, In, all_of
from query.QueryRequest import HybridWeights, QueryRequest
from results.SearchResult import SearchResult
from store.CouchbaseVectorCollection import CouchbaseVectorCollection, record_fields
from utility.logging_utils import get_class_logger


def filters_to_predicate(filters: Optional[Mapping[str, Any]]) -> Optional[FilterPredicate]:
    """
    {"category": "AI", "year": [2023, 2024]} ->
    Equals(category, "AI") AND In(year, (2023, 2024))
    """
    if not filters:
        return None
    leaves: List[FilterPredicate] = []
    for name, value in filters.items():
        if isinstance(value, (list, tuple, set)):
            leaves.append(In(name, tuple(value)))
        else:
            leaves.append(Equals(name, value))
    return all_of(*leaves)


class SearchService:
    """Text in, ranked records out: embeds the query and runs it on the collection."""

    def __init__(
        self,
        *,
        collection: CouchbaseVectorCollection,
        embedder: Embedder,
        logger: logging.Logger | None = None,
    ) -> None:
        self.collection = collection
        self.embedder = embedder
        self.logger = logger or get_class_logger(self.__class__)

    def ensure(self) -> None:
        self.collection.ensure()

    def search(
        self,
        query_text: str,
        *,
        top_k: int = settings.SEARCH_DEFAULTS["top_k"],
        skip: int = settings.SEARCH_DEFAULTS["skip"],
        filters: Optional[Mapping[str, Any]] = None,
        include_vectors: bool = False,
    ) -> List[SearchResult]:
        self.logger.info("Search query=%r (top_k=%d, skip=%d, filters=%s)", query_text, top_k, skip, filters)
        try:
            request = QueryRequest(
                vector=self.embedder.embed(query_text),
                top_k=top_k,
                skip=skip,
                filter=filters_to_predicate(filters),
            )
            return self.collection.search(request, include_vectors=include_vectors)
        except Exception as e:
            self.logger.error("Search failed for query=%r: %s", query_text, e, exc_info=True)
            raise

    def hybrid_search(
        self,
        query_text: str,
        *,
        keywords: Optional[str] = None,
        top_k: int = settings.SEARCH_DEFAULTS["top_k"],
        skip: int = settings.SEARCH_DEFAULTS["skip"],
        filters: Optional[Mapping[str, Any]] = None,
        vector_weight: Optional[float] = None,
        keyword_weight: Optional[float] = None,
        include_vectors: bool = False,
    ) -> List[SearchResult]:
        defaults = HybridWeights()
        weights = HybridWeights(
            vector=defaults.vector if vector_weight is None else vector_weight,
            keyword=defaults.keyword if keyword_weight is None else keyword_weight,
        )
        self.logger.info(
            "Hybrid search query=%r keywords=%r (top_k=%d, weights=%s/%s)",
            query_text,
            keywords,
            top_k,
            weights.vector,
            weights.keyword,
        )
        try:
            request = QueryRequest(
                vector=self.embedder.embed(query_text),
                top_k=top_k,
                skip=skip,
                filter=filters_to_predicate(filters),
                keywords=keywords if keywords is not None else query_text,
                weights=weights,
            )
            return self.collection.search(request, include_vectors=include_vectors)
        except Exception as e:
            self.logger.error("Hybrid search failed for query=%r: %s", query_text, e, exc_info=True)
            raise

    @staticmethod
    def to_hits(results: List[SearchResult], include_scores: bool = True) -> List[Dict[str, Any]]:
        """Flatten SearchResults into JSON-friendly dicts."""
        hits: List[Dict[str, Any]] = []
        for r in results:
            record = r.record
            if not isinstance(record, Mapping) and not dataclasses.is_dataclass(record):
                record = {"value": record}
            hit: Dict[str, Any] = {"record": record_fields(record)}
            if include_scores:
                hit["score"] = r.score
                if r.vector_score is not None:
                    hit["vector_score"] = r.vector_score
                if r.keyword_score is not None:
                    hit["keyword_score"] = r.keyword_score
            hits.append(hit)
        return hits
