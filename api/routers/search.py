# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-12
# Description: search router
# -----------------------------------------------------------------------------
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_search_service
from api.schemas.search import HybridSearchRequest, SearchHit, SearchRequest, SearchResponse
from errors.ConnectorErrors import ConnectorError
from results.SearchResult import SearchResult
from services.SearchService import SearchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


def _response(query: str, req: SearchRequest, results: List[SearchResult]) -> SearchResponse:
    try:
        hits = [SearchHit(**h) for h in SearchService.to_hits(results, include_scores=req.include_scores)]
    except Exception as e:
        logger.exception("Failed to convert search results: %s", e)
        raise HTTPException(status_code=500, detail=f"Failed to convert results: {e}")
    return SearchResponse(query=query, top_k=req.top_k, results=hits)


@router.post("", response_model=SearchResponse)
def post_search(
    req: SearchRequest,
    svc: SearchService = Depends(get_search_service),
) -> SearchResponse:
    query_text = (req.query or "").strip()
    if not query_text:
        raise HTTPException(status_code=400, detail="query must not be empty")

    try:
        results = svc.search(
            query_text,
            top_k=req.top_k,
            skip=req.skip,
            filters=req.filters,
            include_vectors=req.include_vectors,
        )
    except ConnectorError as e:
        logger.warning("Search rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Search failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Search failed: {e}")

    return _response(query_text, req, results)


@router.post("/hybrid", response_model=SearchResponse)
def post_hybrid_search(
    req: HybridSearchRequest,
    svc: SearchService = Depends(get_search_service),
) -> SearchResponse:
    query_text = (req.query or "").strip()
    if not query_text:
        raise HTTPException(status_code=400, detail="query must not be empty")

    try:
        results = svc.hybrid_search(
            query_text,
            keywords=req.keywords,
            top_k=req.top_k,
            skip=req.skip,
            filters=req.filters,
            vector_weight=req.vector_weight,
            keyword_weight=req.keyword_weight,
            include_vectors=req.include_vectors,
        )
    except ConnectorError as e:
        logger.warning("Hybrid search rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Hybrid search failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Hybrid search failed: {e}")

    return _response(query_text, req, results)
