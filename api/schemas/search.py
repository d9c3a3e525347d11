# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-12
# Description: search.py
# -----------------------------------------------------------------------------
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

import settings


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    top_k: int = Field(settings.SEARCH_DEFAULTS["top_k"], ge=1, le=100)
    skip: int = Field(settings.SEARCH_DEFAULTS["skip"], ge=0)
    # property name -> value (equality) or list of values (IN)
    filters: Optional[Dict[str, Any]] = None
    include_vectors: bool = False
    include_scores: bool = True


class HybridSearchRequest(SearchRequest):
    # defaults to the query text
    keywords: Optional[str] = None
    vector_weight: Optional[float] = Field(None, ge=0)
    keyword_weight: Optional[float] = Field(None, ge=0)


class SearchHit(BaseModel):
    record: Dict[str, Any]
    score: Optional[float] = None
    vector_score: Optional[float] = None
    keyword_score: Optional[float] = None


class SearchResponse(BaseModel):
    query: str
    top_k: int
    results: List[SearchHit]
