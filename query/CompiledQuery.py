# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-06
# Description: CompiledQuery
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

# Reserved result columns
KEY_COLUMN = "__key"
SCORE_COLUMN = "__score"
VECTOR_SCORE_COLUMN = "__vector_score"
KEYWORD_SCORE_COLUMN = "__keyword_score"


class QueryMode(str, Enum):
    VECTOR = "vector"
    HYBRID = "hybrid"
    FILTERED_GET = "filtered_get"
    SEARCH_HYBRID = "search_hybrid"


class ScoreKind(str, Enum):
    """What the native __score column holds."""
    SIMILARITY = "similarity"   # higher is closer
    DISTANCE = "distance"       # lower is closer
    HYBRID = "hybrid"           # weighted sum of similarity-scaled components
    SEARCH = "search"           # search service relevance, higher is closer
    NONE = "none"


@dataclass(frozen=True)
class CompiledQuery:
    statement: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    mode: QueryMode = QueryMode.VECTOR
    score_kind: ScoreKind = ScoreKind.SIMILARITY
    vector_weight: Optional[float] = None
    keyword_weight: Optional[float] = None
    index_name: Optional[str] = None


@dataclass(frozen=True)
class CompiledSearch:
    """
    Hybrid search over a search (FTS) index: one keyword statement and one
    kNN statement, each returning a candidate pool. The decoder merges the
    pools with the weights below and cuts the [skip, skip + top_k) page.
    """
    keyword: CompiledQuery
    vector: CompiledQuery
    vector_weight: float
    keyword_weight: float
    top_k: int
    skip: int = 0
    index_name: Optional[str] = None
