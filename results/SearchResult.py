# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-07
# Description: SearchResult
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class SearchResult:
    """
    One ranked hit. `score` is always a similarity (higher is closer).
    The component scores are only set for hybrid searches.
    """
    record: Any
    score: float
    vector_score: Optional[float] = None
    keyword_score: Optional[float] = None
