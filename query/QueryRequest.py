# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-06
# Description: QueryRequest
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from typing import Optional, Sequence

import settings
from filtering.FilterPredicate import FilterPredicate


@dataclass(frozen=True)
class HybridWeights:
    """Coefficients of the weighted hybrid score. Defaults come from settings."""
    vector: float = settings.SEARCH_DEFAULTS["vector_weight"]
    keyword: float = settings.SEARCH_DEFAULTS["keyword_weight"]


@dataclass(frozen=True)
class QueryRequest:
    """
    One search. `keywords` switches the compiler into hybrid mode.
    Validation against the schema happens in VectorQueryCompiler.
    """
    vector: Sequence[float]
    top_k: int = settings.SEARCH_DEFAULTS["top_k"]
    skip: int = settings.SEARCH_DEFAULTS["skip"]
    filter: Optional[FilterPredicate] = None
    keywords: Optional[str] = None
    weights: HybridWeights = field(default_factory=HybridWeights)
    vector_property: Optional[str] = None

    @property
    def is_hybrid(self) -> bool:
        return self.keywords is not None

    def keyword_terms(self) -> list[str]:
        """Distinct, lower-cased whitespace-separated terms, in first-seen order."""
        seen: list[str] = []
        for term in (self.keywords or "").lower().split():
            if term not in seen:
                seen.append(term)
        return seen
