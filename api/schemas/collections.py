# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-12
# Description: collections.py
# -----------------------------------------------------------------------------
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from index.IndexStrategy import (
    CompositeStrategy,
    FullTextStrategy,
    GraphStrategy,
    IndexStrategy,
    QuantizedStrategy,
)


class IndexSpec(BaseModel):
    """Wire form of an index strategy; only the fields of the chosen kind are used."""
    name: Optional[str] = None
    kind: Literal["graph", "quantized", "composite", "full_text"] = "graph"
    vector_property: Optional[str] = None

    # graph
    neighbor_count: int = Field(16, ge=1)
    construction_factor: int = Field(200, ge=1)

    # quantized / composite
    quantization: Optional[str] = None
    centroids: Optional[int] = Field(None, ge=1)
    centroids_to_probe: Optional[int] = Field(None, ge=1)

    # composite
    scalar_keys: List[str] = Field(default_factory=list)

    # full text
    analyzer: str = "standard"

    def to_strategy(self) -> IndexStrategy:
        if self.kind == "quantized":
            return QuantizedStrategy(
                quantization=self.quantization or "SQ8",
                centroids=self.centroids,
                centroids_to_probe=self.centroids_to_probe,
            )
        if self.kind == "composite":
            return CompositeStrategy(scalar_keys=tuple(self.scalar_keys), quantization=self.quantization)
        if self.kind == "full_text":
            return FullTextStrategy(analyzer=self.analyzer)
        return GraphStrategy(neighbor_count=self.neighbor_count, construction_factor=self.construction_factor)


class EnsureResponse(BaseModel):
    keyspace: str
    collection_created: bool
    index_name: Optional[str] = None
    index_created: Optional[bool] = None


class DropIndexResponse(BaseModel):
    keyspace: str
    index_name: str
    dropped: bool
