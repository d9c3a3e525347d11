# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-10
# Description: Embedder
# -----------------------------------------------------------------------------

from typing import List, Protocol, Sequence, runtime_checkable


@runtime_checkable
class Embedder(Protocol):
    """Text -> vector collaborator. Failures propagate to the caller."""

    def embed(self, text: str) -> List[float]:
        ...

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        ...
