# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-04
# Description: IndexStrategy
# -----------------------------------------------------------------------------
import re
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union


class StrategyKind(str, Enum):
    GRAPH = "graph"
    QUANTIZED = "quantized"
    COMPOSITE = "composite"
    FULL_TEXT = "full_text"


# SQ4 / SQ6 / SQ8 / SQfp16, or PQ<subquantizers>x<bits>
_QUANTIZATION_RE = re.compile(r"^(?:SQ(?:4|6|8|FP16)|PQ(?P<m>\d+)X(?P<bits>\d+))$")
_IVF_RE = re.compile(r"^IVF(?P<n>\d*)$", re.IGNORECASE)


def normalize_quantization(value: Optional[str]) -> Optional[str]:
    """
    Reduce a quantization setting to its scheme, upper-cased. Comparison only;
    index DDL uses canonical_quantization().

      "IVF1024,SQ8" -> "SQ8"
      "pq32x8"      -> "PQ32X8"
      "" / None     -> None
    """
    if value is None:
        return None
    text = value.strip().upper()
    if not text:
        return None
    if "," in text:
        text = text.split(",", 1)[1].strip()
    return text or None


def canonical_quantization(value: Optional[str]) -> Optional[str]:
    """
    Scheme in the engine's spelling: "sq8" -> "SQ8", "sqFP16" -> "SQfp16",
    "pq32X8" -> "PQ32x8". Unrecognised text is returned as given.
    """
    scheme = normalize_quantization(value)
    if scheme is None:
        return None
    m = _QUANTIZATION_RE.match(scheme)
    if not m:
        return value.split(",", 1)[-1].strip()
    if m.group("m") is not None:
        return f"PQ{m.group('m')}x{m.group('bits')}"
    return "SQfp16" if scheme == "SQFP16" else scheme


def ivf_centroids(value: Optional[str]) -> Optional[int]:
    """Centroid count from an "IVF<n>,..." prefix; None when absent or unsized."""
    if not value or "," not in value:
        return None
    m = _IVF_RE.match(value.split(",", 1)[0].strip())
    if not m or not m.group("n"):
        return None
    return int(m.group("n"))


def parse_product_quantization(scheme: str) -> Optional[Tuple[int, int]]:
    """(subquantizers, bits) for a PQ scheme, None for scalar schemes or junk."""
    m = _QUANTIZATION_RE.match(scheme)
    if not m or m.group("m") is None:
        return None
    return int(m.group("m")), int(m.group("bits"))


def is_valid_quantization(scheme: str) -> bool:
    return _QUANTIZATION_RE.match(scheme) is not None


@dataclass(frozen=True)
class GraphStrategy:
    """HNSW-style approximate graph index."""
    neighbor_count: int = 16
    construction_factor: int = 200

    kind: ClassVar[StrategyKind] = StrategyKind.GRAPH

    @property
    def quantization(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class QuantizedStrategy:
    """
    Inverted-file approximate index with quantized storage (Hyperscale/BHIVE).
    `centroids` of None lets the engine size the IVF list itself; an
    "IVF<n>,..." quantization string supplies it when not given.
    """
    quantization: str = "SQ8"
    centroids: Optional[int] = None
    centroids_to_probe: Optional[int] = None

    kind: ClassVar[StrategyKind] = StrategyKind.QUANTIZED

    def __post_init__(self) -> None:
        if self.centroids is None:
            object.__setattr__(self, "centroids", ivf_centroids(self.quantization))

    @property
    def scheme(self) -> Optional[str]:
        return normalize_quantization(self.quantization)

    @property
    def description(self) -> str:
        ivf = f"IVF{self.centroids}" if self.centroids else "IVF"
        return f"{ivf},{canonical_quantization(self.quantization)}"


@dataclass(frozen=True)
class CompositeStrategy:
    """
    Exact (full distance computation) vector + scalar composite index.
    `scalar_keys` defaults to the schema's filterable / full-text properties.
    """
    scalar_keys: Tuple[str, ...] = ()
    quantization: Optional[str] = None

    kind: ClassVar[StrategyKind] = StrategyKind.COMPOSITE


@dataclass(frozen=True)
class FullTextStrategy:
    analyzer: str = "standard"

    kind: ClassVar[StrategyKind] = StrategyKind.FULL_TEXT

    @property
    def quantization(self) -> Optional[str]:
        return None


IndexStrategy = Union[GraphStrategy, QuantizedStrategy, CompositeStrategy, FullTextStrategy]


def strategy_quantization(strategy: IndexStrategy) -> Optional[str]:
    """Quantization scheme a strategy stores vectors with (None = unquantized)."""
    if isinstance(strategy, QuantizedStrategy):
        return strategy.scheme
    return normalize_quantization(strategy.quantization)
