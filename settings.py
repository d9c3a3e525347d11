# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-09
# Updated: 2026-02-03
# Description: settings.py
# -----------------------------------------------------------------------------
import os
from typing import Any, Dict


def _env(name: str, default: str = "") -> str:
    """Read env var safely and strip whitespace."""
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return int(v)
    except ValueError as e:
        raise RuntimeError(f"Env var {name} must be an int, got {v!r}") from e


def _env_float(name: str, default: float) -> float:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return float(v)
    except ValueError as e:
        raise RuntimeError(f"Env var {name} must be a float, got {v!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    v = _env(name, "")
    if v == "":
        return default
    v = v.lower()
    if v in ("1", "true", "t", "yes", "y", "on"):
        return True
    if v in ("0", "false", "f", "no", "n", "off"):
        return False
    raise RuntimeError(f"Env var {name} must be a boolean, got {v!r}")


# -----------------------------------------------------------------------------
# Vector index
# -----------------------------------------------------------------------------
VECTOR_INDEX_NAME = _env("CBV_VECTOR_INDEX_NAME", "")

# Search (FTS) index for hybrid search; empty keeps hybrid search on SQL++ LIKE scoring
SEARCH_INDEX_NAME = _env("CBV_SEARCH_INDEX_NAME", "")

# Smallest candidate pool each side of a search-index hybrid query fetches
SEARCH_MIN_CANDIDATES = _env_int("CBV_SEARCH_MIN_CANDIDATES", 100)

# One of: cosine, dot_product, euclidean, euclidean_squared, hamming
SIMILARITY_METRIC = _env("CBV_SIMILARITY_METRIC", "cosine")

VECTOR_DIMENSIONS = _env_int("CBV_VECTOR_DIMENSIONS", 1536)

# Quantization/description string, e.g. "IVF,SQ8", "IVF1024,PQ32x8".
# Empty means "take whatever the index strategy declares".
QUANTIZATION = _env("CBV_QUANTIZATION", "")

# Graph (HNSW-style) defaults, used by IndexStrategyRegistry.default_strategy()
GRAPH_NEIGHBOR_COUNT = _env_int("CBV_GRAPH_NEIGHBOR_COUNT", 16)
GRAPH_CONSTRUCTION_FACTOR = _env_int("CBV_GRAPH_CONSTRUCTION_FACTOR", 200)


# -----------------------------------------------------------------------------
# Search() defaults (env-controlled)
# -----------------------------------------------------------------------------
SEARCH_DEFAULTS: Dict[str, Any] = {
    "top_k": _env_int("CBV_DEFAULT_TOP_K", 5),
    "skip": _env_int("CBV_DEFAULT_SKIP", 0),
    # hybrid weighting: vector similarity vs keyword relevance
    "vector_weight": _env_float("CBV_HYBRID_VECTOR_WEIGHT", 0.5),
    "keyword_weight": _env_float("CBV_HYBRID_KEYWORD_WEIGHT", 0.5),
}

# Schema reader flags
REQUIRE_VECTOR_PROPERTY = _env_bool("CBV_REQUIRE_VECTOR_PROPERTY", True)
ALLOW_MULTIPLE_KEYS = _env_bool("CBV_ALLOW_MULTIPLE_KEYS", False)


# -----------------------------------------------------------------------------
# Ingestion
# -----------------------------------------------------------------------------
INGEST_MAX_WORKERS = _env_int("CBV_INGEST_MAX_WORKERS", 4)
INGEST_BATCH_SIZE = _env_int("CBV_INGEST_BATCH_SIZE", 64)

# Timeout (seconds) handed to native calls; 0 means "SDK default"
NATIVE_TIMEOUT_SECONDS = _env_float("CBV_NATIVE_TIMEOUT_SECONDS", 0.0)


# -----------------------------------------------------------------------------
# Sanity checks (tunable)
# -----------------------------------------------------------------------------
if SEARCH_DEFAULTS["top_k"] < 1:
    raise RuntimeError("CBV_DEFAULT_TOP_K must be >= 1")

if SEARCH_DEFAULTS["skip"] < 0:
    raise RuntimeError("CBV_DEFAULT_SKIP must be >= 0")

if SEARCH_DEFAULTS["vector_weight"] < 0 or SEARCH_DEFAULTS["keyword_weight"] < 0:
    raise RuntimeError("Hybrid weights must be non-negative")

if SEARCH_MIN_CANDIDATES < 1:
    raise RuntimeError("CBV_SEARCH_MIN_CANDIDATES must be >= 1")

if VECTOR_DIMENSIONS < 1:
    raise RuntimeError("CBV_VECTOR_DIMENSIONS must be >= 1")

if INGEST_MAX_WORKERS < 1 or INGEST_BATCH_SIZE < 1:
    raise RuntimeError("CBV_INGEST_MAX_WORKERS and CBV_INGEST_BATCH_SIZE must be >= 1")
