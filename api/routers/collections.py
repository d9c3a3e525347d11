# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-12
# Description: collections router
# -----------------------------------------------------------------------------
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from api.dependencies import get_vector_collection
from api.schemas.collections import DropIndexResponse, EnsureResponse, IndexSpec
from errors.ConnectorErrors import ConnectorError
from index.IndexStrategy import FullTextStrategy
from store.CouchbaseVectorCollection import CouchbaseVectorCollection

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/collections", tags=["collections"])


@router.post("/ensure", response_model=EnsureResponse)
def ensure_collection(
    spec: Optional[IndexSpec] = Body(None),
    collection: CouchbaseVectorCollection = Depends(get_vector_collection),
) -> EnsureResponse:
    """
    Create the collection and an index if they are missing.
    Without a body the configured vector index is ensured.
    """
    name = (spec.name if spec and spec.name else None) or collection.index_name
    strategy = spec.to_strategy() if spec else collection.strategy
    vector_property = spec.vector_property if spec else None

    logger.info("POST /collections/ensure (index=%s, kind=%s)", name, strategy.kind.value)
    try:
        # validate before touching the cluster
        collection.registry.validate(collection.schema, strategy, vector_property)
        created = collection.manager.ensure_collection(timeout=collection.timeout)
        index_created = collection.manager.ensure_index(
            name, strategy, vector_property=vector_property, timeout=collection.timeout,
        )
    except ConnectorError as e:
        logger.warning("Ensure rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Ensure failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Ensure failed: {e}")

    return EnsureResponse(
        keyspace=str(collection.keyspace),
        collection_created=created,
        index_name=name,
        index_created=index_created,
    )


@router.delete("/indexes/{index_name}", response_model=DropIndexResponse)
def drop_index(
    index_name: str,
    full_text: bool = False,
    collection: CouchbaseVectorCollection = Depends(get_vector_collection),
) -> DropIndexResponse:
    logger.info("DELETE /collections/indexes/%s (full_text=%s)", index_name, full_text)
    try:
        dropped = collection.manager.drop_index(
            index_name, FullTextStrategy() if full_text else None, timeout=collection.timeout,
        )
    except Exception as e:
        logger.exception("Dropping index '%s' failed: %s", index_name, e)
        raise HTTPException(status_code=500, detail=f"Drop index failed: {e}")

    return DropIndexResponse(keyspace=str(collection.keyspace), index_name=index_name, dropped=dropped)
