# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-13
# Description: records router
# -----------------------------------------------------------------------------
import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_ingest_service
from api.schemas.records import UpsertRecordsRequest, UpsertRecordsResponse
from services.IngestService import IngestService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/records", tags=["records"])


@router.post("", response_model=UpsertRecordsResponse)
def upsert_records(
    req: UpsertRecordsRequest,
    svc: IngestService = Depends(get_ingest_service),
) -> UpsertRecordsResponse:
    logger.info("POST /records (%d records)", len(req.records))
    try:
        result = svc.upsert_records(req.records)
    except Exception as e:
        logger.exception("Upsert failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Upsert failed: {e}")

    return UpsertRecordsResponse(succeeded=result.succeeded, failed=result.errors_as_text())
