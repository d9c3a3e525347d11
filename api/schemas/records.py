# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-13
# Description: records.py
# -----------------------------------------------------------------------------
from typing import Any, Dict, List

from pydantic import BaseModel, Field


class UpsertRecordsRequest(BaseModel):
    # property name -> value; records without a vector are embedded from their text
    records: List[Dict[str, Any]] = Field(..., min_length=1)


class UpsertRecordsResponse(BaseModel):
    succeeded: List[str]
    failed: Dict[str, str]
