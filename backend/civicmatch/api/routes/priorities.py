# backend/civicmatch/api/routes/priorities.py

"""
CivicMatch Backend: Priority Routes

Exposes:
- POST /api/priorities/analyze
    - maps every submitted priority (plus feedback priorities) to policy terms
    - unmapped priorities are stored for taxonomy curation
- GET  /api/priorities/unmapped
"""

from __future__ import annotations

import logging
import time
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.orm import Session

from civicmatch.api.routes.terminology import resolve_mapper
from civicmatch.api.utils.responses import create_response, elapsed_seconds
from civicmatch.config import settings
from civicmatch.database.connection import get_db
from civicmatch.services.priority_analysis import analyze_priorities
from civicmatch.services.terminology_definitions import get_taxonomy
from civicmatch.services.unmapped_terms import list_unmapped_terms, record_unmapped_terms

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/priorities", tags=["priorities"])

MAX_PRIORITIES = 12


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------

class AnalyzePrioritiesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mode: Literal["current", "demo"] = "current"
    zip_code: Optional[str] = Field(default=None, alias="zipCode", pattern=r"^\d{5}$")
    priorities: List[str] = Field(..., min_length=1, max_length=MAX_PRIORITIES)
    feedback_priorities: List[str] = Field(default_factory=list, alias="feedbackPriorities")
    strategy: Optional[str] = Field(default=None, description="scored | keyword")
    threshold: Optional[float] = Field(default=None, description="Minimum score for a category to count")

    @field_validator("priorities", "feedback_priorities")
    @classmethod
    def limit_priority_length(cls, v: List[str]) -> List[str]:
        limit = settings.MAX_PRIORITY_LENGTH
        for p in v:
            if len(p) > limit:
                raise ValueError(f"Priority must not exceed {limit} characters")
        return v


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/analyze")
async def analyze(payload: AnalyzePrioritiesRequest, db: Session = Depends(get_db)):
    started = time.perf_counter()
    mapper = resolve_mapper(payload.strategy)
    all_priorities = list(payload.priorities) + list(payload.feedback_priorities)

    result = analyze_priorities(
        all_priorities,
        taxonomy=get_taxonomy(),
        mapper=mapper,
        threshold=payload.threshold,
    )

    if result.unmapped_terms:
        record_unmapped_terms(db, result.unmapped_terms, strategy=mapper.name, zip_code=payload.zip_code)
        db.commit()

    data = result.to_dict()
    data["mode"] = payload.mode
    data["zipCode"] = payload.zip_code
    data["priorities"] = all_priorities

    return create_response(
        success=True,
        data=data,
        processing_time=elapsed_seconds(started),
        meta={"submitted": len(all_priorities), "evaluated": len(result.priority_mappings)},
    )


@router.get("/unmapped")
async def unmapped(
    limit: int = Query(default=50, ge=1, le=500),
    strategy: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    rows = list_unmapped_terms(db, limit=limit, strategy=strategy)
    return create_response(success=True, data=[r.to_dict() for r in rows], meta={"count": len(rows)})
