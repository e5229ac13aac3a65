# backend/civicmatch/api/routes/terminology.py

"""
CivicMatch Backend: Terminology Routes

Exposes:
- POST /api/terminology/debug
    - body {"input": "<statement>"} -> {"results": [...]}, taxonomy order unless ranked=true
- GET  /api/terminology/categories
- GET  /api/terminology/strategies
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from civicmatch.api.utils.responses import create_response
from civicmatch.config import settings
from civicmatch.exceptions import ConfigurationError
from civicmatch.services.terminology_definitions import get_taxonomy
from civicmatch.services.terminology_mapping import (
    TermMapper,
    available_strategies,
    get_mapper,
    rank_results,
    results_payload,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/terminology", tags=["terminology"])


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------

class TerminologyDebugRequest(BaseModel):
    # non-string input is rejected by the mapper (400), not by request validation (422)
    input: Any = Field(default=None, description="Free-text priority statement")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def resolve_mapper(strategy: Optional[str]) -> TermMapper:
    try:
        return get_mapper(strategy)
    except ConfigurationError as e:
        if strategy:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
        raise


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/debug")
async def debug_terminology(
    payload: TerminologyDebugRequest,
    strategy: Optional[str] = Query(default=None, description="scored | keyword"),
    ranked: bool = Query(default=False, description="Sort by score, highest first"),
):
    mapper = resolve_mapper(strategy)
    # the mapper validates the input before loading the taxonomy
    results = mapper.map_statement(payload.input)
    if ranked:
        results = rank_results(results)
    logger.info("Debug mapping (%s) returned %d results", mapper.name, len(results))
    return results_payload(results)


@router.get("/categories")
async def list_categories():
    taxonomy = get_taxonomy()
    return create_response(
        success=True,
        data=taxonomy.to_dict(),
        meta={"total": len(taxonomy), "source": settings.TAXONOMY_PATH or "built-in"},
    )


@router.get("/strategies")
async def list_strategies():
    return create_response(
        success=True,
        data={"strategies": available_strategies(), "default": settings.DEFAULT_MAPPING_STRATEGY},
    )
