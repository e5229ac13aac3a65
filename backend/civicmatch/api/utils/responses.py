"""
backend/civicmatch/api/utils/responses.py

Response helpers shared by the routers and the exception handlers.

Two shapes are in use:
- the envelope (`create_response`) for pipeline / listing endpoints
- the bare error body (`error_payload`) required by the terminology debug contract:
  {"error": "<message>", ...}
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Dict, Optional


def now_z() -> str:
    return datetime.utcnow().isoformat() + "Z"


def elapsed_seconds(started: float) -> float:
    return round(time.perf_counter() - started, 4)


def create_response(
    *,
    success: bool,
    data: Any = None,
    message: str = "",
    error: Optional[Any] = None,
    processing_time: Optional[float] = None,
    meta: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    return {
        "success": bool(success),
        "data": data,
        "message": message or "",
        "error": error,
        "processing_time": processing_time,
        "timestamp": now_z(),
        "meta": meta,
    }


def error_payload(message: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": message}
    body.update({k: v for k, v in extra.items() if v is not None})
    body["timestamp"] = now_z()
    return body


__all__ = ["now_z", "elapsed_seconds", "create_response", "error_payload"]
