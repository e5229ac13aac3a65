# backend/civicmatch/services/unmapped_terms.py
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from civicmatch.database.models import UnmappedTerm

logger = logging.getLogger(__name__)


def record_unmapped_terms(
    db: Session,
    terms: Sequence[str],
    *,
    strategy: str,
    zip_code: Optional[str] = None,
) -> List[UnmappedTerm]:
    """Persist priorities that did not map to any category. Caller owns the transaction."""
    rows = [
        UnmappedTerm(text=t.strip(), strategy=strategy, zip_code=zip_code)
        for t in terms
        if isinstance(t, str) and t.strip()
    ]
    if not rows:
        return []

    db.add_all(rows)
    db.flush()
    logger.info("Recorded %d unmapped priorities (strategy=%s)", len(rows), strategy)
    return rows


def list_unmapped_terms(db: Session, *, limit: int = 50, strategy: Optional[str] = None) -> List[UnmappedTerm]:
    q = db.query(UnmappedTerm)
    if strategy:
        q = q.filter(UnmappedTerm.strategy == strategy)
    return q.order_by(UnmappedTerm.created_at.desc(), UnmappedTerm.id.desc()).limit(max(1, int(limit))).all()


__all__ = ["record_unmapped_terms", "list_unmapped_terms"]
