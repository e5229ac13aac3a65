"""
backend/civicmatch/services/terminology_mapping.py

Statement -> policy-term mapping strategies.

Two interchangeable strategies share one contract, map_statement(statement, taxonomy):

- "scored":  runs the lexical category scorer over every scorable category and keeps
             results where anything happened (score != 0 or a non-empty detail trail).
             Results come back in taxonomy order; ranking is the caller's job.
- "keyword": single-keyword substring lookup in a small static table, first-match
             accumulation capped at MAX_KEYWORD_TERMS terms, two generic default terms
             when nothing matches. No scoring, no nuance, no gating.

Both validate the statement first and raise InvalidInputError before touching the taxonomy.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from civicmatch.exceptions import ConfigurationError, InvalidInputError
from civicmatch.services.terminology_definitions import TaxonomyStore, get_taxonomy
from civicmatch.services.terminology_scoring import (
    DEFAULT_TERM,
    KEYWORD,
    ScoreEvent,
    ScoreResult,
    score_category,
)

logger = logging.getLogger(__name__)

# =============================================================================
# KEYWORD TABLE (keyword strategy)
# =============================================================================

# Ordered; iteration order decides which terms win the three slots.
KEYWORD_TERMS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("tax", ("Tax Policy", "Government Spending")),
    ("health", ("Healthcare Access", "Public Health")),
    ("climate", ("Climate Change Mitigation", "Environmental Protection")),
    ("environment", ("Environmental Protection",)),
    ("school", ("Education Funding",)),
    ("education", ("Education Funding", "Higher Education Affordability")),
    ("crime", ("Public Safety", "Criminal Justice Reform")),
    ("safety", ("Public Safety",)),
    ("immigra", ("Immigration Reform", "Border Security")),
    ("job", ("Job Creation", "Economic Growth")),
    ("business", ("Small Business Support", "Economic Growth")),
    ("housing", ("Affordable Housing",)),
    ("renters", ("Affordable Housing", "Tenant Protections")),
    ("gun", ("Gun Policy",)),
    ("abortion", ("Reproductive Rights",)),
    ("vote", ("Voting Rights", "Election Integrity")),
    ("freedom", ("Civil Liberties",)),
    ("privacy", ("Civil Liberties", "Data Privacy")),
    ("arts", ("Arts and Culture Funding",)),
)

DEFAULT_KEYWORD_TERMS: Tuple[str, str] = ("General Policy Interest", "Civic Engagement")


def _term_key(term: str) -> str:
    words = re.findall(r"[A-Za-z0-9]+", term)
    if not words:
        return term
    return words[0].lower() + "".join(w.capitalize() for w in words[1:])


# =============================================================================
# VALIDATION
# =============================================================================

def validate_statement(statement: Any) -> str:
    if statement is None:
        raise InvalidInputError("Input must be a non-empty string", {"reason": "missing"})
    if not isinstance(statement, str):
        raise InvalidInputError(
            "Input must be a non-empty string",
            {"reason": "not_a_string", "type": type(statement).__name__},
        )
    if statement == "":
        raise InvalidInputError("Input must be a non-empty string", {"reason": "empty"})
    return statement


# =============================================================================
# STRATEGIES
# =============================================================================

class TermMapper(ABC):
    name: str = "base"

    @abstractmethod
    def map_statement(self, statement: Any, taxonomy: Optional[TaxonomyStore] = None) -> List[ScoreResult]:
        raise NotImplementedError

    def is_meaningful(self, result: ScoreResult, threshold: float) -> bool:
        return result.score >= threshold

    def contribution(self, result: ScoreResult) -> float:
        """Weight a meaningful result adds to its category's confidence score."""
        return result.score


class ScoredTermMapper(TermMapper):
    """Multi-signal lexical scorer over every non-fallback category."""

    name = "scored"

    def map_statement(self, statement: Any, taxonomy: Optional[TaxonomyStore] = None) -> List[ScoreResult]:
        text = validate_statement(statement)
        store = taxonomy if taxonomy is not None else get_taxonomy()

        results: List[ScoreResult] = []
        for category in store:
            result = score_category(text, category, store.nuance_triggers)
            if result.score != 0 or result.events:
                results.append(result)

        logger.debug("Scored mapping produced %d/%d results", len(results), len(store))
        return results


class KeywordTermMapper(TermMapper):
    """Keyword-only fallback mapper: at most `max_terms` distinct terms, in table order."""

    name = "keyword"

    def __init__(
        self,
        keyword_terms: Sequence[Tuple[str, Sequence[str]]] = KEYWORD_TERMS,
        default_terms: Sequence[str] = DEFAULT_KEYWORD_TERMS,
        max_terms: Optional[int] = None,
    ):
        if max_terms is None:
            from civicmatch.config import settings

            max_terms = settings.MAX_KEYWORD_TERMS
        self.keyword_terms = tuple((str(k), tuple(v)) for k, v in keyword_terms)
        self.default_terms = tuple(default_terms)
        self.max_terms = int(max_terms)

    def map_statement(self, statement: Any, taxonomy: Optional[TaxonomyStore] = None) -> List[ScoreResult]:
        # The keyword table is static; the taxonomy argument is accepted for contract parity.
        text = validate_statement(statement).lower()

        results: List[ScoreResult] = []
        seen = set()
        for keyword, terms in self.keyword_terms:
            if len(results) >= self.max_terms:
                break
            if keyword.lower() not in text:
                continue
            for term in terms:
                if term in seen:
                    continue
                if len(results) >= self.max_terms:
                    break
                seen.add(term)
                results.append(ScoreResult(
                    category_key=_term_key(term),
                    standard_term=term,
                    plain_english="",
                    score=0.0,
                    events=(ScoreEvent(KEYWORD, keyword, 0.0),),
                ))

        if not results:
            return [
                ScoreResult(
                    category_key=_term_key(term),
                    standard_term=term,
                    plain_english="",
                    score=0.0,
                    events=(ScoreEvent(DEFAULT_TERM, term, 0.0),),
                    is_default=True,
                )
                for term in self.default_terms
            ]
        return results

    def is_meaningful(self, result: ScoreResult, threshold: float) -> bool:
        return not result.is_default

    def contribution(self, result: ScoreResult) -> float:
        # keyword hits carry no score; each one counts once
        return 0.0 if result.is_default else 1.0


_MAPPERS = {
    ScoredTermMapper.name: ScoredTermMapper,
    KeywordTermMapper.name: KeywordTermMapper,
}


def available_strategies() -> List[str]:
    return list(_MAPPERS.keys())


def get_mapper(name: Optional[str] = None) -> TermMapper:
    if not name:
        from civicmatch.config import settings

        name = settings.DEFAULT_MAPPING_STRATEGY
    key = str(name).strip().lower()
    cls = _MAPPERS.get(key)
    if cls is None:
        raise ConfigurationError(
            f"Unknown mapping strategy: {name}",
            {"available": available_strategies()},
        )
    return cls()


def map_statement(
    statement: Any,
    taxonomy: Optional[TaxonomyStore] = None,
    strategy: Optional[str] = None,
) -> List[ScoreResult]:
    return get_mapper(strategy).map_statement(statement, taxonomy)


def rank_results(results: Sequence[ScoreResult]) -> List[ScoreResult]:
    """Presentation order: highest score first, taxonomy order among ties."""
    return sorted(results, key=lambda r: r.score, reverse=True)


def results_payload(results: Sequence[ScoreResult]) -> Dict[str, Any]:
    return {"results": [r.to_dict() for r in results]}


__all__ = [
    "KEYWORD_TERMS",
    "DEFAULT_KEYWORD_TERMS",
    "validate_statement",
    "TermMapper",
    "ScoredTermMapper",
    "KeywordTermMapper",
    "available_strategies",
    "get_mapper",
    "map_statement",
    "rank_results",
    "results_payload",
]
