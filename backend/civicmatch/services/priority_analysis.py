# backend/civicmatch/services/priority_analysis.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set

from civicmatch.services.terminology_definitions import TaxonomyStore, get_taxonomy
from civicmatch.services.terminology_mapping import TermMapper, get_mapper, rank_results
from civicmatch.services.terminology_scoring import ScoreResult

logger = logging.getLogger(__name__)

TOP_TERMS_IN_ANALYSIS = 3

ANALYSIS_INTRO = (
    "Based on your priorities, we've identified several key policy areas that align with your concerns. "
)
ANALYSIS_OUTRO = (
    "\n\nOur system has mapped your personal concerns to standardized policy terms that can help you "
    "compare candidates and issues. Please review our mapping and let us know if we've missed anything "
    "important to you."
)
ANALYSIS_NO_MATCH = (
    "We couldn't clearly identify specific policy areas from your input. "
    "Please review our mapping or try providing more specific concerns."
)


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class PriorityMapping:
    index: int
    user_concern: str
    results: List[ScoreResult] = field(default_factory=list)
    meaningful: List[ScoreResult] = field(default_factory=list)
    mapped_terms: List[str] = field(default_factory=list)

    @property
    def is_mapped(self) -> bool:
        return bool(self.meaningful)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "userConcern": self.user_concern,
            "mappedTerms": list(self.mapped_terms),
            "categories": [r.category_key for r in self.meaningful],
        }


@dataclass
class PriorityAnalysis:
    strategy: str
    mapped_priorities: List[str]
    priority_mappings: List[PriorityMapping]
    unmapped_terms: List[str]
    conflicting_priorities: List[str]
    term_scores: Dict[str, float]
    analysis: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "mappedPriorities": list(self.mapped_priorities),
            "priorityMappings": [m.to_dict() for m in self.priority_mappings],
            "priorityToTermsMap": {m.index: list(m.mapped_terms) for m in self.priority_mappings},
            "unmappedTerms": list(self.unmapped_terms),
            "conflictingPriorities": list(self.conflicting_priorities),
            "confidenceScores": {k: round(v, 4) for k, v in self.term_scores.items()},
            "analysis": self.analysis,
        }


# =============================================================================
# PIPELINE
# =============================================================================

def _build_analysis(top: List[ScoreResult], fallback_text: str) -> str:
    if not top:
        return ANALYSIS_INTRO + ANALYSIS_NO_MATCH + " " + fallback_text
    descriptions = [r.plain_english or f"interests related to {r.standard_term}" for r in top]
    return ANALYSIS_INTRO + "Your priorities most strongly relate to " + ", ".join(descriptions) + "." + ANALYSIS_OUTRO


def _find_conflicts(mappings: Sequence[PriorityMapping]) -> List[str]:
    """Category keys supported by one priority and opposed (exclusion / negative nuance) by another."""
    supporters: Dict[str, Set[int]] = {}
    opposers: Dict[str, Set[int]] = {}
    order: List[str] = []

    for m in mappings:
        for r in m.meaningful:
            supporters.setdefault(r.category_key, set()).add(m.index)
            if r.category_key not in order:
                order.append(r.category_key)
        for r in m.results:
            if any(e.is_opposing for e in r.events):
                opposers.setdefault(r.category_key, set()).add(m.index)

    return [k for k in order if supporters.get(k, set()) and (opposers.get(k, set()) - supporters[k])]


def analyze_priorities(
    priorities: Sequence[str],
    taxonomy: Optional[TaxonomyStore] = None,
    mapper: Optional[TermMapper] = None,
    threshold: Optional[float] = None,
) -> PriorityAnalysis:
    """
    Map each user priority independently and aggregate:

    - mapped_priorities: category keys by summed meaningful score (ties keep first appearance)
    - unmapped_terms:    priorities with no meaningful result
    - conflicting_priorities: see _find_conflicts
    - analysis:          narrative from the top restatements (fallback text when nothing mapped)

    Blank priorities are skipped entirely.
    """
    if threshold is None:
        from civicmatch.config import settings

        threshold = settings.MEANINGFUL_SCORE_THRESHOLD

    store = taxonomy if taxonomy is not None else get_taxonomy()
    mapper = mapper or get_mapper()
    fallback = store.get_fallback()

    mappings: List[PriorityMapping] = []
    term_scores: Dict[str, float] = {}
    best: Dict[str, ScoreResult] = {}

    for index, priority in enumerate(priorities):
        if not isinstance(priority, str) or not priority.strip():
            continue

        results = mapper.map_statement(priority, store)
        # a category counts only when it clears the threshold and adds positive weight
        meaningful = [
            r for r in rank_results(results)
            if mapper.is_meaningful(r, threshold) and mapper.contribution(r) > 0
        ]

        mapping = PriorityMapping(index=index, user_concern=priority, results=results, meaningful=meaningful)
        if meaningful:
            mapping.mapped_terms = [r.standard_term for r in meaningful]
        else:
            mapping.mapped_terms = [fallback.standard_term]
        mappings.append(mapping)

        for r in meaningful:
            term_scores[r.category_key] = term_scores.get(r.category_key, 0.0) + mapper.contribution(r)
            best.setdefault(r.category_key, r)

    ranked_keys = sorted(term_scores.keys(), key=lambda k: term_scores[k], reverse=True)
    unmapped = [m.user_concern for m in mappings if not m.is_mapped]
    conflicts = _find_conflicts(mappings)

    top = [best[k] for k in ranked_keys[:TOP_TERMS_IN_ANALYSIS]]
    analysis = _build_analysis(top, fallback.plain_english)

    logger.info(
        "Analyzed %d priorities with %s strategy: %d mapped terms, %d unmapped, %d conflicts",
        len(mappings), mapper.name, len(ranked_keys), len(unmapped), len(conflicts),
    )

    return PriorityAnalysis(
        strategy=mapper.name,
        mapped_priorities=ranked_keys,
        priority_mappings=mappings,
        unmapped_terms=unmapped,
        conflicting_priorities=conflicts,
        term_scores=term_scores,
        analysis=analysis,
    )


__all__ = ["PriorityMapping", "PriorityAnalysis", "analyze_priorities"]
