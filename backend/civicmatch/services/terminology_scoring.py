"""
backend/civicmatch/services/terminology_scoring.py

Lexical scoring of one free-text statement against one policy category.

Evaluation order is fixed and is part of the output contract (the detail trail is shown
to users as an explanation):

  1. exclusion words     -5.0 each, cumulative
  2. inclusion gate      first hit satisfies it; otherwise -10.0 once
  3. canonical phrases   +1.0 per phrase found
  4. nuance triggers     +weight per trigger found (signed, not deduplicated)
  5. word bonus          +0.2 per input token (>3 chars) present in the phrase vocabulary

Steps 1-4 are case-insensitive substring checks; step 5 is an exact whitespace-token match.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from civicmatch.services.terminology_definitions import NUANCE_TRIGGERS, PolicyCategory

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIG
# =============================================================================

EXCLUSION_PENALTY = 5.0
MISSING_INCLUSION_PENALTY = 10.0
PHRASE_MATCH_BONUS = 1.0
WORD_MATCH_BONUS = 0.2
WORD_MATCH_MIN_LENGTH = 4

# Event kinds, in evaluation order
EXCLUSION = "exclusion"
INCLUSION_MET = "inclusion_met"
INCLUSION_MISSING = "inclusion_missing"
PHRASE = "phrase"
NUANCE = "nuance"
WORD = "word"
KEYWORD = "keyword"
DEFAULT_TERM = "default_term"


def format_weight(value: float) -> str:
    """Signed weight as shown in detail trails: 0.8 -> "+0.8", -0.9 -> "-0.9", 1.0 -> "+1", 0 -> "0"."""
    number = int(value) if float(value).is_integer() else value
    return f"+{number}" if value > 0 else f"{number}"


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class ScoreEvent:
    kind: str
    matched: str
    delta: float
    nuance: Optional[str] = None
    required: Tuple[str, ...] = ()

    def describe(self) -> str:
        if self.kind == EXCLUSION:
            return f"Found exclusion word '{self.matched}' (-{EXCLUSION_PENALTY:g})"
        if self.kind == INCLUSION_MET:
            return f"Found required inclusion word '{self.matched}' (required)"
        if self.kind == INCLUSION_MISSING:
            return f"Missing all required inclusion words: [{', '.join(self.required)}] (-{MISSING_INCLUSION_PENALTY:g})"
        if self.kind == PHRASE:
            return f"Matched plainLanguage phrase '{self.matched}' ({format_weight(PHRASE_MATCH_BONUS)})"
        if self.kind == NUANCE:
            return f"Matched nuance trigger '{self.matched}' for '{self.nuance}' ({format_weight(self.delta)})"
        if self.kind == WORD:
            return f"Word match: '{self.matched}' (bonus +{WORD_MATCH_BONUS:g})"
        if self.kind == KEYWORD:
            return f"Matched keyword '{self.matched}'"
        if self.kind == DEFAULT_TERM:
            return f"No keyword matched; default term '{self.matched}' applied"
        return f"{self.kind}: '{self.matched}' ({format_weight(self.delta)})"

    @property
    def is_opposing(self) -> bool:
        """Exclusion hits and negative nuance hits signal a stance against the category."""
        return self.kind == EXCLUSION or (self.kind == NUANCE and self.delta < 0)


@dataclass(frozen=True)
class ScoreResult:
    category_key: str
    standard_term: str
    plain_english: str
    score: float
    events: Tuple[ScoreEvent, ...] = ()
    is_default: bool = False

    @property
    def details(self) -> List[str]:
        return [e.describe() for e in self.events]

    @property
    def is_empty(self) -> bool:
        return self.score == 0.0 and not self.events

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category_key,
            "standardTerm": self.standard_term,
            "plainEnglish": self.plain_english,
            "score": self.score,
            "details": self.details,
        }


# =============================================================================
# SCORER
# =============================================================================

def phrase_vocabulary(phrases: Sequence[str]) -> frozenset:
    return frozenset(" ".join(phrases).lower().split())


def score_category(
    statement: str,
    category: PolicyCategory,
    nuance_triggers: Optional[Mapping[str, Sequence[str]]] = None,
) -> ScoreResult:
    """
    Score one statement against one category.

    Pure: no shared state is read or written besides the (read-only) trigger table.
    The caller is responsible for validating `statement`.
    """
    triggers = NUANCE_TRIGGERS if nuance_triggers is None else nuance_triggers
    text = statement.lower()

    score = 0.0
    events: List[ScoreEvent] = []

    for word in category.exclusion_words or ():
        if word.lower() in text:
            score -= EXCLUSION_PENALTY
            events.append(ScoreEvent(EXCLUSION, word, -EXCLUSION_PENALTY))

    if category.inclusion_words:
        hit = next((w for w in category.inclusion_words if w.lower() in text), None)
        if hit is not None:
            events.append(ScoreEvent(INCLUSION_MET, hit, 0.0))
        else:
            score -= MISSING_INCLUSION_PENALTY
            events.append(ScoreEvent(
                INCLUSION_MISSING, "", -MISSING_INCLUSION_PENALTY, required=tuple(category.inclusion_words)
            ))

    for phrase in category.canonical_phrases:
        if phrase.lower() in text:
            score += PHRASE_MATCH_BONUS
            events.append(ScoreEvent(PHRASE, phrase, PHRASE_MATCH_BONUS))

    # TODO: revisit whether several triggers of one nuance signal should stack; they do today.
    for nuance_key, weight in category.nuance_weights.items():
        for trigger in triggers.get(nuance_key, ()):
            if trigger.lower() in text:
                score += weight
                events.append(ScoreEvent(NUANCE, trigger, weight, nuance=nuance_key))

    vocabulary = phrase_vocabulary(category.canonical_phrases)
    for token in text.split():
        if len(token) >= WORD_MATCH_MIN_LENGTH and token in vocabulary:
            score += WORD_MATCH_BONUS
            events.append(ScoreEvent(WORD, token, WORD_MATCH_BONUS))

    logger.debug("Scored %s: %.3f (%d events)", category.key, score, len(events))

    return ScoreResult(
        category_key=category.key,
        standard_term=category.standard_term,
        plain_english=category.plain_english,
        score=score,
        events=tuple(events),
    )


__all__ = [
    "EXCLUSION_PENALTY",
    "MISSING_INCLUSION_PENALTY",
    "PHRASE_MATCH_BONUS",
    "WORD_MATCH_BONUS",
    "KEYWORD",
    "DEFAULT_TERM",
    "ScoreEvent",
    "ScoreResult",
    "format_weight",
    "phrase_vocabulary",
    "score_category",
]
