"""
backend/civicmatch/services/terminology_definitions.py

POLICY TAXONOMY + NUANCE TRIGGER TABLE
======================================

The taxonomy is configuration data: a fixed, ordered set of PolicyCategory entries plus a
separately-typed FallbackCategory. Nothing here is mutated after load; every scoring call
reads the same snapshot.

Category fields:
- canonical_phrases: colloquial phrasings (substring matches, +1.0 each)
- inclusion_words:  gate; if defined and none present, the category is penalised
- exclusion_words:  each one present penalises the category
- nuance_weights:   nuance-signal name -> signed weight; names are soft references into
                    the nuance trigger table (an unknown name simply never fires)

The fallback entry ("Clarification Needed") is only used by consumers when nothing maps.
It is never stored among the scorable categories.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from civicmatch.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

FALLBACK_KEY = "fallback"

# =============================================================================
# NUANCE TRIGGERS (shared across categories, read-only)
# =============================================================================

_DEFAULT_NUANCE_TRIGGERS: Dict[str, Tuple[str, ...]] = {
    # Economic issues
    "economic_issues": ("tax", "taxes", "income tax", "income taxes", "hard earned money"),
    "tax_burden_reduction": ("tax burden", "tax relief", "reduce taxes", "lower taxes"),
    "middle_class_support": ("middle class", "working families", "working class"),
    "tax_cut_opposition": ("no tax cuts", "against tax cuts", "oppose tax cuts"),
    "wealth_concentration": ("billionaires", "millionaires", "fair share", "corporate greed"),

    # Personal liberty
    "freedom_from_regulation": ("government interference", "overreach", "regulation"),
    "privacy_and_autonomy": ("privacy", "autonomy", "personal choice", "personal freedom"),

    # Environmental
    "climate_action": ("climate action", "global warming", "climate crisis"),
    "climate_skepticism": ("climate hoax", "climate skeptic"),

    # Hiring
    "oppose_affirmative_action_race": ("race in hiring", "hiring based on race"),
    "oppose_affirmative_action_gender": ("gender in hiring", "hiring based on gender"),
    "merit_based_hiring_support": ("merit based", "qualified candidates"),

    # Healthcare
    "healthcare_affordability": ("medical bills", "prescription costs", "premiums", "copays"),
    "coverage_expansion": ("public option", "single payer", "cover everyone"),
}

NUANCE_TRIGGERS: Mapping[str, Tuple[str, ...]] = MappingProxyType(_DEFAULT_NUANCE_TRIGGERS)


# =============================================================================
# DATA STRUCTURES
# =============================================================================

def _as_str_tuple(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    try:
        return tuple(str(v) for v in value if isinstance(v, str) and v)
    except TypeError:
        return ()


def _as_weight_map(value: Any) -> Mapping[str, float]:
    weights: Dict[str, float] = {}
    if isinstance(value, Mapping):
        for name, w in value.items():
            if isinstance(w, bool):
                continue
            try:
                weights[str(name)] = float(w)
            except (TypeError, ValueError):
                logger.warning("Dropping non-numeric nuance weight %r for %r", w, name)
    return MappingProxyType(weights)


@dataclass(frozen=True)
class PolicyCategory:
    key: str
    standard_term: str
    plain_english: str
    canonical_phrases: Tuple[str, ...] = ()
    nuance_weights: Mapping[str, float] = field(default_factory=dict)

    # None means "not defined"; an empty gate is treated the same way.
    inclusion_words: Optional[Tuple[str, ...]] = None
    exclusion_words: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "canonical_phrases", _as_str_tuple(self.canonical_phrases))
        object.__setattr__(self, "nuance_weights", _as_weight_map(self.nuance_weights))
        object.__setattr__(self, "inclusion_words", _as_str_tuple(self.inclusion_words) or None)
        object.__setattr__(self, "exclusion_words", _as_str_tuple(self.exclusion_words) or None)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "key": self.key,
            "standardTerm": self.standard_term,
            "plainEnglish": self.plain_english,
            "plainLanguage": list(self.canonical_phrases),
            "nuance": dict(self.nuance_weights),
        }
        if self.inclusion_words:
            out["inclusionWords"] = list(self.inclusion_words)
        if self.exclusion_words:
            out["exclusionWords"] = list(self.exclusion_words)
        return out


@dataclass(frozen=True)
class FallbackCategory:
    standard_term: str = "Clarification Needed"
    plain_english: str = "Can you please clarify your stance on this topic?"

    def to_dict(self) -> Dict[str, Any]:
        return {"standardTerm": self.standard_term, "plainEnglish": self.plain_english}


class TaxonomyStore:
    """Immutable, ordered container of scorable categories plus the fallback entry."""

    def __init__(
        self,
        categories: Iterable[PolicyCategory],
        fallback: Optional[FallbackCategory] = None,
        nuance_triggers: Optional[Mapping[str, Iterable[str]]] = None,
    ):
        ordered: Dict[str, PolicyCategory] = {}
        for cat in categories:
            if cat.key == FALLBACK_KEY:
                raise ConfigurationError(
                    f"'{FALLBACK_KEY}' is reserved and cannot be used as a category key"
                )
            if cat.key in ordered:
                raise ConfigurationError(f"Duplicate category key: {cat.key}", {"key": cat.key})
            ordered[cat.key] = cat

        if nuance_triggers is None:
            triggers: Mapping[str, Tuple[str, ...]] = NUANCE_TRIGGERS
        else:
            triggers = MappingProxyType({str(k): _as_str_tuple(v) for k, v in nuance_triggers.items()})

        self._categories: Mapping[str, PolicyCategory] = MappingProxyType(ordered)
        self._fallback = fallback or FallbackCategory()
        self._triggers = triggers

    @property
    def nuance_triggers(self) -> Mapping[str, Tuple[str, ...]]:
        return self._triggers

    def get_all_categories(self) -> Mapping[str, PolicyCategory]:
        return self._categories

    def get_fallback(self) -> FallbackCategory:
        return self._fallback

    def get(self, key: str) -> Optional[PolicyCategory]:
        return self._categories.get(key)

    def keys(self) -> List[str]:
        return list(self._categories.keys())

    def __iter__(self) -> Iterator[PolicyCategory]:
        return iter(self._categories.values())

    def __len__(self) -> int:
        return len(self._categories)

    def __contains__(self, key: object) -> bool:
        return key in self._categories

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categories": {k: c.to_dict() for k, c in self._categories.items()},
            "fallback": self._fallback.to_dict(),
            "nuanceTriggers": {k: list(v) for k, v in self._triggers.items()},
        }


# =============================================================================
# BUILT-IN TAXONOMY
# =============================================================================

def _default_categories() -> List[PolicyCategory]:
    cats: List[PolicyCategory] = []

    cats.append(PolicyCategory(
        key="taxCutsForMiddleClass",
        standard_term="Middle Class Tax Relief",
        plain_english="I want tax cuts that help working families and the middle class keep more of their money.",
        canonical_phrases=(
            "middle class tax cuts",
            "tax cuts for working families",
            "tax breaks for middle class",
            "reduce taxes for middle class",
            "tax relief for middle class",
            "help working families",
        ),
        inclusion_words=("middle class", "working families"),
        nuance_weights={
            "middle_class_support": 0.8,
            "tax_burden_reduction": 0.7,
        },
    ))

    cats.append(PolicyCategory(
        key="personalLiberty",
        standard_term="Personal Autonomy and Freedom",
        plain_english=(
            "I value my personal autonomy and want the freedom to make private choices about my life, "
            "without excessive government or societal interference."
        ),
        canonical_phrases=(
            "individual freedom",
            "personal autonomy",
            "self-determination",
            "liberty from government control",
            "personal rights",
        ),
        nuance_weights={
            "freedom_from_regulation": 0.9,
            "privacy_and_autonomy": 0.8,
            "economic_issues": -0.9,
        },
        exclusion_words=("tax", "income", "money"),
    ))

    cats.append(PolicyCategory(
        key="taxWealthyMore",
        standard_term="Progressive Taxation",
        plain_english="I want the wealthiest people and largest corporations to pay a bigger share in taxes.",
        canonical_phrases=(
            "tax the rich",
            "make the wealthy pay",
            "higher taxes on the wealthy",
            "close tax loopholes",
            "pay their fair share",
        ),
        inclusion_words=("rich", "wealthy", "millionaire", "billionaire", "corporation", "loophole", "fair share"),
        nuance_weights={
            "wealth_concentration": 0.8,
            "tax_cut_opposition": 0.6,
            "tax_burden_reduction": -0.5,
        },
    ))

    cats.append(PolicyCategory(
        key="climateAction",
        standard_term="Climate Change Mitigation",
        plain_english="I want the government to act on climate change and move us toward clean energy.",
        canonical_phrases=(
            "climate change",
            "clean energy",
            "renewable energy",
            "protect the environment",
            "cut carbon emissions",
        ),
        nuance_weights={
            "climate_action": 0.9,
            "climate_skepticism": -0.8,
        },
    ))

    cats.append(PolicyCategory(
        key="meritBasedHiring",
        standard_term="Merit-Based Hiring",
        plain_english="I want jobs and admissions decided by qualifications rather than race or gender.",
        canonical_phrases=(
            "merit based hiring",
            "hire the best person",
            "end affirmative action",
            "colorblind hiring",
        ),
        nuance_weights={
            "merit_based_hiring_support": 0.8,
            "oppose_affirmative_action_race": 0.7,
            "oppose_affirmative_action_gender": 0.7,
        },
    ))

    cats.append(PolicyCategory(
        key="healthcareAccess",
        standard_term="Affordable Healthcare Access",
        plain_english="I want healthcare that everyone can afford, with lower costs for care and prescriptions.",
        canonical_phrases=(
            "affordable healthcare",
            "health insurance",
            "lower drug prices",
            "universal healthcare",
            "medicare for all",
        ),
        nuance_weights={
            "healthcare_affordability": 0.7,
            "coverage_expansion": 0.6,
        },
        exclusion_words=("pet insurance",),
    ))

    return cats


def build_default_taxonomy() -> TaxonomyStore:
    return TaxonomyStore(_default_categories(), FallbackCategory(), NUANCE_TRIGGERS)


# =============================================================================
# JSON LOADING
# =============================================================================

def _reject_duplicate_keys(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in pairs:
        if k in out:
            raise ConfigurationError(f"Duplicate key in taxonomy file: {k}", {"key": k})
        out[k] = v
    return out


def _category_from_dict(key: str, raw: Any) -> PolicyCategory:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Category '{key}' must be an object", {"key": key})

    for opt in ("plainLanguage", "inclusionWords", "exclusionWords"):
        if opt in raw and not isinstance(raw[opt], list):
            logger.warning("Category %s: '%s' is not a list, treating as absent", key, opt)
    if "nuance" in raw and not isinstance(raw["nuance"], Mapping):
        logger.warning("Category %s: 'nuance' is not an object, treating as absent", key)

    def _opt_list(name: str) -> Any:
        value = raw.get(name)
        return value if isinstance(value, list) else None

    return PolicyCategory(
        key=key,
        standard_term=str(raw.get("standardTerm") or key),
        plain_english=str(raw.get("plainEnglish") or ""),
        canonical_phrases=_opt_list("plainLanguage") or (),
        nuance_weights=raw.get("nuance") if isinstance(raw.get("nuance"), Mapping) else {},
        inclusion_words=_opt_list("inclusionWords"),
        exclusion_words=_opt_list("exclusionWords"),
    )


def taxonomy_from_dict(data: Any) -> TaxonomyStore:
    """
    Build a TaxonomyStore from the JSON document shape:

        {"nuanceTriggers": {...}, "fallback": {...}, "categories": {key: {...}}}

    nuanceTriggers and fallback are optional (built-in defaults apply).
    """
    if not isinstance(data, Mapping):
        raise ConfigurationError("Taxonomy document must be a JSON object")

    raw_categories = data.get("categories")
    if not isinstance(raw_categories, Mapping):
        raise ConfigurationError("Taxonomy document must contain a 'categories' object")

    categories = [_category_from_dict(str(k), v) for k, v in raw_categories.items()]

    fallback = FallbackCategory()
    raw_fallback = data.get(FALLBACK_KEY)
    if isinstance(raw_fallback, Mapping):
        fallback = FallbackCategory(
            standard_term=str(raw_fallback.get("standardTerm") or fallback.standard_term),
            plain_english=str(raw_fallback.get("plainEnglish") or fallback.plain_english),
        )

    raw_triggers = data.get("nuanceTriggers")
    triggers: Optional[Mapping[str, Iterable[str]]] = None
    if raw_triggers is not None:
        if not isinstance(raw_triggers, Mapping):
            raise ConfigurationError("'nuanceTriggers' must be an object")
        triggers = {str(k): (v if isinstance(v, list) else ()) for k, v in raw_triggers.items()}

    return TaxonomyStore(categories, fallback, triggers)


def load_taxonomy(path: Union[str, Path]) -> TaxonomyStore:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f, object_pairs_hook=_reject_duplicate_keys)
    except OSError as e:
        raise ConfigurationError(f"Failed to read taxonomy file {path}: {e}", {"path": str(path)}) from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid taxonomy JSON in {path}: {e}", {"path": str(path)}) from e

    store = taxonomy_from_dict(data)
    logger.info("Loaded taxonomy from %s with %d categories", path, len(store))
    return store


@lru_cache(maxsize=8)
def _cached_taxonomy(path: Optional[str]) -> TaxonomyStore:
    if path:
        return load_taxonomy(path)
    store = build_default_taxonomy()
    logger.info("Initialized built-in taxonomy with %d categories", len(store))
    return store


def get_taxonomy(path: Optional[str] = None) -> TaxonomyStore:
    """Process-wide taxonomy snapshot (TAXONOMY_PATH from settings when no path is given)."""
    if path is None:
        from civicmatch.config import settings

        path = settings.TAXONOMY_PATH
    return _cached_taxonomy(path or None)


def reset_taxonomy_cache() -> None:
    _cached_taxonomy.cache_clear()


__all__ = [
    "FALLBACK_KEY",
    "NUANCE_TRIGGERS",
    "PolicyCategory",
    "FallbackCategory",
    "TaxonomyStore",
    "build_default_taxonomy",
    "taxonomy_from_dict",
    "load_taxonomy",
    "get_taxonomy",
    "reset_taxonomy_cache",
]
