# backend/tests/test_terminology_mapping.py
import pytest

from civicmatch.exceptions import ConfigurationError, InvalidInputError
from civicmatch.services.terminology_mapping import (
    DEFAULT_KEYWORD_TERMS,
    KeywordTermMapper,
    ScoredTermMapper,
    available_strategies,
    get_mapper,
    map_statement,
    rank_results,
    results_payload,
    validate_statement,
)
from civicmatch.services.terminology_scoring import ScoreResult


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("bad", [None, "", 42, ["tax"], {"input": "tax"}])
@pytest.mark.parametrize("strategy", ["scored", "keyword"])
def test_invalid_statements_are_rejected(bad, strategy, taxonomy):
    with pytest.raises(InvalidInputError) as exc_info:
        map_statement(bad, taxonomy, strategy=strategy)
    assert exc_info.value.message == "Input must be a non-empty string"
    assert exc_info.value.code == "INVALID_INPUT"


def test_invalid_input_error_is_a_value_error():
    with pytest.raises(ValueError):
        validate_statement("")


def test_validate_returns_statement_unchanged():
    assert validate_statement("  Lower Taxes ") == "  Lower Taxes "


def test_whitespace_only_statement_is_scored(taxonomy):
    results = ScoredTermMapper().map_statement("   ", taxonomy)

    assert [r.category_key for r in results] == ["taxCutsForMiddleClass", "taxWealthyMore"]
    assert [r.score for r in results] == pytest.approx([-10.0, -10.0])
    assert all(r.details[0].startswith("Missing all required inclusion words") for r in results)


def test_whitespace_only_statement_gets_keyword_defaults():
    results = KeywordTermMapper().map_statement(" \t ")
    assert [r.standard_term for r in results] == list(DEFAULT_KEYWORD_TERMS)


# ---------------------------------------------------------------------------
# Scored strategy
# ---------------------------------------------------------------------------

def test_scored_mapping_keeps_taxonomy_order(taxonomy):
    results = ScoredTermMapper().map_statement("I want middle class tax cuts", taxonomy)

    assert [r.category_key for r in results] == ["taxCutsForMiddleClass", "personalLiberty", "taxWealthyMore"]
    assert [r.score for r in results] == pytest.approx([2.4, -5.9, -10.0])


def test_scored_mapping_privacy_statement(taxonomy):
    results = ScoredTermMapper().map_statement("I value my privacy and autonomy", taxonomy)
    by_key = {r.category_key: r for r in results}

    assert by_key["personalLiberty"].score == pytest.approx(1.8)
    assert by_key["taxCutsForMiddleClass"].score == pytest.approx(-10.0)
    assert rank_results(results)[0].category_key == "personalLiberty"


def test_unrelated_statement_maps_to_nothing(ungated_taxonomy):
    assert ScoredTermMapper().map_statement("pizza on fridays", ungated_taxonomy) == []


def test_results_are_a_subset_of_taxonomy_keys(taxonomy):
    results = ScoredTermMapper().map_statement("lower drug prices and clean energy for working families", taxonomy)
    assert results
    assert {r.category_key for r in results} <= set(taxonomy.keys())
    assert all(not r.is_empty for r in results)


def test_mapping_is_idempotent(taxonomy):
    mapper = ScoredTermMapper()
    statement = "Stop government overreach on my personal choice"
    assert mapper.map_statement(statement, taxonomy) == mapper.map_statement(statement, taxonomy)


def test_scored_mapper_uses_process_taxonomy_by_default():
    results = ScoredTermMapper().map_statement("I want middle class tax cuts")
    assert results[0].category_key == "taxCutsForMiddleClass"


def test_rank_results_is_stable_for_ties():
    a = ScoreResult("a", "A", "", 1.0)
    b = ScoreResult("b", "B", "", 3.0)
    c = ScoreResult("c", "C", "", 1.0)
    assert [r.category_key for r in rank_results([a, b, c])] == ["b", "a", "c"]


def test_results_payload_shape(taxonomy):
    results = ScoredTermMapper().map_statement("I value my privacy and autonomy", taxonomy)
    payload = results_payload(results)
    assert list(payload) == ["results"]
    assert payload["results"][1]["category"] == "personalLiberty"
    assert payload["results"][1]["details"][0].startswith("Matched nuance trigger 'privacy'")


# ---------------------------------------------------------------------------
# Keyword strategy
# ---------------------------------------------------------------------------

def test_keyword_mapping_caps_terms_in_table_order():
    results = KeywordTermMapper().map_statement("I worry about taxes and healthcare and climate")
    assert [r.standard_term for r in results] == ["Tax Policy", "Government Spending", "Healthcare Access"]
    assert [r.category_key for r in results] == ["taxPolicy", "governmentSpending", "healthcareAccess"]
    assert results[0].details == ["Matched keyword 'tax'"]
    assert all(r.score == 0.0 and not r.is_default for r in results)


def test_keyword_mapping_skips_duplicate_terms():
    results = KeywordTermMapper().map_statement("Climate and the ENVIRONMENT")
    assert [r.standard_term for r in results] == ["Climate Change Mitigation", "Environmental Protection"]


def test_keyword_mapping_falls_back_to_default_terms():
    results = KeywordTermMapper().map_statement("pizza on fridays")
    assert [r.standard_term for r in results] == list(DEFAULT_KEYWORD_TERMS)
    assert all(r.is_default for r in results)
    assert results[0].details == ["No keyword matched; default term 'General Policy Interest' applied"]


def test_keyword_mapper_custom_table():
    mapper = KeywordTermMapper(
        keyword_terms=[("bike", ["Cycling Infrastructure", "Road Safety"])],
        default_terms=["Other"],
        max_terms=1,
    )
    assert [r.standard_term for r in mapper.map_statement("more bike lanes")] == ["Cycling Infrastructure"]
    assert [r.standard_term for r in mapper.map_statement("nothing")] == ["Other"]


def test_keyword_meaningfulness_ignores_scores():
    mapper = KeywordTermMapper()
    hit = mapper.map_statement("gun laws")[0]
    default = mapper.map_statement("nothing here")[0]
    assert mapper.is_meaningful(hit, threshold=100.0)
    assert not mapper.is_meaningful(default, threshold=0.0)


# ---------------------------------------------------------------------------
# Strategy registry
# ---------------------------------------------------------------------------

def test_available_strategies():
    assert available_strategies() == ["scored", "keyword"]


def test_get_mapper_defaults_to_scored():
    assert isinstance(get_mapper(), ScoredTermMapper)


def test_get_mapper_normalises_names():
    assert isinstance(get_mapper("  Keyword "), KeywordTermMapper)


def test_get_mapper_rejects_unknown_strategy():
    with pytest.raises(ConfigurationError) as exc_info:
        get_mapper("semantic")
    assert exc_info.value.details == {"available": ["scored", "keyword"]}
