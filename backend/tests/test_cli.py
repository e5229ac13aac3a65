# backend/tests/test_cli.py
import json

import pytest

from civicmatch.cli import EXIT_OK, EXIT_USAGE, main


def test_prints_ranked_results_with_details(capsys):
    assert main(["I want middle class tax cuts"]) == EXIT_OK

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "+2.40  taxCutsForMiddleClass  (Middle Class Tax Relief)"
    assert lines[1].strip() == "- Found required inclusion word 'middle class' (required)"
    assert lines[-1].strip().startswith("- Missing all required inclusion words")


def test_json_output(capsys):
    assert main(["I value my privacy and autonomy", "--json"]) == EXIT_OK

    payload = json.loads(capsys.readouterr().out)
    assert payload["results"][0]["category"] == "personalLiberty"
    assert payload["results"][0]["score"] == pytest.approx(1.8)


def test_keyword_strategy(capsys):
    assert main(["better schools", "--strategy", "keyword"]) == EXIT_OK
    assert "Education Funding" in capsys.readouterr().out


def test_custom_taxonomy_with_no_match(capsys, write_taxonomy):
    path = write_taxonomy({"categories": {"transit": {"standardTerm": "Public Transit", "plainLanguage": ["more buses"]}}})
    assert main(["pizza on fridays", "--taxonomy", str(path)]) == EXIT_OK
    assert capsys.readouterr().out.strip() == "No categories matched."


def test_empty_statement_exits_with_usage_error(capsys):
    assert main([""]) == EXIT_USAGE
    assert "Input must be a non-empty string" in capsys.readouterr().err


def test_unknown_strategy_exits_with_usage_error(capsys):
    assert main(["tax", "--strategy", "semantic"]) == EXIT_USAGE
    assert "Unknown mapping strategy" in capsys.readouterr().err


def test_unreadable_taxonomy_exits_with_usage_error(capsys, tmp_path):
    assert main(["tax", "--taxonomy", str(tmp_path / "missing.json")]) == EXIT_USAGE
    assert "Failed to read taxonomy file" in capsys.readouterr().err


def test_whitespace_statement_is_scored(capsys):
    assert main(["   "]) == EXIT_OK
    assert "Missing all required inclusion words" in capsys.readouterr().out


def test_empty_statement_reported_before_taxonomy_is_read(capsys, tmp_path):
    assert main(["", "--taxonomy", str(tmp_path / "missing.json")]) == EXIT_USAGE
    err = capsys.readouterr().err
    assert "Input must be a non-empty string" in err
    assert "taxonomy" not in err
