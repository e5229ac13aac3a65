# backend/civicmatch/cli.py
"""
Command-line debug tool for the terminology mapper.

  civicmatch-terms "I want middle class tax cuts"
  civicmatch-terms "protect the environment" --strategy keyword --json
  civicmatch-terms "lower drug prices" --taxonomy ./taxonomy.json

Results are printed highest score first, each followed by its scoring trail.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from civicmatch.exceptions import ConfigurationError, InvalidInputError
from civicmatch.services.terminology_definitions import get_taxonomy, load_taxonomy
from civicmatch.services.terminology_mapping import (
    available_strategies,
    get_mapper,
    rank_results,
    results_payload,
    validate_statement,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="civicmatch-terms", description="Map a priority statement to policy terms")
    p.add_argument("statement", help="Free-text priority statement")
    p.add_argument("--strategy", default=None, help=" | ".join(available_strategies()))
    p.add_argument("--taxonomy", default="", help="Optional taxonomy JSON file (defaults to TAXONOMY_PATH or built-in)")
    p.add_argument("--json", action="store_true", help="Print the raw {\"results\": [...]} payload")
    p.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_argparser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        validate_statement(args.statement)
        taxonomy = load_taxonomy(args.taxonomy) if args.taxonomy else get_taxonomy()
        mapper = get_mapper(args.strategy)
        results = rank_results(mapper.map_statement(args.statement, taxonomy))
    except (InvalidInputError, ConfigurationError) as e:
        print(f"error: {e.message}", file=sys.stderr)
        return EXIT_USAGE

    if args.json:
        print(json.dumps(results_payload(results), indent=2))
        return EXIT_OK

    if not results:
        print("No categories matched.")
        return EXIT_OK

    for r in results:
        print(f"{r.score:+.2f}  {r.category_key}  ({r.standard_term})")
        for line in r.details:
            print(f"        - {line}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
