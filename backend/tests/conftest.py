# backend/tests/conftest.py
import os

# Must run before anything imports civicmatch.config / civicmatch.database.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "testing"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("TAXONOMY_PATH", None)
os.environ.pop("DEFAULT_MAPPING_STRATEGY", None)

import json

import pytest

from civicmatch.services.terminology_definitions import (
    PolicyCategory,
    TaxonomyStore,
    build_default_taxonomy,
    reset_taxonomy_cache,
)


@pytest.fixture(autouse=True)
def _fresh_taxonomy_cache():
    reset_taxonomy_cache()
    yield
    reset_taxonomy_cache()


@pytest.fixture
def taxonomy():
    return build_default_taxonomy()


@pytest.fixture
def ungated_taxonomy(taxonomy):
    """Only categories without an inclusion gate, so unrelated input maps to nothing."""
    return TaxonomyStore(
        [taxonomy.get("personalLiberty"), taxonomy.get("climateAction")],
        taxonomy.get_fallback(),
        taxonomy.nuance_triggers,
    )


@pytest.fixture
def make_category():
    def _make(key="sample", **kwargs):
        kwargs.setdefault("standard_term", key.title())
        kwargs.setdefault("plain_english", "")
        return PolicyCategory(key=key, **kwargs)

    return _make


@pytest.fixture
def write_taxonomy(tmp_path):
    def _write(document, name="taxonomy.json"):
        path = tmp_path / name
        if isinstance(document, str):
            path.write_text(document, encoding="utf-8")
        else:
            path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def db_session():
    from civicmatch.database.connection import SessionLocal, drop_db, init_db

    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        drop_db()


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from civicmatch.main import app

    with TestClient(app) as c:
        yield c
