# backend/tests/test_config.py
import pytest
from pydantic import ValidationError

from civicmatch.config import Settings


def test_defaults_under_test_environment():
    s = Settings()
    assert s.is_testing()
    assert s.DEFAULT_MAPPING_STRATEGY == "scored"
    assert s.MAX_KEYWORD_TERMS == 3
    assert s.TAXONOMY_PATH is None


def test_strategy_is_normalised():
    assert Settings(DEFAULT_MAPPING_STRATEGY=" Keyword ").DEFAULT_MAPPING_STRATEGY == "keyword"


def test_unknown_strategy_is_rejected():
    with pytest.raises(ValidationError):
        Settings(DEFAULT_MAPPING_STRATEGY="semantic")


def test_blank_taxonomy_path_is_unset():
    assert Settings(TAXONOMY_PATH="   ").TAXONOMY_PATH is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("http://a.test, http://b.test", ["http://a.test", "http://b.test"]),
        ('["http://a.test"]', ["http://a.test"]),
        ("", ["http://localhost:5173"]),
    ],
)
def test_cors_origins_list(raw, expected):
    assert Settings(CORS_ORIGINS=raw).cors_origins_list == expected


def test_error_details_only_exposed_outside_production():
    assert Settings(DEBUG=True, ENVIRONMENT="development").expose_error_details
    assert not Settings(DEBUG=True, ENVIRONMENT="production").expose_error_details
    assert not Settings(DEBUG=False, ENVIRONMENT="development").expose_error_details


def test_reload_only_in_development():
    assert Settings(API_RELOAD=True, ENVIRONMENT="dev").reload_enabled
    assert not Settings(API_RELOAD=True, ENVIRONMENT="production").reload_enabled
    assert not Settings(API_RELOAD=False, ENVIRONMENT="development").reload_enabled
