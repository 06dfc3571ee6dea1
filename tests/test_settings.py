import pytest
from pydantic import ValidationError

from cityguide.config.settings import Settings


def test_defaults_are_valid():
    config = Settings(GOOGLE_API_KEY="k", _env_file=None)

    assert config.CHUNK_SIZE == 1000
    assert config.CHUNK_OVERLAP == 200
    assert config.SEARCH_RESULTS_LIMIT == 3
    assert config.FALLBACK_TOPIC == "Mangalore"


def test_api_key_is_hidden_in_repr():
    config = Settings(GOOGLE_API_KEY="very-secret", _env_file=None)

    assert "very-secret" not in repr(config)
    assert config.GOOGLE_API_KEY.get_secret_value() == "very-secret"


def test_chunk_size_below_minimum_is_rejected():
    with pytest.raises(ValidationError, match="CHUNK_SIZE"):
        Settings(GOOGLE_API_KEY="k", CHUNK_SIZE=50, _env_file=None)


@pytest.mark.parametrize("overlap", [500, 800, -1])
def test_overlap_must_stay_below_chunk_size(overlap):
    with pytest.raises(ValidationError, match="CHUNK_OVERLAP"):
        Settings(GOOGLE_API_KEY="k", CHUNK_SIZE=500, CHUNK_OVERLAP=overlap, _env_file=None)


@pytest.mark.parametrize("limit", [0, 21])
def test_search_results_limit_out_of_range_is_rejected(limit):
    with pytest.raises(ValidationError, match="SEARCH_RESULTS_LIMIT"):
        Settings(GOOGLE_API_KEY="k", SEARCH_RESULTS_LIMIT=limit, _env_file=None)


def test_search_results_limit_bounds_are_accepted():
    assert Settings(GOOGLE_API_KEY="k", SEARCH_RESULTS_LIMIT=1, _env_file=None).SEARCH_RESULTS_LIMIT == 1
    assert Settings(GOOGLE_API_KEY="k", SEARCH_RESULTS_LIMIT=20, _env_file=None).SEARCH_RESULTS_LIMIT == 20


def test_missing_api_key_is_rejected(monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_gemini_api_key_is_accepted_as_alias(monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")

    assert Settings(_env_file=None).GOOGLE_API_KEY.get_secret_value() == "gemini-key"


def test_values_are_read_from_environment(monkeypatch):
    monkeypatch.setenv("CHUNK_SIZE", "400")
    monkeypatch.setenv("FALLBACK_TOPIC", "Udupi")

    config = Settings(_env_file=None)

    assert config.CHUNK_SIZE == 400
    assert config.FALLBACK_TOPIC == "Udupi"
