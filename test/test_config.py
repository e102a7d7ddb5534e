import json

import pytest

from notion_importer.config import (
    DEFAULT_LLM_MODEL,
    env_defaults,
    get_merged_config,
    require_settings,
    validate_required_settings,
)
from notion_importer.errors import MissingConfiguration

KEYS = (
    "OPENAI_API_KEY",
    "NOTION_API_KEY",
    "NOTION_DATABASE_ID",
    "LLM_MODEL",
    "OPENAI_MAX_COMPLETION_TOKENS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in KEYS:
        monkeypatch.delenv(key, raising=False)


def test_header_settings_are_used_when_env_is_empty() -> None:
    header = json.dumps({
        "OPENAI_API_KEY": "sk-local",
        "NOTION_API_KEY": "secret_local",
        "NOTION_DATABASE_ID": "db-local",
        "LLM_MODEL": "gpt-4o",
        "OPENAI_MAX_COMPLETION_TOKENS": 2000,
    })
    settings = get_merged_config(header)
    assert settings.OPENAI_API_KEY == "sk-local"
    assert settings.LLM_MODEL == "gpt-4o"
    assert settings.OPENAI_MAX_COMPLETION_TOKENS == 2000


def test_environment_wins_over_header(monkeypatch) -> None:
    monkeypatch.setenv("NOTION_DATABASE_ID", "db-env")
    monkeypatch.setenv("OPENAI_MAX_COMPLETION_TOKENS", "9000")
    settings = get_merged_config(json.dumps({"NOTION_DATABASE_ID": "db-local", "OPENAI_MAX_COMPLETION_TOKENS": 10}))
    assert settings.NOTION_DATABASE_ID == "db-env"
    assert settings.OPENAI_MAX_COMPLETION_TOKENS == 9000


def test_defaults_and_bad_header() -> None:
    settings = get_merged_config("{not json")
    assert settings.LLM_MODEL == DEFAULT_LLM_MODEL
    assert settings.OPENAI_MAX_COMPLETION_TOKENS == 6000
    assert get_merged_config('["a list"]').OPENAI_API_KEY is None
    assert get_merged_config(None).NOTION_API_KEY is None


def test_missing_settings_are_listed() -> None:
    settings = get_merged_config(json.dumps({"NOTION_API_KEY": "secret"}))
    ok, missing = validate_required_settings(settings)
    assert not ok
    assert missing == ["OPENAI_API_KEY", "NOTION_DATABASE_ID"]

    with pytest.raises(MissingConfiguration) as exc:
        require_settings(settings)
    assert exc.value.message == "Missing required configuration: OPENAI_API_KEY, NOTION_DATABASE_ID"
    assert exc.value.missing == ["OPENAI_API_KEY", "NOTION_DATABASE_ID"]


def test_blank_values_count_as_missing() -> None:
    settings = get_merged_config(json.dumps({
        "OPENAI_API_KEY": "  ", "NOTION_API_KEY": "x", "NOTION_DATABASE_ID": "y",
    }))
    assert validate_required_settings(settings) == (False, ["OPENAI_API_KEY"])


def test_env_defaults_hide_secrets(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-very-secret")
    monkeypatch.setenv("LLM_MODEL", "gpt-5")
    defaults = env_defaults()
    assert defaults["OPENAI_API_KEY"] is True
    assert defaults["NOTION_API_KEY"] is None
    assert defaults["LLM_MODEL"] == "gpt-5"
    assert "sk-very-secret" not in json.dumps(defaults)
