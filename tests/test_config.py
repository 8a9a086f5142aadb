"""Tests for YAML configuration loading."""

import textwrap
from pathlib import Path

import pytest

from switchboard.config import AppConfig, load_config
from switchboard.errors import ConfigError

VALID_YAML = textwrap.dedent(
    """\
    log_level: DEBUG
    gateway:
      backend: anthropic
      model: claude-sonnet-4-20250514
      max_tokens: 1000
    anthropic:
      api_key: ${TEST_ANTHROPIC_KEY}
    search:
      api_key: ${TEST_SEARCH_KEY}
    storage:
      db_path: ./data/test.db
    """
)


def write(tmp_path, text: str):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_with_env_interpolation(tmp_path, monkeypatch):
    monkeypatch.setenv("TEST_ANTHROPIC_KEY", "sk-test")
    monkeypatch.setenv("TEST_SEARCH_KEY", '{"apiKey": "bing"}')

    config = load_config(write(tmp_path, VALID_YAML), tmp_path / "missing.env")

    assert config.log_level == "DEBUG"
    assert config.anthropic.api_key == "sk-test"
    assert config.search.api_key == '{"apiKey": "bing"}'
    assert config.gateway.max_tokens == 1000
    assert config.chat.history_limit == 20
    assert config.code_execution.backend == "subprocess"


def test_env_file_is_loaded(tmp_path, monkeypatch):
    # set then delete so the variable is removed again after the test
    monkeypatch.setenv("TEST_DOTENV_KEY", "")
    monkeypatch.delenv("TEST_DOTENV_KEY")
    env_file = tmp_path / ".env"
    env_file.write_text("TEST_DOTENV_KEY=from-dotenv\n", encoding="utf-8")
    text = "gateway:\n  backend: anthropic\nanthropic:\n  api_key: ${TEST_DOTENV_KEY}\n"

    config = load_config(write(tmp_path, text), env_file)
    assert config.anthropic.api_key == "from-dotenv"


def test_missing_variables_reported_together(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_ANTHROPIC_KEY", raising=False)
    monkeypatch.delenv("TEST_SEARCH_KEY", raising=False)

    with pytest.raises(ConfigError) as excinfo:
        load_config(write(tmp_path, VALID_YAML), tmp_path / "missing.env")

    assert "TEST_ANTHROPIC_KEY" in excinfo.value.message
    assert "TEST_SEARCH_KEY" in excinfo.value.message


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml", tmp_path / "missing.env")


def test_anthropic_backend_requires_section(tmp_path):
    with pytest.raises(ConfigError, match="anthropic"):
        load_config(write(tmp_path, "gateway:\n  backend: anthropic\n"), tmp_path / "missing.env")


def test_http_code_backend_requires_url(tmp_path):
    text = "gateway:\n  backend: claude_code\ncode_execution:\n  backend: http\n"
    with pytest.raises(ConfigError, match="sandbox_url"):
        load_config(write(tmp_path, text), tmp_path / "missing.env")


def test_search_result_cap_is_validated(tmp_path):
    text = "gateway:\n  backend: claude_code\nsearch:\n  max_results: 10\n"
    with pytest.raises(ConfigError, match="search.max_results"):
        load_config(write(tmp_path, text), tmp_path / "missing.env")


def test_claude_code_backend_needs_no_api_key():
    config = AppConfig(gateway={"backend": "claude_code"})
    assert config.anthropic is None
    assert config.claude_code.cli_path == "claude"


def test_shipped_example_loads(tmp_path, monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
    monkeypatch.setenv("BING_SEARCH_API_KEY", "bing-test")
    example = Path(__file__).resolve().parent.parent / "config.example.yaml"

    config = load_config(example, tmp_path / "missing.env")

    assert config.anthropic.api_key == "sk-ant-test"
    assert config.search.api_key == "bing-test"
    assert config.gateway.backend == "anthropic"
