import pytest
from dacite import MissingValueError

from utils.config import Config
from utils.load_config import load_config


def test_default_config_file_loads(monkeypatch):
    monkeypatch.delenv("LLM_MODEL", raising=False)

    config = load_config()

    assert isinstance(config, Config)
    assert config.llm.model == "gpt-4o-mini"
    assert config.agent.max_tool_calls == 5
    assert config.logging.libraries["httpx"] == "WARNING"


def test_missing_sections_fall_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("LLM_MODEL", raising=False)
    path = tmp_path / "config.toml"
    path.write_text('[llm]\nmodel = "claude-sonnet-4"\n')

    config = load_config(path)

    assert config.llm.model == "claude-sonnet-4"
    assert config.llm.summary_model == "gpt-4o-mini"
    assert config.tools.faq_threshold == pytest.approx(0.3)
    assert config.logging.file.enabled is False


def test_env_model_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "config.toml"
    path.write_text('[llm]\nmodel = "gpt-4o"\n')
    monkeypatch.setenv("LLM_MODEL", "gemini/gemini-2.0-flash")

    assert load_config(path).llm.model == "gemini/gemini-2.0-flash"


def test_model_is_required(tmp_path, monkeypatch):
    monkeypatch.delenv("LLM_MODEL", raising=False)
    path = tmp_path / "config.toml"
    path.write_text("[agent]\nmax_tool_calls = 3\n")

    with pytest.raises(MissingValueError):
        load_config(path)
