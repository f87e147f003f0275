"""Tests for chatgraph.core.config."""

import pytest
import yaml
from pydantic import ValidationError

from chatgraph.core.config import Config, load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for var in ("CHATGRAPH_CONFIG", "CHATGRAPH_ASSISTANT__MAX_STEPS", "CHATGRAPH_ASSISTANT__MODEL"):
        monkeypatch.delenv(var, raising=False)
    # Keep a stray ./config.yaml or ./.env out of the picture
    monkeypatch.chdir(tmp_path)


def test_defaults():
    cfg = Config()
    assert cfg.assistant.name == "ChatGraph"
    assert cfg.assistant.max_steps == 25
    assert cfg.assistant.history_budget == 4000
    assert cfg.assistant.cache_hints is True
    assert cfg.checkpoint.max_threads == 1000
    assert cfg.tools.enabled == ["*"]


def test_from_dict():
    cfg = Config(
        assistant={"name": "TestBot", "model": "openai/gpt-4o", "max_steps": 5},
        providers={"anthropic": {"api_key": "sk-test"}},
    )
    assert cfg.assistant.name == "TestBot"
    assert cfg.assistant.max_steps == 5
    assert cfg.providers.anthropic.api_key == "sk-test"


def test_max_steps_must_be_positive():
    with pytest.raises(ValidationError):
        Config(assistant={"max_steps": 0})


def test_get_api_base():
    cfg = Config(
        assistant={"model": "openrouter/meta-llama/llama-3-70b"},
        providers={"openai": {"api_base": "http://localhost:4000"}},
    )
    assert cfg.get_api_base() == "https://openrouter.ai/api/v1"
    assert cfg.get_api_base("openai/gpt-4o") == "http://localhost:4000"
    assert cfg.get_api_base("groq/llama3") is None


def test_load_yaml(tmp_path):
    f = tmp_path / "custom.yaml"
    f.write_text(yaml.dump({"assistant": {"name": "YamlBot", "max_steps": 7}}))
    cfg = load_config(f)
    assert cfg.assistant.name == "YamlBot"
    assert cfg.assistant.max_steps == 7


def test_load_default_file(tmp_path):
    (tmp_path / "config.yaml").write_text(yaml.dump({"assistant": {"name": "LocalBot"}}))
    assert load_config().assistant.name == "LocalBot"


def test_load_from_env_var(tmp_path, monkeypatch):
    f = tmp_path / "other.yaml"
    f.write_text(yaml.dump({"assistant": {"name": "EnvPathBot"}}))
    monkeypatch.setenv("CHATGRAPH_CONFIG", str(f))
    assert load_config().assistant.name == "EnvPathBot"


def test_load_missing(tmp_path):
    cfg = load_config(tmp_path / "nope.yaml")
    assert cfg.assistant.name == "ChatGraph"


def test_load_empty_file(tmp_path):
    f = tmp_path / "empty.yaml"
    f.write_text("")
    assert load_config(f).assistant.name == "ChatGraph"


def test_load_rejects_non_mapping(tmp_path):
    f = tmp_path / "list.yaml"
    f.write_text(yaml.dump(["a", "b"]))
    with pytest.raises(ValueError, match="mapping"):
        load_config(f)


def test_env_overrides_yaml(tmp_path, monkeypatch):
    f = tmp_path / "custom.yaml"
    f.write_text(yaml.dump({"assistant": {"max_steps": 7, "model": "openai/gpt-4o"}}))
    monkeypatch.setenv("CHATGRAPH_ASSISTANT__MAX_STEPS", "3")

    cfg = load_config(f)
    assert cfg.assistant.max_steps == 3
    assert cfg.assistant.model == "openai/gpt-4o"
