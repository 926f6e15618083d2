"""Tests for configuration loading."""

import pytest

from pluginlens_core.config import (
    ConfigError,
    PromptTemplates,
    build_review_config,
    load_config,
    load_prompt_templates,
)

_ENV_VARS = (
    "PLUGINLENS_PROVIDER",
    "OPENAI_MODEL",
    "OPENAI_MAX_INPUT_TOKENS",
    "OPENAI_MAX_OUTPUT_TOKENS",
    "OPENAI_BASE_URL",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
)

TEMPLATES = PromptTemplates(entry_point="E", regular="R")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def openai_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4o")
    monkeypatch.setenv("OPENAI_MAX_INPUT_TOKENS", "128000")
    monkeypatch.setenv("OPENAI_MAX_OUTPUT_TOKENS", "4096")


# ---------------------------------------------------------------------------
# load_config
# ---------------------------------------------------------------------------


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["provider"] == "openai"
    assert config["trigger_label"] == "plugin-publish"
    assert config["entry_point"] == "main.py"
    assert config["file_extension"] == ".py"
    assert config["max_files"] == 15
    assert config["budget_ratio"] == 0.7
    assert config["prompts"] == {"entry_point": None, "regular": None}


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".pluginlens.yml"
    cfg.write_text("trigger_label: submit-plugin\nmax_files: 5\n")
    config = load_config(config_path=str(cfg))
    assert config["trigger_label"] == "submit-plugin"
    assert config["max_files"] == 5


def test_partial_prompts_section_keeps_other_default(tmp_path):
    cfg = tmp_path / ".pluginlens.yml"
    cfg.write_text("prompts:\n  regular: custom.md\n")
    config = load_config(config_path=str(cfg))
    assert config["prompts"] == {"entry_point": None, "regular": "custom.md"}


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".pluginlens.yml"
    cfg.write_text("model: gpt-4o-mini\n")
    config = load_config(config_path=str(cfg), cli_overrides={"model": "gpt-4o"})
    assert config["model"] == "gpt-4o"


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".pluginlens.yml"
    cfg.write_text("model: gpt-4o-mini\n")
    config = load_config(config_path=str(cfg), cli_overrides={"model": None})
    assert config["model"] == "gpt-4o-mini"


def test_env_vars_win_over_file(tmp_path, monkeypatch):
    cfg = tmp_path / ".pluginlens.yml"
    cfg.write_text("model: from-file\n")
    monkeypatch.setenv("OPENAI_MODEL", "from-env")
    config = load_config(config_path=str(cfg))
    assert config["model"] == "from-env"


def test_cli_overrides_win_over_env(tmp_path, monkeypatch):
    cfg = tmp_path / ".pluginlens.yml"
    cfg.write_text("model: from-file\n")
    monkeypatch.setenv("OPENAI_MODEL", "from-env")
    config = load_config(config_path=str(cfg), cli_overrides={"model": "from-cli"})
    assert config["model"] == "from-cli"


def test_api_keys_read_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "oai-key")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ant-key")
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["openai_api_key"] == "oai-key"
    assert config["anthropic_api_key"] == "ant-key"


def test_prompts_dict_is_not_shared_reference(tmp_path):
    config_a = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_b = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_a["prompts"]["regular"] = "x.md"
    assert config_b["prompts"]["regular"] is None


# ---------------------------------------------------------------------------
# load_prompt_templates
# ---------------------------------------------------------------------------


def test_builtin_templates_loaded_as_fallback(tmp_path):
    templates = load_prompt_templates(load_config(config_path=str(tmp_path / "nonexistent.yml")))
    assert templates.entry_point.strip()
    assert templates.regular.strip()
    assert templates.entry_point != templates.regular


def test_custom_template_path(tmp_path):
    custom = tmp_path / "entry.md"
    custom.write_text("# Custom entry rules")
    templates = load_prompt_templates({"prompts": {"entry_point": str(custom), "regular": None}})
    assert templates.entry_point == "# Custom entry rules"
    assert templates.regular.strip()


def test_missing_custom_template_raises(tmp_path):
    config = {"prompts": {"entry_point": None, "regular": str(tmp_path / "missing.md")}}
    with pytest.raises(FileNotFoundError):
        load_prompt_templates(config)


# ---------------------------------------------------------------------------
# build_review_config
# ---------------------------------------------------------------------------


def test_build_review_config_from_env(tmp_path, openai_env):
    review_config = build_review_config(load_config(config_path=str(tmp_path / "none.yml")), TEMPLATES)
    assert review_config.provider == "openai"
    assert review_config.api_key == "sk-test"
    assert review_config.model == "gpt-4o"
    assert review_config.max_input_tokens == 128000
    assert review_config.max_output_tokens == 4096
    assert review_config.base_url is None
    assert review_config.templates is TEMPLATES


def test_base_url_passed_through(tmp_path, openai_env, monkeypatch):
    monkeypatch.setenv("OPENAI_BASE_URL", "https://llm.example.com/v1")
    review_config = build_review_config(load_config(config_path=str(tmp_path / "none.yml")), TEMPLATES)
    assert review_config.base_url == "https://llm.example.com/v1"


def test_all_missing_settings_reported_together(tmp_path):
    with pytest.raises(ConfigError) as exc_info:
        build_review_config(load_config(config_path=str(tmp_path / "none.yml")), TEMPLATES)
    message = str(exc_info.value)
    for var in ("OPENAI_API_KEY", "OPENAI_MODEL", "OPENAI_MAX_INPUT_TOKENS", "OPENAI_MAX_OUTPUT_TOKENS"):
        assert var in message


def test_non_integer_token_limit_rejected(tmp_path, openai_env, monkeypatch):
    monkeypatch.setenv("OPENAI_MAX_INPUT_TOKENS", "lots")
    with pytest.raises(ConfigError, match="max_input_tokens"):
        build_review_config(load_config(config_path=str(tmp_path / "none.yml")), TEMPLATES)


def test_non_positive_token_limit_rejected(tmp_path, openai_env, monkeypatch):
    monkeypatch.setenv("OPENAI_MAX_OUTPUT_TOKENS", "-5")
    with pytest.raises(ConfigError, match="positive"):
        build_review_config(load_config(config_path=str(tmp_path / "none.yml")), TEMPLATES)


def test_unknown_provider_rejected(tmp_path, openai_env, monkeypatch):
    monkeypatch.setenv("PLUGINLENS_PROVIDER", "mistral")
    with pytest.raises(ConfigError, match="Unknown provider"):
        build_review_config(load_config(config_path=str(tmp_path / "none.yml")), TEMPLATES)


def test_anthropic_provider_uses_anthropic_key(tmp_path, openai_env, monkeypatch):
    monkeypatch.setenv("PLUGINLENS_PROVIDER", "anthropic")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ant-key")
    review_config = build_review_config(load_config(config_path=str(tmp_path / "none.yml")), TEMPLATES)
    assert review_config.provider == "anthropic"
    assert review_config.api_key == "ant-key"


def test_config_error_is_a_value_error():
    assert issubclass(ConfigError, ValueError)


@pytest.mark.parametrize("value", ["3.0", "0", "-0.5"])
def test_budget_ratio_out_of_range_rejected(tmp_path, openai_env, value):
    cfg = tmp_path / ".pluginlens.yml"
    cfg.write_text(f"budget_ratio: {value}\n")
    with pytest.raises(ConfigError, match="budget_ratio"):
        build_review_config(load_config(config_path=str(cfg)), TEMPLATES)


def test_budget_ratio_of_one_accepted(tmp_path, openai_env):
    cfg = tmp_path / ".pluginlens.yml"
    cfg.write_text("budget_ratio: 1\n")
    assert build_review_config(load_config(config_path=str(cfg)), TEMPLATES).budget_ratio == 1.0


@pytest.mark.parametrize("value,message", [("lots", "integer"), ("0", "positive")])
def test_invalid_max_files_rejected(tmp_path, openai_env, value, message):
    cfg = tmp_path / ".pluginlens.yml"
    cfg.write_text(f"max_files: {value}\n")
    with pytest.raises(ConfigError, match=message):
        build_review_config(load_config(config_path=str(cfg)), TEMPLATES)


def test_non_numeric_temperature_rejected(tmp_path, openai_env):
    cfg = tmp_path / ".pluginlens.yml"
    cfg.write_text("temperature: warm\n")
    with pytest.raises(ConfigError, match="temperature"):
        build_review_config(load_config(config_path=str(cfg)), TEMPLATES)


def test_numeric_settings_parsed_from_file(tmp_path, openai_env):
    cfg = tmp_path / ".pluginlens.yml"
    cfg.write_text("max_files: 5\nbudget_ratio: 0.5\ntemperature: 0\n")
    review_config = build_review_config(load_config(config_path=str(cfg)), TEMPLATES)
    assert review_config.max_files == 5
    assert review_config.budget_ratio == 0.5
    assert review_config.temperature == 0.0
