import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from pluginlens_core.planner import DEFAULT_BUDGET_RATIO, DEFAULT_MAX_FILES

DEFAULT_CONFIG: dict = {
    "provider": "openai",
    "model": None,
    "max_input_tokens": None,
    "max_output_tokens": None,
    "base_url": None,
    "temperature": 0.2,
    "trigger_label": "plugin-publish",
    "entry_point": "main.py",
    "file_extension": ".py",
    "language": "python",
    "comment_prefix": "#",
    "max_files": DEFAULT_MAX_FILES,
    "budget_ratio": DEFAULT_BUDGET_RATIO,
    # None = use the built-in template; set to a path string to override
    "prompts": {"entry_point": None, "regular": None},
}

# Environment variables win over the config file so CI secrets never need to
# be written to disk. Explicit CLI flags win over both.
_ENV_OVERRIDES = {
    "provider": "PLUGINLENS_PROVIDER",
    "model": "OPENAI_MODEL",
    "max_input_tokens": "OPENAI_MAX_INPUT_TOKENS",
    "max_output_tokens": "OPENAI_MAX_OUTPUT_TOKENS",
    "base_url": "OPENAI_BASE_URL",
}

_PROVIDER_KEYS = {"openai": "openai_api_key", "anthropic": "anthropic_api_key"}
_PROVIDER_KEY_ENV = {"openai": "OPENAI_API_KEY", "anthropic": "ANTHROPIC_API_KEY"}

BUILTIN_PROMPTS_DIR = Path(__file__).parent / "prompts"
_BUILTIN_PROMPTS = {
    "entry_point": BUILTIN_PROMPTS_DIR / "entry_point.md",
    "regular": BUILTIN_PROMPTS_DIR / "regular.md",
}


class ConfigError(ValueError):
    """Raised when required configuration is missing or malformed."""


@dataclass(frozen=True)
class PromptTemplates:
    entry_point: str
    regular: str


@dataclass(frozen=True)
class ReviewConfig:
    """Validated, immutable settings for one process, passed through the pipeline."""

    provider: str
    api_key: str
    model: str
    max_input_tokens: int
    max_output_tokens: int
    templates: PromptTemplates
    base_url: Optional[str] = None
    temperature: float = 0.2
    trigger_label: str = "plugin-publish"
    entry_point: str = "main.py"
    file_extension: str = ".py"
    language: str = "python"
    comment_prefix: str = "#"
    max_files: int = DEFAULT_MAX_FILES
    budget_ratio: float = DEFAULT_BUDGET_RATIO


def load_config(config_path: str = ".pluginlens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .pluginlens.yml in the current directory
      3. Environment variables
      4. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "prompts": dict(DEFAULT_CONFIG["prompts"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        prompts = file_config.pop("prompts", None) or {}
        config.update(file_config)
        config["prompts"].update(prompts)

    for key, env_var in _ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            config[key] = value

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")

    return config


def load_prompt_templates(config: dict) -> PromptTemplates:
    """
    Load the entry-point and regular-file review instructions.

    Each template is read from its configured path (relative to cwd) if set,
    otherwise from the built-in default shipped with the package.
    """
    prompts = config.get("prompts") or {}
    loaded = {}
    for name, builtin in _BUILTIN_PROMPTS.items():
        custom_path = prompts.get(name)
        if custom_path:
            p = Path(custom_path)
            if not p.exists():
                raise FileNotFoundError(f"Prompt template not found: {custom_path}")
            loaded[name] = p.read_text()
        elif builtin.exists():
            loaded[name] = builtin.read_text()
        else:
            raise FileNotFoundError(f"No {name} prompt configured and built-in default is missing.")
    return PromptTemplates(entry_point=loaded["entry_point"], regular=loaded["regular"])


def _parse_int(config: dict, key: str, default: Optional[int] = None) -> int:
    value = config.get(key, default)
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {value!r}.")
    if parsed <= 0:
        raise ConfigError(f"{key} must be positive, got {parsed}.")
    return parsed


def _parse_float(config: dict, key: str, default: float, low: float, high: float, low_inclusive: bool = False) -> float:
    value = config.get(key, default)
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number, got {value!r}.")
    above_low = parsed >= low if low_inclusive else parsed > low
    if not above_low or parsed > high:
        bracket = "[" if low_inclusive else "("
        raise ConfigError(f"{key} must be in {bracket}{low}, {high}], got {parsed}.")
    return parsed


def build_review_config(config: dict, templates: Optional[PromptTemplates] = None) -> ReviewConfig:
    """Validate a merged config dict and freeze it into a ReviewConfig.

    Fails fast: every missing required setting is reported in one error.
    """
    provider = config.get("provider")
    if provider not in _PROVIDER_KEYS:
        raise ConfigError(f"Unknown provider: {provider!r}. Choose 'openai' or 'anthropic'.")

    missing = []
    if not config.get(_PROVIDER_KEYS[provider]):
        missing.append(_PROVIDER_KEY_ENV[provider])
    for key in ("model", "max_input_tokens", "max_output_tokens"):
        if not config.get(key):
            missing.append(_ENV_OVERRIDES[key])
    if missing:
        raise ConfigError(f"Missing required configuration: {', '.join(missing)}")

    return ReviewConfig(
        provider=provider,
        api_key=config[_PROVIDER_KEYS[provider]],
        model=str(config["model"]),
        max_input_tokens=_parse_int(config, "max_input_tokens"),
        max_output_tokens=_parse_int(config, "max_output_tokens"),
        templates=templates if templates is not None else load_prompt_templates(config),
        base_url=config.get("base_url") or None,
        temperature=_parse_float(config, "temperature", 0.2, low=0.0, high=2.0, low_inclusive=True),
        trigger_label=config.get("trigger_label", "plugin-publish"),
        entry_point=config.get("entry_point", "main.py"),
        file_extension=config.get("file_extension", ".py"),
        language=config.get("language", "python"),
        comment_prefix=config.get("comment_prefix", "#"),
        max_files=_parse_int(config, "max_files", DEFAULT_MAX_FILES),
        # Above 1.0 the selection could outgrow the model's input window.
        budget_ratio=_parse_float(config, "budget_ratio", DEFAULT_BUDGET_RATIO, low=0.0, high=1.0),
    )
