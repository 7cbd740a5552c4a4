from __future__ import annotations

import copy
import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import yaml
from jsonschema import ValidationError, validate

from prdsmith.adapters.llm_base import GenerationOptions, Provider, Purpose
from prdsmith.errors import ConfigError

CONFIG_ENV_VAR = "PRDSMITH_CONFIG"
DEFAULT_CONFIG_FILENAME = ".prdsmith.yaml"

API_KEY_ENV_VARS: Dict[Provider, str] = {
    Provider.OPENAI: "OPENAI_API_KEY",
    Provider.GEMINI: "GEMINI_API_KEY",
    Provider.CLAUDE: "ANTHROPIC_API_KEY",
}

_PURPOSE_PREFIX: Dict[Purpose, str] = {
    Purpose.QUESTION: "question",
    Purpose.PRD: "prd",
    Purpose.TRD: "trd",
    Purpose.TODO: "todo",
}

DEFAULT_CONFIG: Dict[str, Any] = {
    "provider": "openai",
    "openai": {
        "api_key": "",
        "question_model": "gpt-5",
        "prd_model": "gpt-5",
        "trd_model": "gpt-5",
        "todo_model": "gpt-5",
        "question_verbosity": "low",
        "prd_verbosity": "medium",
        "trd_verbosity": "medium",
        "todo_verbosity": "medium",
        "question_reasoning_effort": "minimal",
        "prd_reasoning_effort": "medium",
        "trd_reasoning_effort": "medium",
        "todo_reasoning_effort": "medium",
    },
    "gemini": {
        "api_key": "",
        "question_model": "gemini-2.5-pro",
        "prd_model": "gemini-2.5-pro",
        "trd_model": "gemini-2.5-pro",
        "todo_model": "gemini-2.5-pro",
    },
    "claude": {
        "api_key": "",
        "question_model": "claude-opus-4-1-20250805",
        "prd_model": "claude-opus-4-1-20250805",
        "trd_model": "claude-opus-4-1-20250805",
        "todo_model": "claude-opus-4-1-20250805",
        "max_tokens": 8000,
    },
    "app": {
        "default_questions": 10,
        "verbose": False,
        "skip_trd": False,
        "skip_todo": False,
        "log": False,
        "log_dir": "logs",
        "output_dir": ".",
    },
}

_PROVIDER_SECTION_SCHEMA = {"type": "object"}

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["provider", "openai", "gemini", "claude", "app"],
    "properties": {
        "provider": {"enum": [p.value for p in Provider]},
        "openai": {
            "type": "object",
            "properties": {
                "api_key": {"type": ["string", "null"]},
                **{
                    f"{prefix}_{knob}": {"type": ["string", "null"]}
                    for prefix in _PURPOSE_PREFIX.values()
                    for knob in ("model", "verbosity", "reasoning_effort")
                },
            },
        },
        "gemini": _PROVIDER_SECTION_SCHEMA,
        "claude": {
            "type": "object",
            "properties": {"max_tokens": {"type": "integer", "minimum": 1}},
        },
        "app": {
            "type": "object",
            "properties": {
                "default_questions": {"type": "integer", "minimum": 1, "maximum": 50},
                "verbose": {"type": "boolean"},
                "skip_trd": {"type": "boolean"},
                "skip_todo": {"type": "boolean"},
                "log": {"type": "boolean"},
                "log_dir": {"type": "string"},
                "output_dir": {"type": "string"},
            },
        },
    },
}


@dataclass(frozen=True)
class AppSettings:
    default_questions: int
    verbose: bool
    skip_trd: bool
    skip_todo: bool
    log: bool
    log_dir: Path
    output_dir: Path


@dataclass(frozen=True)
class AppConfig:
    """Effective configuration for one AI call. Loaded fresh per call."""

    provider: Provider
    sections: Mapping[str, Mapping[str, Any]]
    app: AppSettings
    source: Optional[Path] = None

    def section(self, provider: Optional[Provider] = None) -> Mapping[str, Any]:
        return self.sections[(provider or self.provider).value]

    def model_for(self, purpose: Purpose) -> str:
        model = self.section().get(f"{_PURPOSE_PREFIX[purpose]}_model")
        if not model:
            raise ConfigError(
                f"No model configured for {purpose.value} on provider '{self.provider.value}'."
            )
        return str(model)

    def generation_options_for(self, purpose: Purpose) -> GenerationOptions:
        # Only OpenAI exposes verbosity and reasoning effort.
        if self.provider is not Provider.OPENAI:
            return GenerationOptions()
        section = self.section()
        prefix = _PURPOSE_PREFIX[purpose]
        return GenerationOptions(
            verbosity=section.get(f"{prefix}_verbosity") or None,
            reasoning_effort=section.get(f"{prefix}_reasoning_effort") or None,
        )

    def api_key_for(self, provider: Optional[Provider] = None) -> Optional[str]:
        provider = provider or self.provider
        key = self.section(provider).get("api_key")
        return key or os.getenv(API_KEY_ENV_VARS[provider]) or None

    def with_overrides(
        self,
        provider: Optional[str] = None,
        log: Optional[bool] = None,
        verbose: Optional[bool] = None,
        output_dir: Optional[Path] = None,
        skip_trd: Optional[bool] = None,
        skip_todo: Optional[bool] = None,
    ) -> "AppConfig":
        app_changes: Dict[str, Any] = {}
        if skip_trd:
            app_changes["skip_trd"] = True
        if skip_todo:
            app_changes["skip_todo"] = True
        if log is not None:
            app_changes["log"] = log
        if verbose is not None:
            app_changes["verbose"] = verbose
        if output_dir is not None:
            app_changes["output_dir"] = Path(output_dir)
        return dataclasses.replace(
            self,
            provider=_parse_provider(provider) if provider else self.provider,
            app=dataclasses.replace(self.app, **app_changes),
        )


def _parse_provider(value: str) -> Provider:
    try:
        return Provider(value)
    except ValueError as exc:
        choices = ", ".join(p.value for p in Provider)
        raise ConfigError(f"Unknown provider '{value}'. Choose one of: {choices}.") from exc


def config_path(path: Optional[Path] = None) -> Path:
    if path is not None:
        return Path(path).expanduser()
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / DEFAULT_CONFIG_FILENAME


def merge_config(defaults: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge one level deep, the way section-based config files are written."""
    result = copy.deepcopy(dict(defaults))
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), Mapping):
            result[key] = {**result[key], **value}
        else:
            result[key] = value
    return result


def _read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level.")
    return loaded


def config_from_dict(raw: Mapping[str, Any], source: Optional[Path] = None) -> AppConfig:
    merged = merge_config(DEFAULT_CONFIG, raw)
    try:
        validate(instance=merged, schema=CONFIG_SCHEMA)
    except ValidationError as exc:
        where = f" in {source}" if source else ""
        location = ".".join(str(part) for part in exc.absolute_path) or "<root>"
        raise ConfigError(f"Invalid config{where} at {location}: {exc.message}") from exc

    app = merged["app"]
    log_dir = Path(app["log_dir"]).expanduser()
    settings = AppSettings(
        default_questions=int(app["default_questions"]),
        verbose=bool(app["verbose"]),
        skip_trd=bool(app["skip_trd"]),
        skip_todo=bool(app["skip_todo"]),
        log=bool(app["log"]),
        log_dir=log_dir,
        output_dir=Path(app["output_dir"]).expanduser(),
    )
    return AppConfig(
        provider=_parse_provider(merged["provider"]),
        sections={p.value: dict(merged[p.value]) for p in Provider},
        app=settings,
        source=source,
    )


def load_config(path: Optional[Path] = None) -> AppConfig:
    resolved = config_path(path)
    return config_from_dict(_read_config_file(resolved), source=resolved)


def config_loader(path: Optional[Path] = None, **overrides: Any) -> Callable[[], AppConfig]:
    """Build a zero-argument loader that re-reads the file on every call."""

    def _load() -> AppConfig:
        return load_config(path).with_overrides(**overrides)

    return _load
