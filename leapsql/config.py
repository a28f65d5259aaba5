"""Project configuration from defaults, a YAML file, environment variables and flags.

Precedence, highest first: explicit overrides (command-line flags),
``LEAPSQL_*`` environment variables, the configuration file, defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

DEFAULT_MODELS_DIR = "models"
DEFAULT_SEEDS_DIR = "seeds"
DEFAULT_MACROS_DIR = "macros"
DEFAULT_STATE_FILE = ".leapsql/state.db"
DEFAULT_ENV = "dev"
DEFAULT_OUTPUT = "auto"  # TTY gets text, anything else markdown

ENV_PREFIX = "LEAPSQL"
CONFIG_FILE_NAMES = (
    "leapsql.yaml",
    "leapsql.yml",
    ".leapsql.yaml",
    ".leapsql.yml",
)
_SUPPORTED_SUFFIXES = (".yaml", ".yml", ".json")

_KEYS = (
    "models_dir",
    "seeds_dir",
    "macros_dir",
    "database",
    "state_path",
    "environment",
    "verbose",
    "output",
)

_DEFAULTS: dict[str, Any] = {
    "models_dir": DEFAULT_MODELS_DIR,
    "seeds_dir": DEFAULT_SEEDS_DIR,
    "macros_dir": DEFAULT_MACROS_DIR,
    "database": "",
    "state_path": DEFAULT_STATE_FILE,
    "environment": DEFAULT_ENV,
    "verbose": False,
    "output": DEFAULT_OUTPUT,
}

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False", ""}


class ConfigError(ValueError):
    """Raised when configuration cannot be read, decoded or validated."""


@dataclass
class EnvConfig:
    """Overrides applied when a named environment is selected."""

    database_path: str = ""
    models_dir: str = ""
    seeds_dir: str = ""
    macros_dir: str = ""


@dataclass
class Config:
    """Resolved configuration for a project."""

    models_dir: str = DEFAULT_MODELS_DIR
    seeds_dir: str = DEFAULT_SEEDS_DIR
    macros_dir: str = DEFAULT_MACROS_DIR
    database_path: str = ""
    state_path: str = DEFAULT_STATE_FILE
    environment: str = DEFAULT_ENV
    verbose: bool = False
    output_format: str = DEFAULT_OUTPUT
    environments: dict[str, EnvConfig] = field(default_factory=dict)
    config_file: str = ""

    def validate(self) -> None:
        """Check that required settings are present."""
        if not self.models_dir:
            raise ConfigError("models_dir is required")

    def validate_directories(self) -> None:
        """Check that the models directory exists."""
        if not Path(self.models_dir).exists():
            raise ConfigError(
                f"models directory does not exist: {self.models_dir}\n"
                "Hint: Create the directory or use --models-dir to specify a different path"
            )


def _env_name(key: str) -> str:
    return f"{ENV_PREFIX}_{key.upper().replace('-', '_').replace('.', '_')}"


def _as_string(value: Any, key: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ConfigError(f"unable to decode config: {key} must be a string, got {value!r}")


def _as_bool(value: Any, key: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
    raise ConfigError(f"unable to decode config: {key} must be a boolean, got {value!r}")


def _read_file(path: Path) -> dict[str, Any]:
    if path.suffix.lower() not in _SUPPORTED_SUFFIXES:
        raise ConfigError(
            f"error reading config file {path}: unsupported config type {path.suffix!r}"
        )
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"error reading config file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"error reading config file {path}: top level must be a mapping")
    return {str(k).lower(): v for k, v in data.items()}


def _candidate_files() -> list[Path]:
    candidates = [Path(name) for name in CONFIG_FILE_NAMES]
    try:
        home = Path.home()
    except RuntimeError:
        return candidates
    candidates += [home / ".leapsql" / "leapsql.yaml", home / ".leapsql" / "leapsql.yml"]
    return candidates


def _decode_environments(value: Any) -> dict[str, EnvConfig]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError("unable to decode config: environments must be a mapping")
    result: dict[str, EnvConfig] = {}
    for name, entry in value.items():
        entry = entry or {}
        if not isinstance(entry, dict):
            raise ConfigError(f"unable to decode config: environment {name!r} must be a mapping")
        entry = {str(k).lower(): v for k, v in entry.items()}
        result[str(name)] = EnvConfig(
            database_path=_as_string(entry.get("database"), "database"),
            models_dir=_as_string(entry.get("models_dir"), "models_dir"),
            seeds_dir=_as_string(entry.get("seeds_dir"), "seeds_dir"),
            macros_dir=_as_string(entry.get("macros_dir"), "macros_dir"),
        )
    return result


def load_config(
    cfg_file: str | os.PathLike[str] | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Resolve configuration from file, environment and explicit overrides."""
    environ = os.environ if environ is None else environ
    settings: dict[str, Any] = dict(_DEFAULTS)
    file_data: dict[str, Any] = {}
    used = ""

    if cfg_file:
        path = Path(cfg_file)
        if not path.is_file():
            raise ConfigError(f"error reading config file {cfg_file}: file not found")
        file_data = _read_file(path)
        used = str(path)
    else:
        for path in _candidate_files():
            if path.exists():
                file_data = _read_file(path)
                used = str(path)
                break

    settings.update({key: file_data[key] for key in _KEYS if key in file_data})

    for key in _KEYS:
        value = environ.get(_env_name(key))
        if value:
            settings[key] = value

    for raw_key, value in (overrides or {}).items():
        key = raw_key.replace("-", "_").lower()
        if key not in _KEYS:
            raise ConfigError(f"unknown configuration key: {raw_key}")
        if value is not None:
            settings[key] = value

    cfg = Config(
        models_dir=_as_string(settings["models_dir"], "models_dir"),
        seeds_dir=_as_string(settings["seeds_dir"], "seeds_dir"),
        macros_dir=_as_string(settings["macros_dir"], "macros_dir"),
        database_path=_as_string(settings["database"], "database"),
        state_path=_as_string(settings["state_path"], "state_path"),
        environment=_as_string(settings["environment"], "environment"),
        verbose=_as_bool(settings["verbose"], "verbose"),
        output_format=_as_string(settings["output"], "output"),
        environments=_decode_environments(file_data.get("environments")),
        config_file=used,
    )

    selected = cfg.environments.get(cfg.environment) if cfg.environment else None
    if selected is not None:
        if selected.database_path:
            cfg.database_path = selected.database_path
        if selected.models_dir:
            cfg.models_dir = selected.models_dir
        if selected.seeds_dir:
            cfg.seeds_dir = selected.seeds_dir
        if selected.macros_dir:
            cfg.macros_dir = selected.macros_dir

    return cfg