"""Configuration loading from YAML and environment.

Everything is optional: without a config file the pb binary is looked up
as "pb" on the (widened) PATH with a 30 second timeout.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PBConfig(BaseSettings):
    """How to run the pb CLI."""

    model_config = SettingsConfigDict(env_prefix="PBVIEW_", extra="ignore", frozen=True)

    executable: str = Field(default="pb", description="pb binary: absolute path or name found via PATH")
    timeout: float = Field(default=30.0, gt=0, description="Per-command timeout in seconds")
    tool_name: str = Field(default="pebbles", description="Name printed before the version by `pb version`")
    extra_env: Dict[str, str] = Field(default_factory=dict, description="Extra env vars for every pb call")
    extra_paths: List[str] = Field(
        default_factory=list,
        description="Directories searched before the built-in PATH additions",
    )


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore", frozen=True)

    level: str = Field(default="INFO", description="Root log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    package_level: str = Field(default="", description="Level for pbview.* loggers; empty means root level")
    log_commands: bool = Field(default=False, description="Log every pb/git invocation at DEBUG")


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(env_prefix="PBVIEW_", extra="ignore", frozen=True)

    pb: PBConfig = Field(default_factory=PBConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    project: str = Field(default=".", description="Default project (repo) directory")


def _substitute_env(value: Any, env: Mapping[str, str]) -> Any:
    """Replace ${VAR} and $VAR strings with values from env (left as-is if unset)."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            return env.get(value[2:-1].strip(), value)
        if value.startswith("$"):
            return env.get(value[1:].strip(), value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v, env) for v in value]
    return value


def load_config(config_path: Path | None = None, env: Mapping[str, str] | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    Env vars (PBVIEW_*, LOGGING_*) fill fields the YAML does not set; `env`
    supplies values for ${VAR} substitution (defaults to os.environ).
    A missing file yields defaults.
    """
    env = dict(os.environ) if env is None else dict(env)
    path = config_path or Path("pbview.yaml")
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    raw = _substitute_env(raw, env)

    kwargs: Dict[str, Any] = {
        "pb": PBConfig(**(raw.get("pb") or {})),
        "logging": LoggingConfig(**(raw.get("logging") or {})),
    }
    if raw.get("project"):
        kwargs["project"] = str(raw["project"])
    return AppConfig(**kwargs)
