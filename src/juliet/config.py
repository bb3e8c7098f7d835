from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Mapping

from dotenv import dotenv_values

from .errors import ConfigError

ENV_CODEX_BIN = "JULIET_CODEX_BIN"
ENV_CLAUDE_BIN = "JULIET_CLAUDE_BIN"
ENV_PROMPT_SEED = "JULIET_PROMPT_SEED"
ENV_LOG_LEVEL = "JULIET_LOG_LEVEL"

DEFAULT_LOG_LEVEL = "WARNING"
PROJECT_ENV_FILE = ".env"


@dataclass(frozen=True)
class JulietConfig:
    codex_bin: str = "codex"
    claude_bin: str = "claude"
    prompt_seed_path: Path | None = None
    log_level: int = logging.WARNING


def find_project_env(project_root: Path) -> Path | None:
    root = Path(project_root)
    for parent in (root, *root.resolve().parents):
        candidate = parent / PROJECT_ENV_FILE
        if candidate.is_file():
            return candidate
    return None


def load_project_env(project_root: Path) -> dict[str, str]:
    """Read the nearest ``.env`` at or above ``project_root`` without touching ``os.environ``."""
    path = find_project_env(project_root)
    if path is None:
        return {}
    return {name: value for name, value in dotenv_values(path).items() if value is not None}


def resolve_config(
    *,
    explicit_codex_bin: str | None = None,
    explicit_claude_bin: str | None = None,
    explicit_prompt_seed_path: Path | None = None,
    explicit_log_level: str | None = None,
    env: Mapping[str, str] | None = None,
    project_root: Path | None = None,
) -> JulietConfig:
    env_values = dict(os.environ if env is None else env)
    if project_root is not None:
        for name, value in load_project_env(project_root).items():
            env_values.setdefault(name, value)

    codex_bin = _resolve_setting(explicit_codex_bin, env_values, ENV_CODEX_BIN, "codex")
    claude_bin = _resolve_setting(explicit_claude_bin, env_values, ENV_CLAUDE_BIN, "claude")
    seed_path = _resolve_setting(
        None if explicit_prompt_seed_path is None else str(explicit_prompt_seed_path),
        env_values,
        ENV_PROMPT_SEED,
        None,
    )
    log_level = _resolve_setting(explicit_log_level, env_values, ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)

    return JulietConfig(
        codex_bin=codex_bin,
        claude_bin=claude_bin,
        prompt_seed_path=None if seed_path is None else Path(seed_path).expanduser(),
        log_level=_coerce_log_level(log_level),
    )


def _resolve_setting(
    explicit: str | None,
    env: Mapping[str, str],
    env_key: str,
    default: str | None,
) -> str | None:
    for candidate in (explicit, env.get(env_key)):
        if candidate is not None and candidate.strip():
            return candidate.strip()
    return default


def _coerce_log_level(value: str) -> int:
    level = logging.getLevelName(value.upper())
    if not isinstance(level, int):
        raise ConfigError(f"{ENV_LOG_LEVEL} must be a logging level name, got '{value}'")
    return level
