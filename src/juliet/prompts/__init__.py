"""Role prompt template and the packaged default prompt seed."""

from __future__ import annotations

from importlib import resources
from pathlib import Path

from ..errors import ConfigError

OPERATOR_PLACEHOLDER = (
    "<!-- TODO: Replace with role-specific instructions and expected operator input. -->"
)
DEFAULT_SEED_RESOURCE = "juliet.md"


def render_role_prompt(role_name: str, seed: str) -> str:
    return f"# {role_name}\n\n{OPERATOR_PLACEHOLDER}\n\n## Default Prompt Seed\n\n{seed}"


def load_default_seed(path: Path | None = None) -> str:
    """Read the default prompt seed.

    The packaged ``juliet.md`` asset is used unless ``path`` points at an
    operator-supplied replacement.
    """
    if path is not None:
        try:
            return Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"failed to read prompt seed at {path}: {exc}") from exc
    return resources.files(__name__).joinpath(DEFAULT_SEED_RESOURCE).read_text(encoding="utf-8")


__all__ = [
    "DEFAULT_SEED_RESOURCE",
    "OPERATOR_PLACEHOLDER",
    "load_default_seed",
    "render_role_prompt",
]
