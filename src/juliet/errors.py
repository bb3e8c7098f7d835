from __future__ import annotations

from pathlib import Path


class JulietError(RuntimeError):
    """Base class for failures that end the current juliet invocation."""

    code = "E_JULIET"
    exit_code = 1

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class InvalidRoleNameError(JulietError, ValueError):
    code = "E_INVALID_ROLE_NAME"


class RoleNotFoundError(JulietError):
    code = "E_ROLE_NOT_FOUND"


class AmbiguousRoleError(JulietError):
    code = "E_ROLE_AMBIGUOUS"

    def __init__(self, message: str, *, candidates: list[str]) -> None:
        super().__init__(message)
        self.candidates = list(candidates)


class RoleStateError(JulietError):
    """Raised when role state cannot be read or written on disk."""

    code = "E_ROLE_STATE_IO"

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = Path(path)


class ExecParseError(JulietError):
    code = "E_EXEC_PARSE"


class EngineError(JulietError):
    code = "E_ENGINE"


class ConfigError(JulietError):
    code = "E_CONFIG"


__all__ = [
    "AmbiguousRoleError",
    "ConfigError",
    "EngineError",
    "ExecParseError",
    "InvalidRoleNameError",
    "JulietError",
    "RoleNotFoundError",
    "RoleStateError",
]
