from __future__ import annotations

import string

from .errors import InvalidRoleNameError

INVALID_ROLE_NAME_RULES = "Use lowercase letters, numbers, and hyphens."

_ALLOWED_CHARACTERS = frozenset(string.ascii_lowercase + string.digits + "-")


def is_valid_role_name(name: str) -> bool:
    if not isinstance(name, str) or not name:
        return False
    if name.startswith("-") or name.endswith("-"):
        return False
    return all(character in _ALLOWED_CHARACTERS for character in name)


def validate_role_name(name: str) -> str:
    """Return ``name`` unchanged, or raise before any path is derived from it."""
    if not is_valid_role_name(name):
        raise InvalidRoleNameError(f"Invalid role name: {name}. {INVALID_ROLE_NAME_RULES}")
    return name
