"""Role directory layout and the pure decisions made over it.

Nothing in this module touches the filesystem: callers describe what is on
disk with a :class:`RoleListing` and apply the returned plan themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field

STATE_ROOT_DIR = ".juliet"
STATE_GITIGNORE_FILE = ".gitignore"
SHARED_LEARNINGS_FILE = "learnings.md"

PROMPT_FILE = "prompt.md"
RUNTIME_PROMPT_FILE = "juliet-prompt.md"
ARTIFACTS_DIR = "artifacts"
STATE_FILES = (
    "session.md",
    "needs-from-operator.md",
    "projects.md",
    "processes.md",
    "learnings.md",
)

STATE_GITIGNORE_CONTENT = "*\n!*/\n!*/prompt.md\n"


@dataclass(frozen=True)
class RoleListing:
    """Entries found directly inside one role directory."""

    exists: bool = False
    files: frozenset[str] = frozenset()
    directories: frozenset[str] = frozenset()

    @classmethod
    def empty(cls) -> "RoleListing":
        return cls()


@dataclass(frozen=True)
class ScaffoldPlan:
    create_role_directory: bool
    create_directories: tuple[str, ...] = ()
    create_files: tuple[str, ...] = ()
    preserved: tuple[str, ...] = ()
    conflicts: tuple[str, ...] = field(default=())

    @property
    def is_noop(self) -> bool:
        return not (self.create_role_directory or self.create_directories or self.create_files)


def is_scaffolded(listing: RoleListing) -> bool:
    if not listing.exists:
        return False
    if ARTIFACTS_DIR not in listing.directories:
        return False
    return all(name in listing.files for name in STATE_FILES)


def plan_scaffold(listing: RoleListing) -> ScaffoldPlan:
    """Work out which pieces of a role are missing.

    Present entries are only ever reported as preserved. A required file
    occupied by a directory, or the other way round, is a conflict.
    """
    create_directories: list[str] = []
    create_files: list[str] = []
    preserved: list[str] = []
    conflicts: list[str] = []

    if ARTIFACTS_DIR in listing.directories:
        preserved.append(ARTIFACTS_DIR)
    elif ARTIFACTS_DIR in listing.files:
        conflicts.append(ARTIFACTS_DIR)
    else:
        create_directories.append(ARTIFACTS_DIR)

    for name in (PROMPT_FILE, *STATE_FILES):
        if name in listing.files:
            preserved.append(name)
        elif name in listing.directories:
            conflicts.append(name)
        else:
            create_files.append(name)

    return ScaffoldPlan(
        create_role_directory=not listing.exists,
        create_directories=tuple(create_directories),
        create_files=tuple(create_files),
        preserved=tuple(preserved),
        conflicts=tuple(conflicts),
    )


def gitignore_needs_write(current_content: str | None) -> bool:
    return current_content != STATE_GITIGNORE_CONTENT
