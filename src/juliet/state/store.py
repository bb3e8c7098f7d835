from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Iterator

from ..errors import RoleNotFoundError, RoleStateError
from ..prompts import render_role_prompt
from ..role_name import is_valid_role_name, validate_role_name
from .backend import LocalRoleFileSystem, RoleFileSystem
from .layout import (
    ARTIFACTS_DIR,
    PROMPT_FILE,
    RUNTIME_PROMPT_FILE,
    SHARED_LEARNINGS_FILE,
    STATE_FILES,
    STATE_GITIGNORE_CONTENT,
    STATE_GITIGNORE_FILE,
    STATE_ROOT_DIR,
    RoleListing,
    gitignore_needs_write,
    is_scaffolded,
    plan_scaffold,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class ConfiguredRole:
    name: str
    prompt_path: Path = field(compare=False)


@dataclass
class InitResult:
    role: str
    created: list[str]
    skipped: list[str]
    already_existed: bool = False


class RoleStateStore:
    """Owns the ``.juliet/`` layout of one project root."""

    def __init__(self, project_root: Path, *, filesystem: RoleFileSystem | None = None) -> None:
        self.project_root = Path(project_root)
        self.state_root = self.project_root / STATE_ROOT_DIR
        self.gitignore_path = self.state_root / STATE_GITIGNORE_FILE
        self.shared_learnings_path = self.state_root / SHARED_LEARNINGS_FILE
        self._fs = filesystem if filesystem is not None else LocalRoleFileSystem()

    def role_dir(self, role: str) -> Path:
        return self.state_root / validate_role_name(role)

    def prompt_path(self, role: str) -> Path:
        return self.role_dir(role) / PROMPT_FILE

    def runtime_prompt_path(self, role: str) -> Path:
        return self.role_dir(role) / RUNTIME_PROMPT_FILE

    def artifacts_dir(self, role: str) -> Path:
        return self.role_dir(role) / ARTIFACTS_DIR

    def state_file_paths(self, role: str) -> list[Path]:
        role_dir = self.role_dir(role)
        return [role_dir / name for name in STATE_FILES]

    def listing(self, role: str) -> RoleListing:
        role_dir = self.role_dir(role)
        if not self._fs.is_dir(role_dir):
            return RoleListing.empty()
        with self._io_errors("list", role_dir):
            files, directories = self._fs.list_entries(role_dir)
        return RoleListing(exists=True, files=files, directories=directories)

    def is_scaffolded(self, role: str) -> bool:
        return is_scaffolded(self.listing(role))

    def create(self, role: str, seed: str) -> InitResult:
        """Scaffold ``role``, adding only what is missing.

        The state ``.gitignore`` is rewritten whenever it is missing or has
        drifted from its canonical content.
        """
        role_dir = self.role_dir(role)
        result = InitResult(role=role, created=[], skipped=[])

        with self._io_errors("create", self.state_root):
            self._fs.make_dir(self.state_root)
        self._ensure_gitignore(result)
        self._ensure_shared_learnings(result)

        if self._fs.is_file(role_dir):
            raise RoleStateError(
                f"expected directory at '{role_dir}', found non-directory entry",
                path=role_dir,
            )
        listing = self.listing(role)
        plan = plan_scaffold(listing)
        if plan.conflicts:
            conflict = plan.conflicts[0]
            expected = "directory" if conflict == ARTIFACTS_DIR else "file"
            raise RoleStateError(
                f"expected {expected} at '{role_dir / conflict}', found non-{expected} entry",
                path=role_dir / conflict,
            )
        result.already_existed = plan.is_noop

        if plan.create_role_directory:
            with self._io_errors("create", role_dir):
                self._fs.make_dir(role_dir)
        for name in plan.create_directories:
            path = role_dir / name
            with self._io_errors("create", path):
                self._fs.make_dir(path)
            result.created.append(self._relative(path))
        for name in plan.create_files:
            path = role_dir / name
            content = render_role_prompt(role, seed) if name == PROMPT_FILE else ""
            with self._io_errors("create", path):
                created = self._fs.create_file(path, content.encode("utf-8"))
            self._record(result, path, created)
        result.skipped.extend(self._relative(role_dir / name) for name in plan.preserved)

        logger.debug(
            "scaffolded role %s: created=%s skipped=%s", role, result.created, result.skipped
        )
        return result

    def discover(self) -> list[ConfiguredRole]:
        if not self._fs.is_dir(self.state_root):
            return []
        with self._io_errors("list", self.state_root):
            _, directories = self._fs.list_entries(self.state_root)

        roles = []
        for name in sorted(directories):
            if not is_valid_role_name(name):
                logger.debug("ignoring state directory with invalid role name: %s", name)
                continue
            if self.is_scaffolded(name):
                roles.append(ConfiguredRole(name=name, prompt_path=self.prompt_path(name)))
        return roles

    def clear_history(self, role: str) -> None:
        self._require_scaffolded(role)
        for path in self.state_file_paths(role):
            with self._io_errors("truncate", path):
                self._fs.write_bytes(path, b"")

        runtime_prompt = self.runtime_prompt_path(role)
        with self._io_errors("remove", runtime_prompt):
            self._fs.remove_file(runtime_prompt)

        artifacts = self.artifacts_dir(role)
        with self._io_errors("list", artifacts):
            files, directories = self._fs.list_entries(artifacts)
        for name in sorted(files | directories):
            path = artifacts / name
            with self._io_errors("remove", path):
                self._fs.remove_tree(path)
        logger.debug("cleared history for role %s", role)

    def reset_prompt(self, role: str, seed: str) -> None:
        self._require_scaffolded(role)
        path = self.prompt_path(role)
        with self._io_errors("write", path):
            self._fs.write_bytes(path, render_role_prompt(role, seed).encode("utf-8"))

    def stage_prompt(self, role: str) -> str:
        """Copy ``prompt.md`` to the runtime prompt file and return its text."""
        self._require_scaffolded(role)
        source = self.prompt_path(role)
        with self._io_errors("read", source):
            data = self._fs.read_bytes(source)
            text = data.decode("utf-8")

        target = self.runtime_prompt_path(role)
        with self._io_errors("write", target):
            self._fs.write_bytes(target, data)
        logger.debug("staged prompt for role %s at %s", role, target)
        return text

    def _require_scaffolded(self, role: str) -> None:
        if not self.is_scaffolded(role):
            raise RoleNotFoundError(f"Role '{role}' is not initialized.")

    def _ensure_gitignore(self, result: InitResult) -> None:
        path = self.gitignore_path
        if self._fs.is_dir(path):
            raise RoleStateError(f"expected file at '{path}', found non-file entry", path=path)
        current = None
        if self._fs.is_file(path):
            with self._io_errors("read", path):
                current = self._fs.read_bytes(path).decode("utf-8", errors="replace")
        if gitignore_needs_write(current):
            with self._io_errors("write", path):
                self._fs.write_bytes(path, STATE_GITIGNORE_CONTENT.encode("utf-8"))
            logger.debug("repaired state gitignore at %s", path)
            result.created.append(self._relative(path))
        else:
            result.skipped.append(self._relative(path))

    def _ensure_shared_learnings(self, result: InitResult) -> None:
        path = self.shared_learnings_path
        if self._fs.is_dir(path):
            raise RoleStateError(f"expected file at '{path}', found non-file entry", path=path)
        with self._io_errors("create", path):
            created = self._fs.create_file(path)
        self._record(result, path, created)

    def _record(self, result: InitResult, path: Path, was_created: bool) -> None:
        if was_created:
            result.created.append(self._relative(path))
        else:
            result.skipped.append(self._relative(path))

    def _relative(self, path: Path) -> str:
        return path.relative_to(self.project_root).as_posix()

    @contextmanager
    def _io_errors(self, action: str, path: Path) -> Iterator[None]:
        try:
            yield
        except (OSError, UnicodeDecodeError) as exc:
            raise RoleStateError(f"failed to {action} {path}: {exc}", path=path) from exc
