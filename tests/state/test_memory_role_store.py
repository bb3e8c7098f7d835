from __future__ import annotations

from pathlib import Path
import unittest

from juliet.errors import RoleStateError
from juliet.prompts import render_role_prompt
from juliet.state.backend import MemoryRoleFileSystem, RoleFileSystem
from juliet.state.layout import STATE_FILES, STATE_GITIGNORE_CONTENT
from juliet.state.store import RoleStateStore

PROJECT = Path("/project")


class MemoryRoleStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.fs = MemoryRoleFileSystem()
        self.fs.make_dir(PROJECT)
        self.store = RoleStateStore(PROJECT, filesystem=self.fs)
        self.role_dir = PROJECT / ".juliet" / "ops"

    def test_memory_backend_satisfies_protocol(self) -> None:
        self.assertIsInstance(self.fs, RoleFileSystem)

    def test_create_twice_never_changes_existing_bytes(self) -> None:
        self.store.create("ops", "seed")
        self.fs.write_bytes(self.role_dir / "prompt.md", b"custom")
        self.fs.write_bytes(self.role_dir / "projects.md", b"projects")
        before = dict(self.fs.files)

        self.store.create("ops", "other seed")

        self.assertEqual(self.fs.files, before)

    def test_create_scaffolds_every_piece(self) -> None:
        self.assertFalse(self.store.is_scaffolded("ops"))

        self.store.create("ops", "seed")

        self.assertTrue(self.store.is_scaffolded("ops"))
        self.assertTrue(self.fs.is_dir(self.role_dir / "artifacts"))
        for name in STATE_FILES:
            self.assertEqual(self.fs.read_bytes(self.role_dir / name), b"")
        self.assertEqual(
            self.fs.read_bytes(self.role_dir / "prompt.md").decode("utf-8"),
            render_role_prompt("ops", "seed"),
        )
        self.assertEqual(
            self.fs.read_bytes(PROJECT / ".juliet" / ".gitignore").decode("utf-8"),
            STATE_GITIGNORE_CONTENT,
        )

    def test_clear_history_empties_nested_artifacts(self) -> None:
        self.store.create("ops", "seed")
        self.fs.make_dir(self.role_dir / "artifacts" / "deep" / "deeper")
        self.fs.write_bytes(self.role_dir / "artifacts" / "deep" / "deeper" / "x.md", b"x")
        self.fs.write_bytes(self.role_dir / "artifacts" / "top.txt", b"top")
        self.fs.write_bytes(self.role_dir / "session.md", b"session")

        self.store.clear_history("ops")

        self.assertEqual(self.fs.list_entries(self.role_dir / "artifacts"), (frozenset(), frozenset()))
        self.assertTrue(self.fs.is_dir(self.role_dir / "artifacts"))
        self.assertEqual(self.fs.read_bytes(self.role_dir / "session.md"), b"")

    def test_discover_sorts_by_name(self) -> None:
        for role in ["zeta-team", "alpha-team", "mid"]:
            self.store.create(role, "seed")

        self.assertEqual(
            [role.name for role in self.store.discover()],
            ["alpha-team", "mid", "zeta-team"],
        )

    def test_write_failure_surfaces_with_path(self) -> None:
        self.fs.write_bytes(PROJECT / ".juliet", b"occupied")

        with self.assertRaises(RoleStateError) as ctx:
            self.store.create("ops", "seed")
        self.assertEqual(ctx.exception.path, PROJECT / ".juliet")


if __name__ == "__main__":
    unittest.main()
