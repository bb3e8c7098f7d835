"""Juliet: role-scoped prompts and state for the claude and codex CLIs."""

__version__ = "0.1.0"
