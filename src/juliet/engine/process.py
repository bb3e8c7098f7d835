from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import os
from pathlib import Path
import subprocess
from typing import Mapping

from ..config import JulietConfig
from ..errors import EngineError

logger = logging.getLogger(__name__)

CODEX_BYPASS_FLAG = "--dangerously-bypass-approvals-and-sandbox"
CLAUDE_BYPASS_FLAG = "--dangerously-skip-permissions"
CLAUDE_SANDBOX_ENV = {"IS_SANDBOX": "1"}


class Engine(str, Enum):
    CLAUDE = "claude"
    CODEX = "codex"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class EngineOutput:
    status_code: int
    stdout: str
    stderr: str


class EngineProcess:
    """Spawns engine binaries and blocks until they exit."""

    def __init__(
        self,
        *,
        codex_bin: str = "codex",
        claude_bin: str = "claude",
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._binaries = {Engine.CODEX: codex_bin, Engine.CLAUDE: claude_bin}
        self._env = env

    @classmethod
    def from_config(cls, config: JulietConfig) -> "EngineProcess":
        return cls(codex_bin=config.codex_bin, claude_bin=config.claude_bin)

    def interactive_command(self, engine: Engine, prompt: str) -> list[str]:
        engine = Engine(engine)
        flag = CODEX_BYPASS_FLAG if engine is Engine.CODEX else CLAUDE_BYPASS_FLAG
        return [self._binaries[engine], flag, prompt]

    def exec_command(self, engine: Engine, prompt: str, continue_id: str | None = None) -> list[str]:
        engine = Engine(engine)
        if engine is Engine.CODEX:
            command = [self._binaries[engine], CODEX_BYPASS_FLAG, "exec"]
            if continue_id is not None:
                command.extend(["resume", continue_id])
            return command + [prompt, "--json"]

        command = [self._binaries[engine], CLAUDE_BYPASS_FLAG]
        if continue_id is not None:
            command.extend(["--resume", continue_id])
        return command + ["-p", prompt, "--output-format", "json"]

    def invoke_interactive(self, engine: Engine, prompt: str, cwd: Path) -> int:
        command = self.interactive_command(engine, prompt)
        logger.debug("launching %s interactively in %s", engine, cwd)
        try:
            completed = subprocess.run(
                command,
                cwd=cwd,
                env=self._environment(engine),
                check=False,
            )
        except OSError as exc:
            raise EngineError(f"failed to run engine: {exc}") from exc
        return _exit_status(completed.returncode)

    def invoke_exec_json(
        self,
        engine: Engine,
        prompt: str,
        continue_id: str | None,
        cwd: Path,
    ) -> EngineOutput:
        command = self.exec_command(engine, prompt, continue_id)
        logger.debug("running %s exec turn in %s (resume=%s)", engine, cwd, continue_id)
        try:
            completed = subprocess.run(
                command,
                cwd=cwd,
                env=self._environment(engine),
                capture_output=True,
                check=False,
            )
        except OSError as exc:
            raise EngineError(f"failed to run engine: {exc}") from exc
        return EngineOutput(
            status_code=_exit_status(completed.returncode),
            stdout=_stream_to_text(completed.stdout),
            stderr=_stream_to_text(completed.stderr),
        )

    def _environment(self, engine: Engine) -> dict[str, str] | None:
        if Engine(engine) is not Engine.CLAUDE and self._env is None:
            return None
        base = dict(os.environ if self._env is None else self._env)
        if Engine(engine) is Engine.CLAUDE:
            base.update(CLAUDE_SANDBOX_ENV)
        return base


def _exit_status(returncode: int) -> int:
    # Children killed by a signal report a negative return code.
    return returncode if returncode >= 0 else 1


def _stream_to_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
