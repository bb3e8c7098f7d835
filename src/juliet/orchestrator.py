"""Launch and exec-turn sequencing.

A turn resolves the role, stages its prompt, appends the operator message,
invokes the engine and, for exec turns, normalizes and emits the result.
A failing engine short-circuits the turn: its own output is forwarded and its
exit status becomes ours.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
import sys
from typing import Callable, TextIO

from .engine.normalizer import ExecResult, parse_exec_result
from .engine.process import Engine, EngineOutput
from .errors import AmbiguousRoleError, ExecParseError, RoleNotFoundError
from .role_name import validate_role_name
from .state.store import RoleStateStore

logger = logging.getLogger(__name__)

NO_ROLES_CONFIGURED_ERROR = "No roles configured. Run: juliet init --project <name>"
MULTIPLE_ROLES_FOUND_ERROR = "Multiple roles found. Specify one with --project <name>:"
USER_INPUT_SEPARATOR = "\n\nUser input:\n"

InteractiveRunner = Callable[[Engine, str, Path], int]
ExecRunner = Callable[[Engine, str, "str | None", Path], EngineOutput]


def resolve_role(store: RoleStateStore, role_name: str | None) -> str:
    if role_name is not None:
        validate_role_name(role_name)
        if not store.is_scaffolded(role_name):
            raise RoleNotFoundError(
                f"Role not found: {role_name}. Run: juliet init --project {role_name}"
            )
        return role_name

    roles = store.discover()
    if not roles:
        raise RoleNotFoundError(NO_ROLES_CONFIGURED_ERROR)
    if len(roles) > 1:
        names = [role.name for role in roles]
        raise AmbiguousRoleError(
            "\n".join([MULTIPLE_ROLES_FOUND_ERROR, *names]),
            candidates=names,
        )
    logger.debug("auto-selected role %s", roles[0].name)
    return roles[0].name


def build_prompt(staged: str, message: str | None) -> str:
    if message is None:
        return staged
    return f"{staged}{USER_INPUT_SEPARATOR}{message}"


def prepare_prompt(store: RoleStateStore, role_name: str | None, message: str | None) -> str:
    role = resolve_role(store, role_name)
    return build_prompt(store.stage_prompt(role), message)


def run_launch(
    store: RoleStateStore,
    *,
    role_name: str | None,
    engine: Engine,
    operator_input: str | None,
    runner: InteractiveRunner,
) -> int:
    prompt = prepare_prompt(store, role_name, operator_input)
    return runner(Engine(engine), prompt, store.project_root)


def run_exec_turn(
    store: RoleStateStore,
    *,
    role_name: str | None,
    engine: Engine,
    message: str,
    continue_id: str | None,
    json_output: bool,
    runner: ExecRunner,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    out = sys.stdout if stdout is None else stdout
    err = sys.stderr if stderr is None else stderr
    engine = Engine(engine)

    prompt = prepare_prompt(store, role_name, message)
    output = runner(engine, prompt, continue_id, store.project_root)

    if output.status_code != 0:
        logger.debug("%s exited with status %s", engine.value, output.status_code)
        forward_failure(output, err)
        return output.status_code

    try:
        result = parse_exec_result(engine, output.stdout)
    except ExecParseError as exc:
        raise ExecParseError(f"failed to parse {engine.value} exec output: {exc}") from exc

    emit(result, engine, json_output=json_output, stream=out)
    return 0


def forward_failure(output: EngineOutput, stream: TextIO) -> None:
    if output.stderr:
        stream.write(output.stderr)
    elif output.stdout:
        stream.write(output.stdout)
    stream.flush()


def emit(result: ExecResult, engine: Engine, *, json_output: bool, stream: TextIO) -> None:
    if json_output:
        print(json.dumps(result.to_payload(engine), ensure_ascii=False), file=stream)
    elif result.text:
        print(result.text, file=stream)
