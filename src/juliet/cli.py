from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import Sequence

from .config import JulietConfig, resolve_config
from .engine.process import Engine, EngineProcess
from .errors import JulietError
from .orchestrator import run_exec_turn, run_launch
from .prompts import load_default_seed
from .state.store import RoleStateStore

logger = logging.getLogger("juliet")

PROG = "juliet"
SUBCOMMANDS = ("init", "reset-prompt", "clear-history", "exec")
ROLE_OPTIONS = ("--project", "--role")
ENGINE_CHOICES = tuple(engine.value for engine in Engine)

_log_handler: logging.Handler | None = None


def _add_role_option(parser: argparse.ArgumentParser, *, required: bool, help_text: str) -> None:
    parser.add_argument(
        *ROLE_OPTIONS,
        dest="role_name",
        metavar="ROLE_NAME",
        required=required,
        help=help_text,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="CLI API for project-scoped Juliet workflows",
        epilog=(
            "Interactive launch: juliet [--project ROLE_NAME] {claude,codex} [OPERATOR_INPUT ...]"
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Initialize a new role scaffold")
    _add_role_option(init_parser, required=True, help_text="Role name to target")

    reset_parser = subparsers.add_parser(
        "reset-prompt",
        help="Reset a role prompt to the default template",
    )
    _add_role_option(reset_parser, required=True, help_text="Role name to target")

    clear_parser = subparsers.add_parser(
        "clear-history",
        help="Clear role state/history while preserving prompt customization",
    )
    _add_role_option(clear_parser, required=True, help_text="Role name to target")

    exec_parser = subparsers.add_parser("exec", help="Execute a single non-interactive turn")
    _add_role_option(
        exec_parser,
        required=False,
        help_text="Role name to target. If omitted, auto-selects when exactly one role exists.",
    )
    exec_parser.add_argument(
        "--continue",
        dest="continue_id",
        metavar="RESUME_ID",
        help="Continue a prior non-interactive thread/session id",
    )
    exec_parser.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Emit normalized JSON output for this exec turn",
    )
    exec_parser.add_argument("engine", choices=ENGINE_CHOICES, help="Engine to execute")
    exec_parser.add_argument(
        "message",
        nargs="+",
        metavar="MESSAGE",
        help="Message text appended to the prompt as user input",
    )

    return parser


def _build_launch_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Launch an engine interactively with a role prompt",
    )
    _add_role_option(
        parser,
        required=False,
        help_text="Role name to launch. If omitted, auto-selects when exactly one role exists.",
    )
    parser.add_argument("engine", choices=ENGINE_CHOICES, help="Engine to launch in interactive mode")
    parser.add_argument(
        "operator_input",
        nargs=argparse.REMAINDER,
        metavar="OPERATOR_INPUT",
        help="Optional operator input appended to the launch prompt",
    )
    parser.set_defaults(command="launch")
    return parser


def _attach_role_values(argv: Sequence[str]) -> list[str]:
    """Fold ``--project VALUE`` into ``--project=VALUE`` so hyphen-led names reach validation.

    Folding stops at ``--`` or at the engine name; operator input and exec
    messages after that point are passed through untouched.
    """
    folded: list[str] = []
    index = 0
    while index < len(argv):
        token = argv[index]
        if token == "--" or token in ENGINE_CHOICES:
            folded.extend(argv[index:])
            break
        if token in ROLE_OPTIONS and index + 1 < len(argv):
            folded.append(f"{token}={argv[index + 1]}")
            index += 2
            continue
        folded.append(token)
        index += 1
    return folded


def _is_launch(argv: Sequence[str]) -> bool:
    for token in argv:
        if token.startswith("-"):
            if token.startswith(tuple(f"{option}=" for option in ROLE_OPTIONS)):
                continue
            return False
        return token not in SUBCOMMANDS
    return False


def _configure_logging(level: int) -> None:
    global _log_handler
    if _log_handler is not None:
        logger.removeHandler(_log_handler)
    _log_handler = logging.StreamHandler(sys.stderr)
    _log_handler.setFormatter(logging.Formatter("%(name)s: %(levelname)s: %(message)s"))
    logger.addHandler(_log_handler)
    logger.setLevel(level)


def main(
    argv: Sequence[str] | None = None,
    *,
    project_root: Path | None = None,
    engine_process: EngineProcess | None = None,
) -> int:
    raw_args = _attach_role_values(list(sys.argv[1:] if argv is None else argv))
    parser = _build_launch_parser() if _is_launch(raw_args) else _build_parser()
    args = parser.parse_args(raw_args)

    handlers = {
        "init": _cmd_init,
        "reset-prompt": _cmd_reset_prompt,
        "clear-history": _cmd_clear_history,
        "exec": _cmd_exec,
        "launch": _cmd_launch,
    }

    try:
        root = Path.cwd() if project_root is None else Path(project_root)
        config = resolve_config(project_root=root)
        _configure_logging(config.log_level)
        store = RoleStateStore(root)
        process = engine_process if engine_process is not None else EngineProcess.from_config(config)
        return handlers[args.command](args, store, config, process)
    except JulietError as exc:
        logger.debug("%s failed with %s", args.command, exc.code)
        print(str(exc), file=sys.stderr)
        return exc.exit_code
    except KeyboardInterrupt:
        print("interrupted by user", file=sys.stderr)
        return 130


def _cmd_init(
    args: argparse.Namespace,
    store: RoleStateStore,
    config: JulietConfig,
    process: EngineProcess,
) -> int:
    result = store.create(args.role_name, load_default_seed(config.prompt_seed_path))
    if result.already_existed:
        print(f"Role already exists: {args.role_name}")
    else:
        print(f"Initialized role: {args.role_name}")
    for item in result.created:
        logger.info("created %s", item)
    for item in result.skipped:
        logger.info("unchanged %s", item)
    return 0


def _cmd_reset_prompt(
    args: argparse.Namespace,
    store: RoleStateStore,
    config: JulietConfig,
    process: EngineProcess,
) -> int:
    store.reset_prompt(args.role_name, load_default_seed(config.prompt_seed_path))
    print(f"prompt reset to default for role '{args.role_name}'")
    return 0


def _cmd_clear_history(
    args: argparse.Namespace,
    store: RoleStateStore,
    config: JulietConfig,
    process: EngineProcess,
) -> int:
    store.clear_history(args.role_name)
    print(f"history cleared for role '{args.role_name}'")
    return 0


def _cmd_exec(
    args: argparse.Namespace,
    store: RoleStateStore,
    config: JulietConfig,
    process: EngineProcess,
) -> int:
    return run_exec_turn(
        store,
        role_name=args.role_name,
        engine=Engine(args.engine),
        message=" ".join(args.message),
        continue_id=args.continue_id,
        json_output=args.json_output,
        runner=process.invoke_exec_json,
    )


def _cmd_launch(
    args: argparse.Namespace,
    store: RoleStateStore,
    config: JulietConfig,
    process: EngineProcess,
) -> int:
    operator_input = " ".join(args.operator_input) if args.operator_input else None
    return run_launch(
        store,
        role_name=args.role_name,
        engine=Engine(args.engine),
        operator_input=operator_input,
        runner=process.invoke_interactive,
    )
