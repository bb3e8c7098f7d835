"""Normalize engine JSON output into a single :class:`ExecResult`.

Engines emit either one JSON document or a stream of JSON lines whose shape
varies between engines and versions. Text is located with an ordered list of
probes built from small accessor combinators; each text probe returns a non-empty
string or ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any, Callable

from ..errors import ExecParseError
from .process import Engine

Accessor = Callable[[Any], Any]
Probe = Callable[[Any], "str | None"]

_MISSING = object()


@dataclass(frozen=True)
class ExecResult:
    text: str
    resume_id: str

    def to_payload(self, engine: Engine) -> dict[str, str]:
        return {"text": self.text, "resume_id": self.resume_id, "engine": Engine(engine).value}


def key(name: str) -> Accessor:
    def access(value: Any) -> Any:
        if isinstance(value, dict):
            return value.get(name, _MISSING)
        return _MISSING

    return access


def index(position: int) -> Accessor:
    def access(value: Any) -> Any:
        if isinstance(value, list) and 0 <= position < len(value):
            return value[position]
        return _MISSING

    return access


def string_at(*steps: Accessor, allow_empty: bool = False) -> Probe:
    def probe(document: Any) -> str | None:
        value = document
        for step in steps:
            value = step(value)
            if value is _MISSING:
                return None
        if isinstance(value, str) and (value or allow_empty):
            return value
        return None

    return probe


def first_match(probes: tuple[Probe, ...]) -> Probe:
    def probe(document: Any) -> str | None:
        for candidate in probes:
            found = candidate(document)
            if found is not None:
                return found
        return None

    return probe


TEXT_PROBES: tuple[Probe, ...] = (
    string_at(key("item"), key("text")),
    string_at(key("text")),
    string_at(key("result")),
    string_at(key("output_text")),
    string_at(key("message"), key("text")),
    string_at(key("content"), index(0), key("text")),
    string_at(key("message"), key("content"), index(0), key("text")),
    string_at(key("content"), index(0)),
)

extract_text = first_match(TEXT_PROBES)


@dataclass(frozen=True)
class _EngineRule:
    resume_field: str
    eligible: Callable[[Any], bool]


def _always(document: Any) -> bool:
    return True


def _is_completed_item(document: Any) -> bool:
    return key("type")(document) == "item.completed"


_ENGINE_RULES = {
    Engine.CODEX: _EngineRule(resume_field="thread_id", eligible=_is_completed_item),
    Engine.CLAUDE: _EngineRule(resume_field="session_id", eligible=_always),
}


def parse_json_documents(raw: str) -> list[Any]:
    """Parse every JSON line of ``raw``; fall back to ``raw`` as one document."""
    documents = []
    for line in raw.split("\n"):
        stripped = line.strip()
        if not stripped:
            continue
        try:
            documents.append(json.loads(stripped))
        except json.JSONDecodeError:
            continue

    if not documents:
        stripped = raw.strip()
        if stripped:
            try:
                documents.append(json.loads(stripped))
            except json.JSONDecodeError:
                pass
    return documents


def parse_exec_result(engine: Engine, raw_stdout: str) -> ExecResult:
    engine = Engine(engine)
    rule = _ENGINE_RULES[engine]
    documents = parse_json_documents(raw_stdout)
    if not documents:
        raise ExecParseError(f"{engine.value} returned no parseable JSON output")

    # The id is announced once up front and may be empty; later events revise the text.
    resume_probe = string_at(key(rule.resume_field), allow_empty=True)
    resume_id = None
    text = ""
    for document in documents:
        if resume_id is None:
            resume_id = resume_probe(document)
        if rule.eligible(document):
            candidate = extract_text(document)
            if candidate is not None:
                text = candidate

    if resume_id is None:
        raise ExecParseError(f"{engine.value} JSON output did not include {rule.resume_field}")
    return ExecResult(text=text, resume_id=resume_id)
