from __future__ import annotations

import json
import unittest

from juliet.engine.normalizer import (
    ExecResult,
    extract_text,
    index,
    key,
    parse_exec_result,
    parse_json_documents,
    string_at,
)
from juliet.engine.process import Engine
from juliet.errors import ExecParseError


def _lines(*documents: object) -> str:
    return "".join(json.dumps(document) + "\n" for document in documents)


class JsonDocumentTests(unittest.TestCase):
    def test_parses_each_line_and_skips_noise(self) -> None:
        raw = '{"a": 1}\n\nnot json\n  {"b": 2}  \n'
        self.assertEqual(parse_json_documents(raw), [{"a": 1}, {"b": 2}])

    def test_falls_back_to_whole_output_for_pretty_printed_json(self) -> None:
        raw = '{\n  "session_id": "s1",\n  "result": "done"\n}\n'
        self.assertEqual(parse_json_documents(raw), [{"session_id": "s1", "result": "done"}])

    def test_returns_empty_list_when_nothing_parses(self) -> None:
        self.assertEqual(parse_json_documents("plain text\nmore"), [])
        self.assertEqual(parse_json_documents("   \n"), [])


class TextProbeTests(unittest.TestCase):
    def test_accessor_combinators(self) -> None:
        probe = string_at(key("message"), key("content"), index(0), key("text"))
        self.assertEqual(probe({"message": {"content": [{"text": "hi"}]}}), "hi")
        self.assertIsNone(probe({"message": {"content": []}}))
        self.assertIsNone(probe({"message": "flat"}))
        self.assertIsNone(probe({"message": {"content": [{"text": 7}]}}))

    def test_empty_strings_match_only_when_allowed(self) -> None:
        self.assertIsNone(string_at(key("id"))({"id": ""}))
        self.assertEqual(string_at(key("id"), allow_empty=True)({"id": ""}), "")
        self.assertIsNone(string_at(key("id"), allow_empty=True)({"id": None}))

    def test_probe_priority_order(self) -> None:
        document = {
            "item": {"text": "item text"},
            "text": "text",
            "result": "result",
        }
        self.assertEqual(extract_text(document), "item text")
        self.assertEqual(extract_text({"text": "t", "result": "r"}), "t")
        self.assertEqual(extract_text({"result": "r", "output_text": "o"}), "r")
        self.assertEqual(extract_text({"output_text": "o", "message": {"text": "m"}}), "o")
        self.assertEqual(extract_text({"message": {"text": "m"}}), "m")
        self.assertEqual(extract_text({"content": [{"text": "c"}]}), "c")
        self.assertEqual(extract_text({"message": {"content": [{"text": "mc"}]}}), "mc")

    def test_bare_string_content(self) -> None:
        self.assertEqual(extract_text({"content": ["bare", "second"]}), "bare")

    def test_empty_strings_do_not_match(self) -> None:
        self.assertEqual(extract_text({"text": "", "result": "fallback"}), "fallback")
        self.assertIsNone(extract_text({"text": ""}))
        self.assertIsNone(extract_text(["not", "an", "object"]))


class ParseExecResultTests(unittest.TestCase):
    def test_codex_thread_and_completed_item(self) -> None:
        raw = '{"thread_id":"t1"}\n{"type":"item.completed","item":{"text":"done"}}\n'
        self.assertEqual(
            parse_exec_result(Engine.CODEX, raw),
            ExecResult(text="done", resume_id="t1"),
        )

    def test_claude_single_document(self) -> None:
        raw = '{"session_id":"s1","result":"done"}'
        self.assertEqual(
            parse_exec_result(Engine.CLAUDE, raw),
            ExecResult(text="done", resume_id="s1"),
        )

    def test_engine_may_be_given_by_name(self) -> None:
        result = parse_exec_result("claude", '{"session_id":"s1","result":"done"}')  # type: ignore[arg-type]
        self.assertEqual(result.resume_id, "s1")

    def test_codex_uses_first_thread_id_and_last_completed_text(self) -> None:
        raw = _lines(
            {"type": "thread.started", "thread_id": "first"},
            {"type": "item.completed", "item": {"type": "reasoning", "text": "thinking"}},
            {"type": "turn.started", "thread_id": "second"},
            {"type": "item.completed", "item": {"type": "agent_message", "text": "final answer"}},
            {"type": "turn.completed", "usage": {"output_tokens": 3}},
        )
        self.assertEqual(
            parse_exec_result(Engine.CODEX, raw),
            ExecResult(text="final answer", resume_id="first"),
        )

    def test_codex_ignores_text_outside_completed_items(self) -> None:
        raw = _lines(
            {"thread_id": "t1"},
            {"type": "item.started", "item": {"text": "partial"}},
            {"type": "error", "text": "noise"},
        )
        self.assertEqual(parse_exec_result(Engine.CODEX, raw), ExecResult(text="", resume_id="t1"))

    def test_codex_completed_item_with_empty_text_keeps_earlier_answer(self) -> None:
        raw = _lines(
            {"thread_id": "t1"},
            {"type": "item.completed", "item": {"text": "answer"}},
            {"type": "item.completed", "item": {"text": ""}},
        )
        self.assertEqual(parse_exec_result(Engine.CODEX, raw).text, "answer")

    def test_claude_stream_keeps_last_text(self) -> None:
        raw = _lines(
            {"type": "system", "session_id": "s1"},
            {"type": "assistant", "session_id": "s2", "message": {"content": [{"text": "draft"}]}},
            {"type": "result", "session_id": "s3", "result": "final"},
        )
        self.assertEqual(
            parse_exec_result(Engine.CLAUDE, raw),
            ExecResult(text="final", resume_id="s1"),
        )

    def test_empty_first_thread_id_is_kept(self) -> None:
        raw = '{"thread_id":""}\n{"thread_id":"t2"}\n'
        self.assertEqual(parse_exec_result(Engine.CODEX, raw), ExecResult(text="", resume_id=""))

    def test_empty_session_id_counts_as_present(self) -> None:
        self.assertEqual(
            parse_exec_result(Engine.CLAUDE, '{"session_id":"","result":"x"}'),
            ExecResult(text="x", resume_id=""),
        )

    def test_non_string_resume_id_is_skipped(self) -> None:
        raw = _lines({"session_id": 7}, {"session_id": "s2", "result": "ok"})
        self.assertEqual(parse_exec_result(Engine.CLAUDE, raw).resume_id, "s2")

    def test_text_is_optional(self) -> None:
        self.assertEqual(
            parse_exec_result(Engine.CLAUDE, '{"session_id":"s1"}'),
            ExecResult(text="", resume_id="s1"),
        )

    def test_missing_resume_id_fails_even_with_text(self) -> None:
        with self.assertRaises(ExecParseError) as ctx:
            parse_exec_result(Engine.CLAUDE, '{"result":"done"}')
        self.assertEqual(str(ctx.exception), "claude JSON output did not include session_id")

        with self.assertRaises(ExecParseError) as ctx:
            parse_exec_result(
                Engine.CODEX,
                '{"type":"item.completed","item":{"text":"done"}}',
            )
        self.assertEqual(str(ctx.exception), "codex JSON output did not include thread_id")

    def test_no_parseable_json(self) -> None:
        for engine in Engine:
            with self.assertRaises(ExecParseError) as ctx:
                parse_exec_result(engine, "Error: something went wrong\n")
            self.assertEqual(
                str(ctx.exception),
                f"{engine.value} returned no parseable JSON output",
            )

    def test_payload_shape(self) -> None:
        payload = ExecResult(text="hi", resume_id="r1").to_payload(Engine.CODEX)
        self.assertEqual(list(payload), ["text", "resume_id", "engine"])
        self.assertEqual(payload["engine"], "codex")


if __name__ == "__main__":
    unittest.main()
