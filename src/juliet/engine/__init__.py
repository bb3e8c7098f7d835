"""Engine subprocess plumbing and output normalization."""

from .normalizer import ExecResult, extract_text, parse_exec_result, parse_json_documents
from .process import Engine, EngineOutput, EngineProcess

__all__ = [
    "Engine",
    "EngineOutput",
    "EngineProcess",
    "ExecResult",
    "extract_text",
    "parse_exec_result",
    "parse_json_documents",
]
