"""Codex CLI log scanner.

Codex writes session logs to $CODEX_HOME/logs/session-*.jsonl
(default ~/.codex/logs/). Events carry usage either at the top level or
under "usage", "request.usage" or "response.usage":

  {"timestamp": "2025-01-10T12:00:00Z", "event": "response",
   "model": "gpt-4o", "session_id": "sess-1", "request_id": "req-1",
   "usage": {"prompt_tokens": 100, "completion_tokens": 200}}
"""

from pathlib import Path

from ..config import codex_log_dir
from .base import LogScanner, ProviderSchema

_MODEL_KEYS = ("model", "model_name", "modelId", "model_id")
_NESTED_TIMESTAMP_KEYS = ("timestamp", "time", "ts", "created_at", "created")

CODEX_SCHEMA = ProviderSchema(
    name="codex",
    timestamp_keys=("timestamp", "time", "ts", "created_at", "createdAt", "created"),
    timestamp_fallbacks=(
        (("request",), _NESTED_TIMESTAMP_KEYS),
        (("response",), _NESTED_TIMESTAMP_KEYS),
    ),
    type_keys=("type", "event", "event_type", "kind"),
    model_keys=_MODEL_KEYS,
    model_fallbacks=(
        (("request",), _MODEL_KEYS),
        (("response",), _MODEL_KEYS),
    ),
    conversation_keys=("session_id", "sessionId", "conversation_id", "conversationId", "thread_id"),
    message_keys=("message_id", "messageId", "request_id", "requestId", "response_id"),
    usage_paths=(
        ("usage",),
        ("request", "usage"),
        ("response", "usage"),
    ),
)


class CodexScanner(LogScanner):
    """Parse Codex CLI JSONL logs."""

    schema = CODEX_SCHEMA
    suffix = ".jsonl"

    @classmethod
    def default_log_dir(cls) -> Path:
        return codex_log_dir()
