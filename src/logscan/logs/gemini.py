"""Gemini CLI log scanner.

Gemini CLI logs live in $GEMINI_HOME/logs (default
~/.config/gemini/logs). Every file in that directory is read, whatever
its extension. Telemetry-style events keep ids and the model under
"attributes" and token counts under "usage" or "tokens":

  {"time": 1736510460, "event_type": "response",
   "attributes": {"model": "gemini-pro", "session_id": "abc"},
   "tokens": {"input_tokens": 50, "output_tokens": 75}}
"""

from pathlib import Path

from ..config import gemini_log_dir
from .base import LogScanner, ProviderSchema

_ATTRS = ("attributes",)

GEMINI_SCHEMA = ProviderSchema(
    name="gemini",
    timestamp_keys=("timestamp", "time", "ts", "created_at", "createdAt"),
    timestamp_fallbacks=((_ATTRS, ("timestamp", "time", "ts")),),
    type_keys=("type", "event", "event_type", "name"),
    model_keys=("model", "model_name", "modelId", "model_id"),
    model_fallbacks=((_ATTRS, ("model", "model_name", "modelId", "model_id")),),
    conversation_keys=(
        "conversation_id",
        "conversationId",
        "session_id",
        "sessionId",
        "chat_id",
        "chatId",
        "thread_id",
    ),
    conversation_fallbacks=((_ATTRS, ("conversation_id", "conversationId", "session_id", "sessionId")),),
    message_keys=("message_id", "messageId", "request_id", "requestId", "prompt_id", "promptId"),
    message_fallbacks=((_ATTRS, ("message_id", "messageId", "request_id", "requestId")),),
    usage_paths=(("usage",), ("tokens",)),
)


class GeminiScanner(LogScanner):
    """Parse Gemini CLI JSONL logs."""

    schema = GEMINI_SCHEMA

    @classmethod
    def default_log_dir(cls) -> Path:
        return gemini_log_dir()
