"""Claude Code log scanner.

Claude Code stores session transcripts at:
  ~/.claude/projects/{projectPath}/*.jsonl

Each assistant message contains usage data:
  {
    "type": "assistant",
    "timestamp": "2025-10-04T11:24:54.135Z",
    "sessionId": "6f1c...",
    "requestId": "req_011C...",
    "message": {
      "id": "msg_01...",
      "model": "claude-sonnet-4-20250514",
      "usage": {
        "input_tokens": 7,
        "output_tokens": 176,
        "cache_creation_input_tokens": 464,
        "cache_read_input_tokens": 37687
      }
    }
  }
"""

from pathlib import Path

from ..config import claude_log_dir
from .base import LogScanner, ProviderSchema
from .extract import TOKEN_ALIASES

_MESSAGE = ("message",)

# Anthropic names the cache write counter cache_creation_input_tokens
CLAUDE_TOKEN_ALIASES = dict(TOKEN_ALIASES)
CLAUDE_TOKEN_ALIASES["cache_create_tokens"] = TOKEN_ALIASES["cache_create_tokens"] + (
    "cache_creation_input_tokens",
)

CLAUDE_SCHEMA = ProviderSchema(
    name="claude",
    timestamp_keys=("timestamp", "time", "ts", "created_at", "createdAt"),
    timestamp_fallbacks=((_MESSAGE, ("timestamp", "created_at")),),
    type_keys=("type",),
    model_keys=("model",),
    model_fallbacks=((_MESSAGE, ("model",)),),
    conversation_keys=("sessionId", "session_id", "conversation_id"),
    message_keys=("message_id", "messageId", "requestId", "request_id"),
    message_fallbacks=((_MESSAGE, ("id",)),),
    usage_paths=(("message", "usage"), ("usage",)),
    token_aliases=CLAUDE_TOKEN_ALIASES,
)


class ClaudeScanner(LogScanner):
    """Parse Claude Code session transcripts.

    Sessions are grouped in one sub-directory per project, so the scanner
    reads *.jsonl files one level below the projects directory.
    """

    schema = CLAUDE_SCHEMA
    suffix = ".jsonl"
    subdir_depth = 1

    @classmethod
    def default_log_dir(cls) -> Path:
        return claude_log_dir()
