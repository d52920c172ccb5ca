"""logscan Configuration System.

Zero-config defaults with layered overrides:
1. Built-in defaults (this file)
2. User global config (~/.config/logscan/config.json)
3. Environment variables (LOGSCAN_*)

Provider log directories follow each tool's own conventions
(CODEX_HOME, GEMINI_HOME, CLAUDE_CONFIG_DIR) unless overridden under
"paths".
"""

import copy
import json
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional, Dict, Any

from .errors import ConfigError

ENV_PREFIX = "LOGSCAN_"

# Filesystem paths; environment values for these stay strings
_STRING_KEYS = {("paths", "codex"), ("paths", "gemini"), ("paths", "claude"), ("logging", "event_log")}

# Default configuration
DEFAULT_CONFIG: Dict[str, Any] = {
    "scan": {
        "max_line_bytes": 1024 * 1024,
        "concurrent": True,
        "max_workers": 4,
    },
    "providers": {
        "codex": True,
        "gemini": True,
        "claude": True,
    },
    "paths": {
        # None means the provider's own default location
        "codex": None,
        "gemini": None,
        "claude": None,
    },
    "logging": {
        "level": "WARNING",
        "event_log": None,  # JSONL file for scan events, disabled by default
    },
}


def codex_log_dir() -> Path:
    """$CODEX_HOME/logs, defaulting to ~/.codex/logs."""
    codex_home = os.environ.get("CODEX_HOME")
    if not codex_home:
        codex_home = str(Path.home() / ".codex")
    return Path(codex_home) / "logs"


def gemini_log_dir() -> Path:
    """$GEMINI_HOME/logs, defaulting to ~/.config/gemini/logs."""
    gemini_home = os.environ.get("GEMINI_HOME")
    if not gemini_home:
        gemini_home = str(Path.home() / ".config" / "gemini")
    return Path(gemini_home) / "logs"


def claude_log_dir() -> Path:
    """$CLAUDE_CONFIG_DIR/projects, defaulting to ~/.claude/projects."""
    claude_home = os.environ.get("CLAUDE_CONFIG_DIR")
    if not claude_home:
        claude_home = str(Path.home() / ".claude")
    return Path(claude_home) / "projects"


@dataclass
class ScanConfig:
    max_line_bytes: int = 1024 * 1024
    concurrent: bool = True    # Scan providers on a thread pool
    max_workers: int = 4


@dataclass
class ProvidersConfig:
    codex: bool = True
    gemini: bool = True
    claude: bool = True

    def enabled(self) -> list:
        return [name for name, on in asdict(self).items() if on]


@dataclass
class PathsConfig:
    codex: Optional[str] = None
    gemini: Optional[str] = None
    claude: Optional[str] = None


@dataclass
class LoggingConfig:
    level: str = "WARNING"
    event_log: Optional[str] = None


@dataclass
class Config:
    """Main logscan configuration."""

    scan: ScanConfig = field(default_factory=ScanConfig)
    providers: ProvidersConfig = field(default_factory=ProvidersConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _deep_merge(base: Dict, overlay: Dict) -> Dict:
    """Deep merge overlay into base, returning new dict."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _env_to_config_key(env_key: str) -> list:
    """Convert LOGSCAN_SCAN_MAX_WORKERS to ['scan', 'max_workers']."""
    if not env_key.startswith(ENV_PREFIX):
        return []
    return env_key[len(ENV_PREFIX):].lower().split("_", 1)


def _coerce_env_value(value: str) -> Any:
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


def _apply_env_vars(config: Dict, environ: Optional[Dict[str, str]] = None) -> Dict:
    """Apply LOGSCAN_* environment variables to config."""
    result = copy.deepcopy(config)
    environ = os.environ if environ is None else environ

    for key, value in environ.items():
        parts = _env_to_config_key(key)
        if len(parts) < 2 or parts[0] not in result:
            continue
        section = result[parts[0]]
        if not isinstance(section, dict):
            continue
        if tuple(parts) in _STRING_KEYS:
            section[parts[1]] = value
        else:
            section[parts[1]] = _coerce_env_value(value)

    return result


def _dict_to_config(data: Dict) -> Config:
    """Convert dictionary to Config object."""
    config = Config()

    try:
        if "scan" in data:
            config.scan = ScanConfig(**data["scan"])
        if "providers" in data:
            config.providers = ProvidersConfig(**data["providers"])
        if "paths" in data:
            config.paths = PathsConfig(**data["paths"])
        if "logging" in data:
            config.logging = LoggingConfig(**data["logging"])
    except TypeError as e:
        raise ConfigError(f"unknown config key: {e}") from e

    return config


def _read_json(path: Path) -> Dict[str, Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("config must be a JSON object")
    return data


def load_config(
    config_path: Optional[Path] = None,
    user_config_path: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None,
) -> Config:
    """Load configuration with layered overrides.

    Order (later overrides earlier):
    1. Built-in defaults
    2. User global config, or config_path when given
    3. Environment variables

    Args:
        config_path: Explicit config file; problems reading it raise
        user_config_path: Override for the user config location; an
                          unreadable user config is ignored
        environ: Environment mapping (defaults to os.environ)

    Raises:
        ConfigError: config_path is unreadable or invalid, or a section
                     contains unknown keys
    """
    config_dict = copy.deepcopy(DEFAULT_CONFIG)

    if config_path is not None:
        try:
            config_dict = _deep_merge(config_dict, _read_json(Path(config_path)))
        except (OSError, ValueError) as e:
            raise ConfigError(f"cannot load {config_path}: {e}") from e
    else:
        user_config = user_config_path or Path.home() / ".config" / "logscan" / "config.json"
        if user_config.exists():
            try:
                config_dict = _deep_merge(config_dict, _read_json(user_config))
            except (OSError, ValueError):
                pass  # Ignore invalid config

    config_dict = _apply_env_vars(config_dict, environ)

    return _dict_to_config(config_dict)
