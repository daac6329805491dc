"""
heartbeat_agent.config

Agent configuration loaded once at process start

Config file (JSON, same keys as the deployed config.json):
  {
    "github": {"repo": "owner/name", "token_file": "github_token.txt"},
    "timestamp_file": "heartbeat.json",
    "heartbeat_log": "heartbeat.log",
    "log_days_to_keep": 30,
    "error_monitoring": {
      "log_dir": "/var/log/myapp",
      "log_file_pattern": "error_(\\d{4})-(\\d{2})-(\\d{2})\\.log"
    },
    "default_http_timeout": 10000
  }

Design goals:
- Immutable struct passed explicitly to each component
- Relative paths resolve against the config file directory
- Any problem raises ConfigError; the CLI turns that into exit code 1
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

DEFAULT_CONFIG_PATH = Path("config.json")

DEFAULT_STATUS_PATH = "heartbeat.json"
DEFAULT_HEARTBEAT_LOG = "heartbeat.log"
DEFAULT_DAYS_TO_KEEP = 30
DEFAULT_HTTP_TIMEOUT_MS = 10000


class ConfigError(Exception):
    """Configuration is missing or invalid; no useful work is possible."""


@dataclass(frozen=True)
class AgentConfig:
    """
    Resolved agent configuration.

    - repo: "owner/name" of the repository holding the status document
    - status_path: path of the status document inside the repository
    - token_file: file holding the static bearer token
    - heartbeat_log: local append-only heartbeat log
    - retention_days: window applied by the log trimmer
    - error_log_dir / error_log_pattern: optional error-log monitoring
    - http_timeout_s: timeout for document store requests
    """

    repo: str
    status_path: str
    token_file: Path
    heartbeat_log: Path
    retention_days: int
    error_log_dir: Optional[Path]
    error_log_pattern: Optional[re.Pattern]
    http_timeout_s: float


def _require_str(section: dict[str, Any], key: str, label: str) -> str:
    value = section.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{label} must be a non-empty string")
    return value.strip()


def _resolve(base_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    if path.is_absolute():
        return path
    return base_dir / path


def _parse_retention_days(value: Any) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError("log_days_to_keep must be an integer")
    if value < 0:
        raise ConfigError("log_days_to_keep must be >= 0")
    return value


def _parse_timeout_ms(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError("default_http_timeout must be a positive number of milliseconds")
    return float(value) / 1000.0


def _compile_pattern(value: str) -> re.Pattern:
    try:
        pattern = re.compile(value)
    except re.error as e:
        raise ConfigError(f"error_monitoring.log_file_pattern is not a valid regex: {e}") from e
    if pattern.groups < 3:
        raise ConfigError(
            "error_monitoring.log_file_pattern needs three capture groups (year, month, day)"
        )
    return pattern


def config_from_dict(payload: dict[str, Any], *, base_dir: Path) -> AgentConfig:
    """
    Build AgentConfig from a parsed config payload
    """
    github = payload.get("github")
    if not isinstance(github, dict):
        raise ConfigError("github section is missing")

    repo = _require_str(github, "repo", "github.repo")
    token_file = _require_str(github, "token_file", "github.token_file")

    status_path = payload.get("timestamp_file", DEFAULT_STATUS_PATH)
    if not isinstance(status_path, str) or not status_path.strip():
        raise ConfigError("timestamp_file must be a non-empty string")

    heartbeat_log = payload.get("heartbeat_log", DEFAULT_HEARTBEAT_LOG)
    if not isinstance(heartbeat_log, str) or not heartbeat_log.strip():
        raise ConfigError("heartbeat_log must be a non-empty string")

    retention_days = _parse_retention_days(payload.get("log_days_to_keep", DEFAULT_DAYS_TO_KEEP))
    http_timeout_s = _parse_timeout_ms(payload.get("default_http_timeout", DEFAULT_HTTP_TIMEOUT_MS))

    error_log_dir: Optional[Path] = None
    error_log_pattern: Optional[re.Pattern] = None

    monitoring = payload.get("error_monitoring")
    if monitoring is not None:
        if not isinstance(monitoring, dict):
            raise ConfigError("error_monitoring must be an object")
        error_log_dir = _resolve(base_dir, _require_str(monitoring, "log_dir", "error_monitoring.log_dir"))
        error_log_pattern = _compile_pattern(
            _require_str(monitoring, "log_file_pattern", "error_monitoring.log_file_pattern")
        )

    return AgentConfig(
        repo=repo,
        status_path=status_path.strip().lstrip("/"),
        token_file=_resolve(base_dir, token_file),
        heartbeat_log=_resolve(base_dir, heartbeat_log.strip()),
        retention_days=retention_days,
        error_log_dir=error_log_dir,
        error_log_pattern=error_log_pattern,
        http_timeout_s=http_timeout_s,
    )


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AgentConfig:
    """
    Load and validate the JSON config file

    Raises ConfigError when the file is missing, unreadable or invalid
    """
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"configuration file {path} not found") from e
    except (OSError, ValueError) as e:
        raise ConfigError(f"configuration file {path} is unreadable: {e}") from e

    if not isinstance(payload, dict):
        raise ConfigError(f"configuration file {path} must contain a JSON object")

    return config_from_dict(payload, base_dir=path.resolve().parent)


def load_token(config: AgentConfig) -> str:
    """
    Read the static bearer token from the configured token file
    """
    try:
        token = config.token_file.read_text(encoding="utf-8").strip()
    except OSError as e:
        raise ConfigError(
            f"cannot read token file {config.token_file}: {e}. "
            "Create it with your personal access token"
        ) from e

    if not token:
        raise ConfigError(f"token file {config.token_file} is empty")
    return token
