"""
heartbeat_agent.model

Status record schema + serialization primitives.

Design goals:
- Explicit structure (no accidental serialization via __dict__)
- Key names match the published heartbeat.json consumed by the checker
- Second-precision UTC timestamps shared with the heartbeat log
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

# Published wire format: "YYYY-MM-DD HH:MM:SS" (UTC, no offset suffix)
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

UNKNOWN = "Unable to determine"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_utc_timestamp(moment: datetime) -> str:
    """
    Format an aware or naive-UTC datetime as YYYY-MM-DD HH:MM:SS
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(TIMESTAMP_FORMAT)


def parse_utc_timestamp(value: str) -> datetime:
    """
    Parse YYYY-MM-DD HH:MM:SS as an aware UTC datetime

    Raises ValueError on any other shape, including unpadded fields
    """
    text = value.strip()
    parsed = datetime.strptime(text, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    # strptime accepts "2024-5-1 1:2:3"; only the zero-padded form is valid
    if format_utc_timestamp(parsed) != text:
        raise ValueError(f"timestamp {text!r} is not zero-padded YYYY-MM-DD HH:MM:SS")
    return parsed


@dataclass(frozen=True)
class ErrorLogStatus:
    """
    Latest error log summary
    - has_error: latest matching file is non-empty
    - latest_log: None only when nothing matched
    - log_content: preview, None unless has_error
    """

    has_error: bool
    message: str
    latest_log: Optional[str] = None
    log_content: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_error": self.has_error,
            "message": self.message,
            "latest_log": self.latest_log,
            "log_content": self.log_content,
        }


@dataclass(frozen=True)
class StatusRecord:
    """
    Published snapshot of the node
    """

    hostname: str
    external_ip: str
    timestamp: str
    uptime: str
    memory_usage: str
    disk_usage: str
    cpu_temp: str
    error_log: ErrorLogStatus

    def to_dict(self) -> dict[str, Any]:
        # Explicit key mapping; the checker reads these names
        return {
            "hostname": self.hostname,
            "external_ip": self.external_ip,
            "timestamp": self.timestamp,
            "uptime": self.uptime,
            "memory_usage": self.memory_usage,
            "disk_usage": self.disk_usage,
            "cpu_temp": self.cpu_temp,
            "error_log": self.error_log.to_dict(),
        }


def format_percent(value: float | None) -> str:
    if value is None:
        return "0%"
    return f"{value:.2f}%"


def format_celsius(value: float | None) -> str:
    if value is None:
        return "0°C"
    return f"{value:.1f}°C"


def record_to_json(record: StatusRecord) -> str:
    """
    Serialize a StatusRecord for the status document

    Rules:
    - indent=2 keeps the committed file diff-friendly
    - ensure_ascii=False keeps the degree sign readable
    - key order follows to_dict()
    """
    return json.dumps(record.to_dict(), indent=2, ensure_ascii=False)


def validate_record(record: StatusRecord) -> None:
    """
    Validate record structure + content

    Raises ValueError on invalid
    """
    # Timestamp must round-trip through the wire format
    parse_utc_timestamp(record.timestamp)

    if not record.memory_usage.endswith("%"):
        raise ValueError("memory_usage must end with '%'")
    if not record.disk_usage.endswith("%"):
        raise ValueError("disk_usage must end with '%'")
    if not record.cpu_temp.endswith("°C"):
        raise ValueError("cpu_temp must end with '°C'")

    if not record.error_log.has_error and record.error_log.log_content is not None:
        raise ValueError("error_log.log_content must be null when has_error is false")
