"""
heartbeat_agent.logging

One JSON object per line on stdout, for cron mail and CI job logs

Both the node agent and the CI checker write through emit_event, so a
single grep over `"event_type":"publish_failed"` (or any other type below)
works across every run. Envelope keys on every line:
  event_type, agent_version, utc_now (ISO 8601, UTC)

Free-text fields (message, error) are capped: an error-log preview or a
GitHub error body must not turn one event into a multi-kilobyte line.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

# Room for the 500-byte error-log preview plus its surrounding text
MESSAGE_LIMIT = 600
TEXT_FIELDS = ("message", "error")

NODE_EVENT_TYPES = frozenset(
    {
        "agent_start",
        "config_invalid",
        "collector_failed",
        "external_ip_lookup_failed",
        "status_collected",
        "publish_attempt_failed",
        "status_published",
        "publish_failed",
        "log_entry_appended",
        "log_write_failed",
        "log_missing",
        "log_trimmed",
        "log_trim_failed",
        "agent_shutdown",
    }
)

CHECK_EVENT_TYPES = frozenset(
    {
        "source_unavailable",
        "check_completed",
        "alert_sent",
        "alert_failed",
        "alert_skipped",
        "history_updated",
    }
)

VALID_EVENT_TYPES = NODE_EVENT_TYPES | CHECK_EVENT_TYPES


def cap_text(value: str, *, limit: int = MESSAGE_LIMIT) -> str:
    if len(value) <= limit:
        return value
    return f"{value[:limit]}...[{len(value) - limit} more chars]"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def emit_event(event_type: str, *, agent_version: str, **fields: Any) -> None:
    """
    Print a single event line

    Raises ValueError for an event_type outside VALID_EVENT_TYPES; a typo in
    an event name is a bug, not something to log silently.
    """
    if event_type not in VALID_EVENT_TYPES:
        raise ValueError(f"invalid event_type: {event_type}")

    for key in TEXT_FIELDS:
        if isinstance(fields.get(key), str):
            fields[key] = cap_text(fields[key])

    line = json.dumps(
        {
            **fields,
            "event_type": event_type,
            "agent_version": agent_version,
            "utc_now": utc_now_iso(),
        },
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    print(line, flush=True)
