"""
heartbeat_monitor.history

Markdown table of past checks, committed next to the status document
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from heartbeat_agent.model import format_utc_timestamp
from heartbeat_monitor.recency import SOURCE_UNKNOWN, CheckResult

HISTORY_HEADER = [
    "# Raspberry Pi Monitoring History",
    "",
    "| Date (UTC) | Status | Message | Error Logs |",
    "|------------|--------|---------|------------|",
]


def _cell(value: str) -> str:
    # Pipes and newlines would break the table row
    return value.replace("|", "\\|").replace("\n", " ").strip()


def error_log_cell(result: Optional[CheckResult]) -> str:
    if result is None:
        return "N/A"
    has_error_logs = result.has_error_logs
    if has_error_logs is True:
        return f"⚠️ {result.error_log.get('latest_log') or 'unknown'}"
    if has_error_logs is False:
        return "✅ No errors"
    return "N/A"


def history_row(now: datetime, result: Optional[CheckResult]) -> str:
    """
    One table row; a missing result means the check did not complete
    """
    if result is None:
        status, message = "Unknown", "Check did not complete successfully"
    elif result.source == SOURCE_UNKNOWN:
        status, message = "error", result.message
    else:
        status, message = result.status, result.message

    cells = [format_utc_timestamp(now), status, message, error_log_cell(result)]
    return "| " + " | ".join(_cell(cell) for cell in cells) + " |"


def append_history_row(path: Path, now: datetime, result: Optional[CheckResult]) -> str:
    """
    Append a row, creating the file with its header first when missing

    Raises on IO errors
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    row = history_row(now, result)

    with path.open(mode="a", encoding="utf-8", newline="\n") as f:
        if f.tell() == 0:
            f.write("\n".join(HISTORY_HEADER))
            f.write("\n")
        f.write(row)
        f.write("\n")
        f.flush()

    return row
