"""
heartbeat_agent.collectors.error_log

Error log scanner

Selects the most recent error log in a directory by the date encoded in its
file name (three capture groups: year, month, day) and summarizes it.

Rules:
- no matching file -> has_error=False, latest_log=None
- empty matching file -> has_error=False, latest_log=<name>
- non-empty file -> has_error=True, first 500 bytes, "..." when truncated
- files sharing the latest date: whichever max() sees first wins
"""

from __future__ import annotations

import re
from pathlib import Path

from heartbeat_agent.model import ErrorLogStatus

PREVIEW_BYTES = 500


def _date_key(pattern: re.Pattern, name: str) -> str:
    match = pattern.search(name)
    return f"{match.group(1)}{match.group(2)}{match.group(3)}"


def _read_preview(path: Path, size: int) -> str:
    with path.open("rb") as handle:
        head = handle.read(PREVIEW_BYTES)
    # A multi-byte character may be cut at the boundary
    preview = head.decode("utf-8", errors="replace")
    if size > PREVIEW_BYTES:
        preview += "..."
    return preview


def scan_error_logs(log_dir: Path, pattern: re.Pattern) -> ErrorLogStatus:
    """
    Summarize the latest matching error log in log_dir

    Directory or file errors are reported in the message, never raised
    """
    try:
        names = [entry.name for entry in log_dir.iterdir() if pattern.search(entry.name)]

        if not names:
            return ErrorLogStatus(has_error=False, message="No error logs found")

        latest = max(names, key=lambda name: _date_key(pattern, name))
        path = log_dir / latest
        size = path.stat().st_size

        if size == 0:
            return ErrorLogStatus(has_error=False, message="Error log is empty", latest_log=latest)

        return ErrorLogStatus(
            has_error=True,
            message=f"Error log contains {size} bytes",
            latest_log=latest,
            log_content=_read_preview(path, size),
        )

    except OSError as e:
        return ErrorLogStatus(has_error=False, message=f"Error checking logs: {e}")
