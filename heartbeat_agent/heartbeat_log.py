"""
heartbeat_agent.heartbeat_log

Local append-only heartbeat log + retention trimming

Log format:
- header line: free text containing "at YYYY-MM-DD HH:MM:SS UTC"
- continuation lines: anything else; they belong to the header above them

Retention rules:
- cutoff = now - retention_days (calendar days, same wall-clock time)
- header kept iff its timestamp >= cutoff
- header whose timestamp does not parse is expired
- continuation lines follow the decision of their header
- lines before the first header have no owner and are dropped
- two maintenance trailer lines are always appended
- the file is replaced atomically (temp file + os.replace)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, Optional

from heartbeat_agent import AGENT_VERSION
from heartbeat_agent.logging import emit_event
from heartbeat_agent.model import format_utc_timestamp, parse_utc_timestamp, utc_now

HEADER_PREFIX = "at "
HEADER_SUFFIX = " UTC"

UPDATE_SUCCESS_HEADER = "Heartbeat update successful at {timestamp} UTC"
UPDATE_FAILED_HEADER = "Heartbeat update failed at {timestamp} UTC"
UPDATE_FAILED_DETAIL = "Failed to update remote status file. Check your token and network connection."

MAINTENANCE_HEADER = "Heartbeat log maintenance successful at {timestamp} UTC"
MAINTENANCE_DETAIL = "Removed entries older than {days} days"


@dataclass(frozen=True)
class TrimResult:
    """
    Outcome of one trim run
    """

    path: Path
    lines_before: int
    lines_kept: int
    cutoff: datetime

    @property
    def lines_removed(self) -> int:
        return self.lines_before - self.lines_kept


def _header_text(line: str) -> Optional[str]:
    """
    Text enclosed by "at " ... " UTC", or None when the line is no header
    """
    end = line.find(HEADER_SUFFIX)
    while end != -1:
        start = line.rfind(HEADER_PREFIX, 0, end)
        # "at" must start a word
        if start != -1 and (start == 0 or line[start - 1].isspace()):
            return line[start + len(HEADER_PREFIX):end]
        end = line.find(HEADER_SUFFIX, end + 1)
    return None


def parse_header(line: str) -> tuple[bool, Optional[datetime]]:
    """
    Classify a log line

    Returns (is_header, timestamp); timestamp is None for a header whose
    enclosed text is not a valid YYYY-MM-DD HH:MM:SS value
    """
    text = _header_text(line)
    if text is None:
        return False, None

    try:
        return True, parse_utc_timestamp(text)
    except ValueError:
        return True, None


def retention_cutoff(now: datetime, retention_days: int) -> datetime:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    # UTC has no DST, so a day delta equals a calendar-day step
    return now - timedelta(days=retention_days)


def filter_log_lines(lines: Iterable[str], retention_days: int, now: datetime) -> list[str]:
    """
    Drop entries whose header is older than the retention window
    """
    if retention_days < 0:
        raise ValueError("retention_days must be >= 0")

    cutoff = retention_cutoff(now, retention_days)
    kept: list[str] = []
    keep_block = False

    for line in lines:
        is_header, timestamp = parse_header(line)

        if is_header:
            keep_block = timestamp is not None and timestamp >= cutoff
            if keep_block:
                kept.append(line)
        elif keep_block:
            kept.append(line)

    return kept


def maintenance_trailer(now: datetime, retention_days: int) -> list[str]:
    return [
        MAINTENANCE_HEADER.format(timestamp=format_utc_timestamp(now)),
        MAINTENANCE_DETAIL.format(days=retention_days),
    ]


def split_log_text(text: str) -> list[str]:
    """
    Split on line feeds only; other line-break characters stay inside their line
    """
    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return lines


def _write_atomically(path: Path, lines: list[str]) -> None:
    temp_path = path.with_name(path.name + ".tmp")
    try:
        with temp_path.open(mode="w", encoding="utf-8", newline="\n") as f:
            for line in lines:
                f.write(line)
                f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def trim_log_file(
    path: Path,
    retention_days: int,
    *,
    now: Optional[datetime] = None,
) -> Optional[TrimResult]:
    """
    Trim the heartbeat log in place

    Returns None (after a log_missing warning) when the file does not exist.
    Raises on IO errors while reading or replacing the file.
    """
    if now is None:
        now = utc_now()

    if not path.exists():
        emit_event(
            "log_missing",
            agent_version=AGENT_VERSION,
            log_path=str(path),
            message=f"Warning: Log file {path} does not exist",
        )
        return None

    # newline="" keeps a lone "\r" as data instead of a line break
    with path.open(encoding="utf-8", errors="replace", newline="") as f:
        lines = split_log_text(f.read())
    kept = filter_log_lines(lines, retention_days, now)

    _write_atomically(path, kept + maintenance_trailer(now, retention_days))

    result = TrimResult(
        path=path,
        lines_before=len(lines),
        lines_kept=len(kept),
        cutoff=retention_cutoff(now, retention_days),
    )

    emit_event(
        "log_trimmed",
        agent_version=AGENT_VERSION,
        log_path=str(path),
        retention_days=retention_days,
        cutoff=format_utc_timestamp(result.cutoff),
        lines_before=result.lines_before,
        lines_kept=result.lines_kept,
        lines_removed=result.lines_removed,
    )
    return result


def append_log_entry(path: Path, header: str, details: Iterable[str] = ()) -> None:
    """
    Append one entry (header + continuation lines)

    Raises on IO errors; caller decides how to handle
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open(mode="a", encoding="utf-8", newline="\n") as f:
        f.write(header)
        f.write("\n")
        for detail in details:
            f.write(detail)
            f.write("\n")
        f.flush()


def update_entry(success: bool, timestamp: str) -> tuple[str, list[str]]:
    """
    Header + details recorded after a publish run
    """
    if success:
        return UPDATE_SUCCESS_HEADER.format(timestamp=timestamp), []
    return UPDATE_FAILED_HEADER.format(timestamp=timestamp), [UPDATE_FAILED_DETAIL]
