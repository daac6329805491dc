"""
heartbeat_monitor.recency

Recency classification of the last published heartbeat

Sources, in order:
- status document in the local checkout
- status document fetched from the document store
- comments feed of the heartbeat issue (created_at of the newest comment)

Classification:
- hours since last heartbeat (whole hours, floored) > threshold -> offline
- otherwise online; an error log flagged in the document -> error_log alert
- no source at all -> error, alerted like offline
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import requests

from heartbeat_agent.model import format_utc_timestamp, parse_utc_timestamp
from heartbeat_agent.store import ContentsStore

STATUS_FILE_THRESHOLD_HOURS = 3
COMMENT_FEED_THRESHOLD_HOURS = 13

NO_SOURCE_MESSAGE = (
    "No heartbeat source found. Create either heartbeat.json or an issue for heartbeat comments."
)

SOURCE_FILE = "file"
SOURCE_STORE = "store"
SOURCE_ISSUE = "issue"
SOURCE_UNKNOWN = "unknown"


@dataclass(frozen=True)
class CheckResult:
    """
    Outcome of one recency check
    - status: online | offline | unknown | error
    - alert_type: None | "offline" | "error_log"
    - document: parsed status document when the source provided one
    """

    source: str
    status: str
    message: str
    alert_type: Optional[str] = None
    hours_since: Optional[int] = None
    last_seen: Optional[str] = None
    document: dict[str, Any] = field(default_factory=dict)

    @property
    def error_log(self) -> dict[str, Any]:
        value = self.document.get("error_log")
        return value if isinstance(value, dict) else {}

    @property
    def has_error_logs(self) -> Optional[bool]:
        """
        None when the check never looked at an error-log section
        """
        if self.status != "online" or self.source not in {SOURCE_FILE, SOURCE_STORE}:
            return None
        return self.error_log.get("has_error") is True


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def hours_between(earlier: datetime, later: datetime) -> int:
    """
    Whole hours elapsed, floored
    """
    seconds = (_as_utc(later) - _as_utc(earlier)).total_seconds()
    return int(seconds // 3600)


def parse_iso_timestamp(value: str) -> datetime:
    """
    Parse an ISO 8601 timestamp such as 2024-01-01T00:00:00Z
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return _as_utc(datetime.fromisoformat(text))


def check_status_document(
    document: dict[str, Any],
    now: datetime,
    *,
    source: str = SOURCE_FILE,
    offline_after_hours: int = STATUS_FILE_THRESHOLD_HOURS,
) -> CheckResult:
    """
    Classify a published status document
    """
    raw_timestamp = document.get("timestamp")

    try:
        last = parse_utc_timestamp(str(raw_timestamp))
    except ValueError:
        return CheckResult(
            source=source,
            status="error",
            message=f"Heartbeat status has an unreadable timestamp: {raw_timestamp!r}",
            alert_type="offline",
            document=document,
        )

    last_seen = format_utc_timestamp(last)
    hours = hours_between(last, now)

    if hours > offline_after_hours:
        return CheckResult(
            source=source,
            status="offline",
            message=f"Raspberry Pi hasn't checked in for {hours} hours (last: {last_seen})",
            alert_type="offline",
            hours_since=hours,
            last_seen=last_seen,
            document=document,
        )

    error_log = document.get("error_log")
    has_error = isinstance(error_log, dict) and error_log.get("has_error") is True

    return CheckResult(
        source=source,
        status="online",
        message=f"Raspberry Pi is online (last heartbeat: {hours} hours ago)",
        alert_type="error_log" if has_error else None,
        hours_since=hours,
        last_seen=last_seen,
        document=document,
    )


def check_comment_feed(
    latest_created_at: Optional[str],
    now: datetime,
    *,
    issue_number: int,
    offline_after_hours: int = COMMENT_FEED_THRESHOLD_HOURS,
) -> CheckResult:
    """
    Classify the newest heartbeat comment on the fallback issue
    """
    if not latest_created_at:
        return CheckResult(
            source=SOURCE_ISSUE,
            status="unknown",
            message=f"No heartbeat comments found in issue #{issue_number}",
            alert_type="offline",
        )

    try:
        last = parse_iso_timestamp(latest_created_at)
    except ValueError:
        return CheckResult(
            source=SOURCE_ISSUE,
            status="error",
            message=f"Heartbeat comment has an unreadable timestamp: {latest_created_at!r}",
            alert_type="offline",
        )

    hours = hours_between(last, now)

    if hours > offline_after_hours:
        return CheckResult(
            source=SOURCE_ISSUE,
            status="offline",
            message=f"Raspberry Pi hasn't checked in for {hours} hours (last: {latest_created_at})",
            alert_type="offline",
            hours_since=hours,
            last_seen=latest_created_at,
        )

    return CheckResult(
        source=SOURCE_ISSUE,
        status="online",
        message=f"Raspberry Pi is online (last heartbeat: {hours} hours ago)",
        hours_since=hours,
        last_seen=latest_created_at,
    )


def no_source_result() -> CheckResult:
    return CheckResult(
        source=SOURCE_UNKNOWN,
        status="error",
        message=NO_SOURCE_MESSAGE,
        alert_type="offline",
    )


def load_status_file(path: Path) -> Optional[dict[str, Any]]:
    """
    Parsed local status document, or None when missing

    Raises ValueError when the file is not a JSON object
    """
    if not path.exists():
        return None
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return payload


def run_check(
    now: datetime,
    *,
    status_file: Optional[Path] = None,
    store: Optional[ContentsStore] = None,
    status_path: Optional[str] = None,
    issue_number: Optional[int] = None,
    offline_after_hours: int = STATUS_FILE_THRESHOLD_HOURS,
    comment_offline_after_hours: int = COMMENT_FEED_THRESHOLD_HOURS,
    on_source_error=None,
) -> CheckResult:
    """
    Walk the sources in order and classify the first one that answers

    on_source_error(source, exc) is called for every source that fails
    """

    def _report(source: str, e: Exception) -> None:
        if on_source_error is not None:
            on_source_error(source, e)

    if status_file is not None:
        try:
            document = load_status_file(status_file)
        except (OSError, ValueError) as e:
            _report(SOURCE_FILE, e)
        else:
            if document is not None:
                return check_status_document(
                    document, now, source=SOURCE_FILE, offline_after_hours=offline_after_hours
                )

    if store is not None and status_path:
        try:
            stored = store.get_document(status_path)
            document = json.loads(stored.text) if stored is not None else None
            if document is not None and not isinstance(document, dict):
                raise ValueError(f"{status_path} does not contain a JSON object")
        except (requests.RequestException, ValueError) as e:
            _report(SOURCE_STORE, e)
        else:
            if document is not None:
                return check_status_document(
                    document, now, source=SOURCE_STORE, offline_after_hours=offline_after_hours
                )

    if store is not None and issue_number is not None:
        try:
            latest = store.latest_issue_comment_time(issue_number)
        except (requests.RequestException, ValueError) as e:
            _report(SOURCE_ISSUE, e)
        else:
            return check_comment_feed(
                latest,
                now,
                issue_number=issue_number,
                offline_after_hours=comment_offline_after_hours,
            )

    return no_source_result()
