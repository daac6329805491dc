"""
Contract tests for heartbeat recency classification
"""

import json
from datetime import datetime, timezone
from pathlib import Path

import requests

from heartbeat_agent.store import StoredDocument
from heartbeat_monitor.recency import (
    NO_SOURCE_MESSAGE,
    SOURCE_FILE,
    SOURCE_ISSUE,
    SOURCE_STORE,
    check_comment_feed,
    check_status_document,
    hours_between,
    run_check,
)

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _document(timestamp: str, *, has_error: bool = False) -> dict:
    error_log = {"has_error": has_error, "message": "No error logs found", "latest_log": None, "log_content": None}
    if has_error:
        error_log = {
            "has_error": True,
            "message": "Error log contains 12 bytes",
            "latest_log": "error_2024-06-01.log",
            "log_content": "Traceback...",
        }
    return {"hostname": "raspberrypi", "timestamp": timestamp, "error_log": error_log}


class FakeStore:
    """
    Duck-typed ContentsStore; Exception instances are raised
    """

    def __init__(self, document=None, comment_time=None) -> None:
        self.document = document
        self.comment_time = comment_time
        self.calls: list[str] = []

    def get_document(self, path):
        self.calls.append(f"document:{path}")
        if isinstance(self.document, Exception):
            raise self.document
        if self.document is None:
            return None
        return StoredDocument(sha="abc", text=json.dumps(self.document))

    def latest_issue_comment_time(self, issue_number):
        self.calls.append(f"issue:{issue_number}")
        if isinstance(self.comment_time, Exception):
            raise self.comment_time
        return self.comment_time


def test_hours_are_floored() -> None:
    assert hours_between(datetime(2024, 6, 1, 8, 0, 1, tzinfo=timezone.utc), NOW) == 3
    assert hours_between(datetime(2024, 6, 1, 8, 0, 0, tzinfo=timezone.utc), NOW) == 4


def test_threshold_is_exclusive() -> None:
    """
    Exactly three hours is still online; four is offline
    """
    online = check_status_document(_document("2024-06-01 09:00:00"), NOW)
    offline = check_status_document(_document("2024-06-01 08:00:00"), NOW)

    assert online.status == "online"
    assert online.alert_type is None
    assert online.message == "Raspberry Pi is online (last heartbeat: 3 hours ago)"

    assert offline.status == "offline"
    assert offline.alert_type == "offline"
    assert offline.hours_since == 4
    assert offline.message == "Raspberry Pi hasn't checked in for 4 hours (last: 2024-06-01 08:00:00)"


def test_online_with_error_log_raises_error_log_alert() -> None:
    result = check_status_document(_document("2024-06-01 11:30:00", has_error=True), NOW)

    assert result.status == "online"
    assert result.alert_type == "error_log"
    assert result.has_error_logs is True
    assert result.error_log["latest_log"] == "error_2024-06-01.log"


def test_offline_with_error_log_only_alerts_offline() -> None:
    result = check_status_document(_document("2024-05-30 12:00:00", has_error=True), NOW)

    assert result.alert_type == "offline"
    assert result.has_error_logs is None


def test_unreadable_timestamp_is_an_error() -> None:
    result = check_status_document({"timestamp": "yesterday-ish"}, NOW)

    assert result.status == "error"
    assert result.alert_type == "offline"


def test_comment_feed_uses_its_own_threshold() -> None:
    online = check_comment_feed("2024-06-01T00:00:00Z", NOW, issue_number=1)
    boundary = check_comment_feed("2024-05-31T23:00:00Z", NOW, issue_number=1)
    offline = check_comment_feed("2024-05-31T21:59:59Z", NOW, issue_number=1)

    assert online.status == "online"
    assert online.source == SOURCE_ISSUE
    assert boundary.status == "online"
    assert offline.status == "offline"
    assert offline.hours_since == 14


def test_comment_feed_without_comments_alerts() -> None:
    result = check_comment_feed(None, NOW, issue_number=7)

    assert result.status == "unknown"
    assert result.alert_type == "offline"
    assert "#7" in result.message


def test_local_file_wins_over_store(tmp_path: Path) -> None:
    status_file = tmp_path / "heartbeat.json"
    status_file.write_text(json.dumps(_document("2024-06-01 11:00:00")), encoding="utf-8")
    store = FakeStore(document=_document("2024-01-01 00:00:00"))

    result = run_check(NOW, status_file=status_file, store=store, status_path="heartbeat.json", issue_number=1)

    assert result.source == SOURCE_FILE
    assert result.status == "online"
    assert store.calls == []


def test_missing_file_falls_back_to_store(tmp_path: Path) -> None:
    store = FakeStore(document=_document("2024-06-01 11:00:00", has_error=True))

    result = run_check(
        NOW,
        status_file=tmp_path / "heartbeat.json",
        store=store,
        status_path="heartbeat.json",
        issue_number=1,
    )

    assert result.source == SOURCE_STORE
    assert result.alert_type == "error_log"
    assert store.calls == ["document:heartbeat.json"]


def test_store_failure_falls_back_to_issue_and_reports_source_error(tmp_path: Path) -> None:
    store = FakeStore(document=requests.ConnectionError("down"), comment_time="2024-06-01T10:00:00Z")
    errors: list[str] = []

    result = run_check(
        NOW,
        status_file=tmp_path / "heartbeat.json",
        store=store,
        status_path="heartbeat.json",
        issue_number=1,
        on_source_error=lambda source, e: errors.append(source),
    )

    assert result.source == SOURCE_ISSUE
    assert result.status == "online"
    assert errors == [SOURCE_STORE]


def test_corrupt_local_file_is_reported_and_skipped(tmp_path: Path) -> None:
    status_file = tmp_path / "heartbeat.json"
    status_file.write_text("[1, 2", encoding="utf-8")
    errors: list[str] = []

    result = run_check(NOW, status_file=status_file, on_source_error=lambda source, e: errors.append(source))

    assert errors == [SOURCE_FILE]
    assert result.status == "error"
    assert result.message == NO_SOURCE_MESSAGE


def test_no_source_is_an_error_with_offline_alert(tmp_path: Path) -> None:
    result = run_check(NOW, status_file=tmp_path / "heartbeat.json")

    assert result.status == "error"
    assert result.alert_type == "offline"
    assert result.message == NO_SOURCE_MESSAGE
