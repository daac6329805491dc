"""
Contract tests for the check history table
"""

from datetime import datetime, timezone
from pathlib import Path

from heartbeat_monitor.history import HISTORY_HEADER, append_history_row, history_row
from heartbeat_monitor.recency import SOURCE_FILE, CheckResult, no_source_result

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _result(has_error: bool) -> CheckResult:
    return CheckResult(
        source=SOURCE_FILE,
        status="online",
        message="Raspberry Pi is online (last heartbeat: 1 hours ago)",
        hours_since=1,
        document={"error_log": {"has_error": has_error, "latest_log": "error_2024-06-01.log"}},
    )


def test_header_written_once(tmp_path: Path) -> None:
    path = tmp_path / "monitor-history" / "check-history.md"

    append_history_row(path, NOW, _result(False))
    append_history_row(path, NOW, _result(True))

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[: len(HISTORY_HEADER)] == HISTORY_HEADER
    assert len(lines) == len(HISTORY_HEADER) + 2
    assert lines.count(HISTORY_HEADER[0]) == 1


def test_error_log_column() -> None:
    assert history_row(NOW, _result(False)).endswith("| ✅ No errors |")
    assert history_row(NOW, _result(True)).endswith("| ⚠️ error_2024-06-01.log |")


def test_incomplete_check_row() -> None:
    assert history_row(NOW, None) == (
        "| 2024-06-01 12:00:00 | Unknown | Check did not complete successfully | N/A |"
    )


def test_no_source_row_and_pipe_escaping() -> None:
    row = history_row(NOW, no_source_result())
    assert row.startswith("| 2024-06-01 12:00:00 | error | No heartbeat source found.")
    assert row.endswith("| N/A |")

    piped = CheckResult(source=SOURCE_FILE, status="error", message="bad | value\nsplit")
    assert "bad \\| value split" in history_row(NOW, piped)
