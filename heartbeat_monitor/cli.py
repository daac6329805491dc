"""
heartbeat_monitor.cli

Scheduled CI check: is the node still publishing, and did it report errors?

Every completed check exits 0; alerts and history are the outputs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import requests
import typer

from heartbeat_agent import AGENT_VERSION
from heartbeat_agent.logging import emit_event
from heartbeat_agent.model import utc_now
from heartbeat_agent.store import ContentsStore
from heartbeat_monitor.history import append_history_row
from heartbeat_monitor.notify import alert_for, send_alert
from heartbeat_monitor.recency import (
    COMMENT_FEED_THRESHOLD_HOURS,
    STATUS_FILE_THRESHOLD_HOURS,
    CheckResult,
    run_check,
)

app = typer.Typer(add_completion=False, help="heartbeat-monitor: recency checks and alerts")


def _on_source_error(source: str, e: Exception) -> None:
    emit_event(
        "source_unavailable",
        agent_version=AGENT_VERSION,
        mode="check",
        source=source,
        error_type=type(e).__name__,
        message=str(e),
    )


def _deliver_alert(
    result: CheckResult,
    *,
    now,
    checked_by: str,
    api_key: Optional[str],
    notify_to: Optional[str],
    notify_from: Optional[str],
) -> None:
    message = alert_for(result, now, checked_by=checked_by)
    if message is None:
        return

    if not (api_key and notify_to and notify_from):
        emit_event(
            "alert_skipped",
            agent_version=AGENT_VERSION,
            mode="check",
            subject=message.subject,
            message="mail settings incomplete (api key, recipient and sender are required)",
        )
        return

    try:
        sent = send_alert(message, api_key=api_key, to=notify_to, sender=notify_from)
    except requests.RequestException as e:
        emit_event(
            "alert_failed",
            agent_version=AGENT_VERSION,
            mode="check",
            subject=message.subject,
            error_type=type(e).__name__,
            message=str(e),
        )
        return

    emit_event(
        "alert_sent" if sent else "alert_failed",
        agent_version=AGENT_VERSION,
        mode="check",
        subject=message.subject,
        alert_type=result.alert_type,
    )


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand is None:
        typer.echo("No command provided. Try: heartbeat-monitor --help")


@app.command("check")
def check(
    status_file: Optional[str] = typer.Option(
        "heartbeat.json",
        "--status-file",
        help="Status document in the local checkout (checked first).",
    ),
    repo: Optional[str] = typer.Option(
        None,
        "--repo",
        envvar="GITHUB_REPOSITORY",
        help="owner/name of the repository holding the status document.",
    ),
    token: Optional[str] = typer.Option(
        None,
        "--token",
        envvar="GITHUB_TOKEN",
        help="Bearer token for the document store.",
    ),
    status_path: str = typer.Option(
        "heartbeat.json",
        "--status-path",
        help="Path of the status document inside the repository.",
    ),
    issue_number: int = typer.Option(
        1,
        "--issue",
        help="Issue whose comments act as the fallback heartbeat feed.",
        min=1,
    ),
    offline_after_hours: int = typer.Option(
        STATUS_FILE_THRESHOLD_HOURS,
        "--offline-after-hours",
        help="Hours without a status update before the node counts as offline.",
        min=0,
    ),
    comment_offline_after_hours: int = typer.Option(
        COMMENT_FEED_THRESHOLD_HOURS,
        "--comment-offline-after-hours",
        help="Same threshold for the comment feed.",
        min=0,
    ),
    notify_to: Optional[str] = typer.Option(
        None,
        "--notify-to",
        envvar="NOTIFICATION_EMAIL",
        help="Alert recipient address.",
    ),
    notify_from: Optional[str] = typer.Option(
        None,
        "--notify-from",
        envvar="NOTIFICATION_FROM",
        help="Alert sender address.",
    ),
    api_key: Optional[str] = typer.Option(
        None,
        "--sendgrid-api-key",
        envvar="SENDGRID_API_KEY",
        help="API key for the message-send API.",
    ),
    checked_by: str = typer.Option(
        "heartbeat-monitor",
        "--checked-by",
        help="Name shown in alert footers.",
    ),
    history_file: Optional[str] = typer.Option(
        ".github/monitor-history/check-history.md",
        "--history-file",
        help="Markdown table of past checks; empty string disables it.",
    ),
) -> None:
    """
    Classify the last heartbeat, send alerts and record the check
    """
    now = utc_now()
    emit_event("agent_start", agent_version=AGENT_VERSION, mode="check")

    result: Optional[CheckResult] = None

    try:
        store = ContentsStore(repo, token) if repo and token else None

        result = run_check(
            now,
            status_file=Path(status_file) if status_file else None,
            store=store,
            status_path=status_path,
            issue_number=issue_number,
            offline_after_hours=offline_after_hours,
            comment_offline_after_hours=comment_offline_after_hours,
            on_source_error=_on_source_error,
        )

        emit_event(
            "check_completed",
            agent_version=AGENT_VERSION,
            mode="check",
            source=result.source,
            status=result.status,
            alert_type=result.alert_type,
            hours_since=result.hours_since,
            message=result.message,
        )
        typer.echo(result.message)

        _deliver_alert(
            result,
            now=now,
            checked_by=checked_by,
            api_key=api_key,
            notify_to=notify_to,
            notify_from=notify_from,
        )

    finally:
        if history_file:
            path = Path(history_file)
            try:
                row = append_history_row(path, now, result)
            except OSError as e:
                emit_event(
                    "log_write_failed",
                    agent_version=AGENT_VERSION,
                    mode="check",
                    log_path=str(path),
                    error_type=type(e).__name__,
                    message=str(e),
                )
            else:
                emit_event(
                    "history_updated",
                    agent_version=AGENT_VERSION,
                    mode="check",
                    history_file=str(path),
                    message=row,
                )

        emit_event("agent_shutdown", agent_version=AGENT_VERSION, mode="check")


if __name__ == "__main__":
    app()
