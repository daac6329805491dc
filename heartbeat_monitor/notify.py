"""
heartbeat_monitor.notify

Email alerts through a SendGrid-compatible message-send API

- one POST per alert, no retry (fire-and-forget)
- 2xx is success; everything else is reported as False
- dynamic values are HTML-escaped before they reach the body
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import requests

from heartbeat_agent.model import format_utc_timestamp
from heartbeat_monitor.recency import CheckResult

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"
SEND_TIMEOUT_S = 10

OFFLINE_SUBJECT = "⚠️ Alert: Raspberry Pi Status - Offline"
ERROR_LOG_SUBJECT = "⚠️ Alert: Raspberry Pi Error Logs Detected"


@dataclass(frozen=True)
class AlertMessage:
    subject: str
    html: str


def _footer(now: datetime, checked_by: str) -> str:
    return (
        "<p>This is an automated alert from the heartbeat monitor.</p>"
        f"<p>Current Time (UTC): {format_utc_timestamp(now)}</p>"
        f"<p>Checked by: {html.escape(checked_by)}</p>"
    )


def build_offline_alert(result: CheckResult, now: datetime, *, checked_by: str) -> AlertMessage:
    body = f"<p><strong>{html.escape(result.message)}</strong></p>" + _footer(now, checked_by)
    return AlertMessage(subject=OFFLINE_SUBJECT, html=body)


def build_error_log_alert(result: CheckResult, now: datetime, *, checked_by: str) -> AlertMessage:
    error_log = result.error_log
    latest_log = str(error_log.get("latest_log") or "unknown")
    message = str(error_log.get("message") or "")
    preview = str(error_log.get("log_content") or "")

    body = (
        "<h2>Error Logs Detected on Raspberry Pi</h2>"
        f"<p><strong>Error Log File:</strong> {html.escape(latest_log)}</p>"
        f"<p><strong>Message:</strong> {html.escape(message)}</p>"
        "<p><strong>Log Preview:</strong></p>"
        f"<pre>{html.escape(preview)}</pre>"
    ) + _footer(now, checked_by)
    return AlertMessage(subject=ERROR_LOG_SUBJECT, html=body)


def alert_for(result: CheckResult, now: datetime, *, checked_by: str) -> Optional[AlertMessage]:
    """
    Pick the alert for a check result; None when nothing needs sending
    """
    if result.alert_type == "offline":
        return build_offline_alert(result, now, checked_by=checked_by)
    if result.alert_type == "error_log" and result.has_error_logs:
        return build_error_log_alert(result, now, checked_by=checked_by)
    return None


def sendgrid_payload(message: AlertMessage, *, to: str, sender: str) -> dict[str, Any]:
    return {
        "personalizations": [{"to": [{"email": to}]}],
        "from": {"email": sender},
        "subject": message.subject,
        "content": [{"type": "text/html", "value": message.html}],
    }


def send_alert(
    message: AlertMessage,
    *,
    api_key: str,
    to: str,
    sender: str,
    url: str = SENDGRID_SEND_URL,
    session: Optional[requests.Session] = None,
) -> bool:
    """
    Send one alert email

    Raises requests.RequestException on network errors; caller logs it
    """
    http = session or requests
    response = http.post(
        url,
        headers={"Authorization": f"Bearer {api_key}"},
        json=sendgrid_payload(message, to=to, sender=sender),
        timeout=SEND_TIMEOUT_S,
    )
    return 200 <= response.status_code < 300
