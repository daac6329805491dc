"""
heartbeat_agent.collect

Assemble a StatusRecord from the collectors

Failure semantics:
- each metric read is wrapped with run_collector
- a failed read is logged (collector_failed) and degraded to its sentinel
- collection as a whole never raises
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import requests

from heartbeat_agent import AGENT_VERSION
from heartbeat_agent.collectors import (
    collect_cpu_temperature,
    collect_disk_percent,
    collect_external_ip,
    collect_hostname,
    collect_memory_percent,
    collect_uptime,
    scan_error_logs,
)
from heartbeat_agent.collectors.base import CollectorOutcome, run_collector
from heartbeat_agent.config import AgentConfig
from heartbeat_agent.logging import emit_event
from heartbeat_agent.model import (
    UNKNOWN,
    ErrorLogStatus,
    StatusRecord,
    format_celsius,
    format_percent,
    format_utc_timestamp,
    utc_now,
    validate_record,
)


def _value_or(outcome: CollectorOutcome, default):
    if not outcome.ok:
        emit_event(
            "collector_failed",
            agent_version=AGENT_VERSION,
            collector=outcome.name,
            elapsed_ms=outcome.elapsed_ms,
            error_type=outcome.error_type,
            message=outcome.error_message,
        )
    return outcome.value_or(default)


def _on_ip_lookup_failure(url: str, e: Exception) -> None:
    emit_event(
        "external_ip_lookup_failed",
        agent_version=AGENT_VERSION,
        endpoint=url,
        error_type=type(e).__name__,
        message=str(e),
    )


def collect_error_log_status(config: AgentConfig) -> ErrorLogStatus:
    if config.error_log_dir is None or config.error_log_pattern is None:
        return ErrorLogStatus(has_error=False, message="Error log monitoring not configured")
    return scan_error_logs(config.error_log_dir, config.error_log_pattern)


def collect_status(
    config: AgentConfig,
    *,
    now: Optional[datetime] = None,
    session: Optional[requests.Session] = None,
) -> StatusRecord:
    """
    Collect a point-in-time snapshot of the node
    """
    if now is None:
        now = utc_now()

    hostname = _value_or(run_collector("hostname", collect_hostname), "")
    memory = _value_or(run_collector("memory", collect_memory_percent), None)
    disk = _value_or(run_collector("disk", collect_disk_percent), None)
    cpu_temp = _value_or(run_collector("cpu_temp", collect_cpu_temperature), None)
    uptime = _value_or(run_collector("uptime", collect_uptime), UNKNOWN)

    # IP lookup already degrades internally; the wrapper is a last guard
    external_ip = _value_or(
        run_collector(
            "external_ip",
            collect_external_ip,
            session=session,
            on_failure=_on_ip_lookup_failure,
        ),
        UNKNOWN,
    )

    error_log = _value_or(
        run_collector("error_log", collect_error_log_status, config),
        ErrorLogStatus(has_error=False, message="Error checking logs: scanner failed"),
    )

    record = StatusRecord(
        hostname=hostname,
        external_ip=external_ip,
        timestamp=format_utc_timestamp(now),
        uptime=uptime,
        memory_usage=format_percent(memory),
        disk_usage=format_percent(disk),
        cpu_temp=format_celsius(cpu_temp),
        error_log=error_log,
    )

    # Never hand an invalid record to the publisher
    validate_record(record)
    return record
