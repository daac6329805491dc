"""
heartbeat_agent.main
------------
Cron entrypoints for the monitored node

Commands:
- `heartbeat-agent report`  collect, publish, record the outcome in the heartbeat log
- `heartbeat-agent trim`    drop heartbeat log entries older than the retention window
- `heartbeat-agent collect` print the status record without publishing
- `heartbeat-agent version` print agent version & runtime env

Exit codes:
- 0 for every completed run, including degraded metrics and failed publishes
- 1 only when configuration cannot be loaded
"""

from __future__ import annotations

import platform
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

import typer

from heartbeat_agent import AGENT_VERSION
from heartbeat_agent.collect import collect_status
from heartbeat_agent.config import AgentConfig, ConfigError, load_config, load_token
from heartbeat_agent.heartbeat_log import append_log_entry, trim_log_file, update_entry
from heartbeat_agent.logging import emit_event
from heartbeat_agent.model import record_to_json, utc_now
from heartbeat_agent.publish import publish_status
from heartbeat_agent.store import ContentsStore

# Explicit multi-command CLI
app = typer.Typer(
    add_completion=False,
    help="heartbeat-agent: publish node status and maintain the heartbeat log",
)

CONFIG_OPTION_HELP = "Path to the JSON configuration file."


# -----------------------------
# DATA CLASSES
# -----------------------------
@dataclass(frozen=True)
class EnvironmentInfo:
    """
    Snapshot of the runtime environment
    """

    python_version: str
    os: str
    machine: str
    utc_now: str


def collect_environment_info() -> EnvironmentInfo:
    return EnvironmentInfo(
        python_version=sys.version.split()[0],
        os=f"{platform.system()} {platform.release()}",
        machine=platform.machine(),
        utc_now=utc_now().isoformat(),
    )


def _fail_config(mode: str, e: ConfigError) -> NoReturn:
    emit_event(
        "config_invalid",
        agent_version=AGENT_VERSION,
        mode=mode,
        message=str(e),
    )
    typer.echo(f"Error: {e}", err=True)
    raise typer.Exit(code=1)


def _load_config_or_exit(mode: str, config_path: str) -> AgentConfig:
    try:
        return load_config(Path(config_path))
    except ConfigError as e:
        _fail_config(mode, e)


# -----------------------------
# ROOT COMMAND BEHAVIOR
# -----------------------------
@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """
    Print a short hint when no subcommand is given
    """
    if ctx.invoked_subcommand is None:
        typer.echo("No command provided. Try: heartbeat-agent --help")


# -----------------------------
# CLI COMMANDS
# -----------------------------
@app.command()
def version() -> None:
    """
    Print agent version & runtime env
    """
    env = collect_environment_info()

    typer.echo(f"heartbeat-agent v{AGENT_VERSION}")
    typer.echo(f"python={env.python_version}")
    typer.echo(f"os={env.os}")
    typer.echo(f"machine={env.machine}")
    typer.echo(f"utc_now={env.utc_now}")


@app.command("collect")
def collect(
    config_path: str = typer.Option("config.json", "--config", help=CONFIG_OPTION_HELP),
) -> None:
    """
    Print the current status record as JSON (no publish)
    """
    config = _load_config_or_exit("collect", config_path)
    record = collect_status(config)
    typer.echo(record_to_json(record))


@app.command("report")
def report(
    config_path: str = typer.Option("config.json", "--config", help=CONFIG_OPTION_HELP),
) -> None:
    """
    Collect a status record, publish it and append the outcome to the heartbeat log

    Failure semantics:
    - publish failures are logged and recorded, exit code stays 0
    - configuration or token problems exit 1
    """
    emit_event("agent_start", agent_version=AGENT_VERSION, mode="report", config_path=config_path)

    try:
        config = _load_config_or_exit("report", config_path)
        try:
            token = load_token(config)
        except ConfigError as e:
            _fail_config("report", e)

        record = collect_status(config)
        emit_event(
            "status_collected",
            agent_version=AGENT_VERSION,
            mode="report",
            hostname=record.hostname,
            timestamp=record.timestamp,
            has_error_log=record.error_log.has_error,
        )

        store = ContentsStore(config.repo, token, timeout=config.http_timeout_s)
        success = publish_status(record, store, config.status_path)

        header, details = update_entry(success, record.timestamp)
        try:
            append_log_entry(config.heartbeat_log, header, details)
        except OSError as e:
            emit_event(
                "log_write_failed",
                agent_version=AGENT_VERSION,
                mode="report",
                log_path=str(config.heartbeat_log),
                error_type=type(e).__name__,
                message=str(e),
            )
        else:
            emit_event(
                "log_entry_appended",
                agent_version=AGENT_VERSION,
                mode="report",
                log_path=str(config.heartbeat_log),
                message=header,
            )

    finally:
        emit_event("agent_shutdown", agent_version=AGENT_VERSION, mode="report")


@app.command("trim")
def trim(
    config_path: str = typer.Option("config.json", "--config", help=CONFIG_OPTION_HELP),
    days: int | None = typer.Option(
        None,
        "--days",
        help="Override log_days_to_keep from the configuration.",
        min=0,
    ),
) -> None:
    """
    Remove heartbeat log entries older than the retention window
    """
    emit_event("agent_start", agent_version=AGENT_VERSION, mode="trim", config_path=config_path)

    try:
        config = _load_config_or_exit("trim", config_path)
        retention_days = config.retention_days if days is None else days

        try:
            trim_log_file(config.heartbeat_log, retention_days)
        except OSError as e:
            # The daily cron job must keep running; surface and move on
            emit_event(
                "log_trim_failed",
                agent_version=AGENT_VERSION,
                mode="trim",
                log_path=str(config.heartbeat_log),
                error_type=type(e).__name__,
                message=str(e),
            )

    finally:
        emit_event("agent_shutdown", agent_version=AGENT_VERSION, mode="trim")


if __name__ == "__main__":
    app()
