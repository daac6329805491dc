"""
heartbeat_agent.collectors.uptime

Free-form uptime string from the `uptime` command
"""

from __future__ import annotations

import subprocess

UPTIME_TIMEOUT_S = 5


def collect_uptime() -> str:
    result = subprocess.run(
        ["uptime"],
        capture_output=True,
        text=True,
        timeout=UPTIME_TIMEOUT_S,
        check=True,
    )
    output = result.stdout.strip()
    if not output:
        raise RuntimeError("uptime produced no output")
    return output
