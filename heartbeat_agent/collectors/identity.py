"""
heartbeat_agent.collectors.identity

- hostname: host identifier (default socket hostname; override via env var)

No network calls, no heavy dependencies
"""

from __future__ import annotations

import os
import socket

# Overrides socket.gethostname() when set
HOSTNAME_ENV = "HEARTBEAT_HOSTNAME"


def collect_hostname() -> str:
    hostname = os.getenv(HOSTNAME_ENV) or socket.gethostname()
    if not hostname:
        raise RuntimeError("hostname unavailable")
    return hostname
