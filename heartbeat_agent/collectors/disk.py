"""
heartbeat_agent.collectors.disk

Disk collector
- Uses shutil.disk_usage for the root filesystem
- stdlib only
"""

from __future__ import annotations

import shutil


def collect_disk_percent(path: str = "/") -> float:
    """
    Percentage of the filesystem holding `path` in use
    """
    usage = shutil.disk_usage(path)
    if usage.total <= 0:
        raise RuntimeError(f"filesystem at {path} reports zero size")
    return usage.used / usage.total * 100.0
