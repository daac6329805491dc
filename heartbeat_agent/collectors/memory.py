"""
heartbeat_agent.collectors.memory

Memory collector
- Linux via /proc/meminfo
- usage = (MemTotal - MemAvailable) / MemTotal
- stdlib only
"""

from __future__ import annotations

from pathlib import Path


PROC_MEMINFO = Path("/proc/meminfo")


def _parse_meminfo(contents: str) -> dict[str, int]:
    """
    Parse /proc/meminfo into a dict of values in kB
    """
    values: dict[str, int] = {}
    for line in contents.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        key = parts[0].rstrip(":")
        try:
            values[key] = int(parts[1])
        except ValueError:
            continue
    return values


def collect_memory_percent(meminfo_path: Path = PROC_MEMINFO) -> float:
    """
    Percentage of memory in use

    Raises when /proc/meminfo is missing or incomplete
    """
    values = _parse_meminfo(meminfo_path.read_text(encoding="utf-8"))

    mem_total = values.get("MemTotal")
    mem_available = values.get("MemAvailable")

    if not mem_total or mem_available is None:
        raise RuntimeError("MemAvailable or MemTotal missing in /proc/meminfo")

    return (mem_total - mem_available) / mem_total * 100.0
