"""
heartbeat_agent.collectors.temperature

CPU temperature from the first thermal zone (Raspberry Pi SoC sensor)
"""

from __future__ import annotations

from pathlib import Path

THERMAL_ZONE_TEMP = Path("/sys/class/thermal/thermal_zone0/temp")


def collect_cpu_temperature(path: Path = THERMAL_ZONE_TEMP) -> float:
    """
    Temperature in degrees Celsius (sysfs reports millidegrees)
    """
    raw = path.read_text(encoding="utf-8").strip()
    return int(raw) / 1000.0
