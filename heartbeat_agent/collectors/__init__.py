"""heartbeat_agent.collectors package exports."""

from heartbeat_agent.collectors.disk import collect_disk_percent
from heartbeat_agent.collectors.error_log import scan_error_logs
from heartbeat_agent.collectors.external_ip import collect_external_ip
from heartbeat_agent.collectors.identity import collect_hostname
from heartbeat_agent.collectors.memory import collect_memory_percent
from heartbeat_agent.collectors.temperature import collect_cpu_temperature
from heartbeat_agent.collectors.uptime import collect_uptime

__all__ = [
    "collect_cpu_temperature",
    "collect_disk_percent",
    "collect_external_ip",
    "collect_hostname",
    "collect_memory_percent",
    "collect_uptime",
    "scan_error_logs",
]
