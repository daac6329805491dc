"""heartbeat_monitor: recency checks and alerts for published heartbeats."""
