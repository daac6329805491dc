"""heartbeat_agent: node-side status reporting and heartbeat log maintenance."""

AGENT_VERSION = "0.2.0"
