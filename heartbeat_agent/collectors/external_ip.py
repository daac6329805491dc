"""
heartbeat_agent.collectors.external_ip

Best-effort public IP lookup

Contract:
- endpoints tried in order, each bounded by a short fixed timeout
- first non-empty response body wins
- never raises; all failures yield the "Unable to determine" sentinel
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

import requests

from heartbeat_agent.model import UNKNOWN

IP_LOOKUP_ENDPOINTS: tuple[str, ...] = (
    "https://api.ipify.org/",
    "https://ifconfig.me/ip",
)
IP_LOOKUP_TIMEOUT_S = 5


def collect_external_ip(
    *,
    endpoints: Sequence[str] = IP_LOOKUP_ENDPOINTS,
    session: Optional[requests.Session] = None,
    on_failure: Optional[Callable[[str, Exception], None]] = None,
) -> str:
    """
    Return the public IP address as reported by the first responsive endpoint
    """
    # Module-level requests.get when no session is injected; nothing to close
    http = session or requests

    for url in endpoints:
        try:
            response = http.get(url, timeout=IP_LOOKUP_TIMEOUT_S)
            response.raise_for_status()
            ip = response.text.strip()
        except requests.RequestException as e:
            # Callback lets the caller log without coupling modules
            if on_failure is not None:
                on_failure(url, e)
            continue

        if ip:
            return ip

    return UNKNOWN
