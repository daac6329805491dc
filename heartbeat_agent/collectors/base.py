"""
heartbeat_agent.collectors.base

Every metric read goes through run_collector so one broken sensor,
missing /proc file or hung subprocess degrades a single field instead
of the whole status record.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional


@dataclass(frozen=True)
class CollectorOutcome:
    """
    Result of one metric read
    - ok=False: error_type / error_message describe the failure, value is None
    - elapsed_ms: wall time spent in the collector
    """

    name: str
    ok: bool
    elapsed_ms: int
    value: Optional[Any] = None
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    def value_or(self, default: Any) -> Any:
        return self.value if self.ok else default


def run_collector(name: str, fn: Callable[..., Any], *args, **kwargs) -> CollectorOutcome:
    """
    Call a collector and turn any exception into a failed outcome
    """
    started = time.monotonic()
    try:
        value = fn(*args, **kwargs)
    except Exception as e:
        return CollectorOutcome(
            name=name,
            ok=False,
            elapsed_ms=int((time.monotonic() - started) * 1000),
            error_type=type(e).__name__,
            error_message=str(e),
        )
    return CollectorOutcome(
        name=name,
        ok=True,
        elapsed_ms=int((time.monotonic() - started) * 1000),
        value=value,
    )
