"""
heartbeat_agent.publish

Status publisher: upsert the StatusRecord into the remote document store

Contract:
- one attempt = fetch current sha (absent on first run) then write
- success is any 2xx status
- up to `attempts` tries, sleeping attempt * 2 seconds between them
- never raises; the outcome is a boolean and every failure is logged
"""

from __future__ import annotations

import time
from typing import Callable

import requests

from heartbeat_agent import AGENT_VERSION
from heartbeat_agent.logging import emit_event
from heartbeat_agent.model import StatusRecord, record_to_json
from heartbeat_agent.store import ContentsStore

PUBLISH_ATTEMPTS = 3
BACKOFF_STEP_S = 2

CREATE_MESSAGE = "Create heartbeat status file"
UPDATE_MESSAGE = "Update heartbeat status"


class PublishError(Exception):
    """A single upsert attempt did not complete."""


def backoff_seconds(attempt: int) -> int:
    return attempt * BACKOFF_STEP_S


def upsert_document(store: ContentsStore, path: str, content: str) -> int:
    """
    Fetch-then-write a document; returns the write status

    Raises PublishError on network errors or a non-2xx status
    """
    sha = store.get_sha(path)

    try:
        status = store.put(
            path,
            content,
            message=UPDATE_MESSAGE if sha else CREATE_MESSAGE,
            sha=sha,
        )
    except requests.RequestException as e:
        raise PublishError(f"{type(e).__name__}: {e}") from e

    if not 200 <= status < 300:
        raise PublishError(f"document store returned HTTP {status}")
    return status


def publish_status(
    record: StatusRecord,
    store: ContentsStore,
    path: str,
    *,
    attempts: int = PUBLISH_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """
    Publish a status record with bounded retries

    Returns True once a write succeeds, False after the last failed attempt
    """
    content = record_to_json(record)

    for attempt in range(1, attempts + 1):
        try:
            status = upsert_document(store, path, content)
        except Exception as e:
            emit_event(
                "publish_attempt_failed",
                agent_version=AGENT_VERSION,
                attempt=attempt,
                attempts=attempts,
                path=path,
                error_type=type(e).__name__,
                message=str(e),
            )
            if attempt < attempts:
                sleep(backoff_seconds(attempt))
            continue

        emit_event(
            "status_published",
            agent_version=AGENT_VERSION,
            attempt=attempt,
            path=path,
            http_status=status,
            bytes=len(content),
        )
        return True

    emit_event(
        "publish_failed",
        agent_version=AGENT_VERSION,
        attempts=attempts,
        path=path,
        message="Failed to update remote status file. Check your token and network connection.",
    )
    return False
