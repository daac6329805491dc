"""
Contract tests for the status publisher upsert + retry behavior
"""

import base64
import json

import requests

from heartbeat_agent.model import ErrorLogStatus, StatusRecord
from heartbeat_agent.publish import CREATE_MESSAGE, UPDATE_MESSAGE, publish_status
from heartbeat_agent.store import ContentsStore


class FakeResponse:
    def __init__(self, status_code: int, payload=None) -> None:
        self.status_code = status_code
        self._payload = payload or {}

    def json(self):
        return self._payload


class FakeSession:
    """
    Scripted GET/PUT responses; an Exception instance is raised instead of returned
    """

    def __init__(self, gets, puts) -> None:
        self.gets = list(gets)
        self.puts = list(puts)
        self.put_bodies: list[dict] = []
        self.put_headers: list[dict] = []

    def _next(self, queue):
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def get(self, url, **kwargs):
        return self._next(self.gets)

    def put(self, url, **kwargs):
        self.put_bodies.append(kwargs["json"])
        self.put_headers.append(kwargs["headers"])
        return self._next(self.puts)


def _record() -> StatusRecord:
    return StatusRecord(
        hostname="raspberrypi",
        external_ip="203.0.113.7",
        timestamp="2024-06-01 12:00:00",
        uptime="12:00:00 up 3 days",
        memory_usage="41.20%",
        disk_usage="63.05%",
        cpu_temp="48.3°C",
        error_log=ErrorLogStatus(has_error=False, message="No error logs found"),
    )


def _store(session: FakeSession) -> ContentsStore:
    return ContentsStore("owner/repo", "secret-token", session=session)


def test_first_run_404_creates_without_sha() -> None:
    session = FakeSession(gets=[FakeResponse(404)], puts=[FakeResponse(201)])
    sleeps: list[float] = []

    ok = publish_status(_record(), _store(session), "heartbeat.json", sleep=sleeps.append)

    assert ok is True
    assert sleeps == []
    body = session.put_bodies[0]
    assert "sha" not in body
    assert body["message"] == CREATE_MESSAGE
    assert body["encoding"] == "base64"

    published = json.loads(base64.b64decode(body["content"]).decode("utf-8"))
    assert published["hostname"] == "raspberrypi"
    assert published["cpu_temp"] == "48.3°C"
    assert session.put_headers[0]["Authorization"] == "Bearer secret-token"


def test_existing_document_updates_with_sha() -> None:
    session = FakeSession(gets=[FakeResponse(200, {"sha": "abc123"})], puts=[FakeResponse(200)])

    ok = publish_status(_record(), _store(session), "heartbeat.json", sleep=lambda s: None)

    assert ok is True
    assert session.put_bodies[0]["sha"] == "abc123"
    assert session.put_bodies[0]["message"] == UPDATE_MESSAGE


def test_fetch_network_error_is_treated_as_missing_document() -> None:
    session = FakeSession(gets=[requests.ConnectionError("reset")], puts=[FakeResponse(201)])

    ok = publish_status(_record(), _store(session), "heartbeat.json", sleep=lambda s: None)

    assert ok is True
    assert "sha" not in session.put_bodies[0]


def test_retries_with_linear_backoff_then_succeeds() -> None:
    session = FakeSession(
        gets=[FakeResponse(404)] * 3,
        puts=[FakeResponse(500), requests.Timeout("slow"), FakeResponse(201)],
    )
    sleeps: list[float] = []

    ok = publish_status(_record(), _store(session), "heartbeat.json", sleep=sleeps.append)

    assert ok is True
    assert sleeps == [2, 4]
    assert len(session.put_bodies) == 3


def test_exhausted_retries_return_false_without_raising(capsys) -> None:
    session = FakeSession(
        gets=[FakeResponse(404)] * 3,
        puts=[FakeResponse(401)] * 3,
    )
    sleeps: list[float] = []

    ok = publish_status(_record(), _store(session), "heartbeat.json", sleep=sleeps.append)

    assert ok is False
    assert sleeps == [2, 4]

    events = [json.loads(line) for line in capsys.readouterr().out.strip().splitlines()]
    assert [e["event_type"] for e in events] == [
        "publish_attempt_failed",
        "publish_attempt_failed",
        "publish_attempt_failed",
        "publish_failed",
    ]
