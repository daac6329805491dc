"""
heartbeat_agent.store

Client for the remote document store (GitHub contents API)

Contract:
- GET  /repos/{repo}/contents/{path} -> 200 {sha, content(base64), ...} or 404
- PUT  /repos/{repo}/contents/{path} with {message, content, encoding, sha?}
  creates (no sha) or updates (sha of the current version)
- auth is a static bearer token
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Optional

import requests

GITHUB_API_URL = "https://api.github.com"
USER_AGENT = "pi-heartbeat"
DEFAULT_TIMEOUT_S = 10.0


@dataclass(frozen=True)
class StoredDocument:
    """
    Current version of a document
    - sha: version token required to update it
    - text: decoded content
    """

    sha: str
    text: str


class ContentsStore:
    """
    Thin wrapper over the contents endpoints of one repository
    """

    def __init__(
        self,
        repo: str,
        token: str,
        *,
        base_url: str = GITHUB_API_URL,
        timeout: float = DEFAULT_TIMEOUT_S,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.repo = repo
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "User-Agent": USER_AGENT,
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github.v3+json",
        }

    def _url(self, *parts: str) -> str:
        return "/".join([self.base_url, "repos", self.repo, *parts])

    def contents_url(self, path: str) -> str:
        return self._url("contents", path.lstrip("/"))

    def get_sha(self, path: str) -> Optional[str]:
        """
        Version token of the document, or None when it does not exist yet

        Any failure to fetch (404 on first run, network error) reads as
        "no existing document".
        """
        try:
            response = self.session.get(self.contents_url(path), headers=self.headers, timeout=self.timeout)
        except requests.RequestException:
            return None

        if response.status_code != 200:
            return None

        try:
            sha = response.json().get("sha")
        except (ValueError, AttributeError):
            return None
        return sha or None

    def get_document(self, path: str) -> Optional[StoredDocument]:
        """
        Fetch and decode a document; None when missing

        Raises requests.RequestException on network errors and ValueError when
        the path does not name a file (a directory listing comes back as a list)
        """
        response = self.session.get(self.contents_url(path), headers=self.headers, timeout=self.timeout)
        if response.status_code == 404:
            return None
        response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"{path} is not a file in {self.repo}")
        raw = base64.b64decode(payload.get("content", ""))
        return StoredDocument(sha=payload.get("sha", ""), text=raw.decode("utf-8"))

    def put(self, path: str, content: str, *, message: str, sha: Optional[str] = None) -> int:
        """
        Create or update a document; returns the HTTP status code

        Raises requests.RequestException on network errors
        """
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "encoding": "base64",
        }
        if sha:
            body["sha"] = sha

        response = self.session.put(
            self.contents_url(path),
            headers=self.headers,
            json=body,
            timeout=self.timeout,
        )
        return response.status_code

    def latest_issue_comment_time(self, issue_number: int) -> Optional[str]:
        """
        created_at of the newest comment on an issue, or None without comments

        Raises requests.RequestException on network errors
        """
        response = self.session.get(
            self._url("issues", str(issue_number), "comments"),
            headers=self.headers,
            params={"per_page": 100},
            timeout=self.timeout,
        )
        response.raise_for_status()

        stamps = [
            comment.get("created_at")
            for comment in response.json()
            if isinstance(comment, dict) and comment.get("created_at")
        ]
        # ISO 8601 with a fixed Z suffix sorts chronologically as text
        return max(stamps) if stamps else None
