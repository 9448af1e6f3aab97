from __future__ import annotations
import json
import threading
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

import requests
from jira import JIRA
from jira.exceptions import JIRAError

from sprint_planner.settings import settings
from sprint_planner.logging import get_logger

log = get_logger("jira_client")


class TrackerError(Exception):
    """A JIRA call failed. ``status_code`` is the HTTP status when the tracker answered."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class TrackerTransportError(TrackerError):
    """No response from the tracker (connection refused, timeout, TLS failure)."""


class JiraTracker(Protocol):
    def search(self, jql: str, max_results: int = 50, fields: Optional[Sequence[str]] = None,
               expand: Optional[str] = None) -> dict[str, Any]: ...
    def find_issue(self, issue_key: str) -> dict[str, Any]: ...
    def update_issue(self, issue_key: str, fields: dict[str, Any]) -> None: ...
    def server_info(self) -> dict[str, Any]: ...


@dataclass(frozen=True)
class JiraConnection:
    host: str
    username: str
    api_token: Optional[str]
    protocol: str = "https"
    api_version: str = "3"
    strict_ssl: bool = True
    timeout_seconds: int = 30

    @property
    def server_url(self) -> str:
        return f"{self.protocol}://{self.host}"

    @classmethod
    def from_settings(cls) -> "JiraConnection":
        return cls(
            host=settings.jira_host,
            username=settings.jira_username,
            api_token=settings.jira_api_token,
            protocol=settings.jira_protocol,
            api_version=settings.jira_api_version,
            strict_ssl=settings.jira_strict_ssl,
            timeout_seconds=settings.jira_timeout_seconds,
        )


def _error_message(exc: JIRAError) -> str:
    return exc.text or str(exc)


class JiraClient:
    """Thin wrapper over ``jira.JIRA`` returning raw JSON dicts.

    The underlying session is opened on first use, so building a client never
    touches the network.
    """

    def __init__(self, connection: JiraConnection):
        self.connection = connection
        self._jira: Optional[JIRA] = None
        self._lock = threading.Lock()

    @property
    def jira(self) -> JIRA:
        with self._lock:
            if self._jira is None:
                c = self.connection
                log.info("Connecting to JIRA at %s (api v%s)", c.server_url, c.api_version)
                self._jira = JIRA(
                    server=c.server_url,
                    basic_auth=(c.username, c.api_token or ""),
                    options={"rest_api_version": c.api_version, "verify": c.strict_ssl},
                    timeout=c.timeout_seconds,
                    max_retries=0,
                )
            return self._jira

    def _call(self, op: str, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except JIRAError as exc:
            raise TrackerError(_error_message(exc), status_code=exc.status_code) from exc
        except requests.exceptions.RequestException as exc:
            log.warning("JIRA %s failed without a response: %s", op, exc)
            raise TrackerTransportError(str(exc) or type(exc).__name__) from exc

    def search(self, jql: str, max_results: int = 50, fields: Optional[Sequence[str]] = None,
               expand: Optional[str] = None) -> dict[str, Any]:
        return self._call(
            "search",
            lambda: self.jira.search_issues(
                jql,
                maxResults=max_results,
                fields=list(fields) if fields else None,
                expand=expand,
                json_result=True,
            ),
        )

    def find_issue(self, issue_key: str) -> dict[str, Any]:
        return self._call("find_issue", lambda: self.jira.issue(issue_key).raw)

    def update_issue(self, issue_key: str, fields: dict[str, Any]) -> None:
        # Single PUT; Issue.update() would GET the issue before and after writing
        def _update():
            url = self.jira._get_url(f"issue/{issue_key}")
            self.jira._session.put(url, data=json.dumps({"fields": fields}))
        self._call("update_issue", _update)

    def server_info(self) -> dict[str, Any]:
        return self._call("server_info", lambda: self.jira.server_info())
