"""
Shared pytest fixtures for the sprint planner test suite.

The tracker is replaced by ``FakeJiraClient``, an in-memory implementation of
the ``JiraTracker`` protocol that records every call it receives.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from sprint_planner.connectors.jira_client import TrackerError
from sprint_planner.main import create_app
from sprint_planner.services.jira_service import JiraService


SERVER_INFO = {
    "baseUrl": "https://example.atlassian.net",
    "version": "1001.0.0-SNAPSHOT",
    "buildNumber": 100250,
    "buildDate": "2024-03-01T00:00:00.000+0000",
    "serverTime": "2024-03-02T12:00:00.000+0000",
    "deploymentType": "Cloud",
}


class FakeJiraClient:
    def __init__(self, issues: Optional[list[dict]] = None):
        self.issues: list[dict] = issues or []
        self.info: dict[str, Any] = dict(SERVER_INFO)
        self.fail_with: Optional[Exception] = None
        self.update_errors: dict[str, Exception] = {}
        self.update_hook: Optional[Callable[[str], None]] = None
        self.searches: list[dict[str, Any]] = []
        self.updates: list[tuple[str, dict]] = []
        self._lock = threading.Lock()

    def search(self, jql: str, max_results: int = 50, fields: Optional[Sequence[str]] = None,
               expand: Optional[str] = None) -> dict[str, Any]:
        self.searches.append({"jql": jql, "max_results": max_results, "fields": fields, "expand": expand})
        if self.fail_with:
            raise self.fail_with
        issues = self.issues[:max_results]
        return {"startAt": 0, "maxResults": max_results, "total": len(issues), "issues": issues}

    def find_issue(self, issue_key: str) -> dict[str, Any]:
        if self.fail_with:
            raise self.fail_with
        for raw in self.issues:
            if raw["key"] == issue_key:
                return raw
        raise TrackerError("Issue does not exist or you do not have permission to see it.", status_code=404)

    def update_issue(self, issue_key: str, fields: dict[str, Any]) -> None:
        if self.update_hook:
            self.update_hook(issue_key)
        with self._lock:
            self.updates.append((issue_key, fields))
        if issue_key in self.update_errors:
            raise self.update_errors[issue_key]

    def server_info(self) -> dict[str, Any]:
        if self.fail_with:
            raise self.fail_with
        return self.info


def raw_issue(
    key: str,
    *,
    summary: str = "Do the thing",
    status: str = "In Progress",
    category: str = "indeterminate",
    assignee: Optional[str] = None,
    priority: Optional[str] = None,
    points: Optional[float] = None,
    sprint: Any = None,
    changelog: Optional[list[dict]] = None,
) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "summary": summary,
        "description": None,
        "status": {
            "name": status,
            "statusCategory": {"key": category, "name": category.title()},
        },
        "priority": {"name": priority, "iconUrl": "https://example/p.svg"} if priority else None,
        "assignee": {"displayName": assignee, "emailAddress": f"{assignee.lower()}@example.com"} if assignee else None,
        "project": {"id": "10000", "key": "PLAN", "name": "Planner"},
        "customfield_10026": points,
    }
    if sprint is not None:
        fields["sprint"] = sprint
    issue: dict[str, Any] = {"id": str(abs(hash(key)) % 100000), "key": key, "fields": fields}
    if changelog is not None:
        issue["changelog"] = {"histories": changelog}
    return issue


@pytest.fixture
def make_issue():
    """Factory for raw JIRA issue JSON as returned by the search endpoint."""
    return raw_issue


@pytest.fixture
def fake_client() -> FakeJiraClient:
    return FakeJiraClient()


@pytest.fixture
def service(fake_client: FakeJiraClient) -> JiraService:
    return JiraService(fake_client, story_points_field="customfield_10026", sprint_field="sprint")


@pytest.fixture
def api(service: JiraService) -> TestClient:
    """HTTP client for an app wired to the fake tracker."""
    return TestClient(create_app(service))
