import datetime as dt
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from sprint_planner.connectors.jira_client import JiraTracker
from sprint_planner.logging import get_logger
from sprint_planner.settings import settings
from sprint_planner.util import utc_now_iso
from sprint_planner.schemas import (
    Board,
    BulkUpdateFailure,
    BulkUpdateRequest,
    BulkUpdateResult,
    HealthCheckError,
    HealthCheckResponse,
    HealthCheckSuccess,
    HistoryChange,
    Issue,
    Sprint,
    SprintHistory,
    SprintIssues,
    UpdateIssueFields,
    UpdateIssueResult,
)

log = get_logger("jira_service")

HISTORY_FIELDS = {"status", "Sprint"}


def _parse_jira_datetime(raw_value: object) -> dt.datetime | None:
    if not raw_value:
        return None
    text = str(raw_value).replace("Z", "+00:00")
    try:
        parsed = dt.datetime.fromisoformat(text)
    except ValueError:
        # JIRA sends offsets without a colon, e.g. 2024-03-01T10:00:00.000+0000
        try:
            parsed = dt.datetime.strptime(text, "%Y-%m-%dT%H:%M:%S.%f%z")
        except ValueError as exc:
            log.warning("Failed to parse JIRA datetime %r: %s", raw_value, exc)
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def _sprint_values(fields: dict[str, Any], sprint_field: str) -> list[dict[str, Any]]:
    value = fields.get(sprint_field)
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        # Server instances may still return serialized greenhopper strings; skip those
        return [v for v in value if isinstance(v, dict)]
    return []


def _current_sprint(fields: dict[str, Any], sprint_field: str) -> dict[str, Any] | None:
    sprints = _sprint_values(fields, sprint_field)
    if not sprints:
        return None
    for s in sprints:
        if s.get("state") == "active":
            return s
    return sprints[-1]


class JiraService:
    """Reads and writes sprint data through a tracker client and reshapes it into DTOs."""

    def __init__(self, client: JiraTracker, *, story_points_field: str | None = None,
                 sprint_field: str | None = None):
        self.client = client
        self.story_points_field = story_points_field or settings.jira_story_points_field
        self.sprint_field = sprint_field or settings.jira_sprint_field

    def _to_issue(self, raw: dict[str, Any]) -> Issue:
        fields = raw.get("fields") or {}
        status = fields.get("status") or {}
        category = status.get("statusCategory") or {}
        project = fields.get("project") or {}
        return Issue.model_validate({
            "id": str(raw.get("id")),
            "key": raw.get("key"),
            "fields": {
                "summary": fields.get("summary") or "",
                "description": fields.get("description"),
                "status": {
                    "name": status.get("name"),
                    "statusCategory": {"key": category.get("key"), "name": category.get("name")},
                },
                "priority": fields.get("priority"),
                "assignee": fields.get("assignee"),
                "sprint": _current_sprint(fields, self.sprint_field),
                "project": {
                    "id": str(project.get("id")),
                    "key": project.get("key"),
                    "name": project.get("name"),
                },
                "storyPoints": fields.get(self.story_points_field),
            },
        })

    def check_health(self) -> HealthCheckResponse:
        log.debug("Checking JIRA connection health")
        try:
            info = self.client.server_info()
            status = HealthCheckSuccess(
                version=str(info.get("version", "")),
                base_url=str(info.get("baseUrl", "")),
                build_number=str(info.get("buildNumber", "")),
                build_date=str(info.get("buildDate", "")),
                server_time=str(info.get("serverTime", "")),
            )
        except Exception as exc:
            log.error("JIRA health check failed: %s", exc)
            return HealthCheckError(error=str(exc) or type(exc).__name__, timestamp=utc_now_iso())
        log.info("JIRA health check successful: version %s build %s", status.version, status.build_number)
        return status

    def get_sprint_issues(self, sprint_id: int) -> SprintIssues:
        log.debug("Fetching issues for sprint %s", sprint_id)
        try:
            response = self.client.search(f"sprint = {sprint_id} ORDER BY created DESC")
            issues = [self._to_issue(raw) for raw in response.get("issues", [])]
        except Exception as exc:
            log.error("Error fetching sprint issues for sprint %s: %s", sprint_id, exc)
            raise
        log.debug("Found %d issues for sprint %s", len(issues), sprint_id)
        return SprintIssues(issues=issues)

    def get_issue_details(self, issue_key: str) -> Issue:
        log.debug("Fetching details for issue %s", issue_key)
        try:
            return self._to_issue(self.client.find_issue(issue_key))
        except Exception as exc:
            log.error("Error fetching issue details for %s: %s", issue_key, exc)
            raise

    def get_active_sprints(self, board_id: int) -> list[Sprint]:
        log.debug("Fetching active sprints for board %s", board_id)
        jql = f"project in (select project from board where id = {board_id}) AND sprint in openSprints()"
        try:
            result = self.client.search(jql)
        except Exception as exc:
            log.error("Error fetching active sprints for board %s: %s", board_id, exc)
            raise

        sprints: dict[int, Sprint] = {}
        for raw in result.get("issues", []):
            fields = raw.get("fields") or {}
            # A list field carries the issue's whole sprint history, closed sprints included
            history = isinstance(fields.get(self.sprint_field), list)
            for s in _sprint_values(fields, self.sprint_field):
                if (history and s.get("state") == "closed") or s.get("id") in sprints:
                    continue
                sprint = Sprint.model_validate(s)
                sprints[sprint.id] = sprint

        log.debug("Found %d active sprints for board %s", len(sprints), board_id)
        return list(sprints.values())

    def get_boards(self, project_key_or_id: str) -> list[Board]:
        # JIRA's agile board API is not used; the board is derived from the
        # project of the first matching issue.
        log.debug("Fetching board for project %s", project_key_or_id)
        try:
            result = self.client.search(f"project = {project_key_or_id}", max_results=1, fields=["project"])
        except Exception as exc:
            log.error("Error fetching board for project %s: %s", project_key_or_id, exc)
            raise

        issues = result.get("issues", [])
        if not issues:
            log.warning("No boards found for project %s", project_key_or_id)
            return []

        project = issues[0]["fields"]["project"]
        boards = [Board(
            id=int(project["id"]),
            name=f"{project['name']} Board",
            project_key=project["key"],
            type="scrum",
        )]
        log.debug("Found %d boards for project %s", len(boards), project_key_or_id)
        return boards

    def update_issue(self, issue_key: str, fields: UpdateIssueFields) -> UpdateIssueResult:
        patch = fields.to_patch()
        log.debug("Updating issue %s with %s", issue_key, patch)
        try:
            self.client.update_issue(issue_key, patch)
        except Exception as exc:
            log.error("Error updating issue %s: %s", issue_key, exc)
            raise
        log.info("Successfully updated issue %s", issue_key)
        return UpdateIssueResult(issue_key=issue_key)

    def get_sprint_history(self, sprint_id: int) -> SprintHistory:
        log.debug("Fetching history for sprint %s", sprint_id)
        try:
            result = self.client.search(f"sprint = {sprint_id}", expand="changelog")
        except Exception as exc:
            log.error("Error fetching sprint history for sprint %s: %s", sprint_id, exc)
            raise

        changes: list[HistoryChange] = []
        for raw in result.get("issues", []):
            histories = (raw.get("changelog") or {}).get("histories") or []
            for history in histories:
                items = history.get("items") or []
                if not any(item.get("field") in HISTORY_FIELDS for item in items):
                    continue
                author = (history.get("author") or {}).get("displayName", "")
                for item in items:
                    changes.append(HistoryChange(
                        field=item.get("field", ""),
                        from_=item.get("fromString") or "",
                        to=item.get("toString") or "",
                        author=author,
                        created=history.get("created", ""),
                    ))

        oldest = dt.datetime.min.replace(tzinfo=dt.timezone.utc)
        changes.sort(key=lambda c: _parse_jira_datetime(c.created) or oldest, reverse=True)
        log.debug("Found %d changes for sprint %s", len(changes), sprint_id)
        return SprintHistory(changes=changes)

    def bulk_update_issues(self, sprint_id: int, request: BulkUpdateRequest) -> BulkUpdateResult:
        """Apply every update concurrently and partition the outcomes.

        One update failing never stops the others. Outcomes are recorded in
        input order, so ``succeeded`` and ``failed`` keep the caller's ordering.
        """
        updates = request.updates
        log.debug("Starting bulk update for sprint %s: %d updates", sprint_id, len(updates))
        summary = BulkUpdateResult()
        if not updates:
            return summary

        with ThreadPoolExecutor(max_workers=len(updates), thread_name_prefix=f"bulk-{sprint_id}") as pool:
            futures = [pool.submit(self.update_issue, u.issue_key, u.fields) for u in updates]

        for update, future in zip(updates, futures):
            exc = future.exception()
            if exc is None:
                summary.succeeded.append(update.issue_key)
            else:
                summary.failed.append(BulkUpdateFailure(
                    issue_key=update.issue_key,
                    error=str(exc) or type(exc).__name__,
                ))

        log.info("Completed bulk update for sprint %s: %d succeeded, %d failed",
                 sprint_id, len(summary.succeeded), len(summary.failed))
        return summary
