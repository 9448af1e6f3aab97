from fastapi import APIRouter, Depends, Query
from sprint_planner.api.deps import jira_service_dep
from sprint_planner.metrics.compute import compute_sprint_metrics, compute_advanced_metrics
from sprint_planner.services.jira_service import JiraService
from sprint_planner.schemas import (
    AdvancedSprintMetrics,
    Board,
    BulkUpdateRequest,
    BulkUpdateResult,
    HealthCheckResponse,
    Issue,
    Sprint,
    SprintHistory,
    SprintIssues,
    SprintMetrics,
    UpdateIssueRequest,
    UpdateIssueResult,
)

router = APIRouter(prefix="/api/jira", tags=["jira"])

@router.get("/health", response_model=HealthCheckResponse)
def check_health(svc: JiraService = Depends(jira_service_dep)):
    return svc.check_health()

@router.get("/sprints/{boardId}", response_model=list[Sprint])
def get_active_sprints(boardId: int, svc: JiraService = Depends(jira_service_dep)):
    return svc.get_active_sprints(boardId)

@router.get("/sprint/{sprintId}/issues", response_model=SprintIssues)
def get_sprint_issues(sprintId: int, svc: JiraService = Depends(jira_service_dep)):
    return svc.get_sprint_issues(sprintId)

@router.get("/issue/{issueKey}", response_model=Issue)
def get_issue_details(issueKey: str, svc: JiraService = Depends(jira_service_dep)):
    return svc.get_issue_details(issueKey)

@router.get("/boards", response_model=list[Board])
def get_boards(projectKeyOrId: str = Query(min_length=1), svc: JiraService = Depends(jira_service_dep)):
    return svc.get_boards(projectKeyOrId)

@router.post("/issue/{issueKey}", response_model=UpdateIssueResult)
def update_issue(issueKey: str, body: UpdateIssueRequest, svc: JiraService = Depends(jira_service_dep)):
    return svc.update_issue(issueKey, body.fields)

@router.get("/sprint/{sprintId}/metrics", response_model=SprintMetrics)
def get_sprint_metrics(sprintId: int, svc: JiraService = Depends(jira_service_dep)):
    return compute_sprint_metrics(svc.get_sprint_issues(sprintId).issues)

@router.get("/sprint/{sprintId}/advanced-metrics", response_model=AdvancedSprintMetrics)
def get_advanced_sprint_metrics(sprintId: int, svc: JiraService = Depends(jira_service_dep)):
    return compute_advanced_metrics(svc.get_sprint_issues(sprintId).issues)

@router.get("/sprint/{sprintId}/history", response_model=SprintHistory)
def get_sprint_history(sprintId: int, svc: JiraService = Depends(jira_service_dep)):
    return svc.get_sprint_history(sprintId)

@router.post("/sprint/{sprintId}/bulk-update", response_model=BulkUpdateResult)
def bulk_update_issues(sprintId: int, body: BulkUpdateRequest, svc: JiraService = Depends(jira_service_dep)):
    return svc.bulk_update_issues(sprintId, body)
