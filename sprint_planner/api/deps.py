# sprint_planner/api/deps.py
from fastapi import Request
from sprint_planner.services.jira_service import JiraService

def jira_service_dep(request: Request) -> JiraService:
    return request.app.state.jira_service
