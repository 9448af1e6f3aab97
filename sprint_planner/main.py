from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from sprint_planner.api import jira as jira_api
from sprint_planner.api.deps import jira_service_dep
from sprint_planner.api.errors import register_error_handlers
from sprint_planner.connectors.jira_client import JiraClient, JiraConnection, TrackerError
from sprint_planner.logging import get_logger
from sprint_planner.metrics.compute import compute_sprint_metrics
from sprint_planner.services.jira_service import JiraService
from sprint_planner.settings import settings

log = get_logger("main")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def create_app(service: Optional[JiraService] = None) -> FastAPI:
    """Build the API. Pass ``service`` to run against a tracker other than the configured one."""
    app = FastAPI(title="Sprint Planner")
    app.state.jira_service = service or JiraService(JiraClient(JiraConnection.from_settings()))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(jira_api.router)

    @app.get("/health")
    def health():
        return {"status": "ok", "project": "Sprint Planner"}

    @app.get("/", response_class=HTMLResponse)
    def dashboard(request: Request, projectKeyOrId: Optional[str] = None, boardId: Optional[int] = None,
                  sprintId: Optional[int] = None, svc: JiraService = Depends(jira_service_dep)):
        health = svc.check_health()
        boards, sprints, issues, metrics, error = [], [], [], None, None
        try:
            if projectKeyOrId:
                boards = svc.get_boards(projectKeyOrId)
            if boardId is not None:
                sprints = svc.get_active_sprints(boardId)
            if sprintId is not None:
                issues = svc.get_sprint_issues(sprintId).issues
                metrics = compute_sprint_metrics(issues)
        except TrackerError as exc:
            log.warning("Dashboard could not load JIRA data: %s", exc)
            error = str(exc)

        return templates.TemplateResponse(request, "dashboard.html", {
            "health": health,
            "project": projectKeyOrId,
            "boards": boards,
            "board_id": boardId,
            "sprint_id": sprintId,
            "sprints": sprints,
            "issues": issues,
            "metrics": metrics,
            "error": error,
        })

    log.info("Sprint Planner ready (JIRA host: %s)", settings.jira_host or "<unset>")
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.app_port)
