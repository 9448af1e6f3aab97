from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Literal, List, Optional, Dict, Union

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class StatusCategory(CamelModel):
    key: str
    name: str

class Status(CamelModel):
    name: str
    status_category: StatusCategory

class Priority(CamelModel):
    name: str
    icon_url: Optional[str] = None

class Assignee(CamelModel):
    display_name: str
    email_address: Optional[str] = None
    avatar_urls: Optional[Dict[str, str]] = None

class SprintRef(CamelModel):
    id: int
    name: str
    state: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None

class ProjectRef(CamelModel):
    id: str
    key: str
    name: str

class IssueFields(CamelModel):
    summary: str
    description: Optional[Union[str, dict]] = None  # ADF document on API v3
    status: Status
    priority: Optional[Priority] = None
    assignee: Optional[Assignee] = None
    sprint: Optional[SprintRef] = None
    project: ProjectRef
    story_points: Optional[float] = None

class Issue(CamelModel):
    id: str
    key: str
    fields: IssueFields

class SprintIssues(CamelModel):
    issues: List[Issue]

class Sprint(CamelModel):
    id: int
    name: str
    state: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    complete_date: Optional[str] = None
    activated_date: Optional[str] = None
    goal: Optional[str] = None

class Board(CamelModel):
    id: int
    name: str
    project_key: str
    type: str

class HealthCheckSuccess(CamelModel):
    status: Literal["healthy"] = "healthy"
    version: str
    base_url: str
    build_number: str
    build_date: str
    server_time: str

class HealthCheckError(CamelModel):
    status: Literal["unhealthy"] = "unhealthy"
    error: str
    timestamp: str

HealthCheckResponse = Union[HealthCheckSuccess, HealthCheckError]

# Request bodies

class AssigneePatch(CamelModel):
    model_config = ConfigDict(extra="forbid")
    name: str

class UpdateIssueFields(CamelModel):
    model_config = ConfigDict(extra="forbid")

    summary: Optional[str] = None
    description: Optional[str] = None
    assignee: Optional[AssigneePatch] = None
    sprint: Optional[int] = None

    def to_patch(self) -> dict:
        """Only the fields the caller actually set, in JIRA's wire shape."""
        return self.model_dump(exclude_unset=True)

class UpdateIssueRequest(CamelModel):
    fields: UpdateIssueFields

class UpdateIssueResult(CamelModel):
    issue_key: str
    status: Literal["updated"] = "updated"

class BulkIssueUpdate(CamelModel):
    issue_key: str = Field(min_length=1)
    fields: UpdateIssueFields

class BulkUpdateRequest(CamelModel):
    updates: List[BulkIssueUpdate]

class BulkUpdateFailure(CamelModel):
    issue_key: str
    error: str

class BulkUpdateResult(CamelModel):
    succeeded: List[str] = Field(default_factory=list)
    failed: List[BulkUpdateFailure] = Field(default_factory=list)

# Metrics and history

class SprintMetrics(CamelModel):
    total_issues: int
    completed_issues: int
    completion_rate: float

class AssigneeMetrics(CamelModel):
    total: int = 0
    completed: int = 0

class AdvancedSprintMetrics(CamelModel):
    story_points: float
    assignee_metrics: Dict[str, AssigneeMetrics]
    priority_distribution: Dict[str, int]

class HistoryChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    field: str
    from_: str = Field(alias="from")
    to: str
    author: str
    created: str

class SprintHistory(CamelModel):
    changes: List[HistoryChange]
