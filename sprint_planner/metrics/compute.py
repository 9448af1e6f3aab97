from typing import Iterable
from sprint_planner.schemas import Issue, SprintMetrics, AdvancedSprintMetrics, AssigneeMetrics

DONE_CATEGORY = "done"

def _is_done(issue: Issue) -> bool:
    return issue.fields.status.status_category.key == DONE_CATEGORY

def compute_sprint_metrics(issues: Iterable[Issue]) -> SprintMetrics:
    total = 0
    completed = 0
    for issue in issues:
        total += 1
        if _is_done(issue):
            completed += 1

    completion_rate = 100 * completed / total if total else 0.0
    return SprintMetrics(
        total_issues=total,
        completed_issues=completed,
        completion_rate=completion_rate,
    )


def compute_advanced_metrics(issues: Iterable[Issue]) -> AdvancedSprintMetrics:
    story_points = 0.0
    by_assignee: dict[str, AssigneeMetrics] = {}
    by_priority: dict[str, int] = {}

    for issue in issues:
        fields = issue.fields
        story_points += fields.story_points or 0

        assignee = fields.assignee.display_name if fields.assignee else "Unassigned"
        m = by_assignee.setdefault(assignee, AssigneeMetrics())
        m.total += 1
        if _is_done(issue):
            m.completed += 1

        priority = fields.priority.name if fields.priority else "None"
        by_priority[priority] = by_priority.get(priority, 0) + 1

    return AdvancedSprintMetrics(
        story_points=story_points,
        assignee_metrics=by_assignee,
        priority_distribution=by_priority,
    )
