"""
Idea and task statistics
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Sequence

from ideatrium.core.models import Idea, IdeaStatus, Task, TaskStatus
from ideatrium.core.quadrant import Quadrant

RECENT_DAYS = 7


def _average(total: float, count: int) -> float:
    return round(total / count, 2) if count else 0.0


def task_stats(tasks: Sequence[Task], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Status counts, overdue count and completion rate (whole percent)"""
    total = len(tasks)
    completed = sum(1 for task in tasks if task.status == TaskStatus.COMPLETED)
    return {
        "total": total,
        "completed": completed,
        "inProgress": sum(1 for task in tasks if task.status == TaskStatus.IN_PROGRESS),
        "notStarted": sum(1 for task in tasks if task.status == TaskStatus.NOT_STARTED),
        "overdue": sum(1 for task in tasks if task.is_overdue(now)),
        "completionRate": round(completed / total * 100) if total else 0,
    }


def idea_stats(
    ideas: Sequence[Idea],
    tasks: Sequence[Task] = (),
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Dashboard numbers over the whole idea list"""
    total = len(ideas)
    cutoff = (now or datetime.now()) - timedelta(days=RECENT_DAYS)
    all_tags = [tag for idea in ideas for tag in idea.tags]
    completed_tasks = sum(1 for task in tasks if task.status == TaskStatus.COMPLETED)

    return {
        "totalIdeas": total,
        "activeIdeas": sum(1 for idea in ideas if idea.status == IdeaStatus.ACTIVE),
        "archivedIdeas": sum(1 for idea in ideas if idea.status == IdeaStatus.ARCHIVED),
        "quadrantCounts": {
            quadrant.value: sum(1 for idea in ideas if idea.quadrant == quadrant)
            for quadrant in Quadrant
        },
        "avgImpact": _average(sum(idea.impact for idea in ideas), total),
        "avgEffort": _average(sum(idea.effort for idea in ideas), total),
        "recentIdeas": sum(
            1 for idea in ideas if idea.created_at.replace(tzinfo=None) > cutoff.replace(tzinfo=None)
        ),
        "totalTasks": len(tasks),
        "completedTasks": completed_tasks,
        "taskCompletionRate": round(completed_tasks / len(tasks) * 100, 1) if tasks else 0.0,
        "uniqueTags": len(set(all_tags)),
        "avgTagsPerIdea": _average(len(all_tags), total),
    }
