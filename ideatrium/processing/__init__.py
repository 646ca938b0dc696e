"""
Idea/task list processing: filter pipelines, statistics and bulk operations
"""

from .bulk import BulkCoordinator, BulkResult
from .filters import (
    FILTER_PRESETS,
    IdeaFilterState,
    TaskFilterState,
    apply_preset,
    clear_filters,
    clear_task_filters,
    filter_and_sort_ideas,
    filter_and_sort_tasks,
    pick_random_idea,
    roulette_pool,
    split_by_status,
)
from .stats import idea_stats, task_stats

__all__ = [
    "BulkCoordinator",
    "BulkResult",
    "FILTER_PRESETS",
    "IdeaFilterState",
    "TaskFilterState",
    "apply_preset",
    "clear_filters",
    "clear_task_filters",
    "filter_and_sort_ideas",
    "filter_and_sort_tasks",
    "pick_random_idea",
    "roulette_pool",
    "split_by_status",
    "idea_stats",
    "task_stats",
]
