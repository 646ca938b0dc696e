"""
Filter and sort pipelines
Pure functions over idea/task lists: text search, tag (OR) filter,
quadrant/status/priority membership and a stable sort. Inputs are never
mutated; applying the same state twice yields the same result.
"""

import random
import unicodedata
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ideatrium.core.logger import get_logger
from ideatrium.core.models import (
    PRIORITY_RANK,
    Idea,
    IdeaStatus,
    Task,
    TaskPriority,
    TaskStatus,
)
from ideatrium.core.quadrant import Quadrant

logger = get_logger(__name__)

IDEA_SORT_KEYS = ("date", "title", "impact", "effort")
TASK_SORT_KEYS = ("due_date", "priority", "created", "title")
SORT_ORDERS = ("asc", "desc")
ROULETTE_MODES = ("all", "high-impact", "low-effort", "quick-wins")


@dataclass(frozen=True)
class IdeaFilterState:
    """View state of the idea list"""

    search_query: str = ""
    selected_tags: FrozenSet[str] = field(default_factory=frozenset)
    selected_quadrants: FrozenSet[Quadrant] = field(default_factory=frozenset)
    sort_by: str = "date"
    sort_order: str = "desc"

    def __post_init__(self):
        if self.sort_by not in IDEA_SORT_KEYS:
            raise ValueError(f"Unknown idea sort key: {self.sort_by}")
        if self.sort_order not in SORT_ORDERS:
            raise ValueError(f"Unknown sort order: {self.sort_order}")
        object.__setattr__(self, "selected_tags", frozenset(self.selected_tags))
        object.__setattr__(
            self,
            "selected_quadrants",
            frozenset(Quadrant(q) for q in self.selected_quadrants),
        )


@dataclass(frozen=True)
class TaskFilterState:
    """View state of the task list"""

    search_query: str = ""
    selected_tags: FrozenSet[str] = field(default_factory=frozenset)
    statuses: FrozenSet[TaskStatus] = field(default_factory=frozenset)
    priorities: FrozenSet[TaskPriority] = field(default_factory=frozenset)
    sort_by: str = "due_date"
    sort_order: str = "asc"

    def __post_init__(self):
        if self.sort_by not in TASK_SORT_KEYS:
            raise ValueError(f"Unknown task sort key: {self.sort_by}")
        if self.sort_order not in SORT_ORDERS:
            raise ValueError(f"Unknown sort order: {self.sort_order}")
        object.__setattr__(self, "selected_tags", frozenset(self.selected_tags))
        object.__setattr__(self, "statuses", frozenset(TaskStatus(s) for s in self.statuses))
        object.__setattr__(
            self, "priorities", frozenset(TaskPriority(p) for p in self.priorities)
        )


# Named presets: (quadrants, sort_by, sort_order)
FILTER_PRESETS: Dict[str, Tuple[FrozenSet[Quadrant], str, str]] = {
    "high-impact": (frozenset({Quadrant.Q1, Quadrant.Q2}), "impact", "desc"),
    "quick-wins": (frozenset({Quadrant.Q2}), "effort", "asc"),
    "recent": (frozenset(), "date", "desc"),
    "needs-planning": (frozenset({Quadrant.Q1}), "impact", "desc"),
}


def apply_preset(state: IdeaFilterState, preset: str) -> IdeaFilterState:
    """Apply a named preset; search text and tags are kept, unknown names are ignored"""
    if preset not in FILTER_PRESETS:
        logger.warning(f"Unknown filter preset: {preset}")
        return state
    quadrants, sort_by, sort_order = FILTER_PRESETS[preset]
    return replace(
        state, selected_quadrants=quadrants, sort_by=sort_by, sort_order=sort_order
    )


def clear_filters() -> IdeaFilterState:
    return IdeaFilterState()


def clear_task_filters() -> TaskFilterState:
    return TaskFilterState()


def collation_key(text: str) -> Tuple[str, str]:
    """Locale-style ordering: accents and case only break ties"""
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), text.casefold()


def _timestamp(value: datetime) -> float:
    return value.timestamp()


def _matches_query(query: str, title: str, description: Optional[str]) -> bool:
    return query in title.lower() or (description is not None and query in description.lower())


def _normalized_query(search_query: str) -> str:
    return (search_query or "").strip().lower()


def _sorted(items: Iterable, key: Callable, descending: bool) -> list:
    # sorted() is stable in both directions, so ties keep input order
    return sorted(items, key=key, reverse=descending)


# ==================== Ideas ====================

_IDEA_SORT: Dict[str, Callable[[Idea], object]] = {
    "date": lambda idea: _timestamp(idea.created_at),
    "title": lambda idea: collation_key(idea.title),
    "impact": lambda idea: idea.impact,
    "effort": lambda idea: idea.effort,
}


def filter_and_sort_ideas(ideas: Sequence[Idea], state: IdeaFilterState) -> List[Idea]:
    """Search, tag filter, quadrant filter, then stable sort"""
    filtered = list(ideas)

    query = _normalized_query(state.search_query)
    if query:
        filtered = [
            idea for idea in filtered if _matches_query(query, idea.title, idea.description)
        ]

    if state.selected_tags:
        filtered = [
            idea for idea in filtered if state.selected_tags.intersection(idea.tags)
        ]

    if state.selected_quadrants:
        filtered = [idea for idea in filtered if idea.quadrant in state.selected_quadrants]

    return _sorted(filtered, _IDEA_SORT[state.sort_by], state.sort_order == "desc")


def split_by_status(ideas: Sequence[Idea]) -> Tuple[List[Idea], List[Idea]]:
    """(active, archived), each keeping input order"""
    active = [idea for idea in ideas if idea.status == IdeaStatus.ACTIVE]
    archived = [idea for idea in ideas if idea.status == IdeaStatus.ARCHIVED]
    return active, archived


# ==================== Tasks ====================


def _due_date_key(task: Task) -> Tuple[int, float]:
    # Undated tasks sort after dated ones in ascending order
    if task.due_date is None:
        return 1, 0.0
    return 0, _timestamp(task.due_date)


_TASK_SORT: Dict[str, Callable[[Task], object]] = {
    "due_date": _due_date_key,
    "priority": lambda task: PRIORITY_RANK[task.priority],
    "created": lambda task: _timestamp(task.created_at),
    "title": lambda task: collation_key(task.title),
}


def filter_and_sort_tasks(tasks: Sequence[Task], state: TaskFilterState) -> List[Task]:
    """Search, tag filter, status/priority filter, then stable sort"""
    filtered = list(tasks)

    query = _normalized_query(state.search_query)
    if query:
        filtered = [
            task for task in filtered if _matches_query(query, task.title, task.description)
        ]

    if state.selected_tags:
        filtered = [
            task for task in filtered if state.selected_tags.intersection(task.tags)
        ]

    if state.statuses:
        filtered = [task for task in filtered if task.status in state.statuses]

    if state.priorities:
        filtered = [task for task in filtered if task.priority in state.priorities]

    return _sorted(filtered, _TASK_SORT[state.sort_by], state.sort_order == "desc")


# ==================== Roulette ====================


def roulette_pool(ideas: Sequence[Idea], mode: str = "all") -> List[Idea]:
    if mode == "high-impact":
        return [idea for idea in ideas if idea.impact >= 4]
    if mode == "low-effort":
        return [idea for idea in ideas if idea.effort <= 2]
    if mode == "quick-wins":
        return [idea for idea in ideas if idea.quadrant == Quadrant.Q2]
    if mode != "all":
        raise ValueError(f"Unknown roulette mode: {mode}")
    return list(ideas)


def pick_random_idea(
    ideas: Sequence[Idea],
    mode: str = "all",
    rng: Optional[random.Random] = None,
    history: Sequence[str] = (),
) -> Optional[Idea]:
    """Pick a random idea from the pool, avoiding recently picked ids when possible"""
    pool = roulette_pool(ideas, mode)
    if not pool:
        return None
    rng = rng or random.Random()
    recent = set(history)
    fresh = [idea for idea in pool if idea.id not in recent]
    return rng.choice(fresh or pool)

