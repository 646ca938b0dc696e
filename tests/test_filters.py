"""
Filter/sort pipeline, roulette and statistics tests
"""

import random
from datetime import datetime, timedelta

import pytest

from ideatrium.core.models import Idea, IdeaStatus, Task, TaskPriority, TaskStatus
from ideatrium.core.quadrant import Quadrant, classify
from ideatrium.processing.filters import (
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
from ideatrium.processing.stats import idea_stats, task_stats

NOW = datetime(2024, 6, 1, 12, 0, 0)


def make_idea(idea_id, title, impact=3, effort=3, tags=(), description=None, age_days=0,
              status=IdeaStatus.ACTIVE):
    created = NOW - timedelta(days=age_days)
    return Idea(
        id=idea_id,
        title=title,
        description=description,
        tags=list(tags),
        impact=impact,
        effort=effort,
        quadrant=classify(impact, effort),
        status=status,
        created_at=created,
        updated_at=created,
    )


def make_task(task_id, title, status=TaskStatus.NOT_STARTED, priority=TaskPriority.MEDIUM,
              due_in_days=None, tags=(), age_days=0):
    created = NOW - timedelta(days=age_days)
    return Task(
        id=task_id,
        idea_id="idea",
        title=title,
        status=status,
        priority=priority,
        due_date=NOW + timedelta(days=due_in_days) if due_in_days is not None else None,
        tags=list(tags),
        created_at=created,
        updated_at=created,
    )


@pytest.fixture
def ideas():
    return [
        make_idea("a", "Alpha", impact=5, effort=1, tags=["A", "B"], age_days=1),
        make_idea("b", "beta", impact=2, effort=4, tags=["C"], description="Mentions alpha", age_days=2),
        make_idea("c", "Éclair", impact=5, effort=5, tags=[], age_days=3),
        make_idea("d", "delta", impact=1, effort=2, tags=["D"], age_days=4),
    ]


# ============ Ideas ============


def test_default_state_sorts_newest_first(ideas):
    assert [i.id for i in filter_and_sort_ideas(ideas, clear_filters())] == ["a", "b", "c", "d"]
    assert clear_task_filters() == TaskFilterState()


def test_search_matches_title_and_description_case_insensitively(ideas):
    result = filter_and_sort_ideas(ideas, IdeaFilterState(search_query="  ALPHA "))
    assert [i.id for i in result] == ["a", "b"]


def test_tag_filter_uses_or_semantics(ideas):
    matched = filter_and_sort_ideas(ideas, IdeaFilterState(selected_tags=frozenset({"B", "C"})))
    assert [i.id for i in matched] == ["a", "b"]

    unmatched = filter_and_sort_ideas(ideas, IdeaFilterState(selected_tags=frozenset({"X", "Y"})))
    assert unmatched == []


def test_quadrant_filter(ideas):
    state = IdeaFilterState(selected_quadrants=frozenset({Quadrant.Q2, Quadrant.Q4}))
    assert [i.id for i in filter_and_sort_ideas(ideas, state)] == ["a", "d"]


def test_title_sort_ignores_case_and_accents(ideas):
    state = IdeaFilterState(sort_by="title", sort_order="asc")
    assert [i.title for i in filter_and_sort_ideas(ideas, state)] == ["Alpha", "beta", "delta", "Éclair"]


def test_impact_sort_is_stable(ideas):
    asc = filter_and_sort_ideas(ideas, IdeaFilterState(sort_by="impact", sort_order="asc"))
    assert [i.id for i in asc] == ["d", "b", "a", "c"]

    desc = filter_and_sort_ideas(ideas, IdeaFilterState(sort_by="impact", sort_order="desc"))
    assert [i.id for i in desc] == ["a", "c", "b", "d"]


def test_pipeline_is_idempotent(ideas):
    state = IdeaFilterState(search_query="a", sort_by="effort", sort_order="desc")
    once = filter_and_sort_ideas(ideas, state)
    assert filter_and_sort_ideas(once, state) == once


def test_invalid_state_is_rejected():
    with pytest.raises(ValueError):
        IdeaFilterState(sort_by="popularity")
    with pytest.raises(ValueError):
        TaskFilterState(sort_order="sideways")


def test_presets_keep_search_and_tags():
    state = IdeaFilterState(search_query="x", selected_tags=frozenset({"A"}))
    quick = apply_preset(state, "quick-wins")

    assert quick.selected_quadrants == frozenset({Quadrant.Q2})
    assert (quick.sort_by, quick.sort_order) == ("effort", "asc")
    assert quick.search_query == "x"
    assert quick.selected_tags == frozenset({"A"})
    assert apply_preset(state, "no-such-preset") is state


def test_split_by_status(ideas):
    ideas[1].status = IdeaStatus.ARCHIVED
    active, archived = split_by_status(ideas)
    assert [i.id for i in active] == ["a", "c", "d"]
    assert [i.id for i in archived] == ["b"]


# ============ Tasks ============


def test_due_date_sort_puts_undated_last_ascending():
    tasks = [
        make_task("none", "No date"),
        make_task("late", "Late", due_in_days=5),
        make_task("soon", "Soon", due_in_days=1),
    ]
    asc = filter_and_sort_tasks(tasks, TaskFilterState())
    assert [t.id for t in asc] == ["soon", "late", "none"]

    desc = filter_and_sort_tasks(tasks, TaskFilterState(sort_order="desc"))
    assert [t.id for t in desc] == ["none", "late", "soon"]


def test_priority_sort_and_filters():
    tasks = [
        make_task("low", "Low", priority=TaskPriority.LOW, tags=["x"]),
        make_task("urgent", "Urgent", priority=TaskPriority.URGENT, status=TaskStatus.IN_PROGRESS),
        make_task("high", "High", priority=TaskPriority.HIGH, tags=["x"]),
    ]
    by_priority = filter_and_sort_tasks(tasks, TaskFilterState(sort_by="priority", sort_order="desc"))
    assert [t.id for t in by_priority] == ["urgent", "high", "low"]

    tagged = filter_and_sort_tasks(tasks, TaskFilterState(selected_tags=frozenset({"x"}), sort_by="title"))
    assert [t.id for t in tagged] == ["high", "low"]

    in_progress = filter_and_sort_tasks(
        tasks, TaskFilterState(statuses=frozenset({TaskStatus.IN_PROGRESS}))
    )
    assert [t.id for t in in_progress] == ["urgent"]

    urgent_or_low = filter_and_sort_tasks(
        tasks, TaskFilterState(priorities=frozenset({"urgent", "low"}), sort_by="created")
    )
    assert {t.id for t in urgent_or_low} == {"urgent", "low"}


# ============ Roulette ============


def test_roulette_pools(ideas):
    assert {i.id for i in roulette_pool(ideas, "high-impact")} == {"a", "c"}
    assert {i.id for i in roulette_pool(ideas, "low-effort")} == {"a", "d"}
    assert {i.id for i in roulette_pool(ideas, "quick-wins")} == {"a"}
    assert len(roulette_pool(ideas, "all")) == 4
    with pytest.raises(ValueError):
        roulette_pool(ideas, "chaos")


def test_roulette_avoids_history_when_possible(ideas):
    rng = random.Random(7)
    for _ in range(20):
        picked = pick_random_idea(ideas, "high-impact", rng=rng, history=["a"])
        assert picked.id == "c"

    assert pick_random_idea(ideas, "quick-wins", rng=rng, history=["a"]).id == "a"
    assert pick_random_idea([], "all") is None


# ============ Stats ============


def test_task_stats():
    tasks = [
        make_task("1", "Done", status=TaskStatus.COMPLETED, due_in_days=-3),
        make_task("2", "Doing", status=TaskStatus.IN_PROGRESS, due_in_days=-1),
        make_task("3", "Todo", due_in_days=2),
    ]
    stats = task_stats(tasks, now=NOW)
    assert stats == {
        "total": 3,
        "completed": 1,
        "inProgress": 1,
        "notStarted": 1,
        "overdue": 1,
        "completionRate": 33,
    }
    assert task_stats([])["completionRate"] == 0


def test_idea_stats(ideas):
    ideas[3].status = IdeaStatus.ARCHIVED
    ideas[3].created_at = NOW - timedelta(days=30)
    tasks = [make_task("1", "Done", status=TaskStatus.COMPLETED), make_task("2", "Todo")]

    stats = idea_stats(ideas, tasks, now=NOW)

    assert stats["totalIdeas"] == 4
    assert stats["activeIdeas"] == 3
    assert stats["archivedIdeas"] == 1
    assert stats["quadrantCounts"] == {"q1": 1, "q2": 1, "q3": 1, "q4": 1}
    assert stats["avgImpact"] == 3.25
    assert stats["avgEffort"] == 3.0
    assert stats["recentIdeas"] == 3
    assert stats["taskCompletionRate"] == 50.0
    assert stats["uniqueTags"] == 4
    assert stats["avgTagsPerIdea"] == 1.0


def test_idea_stats_empty():
    stats = idea_stats([])
    assert stats["totalIdeas"] == 0
    assert stats["avgImpact"] == 0.0
    assert stats["taskCompletionRate"] == 0.0
