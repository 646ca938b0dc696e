"""
Record manager tests, run against both the database and the local store
"""

import pytest

from ideatrium.core.errors import NotFound, Unauthenticated, ValidationError
from ideatrium.core.models import PRESET_TAGS, IdeaStatus, TaskPriority, TaskStatus
from ideatrium.core.quadrant import Quadrant, classify
from ideatrium.core.records import RecordManager, UserSession
from ideatrium.processing.filters import TaskFilterState, filter_and_sort_tasks

USER_ID = "user-1"


# ============ Ideas ============


def test_create_idea_derives_quadrant(records):
    idea = records.create_idea("  Launch newsletter ", impact=4, effort=2, tags=["tech", "tech"])

    assert idea.title == "Launch newsletter"
    assert idea.quadrant == Quadrant.Q2
    assert idea.status == IdeaStatus.ACTIVE
    assert idea.tags == ["tech"]
    assert records.get_idea(idea.id).quadrant == Quadrant.Q2


def test_create_idea_defaults_to_plan(records):
    idea = records.create_idea("Undecided")
    assert (idea.impact, idea.effort) == (3, 3)
    assert idea.quadrant == Quadrant.Q1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"title": ""},
        {"title": "   "},
        {"title": "x" * 101},
        {"title": "ok", "impact": 0},
        {"title": "ok", "effort": 6},
        {"title": "ok", "description": "d" * 501},
    ],
)
def test_create_idea_rejects_invalid_input(records, kwargs):
    with pytest.raises(ValidationError):
        records.create_idea(**kwargs)
    assert records.list_ideas() == []


def test_quadrant_follows_every_partial_update(records):
    idea = records.create_idea("X", impact=4, effort=2)

    for patch in ({"effort": 4}, {"impact": 1}, {"effort": 1}, {"impact": 5}, {"title": "Y"}):
        updated = records.update_idea(idea.id, patch)
        assert updated.quadrant == classify(updated.impact, updated.effort)

    stored = records.get_idea(idea.id)
    assert (stored.title, stored.impact, stored.effort) == ("Y", 5, 1)
    assert stored.quadrant == Quadrant.Q2


def test_update_idea_rejects_null_and_unknown_fields(records):
    idea = records.create_idea("X")

    with pytest.raises(ValidationError):
        records.update_idea(idea.id, {"title": None})
    with pytest.raises(ValidationError):
        records.update_idea(idea.id, {"quadrant": "q4"})

    assert records.get_idea(idea.id).title == "X"


def test_update_idea_can_clear_description(records):
    idea = records.create_idea("X", description="something")
    assert records.update_idea(idea.id, {"description": None}).description is None


def test_update_missing_idea_raises_not_found(records):
    with pytest.raises(NotFound):
        records.update_idea("missing", {"impact": 2})


def test_archive_and_restore(records):
    idea = records.create_idea("X")
    assert records.archive_idea(idea.id).status == IdeaStatus.ARCHIVED
    assert records.restore_idea(idea.id).status == IdeaStatus.ACTIVE


# ============ Tasks ============


def test_create_task_for_missing_idea_raises(records):
    with pytest.raises(NotFound):
        records.create_task("missing", "Task")


def test_convert_defaults_from_idea(records):
    quick = records.create_idea("Quick", description="desc", tags=["work"], impact=5, effort=1)
    optional = records.create_idea("Optional", impact=1, effort=1)

    task = records.convert_idea_to_task(quick.id)
    assert task.title == "Quick"
    assert task.description == "desc"
    assert task.tags == ["work"]
    assert task.priority == TaskPriority.HIGH
    assert task.status == TaskStatus.NOT_STARTED

    assert records.convert_idea_to_task(optional.id).priority == TaskPriority.LOW


def test_convert_overrides(records):
    idea = records.create_idea("Idea", description="desc")
    task = records.convert_idea_to_task(
        idea.id, title="Custom", description=None, priority="urgent", subtasks=["a"]
    )
    assert task.title == "Custom"
    assert task.description is None
    assert task.priority == TaskPriority.URGENT
    assert [s.title for s in task.subtasks] == ["a"]


def test_completion_timestamp_follows_status(records):
    idea = records.create_idea("X")
    task = records.create_task(idea.id, "Do it")
    assert task.completed_at is None

    completed = records.update_task(task.id, {"status": "completed"})
    assert completed.completed_at is not None
    stamp = completed.completed_at

    again = records.update_task(task.id, {"status": "completed"})
    assert again.completed_at == stamp

    reopened = records.update_task(task.id, {"status": "in_progress"})
    assert reopened.completed_at is None
    assert records.get_task(task.id).completed_at is None


def test_update_task_keeps_subtasks(records):
    idea = records.create_idea("X")
    task = records.create_task(idea.id, "T", subtask_titles=["a", "b"])

    records.update_task(task.id, {"title": "Renamed", "actualHours": 2})

    stored = records.get_task(task.id)
    assert stored.title == "Renamed"
    assert stored.actual_hours == 2
    assert [s.title for s in stored.subtasks] == ["a", "b"]


def test_update_missing_task_raises_not_found(records):
    with pytest.raises(NotFound):
        records.update_task("missing", {"status": "completed"})


# ============ Subtasks ============


def test_subtask_lifecycle(records):
    idea = records.create_idea("X")
    task = records.create_task(idea.id, "T", subtask_titles=["a"])

    added = records.add_subtask(task.id, " b ")
    assert added is not None and added.title == "b" and not added.completed

    updated = records.update_subtask(task.id, added.id, {"completed": True})
    assert updated.completed

    stored = records.get_task(task.id)
    assert len(stored.subtasks) == 2
    assert stored.subtasks_completed_count == 1

    assert records.delete_subtask(task.id, added.id)
    assert [s.title for s in records.get_task(task.id).subtasks] == ["a"]


def test_subtask_operations_on_unknown_ids(records):
    idea = records.create_idea("X")
    task = records.create_task(idea.id, "T")

    assert records.add_subtask("missing", "a") is None
    assert records.update_subtask(task.id, "missing", {"completed": True}) is None
    assert records.delete_subtask(task.id, "missing") is False


# ============ Cascades ============


def test_delete_cascades(records):
    idea = records.create_idea("Parent")
    other = records.create_idea("Unrelated")
    first = records.create_task(idea.id, "First", subtask_titles=["a", "b"])
    second = records.create_task(idea.id, "Second", subtask_titles=["c"])
    kept = records.create_task(other.id, "Kept", subtask_titles=["d"])

    assert records.delete_task(first.id)
    assert records.get_task(first.id) is None
    assert [s.title for s in records.get_task(second.id).subtasks] == ["c"]
    assert records.get_idea(idea.id) is not None

    assert records.delete_idea(idea.id)
    assert records.get_idea(idea.id) is None
    assert [t.id for t in records.list_tasks()] == [kept.id]
    assert len(records.get_task(kept.id).subtasks) == 1


def test_delete_unknown_records_returns_false(records):
    assert records.delete_idea("missing") is False
    assert records.delete_task("missing") is False


# ============ Tags & account ============


def test_account_seeds_presets_once(records):
    tags = records.list_tags()
    assert [t.id for t in tags] == [t.id for t in PRESET_TAGS]

    records.ensure_account("Again")
    assert len(records.list_tags()) == len(PRESET_TAGS)


def test_custom_tag_delete_strips_references(records):
    tag = records.add_tag("Side Project", "#1A2B3C")
    idea = records.create_idea("X", tags=[tag.id, "tech"])
    task = records.create_task(idea.id, "T", tags=[tag.id])

    assert records.list_tags()[-1].id == tag.id
    assert records.delete_tag(tag.id)

    assert tag.id not in [t.id for t in records.list_tags()]
    assert records.get_idea(idea.id).tags == ["tech"]
    assert records.get_task(task.id).tags == []


def test_preset_tags_cannot_be_deleted(records):
    assert records.delete_tag("tech") is False
    assert "tech" in [t.id for t in records.list_tags()]
    assert records.delete_tag("missing") is False


@pytest.mark.parametrize("name, color", [("bad!name", "#123456"), ("ok", "red"), ("x" * 31, "#123456")])
def test_add_tag_validates(records, name, color):
    with pytest.raises(ValidationError):
        records.add_tag(name, color)


# ============ Sessions & feeds ============


def test_database_requires_a_user(db_store):
    anonymous = RecordManager(db_store, UserSession())
    with pytest.raises(Unauthenticated):
        anonymous.list_ideas()
    with pytest.raises(Unauthenticated):
        anonymous.create_idea("X")


def test_database_scopes_records_by_user(db_store, notifier):
    owner = RecordManager(db_store, UserSession(USER_ID), notifier)
    stranger = RecordManager(db_store, UserSession("user-2"), notifier)
    idea = owner.create_idea("Mine")

    assert stranger.list_ideas() == []
    assert stranger.get_idea(idea.id) is None
    with pytest.raises(NotFound):
        stranger.update_idea(idea.id, {"title": "Stolen"})
    assert stranger.delete_idea(idea.id) is False
    assert owner.get_idea(idea.id).title == "Mine"


def test_local_store_works_without_a_user(local_store):
    manager = RecordManager(local_store)
    idea = manager.create_idea("Offline idea")
    assert [i.id for i in manager.list_ideas()] == [idea.id]


def test_subscribe_ideas_refetches(records):
    seen = []
    group = records.subscribe_ideas(seen.append)

    idea = records.create_idea("X")
    records.update_idea(idea.id, {"impact": 1})

    assert len(seen) == 2
    assert seen[-1][0].impact == 1

    group.unsubscribe()
    records.create_idea("Y")
    assert len(seen) == 2
    assert not group.active


def test_subscribe_tasks_follows_subtasks(records):
    idea = records.create_idea("X")
    task = records.create_task(idea.id, "T")
    seen = []
    records.subscribe_tasks(seen.append)

    records.add_subtask(task.id, "a")

    assert seen
    assert seen[-1][0].subtasks[0].title == "a"


def test_feed_ignores_other_users(db_store, notifier):
    owner = RecordManager(db_store, UserSession(USER_ID), notifier)
    stranger = RecordManager(db_store, UserSession("user-2"), notifier)
    seen = []
    owner.subscribe_ideas(seen.append)

    stranger.create_idea("Not yours")
    assert seen == []


def test_subscribe_without_notifier_fails(local_store):
    with pytest.raises(RuntimeError):
        RecordManager(local_store).subscribe_ideas(lambda ideas: None)


# ============ Scenario ============


def test_idea_to_completed_task_scenario(records):
    idea = records.create_idea("X", impact=4, effort=2)
    assert idea.quadrant == Quadrant.Q2

    idea = records.update_idea(idea.id, {"effort": 4})
    assert idea.quadrant == Quadrant.Q1

    task = records.convert_idea_to_task(idea.id, subtasks=["a", "b"])
    assert task.status == TaskStatus.NOT_STARTED
    assert [(s.title, s.completed) for s in task.subtasks] == [("a", False), ("b", False)]

    task = records.update_task(task.id, {"status": "completed"})
    assert task.completed_at is not None

    completed_view = filter_and_sort_tasks(
        records.list_tasks(), TaskFilterState(statuses=frozenset({TaskStatus.COMPLETED}))
    )
    assert [t.id for t in completed_view] == [task.id]
    assert completed_view[0].idea_id == idea.id
