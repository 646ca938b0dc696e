"""
HTTP API tests through the FastAPI application
"""

import pytest
from fastapi.testclient import TestClient

from ideatrium.app import create_app
from ideatrium.core.db import DatabaseManager
from ideatrium.core.events import ChangeNotifier
from ideatrium.core.models import PRESET_TAGS
from ideatrium.core.services import AppServices
from ideatrium.handlers import get_registered_handlers
from ideatrium.llm.client import GeminiClient
from ideatrium.llm.prompt_manager import PromptManager
from ideatrium.services.ai_service import AIService

HEADERS = {"X-User-Id": "user-1"}


@pytest.fixture
def services(tmp_path):
    notifier = ChangeNotifier()
    return AppServices(
        store=DatabaseManager(str(tmp_path / "api.db"), notifier=notifier),
        notifier=notifier,
        ai_service=AIService(GeminiClient(api_key=None), PromptManager()),
    )


@pytest.fixture
def client(services):
    with TestClient(create_app(services)) as test_client:
        response = test_client.post(
            "/api/account/ensure", json={"displayName": "Tester"}, headers=HEADERS
        )
        assert response.json()["success"]
        yield test_client


def call(client, path, body=None, headers=HEADERS):
    if body is None:
        response = client.get(f"/api{path}", headers=headers)
    else:
        response = client.post(f"/api{path}", json=body, headers=headers)
    assert response.status_code == 200
    return response.json()


def create_idea(client, title, **fields):
    result = call(client, "/ideas/create", {"title": title, **fields})
    assert result["success"], result
    return result["data"]


def test_health_and_root(client):
    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["storage"] == "database"
    assert health["aiConfigured"] is False

    assert client.get("/").json()["service"] == "Ideatrium API"

    paths = {info["path"] for info in get_registered_handlers().values()}
    assert {"/ideas/list", "/ideas/create", "/ai/suggestions"} <= paths


def test_account_seeding_is_idempotent(client):
    again = call(client, "/account/ensure", {"displayName": "Other"})
    assert again["data"]["displayName"] == "Tester"

    tags = call(client, "/tags/list")["data"]
    assert tags["count"] == len(PRESET_TAGS)


def test_idea_lifecycle(client):
    idea = create_idea(client, "  Launch newsletter ", impact=5, effort=2, tags=["work"])
    assert idea["title"] == "Launch newsletter"
    assert idea["quadrant"] == "q2"

    updated = call(client, "/ideas/update", {"ideaId": idea["id"], "updates": {"effort": 5}})
    assert updated["data"]["quadrant"] == "q1"

    archived = call(client, "/ideas/archive", {"ideaId": idea["id"]})
    assert archived["data"]["status"] == "archived"

    active = call(client, "/ideas/list", {"status": "active"})
    assert active["data"]["count"] == 0

    listed = call(client, "/ideas/list", {})
    assert [i["id"] for i in listed["data"]["ideas"]] == [idea["id"]]

    deleted = call(client, "/ideas/delete", {"ideaId": idea["id"]})
    assert deleted["data"] == {"ideaId": idea["id"], "deleted": True}


def test_idea_list_filters_and_presets(client):
    create_idea(client, "Quick", impact=5, effort=1)
    create_idea(client, "Slow", impact=5, effort=5)
    create_idea(client, "Small", impact=1, effort=1, description="a quick note")

    quick = call(client, "/ideas/list", {"preset": "quick-wins"})
    assert [i["title"] for i in quick["data"]["ideas"]] == ["Quick"]

    searched = call(client, "/ideas/list", {"searchQuery": "QUICK", "sortBy": "title", "sortOrder": "asc"})
    assert [i["title"] for i in searched["data"]["ideas"]] == ["Quick", "Small"]

    by_quadrant = call(client, "/ideas/list", {"selectedQuadrants": ["q1", "q4"], "sortBy": "title", "sortOrder": "asc"})
    assert [i["title"] for i in by_quadrant["data"]["ideas"]] == ["Slow", "Small"]


def test_convert_idea_and_manage_subtasks(client):
    idea = create_idea(client, "Write book", impact=5, effort=2, tags=["creative"])

    converted = call(client, "/tasks/convert", {"ideaId": idea["id"], "subtasks": ["Outline"]})
    task = converted["data"]
    assert task["title"] == "Write book"
    assert task["priority"] == "high"
    assert task["tags"] == ["creative"]
    assert task["subtasks"][0]["completed"] is False

    added = call(client, "/tasks/subtasks/add", {"taskId": task["id"], "title": "Draft"})
    subtask_id = added["data"]["id"]

    toggled = call(
        client,
        "/tasks/subtasks/update",
        {"taskId": task["id"], "subtaskId": subtask_id, "updates": {"completed": True}},
    )
    assert toggled["data"]["completed"] is True

    done = call(client, "/tasks/update", {"taskId": task["id"], "updates": {"status": "completed"}})
    assert done["data"]["completedAt"] is not None
    assert len(done["data"]["subtasks"]) == 2

    stats = call(client, "/tasks/stats")["data"]
    assert stats["completed"] == 1
    assert stats["completionRate"] == 100

    removed = call(client, "/tasks/subtasks/delete", {"taskId": task["id"], "subtaskId": subtask_id})
    assert removed["success"]

    missing = call(client, "/tasks/subtasks/delete", {"taskId": task["id"], "subtaskId": subtask_id})
    assert missing["success"] is False
    assert missing["error"] == "not_found"


def test_create_task_for_unknown_idea_is_not_found(client):
    result = call(client, "/tasks/create", {"ideaId": "missing", "title": "Orphan"})
    assert result["success"] is False
    assert result["error"] == "not_found"


def test_bulk_operations(client):
    ideas = [create_idea(client, f"Idea {n}", impact=1, effort=5) for n in range(3)]
    ids = [idea["id"] for idea in ideas]

    moved = call(client, "/ideas/bulk-quadrant", {"ids": ids[:2], "quadrant": "q2"})
    assert moved["data"]["affected"] == ids[:2]

    archived = call(client, "/ideas/bulk-archive", {"ids": [ids[0], "missing"]})
    assert archived["data"]["skipped"] == ["missing"]

    tagged_id = create_idea(client, "Tagged", tags=["work"])["id"]
    toggled = call(client, "/ideas/bulk-tag", {"ids": [ids[2], tagged_id], "tagId": "work"})
    assert toggled["data"]["affected"] == [ids[2], tagged_id]
    listed = {i["id"]: i["tags"] for i in call(client, "/ideas/list", {})["data"]["ideas"]}
    assert listed[ids[2]] == ["work"]
    assert listed[tagged_id] == []
    ids.append(tagged_id)

    deleted = call(client, "/ideas/bulk-delete", {"ids": ids + ["missing"]})
    assert deleted["data"]["success"] is True
    assert sorted(deleted["data"]["affected"]) == sorted(ids)

    assert call(client, "/ideas/list", {})["data"]["count"] == 0


def test_idea_stats_and_roulette(client):
    create_idea(client, "Quick", impact=5, effort=1)
    create_idea(client, "Slow", impact=2, effort=5)

    stats = call(client, "/ideas/stats")["data"]
    assert stats["totalIdeas"] == 2
    assert stats["quadrantCounts"]["q2"] == 1

    spin = call(client, "/ideas/roulette", {"mode": "quick-wins"})
    assert spin["data"]["idea"]["title"] == "Quick"

    high = call(client, "/ideas/roulette", {"mode": "high-impact", "history": ["unknown"]})
    assert high["data"]["idea"]["title"] == "Quick"


def test_custom_tags(client):
    tag = call(client, "/tags/create", {"name": "Side Project", "color": "#A1B2C3"})["data"]
    idea = create_idea(client, "Tagged", tags=[tag["id"]])

    deleted = call(client, "/tags/delete", {"tagId": tag["id"]})
    assert deleted["data"]["deleted"] is True
    assert call(client, "/ideas/list", {})["data"]["ideas"][0]["tags"] == []
    assert idea["tags"] == [tag["id"]]

    preset = call(client, "/tags/delete", {"tagId": "startup"})
    assert preset["data"]["deleted"] is False


def test_ai_endpoints_fall_back_without_key(client):
    idea = create_idea(client, "Garden", impact=2, effort=4)

    suggestions = call(client, "/ai/suggestions", {"ideaId": idea["id"]})["data"]
    assert suggestions["isFallback"] is True
    assert len(suggestions["suggestions"]) == 4

    insights = call(client, "/ai/insights", {})["data"]
    assert insights["isFallback"] is True
    assert {i["type"] for i in insights["insights"]} == {
        "pattern",
        "opportunity",
        "recommendation",
        "trend",
    }

    missing = call(client, "/ai/suggestions", {"ideaId": "missing"})
    assert missing["error"] == "not_found"


def test_requests_without_user_are_unauthenticated(client):
    result = call(client, "/ideas/create", {"title": "Anonymous"}, headers={})
    assert result["success"] is False
    assert result["error"] == "unauthenticated"


def test_users_are_isolated(client):
    create_idea(client, "Mine")
    other = call(client, "/ideas/list", {}, headers={"X-User-Id": "user-2"})
    assert other["data"]["count"] == 0


def test_list_routes_follow_live_views(client, services):
    create_idea(client, "First")
    assert call(client, "/ideas/list", {})["data"]["count"] == 1

    view = services.live_ideas("user-1")
    assert services.live_ideas("user-1") is view

    create_idea(client, "Second")
    assert [idea.title for idea in view.items] == ["Second", "First"]
    assert call(client, "/ideas/list", {})["data"]["count"] == 2
    assert services.live_ideas("user-2").items == []

    task = call(client, "/tasks/convert", {"ideaId": view.items[0].id})["data"]
    assert [t.id for t in services.live_tasks("user-1").items] == [task["id"]]


def test_invalid_bodies_are_rejected(client):
    assert client.post("/api/ideas/create", json={"title": "   "}, headers=HEADERS).status_code == 422
    assert client.post("/api/ideas/create", json={"title": "X", "impact": 6}, headers=HEADERS).status_code == 422
    assert client.post("/api/ideas/create", json={"title": "X", "quadrant": "q1"}, headers=HEADERS).status_code == 422
    assert client.post("/api/ideas/bulk-delete", json={"ids": []}, headers=HEADERS).status_code == 422
    assert (
        client.post(
            "/api/tags/create", json={"name": "bad!", "color": "#123456"}, headers=HEADERS
        ).status_code
        == 422
    )
