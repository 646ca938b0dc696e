"""
AI service tests against a mocked generative-language endpoint
"""

import json
from datetime import datetime

import httpx
import pytest

from ideatrium.core.errors import AIServiceError
from ideatrium.core.models import Idea
from ideatrium.core.quadrant import classify
from ideatrium.llm.client import GeminiClient
from ideatrium.llm.prompt_manager import PromptManager
from ideatrium.services.ai_service import AIService, nudge_score


def make_idea(idea_id="idea-1", title="Plant a garden", impact=2, effort=4, tags=()):
    now = datetime.now()
    return Idea(
        id=idea_id,
        title=title,
        description=None,
        tags=list(tags),
        impact=impact,
        effort=effort,
        quadrant=classify(impact, effort),
        created_at=now,
        updated_at=now,
    )


def gemini_reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def build_service(handler, api_key="test-key", max_retries=2):
    client = GeminiClient(
        api_key=api_key,
        max_retries=max_retries,
        retry_backoff=0,
        transport=httpx.MockTransport(handler),
    )
    return AIService(client, PromptManager())


SUGGESTIONS_TEXT = """Here is my analysis:
```json
{
  "suggestions": [
    {"type": "impact", "title": "Impact", "content": "4/5", "confidence": 0.8, "reasoning": "Broad appeal"},
    {"type": "actionPlan", "title": "Plan", "content": ["Buy seeds", "Dig"], "confidence": 0.9},
    {"type": "proscons", "title": "Trade-offs", "content": {"pros": ["Fresh food"], "cons": ["Time"]}, "confidence": 0.7},
    {"type": "impact", "title": "Broken", "content": "x", "confidence": 85}
  ]
}
```"""


@pytest.mark.asyncio
async def test_suggestions_from_model_response():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=gemini_reply(SUGGESTIONS_TEXT))

    result = await build_service(handler).generate_suggestions(make_idea())

    assert not result.is_fallback
    assert result.warning is None
    assert [s.type for s in result.suggestions] == ["impact", "actionPlan", "proscons"]
    assert result.suggestions[2].content.pros == ["Fresh food"]

    request = seen[0]
    assert request.url.path.endswith("/models/gemini-2.0-flash:generateContent")
    assert request.url.params["key"] == "test-key"
    payload = json.loads(request.content)
    assert "Plant a garden" in payload["contents"][0]["parts"][0]["text"]
    assert payload["generationConfig"]["temperature"] == 0.7
    assert payload["systemInstruction"]["parts"][0]["text"]


@pytest.mark.asyncio
async def test_server_errors_are_retried():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503, text="unavailable")
        return httpx.Response(200, json=gemini_reply(SUGGESTIONS_TEXT))

    result = await build_service(handler).generate_suggestions(make_idea())

    assert len(calls) == 2
    assert not result.is_fallback


@pytest.mark.asyncio
async def test_client_errors_fall_back_without_retry():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, json={"error": {"message": "bad request"}})

    result = await build_service(handler).generate_suggestions(make_idea(impact=2, effort=4))

    assert len(calls) == 1
    assert result.is_fallback
    assert result.warning
    payload = result.to_dict()
    assert payload["isFallback"] is True
    assert [s["type"] for s in payload["suggestions"]] == ["impact", "effort", "actionPlan", "proscons"]
    assert payload["suggestions"][0]["content"].endswith("3/5")
    assert payload["suggestions"][3]["content"]["cons"]


@pytest.mark.asyncio
async def test_network_failures_exhaust_retries_then_fall_back():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("network down", request=request)

    result = await build_service(handler, max_retries=2).generate_suggestions(make_idea())

    assert len(calls) == 3
    assert result.is_fallback


@pytest.mark.asyncio
async def test_missing_api_key_never_calls_the_network():
    def handler(request):
        raise AssertionError("network must not be used")

    service = build_service(handler, api_key="")
    assert not service.client.configured
    result = await service.generate_suggestions(make_idea())
    assert result.is_fallback


@pytest.mark.asyncio
async def test_unparseable_model_text_falls_back():
    def handler(request):
        return httpx.Response(200, json=gemini_reply("I cannot help with that."))

    result = await build_service(handler).generate_suggestions(make_idea())
    assert result.is_fallback


@pytest.mark.asyncio
async def test_empty_candidates_raise_inside_client():
    def handler(request):
        return httpx.Response(200, json={"candidates": []})

    service = build_service(handler)
    with pytest.raises(AIServiceError):
        await service.client.generate_content("hello")


@pytest.mark.asyncio
async def test_insights_for_no_ideas_is_empty():
    def handler(request):
        raise AssertionError("network must not be used")

    result = await build_service(handler).generate_insights([])
    assert result.insights == []
    assert not result.is_fallback


@pytest.mark.asyncio
async def test_insights_from_model_response():
    seen = []
    reply = {
        "insights": [
            {"type": "pattern", "title": "Balanced", "description": "Even spread", "confidence": 0.8},
            {"type": "opportunity", "title": "Quick", "description": "Do it", "confidence": 0.9,
             "actionable": True, "extra": "ignored"},
        ]
    }

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json=gemini_reply(json.dumps(reply)))

    ideas = [make_idea("1", "One", 5, 1), make_idea("2", "Two", 1, 5)]
    result = await build_service(handler).generate_insights(ideas)

    assert not result.is_fallback
    assert [i.type for i in result.insights] == ["pattern", "opportunity"]
    assert result.to_dict()["insights"][1]["actionable"] is True
    prompt = seen[0]["contents"][0]["parts"][0]["text"]
    assert '1. "One" (Impact: 5/5, Effort: 1/5, Quadrant: q2)' in prompt
    assert seen[0]["generationConfig"]["temperature"] == 0.6


@pytest.mark.asyncio
async def test_insights_fallback_summarizes_backlog():
    def handler(request):
        return httpx.Response(500, text="boom")

    ideas = [
        make_idea("1", "Quick win", 5, 1, tags=["tech"]),
        make_idea("2", "Big bet", 4, 5, tags=["work"]),
        make_idea("3", "Maybe", 1, 4, tags=["tech"]),
    ]
    result = await build_service(handler, max_retries=0).generate_insights(ideas)

    assert result.is_fallback
    by_type = {insight.type: insight for insight in result.insights}
    assert by_type["pattern"].description == (
        "You have 3 ideas with 2 high-impact concepts. 67% of your ideas show strong potential."
    )
    assert by_type["opportunity"].description.startswith('1 ideas are in the "Do First" quadrant')
    assert by_type["recommendation"].description == (
        "Consider starting with 1 low-effort ideas to build momentum."
    )
    assert "2 different categories" in by_type["trend"].description


def test_nudge_score_moves_toward_middle():
    assert [nudge_score(score) for score in range(1, 6)] == [2, 3, 3, 3, 4]
