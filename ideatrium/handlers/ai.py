"""
AI command handlers
Suggestions for a single idea and insights over the idea backlog. Both
always answer with a result; isFallback marks the deterministic substitute.
"""

from typing import Any, Dict

from fastapi import Request

from ideatrium.core.errors import IdeatriumError, NotFound
from ideatrium.core.logger import get_logger
from ideatrium.models.requests import IdeaIdRequest, InsightsRequest
from ideatrium.processing.filters import split_by_status

from . import api_handler, error_response, get_records, get_services, success_response

logger = get_logger(__name__)


@api_handler(
    body=IdeaIdRequest,
    method="POST",
    path="/ai/suggestions",
    tags=["ai"],
    summary="AI suggestions for an idea",
)
async def get_suggestions(body: IdeaIdRequest, request: Request) -> Dict[str, Any]:
    """Impact/effort hints, an action plan and pros/cons for one idea"""
    try:
        idea = get_records(request).get_idea(body.idea_id)
        if idea is None:
            raise NotFound("idea", body.idea_id)

        result = await get_services(request).ai_service.generate_suggestions(idea)
        return success_response(result.to_dict())

    except IdeatriumError as e:
        logger.warning(f"Failed to get suggestions for {body.idea_id}: {e.message}")
        return error_response(e)


@api_handler(
    body=InsightsRequest,
    method="POST",
    path="/ai/insights",
    tags=["ai"],
    summary="AI insights over all ideas",
)
async def get_insights(body: InsightsRequest, request: Request) -> Dict[str, Any]:
    try:
        ideas = get_records(request).list_ideas()
        if not body.include_archived:
            ideas, _ = split_by_status(ideas)

        result = await get_services(request).ai_service.generate_insights(ideas)
        return success_response(result.to_dict())

    except IdeatriumError as e:
        logger.warning(f"Failed to get insights: {e.message}")
        return error_response(e)
