"""
Idea command handlers
List/filter, CRUD, archive, bulk operations, statistics and roulette
"""

from typing import Any, Dict

from fastapi import Request

from ideatrium.core.errors import IdeatriumError
from ideatrium.core.logger import get_logger
from ideatrium.core.models import IdeaStatus
from ideatrium.models.requests import (
    BulkDeleteRequest,
    BulkIdeaUpdateRequest,
    BulkIdsRequest,
    BulkQuadrantRequest,
    BulkTagRequest,
    IdeaCreate,
    IdeaFilterRequest,
    IdeaIdRequest,
    RouletteRequest,
    UpdateIdeaRequest,
)
from ideatrium.processing.filters import (
    IdeaFilterState,
    apply_preset,
    filter_and_sort_ideas,
    pick_random_idea,
    split_by_status,
)
from ideatrium.processing.stats import idea_stats

from . import (
    api_handler,
    error_response,
    get_records,
    get_services,
    get_user_id,
    live_ideas,
    live_tasks,
    success_response,
)

logger = get_logger(__name__)


# ============ Listing ============


@api_handler(
    body=IdeaFilterRequest,
    method="POST",
    path="/ideas/list",
    tags=["ideas"],
    summary="List ideas",
    description="Filter and sort the caller's ideas; a named preset is applied first",
)
async def list_ideas(body: IdeaFilterRequest, request: Request) -> Dict[str, Any]:
    """List ideas

    @param body - Filter state (search, tags, quadrants, sort, preset, status)
    @returns Filtered idea list
    """
    try:
        ideas = live_ideas(request).items
        if body.status is not None:
            ideas = [idea for idea in ideas if idea.status == body.status]

        state = IdeaFilterState(
            search_query=body.search_query,
            selected_tags=frozenset(body.selected_tags),
            selected_quadrants=frozenset(body.selected_quadrants),
            sort_by=body.sort_by,
            sort_order=body.sort_order,
        )
        if body.preset:
            state = apply_preset(state, body.preset)

        result = filter_and_sort_ideas(ideas, state)
        return success_response(
            {"ideas": [idea.to_dict() for idea in result], "count": len(result)}
        )

    except IdeatriumError as e:
        logger.warning(f"Failed to list ideas: {e.message}")
        return error_response(e)


# ============ CRUD ============


@api_handler(body=IdeaCreate, method="POST", path="/ideas/create", tags=["ideas"])
async def create_idea(body: IdeaCreate, request: Request) -> Dict[str, Any]:
    """Create an idea; its quadrant is derived from impact and effort"""
    try:
        idea = get_records(request).create_idea(
            body.title,
            description=body.description,
            tags=body.tags,
            impact=body.impact,
            effort=body.effort,
        )
        return success_response(idea.to_dict())

    except IdeatriumError as e:
        logger.warning(f"Failed to create idea: {e.message}")
        return error_response(e)


@api_handler(body=UpdateIdeaRequest, method="POST", path="/ideas/update", tags=["ideas"])
async def update_idea(body: UpdateIdeaRequest, request: Request) -> Dict[str, Any]:
    """Apply a partial update to an idea"""
    try:
        idea = get_records(request).update_idea(body.idea_id, body.updates)
        return success_response(idea.to_dict())

    except IdeatriumError as e:
        logger.warning(f"Failed to update idea {body.idea_id}: {e.message}")
        return error_response(e)


@api_handler(body=IdeaIdRequest, method="POST", path="/ideas/delete", tags=["ideas"])
async def delete_idea(body: IdeaIdRequest, request: Request) -> Dict[str, Any]:
    """Delete an idea together with its tasks and their subtasks"""
    try:
        deleted = get_records(request).delete_idea(body.idea_id)
        return success_response({"ideaId": body.idea_id, "deleted": deleted})

    except IdeatriumError as e:
        logger.warning(f"Failed to delete idea {body.idea_id}: {e.message}")
        return error_response(e)


@api_handler(body=IdeaIdRequest, method="POST", path="/ideas/archive", tags=["ideas"])
async def archive_idea(body: IdeaIdRequest, request: Request) -> Dict[str, Any]:
    try:
        return success_response(get_records(request).archive_idea(body.idea_id).to_dict())
    except IdeatriumError as e:
        logger.warning(f"Failed to archive idea {body.idea_id}: {e.message}")
        return error_response(e)


@api_handler(body=IdeaIdRequest, method="POST", path="/ideas/restore", tags=["ideas"])
async def restore_idea(body: IdeaIdRequest, request: Request) -> Dict[str, Any]:
    try:
        return success_response(get_records(request).restore_idea(body.idea_id).to_dict())
    except IdeatriumError as e:
        logger.warning(f"Failed to restore idea {body.idea_id}: {e.message}")
        return error_response(e)


# ============ Bulk ============


@api_handler(
    body=BulkIdeaUpdateRequest,
    method="POST",
    path="/ideas/bulk-update",
    tags=["ideas"],
    summary="Bulk update ideas",
    description="Apply one patch to many ideas; unknown ids are skipped",
)
async def bulk_update_ideas(body: BulkIdeaUpdateRequest, request: Request) -> Dict[str, Any]:
    try:
        bulk = get_services(request).bulk_for(get_user_id(request))
        return success_response(bulk.update(body.ids, body.updates, "idea").to_dict())

    except IdeatriumError as e:
        logger.warning(f"Bulk idea update failed: {e.message}")
        return error_response(e)


@api_handler(
    body=BulkDeleteRequest,
    method="POST",
    path="/ideas/bulk-delete",
    tags=["ideas"],
    summary="Bulk delete",
    description="Delete many ideas (or tasks, with entity=task), cascading per record",
)
async def bulk_delete(body: BulkDeleteRequest, request: Request) -> Dict[str, Any]:
    try:
        bulk = get_services(request).bulk_for(get_user_id(request))
        return success_response(bulk.delete(body.ids, body.entity).to_dict())

    except IdeatriumError as e:
        logger.warning(f"Bulk delete failed: {e.message}")
        return error_response(e)


@api_handler(
    body=BulkQuadrantRequest,
    method="POST",
    path="/ideas/bulk-quadrant",
    tags=["ideas"],
    summary="Move ideas to a quadrant",
)
async def bulk_set_quadrant(body: BulkQuadrantRequest, request: Request) -> Dict[str, Any]:
    try:
        bulk = get_services(request).bulk_for(get_user_id(request))
        return success_response(bulk.set_quadrant(body.ids, body.quadrant).to_dict())

    except IdeatriumError as e:
        logger.warning(f"Bulk quadrant move failed: {e.message}")
        return error_response(e)


@api_handler(
    body=BulkTagRequest,
    method="POST",
    path="/ideas/bulk-tag",
    tags=["ideas"],
    summary="Toggle a tag on many ideas",
)
async def bulk_toggle_tag(body: BulkTagRequest, request: Request) -> Dict[str, Any]:
    try:
        bulk = get_services(request).bulk_for(get_user_id(request))
        return success_response(bulk.toggle_tag(body.ids, body.tag_id).to_dict())

    except IdeatriumError as e:
        logger.warning(f"Bulk tag toggle failed: {e.message}")
        return error_response(e)


@api_handler(body=BulkIdsRequest, method="POST", path="/ideas/bulk-archive", tags=["ideas"])
async def bulk_archive_ideas(body: BulkIdsRequest, request: Request) -> Dict[str, Any]:
    try:
        bulk = get_services(request).bulk_for(get_user_id(request))
        result = bulk.update(body.ids, {"status": IdeaStatus.ARCHIVED}, "idea")
        return success_response(result.to_dict())

    except IdeatriumError as e:
        logger.warning(f"Bulk archive failed: {e.message}")
        return error_response(e)


@api_handler(body=BulkIdsRequest, method="POST", path="/ideas/bulk-restore", tags=["ideas"])
async def bulk_restore_ideas(body: BulkIdsRequest, request: Request) -> Dict[str, Any]:
    try:
        bulk = get_services(request).bulk_for(get_user_id(request))
        result = bulk.update(body.ids, {"status": IdeaStatus.ACTIVE}, "idea")
        return success_response(result.to_dict())

    except IdeatriumError as e:
        logger.warning(f"Bulk restore failed: {e.message}")
        return error_response(e)


# ============ Stats & roulette ============


@api_handler(method="GET", path="/ideas/stats", tags=["ideas"], summary="Idea statistics")
async def get_idea_stats(request: Request) -> Dict[str, Any]:
    try:
        return success_response(idea_stats(live_ideas(request).items, live_tasks(request).items))

    except IdeatriumError as e:
        logger.warning(f"Failed to compute idea stats: {e.message}")
        return error_response(e)


@api_handler(
    body=RouletteRequest,
    method="POST",
    path="/ideas/roulette",
    tags=["ideas"],
    summary="Pick a random idea",
    description="Random active idea from the pool selected by mode",
)
async def spin_roulette(body: RouletteRequest, request: Request) -> Dict[str, Any]:
    try:
        active, _ = split_by_status(get_records(request).list_ideas())
        idea = pick_random_idea(active, body.mode, history=body.history)
        return success_response({"idea": idea.to_dict() if idea else None, "mode": body.mode})

    except IdeatriumError as e:
        logger.warning(f"Roulette failed: {e.message}")
        return error_response(e)
