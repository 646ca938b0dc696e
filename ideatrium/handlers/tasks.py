"""
Task command handlers
Task listing, creation from ideas, updates, subtasks and statistics
"""

from typing import Any, Dict

from fastapi import Request

from ideatrium.core.errors import IdeatriumError, NotFound
from ideatrium.core.logger import get_logger
from ideatrium.models.requests import (
    BulkTaskUpdateRequest,
    ConvertIdeaRequest,
    SubtaskCreate,
    SubtaskDeleteRequest,
    SubtaskUpdateRequest,
    TaskCreate,
    TaskFilterRequest,
    TaskIdRequest,
    UpdateTaskRequest,
)
from ideatrium.processing.filters import TaskFilterState, filter_and_sort_tasks
from ideatrium.processing.stats import task_stats

from . import (
    api_handler,
    error_response,
    get_records,
    get_services,
    get_user_id,
    live_tasks,
    success_response,
)

logger = get_logger(__name__)


# ============ Tasks ============


@api_handler(
    body=TaskFilterRequest,
    method="POST",
    path="/tasks/list",
    tags=["tasks"],
    summary="List tasks",
    description="Filter tasks by search text, tags, status and priority, then sort",
)
async def list_tasks(body: TaskFilterRequest, request: Request) -> Dict[str, Any]:
    try:
        state = TaskFilterState(
            search_query=body.search_query,
            selected_tags=frozenset(body.selected_tags),
            statuses=frozenset(body.statuses),
            priorities=frozenset(body.priorities),
            sort_by=body.sort_by,
            sort_order=body.sort_order,
        )
        result = filter_and_sort_tasks(live_tasks(request).items, state)
        return success_response(
            {"tasks": [task.to_dict() for task in result], "count": len(result)}
        )

    except IdeatriumError as e:
        logger.warning(f"Failed to list tasks: {e.message}")
        return error_response(e)


@api_handler(body=TaskCreate, method="POST", path="/tasks/create", tags=["tasks"])
async def create_task(body: TaskCreate, request: Request) -> Dict[str, Any]:
    """Create a task for an existing idea"""
    try:
        task = get_records(request).create_task(
            body.idea_id,
            body.title,
            description=body.description,
            priority=body.priority,
            due_date=body.due_date,
            estimated_hours=body.estimated_hours,
            tags=body.tags,
            subtask_titles=body.subtasks,
        )
        return success_response(task.to_dict())

    except IdeatriumError as e:
        logger.warning(f"Failed to create task for idea {body.idea_id}: {e.message}")
        return error_response(e)


@api_handler(
    body=ConvertIdeaRequest,
    method="POST",
    path="/tasks/convert",
    tags=["tasks"],
    summary="Convert idea to task",
    description="Create a task from an idea; unset fields default from the idea",
)
async def convert_idea(body: ConvertIdeaRequest, request: Request) -> Dict[str, Any]:
    try:
        overrides = body.model_dump(exclude_unset=True, by_alias=False, exclude={"idea_id"})
        task = get_records(request).convert_idea_to_task(body.idea_id, **overrides)
        return success_response(task.to_dict())

    except IdeatriumError as e:
        logger.warning(f"Failed to convert idea {body.idea_id}: {e.message}")
        return error_response(e)


@api_handler(body=UpdateTaskRequest, method="POST", path="/tasks/update", tags=["tasks"])
async def update_task(body: UpdateTaskRequest, request: Request) -> Dict[str, Any]:
    """Apply a partial update; completedAt follows the status"""
    try:
        task = get_records(request).update_task(body.task_id, body.updates)
        return success_response(task.to_dict())

    except IdeatriumError as e:
        logger.warning(f"Failed to update task {body.task_id}: {e.message}")
        return error_response(e)


@api_handler(body=TaskIdRequest, method="POST", path="/tasks/delete", tags=["tasks"])
async def delete_task(body: TaskIdRequest, request: Request) -> Dict[str, Any]:
    try:
        deleted = get_records(request).delete_task(body.task_id)
        return success_response({"taskId": body.task_id, "deleted": deleted})

    except IdeatriumError as e:
        logger.warning(f"Failed to delete task {body.task_id}: {e.message}")
        return error_response(e)


@api_handler(body=BulkTaskUpdateRequest, method="POST", path="/tasks/bulk-update", tags=["tasks"])
async def bulk_update_tasks(body: BulkTaskUpdateRequest, request: Request) -> Dict[str, Any]:
    try:
        bulk = get_services(request).bulk_for(get_user_id(request))
        return success_response(bulk.update(body.ids, body.updates, "task").to_dict())

    except IdeatriumError as e:
        logger.warning(f"Bulk task update failed: {e.message}")
        return error_response(e)


@api_handler(method="GET", path="/tasks/stats", tags=["tasks"], summary="Task statistics")
async def get_task_stats(request: Request) -> Dict[str, Any]:
    try:
        return success_response(task_stats(live_tasks(request).items))
    except IdeatriumError as e:
        logger.warning(f"Failed to compute task stats: {e.message}")
        return error_response(e)


# ============ Subtasks ============


@api_handler(body=SubtaskCreate, method="POST", path="/tasks/subtasks/add", tags=["tasks"])
async def add_subtask(body: SubtaskCreate, request: Request) -> Dict[str, Any]:
    try:
        subtask = get_records(request).add_subtask(body.task_id, body.title)
        if subtask is None:
            raise NotFound("task", body.task_id)
        return success_response(subtask.to_dict())

    except IdeatriumError as e:
        logger.warning(f"Failed to add subtask to {body.task_id}: {e.message}")
        return error_response(e)


@api_handler(body=SubtaskUpdateRequest, method="POST", path="/tasks/subtasks/update", tags=["tasks"])
async def update_subtask(body: SubtaskUpdateRequest, request: Request) -> Dict[str, Any]:
    try:
        subtask = get_records(request).update_subtask(
            body.task_id, body.subtask_id, body.updates
        )
        if subtask is None:
            raise NotFound("subtask", body.subtask_id)
        return success_response(subtask.to_dict())

    except IdeatriumError as e:
        logger.warning(f"Failed to update subtask {body.subtask_id}: {e.message}")
        return error_response(e)


@api_handler(body=SubtaskDeleteRequest, method="POST", path="/tasks/subtasks/delete", tags=["tasks"])
async def delete_subtask(body: SubtaskDeleteRequest, request: Request) -> Dict[str, Any]:
    try:
        if not get_records(request).delete_subtask(body.task_id, body.subtask_id):
            raise NotFound("subtask", body.subtask_id)
        return success_response({"taskId": body.task_id, "subtaskId": body.subtask_id})

    except IdeatriumError as e:
        logger.warning(f"Failed to delete subtask {body.subtask_id}: {e.message}")
        return error_response(e)
