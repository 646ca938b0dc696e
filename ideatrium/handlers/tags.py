"""
Tag and account command handlers
"""

from typing import Any, Dict

from fastapi import Request

from ideatrium.core.errors import IdeatriumError
from ideatrium.core.logger import get_logger
from ideatrium.models.requests import EnsureAccountRequest, TagCreate, TagIdRequest

from . import api_handler, error_response, get_records, success_response

logger = get_logger(__name__)


@api_handler(method="GET", path="/tags/list", tags=["tags"], summary="List tags")
async def list_tags(request: Request) -> Dict[str, Any]:
    """Preset tags first, then custom tags in creation order"""
    try:
        tags = get_records(request).list_tags()
        return success_response({"tags": [tag.to_dict() for tag in tags], "count": len(tags)})
    except IdeatriumError as e:
        logger.warning(f"Failed to list tags: {e.message}")
        return error_response(e)


@api_handler(body=TagCreate, method="POST", path="/tags/create", tags=["tags"])
async def create_tag(body: TagCreate, request: Request) -> Dict[str, Any]:
    try:
        tag = get_records(request).add_tag(body.name, body.color)
        return success_response(tag.to_dict())
    except IdeatriumError as e:
        logger.warning(f"Failed to create tag {body.name}: {e.message}")
        return error_response(e)


@api_handler(
    body=TagIdRequest,
    method="POST",
    path="/tags/delete",
    tags=["tags"],
    summary="Delete a custom tag",
    description="Removes the tag and strips it from every idea and task; presets are kept",
)
async def delete_tag(body: TagIdRequest, request: Request) -> Dict[str, Any]:
    try:
        deleted = get_records(request).delete_tag(body.tag_id)
        return success_response({"tagId": body.tag_id, "deleted": deleted})
    except IdeatriumError as e:
        logger.warning(f"Failed to delete tag {body.tag_id}: {e.message}")
        return error_response(e)


@api_handler(
    body=EnsureAccountRequest,
    method="POST",
    path="/account/ensure",
    tags=["account"],
    summary="Ensure account",
    description="Create the profile and seed preset tags on first call; idempotent",
)
async def ensure_account(body: EnsureAccountRequest, request: Request) -> Dict[str, Any]:
    try:
        profile = get_records(request).ensure_account(body.display_name)
        return success_response(profile.to_dict())
    except IdeatriumError as e:
        logger.warning(f"Failed to ensure account: {e.message}")
        return error_response(e)
