"""
Request models for the HTTP API
"""

from .base import BaseModel
from .requests import (
    BulkDeleteRequest,
    BulkIdeaUpdateRequest,
    BulkIdsRequest,
    BulkQuadrantRequest,
    BulkTaskUpdateRequest,
    ConvertIdeaRequest,
    EnsureAccountRequest,
    IdeaCreate,
    IdeaFilterRequest,
    IdeaIdRequest,
    IdeaPatch,
    InsightsRequest,
    RouletteRequest,
    SubtaskCreate,
    SubtaskDeleteRequest,
    SubtaskPatch,
    SubtaskUpdateRequest,
    TagCreate,
    TagIdRequest,
    TaskCreate,
    TaskFilterRequest,
    TaskIdRequest,
    TaskPatch,
    UpdateIdeaRequest,
    UpdateTaskRequest,
)

__all__ = [
    "BaseModel",
    "BulkDeleteRequest",
    "BulkIdeaUpdateRequest",
    "BulkIdsRequest",
    "BulkQuadrantRequest",
    "BulkTaskUpdateRequest",
    "ConvertIdeaRequest",
    "EnsureAccountRequest",
    "IdeaCreate",
    "IdeaFilterRequest",
    "IdeaIdRequest",
    "IdeaPatch",
    "InsightsRequest",
    "RouletteRequest",
    "SubtaskCreate",
    "SubtaskDeleteRequest",
    "SubtaskPatch",
    "SubtaskUpdateRequest",
    "TagCreate",
    "TagIdRequest",
    "TaskCreate",
    "TaskFilterRequest",
    "TaskIdRequest",
    "TaskPatch",
    "UpdateIdeaRequest",
    "UpdateTaskRequest",
]
