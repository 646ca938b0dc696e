"""
Request models for the HTTP API and the record manager

Field constraints here are the single source of truth for input
validation: titles are trimmed and length-checked, scores are bounded,
tag names and colors are pattern-checked.
"""

from datetime import datetime
from typing import Annotated, ClassVar, List, Literal, Optional, Tuple

from pydantic import AfterValidator, Field, StringConstraints, model_validator

from ideatrium.core.models import IdeaStatus, TaskPriority, TaskStatus
from ideatrium.core.quadrant import Quadrant

from .base import BaseModel


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value or None


IdeaTitle = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
TaskTitle = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
SubtaskTitle = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Description = Annotated[
    str,
    StringConstraints(strip_whitespace=True, max_length=500),
    AfterValidator(_blank_to_none),
]
TagName = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        min_length=1,
        max_length=30,
        pattern=r"^[a-zA-Z0-9\s\-_]+$",
    ),
]
TagColor = Annotated[str, StringConstraints(pattern=r"^#[0-9A-Fa-f]{6}$")]
Score = Annotated[int, Field(ge=1, le=5)]
Hours = Annotated[float, Field(ge=0.1, le=1000)]
IdList = Annotated[List[str], Field(min_length=1)]

IdeaSortKey = Literal["date", "title", "impact", "effort"]
TaskSortKey = Literal["due_date", "priority", "created", "title"]
SortOrder = Literal["asc", "desc"]
RouletteMode = Literal["all", "high-impact", "low-effort", "quick-wins"]


class _Patch(BaseModel):
    """Partial update; explicit nulls are only accepted for nullable fields"""

    non_nullable: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_nulls(self):
        for name in self.non_nullable:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        """Fields the caller actually set, keyed by python name"""
        return self.model_dump(exclude_unset=True, by_alias=False)


# ============================================================================
# Ideas
# ============================================================================


class IdeaCreate(BaseModel):
    """Request parameters for creating an idea.

    @property title - Idea title (1-100 chars, trimmed).
    @property description - Optional description (max 500 chars).
    @property tags - Tag ids.
    @property impact - Impact score (1-5, default 3).
    @property effort - Effort score (1-5, default 3).
    """

    title: IdeaTitle
    description: Optional[Description] = None
    tags: List[str] = Field(default_factory=list)
    impact: Score = 3
    effort: Score = 3


class IdeaPatch(_Patch):
    """Partial idea update. quadrant is derived and cannot be patched."""

    non_nullable: ClassVar[Tuple[str, ...]] = ("title", "tags", "impact", "effort", "status")

    title: Optional[IdeaTitle] = None
    description: Optional[Description] = None
    tags: Optional[List[str]] = None
    impact: Optional[Score] = None
    effort: Optional[Score] = None
    status: Optional[IdeaStatus] = None


class UpdateIdeaRequest(BaseModel):
    """Request parameters for updating an idea.

    @property ideaId - The idea ID.
    @property updates - Fields to change.
    """

    idea_id: str
    updates: IdeaPatch


class IdeaIdRequest(BaseModel):
    """Request parameters addressing a single idea.

    @property ideaId - The idea ID.
    """

    idea_id: str


class IdeaFilterRequest(BaseModel):
    """Request parameters for listing ideas.

    @property searchQuery - Case-insensitive text matched against title/description.
    @property selectedTags - Tag ids (OR semantics).
    @property selectedQuadrants - Quadrant filter.
    @property sortBy - date | title | impact | effort.
    @property sortOrder - asc | desc.
    @property preset - Optional named filter preset applied before the fields above.
    @property status - Optional status filter (active / archived).
    """

    search_query: str = Field(default="", max_length=100)
    selected_tags: List[str] = Field(default_factory=list)
    selected_quadrants: List[Quadrant] = Field(default_factory=list)
    sort_by: IdeaSortKey = "date"
    sort_order: SortOrder = "desc"
    preset: Optional[str] = None
    status: Optional[IdeaStatus] = None


class BulkIdeaUpdateRequest(BaseModel):
    """Request parameters for updating many ideas.

    @property ids - Idea ids (at least one).
    @property updates - Patch applied to each idea independently.
    """

    ids: IdList
    updates: IdeaPatch


class BulkQuadrantRequest(BaseModel):
    """Request parameters for moving ideas to a quadrant.

    @property ids - Idea ids (at least one).
    @property quadrant - Target quadrant.
    """

    ids: IdList
    quadrant: Quadrant


class BulkIdsRequest(BaseModel):
    """Request parameters carrying only an id list.

    @property ids - Record ids (at least one).
    """

    ids: IdList


class BulkTagRequest(BaseModel):
    """Request parameters for toggling one tag on many ideas.

    @property ids - Idea ids (at least one).
    @property tagId - Tag added where missing and removed where present.
    """

    ids: IdList
    tag_id: str = Field(min_length=1)


class BulkDeleteRequest(BaseModel):
    """Request parameters for deleting many records.

    @property ids - Record ids (at least one).
    @property entity - idea | task.
    """

    ids: IdList
    entity: Literal["idea", "task"] = "idea"


class RouletteRequest(BaseModel):
    """Request parameters for the idea roulette.

    @property mode - all | high-impact | low-effort | quick-wins.
    @property history - Recently picked idea ids to avoid when possible.
    """

    mode: RouletteMode = "all"
    history: List[str] = Field(default_factory=list)


# ============================================================================
# Tasks
# ============================================================================


class TaskCreate(BaseModel):
    """Request parameters for creating a task.

    @property ideaId - The source idea.
    @property title - Task title (1-100 chars, trimmed).
    @property subtasks - Titles of subtasks to create, all uncompleted.
    """

    idea_id: str
    title: TaskTitle
    description: Optional[Description] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    estimated_hours: Optional[Hours] = None
    tags: List[str] = Field(default_factory=list)
    subtasks: List[SubtaskTitle] = Field(default_factory=list)


class ConvertIdeaRequest(BaseModel):
    """Request parameters for converting an idea into a task.

    Unset title, description, tags and priority default from the idea.
    """

    idea_id: str
    title: Optional[TaskTitle] = None
    description: Optional[Description] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    estimated_hours: Optional[Hours] = None
    tags: Optional[List[str]] = None
    subtasks: List[SubtaskTitle] = Field(default_factory=list)


class TaskPatch(_Patch):
    """Partial task update. completed_at follows status and cannot be patched."""

    non_nullable: ClassVar[Tuple[str, ...]] = ("title", "status", "priority", "tags")

    title: Optional[TaskTitle] = None
    description: Optional[Description] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    estimated_hours: Optional[Hours] = None
    actual_hours: Optional[float] = Field(default=None, ge=0)
    tags: Optional[List[str]] = None


class UpdateTaskRequest(BaseModel):
    """Request parameters for updating a task.

    @property taskId - The task ID.
    @property updates - Fields to change.
    """

    task_id: str
    updates: TaskPatch


class TaskIdRequest(BaseModel):
    """Request parameters addressing a single task.

    @property taskId - The task ID.
    """

    task_id: str


class BulkTaskUpdateRequest(BaseModel):
    """Request parameters for updating many tasks."""

    ids: IdList
    updates: TaskPatch


class TaskFilterRequest(BaseModel):
    """Request parameters for listing tasks.

    @property sortBy - due_date | priority | created | title.
    @property sortOrder - asc | desc (default asc).
    """

    search_query: str = Field(default="", max_length=100)
    selected_tags: List[str] = Field(default_factory=list)
    statuses: List[TaskStatus] = Field(default_factory=list)
    priorities: List[TaskPriority] = Field(default_factory=list)
    sort_by: TaskSortKey = "due_date"
    sort_order: SortOrder = "asc"


# ============================================================================
# Subtasks
# ============================================================================


class SubtaskCreate(BaseModel):
    """Request parameters for adding a subtask.

    @property taskId - Parent task.
    @property title - Subtask title (1-200 chars, trimmed).
    """

    task_id: str
    title: SubtaskTitle


class SubtaskPatch(_Patch):
    non_nullable: ClassVar[Tuple[str, ...]] = ("title", "completed")

    title: Optional[SubtaskTitle] = None
    completed: Optional[bool] = None


class SubtaskUpdateRequest(BaseModel):
    """Request parameters for updating a subtask."""

    task_id: str
    subtask_id: str
    updates: SubtaskPatch


class SubtaskDeleteRequest(BaseModel):
    """Request parameters for deleting a subtask."""

    task_id: str
    subtask_id: str


# ============================================================================
# Tags & account
# ============================================================================


class TagCreate(BaseModel):
    """Request parameters for creating a custom tag.

    @property name - Letters, digits, spaces, hyphens and underscores (max 30).
    @property color - Hex color such as #A1B2C3.
    """

    name: TagName
    color: TagColor


class TagIdRequest(BaseModel):
    tag_id: str


class EnsureAccountRequest(BaseModel):
    """Request parameters for account seeding.

    @property displayName - Optional display name (max 50 chars).
    """

    display_name: Optional[str] = Field(default=None, max_length=50)


# ============================================================================
# AI
# ============================================================================


class InsightsRequest(BaseModel):
    """Request parameters for backlog insights.

    @property includeArchived - Also analyze archived ideas.
    """

    include_archived: bool = False
