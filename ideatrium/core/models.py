"""
Data model definitions
Contains core data models like Idea, Task, Subtask, Tag and UserProfile
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ideatrium.core.quadrant import Quadrant, clamp_score, classify


class IdeaStatus(str, Enum):
    """Idea status enumeration"""

    ACTIVE = "active"
    ARCHIVED = "archived"


class TaskStatus(str, Enum):
    """Task status enumeration"""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    """Task priority enumeration"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


PRIORITY_RANK: Dict[TaskPriority, int] = {
    TaskPriority.LOW: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.HIGH: 3,
    TaskPriority.URGENT: 4,
}


class TagCategory(str, Enum):
    """Tag category enumeration"""

    PRESET = "preset"
    CUSTOM = "custom"


def new_id() -> str:
    return str(uuid.uuid4())


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO string (or pass through a datetime); None stays None"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class Tag:
    """Tag data model"""

    id: str
    name: str
    color: str
    category: TagCategory = TagCategory.CUSTOM

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "category": self.category.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tag":
        return cls(
            id=data["id"],
            name=data["name"],
            color=data["color"],
            category=TagCategory(data.get("category", TagCategory.CUSTOM.value)),
        )


# Seeded once per account; never user-deletable
PRESET_TAGS: List[Tag] = [
    Tag("startup", "Startup", "#3B82F6", TagCategory.PRESET),
    Tag("project", "Project", "#10B981", TagCategory.PRESET),
    Tag("personal", "Personal", "#8B5CF6", TagCategory.PRESET),
    Tag("tech", "Tech", "#F59E0B", TagCategory.PRESET),
    Tag("work", "Work", "#EF4444", TagCategory.PRESET),
    Tag("creative", "Creative", "#EC4899", TagCategory.PRESET),
    Tag("learning", "Learning", "#06B6D4", TagCategory.PRESET),
    Tag("health", "Health", "#84CC16", TagCategory.PRESET),
    Tag("business", "Business", "#F97316", TagCategory.PRESET),
    Tag("innovation", "Innovation", "#6366F1", TagCategory.PRESET),
]


@dataclass
class Idea:
    """Idea data model

    quadrant is derived from (impact, effort) and is recomputed by every
    write path; it is never set independently.
    """

    id: str
    title: str
    impact: int
    effort: int
    quadrant: Quadrant
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    status: IdeaStatus = IdeaStatus.ACTIVE

    def reclassify(self) -> None:
        self.quadrant = classify(self.impact, self.effort)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (camelCase, as stored by the local store)"""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "impact": self.impact,
            "effort": self.effort,
            "quadrant": self.quadrant.value,
            "status": self.status.value,
            "createdAt": format_datetime(self.created_at),
            "updatedAt": format_datetime(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Idea":
        """Create instance from dictionary, repairing legacy records"""
        impact = clamp_score(data.get("impact"))
        effort = clamp_score(data.get("effort"))
        created_at = parse_datetime(data.get("createdAt")) or datetime.now()
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description") or None,
            tags=list(data.get("tags") or []),
            impact=impact,
            effort=effort,
            quadrant=classify(impact, effort),
            status=IdeaStatus(data.get("status", IdeaStatus.ACTIVE.value)),
            created_at=created_at,
            updated_at=parse_datetime(data.get("updatedAt")) or created_at,
        )


@dataclass
class Subtask:
    """Subtask data model"""

    id: str
    title: str
    completed: bool = False
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "createdAt": format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Subtask":
        return cls(
            id=data["id"],
            title=data["title"],
            completed=bool(data.get("completed", False)),
            created_at=parse_datetime(data.get("createdAt")) or datetime.now(),
        )


@dataclass
class Task:
    """Task data model

    completed_at is set if and only if status is COMPLETED.
    """

    id: str
    idea_id: str
    title: str
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.NOT_STARTED
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    estimated_hours: Optional[float] = None
    actual_hours: Optional[float] = None
    subtasks: List[Subtask] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    completed_at: Optional[datetime] = None

    @property
    def subtasks_completed_count(self) -> int:
        return sum(1 for subtask in self.subtasks if subtask.completed)

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        if self.due_date is None or self.status == TaskStatus.COMPLETED:
            return False
        now = now or datetime.now(self.due_date.tzinfo)
        return self.due_date < now

    def find_subtask(self, subtask_id: str) -> Optional[Subtask]:
        for subtask in self.subtasks:
            if subtask.id == subtask_id:
                return subtask
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "ideaId": self.idea_id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "dueDate": format_datetime(self.due_date),
            "estimatedHours": self.estimated_hours,
            "actualHours": self.actual_hours,
            "subtasks": [subtask.to_dict() for subtask in self.subtasks],
            "tags": list(self.tags),
            "createdAt": format_datetime(self.created_at),
            "updatedAt": format_datetime(self.updated_at),
            "completedAt": format_datetime(self.completed_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        created_at = parse_datetime(data.get("createdAt")) or datetime.now()
        return cls(
            id=data["id"],
            idea_id=data["ideaId"],
            title=data["title"],
            description=data.get("description") or None,
            status=TaskStatus(data.get("status", TaskStatus.NOT_STARTED.value)),
            priority=TaskPriority(data.get("priority", TaskPriority.MEDIUM.value)),
            due_date=parse_datetime(data.get("dueDate")),
            estimated_hours=data.get("estimatedHours"),
            actual_hours=data.get("actualHours"),
            subtasks=[Subtask.from_dict(s) for s in data.get("subtasks") or []],
            tags=list(data.get("tags") or []),
            created_at=created_at,
            updated_at=parse_datetime(data.get("updatedAt")) or created_at,
            completed_at=parse_datetime(data.get("completedAt")),
        )


@dataclass
class UserProfile:
    """Per-account profile; its creation seeds the preset tags"""

    user_id: str
    display_name: Optional[str] = None
    preferences: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "displayName": self.display_name,
            "preferences": dict(self.preferences),
            "createdAt": format_datetime(self.created_at),
            "updatedAt": format_datetime(self.updated_at),
        }
