"""
Idea/Task record manager
CRUD for ideas, tasks, subtasks and tags on top of a RecordStoreProtocol,
with quadrant classification, the task completion rule and delete cascades.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ValidationError as PydanticValidationError

from ideatrium.core.errors import NotFound, Unauthenticated, ValidationError
from ideatrium.core.events import ChangeEvent, ChangeNotifier, SubscriptionGroup
from ideatrium.core.logger import get_logger
from ideatrium.core.models import (
    PRESET_TAGS,
    Idea,
    IdeaStatus,
    Subtask,
    Tag,
    TagCategory,
    Task,
    TaskPriority,
    TaskStatus,
    UserProfile,
    new_id,
)
from ideatrium.core.protocols import RecordStoreProtocol
from ideatrium.core.quadrant import Quadrant, classify
from ideatrium.models.requests import (
    ConvertIdeaRequest,
    IdeaCreate,
    IdeaPatch,
    SubtaskCreate,
    SubtaskPatch,
    TagCreate,
    TaskCreate,
    TaskPatch,
)

logger = get_logger(__name__)

M = TypeVar("M", bound=PydanticBaseModel)

LOCAL_USER_ID = "local"

# Default task priority when an idea is converted
QUADRANT_TASK_PRIORITY: Dict[Quadrant, TaskPriority] = {
    Quadrant.Q2: TaskPriority.HIGH,
    Quadrant.Q1: TaskPriority.MEDIUM,
}


def validate_model(model_cls: Type[M], data: Union[M, Dict[str, Any]]) -> M:
    """Coerce a dict into a request model, mapping pydantic errors to ValidationError"""
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
            for err in e.errors()
        ]
        raise ValidationError(errors=errors) from e


class UserSession:
    """The signed-in user, if any"""

    def __init__(self, user_id: Optional[str] = None):
        self.user_id = user_id

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)


class RecordManager:
    """Record manager bound to one store and one user session"""

    def __init__(
        self,
        store: RecordStoreProtocol,
        session: Optional[UserSession] = None,
        notifier: Optional[ChangeNotifier] = None,
    ):
        self.store = store
        self.session = session or UserSession()
        self.notifier = notifier

    @property
    def user_id(self) -> Optional[str]:
        return self.session.user_id

    def require_session(self) -> Optional[str]:
        if self.store.requires_auth and not self.session.is_authenticated:
            raise Unauthenticated()
        return self.session.user_id

    # ==================== Ideas ====================

    def list_ideas(self) -> List[Idea]:
        return self.store.list_ideas(self.require_session())

    def get_idea(self, idea_id: str) -> Optional[Idea]:
        return self.store.get_idea(self.require_session(), idea_id)

    def create_idea(
        self,
        title: str,
        description: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
        impact: int = 3,
        effort: int = 3,
    ) -> Idea:
        """Create an idea; quadrant is derived from impact/effort"""
        data = validate_model(
            IdeaCreate,
            {
                "title": title,
                "description": description,
                "tags": list(tags or []),
                "impact": impact,
                "effort": effort,
            },
        )
        user_id = self.require_session()

        now = datetime.now()
        idea = Idea(
            id=new_id(),
            title=data.title,
            description=data.description,
            tags=list(dict.fromkeys(data.tags)),
            impact=data.impact,
            effort=data.effort,
            quadrant=classify(data.impact, data.effort),
            status=IdeaStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
        self.store.insert_idea(user_id, idea)
        logger.info(f"✓ Idea created: {idea.id} ({idea.quadrant.value})")
        return idea

    def update_idea(
        self, idea_id: str, patch: Union[IdeaPatch, Dict[str, Any]]
    ) -> Idea:
        """Merge a partial update onto an idea

        Raises:
            NotFound: idea does not exist
        """
        changes = validate_model(IdeaPatch, patch).changes()
        user_id = self.require_session()

        idea = self.store.get_idea(user_id, idea_id)
        if idea is None:
            raise NotFound("idea", idea_id)

        for name, value in changes.items():
            if name == "tags":
                value = list(dict.fromkeys(value))
            setattr(idea, name, value)
        if "impact" in changes or "effort" in changes:
            idea.reclassify()
        idea.updated_at = datetime.now()

        if not self.store.save_idea(user_id, idea):
            raise NotFound("idea", idea_id)
        logger.debug(f"Idea updated: {idea_id} fields={sorted(changes)}")
        return idea

    def delete_idea(self, idea_id: str) -> bool:
        """Delete an idea and every task (with subtasks) created from it"""
        user_id = self.require_session()
        if self.store.get_idea(user_id, idea_id) is None:
            return False

        task_ids = self.store.task_ids_for_ideas(user_id, [idea_id])
        if task_ids:
            self.store.delete_subtasks_for_tasks(user_id, task_ids)
            self.store.delete_tasks(user_id, task_ids)
        deleted = self.store.delete_ideas(user_id, [idea_id]) > 0
        logger.info(f"✓ Idea deleted: {idea_id} (cascaded {len(task_ids)} tasks)")
        return deleted

    def archive_idea(self, idea_id: str) -> Idea:
        return self.update_idea(idea_id, {"status": IdeaStatus.ARCHIVED})

    def restore_idea(self, idea_id: str) -> Idea:
        return self.update_idea(idea_id, {"status": IdeaStatus.ACTIVE})

    # ==================== Tasks ====================

    def list_tasks(self) -> List[Task]:
        return self.store.list_tasks(self.require_session())

    def get_task(self, task_id: str) -> Optional[Task]:
        return self.store.get_task(self.require_session(), task_id)

    def create_task(
        self,
        idea_id: str,
        title: str,
        description: Optional[str] = None,
        priority: Union[TaskPriority, str] = TaskPriority.MEDIUM,
        due_date: Optional[datetime] = None,
        estimated_hours: Optional[float] = None,
        tags: Optional[Sequence[str]] = None,
        subtask_titles: Optional[Sequence[str]] = None,
    ) -> Task:
        """Create a task for an idea; subtasks start uncompleted

        Raises:
            NotFound: the idea does not exist
        """
        data = validate_model(
            TaskCreate,
            {
                "idea_id": idea_id,
                "title": title,
                "description": description,
                "priority": priority,
                "due_date": due_date,
                "estimated_hours": estimated_hours,
                "tags": list(tags or []),
                "subtasks": list(subtask_titles or []),
            },
        )
        user_id = self.require_session()
        if self.store.get_idea(user_id, data.idea_id) is None:
            raise NotFound("idea", data.idea_id)

        now = datetime.now()
        task = Task(
            id=new_id(),
            idea_id=data.idea_id,
            title=data.title,
            description=data.description,
            status=TaskStatus.NOT_STARTED,
            priority=data.priority,
            due_date=data.due_date,
            estimated_hours=data.estimated_hours,
            subtasks=[
                Subtask(id=new_id(), title=subtask_title, created_at=now)
                for subtask_title in data.subtasks
            ],
            tags=list(dict.fromkeys(data.tags)),
            created_at=now,
            updated_at=now,
        )
        self.store.insert_task(user_id, task)
        logger.info(
            f"✓ Task created: {task.id} for idea {task.idea_id} "
            f"({len(task.subtasks)} subtasks)"
        )
        return task

    def convert_idea_to_task(
        self, idea_id: str, **overrides: Any
    ) -> Task:
        """Create a task from an idea

        Title, description and tags default to the idea's; priority defaults
        from the idea's quadrant.
        """
        request = validate_model(ConvertIdeaRequest, {"idea_id": idea_id, **overrides})
        user_id = self.require_session()
        idea = self.store.get_idea(user_id, request.idea_id)
        if idea is None:
            raise NotFound("idea", request.idea_id)

        priority = request.priority or QUADRANT_TASK_PRIORITY.get(
            idea.quadrant, TaskPriority.LOW
        )
        return self.create_task(
            idea.id,
            request.title or idea.title,
            description=(
                request.description
                if "description" in request.model_fields_set
                else idea.description
            ),
            priority=priority,
            due_date=request.due_date,
            estimated_hours=request.estimated_hours,
            tags=request.tags if request.tags is not None else idea.tags,
            subtask_titles=request.subtasks,
        )

    def update_task(
        self, task_id: str, patch: Union[TaskPatch, Dict[str, Any]]
    ) -> Task:
        """Merge a partial update onto a task

        completed_at is stamped when the status moves to completed and
        cleared when it moves away.

        Raises:
            NotFound: task does not exist
        """
        changes = validate_model(TaskPatch, patch).changes()
        user_id = self.require_session()

        task = self.store.get_task(user_id, task_id)
        if task is None:
            raise NotFound("task", task_id)

        now = datetime.now()
        was_completed = task.status == TaskStatus.COMPLETED
        for name, value in changes.items():
            if name == "tags":
                value = list(dict.fromkeys(value))
            setattr(task, name, value)

        if "status" in changes:
            if task.status == TaskStatus.COMPLETED:
                if not was_completed or task.completed_at is None:
                    task.completed_at = now
            else:
                task.completed_at = None
        task.updated_at = now

        if not self.store.save_task(user_id, task):
            raise NotFound("task", task_id)
        logger.debug(f"Task updated: {task_id} fields={sorted(changes)}")
        return task

    def delete_task(self, task_id: str) -> bool:
        """Delete a task and its subtasks"""
        user_id = self.require_session()
        if self.store.get_task(user_id, task_id) is None:
            return False

        self.store.delete_subtasks_for_tasks(user_id, [task_id])
        deleted = self.store.delete_tasks(user_id, [task_id]) > 0
        logger.info(f"✓ Task deleted: {task_id}")
        return deleted

    # ==================== Subtasks ====================

    def _touch_task(self, user_id: Optional[str], task: Task) -> None:
        task.updated_at = datetime.now()
        self.store.save_task(user_id, task)

    def add_subtask(self, task_id: str, title: str) -> Optional[Subtask]:
        """Append a subtask; None when the task does not exist"""
        data = validate_model(SubtaskCreate, {"task_id": task_id, "title": title})
        user_id = self.require_session()

        task = self.store.get_task(user_id, task_id)
        if task is None:
            logger.warning(f"Cannot add subtask, task not found: {task_id}")
            return None

        subtask = Subtask(id=new_id(), title=data.title)
        self.store.insert_subtask(user_id, task_id, subtask)
        self._touch_task(user_id, task)
        return subtask

    def update_subtask(
        self,
        task_id: str,
        subtask_id: str,
        patch: Union[SubtaskPatch, Dict[str, Any]],
    ) -> Optional[Subtask]:
        """Update a subtask of the given task; None when either is unknown"""
        changes = validate_model(SubtaskPatch, patch).changes()
        user_id = self.require_session()

        task = self.store.get_task(user_id, task_id)
        subtask = task.find_subtask(subtask_id) if task else None
        if task is None or subtask is None:
            logger.warning(f"Subtask not found: {task_id}/{subtask_id}")
            return None

        for name, value in changes.items():
            setattr(subtask, name, value)
        if not self.store.save_subtask(user_id, task_id, subtask):
            return None
        self._touch_task(user_id, task)
        return subtask

    def delete_subtask(self, task_id: str, subtask_id: str) -> bool:
        user_id = self.require_session()

        task = self.store.get_task(user_id, task_id)
        if task is None or task.find_subtask(subtask_id) is None:
            logger.warning(f"Subtask not found: {task_id}/{subtask_id}")
            return False

        if not self.store.delete_subtask(user_id, task_id, subtask_id):
            return False
        self._touch_task(user_id, task)
        return True

    # ==================== Tags ====================

    def list_tags(self) -> List[Tag]:
        return self.store.list_tags(self.require_session())

    def add_tag(self, name: str, color: str) -> Tag:
        """Create a custom tag"""
        data = validate_model(TagCreate, {"name": name, "color": color})
        user_id = self.require_session()

        tag = Tag(id=new_id(), name=data.name, color=data.color, category=TagCategory.CUSTOM)
        self.store.insert_tags(user_id, [tag])
        logger.info(f"✓ Tag created: {tag.name} ({tag.id})")
        return tag

    def delete_tag(self, tag_id: str) -> bool:
        """Delete a custom tag and strip it from every idea and task

        Preset tags cannot be deleted.
        """
        user_id = self.require_session()
        tag = next((t for t in self.store.list_tags(user_id) if t.id == tag_id), None)
        if tag is None:
            return False
        if tag.category == TagCategory.PRESET:
            logger.warning(f"Refusing to delete preset tag: {tag_id}")
            return False

        self.store.delete_tag(user_id, tag_id)

        now = datetime.now()
        touched = 0
        for idea in self.store.list_ideas(user_id):
            if tag_id in idea.tags:
                idea.tags = [t for t in idea.tags if t != tag_id]
                idea.updated_at = now
                self.store.save_idea(user_id, idea)
                touched += 1
        for task in self.store.list_tasks(user_id):
            if tag_id in task.tags:
                task.tags = [t for t in task.tags if t != tag_id]
                task.updated_at = now
                self.store.save_task(user_id, task)
                touched += 1

        logger.info(f"✓ Tag deleted: {tag_id} (removed from {touched} records)")
        return True

    # ==================== Account ====================

    def ensure_account(self, display_name: Optional[str] = None) -> UserProfile:
        """Create the user profile and seed preset tags, once per account"""
        user_id = self.require_session()
        existing = self.store.get_profile(user_id)
        if existing is not None:
            return existing

        profile = UserProfile(user_id=user_id or LOCAL_USER_ID, display_name=display_name)
        self.store.insert_profile(profile)
        self.store.insert_tags(user_id, PRESET_TAGS)
        logger.info(f"✓ Account seeded with {len(PRESET_TAGS)} preset tags")
        return profile

    # ==================== Change feeds ====================

    def _subscribe(
        self,
        tables: Sequence[str],
        fetch: Callable[[], list],
        callback: Callable[[list], None],
    ) -> SubscriptionGroup:
        if self.notifier is None:
            raise RuntimeError("RecordManager was created without a change notifier")

        owner = self.user_id

        def on_change(event: ChangeEvent) -> None:
            if event.user_id is not None and event.user_id != owner:
                return
            callback(fetch())

        return SubscriptionGroup(
            [self.notifier.subscribe(table, on_change) for table in tables]
        )

    def subscribe_ideas(self, callback: Callable[[List[Idea]], None]) -> SubscriptionGroup:
        """Re-fetch all ideas on every change and hand them to callback"""
        return self._subscribe(("ideas",), self.list_ideas, callback)

    def subscribe_tasks(self, callback: Callable[[List[Task]], None]) -> SubscriptionGroup:
        """Re-fetch all tasks on every task or subtask change"""
        return self._subscribe(("tasks", "subtasks"), self.list_tasks, callback)
