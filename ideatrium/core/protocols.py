"""
Type protocols for record storage

RecordManager talks to storage only through RecordStoreProtocol; the
relational DatabaseManager and the JSON LocalStore both implement it.
Every method is scoped by the owning user id (the local store ignores it).
"""

from typing import List, Optional, Protocol, Sequence

from ideatrium.core.models import Idea, Subtask, Tag, Task, UserProfile


class RecordStoreProtocol(Protocol):
    """Protocol for idea/task/tag persistence"""

    # True when writes need an authenticated owner
    requires_auth: bool

    # ==================== Ideas ====================

    def list_ideas(self, user_id: Optional[str]) -> List[Idea]:
        """All ideas of the owner, newest first"""
        ...

    def get_idea(self, user_id: Optional[str], idea_id: str) -> Optional[Idea]:
        ...

    def insert_idea(self, user_id: Optional[str], idea: Idea) -> None:
        ...

    def save_idea(self, user_id: Optional[str], idea: Idea) -> bool:
        """Overwrite an existing idea row; False if it no longer exists"""
        ...

    def delete_ideas(self, user_id: Optional[str], idea_ids: Sequence[str]) -> int:
        ...

    # ==================== Tasks ====================

    def list_tasks(self, user_id: Optional[str]) -> List[Task]:
        """All tasks of the owner with their subtasks, newest first"""
        ...

    def get_task(self, user_id: Optional[str], task_id: str) -> Optional[Task]:
        ...

    def task_ids_for_ideas(
        self, user_id: Optional[str], idea_ids: Sequence[str]
    ) -> List[str]:
        ...

    def insert_task(self, user_id: Optional[str], task: Task) -> None:
        """Insert the task row and its subtasks"""
        ...

    def save_task(self, user_id: Optional[str], task: Task) -> bool:
        """Overwrite the task row (subtasks are written separately)"""
        ...

    def delete_tasks(self, user_id: Optional[str], task_ids: Sequence[str]) -> int:
        ...

    # ==================== Subtasks ====================

    def insert_subtask(
        self, user_id: Optional[str], task_id: str, subtask: Subtask
    ) -> None:
        ...

    def save_subtask(
        self, user_id: Optional[str], task_id: str, subtask: Subtask
    ) -> bool:
        ...

    def delete_subtask(
        self, user_id: Optional[str], task_id: str, subtask_id: str
    ) -> int:
        ...

    def delete_subtasks_for_tasks(
        self, user_id: Optional[str], task_ids: Sequence[str]
    ) -> int:
        ...

    # ==================== Tags & profiles ====================

    def list_tags(self, user_id: Optional[str]) -> List[Tag]:
        ...

    def insert_tags(self, user_id: Optional[str], tags: Sequence[Tag]) -> None:
        ...

    def delete_tag(self, user_id: Optional[str], tag_id: str) -> int:
        ...

    def get_profile(self, user_id: Optional[str]) -> Optional[UserProfile]:
        ...

    def insert_profile(self, profile: UserProfile) -> None:
        ...
