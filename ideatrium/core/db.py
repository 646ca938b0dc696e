"""
SQLite database wrapper
Owner-scoped persistence for ideas, tasks, subtasks, tags and user profiles
"""

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ideatrium.core.errors import BackendError, Unauthenticated
from ideatrium.core.events import ChangeNotifier
from ideatrium.core.logger import get_logger
from ideatrium.core.models import (
    Idea,
    IdeaStatus,
    Subtask,
    Tag,
    TagCategory,
    Task,
    TaskPriority,
    TaskStatus,
    UserProfile,
    format_datetime,
    parse_datetime,
)
from ideatrium.core.quadrant import clamp_score, classify
from ideatrium.core.sqls import queries, schema

logger = get_logger(__name__)


def _placeholders(values: Sequence[Any]) -> str:
    return ", ".join("?" for _ in values)


def _load_json(value: Optional[str], default: Any) -> Any:
    if not value:
        return default
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        logger.warning(f"Discarding malformed JSON column value: {value!r}")
        return default


class DatabaseManager:
    """Database manager"""

    requires_auth = True

    def __init__(
        self,
        db_path: Optional[str] = None,
        notifier: Optional[ChangeNotifier] = None,
    ):
        # If no path is provided, use the unified data directory
        if db_path is None:
            from ideatrium.core.paths import get_db_path

            db_path = str(get_db_path())

        self.db_path = db_path
        self.notifier = notifier
        self._init_database()

    def _init_database(self):
        """Initialize database"""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._create_tables()
        logger.info(f"Database initialization completed: {self.db_path}")

    def _create_tables(self):
        """Create database tables"""
        with self.get_connection() as conn:
            cursor = conn.cursor()

            for table_sql in schema.ALL_TABLES:
                cursor.execute(table_sql)

            for index_sql in schema.ALL_INDEXES:
                cursor.execute(index_sql)

            conn.commit()
            logger.info("Database table creation completed")

    @contextmanager
    def get_connection(self):
        """Get database connection context manager"""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise BackendError(f"Cannot open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row  # Enable column name access for results
        try:
            yield conn
        except sqlite3.Error as e:
            logger.error(f"Database operation failed: {e}")
            raise BackendError(str(e)) from e
        finally:
            conn.close()

    def execute_query(self, query: str, params: Tuple = ()) -> List[Dict[str, Any]]:
        """Execute query and return results"""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            rows = cursor.fetchall()
            return [dict(row) for row in rows]

    def execute_insert(self, query: str, params: Tuple = ()) -> int:
        """Execute insert operation and return affected row count"""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            conn.commit()
            return cursor.rowcount

    def execute_many(self, query: str, rows: Sequence[Tuple]) -> int:
        """Execute one statement for many parameter rows in a single transaction"""
        if not rows:
            return 0
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.executemany(query, rows)
            conn.commit()
            return cursor.rowcount

    def execute_update(self, query: str, params: Tuple = ()) -> int:
        """Execute update operation and return affected row count"""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            conn.commit()
            return cursor.rowcount

    def execute_delete(self, query: str, params: Tuple = ()) -> int:
        """Execute delete operation and return affected row count"""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            conn.commit()
            return cursor.rowcount

    def _owner(self, user_id: Optional[str]) -> str:
        if not user_id:
            raise Unauthenticated()
        return user_id

    def _emit(
        self,
        table: str,
        event_type: str,
        record_id: Optional[str],
        user_id: Optional[str],
    ) -> None:
        if self.notifier is not None:
            self.notifier.emit(table, event_type, record_id, user_id)

    # ==================== Row conversion ====================

    @staticmethod
    def _row_to_idea(row: Dict[str, Any]) -> Idea:
        impact = clamp_score(row.get("impact"))
        effort = clamp_score(row.get("effort"))
        created_at = parse_datetime(row["created_at"])
        return Idea(
            id=row["id"],
            title=row["title"],
            description=row.get("description") or None,
            tags=_load_json(row.get("tags"), []),
            impact=impact,
            effort=effort,
            # Stored quadrant is advisory; the scores are authoritative
            quadrant=classify(impact, effort),
            status=IdeaStatus(row.get("status") or IdeaStatus.ACTIVE.value),
            created_at=created_at,
            updated_at=parse_datetime(row.get("updated_at")) or created_at,
        )

    @staticmethod
    def _row_to_subtask(row: Dict[str, Any]) -> Subtask:
        return Subtask(
            id=row["id"],
            title=row["title"],
            completed=bool(row.get("completed")),
            created_at=parse_datetime(row["created_at"]),
        )

    @staticmethod
    def _row_to_task(row: Dict[str, Any], subtasks: List[Subtask]) -> Task:
        created_at = parse_datetime(row["created_at"])
        return Task(
            id=row["id"],
            idea_id=row["idea_id"],
            title=row["title"],
            description=row.get("description") or None,
            status=TaskStatus(row.get("status") or TaskStatus.NOT_STARTED.value),
            priority=TaskPriority(row.get("priority") or TaskPriority.MEDIUM.value),
            due_date=parse_datetime(row.get("due_date")),
            estimated_hours=row.get("estimated_hours"),
            actual_hours=row.get("actual_hours"),
            subtasks=subtasks,
            tags=_load_json(row.get("tags"), []),
            created_at=created_at,
            updated_at=parse_datetime(row.get("updated_at")) or created_at,
            completed_at=parse_datetime(row.get("completed_at")),
        )

    # ==================== Ideas ====================

    def list_ideas(self, user_id: Optional[str]) -> List[Idea]:
        rows = self.execute_query(queries.SELECT_IDEAS, (self._owner(user_id),))
        return [self._row_to_idea(row) for row in rows]

    def get_idea(self, user_id: Optional[str], idea_id: str) -> Optional[Idea]:
        rows = self.execute_query(
            queries.SELECT_IDEA_BY_ID, (self._owner(user_id), idea_id)
        )
        return self._row_to_idea(rows[0]) if rows else None

    def insert_idea(self, user_id: Optional[str], idea: Idea) -> None:
        owner = self._owner(user_id)
        params = (
            idea.id,
            owner,
            idea.title,
            idea.description,
            json.dumps(idea.tags),
            idea.impact,
            idea.effort,
            idea.quadrant.value,
            idea.status.value,
            format_datetime(idea.created_at),
            format_datetime(idea.updated_at),
        )
        self.execute_insert(queries.INSERT_IDEA, params)
        self._emit("ideas", "insert", idea.id, owner)

    def save_idea(self, user_id: Optional[str], idea: Idea) -> bool:
        owner = self._owner(user_id)
        params = (
            idea.title,
            idea.description,
            json.dumps(idea.tags),
            idea.impact,
            idea.effort,
            idea.quadrant.value,
            idea.status.value,
            format_datetime(idea.updated_at),
            owner,
            idea.id,
        )
        updated = self.execute_update(queries.UPDATE_IDEA, params)
        if updated:
            self._emit("ideas", "update", idea.id, owner)
        return updated > 0

    def delete_ideas(self, user_id: Optional[str], idea_ids: Sequence[str]) -> int:
        owner = self._owner(user_id)
        if not idea_ids:
            return 0
        query = queries.DELETE_IDEAS.format(placeholders=_placeholders(idea_ids))
        deleted = self.execute_delete(query, (owner, *idea_ids))
        for idea_id in idea_ids:
            self._emit("ideas", "delete", idea_id, owner)
        return deleted

    # ==================== Tasks ====================

    def _subtasks_by_task(self, owner: str) -> Dict[str, List[Subtask]]:
        grouped: Dict[str, List[Subtask]] = {}
        for row in self.execute_query(queries.SELECT_SUBTASKS_BY_USER, (owner,)):
            grouped.setdefault(row["task_id"], []).append(self._row_to_subtask(row))
        return grouped

    def list_tasks(self, user_id: Optional[str]) -> List[Task]:
        owner = self._owner(user_id)
        rows = self.execute_query(queries.SELECT_TASKS, (owner,))
        subtasks = self._subtasks_by_task(owner)
        return [self._row_to_task(row, subtasks.get(row["id"], [])) for row in rows]

    def get_task(self, user_id: Optional[str], task_id: str) -> Optional[Task]:
        owner = self._owner(user_id)
        rows = self.execute_query(queries.SELECT_TASK_BY_ID, (owner, task_id))
        if not rows:
            return None
        subtask_rows = self.execute_query(
            queries.SELECT_SUBTASKS_BY_TASK, (owner, task_id)
        )
        return self._row_to_task(
            rows[0], [self._row_to_subtask(row) for row in subtask_rows]
        )

    def task_ids_for_ideas(
        self, user_id: Optional[str], idea_ids: Sequence[str]
    ) -> List[str]:
        owner = self._owner(user_id)
        if not idea_ids:
            return []
        query = queries.SELECT_TASK_IDS_BY_IDEAS.format(
            placeholders=_placeholders(idea_ids)
        )
        return [row["id"] for row in self.execute_query(query, (owner, *idea_ids))]

    def insert_task(self, user_id: Optional[str], task: Task) -> None:
        owner = self._owner(user_id)
        params = (
            task.id,
            owner,
            task.idea_id,
            task.title,
            task.description,
            task.status.value,
            task.priority.value,
            format_datetime(task.due_date),
            task.estimated_hours,
            task.actual_hours,
            json.dumps(task.tags),
            format_datetime(task.created_at),
            format_datetime(task.updated_at),
            format_datetime(task.completed_at),
        )
        subtask_rows = [
            (
                subtask.id,
                subtask.title,
                int(subtask.completed),
                format_datetime(subtask.created_at),
                owner,
                task.id,
            )
            for subtask in task.subtasks
        ]
        # Task and subtasks commit together
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(queries.INSERT_TASK, params)
            if subtask_rows:
                cursor.executemany(queries.INSERT_SUBTASK, subtask_rows)
            conn.commit()

        self._emit("tasks", "insert", task.id, owner)
        for subtask in task.subtasks:
            self._emit("subtasks", "insert", subtask.id, owner)

    def save_task(self, user_id: Optional[str], task: Task) -> bool:
        owner = self._owner(user_id)
        params = (
            task.title,
            task.description,
            task.status.value,
            task.priority.value,
            format_datetime(task.due_date),
            task.estimated_hours,
            task.actual_hours,
            json.dumps(task.tags),
            format_datetime(task.updated_at),
            format_datetime(task.completed_at),
            owner,
            task.id,
        )
        updated = self.execute_update(queries.UPDATE_TASK, params)
        if updated:
            self._emit("tasks", "update", task.id, owner)
        return updated > 0

    def delete_tasks(self, user_id: Optional[str], task_ids: Sequence[str]) -> int:
        owner = self._owner(user_id)
        if not task_ids:
            return 0
        query = queries.DELETE_TASKS.format(placeholders=_placeholders(task_ids))
        deleted = self.execute_delete(query, (owner, *task_ids))
        for task_id in task_ids:
            self._emit("tasks", "delete", task_id, owner)
        return deleted

    # ==================== Subtasks ====================

    def insert_subtask(
        self, user_id: Optional[str], task_id: str, subtask: Subtask
    ) -> None:
        owner = self._owner(user_id)
        params = (
            subtask.id,
            subtask.title,
            int(subtask.completed),
            format_datetime(subtask.created_at),
            owner,
            task_id,
        )
        if self.execute_insert(queries.INSERT_SUBTASK, params):
            self._emit("subtasks", "insert", subtask.id, owner)

    def save_subtask(
        self, user_id: Optional[str], task_id: str, subtask: Subtask
    ) -> bool:
        owner = self._owner(user_id)
        params = (subtask.title, int(subtask.completed), subtask.id, owner, task_id)
        updated = self.execute_update(queries.UPDATE_SUBTASK, params)
        if updated:
            self._emit("subtasks", "update", subtask.id, owner)
        return updated > 0

    def delete_subtask(
        self, user_id: Optional[str], task_id: str, subtask_id: str
    ) -> int:
        owner = self._owner(user_id)
        deleted = self.execute_delete(
            queries.DELETE_SUBTASK, (subtask_id, owner, task_id)
        )
        if deleted:
            self._emit("subtasks", "delete", subtask_id, owner)
        return deleted

    def delete_subtasks_for_tasks(
        self, user_id: Optional[str], task_ids: Sequence[str]
    ) -> int:
        owner = self._owner(user_id)
        if not task_ids:
            return 0
        query = queries.DELETE_SUBTASKS_BY_TASKS.format(
            placeholders=_placeholders(task_ids)
        )
        deleted = self.execute_delete(query, (owner, *task_ids))
        if deleted:
            self._emit("subtasks", "delete", None, owner)
        return deleted

    # ==================== Tags ====================

    def list_tags(self, user_id: Optional[str]) -> List[Tag]:
        rows = self.execute_query(queries.SELECT_TAGS, (self._owner(user_id),))
        return [
            Tag(
                id=row["id"],
                name=row["name"],
                color=row["color"],
                category=TagCategory(row.get("category") or TagCategory.CUSTOM.value),
            )
            for row in rows
        ]

    def insert_tags(self, user_id: Optional[str], tags: Sequence[Tag]) -> None:
        owner = self._owner(user_id)
        rows = [
            (tag.id, owner, tag.name, tag.color, tag.category.value) for tag in tags
        ]
        if self.execute_many(queries.INSERT_TAG, rows):
            for tag in tags:
                self._emit("tags", "insert", tag.id, owner)

    def delete_tag(self, user_id: Optional[str], tag_id: str) -> int:
        owner = self._owner(user_id)
        deleted = self.execute_delete(queries.DELETE_TAG, (owner, tag_id))
        if deleted:
            self._emit("tags", "delete", tag_id, owner)
        return deleted

    # ==================== User profiles ====================

    def get_profile(self, user_id: Optional[str]) -> Optional[UserProfile]:
        rows = self.execute_query(queries.SELECT_USER_PROFILE, (self._owner(user_id),))
        if not rows:
            return None
        row = rows[0]
        return UserProfile(
            user_id=row["user_id"],
            display_name=row.get("display_name"),
            preferences=_load_json(row.get("preferences"), {}),
            created_at=parse_datetime(row["created_at"]),
            updated_at=parse_datetime(row["updated_at"]),
        )

    def insert_profile(self, profile: UserProfile) -> None:
        owner = self._owner(profile.user_id)
        params = (
            owner,
            profile.display_name,
            json.dumps(profile.preferences),
            format_datetime(profile.created_at),
            format_datetime(profile.updated_at),
        )
        if self.execute_insert(queries.INSERT_USER_PROFILE, params):
            self._emit("user_profiles", "insert", owner, owner)
            logger.info(f"✓ User profile created: {owner}")
