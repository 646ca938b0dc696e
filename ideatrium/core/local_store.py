"""
Local JSON store
Single-user fallback persistence mirroring the browser-storage layout:
one JSON document with the keys ideabox-ideas, ideabox-tags and
ideabox-tasks, each holding a list of camelCase records (newest first).
"""

import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ideatrium.core.errors import BackendError
from ideatrium.core.events import ChangeNotifier
from ideatrium.core.logger import get_logger
from ideatrium.core.models import (
    PRESET_TAGS,
    Idea,
    Subtask,
    Tag,
    Task,
    UserProfile,
    parse_datetime,
)

logger = get_logger(__name__)

IDEAS_KEY = "ideabox-ideas"
TAGS_KEY = "ideabox-tags"
TASKS_KEY = "ideabox-tasks"
PROFILE_KEY = "ideabox-profile"


class LocalStore:
    """JSON document store; user ids are accepted and ignored"""

    requires_auth = False

    def __init__(
        self,
        path: Optional[str] = None,
        notifier: Optional[ChangeNotifier] = None,
    ):
        if path is None:
            from ideatrium.core.paths import get_local_storage_path

            path = str(get_local_storage_path())

        self.path = Path(path)
        self.notifier = notifier
        self._lock = threading.RLock()
        self._document: Optional[Dict[str, Any]] = None

    # ==================== Document I/O ====================

    def _load(self) -> Dict[str, Any]:
        if self._document is not None:
            return self._document

        document: Dict[str, Any] = {}
        if self.path.exists():
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    document = json.load(f) or {}
            except json.JSONDecodeError as e:
                # Same as a browser with unreadable storage: start from defaults
                logger.warning(f"Local store is corrupt, starting empty: {e}")
                document = {}
            except OSError as e:
                raise BackendError(f"Cannot read local store {self.path}: {e}") from e

        document.setdefault(IDEAS_KEY, [])
        document.setdefault(TASKS_KEY, [])
        if not document.get(TAGS_KEY):
            document[TAGS_KEY] = [tag.to_dict() for tag in PRESET_TAGS]
            logger.info("Seeded preset tags into local store")

        self._document = document
        return document

    def _flush(self) -> None:
        if self._document is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._document, f, ensure_ascii=False, indent=2)
            tmp_path.replace(self.path)
        except OSError as e:
            # Drop the unsaved change; the next read reloads what is on disk
            self._document = None
            raise BackendError(f"Cannot write local store {self.path}: {e}") from e

    def _emit(self, table: str, event_type: str, record_id: Optional[str]) -> None:
        if self.notifier is not None:
            self.notifier.emit(table, event_type, record_id, None)

    def _records(self, key: str) -> List[Dict[str, Any]]:
        return self._load()[key]

    @staticmethod
    def _index_of(records: List[Dict[str, Any]], record_id: str) -> int:
        for index, record in enumerate(records):
            if record.get("id") == record_id:
                return index
        return -1

    # ==================== Ideas ====================

    def list_ideas(self, user_id: Optional[str] = None) -> List[Idea]:
        with self._lock:
            return [Idea.from_dict(record) for record in self._records(IDEAS_KEY)]

    def get_idea(self, user_id: Optional[str], idea_id: str) -> Optional[Idea]:
        with self._lock:
            records = self._records(IDEAS_KEY)
            index = self._index_of(records, idea_id)
            return Idea.from_dict(records[index]) if index >= 0 else None

    def insert_idea(self, user_id: Optional[str], idea: Idea) -> None:
        with self._lock:
            self._records(IDEAS_KEY).insert(0, idea.to_dict())
            self._flush()
        self._emit("ideas", "insert", idea.id)

    def save_idea(self, user_id: Optional[str], idea: Idea) -> bool:
        with self._lock:
            records = self._records(IDEAS_KEY)
            index = self._index_of(records, idea.id)
            if index < 0:
                return False
            records[index] = idea.to_dict()
            self._flush()
        self._emit("ideas", "update", idea.id)
        return True

    def delete_ideas(self, user_id: Optional[str], idea_ids: Sequence[str]) -> int:
        targets = set(idea_ids)
        with self._lock:
            records = self._records(IDEAS_KEY)
            kept = [record for record in records if record.get("id") not in targets]
            deleted = len(records) - len(kept)
            self._load()[IDEAS_KEY] = kept
            if deleted:
                self._flush()
        for idea_id in idea_ids:
            self._emit("ideas", "delete", idea_id)
        return deleted

    # ==================== Tasks ====================

    def list_tasks(self, user_id: Optional[str] = None) -> List[Task]:
        with self._lock:
            return [Task.from_dict(record) for record in self._records(TASKS_KEY)]

    def get_task(self, user_id: Optional[str], task_id: str) -> Optional[Task]:
        with self._lock:
            records = self._records(TASKS_KEY)
            index = self._index_of(records, task_id)
            return Task.from_dict(records[index]) if index >= 0 else None

    def task_ids_for_ideas(
        self, user_id: Optional[str], idea_ids: Sequence[str]
    ) -> List[str]:
        targets = set(idea_ids)
        with self._lock:
            return [
                record["id"]
                for record in self._records(TASKS_KEY)
                if record.get("ideaId") in targets
            ]

    def insert_task(self, user_id: Optional[str], task: Task) -> None:
        with self._lock:
            self._records(TASKS_KEY).insert(0, task.to_dict())
            self._flush()
        self._emit("tasks", "insert", task.id)

    def save_task(self, user_id: Optional[str], task: Task) -> bool:
        with self._lock:
            records = self._records(TASKS_KEY)
            index = self._index_of(records, task.id)
            if index < 0:
                return False
            # Subtasks are owned by the subtask methods; keep the stored list
            record = task.to_dict()
            record["subtasks"] = records[index].get("subtasks", [])
            records[index] = record
            self._flush()
        self._emit("tasks", "update", task.id)
        return True

    def delete_tasks(self, user_id: Optional[str], task_ids: Sequence[str]) -> int:
        targets = set(task_ids)
        with self._lock:
            records = self._records(TASKS_KEY)
            kept = [record for record in records if record.get("id") not in targets]
            deleted = len(records) - len(kept)
            self._load()[TASKS_KEY] = kept
            if deleted:
                self._flush()
        for task_id in task_ids:
            self._emit("tasks", "delete", task_id)
        return deleted

    # ==================== Subtasks ====================

    def _task_record(self, task_id: str) -> Optional[Dict[str, Any]]:
        records = self._records(TASKS_KEY)
        index = self._index_of(records, task_id)
        return records[index] if index >= 0 else None

    def insert_subtask(
        self, user_id: Optional[str], task_id: str, subtask: Subtask
    ) -> None:
        with self._lock:
            record = self._task_record(task_id)
            if record is None:
                return
            record.setdefault("subtasks", []).append(subtask.to_dict())
            self._flush()
        self._emit("subtasks", "insert", subtask.id)

    def save_subtask(
        self, user_id: Optional[str], task_id: str, subtask: Subtask
    ) -> bool:
        with self._lock:
            record = self._task_record(task_id)
            if record is None:
                return False
            subtasks = record.get("subtasks", [])
            index = self._index_of(subtasks, subtask.id)
            if index < 0:
                return False
            subtasks[index] = subtask.to_dict()
            self._flush()
        self._emit("subtasks", "update", subtask.id)
        return True

    def delete_subtask(
        self, user_id: Optional[str], task_id: str, subtask_id: str
    ) -> int:
        with self._lock:
            record = self._task_record(task_id)
            if record is None:
                return 0
            subtasks = record.get("subtasks", [])
            index = self._index_of(subtasks, subtask_id)
            if index < 0:
                return 0
            del subtasks[index]
            self._flush()
        self._emit("subtasks", "delete", subtask_id)
        return 1

    def delete_subtasks_for_tasks(
        self, user_id: Optional[str], task_ids: Sequence[str]
    ) -> int:
        deleted = 0
        with self._lock:
            for task_id in task_ids:
                record = self._task_record(task_id)
                if record is not None:
                    deleted += len(record.get("subtasks", []))
                    record["subtasks"] = []
            if deleted:
                self._flush()
        if deleted:
            self._emit("subtasks", "delete", None)
        return deleted

    # ==================== Tags ====================

    def list_tags(self, user_id: Optional[str] = None) -> List[Tag]:
        with self._lock:
            return [Tag.from_dict(record) for record in self._records(TAGS_KEY)]

    def insert_tags(self, user_id: Optional[str], tags: Sequence[Tag]) -> None:
        inserted = []
        with self._lock:
            records = self._records(TAGS_KEY)
            for tag in tags:
                if self._index_of(records, tag.id) < 0:
                    records.append(tag.to_dict())
                    inserted.append(tag.id)
            if inserted:
                self._flush()
        for tag_id in inserted:
            self._emit("tags", "insert", tag_id)

    def delete_tag(self, user_id: Optional[str], tag_id: str) -> int:
        with self._lock:
            records = self._records(TAGS_KEY)
            index = self._index_of(records, tag_id)
            if index < 0:
                return 0
            del records[index]
            self._flush()
        self._emit("tags", "delete", tag_id)
        return 1

    # ==================== Profile ====================

    def get_profile(self, user_id: Optional[str] = None) -> Optional[UserProfile]:
        with self._lock:
            data = self._load().get(PROFILE_KEY)
        if not data:
            return None
        return UserProfile(
            user_id=data.get("userId") or "local",
            display_name=data.get("displayName"),
            preferences=data.get("preferences") or {},
            created_at=parse_datetime(data.get("createdAt")),
            updated_at=parse_datetime(data.get("updatedAt")),
        )

    def insert_profile(self, profile: UserProfile) -> None:
        with self._lock:
            document = self._load()
            if document.get(PROFILE_KEY):
                return
            document[PROFILE_KEY] = profile.to_dict()
            self._flush()
        self._emit("user_profiles", "insert", profile.user_id)
        logger.info(f"✓ Local profile created: {profile.user_id}")
