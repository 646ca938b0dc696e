"""
Bulk operation coordinator
Applies one patch or deletion to many records. Every id goes through the
record manager on its own, so quadrant recomputation and delete cascades
happen per record; a failing record is logged and skipped.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Sequence, Union

from ideatrium.core.errors import BackendError, NotFound
from ideatrium.core.logger import get_logger
from ideatrium.core.models import IdeaStatus
from ideatrium.core.quadrant import Quadrant, preset_scores
from ideatrium.core.records import RecordManager, validate_model
from ideatrium.models.requests import IdeaPatch, TaskPatch

logger = get_logger(__name__)

ENTITIES = ("idea", "task")


@dataclass
class BulkResult:
    """Per-batch outcome"""

    affected: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.affected)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "affected": list(self.affected),
            "skipped": list(self.skipped),
            "failed": list(self.failed),
        }


class BulkCoordinator:
    """Best-effort batch updates and deletes on top of a RecordManager"""

    def __init__(self, records: RecordManager):
        self.records = records

    @staticmethod
    def _check_entity(entity: str) -> None:
        if entity not in ENTITIES:
            raise ValueError(f"Unknown bulk entity: {entity}")

    def _run(self, ids: Sequence[str], action: Callable[[str], bool], label: str) -> BulkResult:
        result = BulkResult()
        for record_id in dict.fromkeys(ids):
            try:
                if action(record_id):
                    result.affected.append(record_id)
                else:
                    result.skipped.append(record_id)
            except NotFound:
                result.skipped.append(record_id)
            except BackendError as e:
                logger.error(f"Bulk {label} failed for {record_id}: {e.message}")
                result.failed.append(record_id)

        logger.info(
            f"Bulk {label}: {len(result.affected)} affected, "
            f"{len(result.skipped)} skipped, {len(result.failed)} failed"
        )
        return result

    def update(
        self,
        ids: Sequence[str],
        updates: Union[IdeaPatch, TaskPatch, Dict[str, Any]],
        entity: str = "idea",
    ) -> BulkResult:
        """Apply one patch to every id; the patch is validated before any write"""
        self._check_entity(entity)
        self.records.require_session()

        if entity == "idea":
            patch = validate_model(IdeaPatch, updates)
            return self._run(
                ids, lambda record_id: bool(self.records.update_idea(record_id, patch)), "idea update"
            )

        task_patch = validate_model(TaskPatch, updates)
        return self._run(
            ids, lambda record_id: bool(self.records.update_task(record_id, task_patch)), "task update"
        )

    def delete(self, ids: Sequence[str], entity: str = "idea") -> BulkResult:
        """Delete every id, cascading per record"""
        self._check_entity(entity)
        self.records.require_session()

        if entity == "idea":
            return self._run(ids, self.records.delete_idea, "idea delete")
        return self._run(ids, self.records.delete_task, "task delete")

    def bulk_update(
        self,
        ids: Sequence[str],
        updates: Union[IdeaPatch, TaskPatch, Dict[str, Any]],
        entity: str = "idea",
    ) -> bool:
        """True when at least one record was updated"""
        return self.update(ids, updates, entity).success

    def bulk_delete(self, ids: Sequence[str], entity: str = "idea") -> bool:
        """True when at least one record was deleted"""
        return self.delete(ids, entity).success

    def set_quadrant(self, ids: Sequence[str], quadrant: Union[Quadrant, str]) -> BulkResult:
        """Move ideas to a quadrant by applying its representative scores"""
        impact, effort = preset_scores(Quadrant(quadrant))
        return self.update(ids, {"impact": impact, "effort": effort}, "idea")

    def bulk_set_quadrant(self, ids: Sequence[str], quadrant: Union[Quadrant, str]) -> bool:
        return self.set_quadrant(ids, quadrant).success

    def bulk_archive(self, ids: Sequence[str]) -> bool:
        return self.update(ids, {"status": IdeaStatus.ARCHIVED}, "idea").success

    def bulk_restore(self, ids: Sequence[str]) -> bool:
        return self.update(ids, {"status": IdeaStatus.ACTIVE}, "idea").success

    def toggle_tag(self, ids: Sequence[str], tag_id: str) -> BulkResult:
        """Add tag_id to ideas that lack it and remove it from ideas that have it"""
        self.records.require_session()

        def toggle(record_id: str) -> bool:
            idea = self.records.get_idea(record_id)
            if idea is None:
                return False
            if tag_id in idea.tags:
                tags = [t for t in idea.tags if t != tag_id]
            else:
                tags = idea.tags + [tag_id]
            return bool(self.records.update_idea(record_id, {"tags": tags}))

        return self._run(ids, toggle, "tag toggle")

    def bulk_toggle_tag(self, ids: Sequence[str], tag_id: str) -> bool:
        return self.toggle_tag(ids, tag_id).success
