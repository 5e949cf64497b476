"""Remote activities → local tasks, keyed by subject.

Activities carry no usable assignee, so every task goes to the default user.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from src.crm_sync.crm.models import TaskModel
from src.crm_sync.crm.schemas import TaskPriority
from src.crm_sync.mapping.models import RemoteType
from src.crm_sync.reconcile.base import BaseReconciler
from src.crm_sync.reconcile.fields import parse_due_date, present, to_bool

UNTITLED = "Untitled Activity"


class TaskReconciler(BaseReconciler):
    entity = "task"
    model = TaskModel
    remote_type = RemoteType.TASK
    key_column = "title"

    def business_key(self, record: dict[str, Any]) -> str:
        subject = record.get("subject")
        return subject.strip() if isinstance(subject, str) and subject.strip() else UNTITLED

    @staticmethod
    def _due_date(record: dict[str, Any]) -> datetime | None:
        return parse_due_date(record.get("due_date"), record.get("due_time"))

    def build(self, record: dict[str, Any], key: str) -> TaskModel:
        done_at = present(record.get("marked_as_done_time"))
        priority = TaskPriority.LOW if done_at else TaskPriority.MEDIUM
        return TaskModel(
            title=key,
            description=present(record.get("note")) or present(record.get("type")),
            due_date=self._due_date(record),
            completed=to_bool(record.get("done")),
            priority=priority.value,
            assignee=self._resolver.default_user(),
        )

    def changes(self, record: dict[str, Any], existing: TaskModel) -> dict[str, Any]:
        return {
            "description": present(record.get("note")),
            "due_date": self._due_date(record),
            "completed": to_bool(record.get("done")),
        }
