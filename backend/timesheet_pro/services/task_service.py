"""
Task management and assignment notifications.
"""

import logging
from typing import List, Optional

from timesheet_pro.core.exceptions import AuthorizationError, RecordNotFoundError
from timesheet_pro.schemas.actor import LEADERSHIP_ROLES, Actor
from timesheet_pro.schemas.project import Task
from timesheet_pro.services.base_service import BaseService
from timesheet_pro.services.notification_service import NotificationService
from timesheet_pro.services.reconciliation_service import ReconciliationService
from timesheet_pro.services.toast_service import ToastService
from timesheet_pro.store.collection_store import PROJECTS, TASKS, CollectionStore
from timesheet_pro.utils.ids import new_client_id

logger = logging.getLogger(__name__)


class TaskService(BaseService):
    def __init__(
        self,
        store: CollectionStore,
        reconciler: ReconciliationService,
        notifications: NotificationService,
        toasts: ToastService,
    ):
        self.store = store
        self.reconciler = reconciler
        self.notifications = notifications
        self.toasts = toasts

    def _require_manager(self, actor: Actor, message: str) -> None:
        if actor.role not in LEADERSHIP_ROLES:
            self.toasts.add(message, "Permission Denied")
            raise AuthorizationError(message)

    def tasks_for_project(self, project_id: int) -> List[Task]:
        return [t for t in self.store.get(TASKS) if t.project_id == project_id]

    async def save(self, actor: Actor, task: Task) -> Optional[Task]:
        """
        Create or edit a task, then notify the actors newly assigned to it.
        Returns the committed task; a new task that was not committed gives
        None and notifies nobody.
        """
        self._require_manager(actor, "You do not have permission to manage tasks.")
        existing = self.store.find(TASKS, task.id) if task.id else None
        if existing is None:
            task = task.model_copy(update={"id": task.id or new_client_id()})
            committed = await self.reconciler.apply(TASKS, lambda items: items + [task])
            saved = self.reconciler.find_committed(committed, task.id)
            if saved is None:
                logger.warning(f"Task \"{task.title}\" was not saved", extra={"actor": actor.id})
                return None
            task = saved
            previous_assignees: List[int] = []
        else:
            committed = await self.reconciler.apply(
                TASKS,
                lambda items: [task if t.id == task.id else t for t in items],
            )
            saved = self.reconciler.find_committed(committed, task.id)
            if saved is None or saved.model_dump() != task.model_dump():
                logger.warning(f"Task {task.id} was not updated", extra={"actor": actor.id})
                return saved
            previous_assignees = existing.assigned_to
            self.toasts.add(f'Task "{task.title}" has been updated.', "Task Updated")

        await self.notifications.notify_task_assignment(
            actor,
            task,
            previous_assignees,
            self.store.find(PROJECTS, task.project_id),
        )
        return task

    async def delete(self, actor: Actor, task_id: int) -> None:
        self._require_manager(actor, "You do not have permission to delete tasks.")
        if self.store.find(TASKS, task_id) is None:
            raise RecordNotFoundError(f"Task {task_id} not found")
        await self.reconciler.apply(TASKS, lambda items: [t for t in items if t.id != task_id])
