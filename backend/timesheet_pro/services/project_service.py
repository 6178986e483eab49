"""
Project management.
"""

import logging
from typing import List, Optional

from timesheet_pro.core.exceptions import AuthorizationError, RecordNotFoundError
from timesheet_pro.schemas.actor import LEADERSHIP_ROLES, Actor, Role
from timesheet_pro.schemas.project import Project
from timesheet_pro.services.aggregation_service import AggregationService
from timesheet_pro.services.base_service import BaseService
from timesheet_pro.services.reconciliation_service import ReconciliationService
from timesheet_pro.services.toast_service import ToastService
from timesheet_pro.store.collection_store import PROJECTS, TASKS, CollectionStore
from timesheet_pro.utils.ids import new_client_id

logger = logging.getLogger(__name__)


def can_delete_project(actor: Actor, project: Project) -> bool:
    if actor.role in (Role.MANAGER, Role.ADMIN):
        return True
    return actor.role == Role.TEAM_LEADER and project.team_leader_id == actor.id


class ProjectService(BaseService):
    """Create, edit and delete projects of the actor's company."""

    def __init__(
        self,
        store: CollectionStore,
        reconciler: ReconciliationService,
        aggregation: AggregationService,
        toasts: ToastService,
    ):
        self.store = store
        self.reconciler = reconciler
        self.aggregation = aggregation
        self.toasts = toasts

    def visible_projects(self, actor: Actor) -> List[Project]:
        """Company projects; a team leader sees only the projects they lead or belong to."""
        projects = [
            p for p in self.store.get(PROJECTS)
            if actor.role == Role.SUPERADMIN or p.company_id == actor.company_id
        ]
        if actor.role == Role.TEAM_LEADER:
            projects = [p for p in projects if p.team_leader_id == actor.id or actor.id in p.team_ids]
        return projects

    async def save(self, actor: Actor, project: Project) -> Optional[Project]:
        """
        Create (id 0 or unknown) or edit a project.

        The company is forced to the actor's and any supplied actual hours are
        replaced with the aggregated value. Returns the committed project, or
        None when a new project was not committed.
        """
        if actor.role not in LEADERSHIP_ROLES:
            raise AuthorizationError("You do not have permission to manage projects.")
        is_new = not project.id or self.store.find(PROJECTS, project.id) is None
        project_id = new_client_id() if not project.id else project.id
        project = project.model_copy(
            update={
                "id": project_id,
                "company_id": actor.company_id,
                "actual_hours": self.aggregation.hours_for(project_id),
            }
        )
        if is_new:
            committed = await self.reconciler.apply(PROJECTS, lambda items: items + [project])
            saved = self.reconciler.find_committed(committed, project.id)
            if saved is not None:
                logger.info(f"Project {saved.id} created", extra={"actor": actor.id})
        else:
            committed = await self.reconciler.apply(
                PROJECTS,
                lambda items: [project if item.id == project.id else item for item in items],
            )
            saved = self.reconciler.find_committed(committed, project.id)
            logger.info(f"Project {project.id} updated", extra={"actor": actor.id})
        return saved

    async def delete(self, actor: Actor, project_id: int) -> None:
        """Delete a project and, first, all of its tasks."""
        project = self.store.find(PROJECTS, project_id)
        if project is None:
            raise RecordNotFoundError(f"Project {project_id} not found")
        if not can_delete_project(actor, project):
            self.toasts.add("You do not have permission to delete this project.", "Permission Denied")
            raise AuthorizationError("You do not have permission to delete this project.")
        await self.reconciler.apply(TASKS, lambda items: [t for t in items if t.project_id != project_id])
        await self.reconciler.apply(PROJECTS, lambda items: [p for p in items if p.id != project_id])
        logger.info(f"Project {project_id} deleted", extra={"actor": actor.id})
