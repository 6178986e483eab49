"""
Derived project totals.

A project's actual hours are the sum of the work-entry hours booked against it
in approved timesheets. The value is recomputed whenever timesheets or projects
are committed and written back only when it differs from the stored value, so
the write-back's own commit settles without further writes. A write-back the
remote store rejects under the applied-only policy commits nothing, so it is
retried on the next commit rather than in a loop.
"""

import logging
from typing import Dict, Iterable, List

from timesheet_pro.schemas.project import Project
from timesheet_pro.schemas.records import Status, Timesheet
from timesheet_pro.services.base_service import BaseService
from timesheet_pro.services.reconciliation_service import ReconciliationService
from timesheet_pro.store.collection_store import PROJECTS, TIMESHEETS, CollectionStore

logger = logging.getLogger(__name__)


def compute_actual_hours(projects: Iterable[Project], timesheets: Iterable[Timesheet]) -> Dict[int, float]:
    totals = {project.id: 0.0 for project in projects}
    for timesheet in timesheets:
        if timesheet.status != Status.APPROVED:
            continue
        for block in timesheet.project_work:
            if block.project_id in totals:
                totals[block.project_id] += block.hours
    return totals


class AggregationService(BaseService):
    """Keeps Project.actual_hours consistent with approved timesheets."""

    def __init__(self, store: CollectionStore, reconciler: ReconciliationService):
        self.store = store
        self.reconciler = reconciler

    def hours_for(self, project_id: int) -> float:
        totals = compute_actual_hours(self.store.get(PROJECTS), self.store.get(TIMESHEETS))
        return totals.get(project_id, 0.0)

    async def recompute(self) -> List[Project]:
        """
        Write back every project whose stored total is stale.

        Returns:
            The projects that were rewritten; a project whose write-back
            failed keeps its stored total and is left out
        """
        projects = self.store.get(PROJECTS)
        totals = compute_actual_hours(projects, self.store.get(TIMESHEETS))
        stale = [p for p in projects if p.actual_hours != totals[p.id]]
        if not stale:
            return []

        stale_ids = {p.id for p in stale}
        for project in stale:
            logger.info(
                f"Project {project.id} actual hours {project.actual_hours} -> {totals[project.id]}",
                extra={"project": project.id},
            )
        committed = await self.reconciler.apply(
            PROJECTS,
            lambda items: [
                item.model_copy(update={"actual_hours": totals[item.id]})
                if item.id in stale_ids and item.id in totals
                else item
                for item in items
            ],
        )
        return [
            p for p in committed
            if p.id in stale_ids and p.id in totals and p.actual_hours == totals[p.id]
        ]

    async def handle_commit(self, key: str, previous: list, current: list) -> None:
        """Store listener: recompute on timesheet or project commits."""
        if key in (TIMESHEETS, PROJECTS):
            await self.recompute()
