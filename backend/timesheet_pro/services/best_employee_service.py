"""
Best-employee designations of the current month and year.
"""

import logging
from typing import List

from timesheet_pro.core.exceptions import AuthorizationError
from timesheet_pro.schemas.actor import Actor, Role
from timesheet_pro.schemas.best_employee import BestEmployee, DesignationPeriod
from timesheet_pro.services.base_service import BaseService
from timesheet_pro.services.reconciliation_service import ReconciliationService
from timesheet_pro.services.toast_service import ToastService
from timesheet_pro.store.collection_store import BEST_EMPLOYEES, CollectionStore
from timesheet_pro.utils.dates import utcnow
from timesheet_pro.utils.ids import new_client_id

logger = logging.getLogger(__name__)

DESIGNATING_ROLES = (Role.ADMIN, Role.MANAGER, Role.SUPERADMIN)


def current_period(period: DesignationPeriod, now=None):
    """(month name, year) of the period containing `now`; the yearly period has no month."""
    now = now or utcnow()
    month = now.strftime("%B") if period == DesignationPeriod.MONTH else ""
    return month, now.year


def in_period(designation: BestEmployee, period: DesignationPeriod, month: str, year: int) -> bool:
    if designation.type != period or designation.year != year:
        return False
    return period == DesignationPeriod.YEAR or designation.month == month


class BestEmployeeService(BaseService):
    def __init__(self, store: CollectionStore, reconciler: ReconciliationService, toasts: ToastService):
        self.store = store
        self.reconciler = reconciler
        self.toasts = toasts

    def current(self, period: DesignationPeriod, now=None) -> List[int]:
        """User ids designated for the current period."""
        month, year = current_period(period, now)
        return [d.user_id for d in self.store.get(BEST_EMPLOYEES) if in_period(d, period, month, year)]

    async def designate(
        self,
        actor: Actor,
        period: DesignationPeriod,
        user_ids: List[int],
        now=None,
    ) -> List[BestEmployee]:
        """Replace the current period's designations with `user_ids`."""
        if actor.role not in DESIGNATING_ROLES:
            raise AuthorizationError("You do not have permission to set best employees.")
        month, year = current_period(period, now)
        created = [
            BestEmployee(id=new_client_id(), user_id=user_id, type=period, month=month, year=year)
            for user_id in user_ids
        ]
        committed = await self.reconciler.apply(
            BEST_EMPLOYEES,
            lambda items: [d for d in items if not in_period(d, period, month, year)] + created,
        )
        label = "Best employees" if period == DesignationPeriod.MONTH else "Best employee of year"
        logger.info(f"{label} set", extra={"user_ids": user_ids, "year": year})
        self.toasts.add(f"{label} updated successfully", "Success")
        saved = [self.reconciler.find_committed(committed, d.id) for d in created]
        return [d for d in saved if d is not None]

    def designated(self, period: DesignationPeriod, roster: List[Actor], now=None) -> List[Actor]:
        ids = set(self.current(period, now))
        return [member for member in roster if member.id in ids]
