"""
Approval workflow for submittable records.

Owners submit, edit and delete their own Pending records; reviewers move a
Pending record to Approved or Rejected exactly once. Every check runs against
the local snapshot before any remote call, and every mutation is persisted
through the reconciler.
"""

import logging
from typing import Dict, List, Optional

from timesheet_pro.core.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    RecordNotFoundError,
    ValidationError,
)
from timesheet_pro.schemas.actor import Actor, Role
from timesheet_pro.schemas.records import (
    ProjectWork,
    RecordKind,
    Status,
    SubmittableRecord,
    Timesheet,
    WorkEntry,
)
from timesheet_pro.schemas.review import PendingCounts, ReviewFilters, ReviewQueue
from timesheet_pro.services.base_service import BaseService
from timesheet_pro.services.notification_service import NotificationService
from timesheet_pro.services.reconciliation_service import ReconciliationService
from timesheet_pro.services.toast_service import ToastService
from timesheet_pro.services import visibility_resolver
from timesheet_pro.store.collection_store import PROJECTS, USERS, CollectionStore
from timesheet_pro.utils.ids import new_client_id

logger = logging.getLogger(__name__)

Record = SubmittableRecord

# Roles whose work entries may be booked without a project (project id 0).
PROJECT_OPTIONAL_ROLES = (Role.ADMIN, Role.MANAGER)


def group_project_work(actor: Actor, blocks: List[ProjectWork]) -> List[ProjectWork]:
    """
    Keep entries with positive hours and a description, grouped per project.

    Raises:
        ValidationError: no valid entry remains
    """
    project_optional = actor.role in PROJECT_OPTIONAL_ROLES
    grouped: Dict[int, List[WorkEntry]] = {}
    for block in blocks:
        if not block.project_id and not project_optional:
            continue
        for entry in block.work_entries:
            if entry.hours > 0 and entry.description.strip():
                grouped.setdefault(block.project_id or 0, []).append(entry)
    if not grouped:
        if project_optional:
            message = "Please enter at least one valid work entry with a description and hours. Project is optional."
        else:
            message = "Please enter at least one valid work entry with a project, description, and hours."
        raise ValidationError(message)
    return [ProjectWork(project_id=project_id, work_entries=entries) for project_id, entries in grouped.items()]


def validate_record(actor: Actor, record: Record) -> Record:
    """Return the record with its payload cleaned, or raise ValidationError."""
    if isinstance(record, Timesheet):
        return record.model_copy(update={"project_work": group_project_work(actor, record.project_work)})
    if not record.leave_entries:
        raise ValidationError("Please add at least one leave day.")
    return record


class ApprovalService(BaseService):
    """Owner and reviewer operations on timesheets and leave requests."""

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

    def _get(self, kind: RecordKind, record_id: int) -> Record:
        record = self.store.find(kind.value, record_id)
        if record is None:
            raise RecordNotFoundError(f"{kind.label.capitalize()} {record_id} not found", details={"id": record_id})
        return record

    async def submit(self, actor: Actor, record: Record) -> Optional[Record]:
        """
        Submit a new record owned by `actor`.

        The record gets a provisional id and Pending status; the reviewer
        chosen by the routing rules is notified. Returns None, without
        notifying anyone, when the record was not committed.
        """
        record = validate_record(actor, record).model_copy(
            update={
                "id": new_client_id(),
                "owner_id": actor.id,
                "status": Status.PENDING,
                "approver_id": None,
            }
        )
        committed = await self.reconciler.apply(record.record_kind.value, lambda items: items + [record])
        saved = self.reconciler.find_committed(committed, record.id)
        if saved is None:
            logger.warning(
                f"{record.record_kind.label.capitalize()} of user {actor.id} was not saved",
                extra={"owner": actor.id},
            )
            return None
        logger.info(
            f"{record.record_kind.label.capitalize()} {saved.id} submitted",
            extra={"owner": actor.id},
        )
        await self.notifications.notify_submission(actor, saved, self.store.get(PROJECTS))
        return saved

    async def edit(self, actor: Actor, record: Record) -> Record:
        """Replace the payload of one of the actor's Pending records."""
        kind = record.record_kind
        current = self._get(kind, record.id)
        if current.owner_id != actor.id:
            raise AuthorizationError(f"You can only edit your own {kind.label}s.")
        if current.status.is_terminal:
            raise InvalidTransitionError(f"Only pending {kind.label}s can be edited.")
        updated = validate_record(actor, record).model_copy(
            update={"owner_id": current.owner_id, "status": Status.PENDING, "approver_id": None}
        )
        committed = await self.reconciler.apply(
            kind.value,
            lambda items: [updated if item.id == updated.id else item for item in items],
        )
        saved = self.reconciler.find_committed(committed, updated.id)
        if saved is None or saved.payload() != updated.payload():
            logger.warning(f"{kind.label.capitalize()} {updated.id} was not updated", extra={"owner": actor.id})
            return saved or current
        if isinstance(updated, Timesheet):
            self.toasts.add(f"Your timesheet for {updated.describe()} has been updated.", "Timesheet Updated")
        else:
            self.toasts.add("Your leave request has been updated.", "Leave Request Updated")
        return saved

    async def delete(self, actor: Actor, kind: RecordKind, record_id: int) -> None:
        """Delete one of the actor's Pending records."""
        current = self._get(kind, record_id)
        if current.owner_id != actor.id:
            self.toasts.add(f"You can only delete your own {kind.label}s.", "Permission Denied")
            raise AuthorizationError(f"You can only delete your own {kind.label}s.")
        if current.status.is_terminal:
            self.toasts.add(f"You can only delete {kind.label}s that are pending approval.", "Cannot Delete")
            raise InvalidTransitionError(f"You can only delete {kind.label}s that are pending approval.")
        await self.reconciler.apply(kind.value, lambda items: [item for item in items if item.id != record_id])

    async def transition(self, reviewer: Actor, kind: RecordKind, record_id: int, status: Status) -> Record:
        """
        Move a Pending record to Approved or Rejected.

        Returns the committed record. When the decision did not reach the
        remote store and was not committed, that record is still Pending and
        the owner is not notified.

        Raises:
            InvalidTransitionError: target status is not terminal, or the record already is
            RecordNotFoundError: unknown record id
            AuthorizationError: the record is outside the reviewer's resolved set
        """
        if not status.is_terminal:
            raise InvalidTransitionError(f"Cannot move a {kind.label} to {status.value}")
        record = self._get(kind, record_id)
        if not visibility_resolver.can_review(reviewer, self.store.get(USERS), record):
            logger.warning(
                f"User {reviewer.id} may not review {kind.label} {record_id}",
                extra={"reviewer": reviewer.id, "owner": record.owner_id},
            )
            raise AuthorizationError(f"You are not allowed to review this {kind.label}.")
        if record.status.is_terminal:
            raise InvalidTransitionError(f"This {kind.label} has already been {record.status.value.lower()}.")

        decided: List[Record] = []

        def decide(items: List[Record]) -> List[Record]:
            result = []
            for item in items:
                if item.id == record_id:
                    # Re-checked under the reconcile lock: a decision may have
                    # been committed since the snapshot above was read.
                    if item.status.is_terminal:
                        raise InvalidTransitionError(
                            f"This {kind.label} has already been {item.status.value.lower()}."
                        )
                    item = item.model_copy(update={"status": status, "approver_id": reviewer.id})
                    decided.append(item)
                result.append(item)
            return result

        committed = await self.reconciler.apply(kind.value, decide)
        if not decided:
            raise RecordNotFoundError(f"{kind.label.capitalize()} {record_id} not found", details={"id": record_id})
        saved = self.reconciler.find_committed(committed, record_id)
        if saved is None or saved.status != status:
            logger.warning(
                f"{kind.label.capitalize()} {record_id} could not be {status.value.lower()}",
                extra={"reviewer": reviewer.id, "owner": record.owner_id},
            )
            return saved or record
        logger.info(
            f"{kind.label.capitalize()} {record_id} {status.value.lower()}",
            extra={"reviewer": reviewer.id, "owner": record.owner_id},
        )
        await self.notifications.notify_review_decision(reviewer, saved, status)
        return saved

    def review_queue(
        self,
        reviewer: Actor,
        kind: RecordKind,
        filters: Optional[ReviewFilters] = None,
    ) -> ReviewQueue:
        return visibility_resolver.build_review_queue(
            reviewer,
            self.store.get(USERS),
            self.store.get(kind.value),
            self.store.get(PROJECTS),
            filters,
        )

    def pending_counts(self, reviewer: Actor) -> PendingCounts:
        return visibility_resolver.pending_counts(
            reviewer,
            self.store.get(USERS),
            self.store.get(RecordKind.TIMESHEET.value),
            self.store.get(RecordKind.LEAVE_REQUEST.value),
        )

    def own_records(self, actor: Actor, kind: RecordKind) -> List[Record]:
        return [record for record in self.store.get(kind.value) if record.owner_id == actor.id]
